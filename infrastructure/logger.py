import logging
import sys

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'


#-- configure the root logger once; modules log through logging.getLogger(__name__)
def setup_logging(level: str = "INFO") -> logging.Logger:
    formatter = logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, "_reservation_handler", False) for h in root.handlers):
        handler._reservation_handler = True
        root.addHandler(handler)

    return root
