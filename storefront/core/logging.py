import logging, sys
from contextvars import ContextVar

LEVEL = logging.INFO
FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True

def configure_logging(level: str | int = LEVEL) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(FORMAT))
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
