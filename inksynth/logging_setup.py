import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once.

    Honors LOG_LEVEL when no level is passed. If handlers already exist (gunicorn,
    pytest) only the levels are adjusted, so records are never emitted twice.
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # werkzeug logs every request at INFO; keep it in step with ours
    logging.getLogger("werkzeug").setLevel(numeric_level)
