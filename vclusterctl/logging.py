"""Logging configuration shared by the CLI and the API server."""
import logging

from .config import Config

# Third-party loggers kept at WARNING unless debugging
NOISY_LOGGERS = ("urllib3", "kubernetes")

def setup_logging(debug_mode: bool = False, serving: bool = False) -> logging.Logger:
    """Configure root logging and return the `vclusterctl` logger.

    When `serving`, uvicorn's per-request access log is quieted as well;
    every API call already logs the vcluster command it ran.
    """
    log_level = logging.DEBUG if debug_mode else Config.LOG_LEVEL
    logging.basicConfig(
        level=log_level,
        format=Config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )

    if not debug_mode:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
        if serving:
            logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger("vclusterctl")
    logger.setLevel(log_level)
    return logger
