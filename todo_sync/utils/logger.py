import logging
import os

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(module)s - %(message)s"

# Create logger instance
logger = logging.getLogger("TodoSync")


def configure_logging(log_cfg=None):
    """
    Apply the `logging` section of the service config.
    Falls back to a single stream handler at INFO level.
    """
    log_cfg = log_cfg or {}
    handlers = []
    if log_cfg.get("log_file"):
        log_dir = os.path.dirname(log_cfg["log_file"])
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)  # Ensure log directory exists
        handlers.append(logging.FileHandler(log_cfg["log_file"]))
    if log_cfg.get("use_stream_handler", True):
        handlers.append(logging.StreamHandler())
    if not handlers:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=log_cfg.get("level", "INFO").upper(),
        format=log_cfg.get("format", DEFAULT_FORMAT),
        handlers=handlers,
        force=True,
    )
    logger.info("✅ Logger initialized successfully")
    return logger
