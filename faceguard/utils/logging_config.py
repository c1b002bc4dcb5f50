"""
Logging configuration.
Console and optional rotating-file handlers, driven by the `logging`
section of config.yaml.
"""
import logging
import logging.handlers
from pathlib import Path

from .config_loader import get_config

_configured = set()


def setup_logging(name: str = None) -> logging.Logger:
    """
    Configure and return a logger.

    Args:
        name: logger name (normally __name__)

    Returns:
        logging.Logger with handlers attached once
    """
    config = get_config()
    logger = logging.getLogger(name or "faceguard")

    # Handlers already attached: avoid duplicates on repeated calls
    if logger.handlers:
        return logger

    _configured.add(logger.name)
    log_cfg = config.get("logging", {}) or {}
    logger.setLevel(getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO))

    formatter = logging.Formatter(
        log_cfg.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        datefmt=log_cfg.get("date_format"),
    )

    console_cfg = log_cfg.get("console", {}) or {}
    if console_cfg.get("enabled", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(
            getattr(logging, str(console_cfg.get("level", "INFO")).upper(), logging.INFO)
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    file_cfg = log_cfg.get("file", {}) or {}
    if file_cfg.get("enabled", False):
        log_dir = Path(file_cfg.get("directory", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / file_cfg.get("filename", "faceguard.log"),
            maxBytes=file_cfg.get("max_bytes", 10 * 1024 * 1024),
            backupCount=file_cfg.get("backup_count", 5),
            encoding="utf-8",
        )
        file_handler.setLevel(
            getattr(logging, str(file_cfg.get("level", "DEBUG")).upper(), logging.DEBUG)
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    return setup_logging(name)


def reconfigure_logging():
    """Re-apply the current config to every faceguard logger already set up."""
    for name in sorted(_configured):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        setup_logging(name)
