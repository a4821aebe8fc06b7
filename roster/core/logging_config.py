import logging
import logging.config
import os
from datetime import datetime
from roster.core.config import settings

def setup_logging():
    """Setup application logging configuration"""

    log_dir = settings.LOG_DIR
    for sub_dir in ("app", "access", "error", "audit"):
        os.makedirs(os.path.join(log_dir, sub_dir), exist_ok=True)

    # Get current date for log file naming
    current_date = datetime.now().strftime("%Y-%m-%d")

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.LOG_LEVEL,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": settings.LOG_LEVEL,
                "formatter": "detailed",
                "filename": os.path.join(log_dir, "app", f"app-{current_date}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 10,
            },
            "error_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "ERROR",
                "formatter": "detailed",
                "filename": os.path.join(log_dir, "error", f"error-{current_date}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 10,
            },
            "access_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "access",
                "filename": os.path.join(log_dir, "access", f"access-{current_date}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 10,
            },
            "audit_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "default",
                "filename": os.path.join(log_dir, "audit", f"audit-{current_date}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 30,
            },
        },
        "loggers": {
            "": {  # Root logger
                "level": settings.LOG_LEVEL,
                "handlers": ["console", "app_file", "error_file"],
                "propagate": False,
            },
            "audit": {
                "level": "INFO",
                "handlers": ["audit_file", "console"],
                "propagate": False,
            },
            "access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",  # Reduce DB query noise
                "handlers": ["app_file"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)

    # Log startup message
    logger = logging.getLogger(__name__)
    logger.info(f"{settings.APP_NAME} - Logging configured")
    logger.info(f"Log level: {settings.LOG_LEVEL}")
    logger.info(f"Logs directory: {log_dir}/")
