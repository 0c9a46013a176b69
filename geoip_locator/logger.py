import os
from logging import config, getLevelName, getLogger

LOGGER_NAME = "api"
DIAGNOSTIC_LOGGER_NAME = "geoip"
LOG_LEVEL = getLevelName(os.getenv("LOG_LEVEL", "INFO"))  # DEBUG, WARNING, ERROR
# Optional file sink for absorbed provider failures, e.g. "logs/geoip.log".
DIAGNOSTIC_LOG_PATH = os.getenv("GEOIP_LOG_PATH")

log_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(levelprefix)s %(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s',
            "datefmt": "%Y-%m-%d %H:%M:%S",
            "use_colors": True,
        },
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(levelprefix)s %(asctime)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
            "use_colors": True,
        },
        "diagnostic": {
            "format": "[%(asctime)s] %(name)s.%(levelname)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": "ext://sys.stdout"},
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        LOGGER_NAME: {"handlers": ["default"], "level": LOG_LEVEL, "propagate": False},
        DIAGNOSTIC_LOGGER_NAME: {"handlers": ["default"], "level": "ERROR", "propagate": False},
        "uvicorn": {"handlers": ["default"], "level": LOG_LEVEL, "propagate": True},
        "uvicorn.access": {"handlers": ["access"], "level": LOG_LEVEL, "propagate": False},
        "uvicorn.error": {"level": LOG_LEVEL, "propagate": False},
    },
}

if DIAGNOSTIC_LOG_PATH:
    os.makedirs(os.path.dirname(DIAGNOSTIC_LOG_PATH) or ".", exist_ok=True)
    log_config["handlers"]["diagnostic_file"] = {
        "class": "logging.FileHandler",
        "formatter": "diagnostic",
        "filename": DIAGNOSTIC_LOG_PATH,
        "level": "ERROR",
        "delay": True,
    }
    log_config["loggers"][DIAGNOSTIC_LOGGER_NAME]["handlers"].append("diagnostic_file")

# Apply the modified logging configuration
config.dictConfig(log_config)

# Get the "api" logger
logger = getLogger(LOGGER_NAME)

# Diagnostic sink for provider failures that are absorbed rather than propagated
diagnostic_logger = getLogger(DIAGNOSTIC_LOGGER_NAME)
