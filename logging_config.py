# logging_config.py
import logging
import os
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

load_dotenv()
# Use an environment variable for the log file, with a default
LOG_FILE = os.environ.get("LOG_FILE_PATH", "/tmp/ecoquest_app.log")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def setup_logging(log_file=None, level=None):
    """Configures a rotating file logger for the entire application."""
    # Get the root logger
    logger = logging.getLogger()

    # Avoid adding handlers multiple times
    if logger.hasHandlers() and any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return

    logger.setLevel(level or LOG_LEVEL)

    # Create a rotating file handler: 10MB per file, keep last 5 files
    handler = RotatingFileHandler(log_file or LOG_FILE, maxBytes=10*1024*1024, backupCount=5)

    # Create a formatter and set it for the handler
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)

    # Add the handler to the root logger
    logger.addHandler(handler)
