import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogHandler:
    """Handles logging configuration with separate files for dev/prod and rotation"""

    def __init__(self,
                 logger_name: str = 'DiscordBot',
                 prod_log_file: str = 'weekly_digest.log',
                 dev_log_file: Optional[str] = 'weekly_digest_dev.log'):
        """
        Initialize the log handler.

        Args:
            logger_name: Name of the logger
            prod_log_file: Path to production log file
            dev_log_file: Path to development log file (optional)
        """
        self.logger_name = logger_name
        self.prod_log_file = prod_log_file
        self.dev_log_file = dev_log_file

    def setup_logging(self, dev_mode: bool = False) -> logging.Logger:
        """
        Configure the console handler plus rotating file handlers.

        Console shows INFO and above, the production file keeps WARNING and
        above, and in dev mode a separate file captures everything at DEBUG.
        """
        logger = logging.getLogger(self.logger_name)
        env_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        log_level = logging.DEBUG if dev_mode else getattr(logging, env_level, logging.INFO)
        logger.setLevel(log_level)

        logger.handlers.clear()
        logger.propagate = False

        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if self._ensure_parent_dir(self.prod_log_file):
            prod_handler = RotatingFileHandler(
                self.prod_log_file,
                maxBytes=2 * 1024 * 1024,  # 2MB per file
                backupCount=3,
                encoding='utf-8',
            )
            prod_handler.setLevel(logging.WARNING)
            prod_handler.setFormatter(formatter)
            logger.addHandler(prod_handler)
        else:
            print("WARNING: Cannot write to production log file - logging to console only")

        if dev_mode and self.dev_log_file and self._ensure_parent_dir(self.dev_log_file):
            dev_handler = RotatingFileHandler(
                self.dev_log_file,
                maxBytes=512 * 1024,
                backupCount=5,
                encoding='utf-8',
            )
            dev_handler.setLevel(logging.DEBUG)
            dev_handler.setFormatter(formatter)
            logger.addHandler(dev_handler)

        logger.info(f"Logging configured in {'development' if dev_mode else 'production'} mode")
        return logger

    @staticmethod
    def _ensure_parent_dir(filepath: str) -> bool:
        try:
            log_dir = os.path.dirname(filepath)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            with open(filepath, 'a', encoding='utf-8'):
                pass
            return True
        except OSError as e:
            print(f"Cannot write to log file {filepath}: {e}")
            return False
