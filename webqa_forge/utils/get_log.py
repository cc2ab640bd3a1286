import logging
import os
from datetime import datetime
from logging import WARNING, FileHandler
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(filename)s (%(funcName)s:%(lineno)d)] - %(message)s"


class GetLog:
    logger = None
    log_folder = None
    handlers = []

    @classmethod
    def get_log(cls, level="info", log_dir="./logs", shared_log_folder=None):
        """Get logger and initialize logging system.

        Args:
            level (str): Log level name for the main log file and console, default is "info"
            log_dir (str): Parent directory for the timestamped run folder
            shared_log_folder (str): Use this folder instead of creating a timestamped one
        """
        if cls.logger is None:
            if shared_log_folder:
                cls.log_folder = shared_log_folder
            else:
                # One folder per run, named after the start time
                current_time = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
                cls.log_folder = os.path.join(log_dir, current_time)
                os.environ["WEBQA_FORGE_TIMESTAMP"] = current_time

            os.makedirs(cls.log_folder, exist_ok=True)

            numeric_level = getattr(logging, str(level).upper(), logging.INFO)
            cls.logger = logging.getLogger()
            cls.logger.setLevel(numeric_level)

            fm = logging.Formatter(LOG_FORMAT)

            # Main log file, rotated at midnight
            th = TimedRotatingFileHandler(
                filename=os.path.join(cls.log_folder, "log.log"),
                when="midnight",
                interval=1,
                backupCount=3,
                encoding="utf-8",
            )
            th.setLevel(numeric_level)
            th.setFormatter(fm)
            cls.logger.addHandler(th)
            cls.handlers.append(th)

            # Warnings and errors (anomalies included) get their own file
            error_handler = FileHandler(filename=os.path.join(cls.log_folder, "error.log"), encoding="utf-8")
            error_handler.setLevel(WARNING)
            error_handler.setFormatter(fm)
            cls.logger.addHandler(error_handler)
            cls.handlers.append(error_handler)

            console_handler = logging.StreamHandler()
            console_handler.setLevel(numeric_level)
            console_handler.setFormatter(fm)
            cls.logger.addHandler(console_handler)
            cls.handlers.append(console_handler)

        return cls.logger

    @classmethod
    def reset(cls):
        """Detach the handlers installed by get_log."""
        if cls.logger is not None:
            for handler in cls.handlers:
                cls.logger.removeHandler(handler)
                handler.close()
        cls.handlers = []
        cls.logger = None
        cls.log_folder = None
