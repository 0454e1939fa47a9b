import logging
import os
from datetime import datetime
from logging import WARNING, FileHandler
from logging.handlers import TimedRotatingFileHandler

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class GetLog:
    logger = None
    log_folder = None

    @classmethod
    def get_log(cls, level="info", log_folder=None):
        """Initialize the root logger once per process and return it.

        Args:
            level (str): debug, info, warning or error; unknown values fall back to info
            log_folder (str): folder for log.log and error.log, default is ./logs/<timestamp>
        """
        if cls.logger is not None:
            return cls.logger

        if log_folder:
            cls.log_folder = log_folder
        else:
            current_time = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            cls.log_folder = os.path.join("./logs", current_time)
            os.environ["UIGRAPH_TIMESTAMP"] = current_time
        os.makedirs(cls.log_folder, exist_ok=True)

        log_level = LEVELS.get(str(level).lower(), logging.INFO)
        cls.logger = logging.getLogger()
        cls.logger.setLevel(log_level)

        fm = logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] [%(filename)s (%(funcName)s:%(lineno)d)] - %(message)s"
        )

        # main log, rotated at midnight
        th = TimedRotatingFileHandler(
            filename=os.path.join(cls.log_folder, "log.log"),
            when="midnight",
            interval=1,
            backupCount=3,
            encoding="utf-8",
        )
        th.setLevel(log_level)
        th.setFormatter(fm)
        cls.logger.addHandler(th)

        error_handler = FileHandler(filename=os.path.join(cls.log_folder, "error.log"), encoding="utf-8")
        error_handler.setLevel(WARNING)
        error_handler.setFormatter(fm)
        cls.logger.addHandler(error_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(fm)
        cls.logger.addHandler(console_handler)

        # keep third-party request logs out of the run log
        for noisy in ("httpx", "openai", "httpcore"):
            logging.getLogger(noisy).setLevel(WARNING)

        return cls.logger
