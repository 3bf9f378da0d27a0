import logging
import sys
from datetime import datetime

from playback.config import LOG_FILE


class CompanyFormatter(logging.Formatter):
    """
    Custom formatter to match the company's log format:
    [ Tue Jan 06 05:32:41 AM UTC 2026 ] : INFO : search : Message
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")

        context = getattr(record, 'context', 'root')

        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logger(name="playback", log_file=None, level=logging.INFO):
    """
    Handlers live on the root 'playback' logger only; named children
    (playback.search, playback.fetch, ...) propagate to it.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if name != "playback":
        logger.propagate = True
        setup_logger("playback", log_file=log_file, level=level)
        return logger

    formatter = CompanyFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


logger = setup_logger(log_file=LOG_FILE)
