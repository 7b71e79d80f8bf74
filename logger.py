import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s:%(levelname)s:%(name)s: %(message)s'


def setup_logging(log_file: str | None = None, level: str | None = None):
    log_file = log_file or os.getenv('LOG_FILE', 'flashdeck.log')
    log_level = logging.getLevelName((level or os.getenv('LOG_LEVEL', 'INFO')).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    log_formatter = logging.Formatter(LOG_FORMAT)

    # File Handler
    file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=2, encoding='utf-8')
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(log_level)

    # Stream Handler
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(log_formatter)
    stream_handler.setLevel(log_level)

    # Root Logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)

    # discord.py's gateway chatter stays at INFO even when we debug
    logging.getLogger('discord').setLevel(max(log_level, logging.INFO))
