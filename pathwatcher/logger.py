import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name, level=logging.INFO, log_dir=None, log_filename=None, console=True):
    """
    Set up and return a logger with console and (optionally) file handlers.

    Args:
        name (str): The logger name.
        level (int): Logging level.
        log_dir (str): Directory where the log file will be stored, if any.
        log_filename (str): Log file name; required together with log_dir.
        console (bool): Whether to add a console handler.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear out any existing handlers.
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT)

    if log_dir and log_filename:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
