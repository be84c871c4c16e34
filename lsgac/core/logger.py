import logging
import os
import sys


DEFAULT_LOG_FILENAME = 'segmentation-log.txt'

LINE_FMT = ("[%(asctime)s] [%(name)s:%(lineno)d] "
            "%(levelname)-8s %(message)s")
DATE_FMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(filename=None, stdout=True, level=logging.DEBUG):
    """ Sets up logging formatting, file location, etc.

    Parameters
    ----------
    filename: str, default=None
        The log file, overwritten if it exists. None writes
        `segmentation-log.txt` in the current directory. Pass False to
        disable the file handler.

    stdout: bool, default=True
        If True, log records are also written to standard output

    level: int, default=logging.DEBUG
        The level of the root logger

    Returns
    -------
    handlers: list
        The installed handlers (useful to remove them afterwards)
    """
    formatter = logging.Formatter(fmt=LINE_FMT, datefmt=DATE_FMT)
    handlers = []

    if filename is not False:
        # Handles when filename is None
        filename = filename or os.path.join(os.path.curdir,
                                            DEFAULT_LOG_FILENAME)
        fhandler = logging.FileHandler(filename, mode='w')
        fhandler.setFormatter(formatter)
        handlers.append(fhandler)

    if stdout:
        shandler = logging.StreamHandler(sys.stdout)
        shandler.setFormatter(formatter)
        handlers.append(shandler)

    root = logging.getLogger()
    root.setLevel(level)

    for handler in handlers:
        root.addHandler(handler)

    return handlers


def remove_handlers(handlers):
    """ Detach and close handlers installed by :func:`setup_logging` """
    root = logging.getLogger()
    for handler in handlers:
        root.removeHandler(handler)
        handler.close()
