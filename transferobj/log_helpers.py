# Copyright (c) 2025 NASK. All rights reserved.

import logging
import logging.config
import os.path
import threading
import traceback


def get_logger(name=None):
    """
    Get the logger of the given name (typically, `__name__` of the
    calling module).

    >>> get_logger('transferobj.fields') is logging.getLogger('transferobj.fields')
    True
    """
    return logging.getLogger(name)


_LOGGER = get_logger(__name__)

_loaded_configuration_paths = set()
_loaded_configuration_paths_lock = threading.Lock()


def configure_logging(path):
    """
    Load the logging configuration from the given file.

    Args:
        `path`:
            The path of a `logging.config.fileConfig()`-compliant
            (INI-like) logging configuration file.

    Returns:
        `True` if the configuration has been loaded; `False` if the
        file has already been loaded earlier (then a warning is
        logged and nothing else is done).

    Raises:
        `OSError` if the file cannot be read.
        `RuntimeError` if the file's content is not a valid logging
        configuration.
    """
    path = os.path.abspath(path)
    with _loaded_configuration_paths_lock:
        if path in _loaded_configuration_paths:
            _LOGGER.warning('ignored attempt to load logging configuration '
                            'file %a that has already been used', path)
            return False
        with open(path, encoding='utf-8'):
            pass
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
        except Exception:
            raise RuntimeError('error while configuring logging, '
                               'using settings from configuration file {0!a}:\n{1}'
                               .format(path, traceback.format_exc()))
        _LOGGER.info('logging configuration loaded from %a', path)
        _loaded_configuration_paths.add(path)
        return True
