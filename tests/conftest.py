import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger():
    """drop the handlers `setup_logging` installs, they write to CliRunner streams"""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
