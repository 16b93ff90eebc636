import logging
import time

import pytest


@pytest.fixture(autouse=True)
def reset_pathwatcher_logger():
    """Drop handlers the CLI attaches so later tests log only to caplog."""
    yield
    pw_logger = logging.getLogger("pathwatcher")
    pw_logger.handlers = []
    pw_logger.setLevel(logging.NOTSET)


@pytest.fixture
def wait_for():
    """Return a helper polling a predicate until it holds or times out."""
    def _wait_for(predicate, timeout=5.0, interval=0.05):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return bool(predicate())

    return _wait_for
