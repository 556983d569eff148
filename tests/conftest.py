"""
Pytest configuration shared by unit and integration tests.

Test coroutines are marked explicitly with @pytest.mark.asyncio.
"""

import shutil
import tempfile

import pytest

from faultline.logging import LoggingConfig


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    """Only errors reach the console unless a test asks for more."""
    config = LoggingConfig()
    config.reset()
    config.update(log_level="error")
    yield
    config.reset()
    config.update(log_level="error")


@pytest.fixture
def socket_dir():
    """
    Short scratch directory for unix sockets. pytest's tmp_path can push
    socket paths past the platform limit.
    """
    directory = tempfile.mkdtemp(prefix="fl-", dir="/tmp")
    yield directory
    shutil.rmtree(directory, ignore_errors=True)
