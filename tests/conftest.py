"""
Pytest Configuration and Fixtures
"""

import pytest

from weft import Kernel
from weft.kernel.wildcard import clear_pattern_cache


@pytest.fixture
def kernel() -> Kernel:
    """Returns a fresh Kernel with default configuration."""
    return Kernel()


@pytest.fixture
def strict_kernel() -> Kernel:
    """Returns a Kernel with the error boundary disabled."""
    return Kernel(error_boundary=False)


@pytest.fixture(autouse=True)
def _reset_pattern_cache():
    clear_pattern_cache()
    yield
    clear_pattern_cache()
