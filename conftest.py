"""
Common test fixtures and configuration for stridetensor tests.
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path for imports
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from stridetensor import Range, make_range_tensor, make_tensor, reset_default_format


@pytest.fixture
def matrix_3x4():
    """3x4 tensor holding 0..11 in row-major order."""
    return make_tensor(list(range(12)), (3, 4))


@pytest.fixture
def range_tensor_3x4x5():
    """3x4x5 tensor holding 0..59 in row-major order."""
    return make_range_tensor(Range(60), (3, 4, 5))


@pytest.fixture
def sample_shapes():
    """Common tensor shapes for testing."""
    return {
        'vector_1d': [7],
        'small_2d': [3, 4],
        'small_3d': [2, 3, 4],
        'unit_axes': [1, 3, 1, 2],
        'batch_4d': [2, 2, 3, 2],
    }


@pytest.fixture(autouse=True)
def default_format():
    """Restore process-wide format defaults after each test."""
    yield
    reset_default_format()


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests as slow based on their names."""
    for item in items:
        if any(keyword in item.nodeid for keyword in ["large", "exhaustive"]):
            item.add_marker(pytest.mark.slow)
