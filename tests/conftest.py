import pytest

from functer_math import MathEngine


@pytest.fixture
def engine():
    return MathEngine()
