import mpmath as mp
import pytest

@pytest.fixture(autouse=True)
def restore_dps():
    # several code paths change the global mpmath precision
    dps = mp.mp.dps
    yield
    mp.mp.dps = dps
