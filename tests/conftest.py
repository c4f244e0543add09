from __future__ import annotations

import pytest

from theatre.observability.correlation import reset_correlation_id


@pytest.fixture(autouse=True)
def _isolate_correlation_id():
    """
    Test hygiene: the correlation id is process-wide, so every test starts
    and ends with it unset.
    """
    reset_correlation_id()
    yield
    reset_correlation_id()
