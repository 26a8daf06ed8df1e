from __future__ import annotations

from decimal import Decimal

import pytest

from school_portal.database.mysql_base import as_float


@pytest.mark.parametrize("value, expected", [(Decimal("12.50"), 12.5), (3, 3.0), (None, None)])
def test_as_float(value, expected):
    assert as_float(value) == expected
