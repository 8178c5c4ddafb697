import pytest

from lrv.directory.records import ReferenceRange
from lrv.pipeline.interpretation import classify

GLUCOSE = ReferenceRange(canonical_code="2345-7", low=70, high=110, critical_low=40, critical_high=400)


@pytest.mark.parametrize(
    "value,flag",
    [(30, "CRIT_LOW"), (450, "CRIT_HIGH"), (90, "N"), (50, "L"), (200, "H"), (70, "N"), (110, "N"), (40, "L"), (400, "H")],
)
def test_critical_bounds_take_precedence(value, flag):
    assert classify(value, GLUCOSE) == flag


def test_no_range_is_no_ref():
    assert classify(90, None) == "NO_REF"


@pytest.mark.parametrize("value", ["positive", None, True, float("nan"), 10**400])
def test_non_numeric_value_is_no_ref(value):
    assert classify(value, GLUCOSE) == "NO_REF"


def test_missing_bounds_are_skipped():
    only_high = ReferenceRange(canonical_code="x", high=5)
    assert classify(-100, only_high) == "N"
    assert classify(6, only_high) == "H"
    assert classify(1e9, ReferenceRange(canonical_code="x")) == "N"
