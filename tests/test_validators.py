import pytest

from buffett_value.validators import assess_price_discrepancy, validate_valuation


def test_consistent_methods_with_one_outlier():
    results = {"dcf": 100, "graham": 90, "pe": 110, "epv": 95, "asset_based": 30}
    validation = validate_valuation(results)

    assert validation["outlier_methods"] == ["asset_based"]
    assert validation["validated_value"] == pytest.approx(95.75)
    assert validation["confidence_score"] == pytest.approx(85)
    assert validation["reliability"] == "high"
    assert validation["recommendation"] == "Automated valuation acceptable"
    assert validation["original_values"] == results


def test_dcf_only():
    validation = validate_valuation({"dcf": 100})
    assert validation["validated_value"] == pytest.approx(100)
    assert validation["confidence_score"] == pytest.approx(68)
    assert validation["reliability"] == "medium"


def test_missing_and_non_positive_values_are_ignored():
    validation = validate_valuation({"dcf": None, "graham": float("nan"), "pe": -5})
    assert validation["validated_value"] == 0
    assert validation["confidence_score"] == 0
    assert validation["reliability"] == "low"
    assert validation["recommendation"] == "Manual review recommended"


def test_widely_scattered_methods_need_review():
    validation = validate_valuation({"dcf": 100, "graham": 10, "pe": 300, "epv": 200, "asset_based": 10})
    assert len(validation["outlier_methods"]) == 4
    assert validation["confidence_score"] == pytest.approx(40)
    assert validation["recommendation"] == "Manual review recommended"


@pytest.mark.parametrize("intrinsic_value, level, reliable", [
    (400, "extreme", False),
    (250, "high", True),
    (5, "extreme-low", False),
    (110, "normal", True),
])
def test_price_discrepancy(intrinsic_value, level, reliable):
    result = assess_price_discrepancy(intrinsic_value, 100)
    assert result["discrepancy_level"] == level
    assert result["reliable"] is reliable


def test_price_discrepancy_missing_data():
    assert assess_price_discrepancy(None, 100) == {"reliable": False, "message": "Missing price data"}
