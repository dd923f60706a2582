import copy

from buffett_value.data_quality import detect_data_anomalies, validate_owner_earnings


def test_owner_earnings_without_adjustment():
    result = validate_owner_earnings({"net_income": 100, "depreciation": 20, "capex": -50, "working_capital_change": 10})
    assert result["owner_earnings"] == 60
    assert result["adjusted_capex"] == 50
    assert result["adjustments"] == []


def test_high_capex_is_capped_at_seventy_percent_of_net_income():
    result = validate_owner_earnings({"net_income": 100, "depreciation": 20, "capex": 300, "working_capital_change": 10})
    assert result["adjusted_capex"] == 70
    assert result["owner_earnings"] == 40
    assert result["adjustments"] == ["High capex adjusted"]
    assert result["capex"] == 300


def test_losses_are_not_capex_adjusted():
    result = validate_owner_earnings({"net_income": -10, "depreciation": 20, "capex": 100, "working_capital_change": 10})
    assert result["owner_earnings"] == -100
    assert result["adjustments"] == []


def test_missing_components_count_as_zero():
    assert validate_owner_earnings({"net_income": 50})["owner_earnings"] == 50


def test_clean_statements_are_reliable(financial_data):
    result = detect_data_anomalies(financial_data)
    assert result == {"has_anomalies": False, "anomalies": [], "reliability": "high"}


def test_suspicious_statements_are_flagged(financial_data):
    data = copy.deepcopy(financial_data)
    data["income_statements"][0]["netIncome"] = 600.0
    data["income_statements"][0]["grossProfit"] = 900.0
    data["balance_sheets"][0]["totalLiabilities"] = 1500.0

    result = detect_data_anomalies(data)

    assert result["anomalies"] == [
        "Unusually high net income growth detected",
        "Extremely high ROE detected",
        "Unusually high gross margin detected",
        "Balance sheet inconsistency detected",
    ]
    assert result["reliability"] == "low"


def test_two_anomalies_are_medium_reliability(financial_data):
    financial_data["income_statements"][0]["grossProfit"] = 900.0
    financial_data["balance_sheets"][0]["totalLiabilities"] = 1500.0
    assert detect_data_anomalies(financial_data)["reliability"] == "medium"
