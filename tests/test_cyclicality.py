import pytest

from buffett_value.cyclicality import (
    BASE_STRATEGIES,
    analyze_cyclicality,
    build_cycle_history,
    calculate_correlation,
    calculate_economic_sensitivity,
    categorize_cyclicality,
    determine_current_phase,
    find_cyclical_opportunities,
    get_strategy_recommendations,
)


def _history(earnings, revenue=None, margins=None):
    """Periods most recent first."""
    revenue = revenue or [e * 10 for e in earnings]
    margins = margins or [10] * len(earnings)
    return [{"date": f"p{i}", "earnings": e, "revenue": r, "margins": m}
            for i, (e, r, m) in enumerate(zip(earnings, revenue, margins))]


EXPANDING_MARGINS = [20] * 4 + [10] * 4
CONTRACTING_MARGINS = [5] * 4 + [10] * 4


def test_build_cycle_history():
    history = build_cycle_history([{"date": "2023-12-31", "netIncome": 25, "revenue": 200},
                                   {"date": "2022-12-31", "netIncome": 10, "revenue": 0}])
    assert history[0] == {"date": "2023-12-31", "earnings": 25, "revenue": 200, "margins": 12.5}
    assert history[1]["margins"] is None


def test_steady_business_is_defensive():
    result = analyze_cyclicality(_history([10] * 8))
    assert result["cyclicality_score"] == 0
    assert result["cyclicality_category"] == "Defensive"
    assert result["volatility"] == 0


def test_swinging_business_is_cyclical():
    statements = [{"date": f"{2023 - i}-12-31", "netIncome": 10 if i % 2 else 20, "revenue": 100 if i % 2 else 200}
                  for i in range(8)]
    result = analyze_cyclicality(build_cycle_history(statements))

    assert result["metrics"]["earnings"]["coefficient_of_variation"] == pytest.approx(100 / 3)
    assert result["metrics"]["margins"]["coefficient_of_variation"] == pytest.approx(0, abs=1e-9)
    assert result["cyclicality_score"] == 44
    assert result["cyclicality_category"] == "Cyclical"


def test_selected_indicators_only():
    history = _history([20, 10] * 4, revenue=[200, 100] * 4)
    result = analyze_cyclicality(history, indicators=("earnings", "revenue"))
    assert result["cyclicality_score"] == 67
    assert result["cyclicality_category"] == "Highly Cyclical"


def test_short_history_is_rejected():
    result = analyze_cyclicality(_history([10] * 7))
    assert result["cyclicality_score"] is None
    assert "Insufficient" in result["error"]


@pytest.mark.parametrize("score, category", [
    (None, "Unknown"), (10, "Defensive"), (15, "Moderate Cyclicality"), (45, "Cyclical"), (50, "Highly Cyclical"),
])
def test_categorize_cyclicality(score, category):
    assert categorize_cyclicality(score) == category


def test_phase_late_expansion_at_peak():
    history = _history([160, 130, 110, 100, 100, 100, 100, 100], margins=EXPANDING_MARGINS)
    assert determine_current_phase(history) == "Late Expansion"


def test_phase_early_expansion_below_old_peak():
    history = _history([160, 130, 110, 100, 100, 100, 100, 100, 300], margins=EXPANDING_MARGINS + [10])
    assert determine_current_phase(history) == "Early Expansion"


def test_phase_early_contraction_near_peak():
    history = _history([90, 95, 98, 100, 100, 100, 100, 100], margins=CONTRACTING_MARGINS)
    assert determine_current_phase(history) == "Early Contraction"


def test_phase_late_contraction_far_from_peak():
    history = _history([50, 60, 70, 80, 100, 100, 100, 100], margins=CONTRACTING_MARGINS)
    assert determine_current_phase(history) == "Late Contraction"


def test_phase_early_recovery():
    history = _history([160, 130, 110, 100, 100, 100, 100, 100], margins=CONTRACTING_MARGINS)
    assert determine_current_phase(history) == "Early Recovery"


def test_phase_late_cycle_peak():
    history = _history([90, 95, 98, 100, 100, 100, 100, 100], margins=EXPANDING_MARGINS)
    assert determine_current_phase(history) == "Late Cycle Peak"


def test_phase_mixed_signals():
    history = _history([160, 130, 110, 100, 100, 100, 100, 100],
                       revenue=[900, 950, 980, 1000, 1000, 1000, 1000, 1000],
                       margins=EXPANDING_MARGINS)
    assert determine_current_phase(history) == "Mixed Signals"


def test_phase_needs_eight_periods():
    assert determine_current_phase(_history([10] * 4)) == "Indeterminate"


def test_correlation():
    assert calculate_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1)
    assert calculate_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1)
    assert calculate_correlation([1, 1, 1], [1, 2, 3]) is None
    assert calculate_correlation([1, 2], [1, 2, 3]) is None


def test_economic_sensitivity_tracks_indicator():
    gdp = [100, 110, 105, 120, 115, 130, 125, 140]
    indicators = [{"date": f"q{i}", "value": v} for i, v in enumerate(gdp)]
    stock = {"historical_data": [{"date": f"q{i}", "earnings": v * 2} for i, v in enumerate(gdp)]}

    result = calculate_economic_sensitivity(stock, indicators)

    assert result["correlation"] == pytest.approx(1)
    assert result["beta"] == pytest.approx(1)
    assert result["lag"] == 0
    assert result["sensitivity_score"] == 20
    assert result["sensitivity_category"] == "Moderate Sensitivity"


def test_economic_sensitivity_needs_matching_dates():
    indicators = [{"date": f"x{i}", "value": i + 1} for i in range(8)]
    stock = {"historical_data": [{"date": f"q{i}", "earnings": i + 1} for i in range(8)]}
    result = calculate_economic_sensitivity(stock, indicators)
    assert result["sensitivity_score"] is None
    assert "matched" in result["error"]


def test_economic_sensitivity_without_data():
    assert calculate_economic_sensitivity({}, [])["sensitivity_score"] is None


def test_cyclical_opportunities_ranked_by_fit():
    stocks = [
        {"symbol": "DEF", "cyclicality_category": "Defensive", "current_phase": "Stable"},
        {"symbol": "NODATA"},
        {"symbol": "CYC", "cyclicality_category": "Highly Cyclical", "current_phase": "Early Recovery",
         "value_score": 80, "quality_score": 60},
    ]
    ranked = find_cyclical_opportunities("Early Expansion", stocks)

    assert [s["symbol"] for s in ranked] == ["CYC", "DEF", "NODATA"]
    assert ranked[0]["cyclical_fit"] == 100
    assert ranked[0]["combined_score"] == pytest.approx(82)
    assert ranked[1]["combined_score"] == pytest.approx(38)
    assert ranked[2]["cyclical_fit"] == 0
    assert ranked[2]["combined_score"] is None


def test_cyclical_opportunities_need_cycle():
    assert find_cyclical_opportunities(None, [{"symbol": "A"}]) == []


def test_overvalued_market_shifts_allocation_to_cash():
    recommendation = get_strategy_recommendations("Late Expansion")
    assert recommendation["asset_allocation"] == {"stocks": 50, "bonds": 35, "cash": 15}
    assert "overvalued_emphasis" in recommendation
    assert BASE_STRATEGIES["Late Expansion"]["asset_allocation"]["stocks"] == 60


def test_fairly_valued_market_keeps_base_strategy():
    recommendation = get_strategy_recommendations("Early Recovery", is_overvalued=False)
    assert recommendation["asset_allocation"] == {"stocks": 55, "bonds": 35, "cash": 10}
    assert "overvalued_emphasis" not in recommendation


def test_unknown_cycle_uses_late_expansion_playbook():
    recommendation = get_strategy_recommendations("Stagflation", is_overvalued=False)
    assert recommendation["market_cycle"] == "Stagflation"
    assert recommendation["risk_level"] == "Average"
    assert recommendation["sector_focus"] == ["Technology", "Financials", "Communication Services"]
