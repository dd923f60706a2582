import pytest

from buffett_value.relative_valuation import (
    analyze_sector_valuation,
    calculate_historical_percentiles,
    calculate_median,
    calculate_quality_score,
    calculate_relative_valuation_score,
    calculate_sector_attractiveness,
    compare_to_industry_peers,
    compare_to_market,
    find_relative_value_opportunities,
    format_stocks_for_display,
)


def test_historical_percentiles_ignore_non_positive_history():
    history = [{"pe": 10}, {"pe": 20}, {"pe": 12}, {"pe": -3}, {"pe": 30}]
    assert calculate_historical_percentiles({"pe": 15, "pb": 0}, history) == {"pe": 50.0}


def test_historical_percentile_above_all_history():
    assert calculate_historical_percentiles({"pe": 40}, [{"pe": 10}, {"pe": 20}]) == {"pe": 100}


def test_peer_comparison_trims_extremes():
    peers = [{"pe": v} for v in range(1, 11)]
    comparison = compare_to_industry_peers({"pe": 10}, peers)["pe"]
    assert comparison["peer_average"] == pytest.approx(5.5)
    assert comparison["relative_to_peers"] == pytest.approx(10 / 5.5 * 100)
    assert comparison["percentile_to_peers"] == pytest.approx(90)


def test_market_comparison_skips_missing_market_data():
    comparison = compare_to_market({"pe": 20, "pb": 2}, {"pe": 25, "dividend_yield": 2})
    assert list(comparison) == ["pe"]
    assert comparison["pe"]["market_average"] == 25
    assert comparison["pe"]["relative_to_market"] == pytest.approx(80)


def test_sector_valuation():
    stocks = [{"pe": 10}, {"pe": 20}, {"pe": 30}]
    analysis = analyze_sector_valuation("Tech", stocks, {"pe": 20})
    pe = analysis["metrics"]["pe"]
    assert pe["average"] == pytest.approx(20)
    assert (pe["median"], pe["min"], pe["max"]) == (20, 10, 30)
    assert pe["relative_to_market"] == pytest.approx(100)
    assert analysis["stock_count"] == 3
    assert analysis["relative_attractiveness"] == pytest.approx(25)


def test_sector_valuation_small_sample_is_not_trimmed_away():
    analysis = analyze_sector_valuation("Tiny", [{"pe": 10}, {"pe": 20}], {})
    assert analysis["metrics"]["pe"]["average"] == pytest.approx(15)
    assert analysis["relative_attractiveness"] == 0


def test_sector_attractiveness_rewards_low_multiples_and_high_yields():
    metrics = {"pe": {"average": 10}, "dividend_yield": {"average": 4}}
    assert calculate_sector_attractiveness(metrics, {"pe": 20, "dividend_yield": 2}) == pytest.approx(50)


def test_median():
    assert calculate_median([3, 1, 2]) == 2
    assert calculate_median([4, 1, 3, 2]) == 2.5
    assert calculate_median([]) == 0


def test_relative_valuation_score():
    peers = [{"pe": 10}, {"pe": 20}, {"pe": 30}]
    assert calculate_relative_valuation_score({"pe": 10}, peers) == pytest.approx(60)
    assert calculate_relative_valuation_score({"dividend_yield": 10}, [{"dividend_yield": 1}]) == 100
    assert calculate_relative_valuation_score({}, peers) == 0


def test_quality_score():
    assert calculate_quality_score({"roe": 10, "debt_to_equity": 0}) == pytest.approx(75)
    assert calculate_quality_score({"roe": 25}) == pytest.approx(100)
    assert calculate_quality_score({"roe": 2.5}) == pytest.approx(12.5)
    assert calculate_quality_score({}) == 0


def test_relative_value_opportunities_from_cheap_sectors():
    stocks = [
        {"symbol": "A", "sector": "Cheap", "pe": 5},
        {"symbol": "B", "sector": "Cheap", "pe": 10},
        {"symbol": "C", "sector": "Cheap", "pe": 8},
        {"symbol": "D", "sector": "Cheap", "pe": 6},
        {"symbol": "X", "sector": "Pricey", "pe": 30},
        {"symbol": "Y", "sector": "Pricey", "pe": 40},
        {"symbol": "Z", "sector": "Pricey", "pe": 50},
    ]
    opportunities = find_relative_value_opportunities(stocks, {"pe": 20})

    assert [s["symbol"] for s in opportunities] == ["A", "D", "C"]
    assert opportunities[0]["analysis"]["relative_valuation_score"] == pytest.approx(42)
    assert opportunities[0]["analysis"]["combined_score"] == pytest.approx(42 * 0.6)


def test_no_opportunities_above_threshold():
    stocks = [{"symbol": "X", "sector": "Pricey", "pe": 40}]
    assert find_relative_value_opportunities(stocks, {"pe": 20}) == []


def test_display_rows():
    stocks = [
        {"symbol": "A", "company_name": "A Corp", "pe": 12, "pb": 2,
         "historical": {"median_pe": 15, "median_pb": 2.5},
         "analysis": {"relative_valuation_score": 60, "quality_score": 70, "combined_score": 64}},
        {"symbol": "B", "name": "B Inc", "pe": 12},
    ]
    rows = format_stocks_for_display(stocks)

    assert rows[0]["name"] == "A Corp"
    assert rows[0]["pe_vs_history"] == "0.80x"
    assert rows[0]["pb_vs_history"] == "0.80x"
    assert rows[0]["discount"] == "20.0%"
    assert rows[0]["combined_score"] == 64
    assert rows[1]["name"] == "B Inc"
    assert rows[1]["discount"] == "N/A"
    assert rows[1]["relative_value"] is None
