"""
Business-cycle analysis.

Measures how cyclical a company's results are, estimates where it sits in its
own cycle and matches stocks to a market-cycle strategy. Histories are lists
of period dicts ordered most recent first.
"""
import copy
import math

import numpy as np

MIN_PERIODS = 8
MAX_LAG = 4
DEFAULT_INDICATORS = ("earnings", "revenue", "margins")


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def _mean(values):
    return float(np.mean(values)) if len(values) else 0.0


def build_cycle_history(income_statements):
    """Turn income statements (most recent first) into cycle history periods."""
    history = []
    for statement in income_statements:
        earnings = statement.get("netIncome")
        revenue = statement.get("revenue")
        margins = earnings / revenue * 100 if earnings is not None and revenue else None
        history.append({"date": statement.get("date"), "earnings": earnings, "revenue": revenue, "margins": margins})
    return history


def _period_growth(values):
    """Period-over-period growth in percent, most recent first, for values given most recent first."""
    rates = []
    for newer, older in zip(values, values[1:]):
        if newer is not None and older:
            rates.append((newer - older) / abs(older) * 100)
    return rates


def categorize_cyclicality(score):
    if score is None:
        return "Unknown"
    if score < 15:
        return "Defensive"
    if score < 30:
        return "Moderate Cyclicality"
    if score < 50:
        return "Cyclical"
    return "Highly Cyclical"


def analyze_cyclicality(history, indicators=DEFAULT_INDICATORS):
    if not history or len(history) < MIN_PERIODS:
        return {
            "cyclicality_score": None,
            "volatility": None,
            "current_phase": None,
            "error": "Insufficient historical data for cyclicality analysis",
        }

    metrics = {}
    for indicator in indicators:
        values = np.array([p[indicator] for p in history if p.get(indicator) is not None], dtype=float)
        if len(values) < MIN_PERIODS:
            continue
        mean = values.mean()
        if mean == 0:
            continue
        std_dev = values.std()
        metrics[indicator] = {
            "mean": float(mean),
            "std_dev": float(std_dev),
            "coefficient_of_variation": float(std_dev / abs(mean) * 100),
        }

    if not metrics:
        return {
            "cyclicality_score": None,
            "volatility": None,
            "current_phase": None,
            "error": "No valid indicators for cyclicality analysis",
        }

    average_cv = _mean([m["coefficient_of_variation"] for m in metrics.values()])
    score = min(_round_half_up(average_cv * 2), 100)

    earnings = [p.get("earnings") for p in history if p.get("earnings") is not None]
    growth_rates = [
        (newer - older) / older * 100
        for newer, older in zip(earnings, earnings[1:])
        if older > 0
    ]
    volatility = float(np.std(growth_rates)) if growth_rates else None

    return {
        "cyclicality_score": score,
        "volatility": volatility,
        "current_phase": determine_current_phase(history),
        "metrics": metrics,
        "cyclicality_category": categorize_cyclicality(score),
    }


def determine_current_phase(history):
    if len(history) < MIN_PERIODS:
        return "Indeterminate"

    recent = history[:MIN_PERIODS]

    recent_margin = _mean([p.get("margins") or 0 for p in recent[:4]])
    previous_margin = _mean([p.get("margins") or 0 for p in recent[4:]])
    margin_trend = "Expanding" if recent_margin > previous_margin else "Contracting"

    earnings = [p.get("earnings") for p in recent]
    recent_growth = _mean(_period_growth(earnings[:4]))
    previous_growth = _mean(_period_growth(earnings[4:]))
    earnings_trend = "Accelerating" if recent_growth > previous_growth else "Decelerating"

    revenues = [p.get("revenue") for p in recent]
    recent_revenue_growth = _mean(_period_growth(revenues[:4]))
    previous_revenue_growth = _mean(_period_growth(revenues[4:]))
    revenue_trend = "Accelerating" if recent_revenue_growth > previous_revenue_growth else "Decelerating"

    all_earnings = [p["earnings"] for p in history if p.get("earnings") is not None]
    peak = max(all_earnings) if all_earnings else 0
    current = history[0].get("earnings") or 0
    percent_of_peak = current / peak * 100 if peak > 0 else 0

    if margin_trend == "Expanding" and earnings_trend == "Accelerating" and revenue_trend == "Accelerating":
        return "Early Expansion" if percent_of_peak < 90 else "Late Expansion"
    if margin_trend == "Contracting" and (earnings_trend == "Decelerating" or revenue_trend == "Decelerating"):
        return "Early Contraction" if percent_of_peak > 75 else "Late Contraction"
    if margin_trend == "Contracting" and earnings_trend == "Accelerating":
        return "Early Recovery"
    if margin_trend == "Expanding" and earnings_trend == "Decelerating":
        return "Late Cycle Peak"
    return "Mixed Signals"


# === ECONOMIC SENSITIVITY ===
def calculate_correlation(series1, series2):
    if len(series1) != len(series2) or len(series1) == 0:
        return None

    a = np.asarray(series1, dtype=float)
    b = np.asarray(series2, dtype=float)
    da = a - a.mean()
    db = b - b.mean()
    denominator = math.sqrt((da * da).sum()) * math.sqrt((db * db).sum())
    if denominator == 0:
        return None
    return float((da * db).sum() / denominator)


def calculate_beta(stock_values, indicator_values):
    if len(stock_values) != len(indicator_values) or len(stock_values) < 2:
        return None

    stock_changes = []
    indicator_changes = []
    for i in range(1, len(stock_values)):
        if stock_values[i - 1] != 0 and indicator_values[i - 1] != 0:
            stock_changes.append((stock_values[i] - stock_values[i - 1]) / stock_values[i - 1])
            indicator_changes.append((indicator_values[i] - indicator_values[i - 1]) / indicator_values[i - 1])

    if len(stock_changes) < 2:
        return None

    s = np.asarray(stock_changes)
    m = np.asarray(indicator_changes)
    variance = ((m - m.mean()) ** 2).mean()
    if variance == 0:
        return None
    covariance = ((s - s.mean()) * (m - m.mean())).mean()
    return float(covariance / variance)


def calculate_optimal_lag(series1, series2, max_lag=MAX_LAG):
    """Lag, in periods, at which the two series correlate most strongly."""
    if len(series1) < max_lag + 1 or len(series2) < max_lag + 1:
        return 0

    best_correlation = -2
    optimal_lag = 0
    for lag in range(max_lag + 1):
        lagged1 = series1[:len(series1) - lag]
        lagged2 = series2[lag:]
        length = min(len(lagged1), len(lagged2))
        correlation = calculate_correlation(lagged1[:length], lagged2[:length])
        if correlation is not None and correlation > best_correlation:
            best_correlation = correlation
            optimal_lag = lag
    return optimal_lag


def categorize_sensitivity(score):
    if score is None:
        return "Unknown"
    if score < 20:
        return "Defensive / Counter-Cyclical"
    if score < 40:
        return "Moderate Sensitivity"
    if score < 60:
        return "Average Cyclicality"
    if score < 80:
        return "Highly Cyclical"
    return "Extreme Cyclicality"


def calculate_economic_sensitivity(stock, economic_indicators):
    """
    Relate a stock's earnings (or revenue) to an economic indicator series.

    ``stock["historical_data"]`` and ``economic_indicators`` are lists of
    ``{"date", ...}`` dicts matched on date.
    """
    if not stock or not stock.get("historical_data") or not economic_indicators:
        return {"sensitivity_score": None, "error": "Insufficient data for economic sensitivity analysis"}

    financial = []
    for period in stock["historical_data"]:
        value = period.get("earnings") or period.get("revenue") or 0
        if value != 0:
            financial.append({"date": period.get("date"), "value": value})

    indicators_by_date = {i.get("date"): i.get("value") for i in economic_indicators}
    matched = [
        (f["value"], indicators_by_date[f["date"]])
        for f in financial
        if f["date"] in indicators_by_date
    ]

    if len(matched) < MIN_PERIODS:
        return {
            "sensitivity_score": None,
            "error": "Insufficient matched data points for economic sensitivity analysis",
        }

    financial_values = [m[0] for m in matched]
    indicator_values = [m[1] for m in matched]
    correlation = calculate_correlation(financial_values, indicator_values)
    beta = calculate_beta(financial_values, indicator_values)
    lag = calculate_optimal_lag([f["value"] for f in financial], [i.get("value") for i in economic_indicators])

    score = None if beta is None else min(_round_half_up(abs(beta) * 20), 100)
    return {
        "sensitivity_score": score,
        "correlation": correlation,
        "beta": beta,
        "lag": lag,
        "sensitivity_category": categorize_sensitivity(score),
    }


# === STRATEGY ===
CYCLE_STRATEGIES = {
    "Early Expansion": {
        "target_cyclicality": "Highly Cyclical",
        "secondary_target": "Cyclical",
        "avoid": "Defensive",
        "preferred_phases": ["Early Expansion", "Early Recovery"],
        "value_weight": 0.3,
        "quality_weight": 0.3,
        "cyclicality_weight": 0.4,
    },
    "Late Expansion": {
        "target_cyclicality": "Moderate Cyclicality",
        "secondary_target": "Cyclical",
        "avoid": "Highly Cyclical",
        "preferred_phases": ["Early Expansion", "Stable"],
        "value_weight": 0.4,
        "quality_weight": 0.4,
        "cyclicality_weight": 0.2,
    },
    "Early Contraction": {
        "target_cyclicality": "Defensive",
        "secondary_target": "Moderate Cyclicality",
        "avoid": "Highly Cyclical",
        "preferred_phases": ["Stable", "Mixed Signals"],
        "value_weight": 0.5,
        "quality_weight": 0.4,
        "cyclicality_weight": 0.1,
    },
    "Late Contraction": {
        "target_cyclicality": "Defensive",
        "secondary_target": "Defensive",
        "avoid": "Cyclical",
        "preferred_phases": ["Stable", "Late Contraction"],
        "value_weight": 0.6,
        "quality_weight": 0.3,
        "cyclicality_weight": 0.1,
    },
    "Early Recovery": {
        "target_cyclicality": "Cyclical",
        "secondary_target": "Highly Cyclical",
        "avoid": "Defensive",
        "preferred_phases": ["Early Recovery", "Late Contraction"],
        "value_weight": 0.5,
        "quality_weight": 0.2,
        "cyclicality_weight": 0.3,
    },
}

DEFAULT_CYCLE_STRATEGY = {
    "target_cyclicality": "Moderate Cyclicality",
    "secondary_target": "Defensive",
    "avoid": "Highly Cyclical",
    "preferred_phases": ["Stable", "Mixed Signals"],
    "value_weight": 0.4,
    "quality_weight": 0.4,
    "cyclicality_weight": 0.2,
}


def find_cyclical_opportunities(market_cycle, stocks):
    """Score stocks for fit with the market cycle; best combined score first."""
    if not market_cycle or not isinstance(stocks, list):
        return []

    strategy = CYCLE_STRATEGIES.get(market_cycle, DEFAULT_CYCLE_STRATEGY)
    scored = []
    for stock in stocks:
        category = stock.get("cyclicality_category")
        if not category or not stock.get("current_phase"):
            scored.append({**stock, "cyclical_fit": 0, "combined_score": None})
            continue

        if category == strategy["target_cyclicality"]:
            fit = 100
        elif category == strategy["secondary_target"]:
            fit = 70
        elif category == strategy["avoid"]:
            fit = 20
        else:
            fit = 50
        if stock["current_phase"] in strategy["preferred_phases"]:
            fit += 20
        fit = min(fit, 100)

        combined = (
            (stock.get("value_score") or 50) * strategy["value_weight"]
            + (stock.get("quality_score") or 50) * strategy["quality_weight"]
            + fit * strategy["cyclicality_weight"]
        )
        scored.append({**stock, "cyclical_fit": fit, "combined_score": combined})

    # Stocks without cycle data sink to the bottom
    return sorted(scored, key=lambda s: (s["combined_score"] is None, -(s["combined_score"] or 0)))


BASE_STRATEGIES = {
    "Early Expansion": {
        "asset_allocation": {"stocks": 70, "bonds": 25, "cash": 5},
        "sector_focus": ["Energy", "Materials", "Industrials", "Consumer Discretionary"],
        "factor_tilts": ["Value", "Size", "Momentum"],
        "risk_level": "Above Average",
        "description": "Focus on economically sensitive sectors that benefit early in the economic cycle.",
    },
    "Late Expansion": {
        "asset_allocation": {"stocks": 60, "bonds": 30, "cash": 10},
        "sector_focus": ["Technology", "Financials", "Communication Services"],
        "factor_tilts": ["Momentum", "Quality", "Growth"],
        "risk_level": "Average",
        "description": "Begin to emphasize quality companies that can sustain growth as the cycle matures.",
    },
    "Early Contraction": {
        "asset_allocation": {"stocks": 50, "bonds": 40, "cash": 10},
        "sector_focus": ["Healthcare", "Consumer Staples", "Utilities"],
        "factor_tilts": ["Quality", "Minimum Volatility", "Dividend"],
        "risk_level": "Below Average",
        "description": "Shift toward defensive sectors that can maintain earnings during economic slowdowns.",
    },
    "Late Contraction": {
        "asset_allocation": {"stocks": 40, "bonds": 45, "cash": 15},
        "sector_focus": ["Utilities", "Healthcare", "Consumer Staples"],
        "factor_tilts": ["Dividend", "Minimum Volatility", "Quality"],
        "risk_level": "Low",
        "description": "Emphasize capital preservation with stable dividend payers and reduced cyclical exposure.",
    },
    "Early Recovery": {
        "asset_allocation": {"stocks": 55, "bonds": 35, "cash": 10},
        "sector_focus": ["Financials", "Consumer Discretionary", "Industrials"],
        "factor_tilts": ["Value", "Size", "Quality"],
        "risk_level": "Average",
        "description": "Begin adding quality cyclicals that have been overly punished and show signs of recovery.",
    },
}

OVERVALUED_ADJUSTMENTS = {
    "Early Expansion": {
        "asset_allocation": {"stocks": -5, "bonds": 0, "cash": 5},
        "emphasis": "Focus on relative value within cyclical sectors; avoid the most expensive stocks.",
        "additional_tactics": "Consider value-oriented cyclicals rather than high-multiple growth stocks in sensitive sectors.",
    },
    "Late Expansion": {
        "asset_allocation": {"stocks": -10, "bonds": 5, "cash": 5},
        "emphasis": "Be especially selective on quality and valuation; reduce exposure to high-multiple growth stocks.",
        "additional_tactics": "Prioritize companies with strong free cash flow and reasonable valuations relative to sector.",
    },
    "Early Contraction": {
        "asset_allocation": {"stocks": -10, "bonds": 5, "cash": 5},
        "emphasis": "Emphasize highest quality defensive names and consider cash as a strategic position.",
        "additional_tactics": "Focus on companies with strong balance sheets and stable cash flows trading at reasonable valuations.",
    },
    "Late Contraction": {
        "asset_allocation": {"stocks": -5, "bonds": 0, "cash": 5},
        "emphasis": "Build a watch list of quality cyclicals to purchase when they reach attractive valuations.",
        "additional_tactics": "Maintain dry powder to deploy when opportunities arise in oversold quality cyclicals.",
    },
    "Early Recovery": {
        "asset_allocation": {"stocks": -5, "bonds": 0, "cash": 5},
        "emphasis": "Focus on companies with strong balance sheets that can survive if recovery is slow.",
        "additional_tactics": "Look for companies trading at discounts to tangible book value or with strong free cash flow yields.",
    },
}


def get_strategy_recommendations(market_cycle, is_overvalued=True):
    base = copy.deepcopy(BASE_STRATEGIES.get(market_cycle, BASE_STRATEGIES["Late Expansion"]))
    recommendation = {"market_cycle": market_cycle, "is_overvalued": is_overvalued, **base}
    if not is_overvalued:
        return recommendation

    adjustments = OVERVALUED_ADJUSTMENTS.get(market_cycle, OVERVALUED_ADJUSTMENTS["Late Expansion"])
    recommendation["asset_allocation"] = {
        asset: weight + adjustments["asset_allocation"][asset]
        for asset, weight in base["asset_allocation"].items()
    }
    recommendation["overvalued_emphasis"] = adjustments["emphasis"]
    recommendation["additional_tactics"] = adjustments["additional_tactics"]
    return recommendation
