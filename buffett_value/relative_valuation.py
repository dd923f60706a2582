"""
Relative valuation.

Looks for value relative to a stock's own history, its sector peers and the
broad market. Stocks are plain dicts using snake_case metric keys such as
``pe``, ``pb``, ``ev_to_ebitda``, ``dividend_yield`` and
``free_cash_flow_yield``.
"""
import logging
from collections import defaultdict

import numpy as np

from .formatters import format_number

logger = logging.getLogger(__name__)

HISTORICAL_METRICS = ("pe", "pb", "ev_to_ebitda")
PEER_METRICS = ("pe", "pb", "ev_to_ebitda", "dividend_yield", "free_cash_flow_yield")
MARKET_METRICS = ("pe", "pb", "dividend_yield")
SECTOR_METRICS = ("pe", "pb", "dividend_yield", "free_cash_flow_yield")

TRIM_FRACTION = 0.1
ATTRACTIVENESS_THRESHOLD = 70
TOP_PER_SECTOR = 3
VALUATION_WEIGHT = 0.6
QUALITY_WEIGHT = 0.4


def _positive(values):
    return sorted(v for v in values if v is not None and v > 0)


def _percentile_in(value, sorted_values):
    """Share of values strictly below ``value``, in percent."""
    if not sorted_values:
        return None
    for position, candidate in enumerate(sorted_values):
        if candidate >= value:
            return position / len(sorted_values) * 100
    return 100


def calculate_median(values):
    if not values:
        return 0
    return float(np.median(values))


def _trimmed_mean(sorted_values, trim_index):
    trimmed = sorted_values[trim_index:len(sorted_values) - trim_index]
    # Small samples would be trimmed away entirely
    if not trimmed:
        trimmed = sorted_values
    return float(np.mean(trimmed))


# === HISTORY, PEERS AND MARKET ===
def calculate_historical_percentiles(stock, historical_data, metrics=HISTORICAL_METRICS):
    percentiles = {}
    for metric in metrics:
        if not stock.get(metric):
            continue
        history = _positive(d.get(metric) for d in historical_data)
        if history:
            percentiles[metric] = _percentile_in(stock[metric], history)
    return percentiles


def compare_to_industry_peers(stock, peers, metrics=PEER_METRICS):
    comparison = {}
    for metric in metrics:
        value = stock.get(metric)
        if not value:
            continue
        peer_values = _positive(p.get(metric) for p in peers)
        if not peer_values:
            continue

        peer_average = _trimmed_mean(peer_values, int(len(peer_values) * TRIM_FRACTION))
        comparison[metric] = {
            "value": value,
            "peer_average": peer_average,
            "relative_to_peers": value / peer_average * 100,
            "percentile_to_peers": _percentile_in(value, peer_values),
        }
    return comparison


def compare_to_market(stock, market_data, metrics=MARKET_METRICS):
    comparison = {}
    for metric in metrics:
        value = stock.get(metric)
        market_value = market_data.get(metric)
        if not value or not market_value:
            continue
        comparison[metric] = {
            "value": value,
            "market_average": market_value,
            "relative_to_market": value / market_value * 100,
        }
    return comparison


# === SECTORS ===
def analyze_sector_valuation(sector, sector_stocks, market_data):
    sector_metrics = {}
    for metric in SECTOR_METRICS:
        values = _positive(s.get(metric) for s in sector_stocks)
        if not values:
            continue

        trim_index = max(1, int(len(values) * TRIM_FRACTION))
        summary = {
            "average": _trimmed_mean(values, trim_index),
            "median": calculate_median(values),
            "min": values[0],
            "max": values[-1],
        }
        if market_data.get(metric):
            summary["relative_to_market"] = summary["average"] / market_data[metric] * 100
        sector_metrics[metric] = summary

    return {
        "sector": sector,
        "metrics": sector_metrics,
        "stock_count": len(sector_stocks),
        "relative_attractiveness": calculate_sector_attractiveness(sector_metrics, market_data),
    }


def calculate_sector_attractiveness(sector_metrics, market_data):
    """Average of per-metric scores; 25 means in line with the market, higher is cheaper."""
    scores = []
    for metric in SECTOR_METRICS:
        if metric not in sector_metrics or not market_data.get(metric):
            continue
        ratio = sector_metrics[metric]["average"] / market_data[metric]
        # Lower multiples are better, higher yields are better
        if metric in ("pe", "pb"):
            scores.append(25 / ratio)
        else:
            scores.append(ratio * 25)
    return sum(scores) / len(scores) if scores else 0


# === STOCK SCORES ===
def _relative_component(value, peers, metric, weight, lower_is_better):
    peer_values = _positive(p.get(metric) for p in peers)
    if not peer_values:
        return None
    ratio = value / calculate_median(peer_values)
    return weight / ratio if lower_is_better else ratio * weight


def calculate_relative_valuation_score(stock, sector_peers):
    components = []
    for metric, weight, lower_is_better in (
        ("pe", 30, True),
        ("pb", 20, True),
        ("dividend_yield", 25, False),
        ("free_cash_flow_yield", 25, False),
    ):
        value = stock.get(metric)
        if value and value > 0:
            component = _relative_component(value, sector_peers, metric, weight, lower_is_better)
            if component is not None:
                components.append(component)

    if not components:
        return 0
    return min(100, sum(components) / len(components))


def _tiered_score(value, low, high):
    """0-25 points up to ``low``, 25-75 up to ``high``, then 75-100."""
    if value < low:
        return value / low * 25
    if value < high:
        return 25 + (value - low) / (high - low) * 50
    return 75 + min(25, (value - high) / (high - low) * 25)


def calculate_quality_score(stock):
    """Quality on a 0-100 scale from ROE, ROIC, leverage and interest coverage (percent inputs)."""
    scores = []

    roe = stock.get("roe")
    if roe and roe > 0:
        scores.append(_tiered_score(roe, 5, 15))

    roic = stock.get("roic")
    if roic and roic > 0:
        scores.append(_tiered_score(roic, 4, 12))

    debt_to_equity = stock.get("debt_to_equity")
    if debt_to_equity is not None:
        if debt_to_equity < 0.5:
            scores.append(75 + (0.5 - debt_to_equity) / 0.5 * 25)
        elif debt_to_equity < 2:
            scores.append(25 + (2 - debt_to_equity) / 1.5 * 50)
        else:
            scores.append(max(0, 25 - (debt_to_equity - 2) / 2 * 25))

    coverage = stock.get("interest_coverage")
    if coverage and coverage > 0:
        scores.append(_tiered_score(coverage, 2, 5))

    return sum(scores) / len(scores) if scores else 0


def find_relative_value_opportunities(stocks, market_data, threshold=ATTRACTIVENESS_THRESHOLD):
    """Best stocks from the sectors that look cheap against the market, best combined score first."""
    by_sector = defaultdict(list)
    for stock in stocks:
        by_sector[stock.get("sector")].append(stock)

    sectors = [analyze_sector_valuation(sector, members, market_data) for sector, members in by_sector.items()]
    attractive = [s["sector"] for s in sectors if s["relative_attractiveness"] >= threshold]
    logger.info(f"{len(attractive)} of {len(sectors)} sectors at or above attractiveness {threshold}")

    opportunities = []
    for sector in attractive:
        members = by_sector[sector]
        scored = []
        for stock in members:
            relative_score = calculate_relative_valuation_score(stock, members)
            quality_score = calculate_quality_score(stock)
            scored.append({
                **stock,
                "analysis": {
                    "relative_valuation_score": relative_score,
                    "quality_score": quality_score,
                    "combined_score": relative_score * VALUATION_WEIGHT + quality_score * QUALITY_WEIGHT,
                },
            })
        scored.sort(key=lambda s: s["analysis"]["combined_score"], reverse=True)
        opportunities.extend(scored[:TOP_PER_SECTOR])

    return sorted(opportunities, key=lambda s: s["analysis"]["combined_score"], reverse=True)


def _versus_history(current, median):
    if not current or not median:
        return "N/A"
    return f"{format_number(current / median)}x"


def format_stocks_for_display(stocks):
    rows = []
    for stock in stocks:
        analysis = stock.get("analysis") or {}
        historical = stock.get("historical") or {}
        pe = stock.get("pe")
        median_pe = historical.get("median_pe")

        rows.append({
            "symbol": stock.get("symbol"),
            "name": stock.get("company_name") or stock.get("name"),
            "sector": stock.get("sector"),
            "price": stock.get("price"),
            "pe": pe,
            "pb": stock.get("pb"),
            "dividend_yield": stock.get("dividend_yield"),
            "fcf_yield": stock.get("free_cash_flow_yield"),
            "relative_value": analysis.get("relative_valuation_score"),
            "quality": analysis.get("quality_score"),
            "combined_score": analysis.get("combined_score"),
            "pe_vs_history": _versus_history(pe, median_pe),
            "pb_vs_history": _versus_history(stock.get("pb"), historical.get("median_pb")),
            "discount": f"{format_number((1 - pe / median_pe) * 100, 1)}%" if pe and median_pe else "N/A",
        })
    return rows
