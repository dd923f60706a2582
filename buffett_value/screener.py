import logging
from datetime import datetime, timezone

import pandas as pd

from . import config
from .analysis import value_stock
from .errors import ValuationError

logger = logging.getLogger(__name__)

# preset filter -> (stock metric, bound)
PRESET_FILTERS = {
    "min_roe": ("roe", "min"),
    "max_debt_to_equity": ("debt_to_equity", "max"),
    "min_margin": ("net_margin", "min"),
    "max_pe": ("pe", "max"),
    "min_dividend_yield": ("dividend_yield", "min"),
    "min_dividend_growth": ("dividend_growth", "min"),
    "max_payout_ratio": ("payout_ratio", "max"),
    "min_years_paying_dividend": ("years_paying_dividend", "min"),
    "min_earnings_growth": ("earnings_growth", "min"),
    "max_peg": ("peg", "max"),
}

RESULT_COLUMNS = {
    "ticker": "Ticker",
    "name": "Name",
    "sector": "Sector",
    "current_price": "Price",
    "intrinsic_value_per_share": "Intrinsic Value",
    "buy_price": "Buy Price",
    "upside_percent": "Upside %",
    "valuation_status": "Status",
    "business_quality": "Quality",
    "buffett_score": "Buffett Score",
    "moat_score": "Moat Score",
    "rank": "Rank",
}


# === SCREENING ===
def is_reasonably_priced(quote):
    price = quote.get("price")
    pe = quote.get("pe")
    return bool(price and price > 0 and pe and 0 < pe < config.SCREEN_MAX_PE)


def screen_quality_stocks(quotes, load_financials, max_detailed=config.SCREEN_MAX_DETAILED,
                          universe=config.QUALITY_STOCK_UNIVERSE):
    """
    Value the first ``max_detailed`` reasonably priced stocks from ``quotes``.

    Only symbols in ``universe`` are considered; pass ``universe=None`` to
    screen every quote.

    ``load_financials(symbol)`` must return a raw fundamentals bundle accepted by
    ``value_stock``. Stocks that fail to load or value are logged and skipped.
    Results are sorted by upside, highest first.
    """
    if not quotes:
        return []

    if universe is not None:
        allowed = set(universe)
        quotes = [q for q in quotes if q.get("symbol") in allowed]

    candidates = [q for q in quotes if is_reasonably_priced(q)]
    logger.info(f"Found {len(candidates)} stocks with reasonable P/E ratios")

    results = []
    for quote in candidates[:max_detailed]:
        symbol = quote.get("symbol")
        try:
            valuation = value_stock(load_financials(symbol))
        except Exception as e:
            logger.error(f"Error analyzing {symbol}: {e}")
            continue
        valuation["analysis_timestamp"] = datetime.now(timezone.utc).isoformat()
        results.append(valuation)

    # Stocks without an upside figure sort last
    results.sort(key=lambda v: (v["upside_percent"] is None, -(v["upside_percent"] or 0)))
    return results


def is_stock_good_value(raw_financials):
    try:
        valuation = value_stock(raw_financials)
    except ValuationError as e:
        logger.error(f"Error evaluating stock: {e}")
        return {"is_good_value": False, "error": str(e)}
    except Exception as e:
        logger.error(f"Error evaluating stock: {e}")
        return {"is_good_value": False, "error": config.ERROR_MESSAGES["calculation_error"]}
    return {"is_good_value": valuation["valuation_status"] == "BUY", "valuation": valuation}


def _passes(stock, filters):
    for name, threshold in filters.items():
        if name not in PRESET_FILTERS:
            logger.warning(f"Ignoring unknown screening filter {name!r}")
            continue
        metric, bound = PRESET_FILTERS[name]
        value = stock.get(metric)
        if value is None:
            return False
        if bound == "min" and value < threshold:
            return False
        if bound == "max" and value > threshold:
            return False
    return True


def apply_screening_preset(stocks, preset):
    """
    Keep the stocks that pass every filter of a screening preset.

    ``preset`` is a key of ``config.SCREENING_PRESETS`` or a preset dict. Stock
    metrics use percent for ROE, margins, yields, payout and growth. A stock
    missing a filtered metric fails.
    """
    if isinstance(preset, str):
        if preset not in config.SCREENING_PRESETS:
            raise KeyError(f"Unknown screening preset {preset!r}")
        preset = config.SCREENING_PRESETS[preset]

    filters = preset.get("filters", {})
    return [stock for stock in stocks if _passes(stock, filters)]


def results_frame(valuations):
    """Summary table of valuations, one row per stock."""
    rows = [{label: v.get(key) for key, label in RESULT_COLUMNS.items()} for v in valuations]
    return pd.DataFrame(rows, columns=list(RESULT_COLUMNS.values()))
