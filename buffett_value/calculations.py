"""
Buffett-style intrinsic value calculations.

Rates are expressed in percent (5.0 means 5%) throughout this module.
"""
import math

from . import config
from .errors import InvalidInputError

OWNER_EARNINGS_WEIGHTS = (0.5, 0.3, 0.15, 0.05)
GRAHAM_MULTIPLIER = 22.5


def _quality(business_quality):
    return business_quality if business_quality in config.BUSINESS_QUALITIES else config.FAIR


# === ASSUMPTIONS ===
def normalize_growth_rate(historical_growth, business_quality):
    """Bound a historical growth rate to what the business quality can sustain."""
    quality = _quality(business_quality)
    floor = config.MINIMUM_GROWTH_RATES[quality]

    # Declining businesses get a conservative recovery rate
    if historical_growth < -10:
        return floor * 0.5
    if historical_growth < 0:
        return floor
    return min(historical_growth, config.MAXIMUM_GROWTH_RATES[quality])


def determine_discount_rate(business_quality, financial_metrics=None):
    rate = config.BASE_DISCOUNT_RATES[_quality(business_quality)]
    if not financial_metrics:
        return rate

    debt_to_equity = financial_metrics.get("debt_to_equity")
    if debt_to_equity is not None:
        if debt_to_equity > 2.0:
            rate += 2.0
        elif debt_to_equity > 1.0:
            rate += 1.0

    operating_margin = financial_metrics.get("operating_margin")
    if operating_margin is not None:
        if operating_margin < 5.0:
            rate += 1.0
        if operating_margin < 0:
            rate += 2.0

    return rate


def determine_margin_of_safety(business_quality):
    return config.MARGINS_OF_SAFETY[_quality(business_quality)]


def classify_business_quality(metrics, sector, industry=""):
    """
    Classify a business as excellent, good, fair or cyclical.

    ``metrics`` carries percent values for ``roe``, ``operating_margin`` and
    ``net_margin``, ``earnings_volatility`` (coefficient of variation in percent)
    and a boolean ``consistent_growth``. Without metrics only the sector is used.
    """
    defensive = sector in config.DEFENSIVE_SECTORS
    cyclical = sector in config.CYCLICAL_SECTORS

    if not metrics:
        if defensive:
            return config.GOOD
        if cyclical:
            return config.CYCLICAL
        return config.FAIR

    roe = metrics.get("roe") or 0
    operating_margin = metrics.get("operating_margin") or 0
    net_margin = metrics.get("net_margin") or 0
    volatility = metrics.get("earnings_volatility") or 0

    if (roe > 15 and operating_margin > 20 and net_margin > 10 and metrics.get("consistent_growth")
            and (defensive or industry in config.EXCELLENT_MOAT_INDUSTRIES)):
        return config.EXCELLENT
    if roe > 10 and operating_margin > 10 and net_margin > 5 and defensive:
        return config.GOOD
    if cyclical or volatility > 30:
        return config.CYCLICAL
    return config.FAIR


# === DISCOUNTED OWNER EARNINGS ===
def discount_owner_earnings(owner_earnings, growth_rate, discount_rate, terminal_growth_rate, years_projected):
    """Project owner earnings, discount them and add a Gordon-growth terminal value."""
    if years_projected < 1:
        raise InvalidInputError(f"years_projected must be at least 1, got {years_projected}")
    if discount_rate <= terminal_growth_rate:
        raise InvalidInputError(
            f"Discount rate {discount_rate}% must exceed terminal growth rate {terminal_growth_rate}%"
        )

    growth = growth_rate / 100
    discount = discount_rate / 100
    terminal_growth = terminal_growth_rate / 100

    present_value_of_earnings = 0
    for year in range(1, years_projected + 1):
        projected = owner_earnings * ((1 + growth) ** year)
        present_value_of_earnings += projected / ((1 + discount) ** year)

    future_earnings = owner_earnings * ((1 + growth) ** years_projected)
    terminal_value = future_earnings * (1 + terminal_growth) / (discount - terminal_growth)
    present_value_of_terminal = terminal_value / ((1 + discount) ** years_projected)

    return {
        "present_value_of_earnings": present_value_of_earnings,
        "future_earnings": future_earnings,
        "terminal_value": terminal_value,
        "present_value_of_terminal": present_value_of_terminal,
        "intrinsic_value": present_value_of_earnings + present_value_of_terminal,
    }


def calculate_intrinsic_value(owner_earnings, growth_rate, discount_rate, terminal_growth_rate, years_projected):
    return discount_owner_earnings(
        owner_earnings, growth_rate, discount_rate, terminal_growth_rate, years_projected
    )["intrinsic_value"]


def calculate_intrinsic_value_per_share(intrinsic_value, shares):
    if not shares or shares <= 0:
        raise InvalidInputError("Shares outstanding must be positive")
    return intrinsic_value / shares


def calculate_buy_price(intrinsic_value, margin_of_safety):
    return intrinsic_value * (1 - margin_of_safety / 100)


def calculate_graham_number(eps, book_value):
    if eps is None or book_value is None or eps <= 0 or book_value <= 0:
        return None
    return math.sqrt(GRAHAM_MULTIPLIER * eps * book_value)


# === OWNER EARNINGS ===
def _working_capital(balance):
    return (balance.get("totalCurrentAssets") or 0) - (balance.get("totalCurrentLiabilities") or 0)


def working_capital_increase(cash_flow, previous_balance=None, current_balance=None):
    """
    Increase in working capital over the period.

    Uses the balance-sheet delta when both balances are known, otherwise the
    cash-flow statement's ``changeInWorkingCapital``, which reports the cash
    effect and so carries the opposite sign.
    """
    if previous_balance and current_balance:
        return _working_capital(current_balance) - _working_capital(previous_balance)
    return -(cash_flow.get("changeInWorkingCapital") or 0)


def owner_earnings_components(income, cash_flow, previous_balance=None, current_balance=None):
    return {
        "net_income": income.get("netIncome") or 0,
        "depreciation": (cash_flow.get("depreciationAndAmortization")
                         or income.get("depreciationAndAmortization") or 0),
        "capex": abs(cash_flow.get("capitalExpenditure") or 0),
        "working_capital_change": working_capital_increase(cash_flow, previous_balance, current_balance),
    }


def calculate_owner_earnings(income, cash_flow, previous_balance=None, current_balance=None):
    """Net income + depreciation - capex - increase in working capital."""
    parts = owner_earnings_components(income, cash_flow, previous_balance, current_balance)
    return parts["net_income"] + parts["depreciation"] - parts["capex"] - parts["working_capital_change"]


def calculate_owner_earnings_per_share(financials, shares):
    if not financials or not financials.get("income") or not financials.get("cash_flow") or not shares:
        return 0
    total = calculate_owner_earnings(
        financials["income"],
        financials["cash_flow"],
        financials.get("previous_balance"),
        financials.get("current_balance"),
    )
    return total / shares


def calculate_weighted_owner_earnings(history):
    """
    Blend up to four years of owner earnings, most recent first, weighting
    recent years 50/30/15/5. Shorter histories reuse the leading weights.
    """
    values = list(history)[:len(OWNER_EARNINGS_WEIGHTS)]
    if not values:
        return 0
    weights = OWNER_EARNINGS_WEIGHTS[:len(values)]
    return sum(v * w for v, w in zip(values, weights)) / sum(weights)


# === ASSESSMENT ===
def assess_valuation(current_price, intrinsic_value, margin_of_safety):
    safety_price = calculate_buy_price(intrinsic_value, margin_of_safety)
    upside_percentage = (intrinsic_value - current_price) / current_price * 100 if current_price else None

    if not current_price:
        status = "INSUFFICIENT DATA"
        description = config.ERROR_MESSAGES["insufficient_data"]
    elif intrinsic_value <= 0:
        status = "OVERVALUED"
        description = config.ERROR_MESSAGES["negative_earnings"]
    elif current_price <= safety_price:
        status = "BUY"
        description = "Stock is trading below the buy price with sufficient margin of safety."
    elif current_price <= intrinsic_value:
        status = "HOLD/WATCH"
        description = "Stock is trading below intrinsic value but without sufficient margin of safety."
    else:
        status = "OVERVALUED"
        description = "Stock is trading above intrinsic value."

    return {
        "status": status,
        "description": description,
        "intrinsic_value": intrinsic_value,
        "safety_price": safety_price,
        "upside_percentage": upside_percentage,
    }
