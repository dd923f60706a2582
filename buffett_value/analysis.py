"""
Full Buffett-style valuation of a single company.

``perform_valuation`` ties the pieces together: owner earnings, business
quality, growth/discount/margin-of-safety selection, the discounted owner
earnings value, the alternative methods and the sanity checks around them.
"""
import logging

from . import config, ratios
from .anomalies import detect_valuation_anomalies
from .calculations import (
    assess_valuation,
    calculate_buy_price,
    calculate_graham_number,
    calculate_weighted_owner_earnings,
    classify_business_quality,
    determine_discount_rate,
    determine_margin_of_safety,
    discount_owner_earnings,
    normalize_growth_rate,
    owner_earnings_components,
)
from .data_processing import (
    calculate_coefficient_of_variation,
    calculate_historical_growth,
    process_financial_data,
    shares_outstanding,
)
from .data_quality import detect_data_anomalies, validate_owner_earnings
from .errors import InvalidInputError
from .scoring import calculate_stock_rank, evaluate_basic_moat, evaluate_buffett_criteria
from .validators import assess_price_discrepancy, validate_valuation
from .valuation_methods import calculate_all_methods, valuation_inputs_from_financials

logger = logging.getLogger(__name__)

EARNINGS_BASES = ("current", "weighted")
GROWTH_SOURCES = ("earnings", "free_cash_flow", "revenue")


def _validated_owner_earnings(financial_data, index):
    incomes = financial_data["income_statements"]
    cash_flows = financial_data["cash_flows"]
    balances = financial_data["balance_sheets"]

    current_balance = balances[index] if index < len(balances) else None
    previous_balance = balances[index + 1] if index + 1 < len(balances) else None
    components = owner_earnings_components(incomes[index], cash_flows[index], previous_balance, current_balance)
    return validate_owner_earnings(components)


def owner_earnings_history(financial_data, years=4):
    """Validated owner earnings per year, most recent first."""
    periods = min(len(financial_data["income_statements"]), len(financial_data["cash_flows"]), years)
    return [_validated_owner_earnings(financial_data, i)["owner_earnings"] for i in range(periods)]


def historical_growth_rate(growth):
    """Pick the first usable CAGR and express it in percent."""
    for source in GROWTH_SOURCES:
        if growth and growth.get(source) is not None:
            return growth[source] * 100, source

    default = config.DEFAULT_VALUATION_PARAMS["growth_rate"]
    logger.info(f"No usable growth history, using default growth of {default}%")
    return default, "default"


def calculate_additional_metrics(financial_data, shares):
    income = financial_data["income_statements"][0]
    balance = financial_data["balance_sheets"][0]
    price = financial_data["quote"]["price"]

    net_income = income.get("netIncome")
    revenue = income.get("revenue")
    equity = balance.get("totalStockholdersEquity")
    eps = income.get("eps") or ((net_income or 0) / shares)
    book_value = (equity or 0) / shares

    total_debt = balance.get("totalDebt")
    if total_debt is None:
        debt_to_equity = None
    elif total_debt == 0 and equity and equity > 0:
        debt_to_equity = 0.0
    else:
        debt_to_equity = ratios.debt_to_equity(total_debt, equity)

    return {
        "roe": ratios.return_on_equity(net_income, equity),
        "roa": ratios.return_on_assets(net_income, balance.get("totalAssets")),
        "debt_to_equity": debt_to_equity,
        "current_ratio": ratios.current_ratio(balance.get("totalCurrentAssets"),
                                              balance.get("totalCurrentLiabilities")),
        "gross_margin": ratios.gross_profit_margin(income.get("grossProfit"), revenue),
        "operating_margin": ratios.operating_margin(income.get("operatingIncome"), revenue),
        "net_margin": ratios.net_profit_margin(net_income, revenue),
        "pe_ratio": ratios.price_to_earnings(price, eps),
        "pb_ratio": ratios.price_to_book(price, book_value),
        "eps": eps,
        "book_value_per_share": book_value,
        "revenue_per_share": (revenue or 0) / shares,
        "rd_to_revenue": ratios.research_intensity(income.get("researchAndDevelopmentExpenses"), revenue),
    }


def _percent(value):
    return None if value is None else value * 100


def quality_metrics(financial_data, additional_metrics, growth):
    """Percent-based metrics used to classify business quality."""
    net_incomes = [s.get("netIncome") or 0 for s in financial_data["income_statements"][:5]]
    cv = calculate_coefficient_of_variation(net_incomes)
    earnings_growth = (growth or {}).get("earnings")

    return {
        "roe": _percent(additional_metrics["roe"]),
        "operating_margin": _percent(additional_metrics["operating_margin"]),
        "net_margin": _percent(additional_metrics["net_margin"]),
        "consistent_growth": bool(
            len(net_incomes) >= 2 and all(n > 0 for n in net_incomes)
            and earnings_growth is not None and earnings_growth > 0
        ),
        "earnings_volatility": _percent(cv) if cv is not None else None,
    }


def perform_valuation(financial_data, growth_rate=None, discount_rate=None, terminal_growth_rate=None,
                      years_projected=None, margin_of_safety=None, business_quality=None,
                      earnings_basis="current"):
    """
    Value a company from processed financial data (see ``process_financial_data``).

    Any of the assumptions may be pinned by the caller; the rest are derived
    from the company's quality. Rates are in percent. ``earnings_basis`` picks
    the latest year's owner earnings or the 50/30/15/5 weighted blend.
    """
    if earnings_basis not in EARNINGS_BASES:
        raise InvalidInputError(f"earnings_basis must be one of {EARNINGS_BASES}, got {earnings_basis!r}")

    profile = financial_data["profile"]
    price = financial_data["quote"]["price"]
    shares = shares_outstanding(financial_data)
    if not shares:
        raise InvalidInputError(f"Shares outstanding unavailable for {profile['symbol'] or 'company'}")

    # Owner earnings
    latest = _validated_owner_earnings(financial_data, 0)
    if earnings_basis == "weighted":
        owner_earnings = calculate_weighted_owner_earnings(owner_earnings_history(financial_data))
    else:
        owner_earnings = latest["owner_earnings"]
    owner_earnings_per_share = owner_earnings / shares

    # Quality and assumptions
    growth = calculate_historical_growth(financial_data)
    historical_growth, growth_source = historical_growth_rate(growth)
    additional_metrics = calculate_additional_metrics(financial_data, shares)
    quality_inputs = quality_metrics(financial_data, additional_metrics, growth)

    if business_quality is not None and business_quality not in config.BUSINESS_QUALITIES:
        raise InvalidInputError(
            f"business_quality must be one of {config.BUSINESS_QUALITIES}, got {business_quality!r}")
    quality = business_quality or classify_business_quality(quality_inputs, profile["sector"], profile["industry"])
    if growth_rate is None:
        growth_rate = normalize_growth_rate(historical_growth, quality)
    if discount_rate is None:
        discount_rate = determine_discount_rate(quality, {
            "debt_to_equity": additional_metrics["debt_to_equity"],
            "operating_margin": quality_inputs["operating_margin"],
        })
    if margin_of_safety is None:
        margin_of_safety = determine_margin_of_safety(quality)
    if terminal_growth_rate is None:
        terminal_growth_rate = config.DEFAULT_VALUATION_PARAMS["terminal_growth_rate"]
    if years_projected is None:
        years_projected = config.DEFAULT_VALUATION_PARAMS["years_projected"]

    # Discounted owner earnings
    dcf = discount_owner_earnings(owner_earnings_per_share, growth_rate, discount_rate,
                                  terminal_growth_rate, years_projected)
    intrinsic_value = dcf["intrinsic_value"]
    assessment = assess_valuation(price, intrinsic_value, margin_of_safety)
    graham_number = calculate_graham_number(additional_metrics["eps"], additional_metrics["book_value_per_share"])

    # Alternative methods and cross-checks
    method_inputs = valuation_inputs_from_financials(financial_data)
    method_inputs["current_earnings"] = owner_earnings_per_share
    methods = calculate_all_methods(method_inputs, growth_rate=growth_rate, years_projected=years_projected,
                                    discount_rate=discount_rate, terminal_growth_rate=terminal_growth_rate,
                                    margin_of_safety=margin_of_safety)
    validation = validate_valuation({
        "dcf": intrinsic_value,
        "graham": graham_number,
        "pe": methods["pe"],
        "epv": methods["epv"],
        "asset_based": methods["asset_based"],
    })

    upside = assessment["upside_percentage"]
    buffett_score, buffett_reasons = evaluate_buffett_criteria(additional_metrics)
    moat_metrics = {**additional_metrics, "market_cap": profile["mkt_cap"], "sector": profile["sector"]}
    moat_score, moat_reasons = evaluate_basic_moat(moat_metrics)

    valuation = {
        "ticker": profile["symbol"],
        "name": profile["company_name"],
        "sector": profile["sector"],
        "industry": profile["industry"],
        "current_price": price,
        "shares_outstanding": shares,
        "owner_earnings": owner_earnings,
        "owner_earnings_per_share": owner_earnings_per_share,
        "earnings_basis": earnings_basis,
        "adjustments": latest["adjustments"],
        "business_quality": quality,
        "business_quality_label": config.BUSINESS_QUALITY_LABELS[quality],
        "historical_growth_rate": historical_growth,
        "growth_source": growth_source,
        "projected_growth_rate": growth_rate,
        "discount_rate": discount_rate,
        "terminal_growth_rate": terminal_growth_rate,
        "years_projected": years_projected,
        "margin_of_safety": margin_of_safety,
        "calculations": {k: v for k, v in dcf.items() if k != "intrinsic_value"},
        "intrinsic_value_per_share": intrinsic_value,
        "buy_price": calculate_buy_price(intrinsic_value, margin_of_safety),
        "upside_percent": upside,
        "valuation_ratio": price / intrinsic_value if intrinsic_value > 0 else None,
        "valuation_status": assessment["status"],
        "valuation_description": assessment["description"],
        "graham_number": graham_number,
        "additional_metrics": additional_metrics,
        "methods": methods,
        "validation": validation,
        "price_discrepancy": assess_price_discrepancy(intrinsic_value, price),
        "buffett_score": buffett_score,
        "buffett_reasons": buffett_reasons,
        "moat_score": moat_score,
        "moat_reasons": moat_reasons,
        "rank": calculate_stock_rank(buffett_score, moat_score, None if upside is None else upside / 100),
        "data_quality": detect_data_anomalies(financial_data),
    }
    valuation["anomalies"] = detect_valuation_anomalies(valuation, price)

    logger.info(
        f"{valuation['ticker']}: {quality} quality, intrinsic value {intrinsic_value:.2f} "
        f"vs price {price:.2f} -> {assessment['status']}"
    )
    return valuation


def value_stock(raw_financials, **assumptions):
    """Normalize a raw fundamentals bundle and value it."""
    return perform_valuation(process_financial_data(raw_financials), **assumptions)
