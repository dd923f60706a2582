import logging

logger = logging.getLogger(__name__)

HIGH_CAPEX_RATIO = 2.0
ADJUSTED_CAPEX_RATIO = 0.7


def validate_owner_earnings(earnings_data):
    """
    Recompute owner earnings, capping capex that runs above twice net income.

    ``earnings_data`` holds ``net_income``, ``depreciation``, ``capex`` (positive)
    and ``working_capital_change`` (increase in working capital).
    """
    net_income = earnings_data.get("net_income") or 0
    depreciation = earnings_data.get("depreciation") or 0
    capex = abs(earnings_data.get("capex") or 0)
    working_capital_change = earnings_data.get("working_capital_change") or 0

    adjustments = []
    adjusted_capex = capex
    if net_income > 0 and capex / net_income > HIGH_CAPEX_RATIO:
        adjusted_capex = net_income * ADJUSTED_CAPEX_RATIO
        adjustments.append("High capex adjusted")
        logger.info(f"Capex {capex:,.0f} exceeds {HIGH_CAPEX_RATIO}x net income, using {adjusted_capex:,.0f}")

    return {
        **earnings_data,
        "adjusted_capex": adjusted_capex,
        "owner_earnings": net_income + depreciation - adjusted_capex - working_capital_change,
        "adjustments": adjustments,
    }


def detect_data_anomalies(financial_data):
    """Flag statement figures that usually point at one-offs or bad data."""
    anomalies = []
    incomes = financial_data.get("income_statements") or []
    balances = financial_data.get("balance_sheets") or []

    if len(incomes) >= 2:
        current = incomes[0].get("netIncome")
        previous = incomes[1].get("netIncome")
        if current is not None and previous and previous > 0:
            if (current - previous) / previous * 100 > 100:
                anomalies.append("Unusually high net income growth detected")

    if incomes and balances:
        net_income = incomes[0].get("netIncome")
        equity = balances[0].get("totalStockholdersEquity")
        if net_income is not None and equity and equity > 0 and net_income / equity * 100 > 50:
            anomalies.append("Extremely high ROE detected")

    if incomes:
        revenue = incomes[0].get("revenue")
        gross_profit = incomes[0].get("grossProfit")
        if gross_profit is not None and revenue and revenue > 0 and gross_profit / revenue * 100 > 80:
            anomalies.append("Unusually high gross margin detected")

    if balances:
        balance = balances[0]
        total_assets = balance.get("totalAssets")
        total_liabilities = balance.get("totalLiabilities")
        equity = balance.get("totalStockholdersEquity")
        if total_assets and total_liabilities and equity:
            calculated_equity = total_assets - total_liabilities
            if abs(calculated_equity - equity) / abs(equity) > 0.1:
                anomalies.append("Balance sheet inconsistency detected")

    if anomalies:
        logger.warning(f"Data anomalies: {'; '.join(anomalies)}")

    if not anomalies:
        reliability = "high"
    elif len(anomalies) <= 2:
        reliability = "medium"
    else:
        reliability = "low"

    return {
        "has_anomalies": bool(anomalies),
        "anomalies": anomalies,
        "reliability": reliability,
    }
