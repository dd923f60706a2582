"""
Common financial ratios.

Every helper returns a decimal (0.15 for 15%) or a plain multiple, and
``None`` when an input is missing or the denominator is not positive.
"""


def _safe_divide(numerator, denominator):
    if not numerator or not denominator or denominator <= 0:
        return None
    return numerator / denominator


def price_to_earnings(price, earnings_per_share):
    return _safe_divide(price, earnings_per_share)


def price_to_book(price, book_value_per_share):
    return _safe_divide(price, book_value_per_share)


def price_to_sales(price, sales_per_share):
    return _safe_divide(price, sales_per_share)


def earnings_yield(earnings_per_share, price):
    return _safe_divide(earnings_per_share, price)


def dividend_yield(annual_dividend, price):
    return _safe_divide(annual_dividend, price)


def return_on_equity(net_income, shareholder_equity):
    return _safe_divide(net_income, shareholder_equity)


def return_on_assets(net_income, total_assets):
    return _safe_divide(net_income, total_assets)


def debt_to_equity(total_debt, shareholder_equity):
    return _safe_divide(total_debt, shareholder_equity)


def current_ratio(current_assets, current_liabilities):
    return _safe_divide(current_assets, current_liabilities)


def quick_ratio(current_assets, inventory, current_liabilities):
    if not current_assets:
        return None
    return _safe_divide(current_assets - (inventory or 0), current_liabilities)


def gross_profit_margin(gross_profit, revenue):
    return _safe_divide(gross_profit, revenue)


def net_profit_margin(net_income, revenue):
    return _safe_divide(net_income, revenue)


def operating_margin(operating_income, revenue):
    return _safe_divide(operating_income, revenue)


def payout_ratio(dividends_per_share, earnings_per_share):
    return _safe_divide(dividends_per_share, earnings_per_share)


def enterprise_value(market_cap, total_debt=0, cash=0):
    # Debt-free or cash-free companies still have an enterprise value
    if not market_cap:
        return None
    return market_cap + (total_debt or 0) - (cash or 0)


def research_intensity(research_and_development, revenue):
    return _safe_divide(research_and_development, revenue)


def ev_to_ebitda(enterprise_value, ebitda):
    return _safe_divide(enterprise_value, ebitda)


def price_to_free_cash_flow(price, free_cash_flow_per_share):
    return _safe_divide(price, free_cash_flow_per_share)


def peg_ratio(price_to_earnings, earnings_growth):
    """P/E divided by growth expressed in percent; ``earnings_growth`` is a decimal."""
    if not price_to_earnings or not earnings_growth or earnings_growth <= 0:
        return None
    return price_to_earnings / (earnings_growth * 100)
