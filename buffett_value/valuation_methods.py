"""
Side-by-side per-share valuation methods and their blended estimate.

Methods: discounted owner earnings (after margin of safety), Graham Number,
P/E multiple, earnings power value, asset-based value and EBIT multiple.
"""
import logging
import math

import numpy as np

from . import config
from .calculations import (
    calculate_graham_number,
    calculate_intrinsic_value,
    calculate_owner_earnings,
    working_capital_increase,
)
from .data_processing import shares_outstanding
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


# === INPUTS ===
def valuation_inputs_from_financials(financial_data):
    """Derive per-share method inputs from processed financial data."""
    shares = shares_outstanding(financial_data)
    if not shares:
        raise InvalidInputError("Cannot derive per-share inputs without shares outstanding")

    income = financial_data["income_statements"][0]
    balance = financial_data["balance_sheets"][0]
    cash_flow = financial_data["cash_flows"][0]
    previous_balance = financial_data["balance_sheets"][1] if len(financial_data["balance_sheets"]) > 1 else None

    owner_earnings = calculate_owner_earnings(income, cash_flow, previous_balance, balance)
    operating_income = income.get("operatingIncome") or 0

    return {
        "ticker": financial_data["profile"]["symbol"],
        "company_name": financial_data["profile"]["company_name"],
        "current_price": financial_data["quote"]["price"],
        "current_earnings": owner_earnings / shares,
        "eps": income.get("eps") or (income.get("netIncome") or 0) / shares,
        "book_value": (balance.get("totalStockholdersEquity") or 0) / shares,
        "operating_earnings": operating_income / shares,
        "maintenance_capex": abs(cash_flow.get("capitalExpenditure") or 0) / shares,
        "working_capital_change": working_capital_increase(cash_flow, previous_balance, balance) / shares,
        "total_assets": (balance.get("totalAssets") or 0) / shares,
        "total_liabilities": (balance.get("totalLiabilities") or 0) / shares,
        "ebit": operating_income / shares,
    }


# === METHODS ===
def dcf_value(current_earnings, growth_rate, discount_rate, terminal_growth_rate, years_projected, margin_of_safety):
    intrinsic = calculate_intrinsic_value(
        current_earnings, growth_rate, discount_rate, terminal_growth_rate, years_projected
    )
    return intrinsic * (1 - margin_of_safety / 100)


def pe_multiple_value(eps, pe_ratio=config.DEFAULT_PE_MULTIPLE):
    return eps * pe_ratio


def earnings_power_value(operating_earnings, maintenance_capex, working_capital_change,
                         multiple=config.DEFAULT_EPV_MULTIPLE):
    normalized_earnings = operating_earnings - maintenance_capex - working_capital_change
    return normalized_earnings * multiple


def asset_based_value(total_assets, total_liabilities):
    return total_assets - total_liabilities


def ebit_multiple_value(ebit, enterprise_multiple=config.DEFAULT_EBIT_MULTIPLE):
    return ebit * enterprise_multiple


def _is_valid(value):
    return value is not None and not math.isnan(value) and value > 0


def valuation_band(ratio):
    for upper, label in config.VALUATION_BANDS:
        if ratio <= upper:
            return label
    return "Significantly Overvalued"


# === BLEND ===
def calculate_all_methods(inputs,
                          growth_rate=config.DEFAULT_VALUATION_PARAMS["growth_rate"],
                          years_projected=config.DEFAULT_VALUATION_PARAMS["years_projected"],
                          discount_rate=config.DEFAULT_VALUATION_PARAMS["discount_rate"],
                          terminal_growth_rate=config.DEFAULT_VALUATION_PARAMS["terminal_growth_rate"],
                          margin_of_safety=config.DEFAULT_VALUATION_PARAMS["margin_of_safety"],
                          pe_ratio=config.DEFAULT_PE_MULTIPLE,
                          enterprise_multiple=config.DEFAULT_EBIT_MULTIPLE):
    values = {
        "dcf": dcf_value(inputs.get("current_earnings") or 0, growth_rate, discount_rate,
                         terminal_growth_rate, years_projected, margin_of_safety),
        "graham": calculate_graham_number(inputs.get("eps"), inputs.get("book_value")),
        "pe": pe_multiple_value(inputs.get("eps") or 0, pe_ratio),
        "epv": earnings_power_value(inputs.get("operating_earnings") or 0,
                                    inputs.get("maintenance_capex") or 0,
                                    inputs.get("working_capital_change") or 0),
        "asset_based": asset_based_value(inputs.get("total_assets") or 0, inputs.get("total_liabilities") or 0),
        "ebit": ebit_multiple_value(inputs.get("ebit") or 0, enterprise_multiple),
    }

    valid = {method: value for method, value in values.items() if _is_valid(value)}
    if valid:
        average_value = float(np.mean(list(valid.values())))
        median_value = float(np.median(list(valid.values())))
        total_weight = sum(config.BLENDED_WEIGHTS[method] for method in valid)
        weighted_value = sum(value * config.BLENDED_WEIGHTS[method] for method, value in valid.items()) / total_weight
        buffett_values = [value for method, value in valid.items()
                          if config.VALUATION_METHODS[method]["buffett_style"]]
        buffett_style_value = float(np.mean(buffett_values)) if buffett_values else 0
    else:
        logger.warning(f"No valuation method produced a positive value for {inputs.get('ticker', 'input')}")
        average_value = median_value = weighted_value = buffett_style_value = 0

    current_price = inputs.get("current_price") or 0
    if weighted_value > 0 and current_price > 0:
        ratio = current_price / weighted_value
        current_valuation = {"ratio": ratio, "status": valuation_band(ratio)}
    else:
        current_valuation = {"ratio": None, "status": "Insufficient Data"}

    return {
        **values,
        "valid_methods": sorted(valid),
        "method_names": {method: config.VALUATION_METHODS[method]["name"] for method in sorted(valid)},
        "average_value": average_value,
        "median_value": median_value,
        "weighted_value": weighted_value,
        "buffett_style_value": buffett_style_value,
        "current_valuation": current_valuation,
    }
