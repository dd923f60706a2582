import logging

import numpy as np
import pandas as pd

from .errors import IncompleteDataError

logger = logging.getLogger(__name__)

TTM_FIELDS = [
    "revenue",
    "grossProfit",
    "operatingIncome",
    "netIncome",
    "operatingExpenses",
    "interestExpense",
    "incomeTaxExpense",
    "depreciationAndAmortization",
    "capitalExpenditure",
    "dividendPayout",
]

# yfinance line items -> FMP statement keys, newest row names first
YF_INCOME_ROWS = {
    "revenue": ["Total Revenue", "Operating Revenue"],
    "grossProfit": ["Gross Profit"],
    "operatingIncome": ["Operating Income", "EBIT"],
    "netIncome": ["Net Income", "Net Income Common Stockholders"],
    "eps": ["Diluted EPS", "Basic EPS"],
    "interestExpense": ["Interest Expense"],
    "incomeTaxExpense": ["Tax Provision"],
    "researchAndDevelopmentExpenses": ["Research And Development"],
}

YF_BALANCE_ROWS = {
    "totalAssets": ["Total Assets"],
    "totalLiabilities": ["Total Liabilities Net Minority Interest", "Total Liab"],
    "totalStockholdersEquity": ["Stockholders Equity", "Total Stockholder Equity"],
    "totalCurrentAssets": ["Current Assets", "Total Current Assets"],
    "totalCurrentLiabilities": ["Current Liabilities", "Total Current Liabilities"],
    "cashAndCashEquivalents": ["Cash And Cash Equivalents", "Cash"],
    "totalDebt": ["Total Debt"],
    "goodwillAndIntangibleAssets": ["Goodwill And Other Intangible Assets"],
    "inventory": ["Inventory"],
}

YF_CASH_FLOW_ROWS = {
    "operatingCashFlow": ["Operating Cash Flow", "Total Cash From Operating Activities"],
    "capitalExpenditure": ["Capital Expenditure", "Capital Expenditures"],
    "depreciationAndAmortization": ["Depreciation And Amortization", "Depreciation"],
    "changeInWorkingCapital": ["Change In Working Capital"],
    "freeCashFlow": ["Free Cash Flow"],
    "dividendsPaid": ["Cash Dividends Paid", "Common Stock Dividend Paid"],
}


# === SOURCE ADAPTERS ===
def _first(payload):
    if isinstance(payload, list):
        return payload[0] if payload else None
    return payload


def from_fmp(profile, quote, income_statements, balance_sheets, cash_flows, metrics=None, ratios=None):
    """Bundle raw Financial Modeling Prep endpoint payloads for processing."""
    return {
        "profile": _first(profile),
        "quote": _first(quote),
        "income_statements": income_statements,
        "balance_sheets": balance_sheets,
        "cash_flows": cash_flows,
        "metrics": metrics,
        "ratios": ratios,
    }


def _first_row(frame, names):
    for name in names:
        if name in frame.index:
            return frame.loc[name]
    return None


def _frame_to_statements(frame, row_map):
    if frame is None or frame.empty:
        return []

    statements = []
    for period in frame.columns:
        statement = {"date": pd.Timestamp(period).strftime("%Y-%m-%d")}
        for key, names in row_map.items():
            row = _first_row(frame, names)
            if row is None:
                continue
            value = row[period]
            if pd.notna(value):
                statement[key] = float(value)
        statements.append(statement)
    return statements


def from_yfinance(info, income_stmt, balance_sheet, cashflow):
    """
    Convert a yfinance ``Ticker``'s ``info`` dict and statement frames into
    the FMP-shaped bundle that ``process_financial_data`` expects.
    """
    price = info.get("currentPrice") or info.get("regularMarketPrice")
    profile = {
        "symbol": info.get("symbol", ""),
        "companyName": info.get("longName") or info.get("shortName", ""),
        "currency": info.get("currency", "USD"),
        "exchange": info.get("exchange", ""),
        "industry": info.get("industry", ""),
        "sector": info.get("sector", ""),
        "description": info.get("longBusinessSummary", ""),
        "website": info.get("website", ""),
        "fullTimeEmployees": info.get("fullTimeEmployees", 0),
        "mktCap": info.get("marketCap", 0),
        "volAvg": info.get("averageVolume", 0),
    }
    quote = {
        "symbol": info.get("symbol", ""),
        "price": price,
        "dayLow": info.get("dayLow"),
        "dayHigh": info.get("dayHigh"),
        "yearHigh": info.get("fiftyTwoWeekHigh"),
        "yearLow": info.get("fiftyTwoWeekLow"),
        "marketCap": info.get("marketCap"),
        "priceAvg50": info.get("fiftyDayAverage"),
        "priceAvg200": info.get("twoHundredDayAverage"),
        "volume": info.get("volume"),
        "avgVolume": info.get("averageVolume"),
        "open": info.get("open"),
        "previousClose": info.get("previousClose"),
        "eps": info.get("trailingEps"),
        "pe": info.get("trailingPE"),
        "sharesOutstanding": info.get("sharesOutstanding"),
    }

    cash_flows = _frame_to_statements(cashflow, YF_CASH_FLOW_ROWS)
    for statement in cash_flows:
        if "freeCashFlow" not in statement and "operatingCashFlow" in statement:
            statement["freeCashFlow"] = statement["operatingCashFlow"] - abs(statement.get("capitalExpenditure", 0))

    return {
        "profile": profile,
        "quote": quote,
        "income_statements": _frame_to_statements(income_stmt, YF_INCOME_ROWS),
        "balance_sheets": _frame_to_statements(balance_sheet, YF_BALANCE_ROWS),
        "cash_flows": cash_flows,
        "metrics": None,
        "ratios": None,
    }


# === NORMALIZATION ===
def sort_recent_first(statements):
    if not statements:
        return []
    dates = pd.to_datetime(pd.Series([s.get("date") for s in statements]), errors="coerce")
    order = dates.sort_values(ascending=False, na_position="last", kind="stable").index
    return [statements[i] for i in order]


def _process_profile(profile):
    return {
        "symbol": profile.get("symbol") or "",
        "company_name": profile.get("companyName") or "",
        "currency": profile.get("currency") or "USD",
        "exchange": profile.get("exchange") or profile.get("exchangeShortName") or "",
        "industry": profile.get("industry") or "",
        "sector": profile.get("sector") or "",
        "description": profile.get("description") or "",
        "website": profile.get("website") or "",
        "ceo": profile.get("ceo") or "",
        "employees": profile.get("fullTimeEmployees") or 0,
        "mkt_cap": profile.get("mktCap") or profile.get("marketCap") or 0,
        "vol_avg": profile.get("volAvg") or profile.get("averageVolume") or 0,
        "last_dividend": profile.get("lastDiv") or profile.get("lastDividend") or 0,
    }


def _process_quote(quote):
    return {
        "price": quote.get("price") or 0,
        "change": quote.get("change") or 0,
        "changes_percentage": quote.get("changesPercentage") or 0,
        "day_low": quote.get("dayLow") or 0,
        "day_high": quote.get("dayHigh") or 0,
        "year_high": quote.get("yearHigh") or 0,
        "year_low": quote.get("yearLow") or 0,
        "market_cap": quote.get("marketCap") or 0,
        "price_avg50": quote.get("priceAvg50") or 0,
        "price_avg200": quote.get("priceAvg200") or 0,
        "volume": quote.get("volume") or 0,
        "avg_volume": quote.get("avgVolume") or 0,
        "exchange": quote.get("exchange") or "",
        "open": quote.get("open") or 0,
        "previous_close": quote.get("previousClose") or 0,
        "eps": quote.get("eps") or 0,
        "pe": quote.get("pe") or 0,
        "earnings_announcement": quote.get("earningsAnnouncement") or "",
        "shares_outstanding": quote.get("sharesOutstanding") or 0,
        "timestamp": quote.get("timestamp") or 0,
    }


def process_financial_data(data):
    """
    Normalize a raw fundamentals bundle.

    Profile and quote become snake_case dicts with zero/empty defaults.
    Statements keep their source keys but are ordered most recent first.
    Raises IncompleteDataError when a required block is missing.
    """
    required = ("profile", "quote", "income_statements", "balance_sheets", "cash_flows")
    missing = [key for key in required if not data.get(key)]
    if missing:
        logger.warning(f"Incomplete financial data, missing: {', '.join(missing)}")
        raise IncompleteDataError()

    return {
        "profile": _process_profile(_first(data["profile"])),
        "quote": _process_quote(_first(data["quote"])),
        "income_statements": sort_recent_first(data["income_statements"]),
        "balance_sheets": sort_recent_first(data["balance_sheets"]),
        "cash_flows": sort_recent_first(data["cash_flows"]),
        "metrics": sort_recent_first(data.get("metrics") or []),
        "ratios": sort_recent_first(data.get("ratios") or []),
    }


def extract_ttm_data(statements):
    """Sum the four most recent quarterly statements."""
    if not statements or len(statements) < 4:
        return None

    quarters = statements[:4]
    return {field: sum(q.get(field) or 0 for q in quarters) for field in TTM_FIELDS}


# === PER SHARE ===
def shares_outstanding(financial_data):
    quote = financial_data["quote"]
    if quote.get("shares_outstanding"):
        return quote["shares_outstanding"]

    mkt_cap = financial_data["profile"].get("mkt_cap")
    price = quote.get("price")
    if mkt_cap and price:
        logger.info("Shares outstanding missing from quote, deriving from market cap")
        return mkt_cap / price
    return None


def calculate_per_share_metrics(financial_data):
    shares = shares_outstanding(financial_data)
    if not shares:
        return None

    incomes = financial_data["income_statements"]
    balances = financial_data["balance_sheets"]
    cash_flows = financial_data["cash_flows"]
    if not incomes or not balances or not cash_flows:
        return None

    income, balance, cash_flow = incomes[0], balances[0], cash_flows[0]
    equity = balance.get("totalStockholdersEquity") or 0
    operating_cash_flow = cash_flow.get("operatingCashFlow") or 0
    capex = abs(cash_flow.get("capitalExpenditure") or 0)

    return {
        "eps": income.get("eps") or (income.get("netIncome") or 0) / shares,
        "revenue": (income.get("revenue") or 0) / shares,
        "book_value": equity / shares,
        "operating_cash_flow": operating_cash_flow / shares,
        "free_cash_flow": (operating_cash_flow - capex) / shares,
        "tangible_book_value": (equity - (balance.get("goodwillAndIntangibleAssets") or 0)) / shares,
        "cash_per_share": (balance.get("cashAndCashEquivalents") or 0) / shares,
        "debt_per_share": (balance.get("totalDebt") or 0) / shares,
        "working_capital_per_share": (
            (balance.get("totalCurrentAssets") or 0) - (balance.get("totalCurrentLiabilities") or 0)
        ) / shares,
    }


# === HISTORY ===
def calculate_compound_growth_rate(values):
    """CAGR over values ordered most recent first; non-positive values are ignored."""
    positive = [v for v in (values or []) if v is not None and v > 0]
    if len(positive) < 2:
        return None

    years = len(positive) - 1
    return (positive[0] / positive[-1]) ** (1 / years) - 1


def _free_cash_flow(statement):
    operating = statement.get("operatingCashFlow")
    if operating is None:
        return None
    return operating - abs(statement.get("capitalExpenditure") or 0)


def calculate_historical_growth(financial_data, years=5):
    incomes = financial_data.get("income_statements")
    balances = financial_data.get("balance_sheets")
    cash_flows = financial_data.get("cash_flows")
    if not incomes or not balances or not cash_flows:
        return None

    points = min(len(incomes), len(balances), len(cash_flows), years)
    if points < 2:
        return None

    incomes, balances, cash_flows = incomes[:points], balances[:points], cash_flows[:points]
    return {
        "revenue": calculate_compound_growth_rate([s.get("revenue") for s in incomes]),
        "earnings": calculate_compound_growth_rate([s.get("netIncome") for s in incomes]),
        "operating_income": calculate_compound_growth_rate([s.get("operatingIncome") for s in incomes]),
        "operating_cash_flow": calculate_compound_growth_rate([s.get("operatingCashFlow") for s in cash_flows]),
        "free_cash_flow": calculate_compound_growth_rate([_free_cash_flow(s) for s in cash_flows]),
        "book_value": calculate_compound_growth_rate([s.get("totalStockholdersEquity") for s in balances]),
    }


def calculate_coefficient_of_variation(values):
    if values is None or len(values) < 2:
        return None

    series = np.asarray(values, dtype=float)
    mean = series.mean()
    if mean == 0:
        return None
    return float(series.std() / abs(mean))


def _stability(values):
    cv = calculate_coefficient_of_variation(values)
    # Zero-mean history is treated as fully unstable
    dispersion = 1.0 if cv is None else min(cv, 1.0)
    positive_share = sum(1 for v in values if v > 0) / len(values)
    return positive_share * (1 - dispersion)


def calculate_financial_stability(financial_data):
    """Score earnings and operating cash flow stability over five years, 0 to 1."""
    incomes = financial_data.get("income_statements")
    cash_flows = financial_data.get("cash_flows")
    if not incomes or not cash_flows or len(incomes) < 5 or len(cash_flows) < 5:
        return None

    earnings = [s.get("netIncome") or 0 for s in incomes[:5]]
    operating = [s.get("operatingCashFlow") or 0 for s in cash_flows[:5]]

    earnings_stability = _stability(earnings)
    cash_flow_stability = _stability(operating)
    return {
        "earnings_stability": earnings_stability,
        "cash_flow_stability": cash_flow_stability,
        "overall_stability": (earnings_stability + cash_flow_stability) / 2,
    }
