import pytest

from buffett_value.data_processing import process_financial_data

INCOME_STATEMENTS = [
    {"date": "2023-12-31", "revenue": 1000.0, "grossProfit": 600.0, "operatingIncome": 300.0,
     "netIncome": 200.0, "eps": 2.0, "depreciationAndAmortization": 50.0},
    {"date": "2022-12-31", "revenue": 950.0, "grossProfit": 560.0, "operatingIncome": 280.0,
     "netIncome": 180.0, "eps": 1.8, "depreciationAndAmortization": 48.0},
    {"date": "2021-12-31", "revenue": 900.0, "grossProfit": 530.0, "operatingIncome": 260.0,
     "netIncome": 170.0, "eps": 1.7, "depreciationAndAmortization": 45.0},
    {"date": "2020-12-31", "revenue": 850.0, "grossProfit": 500.0, "operatingIncome": 240.0,
     "netIncome": 160.0, "eps": 1.6, "depreciationAndAmortization": 42.0},
    {"date": "2019-12-31", "revenue": 800.0, "grossProfit": 470.0, "operatingIncome": 220.0,
     "netIncome": 150.0, "eps": 1.5, "depreciationAndAmortization": 40.0},
]

BALANCE_SHEETS = [
    {"date": "2023-12-31", "totalAssets": 2000.0, "totalLiabilities": 1000.0, "totalStockholdersEquity": 1000.0,
     "totalCurrentAssets": 500.0, "totalCurrentLiabilities": 300.0, "totalDebt": 400.0,
     "cashAndCashEquivalents": 100.0},
    {"date": "2022-12-31", "totalAssets": 1900.0, "totalLiabilities": 950.0, "totalStockholdersEquity": 950.0,
     "totalCurrentAssets": 480.0, "totalCurrentLiabilities": 300.0, "totalDebt": 400.0,
     "cashAndCashEquivalents": 90.0},
    {"date": "2021-12-31", "totalAssets": 1800.0, "totalLiabilities": 900.0, "totalStockholdersEquity": 900.0,
     "totalCurrentAssets": 460.0, "totalCurrentLiabilities": 300.0, "totalDebt": 400.0,
     "cashAndCashEquivalents": 80.0},
    {"date": "2020-12-31", "totalAssets": 1700.0, "totalLiabilities": 850.0, "totalStockholdersEquity": 850.0,
     "totalCurrentAssets": 440.0, "totalCurrentLiabilities": 300.0, "totalDebt": 400.0,
     "cashAndCashEquivalents": 70.0},
    {"date": "2019-12-31", "totalAssets": 1600.0, "totalLiabilities": 800.0, "totalStockholdersEquity": 800.0,
     "totalCurrentAssets": 420.0, "totalCurrentLiabilities": 300.0, "totalDebt": 400.0,
     "cashAndCashEquivalents": 60.0},
]

CASH_FLOWS = [
    {"date": "2023-12-31", "operatingCashFlow": 260.0, "capitalExpenditure": -60.0,
     "depreciationAndAmortization": 50.0, "changeInWorkingCapital": -20.0, "freeCashFlow": 200.0},
    {"date": "2022-12-31", "operatingCashFlow": 240.0, "capitalExpenditure": -55.0,
     "depreciationAndAmortization": 48.0, "changeInWorkingCapital": -20.0, "freeCashFlow": 185.0},
    {"date": "2021-12-31", "operatingCashFlow": 230.0, "capitalExpenditure": -50.0,
     "depreciationAndAmortization": 45.0, "changeInWorkingCapital": -20.0, "freeCashFlow": 180.0},
    {"date": "2020-12-31", "operatingCashFlow": 220.0, "capitalExpenditure": -50.0,
     "depreciationAndAmortization": 42.0, "changeInWorkingCapital": -20.0, "freeCashFlow": 170.0},
    {"date": "2019-12-31", "operatingCashFlow": 200.0, "capitalExpenditure": -45.0,
     "depreciationAndAmortization": 40.0, "changeInWorkingCapital": -20.0, "freeCashFlow": 155.0},
]


def make_raw_financials(symbol="KO", price=20.0, shares=100.0, sector="Consumer Defensive",
                        industry="Beverages—Non-Alcoholic"):
    """Five years of annual FMP statements for a steady, lightly levered company."""
    return {
        "profile": [{
            "symbol": symbol,
            "companyName": f"{symbol} Company",
            "currency": "USD",
            "exchangeShortName": "NYSE",
            "industry": industry,
            "sector": sector,
            "mktCap": price * shares,
            "lastDiv": 0.8,
        }],
        "quote": [{"symbol": symbol, "price": price, "pe": price / 2.0, "eps": 2.0, "sharesOutstanding": shares}],
        "income_statements": [dict(s) for s in INCOME_STATEMENTS],
        "balance_sheets": [dict(s) for s in BALANCE_SHEETS],
        "cash_flows": [dict(s) for s in CASH_FLOWS],
    }


@pytest.fixture
def raw_financials():
    return make_raw_financials()


@pytest.fixture
def financial_data(raw_financials):
    return process_financial_data(raw_financials)
