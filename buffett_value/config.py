# === DEFAULT VALUATION PARAMETERS (percent) ===
DEFAULT_VALUATION_PARAMS = {
    "growth_rate": 5.0,
    "years_projected": 10,
    "discount_rate": 10.0,
    "terminal_growth_rate": 2.0,
    "margin_of_safety": 25.0,
}

# === BUSINESS QUALITY ===
EXCELLENT = "excellent"
GOOD = "good"
FAIR = "fair"
CYCLICAL = "cyclical"

BUSINESS_QUALITIES = (EXCELLENT, GOOD, FAIR, CYCLICAL)

MINIMUM_GROWTH_RATES = {EXCELLENT: 3.0, GOOD: 2.0, FAIR: 1.0, CYCLICAL: 0.5}
MAXIMUM_GROWTH_RATES = {EXCELLENT: 12.0, GOOD: 9.0, FAIR: 7.0, CYCLICAL: 5.0}
BASE_DISCOUNT_RATES = {EXCELLENT: 9.0, GOOD: 10.0, FAIR: 12.0, CYCLICAL: 14.0}
MARGINS_OF_SAFETY = {EXCELLENT: 25.0, GOOD: 35.0, FAIR: 40.0, CYCLICAL: 50.0}

BUSINESS_QUALITY_LABELS = {
    EXCELLENT: "Very predictable earnings (e.g., Coca-Cola)",
    GOOD: "Stable business with good moat",
    FAIR: "Less predictable earnings",
    CYCLICAL: "Highly variable earnings",
}

DEFENSIVE_SECTORS = [
    "Consumer Defensive",
    "Healthcare",
    "Utilities",
    "Consumer Non-Cyclical",
    "Consumer Staples",
]

CYCLICAL_SECTORS = [
    "Basic Materials",
    "Energy",
    "Consumer Cyclical",
    "Industrials",
    "Financial Services",
]

EXCELLENT_MOAT_INDUSTRIES = [
    "Beverages—Non-Alcoholic",
    "Tobacco",
    "Credit Services",
    "Medical Devices",
    "Pharmaceutical Retail",
    "Utilities—Regulated",
]

# === VALUATION METHODS ===
VALUATION_METHODS = {
    "dcf": {"name": "Discounted Cash Flow (DCF)", "buffett_style": True},
    "epv": {"name": "Earnings Power Value", "buffett_style": True},
    "graham": {"name": "Graham Number", "buffett_style": False},
    "pe": {"name": "P/E Multiple", "buffett_style": False},
    "asset_based": {"name": "Asset-Based", "buffett_style": False},
    "ebit": {"name": "EBIT Multiple", "buffett_style": True},
}

DEFAULT_PE_MULTIPLE = 15.0
DEFAULT_EPV_MULTIPLE = 12.0
DEFAULT_EBIT_MULTIPLE = 12.0

# Cross-check weights, DCF is the primary method
VALIDATOR_WEIGHTS = {
    "dcf": 0.5,
    "graham": 0.15,
    "pe": 0.15,
    "epv": 0.15,
    "asset_based": 0.05,
}

# Blend of all six methods for the multi-method estimate
BLENDED_WEIGHTS = {
    "dcf": 0.3,
    "graham": 0.15,
    "pe": 0.1,
    "epv": 0.25,
    "asset_based": 0.1,
    "ebit": 0.1,
}

OUTLIER_THRESHOLD = 0.5

# Upper bounds of price / blended value for each band
VALUATION_BANDS = [
    (0.7, "Significantly Undervalued"),
    (0.9, "Undervalued"),
    (1.1, "Fairly Valued"),
    (1.3, "Overvalued"),
]

# === SCREENING ===
QUALITY_STOCK_UNIVERSE = [
    # Consumer defensive
    "KO", "PG", "JNJ", "PEP", "CLX", "CL", "CHD", "MKC", "GIS", "K", "SJM", "HRL",
    # Healthcare
    "ABT", "MDT", "SYK", "BDX", "EW", "ISRG", "ZBH", "BAX", "RMD", "XRAY", "HSIC",
    # Industrial
    "MMM", "HON", "ITW", "EMR", "GWW", "ROK", "AME", "ROP", "FAST", "SWK", "PH",
    # Financial
    "BRK.B", "JPM", "BAC", "AXP", "V", "MA", "SPGI", "MCO", "BLK", "CME", "ICE",
    # Technology
    "MSFT", "AAPL", "GOOG", "ADBE", "ORCL", "ACN", "IBM", "CSCO", "INTU", "ADP", "PAYX",
    # Consumer cyclical with strong brands
    "NKE", "SBUX", "MCD", "YUM", "DIS", "HD", "LOW", "TJX", "COST", "WMT", "TGT",
    # Utilities
    "NEE", "D", "SO", "DUK", "WEC", "XEL", "ES", "AEE", "CMS", "ETR",
]

SCREEN_MAX_PE = 25
SCREEN_MAX_DETAILED = 5

# Percent thresholds, ratios as plain multiples
SCREENING_PRESETS = {
    "buffett_style": {
        "name": "Buffett Style Value",
        "description": "Companies with stable earnings, good ROE, and reasonable valuation",
        "filters": {"min_roe": 15, "max_debt_to_equity": 0.5, "min_margin": 10, "max_pe": 20},
    },
    "dividend_focus": {
        "name": "Quality Dividend Payers",
        "description": "Companies with stable dividends and growth",
        "filters": {
            "min_dividend_yield": 2,
            "min_dividend_growth": 5,
            "max_payout_ratio": 70,
            "min_years_paying_dividend": 5,
        },
    },
    "undervalued_growth": {
        "name": "Undervalued Growth",
        "description": "Growth companies at reasonable prices",
        "filters": {"min_earnings_growth": 10, "max_peg": 1.5, "max_pe": 25, "min_roe": 12},
    },
}

# === MESSAGES ===
ERROR_MESSAGES = {
    "calculation_error": "An error occurred during value calculation. Please check your inputs.",
    "insufficient_data": "Insufficient financial data available for analysis.",
    "negative_earnings": "Company has negative earnings, which affects valuation accuracy.",
}
