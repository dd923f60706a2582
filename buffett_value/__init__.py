from .analysis import perform_valuation, value_stock
from .calculations import (
    calculate_graham_number,
    calculate_intrinsic_value,
    calculate_owner_earnings,
    classify_business_quality,
)
from .data_processing import from_fmp, from_yfinance, process_financial_data
from .errors import IncompleteDataError, InvalidInputError, ValuationError
from .screener import apply_screening_preset, results_frame, screen_quality_stocks
from .validators import validate_valuation
from .valuation_methods import calculate_all_methods

__version__ = "0.1.0"
