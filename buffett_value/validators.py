"""
Cross-validation of valuation results.

The discounted owner earnings value anchors the check: other methods that land
more than 50% away from it are reported as outliers and lower the confidence.
"""
import math

from . import config

METHODS = ("dcf", "graham", "pe", "epv", "asset_based")


def _present(value):
    return value is not None and not math.isnan(value) and value > 0


def validate_valuation(valuation_results):
    values = {m: valuation_results.get(m) for m in METHODS if _present(valuation_results.get(m))}
    dcf = values.get("dcf")

    outlier_methods = []
    weighted_value = 0
    total_weight = 0
    for method, value in values.items():
        weight = config.VALIDATOR_WEIGHTS[method]
        weighted_value += value * weight
        total_weight += weight
        if method != "dcf" and dcf and abs(value - dcf) / dcf > config.OUTLIER_THRESHOLD:
            outlier_methods.append(method)

    final_value = weighted_value / total_weight if total_weight > 0 else (dcf or 0)

    confidence_score = 0
    if total_weight > 0:
        method_score = len(values) / len(METHODS) * 40
        consistency_score = 60 - len(outlier_methods) * 15
        confidence_score = min(100, max(0, method_score + consistency_score))

    if confidence_score > 80:
        reliability = "high"
    elif confidence_score > 60:
        reliability = "medium"
    else:
        reliability = "low"

    return {
        "original_values": dict(valuation_results),
        "validated_value": final_value,
        "outlier_methods": outlier_methods,
        "confidence_score": confidence_score,
        "reliability": reliability,
        "recommendation": "Manual review recommended" if confidence_score < 50 else "Automated valuation acceptable",
    }


def assess_price_discrepancy(intrinsic_value, current_price):
    if not intrinsic_value or not current_price:
        return {"reliable": False, "message": "Missing price data"}

    discrepancy = (intrinsic_value - current_price) / current_price

    if discrepancy > 2:
        return {
            "reliable": False,
            "message": "Extremely high upside potential detected. Valuation may be unrealistic.",
            "discrepancy_level": "extreme",
            "review_required": True,
        }
    if discrepancy > 1:
        return {
            "reliable": True,
            "message": "High upside potential detected. Consider reviewing growth assumptions.",
            "discrepancy_level": "high",
            "review_required": False,
        }
    if discrepancy < -0.9:
        return {
            "reliable": False,
            "message": "Extremely low valuation detected. Assumptions may be too conservative.",
            "discrepancy_level": "extreme-low",
            "review_required": True,
        }
    return {
        "reliable": True,
        "message": "Valuation within reasonable range of current price.",
        "discrepancy_level": "normal",
        "review_required": False,
    }
