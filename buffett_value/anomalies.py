import logging

import pandas as pd

from . import config

logger = logging.getLogger(__name__)

Z_SCORE_LIMIT = 2
MIN_BATCH_SIZE = 3


def detect_batch_outliers(analyses):
    """Flag valuations whose upside sits more than two standard deviations from the batch mean."""
    rows = [a for a in (analyses or []) if a.get("upside_percent") is not None]
    if len(rows) < MIN_BATCH_SIZE:
        return {"outliers": []}

    upside = pd.Series([a["upside_percent"] for a in rows], dtype=float)
    mean = upside.mean()
    std_dev = upside.std(ddof=0)
    statistics = {"mean": float(mean), "std_dev": float(std_dev), "sample_size": len(rows)}

    if std_dev == 0:
        return {"outliers": [], "statistics": statistics}

    outliers = []
    z_scores = (upside - mean).abs() / std_dev
    for analysis, z_score in zip(rows, z_scores):
        if z_score > Z_SCORE_LIMIT:
            outliers.append({
                "ticker": analysis.get("ticker"),
                "name": analysis.get("name"),
                "upside": analysis["upside_percent"],
                "z_score": float(z_score),
                "reason": f"Statistical outlier ({z_score:.2f} standard deviations from mean)",
            })

    if outliers:
        logger.info(f"Found {len(outliers)} upside outliers in batch of {len(rows)}")

    return {"outliers": outliers, "statistics": statistics}


def detect_valuation_anomalies(valuation, current_price):
    if not valuation or not current_price:
        return {"anomalies": []}

    anomalies = []

    intrinsic_value = valuation.get("intrinsic_value_per_share")
    if intrinsic_value and (intrinsic_value - current_price) / current_price > 2:
        anomalies.append({
            "type": "excessive_upside",
            "description": "Calculated upside exceeds 200%, suggesting potential calculation error",
            "severity": "high",
        })

    if (valuation.get("projected_growth_rate") or 0) > 20:
        anomalies.append({
            "type": "high_growth",
            "description": "Projected growth rate exceeds 20%, which is rarely sustainable long-term",
            "severity": "medium",
        })

    calculations = valuation.get("calculations")
    if calculations:
        terminal = calculations.get("present_value_of_terminal") or 0
        earnings = calculations.get("present_value_of_earnings") or 0
        if terminal + earnings > 0 and terminal / (terminal + earnings) > 0.7:
            anomalies.append({
                "type": "high_terminal_value",
                "description": "Terminal value contributes more than 70% of total valuation, reducing reliability",
                "severity": "medium",
            })

    margin_of_safety = valuation.get("margin_of_safety")
    business_quality = valuation.get("business_quality")
    if margin_of_safety is not None:
        if business_quality == config.CYCLICAL and margin_of_safety < 40:
            anomalies.append({
                "type": "insufficient_safety",
                "description": "Cyclical business should have at least 40% margin of safety",
                "severity": "medium",
            })
        elif business_quality == config.FAIR and margin_of_safety < 30:
            anomalies.append({
                "type": "insufficient_safety",
                "description": "Fair quality business should have at least 30% margin of safety",
                "severity": "low",
            })

    high = [a for a in anomalies if a["severity"] == "high"]
    if high:
        review_priority = "high"
    elif anomalies:
        review_priority = "medium"
    else:
        review_priority = "low"

    return {
        "anomalies": anomalies,
        "is_reliable": not high,
        "needs_review": bool(anomalies),
        "review_priority": review_priority,
    }
