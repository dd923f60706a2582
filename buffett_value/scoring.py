NETWORK_SECTORS = ["Technology", "Communication Services"]
LARGE_CAP = 50e9


# === BUFFETT SCORE ===
def evaluate_buffett_criteria(metrics):
    score = 0
    reasons = []

    roe = metrics.get("roe")
    if roe and roe > 0.15:
        score += 1
        reasons.append("✓ ROE > 15%")
    else:
        reasons.append("✗ ROE < 15%")

    pe = metrics.get("pe_ratio")
    if pe and pe < 20:
        score += 1
        reasons.append("✓ PE < 20")
    else:
        reasons.append("✗ PE too high")

    # Debt-free balance sheets pass too
    debt_to_equity = metrics.get("debt_to_equity")
    if debt_to_equity is not None and debt_to_equity < 0.5:
        score += 1
        reasons.append("✓ Low Debt-to-Equity")
    else:
        reasons.append("✗ High leverage")

    pb = metrics.get("pb_ratio")
    if pb and pb < 3:
        score += 1
        reasons.append("✓ Price/Book < 3")
    else:
        reasons.append("✗ Price/Book too high")

    return score, reasons


# === BASIC MOAT EVALUATION ===
def evaluate_basic_moat(metrics):
    moat_points = 0
    moat_reasons = []

    roe = metrics.get("roe")
    if roe and roe > 0.20:
        moat_points += 1
        moat_reasons.append("✓ Strong brand (ROE > 20%)")

    gross_margin = metrics.get("gross_margin")
    if gross_margin and gross_margin > 0.5:
        moat_points += 1
        moat_reasons.append("✓ Cost advantage (Gross Margin > 50%)")

    revenue_per_share = metrics.get("revenue_per_share")
    if revenue_per_share and revenue_per_share > 50:
        moat_points += 1
        moat_reasons.append("✓ Customer stickiness (High revenue/share)")

    market_cap = metrics.get("market_cap")
    if market_cap and metrics.get("sector") in NETWORK_SECTORS and market_cap > LARGE_CAP:
        moat_points += 1
        moat_reasons.append("✓ Network Effects (Large tech firm)")

    pb = metrics.get("pb_ratio")
    rd = metrics.get("rd_to_revenue")
    if (pb and pb > 5) or (rd and rd > 0.1):
        moat_points += 1
        moat_reasons.append("✓ Intangible Assets (R&D or high PB)")

    return moat_points, moat_reasons


# === FINAL VERDICT ===
def calculate_stock_rank(buffett_score, moat_score, margin_of_safety):
    """``margin_of_safety`` is the upside of intrinsic value over price, as a decimal."""
    total = buffett_score + moat_score
    if margin_of_safety is not None:
        if margin_of_safety > 0.3 and total >= 6:
            return "Excellent"
        elif margin_of_safety > 0.2 and total >= 5:
            return "Good"
    return "Average" if total >= 4 else "Avoid"
