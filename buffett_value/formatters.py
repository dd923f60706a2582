"""Display helpers. Missing values (``None`` or NaN) render as ``"-"``."""
import pandas as pd

MISSING = "-"

COMPANY_ABBREVIATIONS = [
    (" Corporation", " Corp."),
    (" Incorporated", " Inc."),
    (" Limited", " Ltd."),
    (" Company", " Co."),
    (" Holdings", " Hldgs."),
    (" International", " Intl."),
    (" Technologies", " Tech."),
    (" Technology", " Tech."),
    (" Industries", " Ind."),
    (" Solutions", " Sol."),
    (" Systems", " Sys."),
    (" Communications", " Comm."),
    (" Pharmaceuticals", " Pharma."),
    (" Group", " Grp."),
]


def _missing(value):
    return value is None or pd.isna(value)


def format_currency(value, show_cents=True):
    if _missing(value):
        return MISSING
    digits = 2 if show_cents else 0
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{digits}f}"


def format_percentage(value, digits=2):
    """Format a decimal (0.15) as a percentage ("15.00%")."""
    if _missing(value):
        return MISSING
    return f"{value * 100:,.{digits}f}%"


def format_number(value, digits=2):
    if _missing(value):
        return MISSING
    return f"{value:,.{digits}f}"


def format_date(date, style="medium"):
    if date is None or date == "":
        return MISSING
    timestamp = pd.to_datetime(date, errors="coerce")
    if pd.isna(timestamp):
        return MISSING

    if style == "short":
        return f"{timestamp.month}/{timestamp.day}/{timestamp:%y}"
    if style == "long":
        return f"{timestamp:%B} {timestamp.day}, {timestamp.year}"
    if style == "full":
        return f"{timestamp:%A, %B} {timestamp.day}, {timestamp.year}"
    return f"{timestamp:%b} {timestamp.day}, {timestamp.year}"


def format_large_number(value, digits=1):
    if _missing(value):
        return MISSING

    magnitude = abs(value)
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")):
        if magnitude >= threshold:
            return f"{value / threshold:.{digits}f}{suffix}"
    return f"{value:.{digits}f}"


def format_duration(milliseconds):
    if _missing(milliseconds):
        return MISSING

    seconds = int(milliseconds // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def abbreviate_company_name(name, max_length=20):
    if not name:
        return ""
    if len(name) <= max_length:
        return name

    abbreviated = name
    for search, replace in COMPANY_ABBREVIATIONS:
        abbreviated = abbreviated.replace(search, replace, 1)

    if len(abbreviated) > max_length:
        return abbreviated[:max_length - 3] + "..."
    return abbreviated
