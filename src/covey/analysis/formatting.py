"""Display helpers for underwriting numbers ($325,000 / 6.4% / 1.75x)."""


def format_currency(value: float) -> str:
    """Whole dollars with separators; millions collapse to $1.25M."""
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if magnitude >= 1_000_000:
        return f"{sign}${magnitude / 1_000_000:.2f}M"
    return f"{sign}${magnitude:,.0f}"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def format_multiple(value: float) -> str:
    return f"{value:.2f}x"
