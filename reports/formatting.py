"""Display helpers for money and percentages."""


def format_currency(value: float, label: str = "Toman") -> str:
    """1234567.4 -> '1,234,567 Toman'."""
    return f"{value:,.0f} {label}".strip()


def format_compact(value: float) -> str:
    """Short chart-axis form: 1.5M, 250K, 999."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.0f}K"
    return f"{value:g}"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"
