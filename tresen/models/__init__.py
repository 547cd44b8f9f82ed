def format_eur(cents: int) -> str:
    """Format cents as EUR string: 123450 -> '1.234,50 €'"""
    euros = cents / 100
    formatted = f"{euros:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{formatted} €"


def parse_eur(text: str) -> int | None:
    """Parse a EUR amount string into cents. Returns None on invalid input.

    Accepts formats like '12', '12.50', '1.234,50', '-2,50'.
    """
    text = text.strip().removesuffix("€").strip()
    if not text:
        return None
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        return int(round(float(text) * 100))
    except ValueError:
        return None


def format_liters(liters: float) -> str:
    return f"{liters:,.2f} l".replace(",", "X").replace(".", ",").replace("X", ".")
