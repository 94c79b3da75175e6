"""Display helpers shared by the CLI tables and exports."""

from fractions import Fraction

from bricks.domain.statistic import UNDEFINED, StatValue

UNDEFINED_DISPLAY = "—"
INCOMPLETE_NOTICE = "A stats rebuild is in progress; figures may be incomplete."


def format_rate(value: StatValue) -> str:
    """Rates to three places with no leading zero: ``.429``, ``1.044``."""
    if value is UNDEFINED:
        return UNDEFINED_DISPLAY
    text = f"{float(round(value, 3)):.3f}"
    if text.startswith("0."):
        return text[1:]
    if text.startswith("-0."):
        return "-" + text[2:]
    return text


def format_decimal(value: StatValue, places: int = 2) -> str:
    if value is UNDEFINED:
        return UNDEFINED_DISPLAY
    return f"{float(round(value, places)):.{places}f}"


def format_plus(value: StatValue) -> str:
    """Index stats (ERA+, OPS+) as whole numbers."""
    if value is UNDEFINED:
        return UNDEFINED_DISPLAY
    return str(round(value))


def format_innings(innings: Fraction) -> str:
    """Innings in baseball notation, where ``.1`` and ``.2`` are thirds: 37 outs is ``12.1``."""
    outs = innings * 3
    whole, thirds = divmod(int(outs), 3)
    return f"{whole}.{thirds}"
