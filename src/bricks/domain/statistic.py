from enum import Enum
from fractions import Fraction


class UndefinedStatistic(Enum):
    """Result of a formula whose denominator is zero for the queried scope.

    Not an error: a valid scope with nothing to divide by. Renderers decide
    how to show it.
    """

    UNDEFINED = "undefined"

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED = UndefinedStatistic.UNDEFINED

StatValue = Fraction | UndefinedStatistic


def is_defined(value: StatValue) -> bool:
    return value is not UNDEFINED


def to_float(value: StatValue) -> float | None:
    return None if value is UNDEFINED else float(value)
