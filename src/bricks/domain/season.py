from dataclasses import dataclass

DEFAULT_POSTSEASON_FIRST_DAY = 99


@dataclass(frozen=True, order=True)
class Season:
    """A season number scoped to the simulation (era) that produced it."""

    sim: str
    season: int

    def __str__(self) -> str:
        return f"{self.sim}/{self.season}"


def is_postseason_day(day: int, postseason_first_day: int = DEFAULT_POSTSEASON_FIRST_DAY) -> bool:
    return day >= postseason_first_day
