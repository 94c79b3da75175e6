from dataclasses import dataclass, fields


@dataclass(frozen=True)
class CountingStats:
    """Raw, summable counters for one player (or team, or league) over some scope.

    Derived ratios never live here; they are computed from summed counters by
    ``bricks.formulas``.
    """

    # Batting
    games_batted: int = 0
    plate_appearances: int = 0
    at_bats: int = 0
    at_bats_with_risp: int = 0
    hits_with_risp: int = 0
    singles: int = 0
    doubles: int = 0
    triples: int = 0
    home_runs: int = 0
    runs: int = 0
    runs_batted_in: int = 0
    sacrifice_hits: int = 0
    sacrifice_flies: int = 0
    stolen_bases: int = 0
    caught_stealing: int = 0
    strike_outs: int = 0
    double_plays_grounded_into: int = 0
    walks: int = 0
    left_on_base: int = 0

    # Pitching
    games_pitched: int = 0
    wins: int = 0
    losses: int = 0
    games_started: int = 0
    games_finished: int = 0
    complete_games: int = 0
    shutouts: int = 0
    no_hitters: int = 0
    perfect_games: int = 0
    saves: int = 0
    batters_faced: int = 0
    outs_recorded: int = 0
    hits_allowed: int = 0
    home_runs_allowed: int = 0
    earned_runs: int = 0
    struck_outs: int = 0
    walks_issued: int = 0
    strikes_pitched: int = 0
    balls_pitched: int = 0
    flyouts_pitched: int = 0
    groundouts_pitched: int = 0

    def __add__(self, other: "CountingStats") -> "CountingStats":
        if not isinstance(other, CountingStats):
            return NotImplemented
        return CountingStats(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    def __radd__(self, other: object) -> "CountingStats":
        # sum() starts from 0
        if other == 0:
            return self
        return NotImplemented

    @property
    def hits(self) -> int:
        return self.singles + self.doubles + self.triples + self.home_runs

    @property
    def total_bases(self) -> int:
        return self.singles + 2 * self.doubles + 3 * self.triples + 4 * self.home_runs

    @property
    def is_batting(self) -> bool:
        return self.plate_appearances > 0

    @property
    def is_pitching(self) -> bool:
        return self.batters_faced > 0 or self.outs_recorded > 0

    def with_appearance(self) -> "CountingStats":
        """Return a copy crediting one game batted and/or pitched for this line."""
        return CountingStats(
            **{
                **{f.name: getattr(self, f.name) for f in fields(self)},
                "games_batted": 1 if self.is_batting else 0,
                "games_pitched": 1 if self.is_pitching else 0,
            }
        )


def stats_from_dict(data: dict[str, int]) -> CountingStats:
    """Build CountingStats from a JSON mapping, ignoring unknown counters."""
    known = {f.name for f in fields(CountingStats)}
    return CountingStats(**{k: int(v) for k, v in data.items() if k in known})


def stats_to_dict(stats: CountingStats) -> dict[str, int]:
    return {f.name: getattr(stats, f.name) for f in fields(stats)}
