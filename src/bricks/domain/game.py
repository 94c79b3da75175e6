from dataclasses import dataclass

from bricks.domain.season import Season
from bricks.domain.stats import CountingStats


@dataclass(frozen=True)
class GameRecord:
    game_id: str
    sim: str
    season: int
    day: int
    away_team_id: str | None = None
    home_team_id: str | None = None
    stats_payload: bytes | None = None

    @property
    def season_scope(self) -> Season:
        return Season(self.sim, self.season)


@dataclass(frozen=True)
class PlayerGameStats:
    game_id: str
    team_id: str
    player_id: str
    sim: str
    season: int
    day: int
    stats: CountingStats

    @property
    def season_scope(self) -> Season:
        return Season(self.sim, self.season)


@dataclass(frozen=True)
class DebugLog:
    game_id: str
    log_payload: bytes
    error: str | None = None

    @property
    def is_partial(self) -> bool:
        return self.error is not None
