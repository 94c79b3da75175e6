from typing import Protocol

from bricks.domain.game import DebugLog, GameRecord, PlayerGameStats
from bricks.domain.season import Season


class GameRepo(Protocol):
    def upsert(self, game: GameRecord) -> None: ...

    def get(self, game_id: str) -> GameRecord | None: ...

    def get_by_season(self, season: Season) -> list[GameRecord]: ...

    def seasons(self) -> list[Season]: ...

    def team_game_counts(self, season: Season, *, postseason_first_day: int) -> dict[str, int]: ...


class PlayerStatsRepo(Protocol):
    def upsert(self, stats: PlayerGameStats) -> None: ...

    def delete_by_game(self, game_id: str, *, keep: set[tuple[str, str]] | None = None) -> int: ...

    def get_by_game(self, game_id: str) -> list[PlayerGameStats]: ...

    def get_by_player(self, player_id: str) -> list[PlayerGameStats]: ...

    def get_by_player_season(self, player_id: str, season: Season) -> list[PlayerGameStats]: ...

    def get_by_season(self, season: Season) -> list[PlayerGameStats]: ...

    def get_by_team_season(self, team_id: str, season: Season) -> list[PlayerGameStats]: ...

    def player_ids_by_season(self, season: Season) -> list[str]: ...

    def all_player_ids(self) -> list[str]: ...

    def count_by_game(self, game_id: str) -> int: ...


class DebugLogRepo(Protocol):
    def upsert(self, log: DebugLog) -> None: ...

    def get(self, game_id: str) -> DebugLog | None: ...

    def get_failed(self) -> list[DebugLog]: ...


class MetaRepo(Protocol):
    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str) -> None: ...

    def delete(self, name: str) -> None: ...
