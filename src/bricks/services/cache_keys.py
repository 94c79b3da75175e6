"""Cache kinds and the parameters that fingerprint each of them.

Every key that depends on league averages carries the season and its sim,
since averages differ by season and era.
"""

from typing import Any, TypeAlias

from bricks.domain.season import Season

GAME_STATS = "game-stats"
PLAYER_SEASON_STATS = "player-season-stats"
PLAYER_CAREER_STATS = "player-career-stats"
TEAM_SEASON_STATS = "team-season-stats"
SEASON_TABLE = "season-table"
SEASON_LEAGUE_AVERAGES = "season-league-averages"
PLAYER_SEASON_LEAGUE_RELATIVE = "player-season-league-relative"

CacheKey: TypeAlias = tuple[str, dict[str, Any]]


def game_stats(game_id: str) -> CacheKey:
    return GAME_STATS, {"game_id": game_id}


def player_season_stats(player_id: str, season: Season, postseason: bool) -> CacheKey:
    return PLAYER_SEASON_STATS, {"player_id": player_id, "season": season, "postseason": postseason}


def player_career_stats(player_id: str) -> CacheKey:
    return PLAYER_CAREER_STATS, {"player_id": player_id}


def team_season_stats(team_id: str, season: Season, postseason: bool) -> CacheKey:
    return TEAM_SEASON_STATS, {"team_id": team_id, "season": season, "postseason": postseason}


def season_table(season: Season, postseason: bool) -> CacheKey:
    return SEASON_TABLE, {"season": season, "postseason": postseason}


def season_league_averages(season: Season) -> CacheKey:
    return SEASON_LEAGUE_AVERAGES, {"season": season}


def player_season_league_relative(player_id: str, season: Season) -> CacheKey:
    return PLAYER_SEASON_LEAGUE_RELATIVE, {"player_id": player_id, "season": season}
