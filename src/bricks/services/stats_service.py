import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from bricks.aggregation import league
from bricks.aggregation.aggregator import Aggregator
from bricks.aggregation.league import Qualification
from bricks.cache.computation_cache import ComputationCache
from bricks.domain.derived import (
    DerivedCareerStats,
    DerivedGameStats,
    DerivedSeasonStats,
    DerivedTeamSeasonStats,
    LeagueAverages,
    LeagueRelativeStats,
    SeasonTable,
)
from bricks.domain.season import Season
from bricks.exceptions import ComputationFailedError
from bricks.serialization import EnvelopeSerializer
from bricks.services import cache_keys
from bricks.services.cache_keys import CacheKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

_GAME = EnvelopeSerializer(DerivedGameStats)
_SEASON = EnvelopeSerializer(DerivedSeasonStats)
_CAREER = EnvelopeSerializer(DerivedCareerStats)
_TEAM_SEASON = EnvelopeSerializer(DerivedTeamSeasonStats)
_TABLE = EnvelopeSerializer(SeasonTable)
_AVERAGES = EnvelopeSerializer(LeagueAverages)
_RELATIVE = EnvelopeSerializer(LeagueRelativeStats)


@dataclass(frozen=True)
class Served(Generic[T]):
    """A value handed to the rendering layer.

    ``incomplete`` is set when a rebuild was running while the value was
    served, so the page can say that figures may be out of date.
    """

    value: T
    incomplete: bool
    cached: bool


class StatsService:
    """Cached read path for every derived statistic the site renders."""

    def __init__(
        self,
        cache: ComputationCache,
        aggregator: Aggregator,
        qualification: Qualification | None = None,
    ) -> None:
        self._cache = cache
        self._aggregator = aggregator
        self._qualification = qualification or Qualification()

    def game_stats(self, game_id: str, *, refresh: bool = False) -> Served[DerivedGameStats]:
        return self._serve(
            cache_keys.game_stats(game_id),
            lambda: self._aggregator.compute_game_stats(game_id),
            _GAME,
            refresh,
        )

    def season_stats(
        self, player_id: str, season: Season, *, postseason: bool = False, refresh: bool = False
    ) -> Served[DerivedSeasonStats]:
        return self._serve(
            cache_keys.player_season_stats(player_id, season, postseason),
            lambda: self._aggregator.compute_season_stats(player_id, season, postseason=postseason),
            _SEASON,
            refresh,
        )

    def career_stats(self, player_id: str, *, refresh: bool = False) -> Served[DerivedCareerStats]:
        return self._serve(
            cache_keys.player_career_stats(player_id),
            lambda: self._aggregator.compute_career_stats(player_id),
            _CAREER,
            refresh,
        )

    def team_season_stats(
        self, team_id: str, season: Season, *, postseason: bool = False, refresh: bool = False
    ) -> Served[DerivedTeamSeasonStats]:
        return self._serve(
            cache_keys.team_season_stats(team_id, season, postseason),
            lambda: self._aggregator.compute_team_season_stats(team_id, season, postseason=postseason),
            _TEAM_SEASON,
            refresh,
        )

    def season_table(
        self, season: Season, *, postseason: bool = False, refresh: bool = False
    ) -> Served[SeasonTable]:
        return self._serve(
            cache_keys.season_table(season, postseason),
            lambda: self._aggregator.compute_season_table(season, postseason=postseason),
            _TABLE,
            refresh,
        )

    def league_averages(self, season: Season, *, refresh: bool = False) -> Served[LeagueAverages]:
        """League baselines for ``season``, built on the cached regular-season table."""

        def compute() -> LeagueAverages:
            table = self.season_table(season).value
            return league.compute_league_averages(table, self._aggregator.season_games(season), self._qualification)

        return self._serve(cache_keys.season_league_averages(season), compute, _AVERAGES, refresh)

    def league_relative(
        self, player_id: str, season: Season, *, refresh: bool = False
    ) -> Served[LeagueRelativeStats]:
        def compute() -> LeagueRelativeStats:
            stats = self.season_stats(player_id, season).value
            averages = self.league_averages(season).value
            return league.league_relative(stats, averages, self._qualification)

        return self._serve(cache_keys.player_season_league_relative(player_id, season), compute, _RELATIVE, refresh)

    def _serve(
        self,
        key: CacheKey,
        compute: Callable[[], T],
        serializer: EnvelopeSerializer[T],
        refresh: bool,
    ) -> Served[T]:
        kind, params = key
        coordinator = self._cache.coordinator
        rebuilding_before = coordinator.is_rebuilding
        try:
            if refresh:
                value: Any = self._cache.refresh(kind, params, compute, serializer)
                cached = False
            else:
                lookup = self._cache.get_or_compute(kind, params, compute, serializer)
                value, cached = lookup.value, lookup.cached
        except sqlite3.Error as e:
            logger.error("Store failure computing %s %s: %s", kind, params, e)
            raise ComputationFailedError(kind, str(e)) from e
        return Served(value=value, incomplete=rebuilding_before or coordinator.is_rebuilding, cached=cached)
