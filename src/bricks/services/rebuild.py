import logging
from dataclasses import dataclass

from bricks.domain.season import Season
from bricks.exceptions import NotFoundError
from bricks.rebuild import RebuildCoordinator, RebuildState, RebuildStatus
from bricks.repos.protocols import GameRepo, MetaRepo, PlayerStatsRepo
from bricks.services.stats_service import StatsService

logger = logging.getLogger(__name__)

STATS_VERSION_KEY = "stats_version"
REBUILD_STARTED_KEY = "rebuild_started_at"


@dataclass(frozen=True)
class RebuildReport:
    seasons: int
    players: int
    teams: int
    entries: int


class Rebuilder:
    """Recomputes every cached aggregate from raw rows.

    Runs while the coordinator reports REBUILDING; readers keep getting
    whatever is cached, flagged incomplete, and each refreshed entry
    supersedes the one it replaces.
    """

    def __init__(
        self,
        coordinator: RebuildCoordinator,
        stats: StatsService,
        game_repo: GameRepo,
        player_stats_repo: PlayerStatsRepo,
        meta_repo: MetaRepo,
    ) -> None:
        self._coordinator = coordinator
        self._stats = stats
        self._game_repo = game_repo
        self._player_stats_repo = player_stats_repo
        self._meta_repo = meta_repo

    def run(self, version: int | None = None) -> RebuildReport:
        """Rebuild everything; on success record ``version`` as current.

        While running, a marker in the meta table lets other processes see
        the rebuild through ``status()``.
        """
        with self._coordinator.rebuilding() as status:
            self._meta_repo.set(REBUILD_STARTED_KEY, str(status.started_at))
            try:
                report = self._rebuild_all()
                if version is not None:
                    self._meta_repo.set(STATS_VERSION_KEY, str(version))
            finally:
                self._meta_repo.delete(REBUILD_STARTED_KEY)

        logger.info(
            "Rebuilt %d entries across %d seasons, %d players and %d team seasons",
            report.entries,
            report.seasons,
            report.players,
            report.teams,
        )
        return report

    def status(self) -> RebuildStatus:
        """This process's rebuild status, or the one a rebuild in another process recorded."""
        local = self._coordinator.status()
        if local.is_rebuilding:
            return local
        started = self._meta_repo.get(REBUILD_STARTED_KEY)
        if started is None:
            return local
        return RebuildStatus(RebuildState.REBUILDING, started_at=float(started))

    def _rebuild_all(self) -> RebuildReport:
        entries = 0
        teams: set[tuple[str, Season, bool]] = set()
        seasons = self._game_repo.seasons()
        for season in seasons:
            entries += self._rebuild_season(season, teams)

        for team_id, season, postseason in sorted(teams):
            self._stats.team_season_stats(team_id, season, postseason=postseason, refresh=True)
            entries += 1

        players = self._player_stats_repo.all_player_ids()
        for player_id in players:
            self._stats.career_stats(player_id, refresh=True)
            entries += 1
        return RebuildReport(seasons=len(seasons), players=len(players), teams=len(teams), entries=entries)

    def _rebuild_season(self, season: Season, teams: set[tuple[str, Season, bool]]) -> int:
        entries = 0
        for postseason in (False, True):
            try:
                table = self._stats.season_table(season, postseason=postseason, refresh=True).value
            except NotFoundError:
                # Seasons without a postseason (or still in progress) have nothing to fold
                continue
            entries += 1
            for player in table.players:
                self._stats.season_stats(player.player_id, season, postseason=postseason, refresh=True)
                entries += 1
                teams.update((split.team_id, season, postseason) for split in player.by_team)

            if not postseason:
                self._stats.league_averages(season, refresh=True)
                entries += 1
                for player in table.players:
                    self._stats.league_relative(player.player_id, season, refresh=True)
                    entries += 1
        logger.info("Rebuilt season %s", season)
        return entries

    def needs_rebuild(self, version: int) -> bool:
        stored = self._meta_repo.get(STATS_VERSION_KEY)
        return stored is None or int(stored) != version

    def ensure_current(self, version: int) -> RebuildReport | None:
        """Rebuild when the stored stats version differs from ``version``."""
        if not self.needs_rebuild(version):
            logger.debug("Stats version %d is current", version)
            return None
        logger.info("Stats version changed to %d; rebuilding", version)
        return self.run(version)
