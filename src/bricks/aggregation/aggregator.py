import logging
from collections import defaultdict
from dataclasses import replace

from bricks import formulas
from bricks.codec import Codec, CodecError
from bricks.domain.derived import (
    BattingLine,
    DerivedCareerStats,
    DerivedGameStats,
    DerivedSeasonStats,
    DerivedTeamSeasonStats,
    PitchingLine,
    PlayerGameLine,
    SeasonTable,
    StatLine,
    TeamSplit,
)
from bricks.domain.game import PlayerGameStats
from bricks.domain.season import DEFAULT_POSTSEASON_FIRST_DAY, Season, is_postseason_day
from bricks.domain.stats import CountingStats
from bricks.exceptions import NotFoundError
from bricks.repos.protocols import DebugLogRepo, GameRepo, PlayerStatsRepo

logger = logging.getLogger(__name__)


def batting_line(totals: CountingStats) -> BattingLine:
    obp = formulas.on_base_percentage(totals.hits, totals.walks, totals.at_bats, totals.sacrifice_flies)
    slg = formulas.slugging_percentage(totals.total_bases, totals.at_bats)
    return BattingLine(
        batting_average=formulas.batting_average(totals.hits, totals.at_bats),
        on_base_percentage=obp,
        slugging_percentage=slg,
        on_base_plus_slugging=formulas.on_base_plus_slugging(obp, slg),
        babip=formulas.babip(
            totals.hits, totals.home_runs, totals.at_bats, totals.strike_outs, totals.sacrifice_flies
        ),
    )


def pitching_line(totals: CountingStats) -> PitchingLine:
    outs = totals.outs_recorded
    return PitchingLine(
        innings_pitched=formulas.innings_pitched(outs),
        win_loss_percentage=formulas.win_loss_percentage(totals.wins, totals.losses),
        earned_run_average=formulas.era(totals.earned_runs, outs),
        whip=formulas.whip(totals.walks_issued, totals.hits_allowed, outs),
        hits_per_9=formulas.per_nine(totals.hits_allowed, outs),
        home_runs_per_9=formulas.per_nine(totals.home_runs_allowed, outs),
        walks_per_9=formulas.per_nine(totals.walks_issued, outs),
        struck_outs_per_9=formulas.per_nine(totals.struck_outs, outs),
        struck_outs_walks_ratio=formulas.strikeout_walk_ratio(totals.struck_outs, totals.walks_issued),
    )


def stat_line(totals: CountingStats) -> StatLine:
    """Apply the formulas once to already-summed counters."""
    return StatLine(
        totals=totals,
        batting=batting_line(totals) if totals.is_batting else None,
        pitching=pitching_line(totals) if totals.is_pitching else None,
    )


def _group_by_team(rows: list[PlayerGameStats]) -> dict[str, list[PlayerGameStats]]:
    groups: dict[str, list[PlayerGameStats]] = defaultdict(list)
    for row in rows:
        groups[row.team_id].append(row)
    return groups


def sum_team_rows(rows: list[PlayerGameStats]) -> CountingStats:
    """Sum a team's rows, counting each game once for games batted and pitched."""
    games = len({row.game_id for row in rows})
    totals = sum((row.stats for row in rows), CountingStats())
    return replace(totals, games_batted=games, games_pitched=games)


def fold_player_rows(
    player_id: str, season: Season, postseason: bool, rows: list[PlayerGameStats]
) -> DerivedSeasonStats:
    """Sum a player's per-game rows for one season and derive the stat line.

    A player who appeared for more than one team gets one combined line plus
    a split per team, in order of first appearance.
    """
    totals = sum((row.stats.with_appearance() for row in rows), CountingStats())
    by_team = tuple(
        TeamSplit(
            team_id=team_id,
            line=stat_line(sum((row.stats.with_appearance() for row in team_rows), CountingStats())),
        )
        for team_id, team_rows in _group_by_team(rows).items()
    )
    return DerivedSeasonStats(
        player_id=player_id,
        season=season,
        postseason=postseason,
        line=stat_line(totals),
        by_team=by_team,
        first_day=min(row.day for row in rows),
    )


class Aggregator:
    """Derives game, season, career and team statistics from raw per-game rows."""

    def __init__(
        self,
        game_repo: GameRepo,
        player_stats_repo: PlayerStatsRepo,
        debug_log_repo: DebugLogRepo,
        codec: Codec,
        *,
        postseason_first_day: int = DEFAULT_POSTSEASON_FIRST_DAY,
    ) -> None:
        self._game_repo = game_repo
        self._player_stats_repo = player_stats_repo
        self._debug_log_repo = debug_log_repo
        self._codec = codec
        self._postseason_first_day = postseason_first_day

    def _in_scope(self, rows: list[PlayerGameStats], postseason: bool) -> list[PlayerGameStats]:
        return [row for row in rows if is_postseason_day(row.day, self._postseason_first_day) == postseason]

    def compute_game_stats(self, game_id: str) -> DerivedGameStats:
        game = self._game_repo.get(game_id)
        if game is None:
            raise NotFoundError(f"game {game_id}")
        rows = self._player_stats_repo.get_by_game(game_id)

        players = tuple(
            PlayerGameLine(player_id=row.player_id, team_id=row.team_id, line=stat_line(row.stats.with_appearance()))
            for row in rows
        )

        team_order = [t for t in (game.away_team_id, game.home_team_id) if t is not None]
        team_order += [row.team_id for row in rows if row.team_id not in team_order]
        grouped = _group_by_team(rows)
        team_totals = tuple(
            (team_id, stat_line(sum_team_rows(grouped.get(team_id, []))))
            for team_id in dict.fromkeys(team_order)
        )

        debug = self._debug_log_repo.get(game_id)
        box_score = self._box_score(game.game_id, game.stats_payload)
        return DerivedGameStats(
            game_id=game.game_id,
            season=game.season_scope,
            day=game.day,
            away_team_id=game.away_team_id,
            home_team_id=game.home_team_id,
            players=players,
            team_totals=team_totals,
            partial=debug is not None and debug.is_partial,
            box_score_json=box_score,
        )

    def _box_score(self, game_id: str, payload: bytes | None) -> str | None:
        if not payload:
            return None
        try:
            return self._codec.decompress(payload).decode("utf-8")
        except (CodecError, UnicodeDecodeError) as e:
            logger.warning("Box score for game %s is unreadable: %s", game_id, e)
            return None

    def compute_season_stats(self, player_id: str, season: Season, *, postseason: bool = False) -> DerivedSeasonStats:
        rows = self._in_scope(self._player_stats_repo.get_by_player_season(player_id, season), postseason)
        if not rows:
            phase = "postseason" if postseason else "season"
            raise NotFoundError(f"player {player_id} in {phase} {season}")
        return fold_player_rows(player_id, season, postseason, rows)

    def compute_career_stats(self, player_id: str) -> DerivedCareerStats:
        rows = self._player_stats_repo.get_by_player(player_id)
        if not rows:
            raise NotFoundError(f"player {player_id}")

        groups: dict[tuple[Season, bool], list[PlayerGameStats]] = defaultdict(list)
        for row in rows:
            groups[(row.season_scope, is_postseason_day(row.day, self._postseason_first_day))].append(row)

        seasons = tuple(
            fold_player_rows(player_id, season, False, group)
            for (season, postseason), group in sorted(groups.items())
            if not postseason
        )
        postseasons = tuple(
            fold_player_rows(player_id, season, True, group)
            for (season, postseason), group in sorted(groups.items())
            if postseason
        )
        regular_totals = sum((s.line.totals for s in seasons), CountingStats())
        return DerivedCareerStats(
            player_id=player_id,
            line=stat_line(regular_totals),
            postseason_line=stat_line(sum((s.line.totals for s in postseasons), CountingStats()))
            if postseasons
            else None,
            seasons=seasons,
            postseasons=postseasons,
        )

    def compute_team_season_stats(
        self, team_id: str, season: Season, *, postseason: bool = False
    ) -> DerivedTeamSeasonStats:
        rows = self._in_scope(self._player_stats_repo.get_by_team_season(team_id, season), postseason)
        if not rows:
            raise NotFoundError(f"team {team_id} in {season}")
        totals = sum_team_rows(rows)
        games = totals.games_pitched

        by_player: dict[str, list[PlayerGameStats]] = defaultdict(list)
        for row in rows:
            by_player[row.player_id].append(row)
        players = tuple(
            fold_player_rows(player_id, season, postseason, player_rows)
            for player_id, player_rows in sorted(by_player.items())
        )
        return DerivedTeamSeasonStats(
            team_id=team_id,
            season=season,
            postseason=postseason,
            games=games,
            line=stat_line(totals),
            players=players,
        )

    def compute_season_table(self, season: Season, *, postseason: bool = False) -> SeasonTable:
        rows = self._in_scope(self._player_stats_repo.get_by_season(season), postseason)
        if not rows:
            raise NotFoundError(f"season {season}")
        by_player: dict[str, list[PlayerGameStats]] = defaultdict(list)
        for row in rows:
            by_player[row.player_id].append(row)
        logger.debug("Folding %d rows for %d players in %s", len(rows), len(by_player), season)
        return SeasonTable(
            season=season,
            postseason=postseason,
            players=tuple(
                fold_player_rows(player_id, season, postseason, player_rows)
                for player_id, player_rows in sorted(by_player.items())
            ),
        )

    def compute_league_totals(self, season: Season) -> CountingStats:
        rows = self._in_scope(self._player_stats_repo.get_by_season(season), False)
        if not rows:
            raise NotFoundError(f"season {season}")
        return sum((row.stats.with_appearance() for row in rows), CountingStats())

    def season_games(self, season: Season) -> int:
        """Most regular-season games played by any team in ``season``."""
        counts = self._game_repo.team_game_counts(season, postseason_first_day=self._postseason_first_day)
        return max(counts.values(), default=0)
