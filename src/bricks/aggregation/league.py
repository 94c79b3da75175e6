"""League-relative statistics (ERA+, OPS+, FIP).

Two passes over a season: first every player's season totals and the set of
qualifying players, then the league averages from the qualifiers' summed
counters, then the normalization per player.

A batter qualifies with at least ``pa_per_game`` plate appearances per
scheduled game, a pitcher with at least ``outs_per_game`` outs per scheduled
game, where the schedule length is the most regular-season games any team
played that season.
"""

from dataclasses import dataclass

from bricks import formulas
from bricks.domain.derived import DerivedSeasonStats, LeagueAverages, LeagueRelativeStats, SeasonTable
from bricks.domain.stats import CountingStats
from bricks.domain.statistic import UNDEFINED


@dataclass(frozen=True)
class Qualification:
    pa_per_game: float = 3.1
    outs_per_game: float = 3.0

    def qualifies_batting(self, totals: CountingStats, season_games: int) -> bool:
        return totals.is_batting and totals.plate_appearances >= self.pa_per_game * season_games

    def qualifies_pitching(self, totals: CountingStats, season_games: int) -> bool:
        return totals.is_pitching and totals.outs_recorded >= self.outs_per_game * season_games


def compute_league_averages(table: SeasonTable, season_games: int, qualification: Qualification) -> LeagueAverages:
    batters = [p.line.totals for p in table.players if qualification.qualifies_batting(p.line.totals, season_games)]
    pitchers = [p.line.totals for p in table.players if qualification.qualifies_pitching(p.line.totals, season_games)]

    batting = sum(batters, CountingStats())
    pitching = sum(pitchers, CountingStats())

    league_era = formulas.era(pitching.earned_runs, pitching.outs_recorded)
    league_fip_core = formulas.fip_core(
        pitching.home_runs_allowed, pitching.walks_issued, pitching.struck_outs, pitching.outs_recorded
    )
    return LeagueAverages(
        season=table.season,
        season_games=season_games,
        qualified_batters=len(batters),
        qualified_pitchers=len(pitchers),
        on_base_percentage=formulas.on_base_percentage(
            batting.hits, batting.walks, batting.at_bats, batting.sacrifice_flies
        ),
        slugging_percentage=formulas.slugging_percentage(batting.total_bases, batting.at_bats),
        earned_run_average=league_era,
        fip_constant=formulas.fip_constant(league_era, league_fip_core),
        totals=sum((p.line.totals for p in table.players), CountingStats()),
    )


def league_relative(
    stats: DerivedSeasonStats, averages: LeagueAverages, qualification: Qualification
) -> LeagueRelativeStats:
    totals = stats.line.totals
    ops_plus = UNDEFINED
    if stats.line.batting is not None:
        ops_plus = formulas.ops_plus(
            stats.line.batting.on_base_percentage,
            stats.line.batting.slugging_percentage,
            averages.on_base_percentage,
            averages.slugging_percentage,
        )
    era_plus = fip = UNDEFINED
    if stats.line.pitching is not None:
        era_plus = formulas.era_plus(averages.earned_run_average, stats.line.pitching.earned_run_average)
        fip = formulas.fip(
            totals.home_runs_allowed,
            totals.walks_issued,
            totals.struck_outs,
            totals.outs_recorded,
            averages.fip_constant,
        )
    return LeagueRelativeStats(
        player_id=stats.player_id,
        season=stats.season,
        qualified_batting=qualification.qualifies_batting(totals, averages.season_games),
        qualified_pitching=qualification.qualifies_pitching(totals, averages.season_games),
        ops_plus=ops_plus,
        era_plus=era_plus,
        fip=fip,
    )
