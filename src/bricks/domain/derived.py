from dataclasses import dataclass, field
from fractions import Fraction

from bricks.domain.season import Season
from bricks.domain.statistic import StatValue
from bricks.domain.stats import CountingStats


@dataclass(frozen=True)
class BattingLine:
    batting_average: StatValue
    on_base_percentage: StatValue
    slugging_percentage: StatValue
    on_base_plus_slugging: StatValue
    babip: StatValue


@dataclass(frozen=True)
class PitchingLine:
    innings_pitched: Fraction
    win_loss_percentage: StatValue
    earned_run_average: StatValue
    whip: StatValue
    hits_per_9: StatValue
    home_runs_per_9: StatValue
    walks_per_9: StatValue
    struck_outs_per_9: StatValue
    struck_outs_walks_ratio: StatValue


@dataclass(frozen=True)
class StatLine:
    """Counting totals for a scope plus the derived lines that apply to it."""

    totals: CountingStats
    batting: BattingLine | None = None
    pitching: PitchingLine | None = None


@dataclass(frozen=True)
class PlayerGameLine:
    player_id: str
    team_id: str
    line: StatLine


@dataclass(frozen=True)
class DerivedGameStats:
    game_id: str
    season: Season
    day: int
    away_team_id: str | None
    home_team_id: str | None
    players: tuple[PlayerGameLine, ...]
    team_totals: tuple[tuple[str, StatLine], ...]
    partial: bool = False
    box_score_json: str | None = None


@dataclass(frozen=True)
class TeamSplit:
    team_id: str
    line: StatLine


@dataclass(frozen=True)
class DerivedSeasonStats:
    player_id: str
    season: Season
    postseason: bool
    line: StatLine
    by_team: tuple[TeamSplit, ...] = ()
    first_day: int = 0


@dataclass(frozen=True)
class DerivedCareerStats:
    player_id: str
    line: StatLine
    postseason_line: StatLine | None = None
    seasons: tuple[DerivedSeasonStats, ...] = ()
    postseasons: tuple[DerivedSeasonStats, ...] = ()


@dataclass(frozen=True)
class DerivedTeamSeasonStats:
    team_id: str
    season: Season
    postseason: bool
    games: int
    line: StatLine
    players: tuple[DerivedSeasonStats, ...] = ()


@dataclass(frozen=True)
class LeagueAverages:
    season: Season
    season_games: int
    qualified_batters: int
    qualified_pitchers: int
    on_base_percentage: StatValue
    slugging_percentage: StatValue
    earned_run_average: StatValue
    fip_constant: StatValue
    totals: CountingStats = field(default_factory=CountingStats)


@dataclass(frozen=True)
class LeagueRelativeStats:
    player_id: str
    season: Season
    qualified_batting: bool
    qualified_pitching: bool
    ops_plus: StatValue
    era_plus: StatValue
    fip: StatValue


@dataclass(frozen=True)
class SeasonTable:
    season: Season
    postseason: bool
    players: tuple[DerivedSeasonStats, ...]
