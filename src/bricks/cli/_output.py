from datetime import datetime

from rich.console import Console
from rich.table import Table

from bricks.domain.derived import (
    DerivedCareerStats,
    DerivedGameStats,
    DerivedSeasonStats,
    LeagueAverages,
    LeagueRelativeStats,
    SeasonTable,
    StatLine,
)
from bricks.domain.errors import IngestError
from bricks.formatting import INCOMPLETE_NOTICE, format_decimal, format_innings, format_plus, format_rate
from bricks.ingest.ingestor import IngestReport
from bricks.rebuild import RebuildStatus
from bricks.services.rebuild import RebuildReport

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_BATTING_HEADERS = ("G", "PA", "AB", "H", "2B", "3B", "HR", "R", "RBI", "BB", "SO", "SB", "AVG", "OBP", "SLG", "OPS")
_PITCHING_HEADERS = ("G", "W", "L", "SV", "IP", "H", "HR", "ER", "BB", "SO", "ERA", "WHIP", "K/9", "BB/9", "K/BB")


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def print_incomplete_notice(incomplete: bool) -> None:
    if incomplete:
        err_console.print(f"[yellow]{INCOMPLETE_NOTICE}[/yellow]")


def _batting_cells(line: StatLine) -> list[str]:
    t = line.totals
    b = line.batting
    if b is None:
        return [""] * len(_BATTING_HEADERS)
    return [
        str(t.games_batted),
        str(t.plate_appearances),
        str(t.at_bats),
        str(t.hits),
        str(t.doubles),
        str(t.triples),
        str(t.home_runs),
        str(t.runs),
        str(t.runs_batted_in),
        str(t.walks),
        str(t.strike_outs),
        str(t.stolen_bases),
        format_rate(b.batting_average),
        format_rate(b.on_base_percentage),
        format_rate(b.slugging_percentage),
        format_rate(b.on_base_plus_slugging),
    ]


def _pitching_cells(line: StatLine) -> list[str]:
    t = line.totals
    p = line.pitching
    if p is None:
        return [""] * len(_PITCHING_HEADERS)
    return [
        str(t.games_pitched),
        str(t.wins),
        str(t.losses),
        str(t.saves),
        format_innings(p.innings_pitched),
        str(t.hits_allowed),
        str(t.home_runs_allowed),
        str(t.earned_runs),
        str(t.walks_issued),
        str(t.struck_outs),
        format_decimal(p.earned_run_average),
        format_decimal(p.whip),
        format_decimal(p.struck_outs_per_9, 1),
        format_decimal(p.walks_per_9, 1),
        format_decimal(p.struck_outs_walks_ratio),
    ]


def _table(title: str, first: str, headers: tuple[str, ...]) -> Table:
    table = Table(title=title, show_edge=False, pad_edge=False)
    table.add_column(first)
    for header in headers:
        table.add_column(header, justify="right")
    return table


def print_ingest_result(report: IngestReport) -> None:
    status = "[yellow]partial[/yellow]" if report.is_partial else "[green]ok[/green]"
    console.print(
        f"  {report.game_id}: {status} {report.rows_written} rows"
        f" ({report.rows_removed} removed, {report.invalidated} cache keys invalidated)"
    )


def print_ingest_error(error: IngestError) -> None:
    print_error(f"game {error.game_id}: {error.message}")


def print_ingest_summary(ingested: int, partial: int, failed: int) -> None:
    console.print(
        f"[bold green]Ingested[/bold green] {ingested} games"
        f" ({partial} with simulation errors, {failed} failed)"
    )


def print_rebuild_report(report: RebuildReport) -> None:
    console.print(
        f"[bold green]Rebuilt[/bold green] {report.entries} cache entries:"
        f" {report.seasons} seasons, {report.players} players, {report.teams} team seasons"
    )


def print_status(status: RebuildStatus, stored_version: str | None, configured_version: int) -> None:
    if status.is_rebuilding and status.started_at is not None:
        started = datetime.fromtimestamp(status.started_at).isoformat(timespec="seconds")
        console.print(f"Rebuild state: [yellow]rebuilding[/yellow] since {started}")
    else:
        console.print("Rebuild state: [green]idle[/green]")
    console.print(f"Stats version: stored={stored_version or 'none'} configured={configured_version}")


def print_game_stats(game: DerivedGameStats) -> None:
    title = f"Game {game.game_id} ({game.season}, day {game.day})"
    if game.partial:
        title += " [partial]"
    batting = _table(f"{title}: batting", "Player", _BATTING_HEADERS[1:])
    pitching = _table(f"{title}: pitching", "Player", _PITCHING_HEADERS[1:])
    for player in game.players:
        label = f"{player.player_id} ({player.team_id})"
        if player.line.batting is not None:
            batting.add_row(label, *_batting_cells(player.line)[1:])
        if player.line.pitching is not None:
            pitching.add_row(label, *_pitching_cells(player.line)[1:])
    for team_id, line in game.team_totals:
        if line.batting is not None:
            batting.add_row(f"[bold]{team_id}[/bold]", *_batting_cells(line)[1:])
    console.print(batting)
    console.print(pitching)


def _season_label(stats: DerivedSeasonStats, *, team: str | None = None) -> str:
    label = str(stats.season)
    if stats.postseason:
        label += " post"
    if team is not None:
        label += f" {team}"
    elif len(stats.by_team) > 1:
        label += " TOT"
    elif stats.by_team:
        label += f" {stats.by_team[0].team_id}"
    return label


def print_career_stats(career: DerivedCareerStats) -> None:
    batting = _table(f"Player {career.player_id}: batting", "Season", _BATTING_HEADERS)
    pitching = _table(f"Player {career.player_id}: pitching", "Season", _PITCHING_HEADERS)
    for season in (*career.seasons, *career.postseasons):
        rows = [(_season_label(season), season.line)]
        if len(season.by_team) > 1:
            rows += [(_season_label(season, team=split.team_id), split.line) for split in season.by_team]
        for label, line in rows:
            if line.batting is not None:
                batting.add_row(label, *_batting_cells(line))
            if line.pitching is not None:
                pitching.add_row(label, *_pitching_cells(line))
    if career.line.batting is not None:
        batting.add_row("[bold]Career[/bold]", *_batting_cells(career.line))
    if career.line.pitching is not None:
        pitching.add_row("[bold]Career[/bold]", *_pitching_cells(career.line))
    if batting.row_count:
        console.print(batting)
    if pitching.row_count:
        console.print(pitching)


def print_season_stats(stats: DerivedSeasonStats, relative: LeagueRelativeStats | None = None) -> None:
    console.print(f"[bold]{stats.player_id}[/bold] {_season_label(stats)}")
    if stats.line.batting is not None:
        table = _table("Batting", "", _BATTING_HEADERS)
        table.add_row("", *_batting_cells(stats.line))
        console.print(table)
    if stats.line.pitching is not None:
        table = _table("Pitching", "", _PITCHING_HEADERS)
        table.add_row("", *_pitching_cells(stats.line))
        console.print(table)
    if relative is not None:
        console.print(
            f"  OPS+ {format_plus(relative.ops_plus)}  ERA+ {format_plus(relative.era_plus)}"
            f"  FIP {format_decimal(relative.fip)}"
        )


def print_season_table(table: SeasonTable, *, pitching: bool = False, averages: LeagueAverages | None = None) -> None:
    phase = "postseason" if table.postseason else "season"
    headers = _PITCHING_HEADERS if pitching else _BATTING_HEADERS
    out = _table(f"{table.season} {phase}: {'pitching' if pitching else 'batting'}", "Player", headers)
    for player in table.players:
        line = player.line
        if pitching and line.pitching is not None:
            out.add_row(player.player_id, *_pitching_cells(line))
        elif not pitching and line.batting is not None:
            out.add_row(player.player_id, *_batting_cells(line))
    console.print(out)
    if averages is not None:
        console.print(
            f"League: OBP {format_rate(averages.on_base_percentage)}"
            f"  SLG {format_rate(averages.slugging_percentage)}"
            f"  ERA {format_decimal(averages.earned_run_average)}"
            f"  FIP constant {format_decimal(averages.fip_constant)}"
            f"  ({averages.qualified_batters} qualified batters, {averages.qualified_pitchers} qualified pitchers"
            f" over {averages.season_games} games)"
        )


def print_debug_log(game_id: str, error: str | None, lines: list[str]) -> None:
    if error is not None:
        console.print(f"[red bold]Simulation error in {game_id}:[/red bold] {error}")
    else:
        console.print(f"Game {game_id} completed without errors")
    for line in lines:
        console.print(f"  {line}", markup=False)
