import json
import sys
from pathlib import Path
from typing import Annotated

import typer

from bricks.cli._logging import configure_logging
from bricks.cli._output import (
    console,
    print_career_stats,
    print_debug_log,
    print_error,
    print_game_stats,
    print_incomplete_notice,
    print_ingest_error,
    print_ingest_result,
    print_ingest_summary,
    print_rebuild_report,
    print_season_stats,
    print_season_table,
    print_status,
)
from bricks.cli.factory import build_app_context, validate_settings
from bricks.codec import CodecError, create_codec
from bricks.config import Settings, create_config, load_settings
from bricks.domain.result import Err, Ok
from bricks.domain.season import Season
from bricks.exceptions import BricksException, RebuildInProgressError
from bricks.ingest.json_source import JsonGameSource
from bricks.ingest.mappers import map_game_document
from bricks.services.export import EXPORT_FORMATS, export_season
from bricks.services.rebuild import STATS_VERSION_KEY

app = typer.Typer(name="bricks", help="Bricks: statistics engine for simulated baseball leagues")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
    config_path: Annotated[str, typer.Option("--config", help="YAML configuration file")] = "bricks.yaml",
    db: Annotated[str | None, typer.Option("--db", help="Override the database path")] = None,
) -> None:
    """Bricks: statistics engine for simulated baseball leagues."""
    configure_logging(verbose=verbose)
    match validate_settings(load_settings(create_config(yaml_path=config_path, db_path=db))):
        case Ok(settings):
            ctx.obj = settings
        case Err(e):
            print_error(f"{e.key}: {e.message}")
            raise typer.Exit(code=1)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


_SimArg = Annotated[str, typer.Argument(help="Simulation name")]
_SeasonArg = Annotated[int, typer.Argument(help="Season number within the sim")]
_PostseasonOpt = Annotated[bool, typer.Option("--postseason", help="Postseason games instead of the regular season")]


@app.command()
def ingest(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Game document file (.json/.jsonl) or directory of them")],
) -> None:
    """Ingest simulated game documents."""
    if not path.exists():
        print_error(f"file not found: {path}")
        raise typer.Exit(code=1)

    source = JsonGameSource(path)
    ingested = partial = failed = 0
    with build_app_context(_settings(ctx)) as app_ctx:
        codec = create_codec(app_ctx.settings.codec)
        for doc in source.fetch():
            try:
                feed = map_game_document(doc, codec)
            except (KeyError, TypeError, ValueError) as e:
                print_error(f"malformed game document {doc.get('game_id', '?')}: {e}")
                failed += 1
                continue
            match app_ctx.ingestor.ingest_feed(feed, source_detail=source.source_detail):
                case Ok(report):
                    print_ingest_result(report)
                    ingested += 1
                    partial += report.is_partial
                case Err(e):
                    print_ingest_error(e)
                    failed += 1
    print_ingest_summary(ingested, partial, failed)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def rebuild(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", help="Rebuild even if the stats version is current")] = False,
) -> None:
    """Recompute every cached aggregate."""
    settings = _settings(ctx)
    with build_app_context(settings) as app_ctx:
        try:
            if force:
                report = app_ctx.rebuilder.run(settings.stats_version)
            else:
                report = app_ctx.rebuilder.ensure_current(settings.stats_version)
        except RebuildInProgressError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None
    if report is None:
        console.print(f"Stats version {settings.stats_version} is current; nothing to rebuild")
    else:
        print_rebuild_report(report)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show rebuild state and stats version."""
    settings = _settings(ctx)
    with build_app_context(settings) as app_ctx:
        print_status(app_ctx.rebuilder.status(), app_ctx.meta_repo.get(STATS_VERSION_KEY), settings.stats_version)


@app.command()
def game(
    ctx: typer.Context,
    game_id: Annotated[str, typer.Argument(help="Game ID")],
) -> None:
    """Show a game's box score stats."""
    with build_app_context(_settings(ctx)) as app_ctx:
        try:
            served = app_ctx.stats.game_stats(game_id)
        except BricksException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None
        print_game_stats(served.value)
        print_incomplete_notice(served.incomplete)


@app.command()
def player(
    ctx: typer.Context,
    player_id: Annotated[str, typer.Argument(help="Player ID")],
    sim: Annotated[str | None, typer.Option("--sim", help="Simulation name")] = None,
    season: Annotated[int | None, typer.Option("--season", help="Season number")] = None,
    postseason: _PostseasonOpt = False,
) -> None:
    """Show a player's career, or one season with --sim and --season."""
    if (sim is None) != (season is None):
        print_error("--sim and --season must be given together")
        raise typer.Exit(code=1)

    with build_app_context(_settings(ctx)) as app_ctx:
        try:
            if sim is not None and season is not None:
                scope = Season(sim, season)
                served = app_ctx.stats.season_stats(player_id, scope, postseason=postseason)
                relative = None
                incomplete = served.incomplete
                if not postseason:
                    relative_served = app_ctx.stats.league_relative(player_id, scope)
                    relative = relative_served.value
                    incomplete = incomplete or relative_served.incomplete
                print_season_stats(served.value, relative)
            else:
                career = app_ctx.stats.career_stats(player_id)
                incomplete = career.incomplete
                print_career_stats(career.value)
        except BricksException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None
        print_incomplete_notice(incomplete)


@app.command()
def season(
    ctx: typer.Context,
    sim: _SimArg,
    season: _SeasonArg,
    pitching: Annotated[bool, typer.Option("--pitching", help="Show pitching instead of batting")] = False,
    postseason: _PostseasonOpt = False,
) -> None:
    """Show the season stats table for every player."""
    scope = Season(sim, season)
    with build_app_context(_settings(ctx)) as app_ctx:
        try:
            table = app_ctx.stats.season_table(scope, postseason=postseason)
            averages = None if postseason else app_ctx.stats.league_averages(scope)
        except BricksException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None
        print_season_table(table.value, pitching=pitching, averages=averages.value if averages else None)
        print_incomplete_notice(table.incomplete or (averages is not None and averages.incomplete))


@app.command()
def debug(
    ctx: typer.Context,
    game_id: Annotated[str, typer.Argument(help="Game ID")],
) -> None:
    """Show the simulation log for a game."""
    with build_app_context(_settings(ctx)) as app_ctx:
        log = app_ctx.debug_log_repo.get(game_id)
        if log is None:
            print_error(f"no debug log for game {game_id}")
            raise typer.Exit(code=1)
        try:
            entries = json.loads(create_codec(app_ctx.settings.codec).decompress(log.log_payload))
        except (CodecError, ValueError) as e:
            print_error(f"debug log for game {game_id} is unreadable: {e}")
            raise typer.Exit(code=1) from None
    lines = [entry if isinstance(entry, str) else json.dumps(entry, sort_keys=True) for entry in entries]
    print_debug_log(game_id, log.error, lines)


@app.command()
def export(
    ctx: typer.Context,
    sim: _SimArg,
    season: _SeasonArg,
    fmt: Annotated[str, typer.Option("--format", help=f"One of: {', '.join(EXPORT_FORMATS)}")] = "csv",
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write to a file instead of stdout")] = None,
    postseason: _PostseasonOpt = False,
) -> None:
    """Export a season table as CSV or JSON."""
    if fmt not in EXPORT_FORMATS:
        print_error(f"unknown format {fmt!r}; expected one of {', '.join(EXPORT_FORMATS)}")
        raise typer.Exit(code=1)

    scope = Season(sim, season)
    with build_app_context(_settings(ctx)) as app_ctx:
        try:
            if output is None:
                export_season(app_ctx.stats, scope, sys.stdout, fmt=fmt, postseason=postseason)
            else:
                with open(output, "w", encoding="utf-8", newline="") as f:
                    count = export_season(app_ctx.stats, scope, f, fmt=fmt, postseason=postseason)
                console.print(f"Wrote {count} players to {output}")
        except BricksException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None
