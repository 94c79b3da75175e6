import csv
import json
import logging
from dataclasses import fields
from typing import Any, TextIO

from bricks.domain.derived import BattingLine, DerivedSeasonStats, PitchingLine
from bricks.domain.season import Season
from bricks.domain.stats import CountingStats, stats_to_dict
from bricks.domain.statistic import StatValue, to_float
from bricks.services.stats_service import StatsService

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")

_COUNTING_COLUMNS = [f.name for f in fields(CountingStats)]
_BATTING_COLUMNS = [f.name for f in fields(BattingLine)]
_PITCHING_COLUMNS = [f.name for f in fields(PitchingLine)]
_RELATIVE_COLUMNS = ["qualified_batting", "qualified_pitching", "ops_plus", "era_plus", "fip"]

COLUMNS = [
    "player_id",
    "teams",
    *_COUNTING_COLUMNS,
    *_BATTING_COLUMNS,
    *_PITCHING_COLUMNS,
    *_RELATIVE_COLUMNS,
]


def _rounded(value: StatValue) -> float | None:
    number = to_float(value)
    return None if number is None else round(number, 4)


def _player_row(player: DerivedSeasonStats) -> dict[str, Any]:
    row: dict[str, Any] = {
        "player_id": player.player_id,
        "teams": "/".join(split.team_id for split in player.by_team),
    }
    row.update(stats_to_dict(player.line.totals))
    batting = player.line.batting
    for name in _BATTING_COLUMNS:
        row[name] = _rounded(getattr(batting, name)) if batting is not None else None
    pitching = player.line.pitching
    for name in _PITCHING_COLUMNS:
        row[name] = _rounded(getattr(pitching, name)) if pitching is not None else None
    return row


def season_rows(stats: StatsService, season: Season, *, postseason: bool = False) -> list[dict[str, Any]]:
    """One row per player with counting, derived and league-relative stats.

    League-relative columns are only filled for the regular season.
    """
    table = stats.season_table(season, postseason=postseason).value
    rows: list[dict[str, Any]] = []
    for player in table.players:
        row = _player_row(player)
        if postseason:
            row.update(dict.fromkeys(_RELATIVE_COLUMNS))
        else:
            relative = stats.league_relative(player.player_id, season).value
            row["qualified_batting"] = relative.qualified_batting
            row["qualified_pitching"] = relative.qualified_pitching
            row["ops_plus"] = _rounded(relative.ops_plus)
            row["era_plus"] = _rounded(relative.era_plus)
            row["fip"] = _rounded(relative.fip)
        rows.append(row)
    return rows


def export_season(
    stats: StatsService,
    season: Season,
    out: TextIO,
    *,
    fmt: str = "csv",
    postseason: bool = False,
) -> int:
    """Write the season table to ``out``; returns the number of players written."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format {fmt!r}; expected one of {EXPORT_FORMATS}")
    rows = season_rows(stats, season, postseason=postseason)
    if fmt == "csv":
        writer = csv.DictWriter(out, fieldnames=COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: "" if v is None else v for k, v in row.items()})
    else:
        json.dump(
            {"sim": season.sim, "season": season.season, "postseason": postseason, "players": rows},
            out,
            indent=2,
        )
        out.write("\n")
    logger.info("Exported %d players for %s as %s", len(rows), season, fmt)
    return len(rows)
