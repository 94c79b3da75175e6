"""Map upstream game documents onto stored records.

A document looks like::

    {
        "game_id": "...", "sim": "gamma10", "season": 4, "day": 12,
        "away": {"team_id": "...", "players": {"<player_id>": {"at_bats": 4, ...}}},
        "home": {...},
        "teams": {"<team_id>": {"players": {...}}},
        "box_score": {...},
        "log": [...], "error": null
    }

``teams`` is optional and carries players who appeared for a team other
than the two sides, which happens when a player is traded mid-game.

Player counters use the ``CountingStats`` field names, including the
pitching decisions (``wins``, ``losses``, ``saves``) and the starter and
finisher flags (``games_started``, ``complete_games``, ``shutouts`` ...).
Summing a team's decisions gives its win-loss record.
"""

import json
from dataclasses import dataclass
from typing import Any

from bricks.codec import Codec
from bricks.domain.game import DebugLog, GameRecord, PlayerGameStats
from bricks.domain.stats import stats_from_dict


@dataclass(frozen=True)
class GameFeed:
    game: GameRecord
    player_stats: tuple[PlayerGameStats, ...]
    debug_log: DebugLog | None = None


def _compress_json(value: Any, codec: Codec) -> bytes:
    return codec.compress(json.dumps(value, sort_keys=True, separators=(",", ":")).encode("utf-8"))


def _side_players(side: dict[str, Any] | None) -> tuple[str | None, dict[str, Any]]:
    if not side:
        return None, {}
    return side.get("team_id"), side.get("players") or {}


def map_game_document(doc: dict[str, Any], codec: Codec) -> GameFeed:
    """Build a ``GameFeed`` from one document. Raises KeyError/ValueError on malformed input."""
    game_id = str(doc["game_id"])
    sim = str(doc["sim"])
    season = int(doc["season"])
    day = int(doc["day"])

    away_team_id, away_players = _side_players(doc.get("away"))
    home_team_id, home_players = _side_players(doc.get("home"))
    team_players: list[tuple[str, dict[str, Any]]] = []
    if away_team_id is not None:
        team_players.append((away_team_id, away_players))
    if home_team_id is not None:
        team_players.append((home_team_id, home_players))
    for team_id, team in (doc.get("teams") or {}).items():
        team_players.append((team_id, team.get("players") or {}))

    rows = tuple(
        PlayerGameStats(
            game_id=game_id,
            team_id=team_id,
            player_id=str(player_id),
            sim=sim,
            season=season,
            day=day,
            stats=stats_from_dict(counters),
        )
        for team_id, players in team_players
        for player_id, counters in players.items()
    )

    box_score = doc.get("box_score")
    game = GameRecord(
        game_id=game_id,
        sim=sim,
        season=season,
        day=day,
        away_team_id=away_team_id,
        home_team_id=home_team_id,
        stats_payload=_compress_json(box_score, codec) if box_score is not None else None,
    )

    debug_log = None
    if "log" in doc or doc.get("error"):
        debug_log = DebugLog(
            game_id=game_id,
            log_payload=_compress_json(doc.get("log") or [], codec),
            error=doc.get("error") or None,
        )
    return GameFeed(game=game, player_stats=rows, debug_log=debug_log)
