from bricks.domain.game import GameRecord, PlayerGameStats
from bricks.domain.result import Ok
from bricks.domain.stats import CountingStats
from bricks.ingest.ingestor import Ingestor


def batting(hits: int = 0, at_bats: int = 0, **overrides: int) -> CountingStats:
    """Batting counters where every hit is a single unless overridden."""
    values: dict[str, int] = {
        "plate_appearances": at_bats + overrides.get("walks", 0) + overrides.get("sacrifice_flies", 0),
        "at_bats": at_bats,
        "singles": hits,
    }
    values.update(overrides)
    return CountingStats(**values)


def pitching(outs: int = 0, **overrides: int) -> CountingStats:
    values: dict[str, int] = {"outs_recorded": outs, "batters_faced": outs}
    values.update(overrides)
    return CountingStats(**values)


def make_game(game_id: str = "g1", **overrides: object) -> GameRecord:
    defaults: dict[str, object] = {
        "game_id": game_id,
        "sim": "gamma",
        "season": 1,
        "day": 1,
        "away_team_id": "AWY",
        "home_team_id": "HOM",
    }
    defaults.update(overrides)
    return GameRecord(**defaults)  # type: ignore[arg-type]


def make_row(
    player_id: str,
    stats: CountingStats,
    *,
    game: GameRecord | None = None,
    team_id: str = "AWY",
) -> PlayerGameStats:
    game = game or make_game()
    return PlayerGameStats(
        game_id=game.game_id,
        team_id=team_id,
        player_id=player_id,
        sim=game.sim,
        season=game.season,
        day=game.day,
        stats=stats,
    )


def seed_season(ingestor: Ingestor) -> None:
    """Two regular-season games and one postseason game in gamma/1."""
    g1 = make_game("g1", day=1)
    g2 = make_game("g2", day=2)
    g3 = make_game("g3", day=100)
    feeds = [
        (
            g1,
            [
                make_row("p1", batting(hits=3, at_bats=4), game=g1),
                make_row("p2", pitching(outs=27, earned_runs=2, struck_outs=8), game=g1, team_id="HOM"),
            ],
        ),
        (
            g2,
            [
                make_row("p1", batting(hits=1, at_bats=3), game=g2),
                make_row("p3", pitching(outs=27, earned_runs=4, walks_issued=2), game=g2, team_id="HOM"),
            ],
        ),
        (g3, [make_row("p1", batting(hits=2, at_bats=4), game=g3)]),
    ]
    for game, rows in feeds:
        result = ingestor.ingest(game, rows)
        if not isinstance(result, Ok):
            raise AssertionError(f"seeding {game.game_id} failed: {result.error.message}")
