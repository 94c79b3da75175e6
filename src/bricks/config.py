from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from bricks.aggregation.league import Qualification


class AppConfig(Protocol):
    def __getitem__(self, key: str) -> object: ...


_DEFAULTS: dict[str, object] = {
    "db": {
        "path": "~/.local/share/bricks/bricks.db",
        "pool_size": 5,
    },
    "cache": {
        "codec": "gzip",
        "compute_timeout": 30.0,
        "ttl_seconds": 0,
    },
    "league": {
        "qualify_pa_per_game": 3.1,
        "qualify_outs_per_game": 3,
        "postseason_first_day": 99,
    },
    "stats": {
        "version": 1,
    },
}


@dataclass(frozen=True)
class Settings:
    db_path: Path
    pool_size: int = 5
    codec: str = "gzip"
    compute_timeout: float = 30.0
    ttl_seconds: float | None = None
    qualification: Qualification = Qualification()
    postseason_first_day: int = 99
    stats_version: int = 1


def create_config(
    yaml_path: str = "bricks.yaml",
    env_prefix: str = "BRICKS",
    defaults: dict[str, object] | None = None,
    *,
    db_path: str | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables, e.g. ``BRICKS__DB__PATH``.
        defaults: Default configuration values.
        db_path: Override the database path.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if db_path is not None:
        layers.insert(0, config_from_dict({"db": {"path": db_path}}))

    return ConfigurationSet(*layers)


def load_settings(cfg: AppConfig | None = None) -> Settings:
    """Read typed settings out of a layered configuration.

    Environment variables arrive as strings, so every value is coerced.
    """
    if cfg is None:
        cfg = create_config()
    ttl = float(str(cfg["cache.ttl_seconds"]))
    return Settings(
        db_path=Path(str(cfg["db.path"])).expanduser(),
        pool_size=int(str(cfg["db.pool_size"])),
        codec=str(cfg["cache.codec"]),
        compute_timeout=float(str(cfg["cache.compute_timeout"])),
        ttl_seconds=ttl if ttl > 0 else None,
        qualification=Qualification(
            pa_per_game=float(str(cfg["league.qualify_pa_per_game"])),
            outs_per_game=float(str(cfg["league.qualify_outs_per_game"])),
        ),
        postseason_first_day=int(str(cfg["league.postseason_first_day"])),
        stats_version=int(str(cfg["stats.version"])),
    )
