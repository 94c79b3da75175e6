from dataclasses import dataclass


@dataclass(frozen=True)
class BricksError:
    message: str


@dataclass(frozen=True)
class IngestError(BricksError):
    game_id: str
    source_detail: str = ""


@dataclass(frozen=True)
class ConfigError(BricksError):
    key: str = ""
