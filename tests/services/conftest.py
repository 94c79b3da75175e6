from collections.abc import Generator

import pytest

from bricks.cli.factory import AppContext, build_app_context
from bricks.config import Settings
from tests.helpers import seed_season


@pytest.fixture
def app_ctx(settings: Settings) -> Generator[AppContext]:
    with build_app_context(settings) as ctx:
        yield ctx


@pytest.fixture
def seeded(app_ctx: AppContext) -> AppContext:
    seed_season(app_ctx.ingestor)
    return app_ctx
