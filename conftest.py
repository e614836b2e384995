from __future__ import annotations

import pytest
from twisted.internet.task import Clock

from localhttp.settings import Settings


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def settings() -> Settings:
    return Settings({"LOG_ENABLED": False})
