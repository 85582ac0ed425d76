from __future__ import annotations

import os

import pytest

from athlete_vitals.config import get_config
from athlete_vitals.env import ENV_PREFIX


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()
