import os

import pytest

from newsreader.core.config import get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # Keep the developer's shell and any local .env out of the tests.
    for name in list(os.environ):
        if name.upper().startswith("NEWSREADER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
