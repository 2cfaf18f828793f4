"""Shared pytest fixtures."""

import pytest

from ftlsav import encode
from ftlsav.paths import ENV_LOG_DIR

from save_builders import hs_save, minimal_game, restricted_save, rich_game


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    """Keep diagnostics logs out of the user's log directory."""
    path = tmp_path / "logs"
    monkeypatch.setenv(ENV_LOG_DIR, str(path))
    return path


@pytest.fixture
def minimal_save() -> bytes:
    return encode(minimal_game(11))


@pytest.fixture(params=[2, 7, 8, 9, 11])
def rich_save(request) -> bytes:
    return encode(rich_game(request.param))


@pytest.fixture
def modded_save() -> bytes:
    return hs_save()


@pytest.fixture
def unreadable_save() -> bytes:
    return restricted_save(11)
