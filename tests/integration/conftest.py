"""Integration-test fixtures for deterministic, offline CLI runs."""

from __future__ import annotations

import pytest
import requests


@pytest.fixture(autouse=True)
def _block_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fail any HTTP fetch so integration tests never touch the network."""

    def _offline_get(url: str, **kwargs: object) -> None:
        _ = kwargs
        raise requests.ConnectionError(f"network disabled in tests: {url}")

    monkeypatch.setattr(requests, "get", _offline_get)


@pytest.fixture(autouse=True)
def _clear_novelshelf_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer `NOVELSHELF_*` variables out of CLI config resolution."""

    for key in (
        "NOVELSHELF_LIBRARY_DIR",
        "NOVELSHELF_PUBLISHING_ROOT",
        "NOVELSHELF_MANIFEST_NAME",
        "NOVELSHELF_FETCH_TIMEOUT",
        "NOVELSHELF_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
