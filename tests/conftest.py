"""Global test fixtures and configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
	from pathlib import Path


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
	"""A scratch directory for file system tests."""
	return tmp_path


@pytest.fixture(autouse=True)
def isolate_user_files(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
	"""Keep user-level configuration and state out of the real home directory."""
	home = tmp_path_factory.mktemp("home")
	monkeypatch.setattr(
		"branchtabs.config.config_loader.user_config_path", lambda: home / "config" / "branchtabs" / "config.yml"
	)
	monkeypatch.setattr("branchtabs.state.store.default_state_path", lambda: home / "data" / "branchtabs" / "state.yml")
	return home
