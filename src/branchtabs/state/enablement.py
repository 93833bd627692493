"""Per-repository opt-out, asked once the first time a repository switches branch."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from branchtabs.config.config_loader import ConfigScope
from branchtabs.utils.path_utils import normalize_repo_root

if TYPE_CHECKING:
	from pathlib import Path

	from branchtabs.config.config_loader import ConfigLoader
	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.state.store import StateStore

logger = logging.getLogger(__name__)

DISABLED_KEY_PREFIX = "repo_disabled:"


class EnablementChoice(str, Enum):
	"""Answers to the new-repository question."""

	ENABLE = "Enable"
	ALWAYS_ENABLE = "Always Enable"
	DISABLE = "Disable"
	DONT_ASK_AGAIN = "Don't Ask Again"


class EnablementPrompt(Protocol):
	"""Asks the user whether a repository should be handled."""

	async def choose_enablement(self, repo_root: str) -> EnablementChoice | None:
		"""Return the user's choice, or None if the question was dismissed."""
		...


class RepositoryEnablement:
	"""Decides whether branch changes in a repository should open files."""

	def __init__(
		self,
		store: StateStore,
		prompt: EnablementPrompt | None = None,
		config_loader: ConfigLoader | None = None,
	) -> None:
		"""
		Initialize the enablement tracker.

		Args:
			store: Persisted state holding earlier decisions
			prompt: Asks about unknown repositories; None means never ask
			config_loader: Used to turn prompting off for "Always Enable"

		"""
		self.store = store
		self.prompt = prompt
		self.config_loader = config_loader
		self._cache: dict[str, bool] = {}

	async def is_enabled(self, repo_root: str | Path, settings: ResolutionSettings) -> bool:
		"""
		Check whether a repository is enabled, asking once if needed.

		Args:
			repo_root: Repository root
			settings: Current settings snapshot

		Returns:
			True if files should be opened for this repository

		"""
		key = normalize_repo_root(repo_root)
		if settings.disabled_repositories:
			disabled = {normalize_repo_root(entry.strip()) for entry in settings.disabled_repositories if entry.strip()}
			enabled = key not in disabled
			self._cache[key] = enabled
			return enabled

		cached = self._cache.get(key)
		if cached is not None:
			return cached

		stored_disabled = self.store.get(f"{DISABLED_KEY_PREFIX}{key}")
		if stored_disabled is not None:
			enabled = not stored_disabled
			self._cache[key] = enabled
			return enabled

		if not settings.prompt_on_new_repository or self.prompt is None:
			self._cache[key] = True
			return True

		choice = await self.prompt.choose_enablement(key)
		if choice is None or choice is EnablementChoice.DONT_ASK_AGAIN:
			return True

		if choice is EnablementChoice.ALWAYS_ENABLE:
			if self.config_loader is not None:
				self.config_loader.update_value("settings.prompt_on_new_repository", False, ConfigScope.USER)
				logger.info("Disabled future repository prompts (settings.prompt_on_new_repository = false).")
			self._remember(key, enabled=True)
			return True

		enabled = choice is EnablementChoice.ENABLE
		self._remember(key, enabled=enabled)
		if not enabled:
			logger.info("Repository disabled by user: %s", key)
		return enabled

	def _remember(self, key: str, *, enabled: bool) -> None:
		self._cache[key] = enabled
		self.store.update(f"{DISABLED_KEY_PREFIX}{key}", not enabled)

	def clear(self) -> int:
		"""
		Forget every stored decision.

		Returns:
			The number of persisted decisions removed

		"""
		self._cache.clear()
		keys = [key for key in self.store.keys() if key.startswith(DISABLED_KEY_PREFIX)]
		for key in keys:
			self.store.update(key, None)
		return len(keys)
