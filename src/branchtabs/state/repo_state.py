"""In-memory tracking state for each watched repository."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from branchtabs.utils.path_utils import normalize_repo_root

if TYPE_CHECKING:
	from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class RepositoryTrackingState:
	"""
	Mutable per-repository record.

	Attributes:
		last_branch: Branch seen when the last notification settled
		pending_timer: Armed debounce timer, at most one at a time
		opened_files: Document URIs this tool opened and has not closed yet
		lock: Held for the whole of a resolution pass

	"""

	last_branch: str | None = None
	pending_timer: asyncio.TimerHandle | None = None
	opened_files: set[str] = field(default_factory=set)
	lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

	def cancel_timer(self) -> bool:
		"""Cancel the pending debounce timer, returning True if one was armed."""
		if self.pending_timer is None:
			return False
		self.pending_timer.cancel()
		self.pending_timer = None
		return True


class RepositoryStateStore:
	"""Tracking state for every repository, keyed by normalized root."""

	def __init__(self) -> None:
		"""Initialize an empty store."""
		self._states: dict[str, RepositoryTrackingState] = {}

	def __len__(self) -> int:
		"""Return the number of tracked repositories."""
		return len(self._states)

	def __contains__(self, repo_root: str | Path) -> bool:
		"""Return True if the repository already has state."""
		return normalize_repo_root(repo_root) in self._states

	def get(self, repo_root: str | Path) -> RepositoryTrackingState | None:
		"""Return the state for a repository if it exists."""
		return self._states.get(normalize_repo_root(repo_root))

	def ensure(self, repo_root: str | Path, initial_branch: str | None = None) -> RepositoryTrackingState:
		"""
		Return the state for a repository, creating it on first use.

		Args:
			repo_root: Repository root
			initial_branch: Branch recorded as last seen when the state is created

		Returns:
			The repository's tracking state

		"""
		key = normalize_repo_root(repo_root)
		state = self._states.get(key)
		if state is None:
			state = RepositoryTrackingState(last_branch=initial_branch)
			self._states[key] = state
			logger.debug("Tracking state created for %s (branch %s)", key, initial_branch)
		return state

	def clear(self) -> None:
		"""Cancel pending timers and forget every repository."""
		for state in self._states.values():
			state.cancel_timer()
		self._states.clear()
