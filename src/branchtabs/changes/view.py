"""The read-only listing of a branch's changed files."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from branchtabs.changes.resolver import Resolution, ResolutionStatus

if TYPE_CHECKING:
	from collections.abc import Callable

	from branchtabs.changes.resolver import ChangedFileResolver, ListedChange
	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.git.repository import GitRepository

logger = logging.getLogger(__name__)

# Listing refreshes are lower priority and burstier than branch switches
REFRESH_DEBOUNCE_SECONDS = 0.75


@dataclass(frozen=True)
class ListingSnapshot:
	"""What the listing showed after its last load."""

	branch: str | None
	resolution: Resolution
	changes: list[ListedChange] = field(default_factory=list)
	error: str | None = None


class ChangedFilesListing:
	"""
	Caches the changed-file listing for one repository.

	``request_refresh`` debounces reloads; at most one load runs at a time
	and concurrent callers share it.

	"""

	def __init__(
		self,
		repository: GitRepository,
		resolver: ChangedFileResolver,
		settings_provider: Callable[[], ResolutionSettings],
		ignored_files_provider: Callable[[], set[str]],
		*,
		search: str = "",
		refresh_delay: float = REFRESH_DEBOUNCE_SECONDS,
		on_updated: Callable[[ListingSnapshot], None] | None = None,
	) -> None:
		"""
		Initialize the listing.

		Args:
			repository: Repository to list
			resolver: Produces the changes
			settings_provider: Returns the current settings snapshot
			ignored_files_provider: Returns the repository's manual ignore list
			search: Initial search query
			refresh_delay: Debounce delay for request_refresh, in seconds
			on_updated: Called with each new snapshot

		"""
		self.repository = repository
		self.resolver = resolver
		self.settings_provider = settings_provider
		self.ignored_files_provider = ignored_files_provider
		self.refresh_delay = refresh_delay
		self.on_updated = on_updated
		self.snapshot: ListingSnapshot | None = None
		self._search = search.strip().lower()
		self._refresh_timer: asyncio.TimerHandle | None = None
		self._inflight: asyncio.Task[ListingSnapshot] | None = None

	def request_refresh(self) -> None:
		"""Reload after the debounce delay, restarting the delay on every call."""
		if self._refresh_timer is not None:
			self._refresh_timer.cancel()
		loop = asyncio.get_running_loop()
		self._refresh_timer = loop.call_later(self.refresh_delay, self._on_refresh_timer)

	def _on_refresh_timer(self) -> None:
		self._refresh_timer = None
		self.load()

	def cancel(self) -> None:
		"""Drop any pending refresh."""
		if self._refresh_timer is not None:
			self._refresh_timer.cancel()
			self._refresh_timer = None

	def load(self) -> asyncio.Task[ListingSnapshot]:
		"""Start a load, or return the one already running."""
		if self._inflight is None or self._inflight.done():
			self._inflight = asyncio.ensure_future(self._load())
		return self._inflight

	async def _load(self) -> ListingSnapshot:
		head = self.repository.head()
		try:
			resolution, changes = await self.resolver.list_changes(
				self.repository.root,
				head,
				self.settings_provider(),
				self.ignored_files_provider(),
				search=self._search,
			)
			snapshot = ListingSnapshot(branch=head.name, resolution=resolution, changes=changes)
		except Exception as e:
			logger.exception("Failed to load changes for %s", self.repository.root)
			snapshot = ListingSnapshot(
				branch=head.name,
				resolution=Resolution(status=ResolutionStatus.NO_CHANGES),
				error=f"Failed to load changes: {e}",
			)

		self.snapshot = snapshot
		if self.on_updated is not None:
			self.on_updated(snapshot)
		return snapshot
