"""Debounced branch-switch detection for one or more repositories."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from branchtabs.changes.resolver import Resolution, ResolutionStatus
from branchtabs.state.repo_state import RepositoryStateStore
from branchtabs.utils.path_utils import normalize_repo_root

if TYPE_CHECKING:
	from collections.abc import Callable

	from branchtabs.changes.opener import ChangedFilesOpener
	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.git.repository import GitRepository
	from branchtabs.state.repo_state import RepositoryTrackingState

logger = logging.getLogger(__name__)

BRANCH_DEBOUNCE_SECONDS = 0.2

# Files in the git directory whose changes can mean HEAD moved
GIT_STATE_FILES = frozenset({"HEAD", "index", "packed-refs", "ORIG_HEAD", "FETCH_HEAD"})


class RepositoryWatcher:
	"""
	Turns bursts of repository notifications into at most one pass at a time.

	``notify`` re-arms a single debounce timer. When it fires, a token is put
	on a queue unless one is already waiting, and one consumer task drains the
	queue. A pass that has started always runs to completion; a notification
	arriving meanwhile leads to a fresh pass once it is done.

	"""

	def __init__(
		self,
		repository: GitRepository,
		state: RepositoryTrackingState,
		opener: ChangedFilesOpener,
		settings_provider: Callable[[], ResolutionSettings],
		ignored_files_provider: Callable[[], set[str]],
		debounce_delay: float = BRANCH_DEBOUNCE_SECONDS,
	) -> None:
		"""
		Initialize the watcher.

		Args:
			repository: Repository to watch
			state: Its tracking state
			opener: Runs the open pass
			settings_provider: Returns the settings snapshot for a pass
			ignored_files_provider: Returns the repository's manual ignore list
			debounce_delay: Seconds without notifications before a pass starts

		"""
		self.repository = repository
		self.state = state
		self.opener = opener
		self.settings_provider = settings_provider
		self.ignored_files_provider = ignored_files_provider
		self.debounce_delay = debounce_delay
		self._queue: asyncio.Queue[None] = asyncio.Queue()
		self._consumer: asyncio.Task[None] | None = None
		self._refresh_listeners: list[Callable[[], None]] = []

	@property
	def is_running(self) -> bool:
		"""Whether the consumer task is active."""
		return self._consumer is not None and not self._consumer.done()

	def add_refresh_listener(self, listener: Callable[[], None]) -> None:
		"""Call listener on every notification, before any debouncing."""
		self._refresh_listeners.append(listener)

	def start(self) -> None:
		"""Start consuming settled notifications."""
		if not self.is_running:
			self._consumer = asyncio.create_task(self._consume())

	async def stop(self) -> None:
		"""Drop the pending timer and stop the consumer."""
		self.state.cancel_timer()
		if self._consumer is not None:
			self._consumer.cancel()
			with contextlib.suppress(asyncio.CancelledError):
				await self._consumer
			self._consumer = None

	def notify(self) -> None:
		"""Record that the repository state changed."""
		if self.state.cancel_timer():
			logger.debug("Restarting debounce timer for %s", self.repository.root)
		loop = asyncio.get_running_loop()
		self.state.pending_timer = loop.call_later(self.debounce_delay, self._on_settled)

		for listener in self._refresh_listeners:
			try:
				listener()
			except Exception:
				logger.exception("Refresh listener failed for %s", self.repository.root)

	def _on_settled(self) -> None:
		self.state.pending_timer = None
		if self._queue.empty():
			self._queue.put_nowait(None)
		else:
			logger.debug("Pass already queued for %s", self.repository.root)

	async def _consume(self) -> None:
		while True:
			await self._queue.get()
			try:
				await self.handle_settled()
			finally:
				self._queue.task_done()

	async def wait_idle(self) -> None:
		"""Wait until every queued pass has finished."""
		await self._queue.join()

	async def handle_settled(self) -> Resolution | None:
		"""
		React to a settled notification.

		Nothing happens unless the branch differs from the last one seen.
		Errors are logged and never raised.

		Returns:
			The resolution of the pass, or None if no pass ran

		"""
		async with self.state.lock:
			try:
				return await self._handle_branch(self.repository.head().name)
			except Exception:
				logger.exception("Branch change handling failed for %s", self.repository.root)
				return None

	async def _handle_branch(self, branch: str | None) -> Resolution | None:
		if not branch or branch == self.state.last_branch:
			logger.debug("No branch change in %s", self.repository.root)
			return None

		logger.info('Branch changed in %s: "%s" -> "%s"', self.repository.root, self.state.last_branch, branch)
		self.state.last_branch = branch
		settings = self.settings_provider()

		if branch in settings.excluded_branches:
			logger.info('Branch "%s" excluded.', branch)
			if settings.close_all_on_excluded_branch:
				closed = await self.opener.reconciler.close_opened(self.state)
				logger.info("Closed %d tabs on excluded branch", closed)
			return Resolution(status=ResolutionStatus.EXCLUDED_BRANCH)

		resolution = await self.opener.open_for_repository(
			self.repository, self.state, settings, self.ignored_files_provider()
		)
		logger.debug("Pass for %s finished: %s", self.repository.root, resolution.status.value)
		return resolution


class GitStateEventHandler(FileSystemEventHandler):
	"""Forwards git directory changes from the watchdog thread into the event loop."""

	def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], None]) -> None:
		"""
		Initialize the handler.

		Args:
			loop: Event loop the callback runs on
			callback: Called for every relevant change
		"""
		self.loop = loop
		self.callback = callback

	@staticmethod
	def _is_git_state_path(path: bytes | str) -> bool:
		return bool(path) and Path(os.fsdecode(path)).name in GIT_STATE_FILES

	def on_any_event(self, event: FileSystemEvent) -> None:
		"""
		Forward changes to HEAD, the index and similar files.

		Args:
			event: The file system event.
		"""
		if event.is_directory or event.event_type in ("opened", "closed_no_write"):
			return
		if not (self._is_git_state_path(event.src_path) or self._is_git_state_path(event.dest_path)):
			return

		logger.debug("Detected git state %s: %s", event.event_type, event.dest_path or event.src_path)
		try:
			self.loop.call_soon_threadsafe(self.callback)
		except RuntimeError:
			logger.debug("Event loop closed, dropping git state event")


class WorkspaceWatcher:
	"""Tracks every repository of a session and owns their state."""

	def __init__(
		self,
		opener: ChangedFilesOpener,
		settings_provider: Callable[[GitRepository], ResolutionSettings],
		ignored_files_provider: Callable[[GitRepository], set[str]],
		*,
		debounce_delay: float = BRANCH_DEBOUNCE_SECONDS,
		state_store: RepositoryStateStore | None = None,
	) -> None:
		"""
		Initialize the workspace watcher.

		Args:
			opener: Runs open passes
			settings_provider: Returns the settings snapshot for a repository
			ignored_files_provider: Returns a repository's manual ignore list
			debounce_delay: Branch-switch debounce in seconds
			state_store: Tracking state store; a fresh one by default

		"""
		self.opener = opener
		self.settings_provider = settings_provider
		self.ignored_files_provider = ignored_files_provider
		self.debounce_delay = debounce_delay
		self.state_store = state_store or RepositoryStateStore()
		self.observer = Observer()
		self._watchers: dict[str, RepositoryWatcher] = {}
		self._stop_event = asyncio.Event()

	@property
	def watchers(self) -> list[RepositoryWatcher]:
		"""The per-repository watchers, in tracking order."""
		return list(self._watchers.values())

	def track(self, repository: GitRepository) -> RepositoryWatcher:
		"""
		Start watching a repository; tracking the same root again is a no-op.

		Must be called from the event loop.

		Args:
			repository: Repository to watch

		Returns:
			The repository's watcher

		"""
		key = normalize_repo_root(repository.root)
		existing = self._watchers.get(key)
		if existing is not None:
			return existing

		state = self.state_store.ensure(repository.root, repository.head().name)
		watcher = RepositoryWatcher(
			repository,
			state,
			self.opener,
			lambda: self.settings_provider(repository),
			lambda: self.ignored_files_provider(repository),
			self.debounce_delay,
		)
		watcher.start()

		handler = GitStateEventHandler(asyncio.get_running_loop(), watcher.notify)
		self.observer.schedule(handler, str(repository.git_dir), recursive=False)
		self._watchers[key] = watcher
		logger.info("Watching %s (branch %s)", repository.root, state.last_branch)
		return watcher

	async def run(self) -> None:
		"""Watch until stop() is called."""
		self.observer.start()
		logger.info("Started watching %d repositories", len(self._watchers))
		try:
			await self._stop_event.wait()
		finally:
			await self.close()

	def stop(self) -> None:
		"""Ask run() to return."""
		self._stop_event.set()

	async def close(self) -> None:
		"""Stop the observer and every repository watcher and forget their state."""
		if self.observer.is_alive():
			self.observer.stop()
			self.observer.join()
			logger.info("Watchdog observer stopped.")
		for watcher in self._watchers.values():
			await watcher.stop()
		self._watchers.clear()
		self.state_store.clear()
