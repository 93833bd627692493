"""Close the tabs BranchTabs opened and open the next set."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from branchtabs.git.diff import ChangeKind
from branchtabs.host.base import DocumentOpenError

if TYPE_CHECKING:
	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.git.diff import ChangedFile
	from branchtabs.host.base import DocumentHost
	from branchtabs.state.repo_state import RepositoryTrackingState

logger = logging.getLogger(__name__)


class TabReconciler:
	"""
	Keeps a repository's tracked documents in step with the editor.

	Only documents recorded in the tracking state are ever closed by the
	targeted close operations; user-opened tabs are left alone.

	"""

	def __init__(self, host: DocumentHost) -> None:
		"""Initialize with the document host."""
		self.host = host

	async def close_opened(self, state: RepositoryTrackingState) -> int:
		"""
		Close every tab this tool opened for the repository and clear the tracking set.

		Args:
			state: The repository's tracking state

		Returns:
			Number of tabs closed

		"""
		if not state.opened_files:
			return 0
		to_close = [tab for tab in self.host.tabs() if tab.uri in state.opened_files]
		if to_close:
			await self.host.close_tabs(to_close)
		state.opened_files.clear()
		return len(to_close)

	async def close_pinned(self, state: RepositoryTrackingState) -> int:
		"""
		Close only the pinned tabs this tool opened, untracking exactly those.

		Args:
			state: The repository's tracking state

		Returns:
			Number of tabs closed

		"""
		if not state.opened_files:
			return 0
		to_close = [tab for tab in self.host.tabs() if tab.is_pinned and tab.uri in state.opened_files]
		if to_close:
			await self.host.close_tabs(to_close)
		for tab in to_close:
			state.opened_files.discard(tab.uri)
		return len(to_close)

	async def close_before_open(self, state: RepositoryTrackingState, settings: ResolutionSettings) -> None:
		"""Apply the configured close policies ahead of an open pass."""
		if settings.close_pinned_only:
			closed = await self.close_pinned(state)
		else:
			closed = await self.close_opened(state)
		logger.debug("Closed %d previously opened tabs", closed)

		if settings.close_all_before_open:
			await self.host.close_all_tabs()
			# Nothing tracked can still be open after a full close
			state.opened_files.clear()

	async def open_files(
		self,
		repo_root: Path,
		state: RepositoryTrackingState,
		files: list[ChangedFile],
		settings: ResolutionSettings,
		limit: int | None = None,
	) -> int:
		"""
		Open files in order, pinning per change kind, and track what opened.

		A file that fails to open is logged and skipped.

		Args:
			repo_root: Repository root
			state: The repository's tracking state
			files: Files to open
			settings: Settings snapshot (pin flags)
			limit: Stop after this many successful opens; None for no cap

		Returns:
			Number of files opened

		"""
		opened_count = 0
		for file in files:
			if limit is not None and opened_count >= limit:
				break

			file_path = Path(repo_root) / file.path
			try:
				document = await self.host.open_document(file_path)
				user_owned = document.uri not in state.opened_files and any(
					tab.uri == document.uri for tab in self.host.tabs()
				)
				await self.host.show_document(document, preview=False, preserve_focus=False)
			except DocumentOpenError as e:
				logger.info('Skipping non-text file "%s": %s', file.path, e)
				continue

			opened_count += 1
			if user_owned:
				# Shown, but the tab stays the user's: not pinned, not tracked
				logger.debug("Reused existing tab for %s", file.path)
				continue

			should_pin = settings.pin_modified if file.kind is ChangeKind.MODIFIED else settings.pin_added
			if should_pin:
				await self.host.pin_active_document()
			state.opened_files.add(document.uri)

		if opened_count == 0:
			logger.info("No text files were opened.")
		else:
			logger.info("Opened %d changed files", opened_count)
		return opened_count
