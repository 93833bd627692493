"""One complete open pass for a repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from branchtabs.changes.resolver import Resolution, ResolutionStatus

if TYPE_CHECKING:
	from collections.abc import Collection

	from branchtabs.changes.resolver import ChangedFileResolver
	from branchtabs.changes.tabs import TabReconciler
	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.git.repository import GitRepository
	from branchtabs.state.enablement import RepositoryEnablement
	from branchtabs.state.repo_state import RepositoryTrackingState

logger = logging.getLogger(__name__)


class ChangedFilesOpener:
	"""Resolves a branch's changed files and swaps the editor's tracked tabs for them."""

	def __init__(
		self,
		resolver: ChangedFileResolver,
		reconciler: TabReconciler,
		enablement: RepositoryEnablement | None = None,
	) -> None:
		"""
		Initialize the opener.

		Args:
			resolver: Produces the files to open
			reconciler: Closes old tabs and opens new ones
			enablement: Per-repository opt-out; None treats every repository as enabled

		"""
		self.resolver = resolver
		self.reconciler = reconciler
		self.enablement = enablement

	async def open_for_repository(
		self,
		repository: GitRepository,
		state: RepositoryTrackingState,
		settings: ResolutionSettings,
		ignored_files: Collection[str] = (),
		*,
		ignore_enablement: bool = False,
	) -> Resolution:
		"""
		Run an open pass for the repository's current branch.

		Callers that may overlap must hold ``state.lock``; the watcher does.

		Args:
			repository: Repository to inspect
			state: Its tracking state
			settings: Settings snapshot for this pass
			ignored_files: The repository's manual ignore list
			ignore_enablement: Skip the per-repository opt-out check

		Returns:
			The resolution that drove the pass

		"""
		head = repository.head()
		if head.name and head.name in settings.excluded_branches:
			logger.info('Branch "%s" excluded.', head.name)
			return Resolution(status=ResolutionStatus.EXCLUDED_BRANCH)

		if (
			not ignore_enablement
			and self.enablement is not None
			and not await self.enablement.is_enabled(repository.root, settings)
		):
			logger.info("Repository disabled by user: %s", repository.root)
			return Resolution(status=ResolutionStatus.DISABLED)

		resolution = await self.resolver.resolve(repository.root, head, settings, ignored_files)
		if not resolution.ready:
			return resolution

		await self.reconciler.close_before_open(state, settings)
		await self.reconciler.open_files(repository.root, state, resolution.files, settings, resolution.limit)
		return resolution
