"""Work out which files a branch switch should open."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from branchtabs.git.authorship import filter_by_current_author
from branchtabs.git.diff import get_changed_files, resolve_base_ref
from branchtabs.utils.file_filters import FilterPipeline

if TYPE_CHECKING:
	from collections.abc import Collection

	from branchtabs.config.config_loader import ConfigLoader, ConfigScope
	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.git.diff import ChangedFile
	from branchtabs.git.repository import BranchInfo
	from branchtabs.host.base import DocumentHost

logger = logging.getLogger(__name__)

MAX_FILES_KEY = "settings.max_files_to_open"


class ResolutionStatus(str, Enum):
	"""Why a resolution pass ended the way it did."""

	READY = "ready"
	NO_BRANCH = "no_branch"
	EXCLUDED_BRANCH = "excluded_branch"
	DISABLED = "disabled"
	NO_BASE_REF = "no_base_ref"
	NO_CHANGES = "no_changes"
	NOT_OWNED = "not_owned"
	FILTERED_OUT = "filtered_out"
	DECLINED = "declined"


@dataclass(frozen=True)
class Resolution:
	"""
	Result of resolving a branch's changed files.

	Attributes:
		status: Outcome of the pass
		files: Files to open, in diff order (empty unless status is READY)
		base_ref: Ref the branch was diffed against
		limit: Maximum number of files to open, None for unlimited
		stopped_at: Filter stage that removed the last file, if any

	"""

	status: ResolutionStatus
	files: list[ChangedFile] = field(default_factory=list)
	base_ref: str | None = None
	limit: int | None = None
	stopped_at: str | None = None

	@property
	def ready(self) -> bool:
		"""True when there are files to open."""
		return self.status is ResolutionStatus.READY


@dataclass(frozen=True)
class ListedChange:
	"""A changed file shown in the read-only listing."""

	file: ChangedFile
	ignored: bool


class LimitPrompt(Protocol):
	"""Asks what to do when more files changed than the configured maximum."""

	async def confirm_open(self, total: int, limit: int) -> bool:
		"""Return True to open up to limit files, False to cancel the pass."""
		...

	async def ask_new_limit(self, current: int) -> tuple[ConfigScope, int] | None:
		"""Return a scope and a new maximum to persist, or None to keep it."""
		...


class LimitGate:
	"""Confirms large open passes instead of silently truncating them."""

	def __init__(self, prompt: LimitPrompt | None = None, config_loader: ConfigLoader | None = None) -> None:
		"""
		Initialize the gate.

		Args:
			prompt: Asks the user; without one, oversized passes open up to the limit
			config_loader: Persists a new maximum when the user picks one

		"""
		self.prompt = prompt
		self.config_loader = config_loader

	@staticmethod
	def effective_limit(max_files_to_open: int) -> int | None:
		"""Return the cap to apply, None when the maximum means unlimited."""
		return max_files_to_open if max_files_to_open > 0 else None

	async def check(self, total: int, max_files_to_open: int) -> bool:
		"""
		Decide whether an open pass of total files may go ahead.

		Args:
			total: Number of files that survived filtering
			max_files_to_open: Configured maximum

		Returns:
			False if the user cancelled the pass

		"""
		limit = self.effective_limit(max_files_to_open)
		if limit is None or total <= limit:
			return True

		logger.info("Limit exceeded: %d files exceeds max_files_to_open=%d", total, limit)
		if self.prompt is None:
			logger.warning(
				"%d files changed but max_files_to_open is %d; opening the first %d and skipping %d.",
				total,
				limit,
				limit,
				total - limit,
			)
			return True
		if not await self.prompt.confirm_open(total, limit):
			logger.info("Open cancelled by user.")
			return False

		new_limit = await self.prompt.ask_new_limit(limit)
		if new_limit is not None and self.config_loader is not None:
			scope, value = new_limit
			self.config_loader.update_value(MAX_FILES_KEY, value, scope)
		return True


class ChangedFileResolver:
	"""Runs base-ref resolution, the diff, the author filter, the filter pipeline and the limit gate."""

	def __init__(self, host: DocumentHost | None = None, limit_gate: LimitGate | None = None) -> None:
		"""
		Initialize the resolver.

		Args:
			host: Document host used by the text-file check
			limit_gate: Gate applied to oversized results

		"""
		self.host = host
		self.limit_gate = limit_gate or LimitGate()

	async def _branch_changes(
		self, repo_root: Path, head: BranchInfo, settings: ResolutionSettings
	) -> tuple[Resolution | None, str | None, list[ChangedFile]]:
		if not head.name:
			logger.info("No active branch. Skipping diff.")
			return Resolution(status=ResolutionStatus.NO_BRANCH), None, []

		base_ref = await resolve_base_ref(repo_root, settings.base_branch, head.name, head.upstream)
		if base_ref is None:
			logger.info("No base ref found. Skipping diff.")
			return Resolution(status=ResolutionStatus.NO_BASE_REF), None, []
		logger.info("Using base ref: %s", base_ref)

		changed_files = await get_changed_files(repo_root, base_ref, head.name)
		if not changed_files:
			logger.info("No changed files found for branch diff.")
			return Resolution(status=ResolutionStatus.NO_CHANGES, base_ref=base_ref), base_ref, []

		if settings.only_current_author:
			changed_files = await filter_by_current_author(repo_root, head.name, changed_files)
			if not changed_files:
				logger.info("No changes owned by the current git author.")
				return Resolution(status=ResolutionStatus.NOT_OWNED, base_ref=base_ref), base_ref, []

		return None, base_ref, changed_files

	async def resolve(
		self,
		repo_root: Path,
		head: BranchInfo,
		settings: ResolutionSettings,
		ignored_files: Collection[str] = (),
	) -> Resolution:
		"""
		Resolve the files to open for the checked-out branch.

		Args:
			repo_root: Repository root
			head: Current branch and upstream
			settings: Settings snapshot for this pass
			ignored_files: The repository's manual ignore list

		Returns:
			The resolution; only a READY resolution carries files

		"""
		repo_root = Path(repo_root)
		early, base_ref, changed_files = await self._branch_changes(repo_root, head, settings)
		if early is not None:
			return early

		outcome = await FilterPipeline(repo_root, settings, self.host).run(changed_files, ignored_files)
		if not outcome.files:
			return Resolution(status=ResolutionStatus.FILTERED_OUT, base_ref=base_ref, stopped_at=outcome.stopped_at)

		if not await self.limit_gate.check(len(outcome.files), settings.max_files_to_open):
			return Resolution(status=ResolutionStatus.DECLINED, base_ref=base_ref)

		return Resolution(
			status=ResolutionStatus.READY,
			files=outcome.files,
			base_ref=base_ref,
			limit=self.limit_gate.effective_limit(settings.max_files_to_open),
		)

	async def list_changes(
		self,
		repo_root: Path,
		head: BranchInfo,
		settings: ResolutionSettings,
		ignored_files: Collection[str] = (),
		search: str = "",
	) -> tuple[Resolution, list[ListedChange]]:
		"""
		Collect the changes shown in the read-only listing.

		Ignored files stay in the listing, flagged, so they can be un-ignored.
		No text check and no limit apply.

		Args:
			repo_root: Repository root
			head: Current branch and upstream
			settings: Settings snapshot
			ignored_files: The repository's manual ignore list
			search: Case-insensitive substring the path must contain

		Returns:
			The resolution status and the listed changes

		"""
		repo_root = Path(repo_root)
		if head.name and head.name in settings.excluded_branches:
			logger.info('Branch "%s" excluded by settings.', head.name)
			return Resolution(status=ResolutionStatus.EXCLUDED_BRANCH), []

		early, base_ref, changed_files = await self._branch_changes(repo_root, head, settings)
		if early is not None:
			return early, []

		outcome = await FilterPipeline(repo_root, settings, self.host).run(changed_files, text_check=False)
		query = search.strip().lower()
		files = [file for file in outcome.files if query in file.path.lower()] if query else outcome.files
		if not files:
			return Resolution(status=ResolutionStatus.FILTERED_OUT, base_ref=base_ref, stopped_at=outcome.stopped_at), []

		listed = [ListedChange(file=file, ignored=file.path in ignored_files) for file in files]
		return Resolution(status=ResolutionStatus.READY, files=files, base_ref=base_ref), listed
