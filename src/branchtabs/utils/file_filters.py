"""Filter stages applied to a branch's changed files before they are opened."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from branchtabs.git.diff import ChangedFile, ChangeKind
from branchtabs.git.utils import GitError, run_git_command
from branchtabs.host.base import DocumentOpenError

if TYPE_CHECKING:
	from collections.abc import Collection, Iterable

	from branchtabs.config.config_schema import ResolutionSettings
	from branchtabs.host.base import DocumentHost

logger = logging.getLogger(__name__)

# JavaScript-style regex flags mapped onto the re module; "g" and "y" have no effect on a search
REGEX_FLAGS = {
	"i": re.IGNORECASE,
	"m": re.MULTILINE,
	"s": re.DOTALL,
	"u": 0,
	"x": re.VERBOSE,
	"g": 0,
	"y": 0,
}

# git check-ignore exits 1 when none of the paths is ignored
CHECK_IGNORE_OK_CODES = (0, 1)


def parse_regex(value: str) -> re.Pattern[str] | None:
	"""
	Compile a user-supplied exclusion pattern.

	Both a bare pattern and a ``/pattern/flags`` form are accepted. Invalid
	patterns are logged and skipped.

	Args:
	    value: The pattern as written in settings

	Returns:
	    The compiled pattern, or None when empty or invalid

	"""
	trimmed = value.strip()
	if not trimmed:
		return None

	pattern = trimmed
	flags = 0
	last_slash = trimmed.rfind("/")
	if trimmed.startswith("/") and last_slash > 0:
		pattern = trimmed[1:last_slash]
		for flag in trimmed[last_slash + 1 :]:
			if flag not in REGEX_FLAGS:
				logger.warning('Invalid regex "%s": unknown flag "%s"', value, flag)
				return None
			flags |= REGEX_FLAGS[flag]

	try:
		return re.compile(pattern, flags)
	except re.error as e:
		logger.warning('Invalid regex "%s": %s', value, e)
		return None


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
	"""Compile every valid pattern, dropping invalid ones."""
	return [regex for regex in (parse_regex(pattern) for pattern in patterns) if regex is not None]


def filter_by_change_kind(files: list[ChangedFile], include_modified: bool, include_added: bool) -> list[ChangedFile]:
	"""
	Keep files whose change kind is enabled.

	Args:
	    files: Candidate files
	    include_modified: Keep modified files
	    include_added: Keep added files

	Returns:
	    The surviving files

	"""
	if include_modified and include_added:
		return files
	if not include_modified and not include_added:
		return []
	wanted = ChangeKind.MODIFIED if include_modified else ChangeKind.ADDED
	return [file for file in files if file.kind is wanted]


def _drop_matching(files: list[ChangedFile], patterns: Iterable[str]) -> list[ChangedFile]:
	compiled = compile_patterns(patterns)
	if not compiled:
		return files
	return [file for file in files if not any(regex.search(file.path) for regex in compiled)]


def filter_excluded_directories(files: list[ChangedFile], directory_patterns: Iterable[str]) -> list[ChangedFile]:
	"""Drop files whose repo-relative path matches a directory exclusion regex."""
	return _drop_matching(files, directory_patterns)


def filter_excluded_files(files: list[ChangedFile], file_patterns: Iterable[str]) -> list[ChangedFile]:
	"""Drop files whose repo-relative path matches a file exclusion regex."""
	return _drop_matching(files, file_patterns)


async def filter_git_ignored(repo_root: Path, files: list[ChangedFile]) -> list[ChangedFile]:
	"""
	Drop files git's own ignore rules exclude.

	All paths go to a single ``git check-ignore -z --stdin`` call. If the
	check fails the files are returned unchanged rather than hidden.

	Args:
	    repo_root: Repository root
	    files: Candidate files

	Returns:
	    The files git does not ignore

	"""
	if not files:
		return files

	stdin = "".join(f"{file.path}\0" for file in files)
	try:
		result = await run_git_command(
			["check-ignore", "-z", "--stdin"],
			repo_root,
			input_text=stdin,
			ok_returncodes=CHECK_IGNORE_OK_CODES,
		)
	except GitError:
		logger.warning("Failed to apply gitignore filters", exc_info=True)
		return files

	if result.returncode == 1:
		return files
	ignored = {entry for entry in result.stdout.split("\0") if entry}
	if not ignored:
		return files
	return [file for file in files if file.path not in ignored]


def filter_workspace_ignored(files: list[ChangedFile], ignored_files: Collection[str]) -> list[ChangedFile]:
	"""Drop files on the user's manual ignore list for this repository."""
	if not ignored_files:
		return files
	return [file for file in files if file.path not in ignored_files]


async def filter_text_files(repo_root: Path, files: list[ChangedFile], host: DocumentHost) -> list[ChangedFile]:
	"""
	Keep files the host can open as text documents.

	Args:
	    repo_root: Repository root
	    files: Candidate files
	    host: Document host used for the open attempt

	Returns:
	    The files that exist and open as text

	"""
	result: list[ChangedFile] = []
	for file in files:
		file_path = repo_root / file.path
		if not await asyncio.to_thread(file_path.is_file):
			continue
		try:
			await host.open_document(file_path)
		except DocumentOpenError as e:
			logger.info('Skipping non-text file "%s": %s', file.path, e)
			continue
		result.append(file)
	return result


@dataclass(frozen=True)
class FilterOutcome:
	"""Files left after filtering, and the stage that emptied the list if any."""

	files: list[ChangedFile]
	stopped_at: str | None = None


class FilterPipeline:
	"""
	Runs the filter stages in a fixed order.

	Each stage sees the previous stage's output. An empty result stops the
	pipeline; the text check runs last because it opens every file.

	"""

	KIND = "change kind"
	DIRECTORIES = "excluded directories"
	FILES = "excluded files"
	GITIGNORE = ".gitignore"
	WORKSPACE_IGNORE = "workspace ignore list"
	TEXT = "text files"

	def __init__(self, repo_root: Path, settings: ResolutionSettings, host: DocumentHost | None = None) -> None:
		"""
		Initialize the pipeline.

		Args:
		    repo_root: Repository root
		    settings: Settings snapshot for this pass
		    host: Document host for the text check; required when text_files_only is set

		"""
		self.repo_root = Path(repo_root)
		self.settings = settings
		self.host = host

	async def run(
		self,
		files: list[ChangedFile],
		ignored_files: Collection[str] = (),
		*,
		text_check: bool = True,
	) -> FilterOutcome:
		"""
		Filter the changed files.

		Args:
		    files: Changed files from the diff (after any author filter)
		    ignored_files: The repository's manual ignore list
		    text_check: Whether to run the text stage when settings enable it

		Returns:
		    The surviving files

		"""
		settings = self.settings
		current = filter_by_change_kind(files, settings.include_modified, settings.include_added)
		if not current:
			return self._stopped(self.KIND)
		logger.info("Changed files found: %d", len(current))

		current = filter_excluded_directories(current, settings.excluded_directories)
		if not current:
			return self._stopped(self.DIRECTORIES)

		current = filter_excluded_files(current, settings.excluded_files)
		if not current:
			return self._stopped(self.FILES)
		logger.info("Files after regex filter: %d", len(current))

		current = await filter_git_ignored(self.repo_root, current)
		if not current:
			return self._stopped(self.GITIGNORE)
		logger.info("Files after .gitignore filter: %d", len(current))

		current = filter_workspace_ignored(current, ignored_files)
		if not current:
			return self._stopped(self.WORKSPACE_IGNORE)
		logger.info("Files after workspace ignore filter: %d", len(current))

		if text_check and settings.text_files_only:
			if self.host is None:
				msg = "A document host is required for the text file check"
				raise ValueError(msg)
			current = await filter_text_files(self.repo_root, current, self.host)
			logger.info("Text files after filter: %d", len(current))
			if not current:
				return self._stopped(self.TEXT)

		return FilterOutcome(files=current)

	@staticmethod
	def _stopped(stage: str) -> FilterOutcome:
		logger.info("All changed files were excluded by the %s filter.", stage)
		return FilterOutcome(files=[], stopped_at=stage)
