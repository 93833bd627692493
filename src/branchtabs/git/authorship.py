"""Narrow changed files to the ones last committed by the current git identity."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from branchtabs.git.utils import GitError, get_config_value, run_git_command

if TYPE_CHECKING:
	from collections.abc import Collection, Sequence
	from pathlib import Path

	from branchtabs.git.diff import ChangedFile

logger = logging.getLogger(__name__)

AUTHOR_MARKER = "__BCT_AUTHOR__"
AUTHOR_LOG_FORMAT = f"--format={AUTHOR_MARKER}%x00%ae%x00%an"


def normalize_identity(value: str | None) -> str:
	"""Trim and case-fold an identity field for comparison."""
	return (value or "").strip().lower()


@dataclass(frozen=True)
class GitAuthor:
	"""A commit author or the configured user identity."""

	email: str | None = None
	name: str | None = None

	def matches(self, expected: GitAuthor) -> bool:
		"""
		Check whether this author is the expected identity.

		Email decides whenever the expected identity has one; name is only
		consulted when it does not.

		Args:
			expected: The identity to compare against (usually the current user)

		Returns:
			True when the identities match

		"""
		expected_email = normalize_identity(expected.email)
		if expected_email:
			return normalize_identity(self.email) == expected_email

		expected_name = normalize_identity(expected.name)
		if expected_name:
			return normalize_identity(self.name) == expected_name

		return False


async def get_current_author(repo_root: Path | str) -> GitAuthor | None:
	"""
	Read the active identity from git config.

	Args:
	    repo_root: Repository root

	Returns:
	    The identity, or None if neither user.email nor user.name is set

	"""
	email, name = await asyncio.gather(
		get_config_value(repo_root, "user.email"),
		get_config_value(repo_root, "user.name"),
	)
	if not email and not name:
		return None
	return GitAuthor(email=email, name=name)


def parse_author_log(output: str, wanted: Collection[str]) -> dict[str, GitAuthor]:
	"""
	Map each wanted path to the author of the newest commit touching it.

	The input is NUL-delimited ``git log -z --name-only`` output where each
	commit starts with the author marker followed by email and name.

	Args:
	    output: Raw log output, newest commit first
	    wanted: Paths to attribute

	Returns:
	    Author per path for every wanted path that appears in the log

	"""
	wanted_set = set(wanted)
	result: dict[str, GitAuthor] = {}
	if not wanted_set:
		return result

	# The header and the first path may be separated by a newline rather than a NUL
	tokens = [part for token in output.split("\0") for part in token.split("\n")]
	current: GitAuthor | None = None
	index = 0
	while index < len(tokens):
		stripped = tokens[index].strip()
		if stripped == AUTHOR_MARKER:
			email = tokens[index + 1].strip() if index + 1 < len(tokens) else ""
			name = tokens[index + 2].strip() if index + 2 < len(tokens) else ""
			current = GitAuthor(email=email, name=name)
			index += 3
			continue

		index += 1
		if current is None or not stripped or stripped not in wanted_set or stripped in result:
			continue
		result[stripped] = current
		if len(result) == len(wanted_set):
			break

	return result


async def get_latest_author_by_path(
	repo_root: Path | str, ref: str, paths: Sequence[str]
) -> dict[str, GitAuthor]:
	"""
	Find the most recent author of each path in the history of ref.

	Args:
	    repo_root: Repository root
	    ref: Branch whose history is searched
	    paths: Repo-relative paths

	Returns:
	    Author per path

	Raises:
	    GitError: If the history query fails

	"""
	if not paths:
		return {}
	result = await run_git_command(
		["log", AUTHOR_LOG_FORMAT, "-z", "--name-only", ref, "--", *paths],
		repo_root,
	)
	return parse_author_log(result.stdout, paths)


async def filter_by_current_author(
	repo_root: Path | str, head_ref: str, files: list[ChangedFile]
) -> list[ChangedFile]:
	"""
	Keep only files whose latest commit on head_ref is by the current user.

	This filter fails closed: an unknown identity or a failed history query
	yields no files rather than all of them.

	Args:
	    repo_root: Repository root
	    head_ref: Branch being inspected
	    files: Candidate changed files

	Returns:
	    The files owned by the current author

	"""
	if not files:
		return files

	current_author = await get_current_author(repo_root)
	if current_author is None:
		logger.warning("Current git author could not be determined; author filter produced no files.")
		return []

	try:
		author_by_path = await get_latest_author_by_path(repo_root, head_ref, [file.path for file in files])
	except GitError:
		logger.warning("Failed to apply author filter", exc_info=True)
		return []

	filtered = [
		file
		for file in files
		if (author := author_by_path.get(file.path)) is not None and author.matches(current_author)
	]
	logger.info("Files after author filter: %d of %d match current author.", len(filtered), len(files))
	return filtered
