"""Changed-file discovery between a branch and its base ref."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from branchtabs.git.utils import GitError, does_ref_exist, run_git_command

if TYPE_CHECKING:
	from collections.abc import Iterator
	from pathlib import Path

logger = logging.getLogger(__name__)

# Fallback base branches, tried in order when nothing better is configured
DEFAULT_BASE_BRANCHES = ("main", "master")

_FIELD_SEPARATOR = re.compile(r"\t+")


class ChangeKind(str, Enum):
	"""How a file differs from the base ref."""

	MODIFIED = "modified"
	ADDED = "added"


@dataclass(frozen=True)
class ChangedFile:
	"""A repo-relative path and how it changed."""

	path: str
	kind: ChangeKind


def _to_changed_file(status: str, paths: list[str]) -> ChangedFile | None:
	if status.startswith(("R", "C")):
		if len(paths) < 2 or not paths[1]:  # noqa: PLR2004
			return None
		return ChangedFile(path=paths[1], kind=ChangeKind.MODIFIED)

	if not paths or not paths[0]:
		return None

	if status == "A":
		return ChangedFile(path=paths[0], kind=ChangeKind.ADDED)
	if status == "M":
		return ChangedFile(path=paths[0], kind=ChangeKind.MODIFIED)
	return None


def parse_name_status(line: str) -> ChangedFile | None:
	"""
	Parse one line of ``git diff --name-status`` output.

	Renames and copies report the destination path and count as modified.
	Plain adds and modifications keep their single path. Every other status
	(deletions, type changes, unmerged entries) is dropped, as is any line
	missing the fields its status requires.

	Args:
	    line: A line in ``<status>\\t<path>[\\t<new path>]`` form

	Returns:
	    The parsed record, or None if the line should be skipped

	"""
	parts = _FIELD_SEPARATOR.split(line.strip())
	status = parts[0] if parts else ""
	if not status:
		return None
	return _to_changed_file(status, parts[1:])


def _nul_records(output: str) -> Iterator[tuple[str, list[str]]]:
	# -z output: status, then one path (two for renames and copies), each NUL terminated
	tokens = output.split("\0")
	index = 0
	while index < len(tokens):
		status = tokens[index].strip()
		index += 1
		if not status:
			continue
		path_count = 2 if status.startswith(("R", "C")) else 1
		yield status, tokens[index : index + path_count]
		index += path_count


def parse_name_status_output(output: str) -> list[ChangedFile]:
	"""
	Parse full ``--name-status`` output, keeping the first record per path.

	Both the ``-z`` form, whose paths are never quoted, and the
	newline-delimited form are accepted.

	Args:
	    output: Diff status output

	Returns:
	    Changed files in diff order

	"""
	if "\0" in output:
		entries = (_to_changed_file(status, paths) for status, paths in _nul_records(output))
	else:
		entries = (parse_name_status(line) for line in output.splitlines() if line.strip())

	files: list[ChangedFile] = []
	seen: set[str] = set()
	for entry in entries:
		if entry is None or entry.path in seen:
			continue
		seen.add(entry.path)
		files.append(entry)
	return files


async def get_changed_files(repo_root: Path | str, base_ref: str, head_ref: str) -> list[ChangedFile]:
	"""
	List files changed on head since it diverged from base.

	Args:
	    repo_root: Repository root
	    base_ref: Ref to diff against
	    head_ref: Branch being inspected

	Returns:
	    Changed files, or an empty list if git fails

	"""
	try:
		result = await run_git_command(["diff", "--name-status", "-z", f"{base_ref}...{head_ref}"], repo_root)
	except GitError:
		logger.warning("Failed to diff %s...%s", base_ref, head_ref, exc_info=True)
		return []
	return parse_name_status_output(result.stdout)


def tracks_same_branch(upstream: str, current_branch: str | None) -> bool:
	"""Return True if an upstream is just the remote copy of the current branch."""
	if not current_branch:
		return False
	return upstream == current_branch or upstream.endswith(f"/{current_branch}")


async def resolve_base_ref(
	repo_root: Path | str,
	configured_base: str,
	current_branch: str | None,
	upstream: str | None,
) -> str | None:
	"""
	Pick the ref the current branch should be diffed against.

	Candidates, first existing one wins: the configured base, the branch's
	upstream (unless it tracks the same branch name), ``main``, ``master``.

	Args:
	    repo_root: Repository root
	    configured_base: Base branch from settings, possibly empty
	    current_branch: Checked-out branch name
	    upstream: Upstream tracking ref of the branch, if any

	Returns:
	    The base ref, or None if no candidate exists

	"""
	configured_ref = (configured_base or "").strip()
	if configured_ref:
		if await does_ref_exist(repo_root, configured_ref):
			return configured_ref
		logger.info('Configured base ref "%s" not found. Falling back.', configured_ref)

	upstream_ref = (upstream or "").strip()
	if (
		upstream_ref
		and not tracks_same_branch(upstream_ref, current_branch)
		and await does_ref_exist(repo_root, upstream_ref)
	):
		return upstream_ref

	for candidate in DEFAULT_BASE_BRANCHES:
		if await does_ref_exist(repo_root, candidate):
			return candidate

	return None
