"""Asynchronous git command helpers for BranchTabs."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from collections.abc import Sequence
	from pathlib import Path

logger = logging.getLogger(__name__)

GIT_EXECUTABLE = "git"


@dataclass(frozen=True)
class GitCommandResult:
	"""Captured output of a finished git process."""

	stdout: str
	stderr: str
	returncode: int


class GitError(Exception):
	"""Custom exception for Git-related errors."""


def _git_environment() -> dict[str, str]:
	# Skip optional index locks so queries never block a concurrent git operation
	return {**os.environ, "GIT_OPTIONAL_LOCKS": "0"}


async def run_git_command(
	args: Sequence[str],
	cwd: Path | str,
	*,
	input_text: str | None = None,
	ok_returncodes: Sequence[int] = (0,),
) -> GitCommandResult:
	"""
	Run a git command in the repository and return its output.

	Args:
	    args: Arguments passed to git (without the leading "git")
	    cwd: Repository root the command runs in
	    input_text: Optional text written to the process's stdin
	    ok_returncodes: Exit codes that count as success

	Returns:
	    The captured stdout, stderr and exit code

	Raises:
	    GitError: If git cannot be started or exits with a code not in ok_returncodes

	"""
	command = [GIT_EXECUTABLE, *args]
	try:
		process = await asyncio.create_subprocess_exec(
			*command,
			cwd=os.fspath(cwd),
			stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
			stdout=asyncio.subprocess.PIPE,
			stderr=asyncio.subprocess.PIPE,
			env=_git_environment(),
		)
	except OSError as e:
		msg = f"Unable to run {' '.join(command)}: {e}"
		raise GitError(msg) from e

	stdin_bytes = input_text.encode("utf-8") if input_text is not None else None
	stdout_bytes, stderr_bytes = await process.communicate(stdin_bytes)
	result = GitCommandResult(
		stdout=stdout_bytes.decode("utf-8", errors="replace"),
		stderr=stderr_bytes.decode("utf-8", errors="replace"),
		returncode=process.returncode if process.returncode is not None else -1,
	)

	if result.returncode not in ok_returncodes:
		msg = f"Git command failed ({result.returncode}): {' '.join(command)}\nError: {result.stderr.strip()}"
		raise GitError(msg)
	return result


async def does_ref_exist(repo_root: Path | str, ref: str) -> bool:
	"""
	Check whether a ref resolves in the repository.

	A missing or malformed ref is not an error, just a negative answer.

	Args:
	    repo_root: Repository root
	    ref: Branch, tag or other revision name

	Returns:
	    True if git can verify the ref

	"""
	if not ref:
		return False
	try:
		await run_git_command(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], repo_root)
	except GitError:
		logger.debug("Ref %s not found in %s", ref, repo_root)
		return False
	return True


async def get_config_value(repo_root: Path | str, key: str) -> str | None:
	"""
	Read a git config value visible from the repository (local or global).

	Args:
	    repo_root: Repository root
	    key: Config key such as "user.email"

	Returns:
	    The trimmed value, or None when unset or blank

	"""
	try:
		result = await run_git_command(["config", "--get", key], repo_root)
	except GitError:
		return None
	value = result.stdout.strip()
	return value or None
