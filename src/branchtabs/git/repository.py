"""Repository discovery and HEAD inspection backed by pygit2."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pygit2

from branchtabs.git.utils import GitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchInfo:
	"""The checked-out branch and the branch it tracks."""

	name: str | None
	upstream: str | None = None


class GitRepository:
	"""A working copy on disk, read through pygit2."""

	def __init__(self, root: Path, git_dir: Path) -> None:
		"""
		Initialize the repository handle.

		Args:
			root: Working tree root
			git_dir: The repository's git directory (".git" or a worktree's gitdir)

		"""
		self.root = root
		self.git_dir = git_dir

	def __repr__(self) -> str:
		"""Return a short representation for log messages."""
		return f"GitRepository({self.root})"

	@classmethod
	def discover(cls, path: Path | None = None) -> GitRepository:
		"""
		Find the repository containing a path.

		Args:
			path: Any path inside the working tree (defaults to the current directory)

		Returns:
			The repository

		Raises:
			GitError: If the path is not inside a non-bare repository

		"""
		start = (path or Path.cwd()).resolve()
		git_dir = pygit2.discover_repository(str(start))
		if git_dir is None:
			msg = f"Not a git repository: {start}"
			raise GitError(msg)
		repo = pygit2.Repository(git_dir)
		if repo.workdir is None:
			msg = f"Bare repositories have no working tree: {git_dir}"
			raise GitError(msg)
		return cls(Path(repo.workdir).resolve(), Path(repo.path).resolve())

	def head(self) -> BranchInfo:
		"""
		Read the current branch and its upstream.

		The repository is re-opened on every call so the answer reflects the
		state on disk right now.

		Returns:
			The branch info; name is None for a detached or unborn HEAD

		"""
		try:
			repo = pygit2.Repository(str(self.git_dir))
			if repo.head_is_unborn or repo.head_is_detached:
				return BranchInfo(name=None)
			name = repo.head.shorthand
			return BranchInfo(name=name, upstream=self._upstream_of(repo, name))
		except pygit2.GitError:
			logger.warning("Unable to read HEAD for %s", self.root, exc_info=True)
			return BranchInfo(name=None)

	@staticmethod
	def _upstream_of(repo: pygit2.Repository, branch_name: str) -> str | None:
		branch = repo.branches.local.get(branch_name)
		if branch is None:
			return None
		try:
			upstream = branch.upstream
		except (KeyError, ValueError, pygit2.GitError):
			logger.debug("Upstream of %s could not be resolved", branch_name)
			return None
		return upstream.shorthand if upstream is not None else None
