"""Per-repository list of files the user never wants opened automatically."""

from __future__ import annotations

from typing import TYPE_CHECKING

from branchtabs.utils.path_utils import normalize_repo_root

if TYPE_CHECKING:
	from pathlib import Path

	from branchtabs.state.store import StateStore

IGNORED_FILES_KEY = "ignored_files_by_repo"


class IgnoredFilesStore:
	"""Reads and edits the ignored-files mapping kept in a StateStore."""

	def __init__(self, store: StateStore) -> None:
		"""Initialize with the backing store."""
		self.store = store

	def _all(self) -> dict[str, list[str]]:
		return self.store.get(IGNORED_FILES_KEY, {}) or {}

	def get(self, repo_root: str | Path) -> set[str]:
		"""
		Return the ignored repo-relative paths for a repository.

		Args:
		    repo_root: Repository root

		Returns:
		    The ignored paths (empty when none are stored)

		"""
		return set(self._all().get(normalize_repo_root(repo_root), []))

	def add(self, repo_root: str | Path, repo_relative_path: str) -> bool:
		"""
		Ignore a path.

		Args:
		    repo_root: Repository root
		    repo_relative_path: Path relative to the repository root

		Returns:
		    False if the path was already ignored

		"""
		all_ignored = self._all()
		repo_key = normalize_repo_root(repo_root)
		ignored_for_repo = set(all_ignored.get(repo_key, []))
		if repo_relative_path in ignored_for_repo:
			return False

		ignored_for_repo.add(repo_relative_path)
		all_ignored[repo_key] = sorted(ignored_for_repo)
		self.store.update(IGNORED_FILES_KEY, all_ignored)
		return True

	def remove(self, repo_root: str | Path, repo_relative_path: str) -> bool:
		"""
		Stop ignoring a path.

		Args:
		    repo_root: Repository root
		    repo_relative_path: Path relative to the repository root

		Returns:
		    False if the path was not ignored

		"""
		all_ignored = self._all()
		repo_key = normalize_repo_root(repo_root)
		ignored_for_repo = set(all_ignored.get(repo_key, []))
		if repo_relative_path not in ignored_for_repo:
			return False

		ignored_for_repo.discard(repo_relative_path)
		if ignored_for_repo:
			all_ignored[repo_key] = sorted(ignored_for_repo)
		else:
			del all_ignored[repo_key]
		self.store.update(IGNORED_FILES_KEY, all_ignored)
		return True
