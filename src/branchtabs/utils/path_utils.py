"""Utilities for handling repository paths."""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Filesystems on these platforms compare paths case-insensitively by default
CASE_INSENSITIVE_PLATFORMS = ("win32", "cygwin", "darwin")


def is_case_insensitive_platform() -> bool:
	"""Return True when the current platform's default filesystem ignores case."""
	return sys.platform.startswith(CASE_INSENSITIVE_PLATFORMS)


def normalize_repo_root(repo_root: str | Path) -> str:
	"""
	Normalize a repository root into the key used by per-repository stores.

	The path is made absolute and normalized; on platforms with
	case-insensitive filesystems it is also case-folded so that two spellings
	of the same directory share one entry.

	Args:
	    repo_root: Repository root directory

	Returns:
	    The normalized key

	"""
	normalized = os.path.normpath(os.path.abspath(os.fspath(repo_root)))
	if is_case_insensitive_platform():
		return normalized.casefold()
	return normalized


def to_repo_relative(repo_root: Path, file_path: Path) -> str | None:
	"""
	Convert an absolute file path to a POSIX path relative to the repository.

	Args:
	    repo_root: Repository root directory
	    file_path: File inside the repository

	Returns:
	    The repo-relative path, or None when the file lies outside the repository

	"""
	try:
		relative = file_path.resolve().relative_to(repo_root.resolve())
	except ValueError:
		return None
	return relative.as_posix()
