"""Tests for parsing git diff --name-status output."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from branchtabs.git.diff import (
	ChangedFile,
	ChangeKind,
	get_changed_files,
	parse_name_status,
	parse_name_status_output,
)
from branchtabs.git.utils import GitCommandResult, GitError


@pytest.mark.unit
@pytest.mark.git
class TestParseNameStatus:
	"""Single-line parsing."""

	@pytest.mark.parametrize("status", ["R100", "R075", "C100", "C050", "R"])
	def test_rename_and_copy_use_destination(self, status: str) -> None:
		"""Renames and copies report the new path as modified."""
		entry = parse_name_status(f"{status}\tsrc/old.py\tsrc/new.py")

		assert entry == ChangedFile(path="src/new.py", kind=ChangeKind.MODIFIED)

	def test_added(self) -> None:
		"""A is an added file."""
		assert parse_name_status("A\tdocs/new.md") == ChangedFile(path="docs/new.md", kind=ChangeKind.ADDED)

	def test_modified(self) -> None:
		"""M is a modified file."""
		assert parse_name_status("M\tsrc/a.ts") == ChangedFile(path="src/a.ts", kind=ChangeKind.MODIFIED)

	@pytest.mark.parametrize("line", ["D\told.txt", "T\tlink", "U\tconflict.py", "X\tweird", "AM\tfile.py"])
	def test_other_statuses_are_dropped(self, line: str) -> None:
		"""Deletions, type changes and unknown codes produce nothing."""
		assert parse_name_status(line) is None

	@pytest.mark.parametrize("line", ["", "   ", "M", "A\t", "R100\tonly-source.py", "C100\tsrc.py\t"])
	def test_missing_fields_are_dropped(self, line: str) -> None:
		"""Lines without the fields their status needs produce nothing."""
		assert parse_name_status(line) is None

	def test_paths_with_spaces(self) -> None:
		"""Only tabs separate fields."""
		entry = parse_name_status("M\tdocs/my notes.md")

		assert entry is not None
		assert entry.path == "docs/my notes.md"


@pytest.mark.unit
@pytest.mark.git
class TestParseNameStatusOutput:
	"""Whole-output parsing."""

	def test_mixed_output(self) -> None:
		"""Deleted files are never considered and order is kept."""
		output = "M\tsrc/a.ts\nA\tdocs/new.md\nD\told.txt\n"

		assert parse_name_status_output(output) == [
			ChangedFile(path="src/a.ts", kind=ChangeKind.MODIFIED),
			ChangedFile(path="docs/new.md", kind=ChangeKind.ADDED),
		]

	def test_blank_lines_skipped(self) -> None:
		"""Blank and whitespace-only lines are ignored."""
		output = "\n  \nM\ta.py\n\n"

		assert parse_name_status_output(output) == [ChangedFile(path="a.py", kind=ChangeKind.MODIFIED)]

	def test_first_record_per_path_wins(self) -> None:
		"""A path reported twice keeps its first record."""
		output = "A\tsame.py\nR100\tother.py\tsame.py\n"

		assert parse_name_status_output(output) == [ChangedFile(path="same.py", kind=ChangeKind.ADDED)]

	def test_nul_separated_output(self) -> None:
		"""-z output keeps unquoted paths, tabs included, and rename destinations."""
		output = "M\0café.txt\0R087\0old name.py\0new\tname.py\0D\0gone.txt\0A\0docs/new.md\0"

		assert parse_name_status_output(output) == [
			ChangedFile(path="café.txt", kind=ChangeKind.MODIFIED),
			ChangedFile(path="new\tname.py", kind=ChangeKind.MODIFIED),
			ChangedFile(path="docs/new.md", kind=ChangeKind.ADDED),
		]

	def test_nul_separated_truncated_rename(self) -> None:
		"""A rename cut off before its destination is skipped."""
		assert parse_name_status_output("A\0a.py\0R100\0b.py\0") == [ChangedFile(path="a.py", kind=ChangeKind.ADDED)]


@pytest.mark.unit
@pytest.mark.git
class TestGetChangedFiles:
	"""Diff retrieval."""

	@pytest.mark.asyncio
	async def test_uses_three_dot_diff(self) -> None:
		"""The branch is diffed from its merge base with the base ref."""
		result = GitCommandResult(stdout="M\0a.py\0", stderr="", returncode=0)
		with patch("branchtabs.git.diff.run_git_command", AsyncMock(return_value=result)) as mock_run:
			files = await get_changed_files("/repo", "main", "feature-1")

		assert files == [ChangedFile(path="a.py", kind=ChangeKind.MODIFIED)]
		assert mock_run.call_args[0][0] == ["diff", "--name-status", "-z", "main...feature-1"]
		assert mock_run.call_args[0][1] == "/repo"

	@pytest.mark.asyncio
	async def test_git_failure_returns_empty(self) -> None:
		"""A failed diff yields no files instead of raising."""
		with patch("branchtabs.git.diff.run_git_command", AsyncMock(side_effect=GitError("boom"))):
			assert await get_changed_files("/repo", "main", "feature-1") == []
