"""Pydantic schemas for BranchTabs configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ResolutionSettings(BaseModel):
	"""
	Immutable settings snapshot used for one changed-file resolution pass.

	Built once per pass from the merged configuration and never mutated while
	the pipeline runs.

	"""

	model_config = ConfigDict(frozen=True, extra="forbid")

	# Branches that never trigger an open pass
	excluded_branches: tuple[str, ...] = ("main", "master")
	# Base ref to diff against; empty means "work it out"
	base_branch: str = ""
	include_modified: bool = True
	include_added: bool = True
	pin_modified: bool = True
	pin_added: bool = True
	# Regexes matched against repo-relative paths, "pattern" or "/pattern/flags"
	excluded_files: tuple[str, ...] = ()
	excluded_directories: tuple[str, ...] = ()
	text_files_only: bool = True
	# Zero or negative means unlimited
	max_files_to_open: int = 10
	close_all_before_open: bool = True
	close_pinned_only: bool = False
	close_all_on_excluded_branch: bool = True
	only_current_author: bool = False
	prompt_on_new_repository: bool = True
	disabled_repositories: tuple[str, ...] = ()


class WatcherConfigSchema(BaseModel):
	"""Debounce timings for repository notifications."""

	model_config = ConfigDict(extra="forbid")

	branch_debounce_seconds: float = Field(default=0.2, ge=0)
	refresh_debounce_seconds: float = Field(default=0.75, ge=0)


class StorageConfigSchema(BaseModel):
	"""Where persisted state (ignored files, repository decisions) lives."""

	model_config = ConfigDict(extra="forbid")

	state_file: Path | None = None


class AppConfigSchema(BaseModel):
	"""Top-level configuration document."""

	model_config = ConfigDict(extra="forbid")

	settings: ResolutionSettings = Field(default_factory=ResolutionSettings)
	watcher: WatcherConfigSchema = Field(default_factory=WatcherConfigSchema)
	storage: StorageConfigSchema = Field(default_factory=StorageConfigSchema)
