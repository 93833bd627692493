"""CLI commands that edit the per-repository ignore list."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer

from .cli_types import ConfigOpt

logger = logging.getLogger(__name__)

RepoArg = Annotated[
	Path,
	typer.Argument(help="Path inside the repository.", exists=True, resolve_path=True),
]

FileArg = Annotated[
	str,
	typer.Argument(help="File to (un)ignore, absolute or relative to the repository root."),
]


def resolve_repo_file(repo_root: Path, file: str) -> str | None:
	"""Return the repo-relative POSIX path for a file argument, or None if it is outside the repository."""
	from branchtabs.utils.path_utils import to_repo_relative

	candidate = Path(file)
	if candidate.is_absolute():
		return to_repo_relative(repo_root, candidate)
	return to_repo_relative(repo_root, repo_root / candidate)


def _edit_ignore_list(repo_path: Path, file: str, config: Path | None, *, ignore: bool) -> None:
	from branchtabs.cli.session import build_session, discover_repository
	from branchtabs.utils.cli_utils import console, exit_with_error, show_warning

	repository = discover_repository(repo_path)
	relative = resolve_repo_file(repository.root, file)
	if relative is None:
		exit_with_error(f"{file} is not inside {repository.root}")
		return

	ignored_files = build_session(repository.root, config, interactive=False).ignored_files
	if ignore:
		changed = ignored_files.add(repository.root, relative)
	else:
		changed = ignored_files.remove(repository.root, relative)

	if not changed:
		show_warning(f"{relative} is {'already' if ignore else 'not'} ignored.")
		return
	verb = "Ignoring" if ignore else "No longer ignoring"
	console.print(f"{verb} [cyan]{relative}[/cyan] in {repository.root}")


def register_command(app: typer.Typer) -> None:
	"""Register the ignore and unignore commands with the CLI app."""

	@app.command(name="ignore")
	def ignore_command(repo: RepoArg, file: FileArg, config: ConfigOpt = None) -> None:
		"""Never open FILE automatically in the repository at REPO."""
		_edit_ignore_list(repo, file, config, ignore=True)

	@app.command(name="unignore")
	def unignore_command(repo: RepoArg, file: FileArg, config: ConfigOpt = None) -> None:
		"""Remove FILE from the repository's ignore list."""
		_edit_ignore_list(repo, file, config, ignore=False)
