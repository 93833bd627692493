"""CLI command that prints the changed-file listing for the current branch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import asyncer
import typer
from rich.table import Table

from branchtabs.git.diff import ChangeKind

from .cli_types import ConfigOpt, RepoPathArg

if TYPE_CHECKING:
	from branchtabs.changes.view import ListingSnapshot

logger = logging.getLogger(__name__)

SearchOpt = Annotated[
	str,
	typer.Option("--search", "-s", help="Only list paths containing this text (case-insensitive)."),
]


def render_listing(title: str, snapshot: ListingSnapshot) -> Table:
	"""
	Build a table for a listing snapshot.

	Args:
	    title: Table title
	    snapshot: Listing to show

	Returns:
	    The rich table

	"""
	table = Table(title=title, title_justify="left")
	table.add_column("File", style="cyan")
	table.add_column("Kind")
	table.add_column("Ignored", justify="center")
	for change in snapshot.changes:
		kind_style = "green" if change.file.kind is ChangeKind.ADDED else "yellow"
		table.add_row(
			change.file.path,
			f"[{kind_style}]{change.file.kind.value}[/{kind_style}]",
			"yes" if change.ignored else "",
		)
	return table


def register_command(app: typer.Typer) -> None:
	"""Register the list command with the CLI app."""

	@app.command(name="list")
	@asyncer.runnify
	async def list_command(
		path: RepoPathArg = None,
		search: SearchOpt = "",
		config: ConfigOpt = None,
	) -> None:
		"""List the files changed on the current branch."""
		await _list_command_impl(path=path, search=search, config=config)


async def _list_command_impl(path: Path | None = None, search: str = "", config: Path | None = None) -> None:
	from branchtabs.changes.view import ChangedFilesListing
	from branchtabs.cli.session import build_session, discover_repository
	from branchtabs.config.config_loader import ConfigError
	from branchtabs.utils.cli_utils import console, exit_with_error, show_warning

	repository = discover_repository(path)
	try:
		session = build_session(repository.root, config, interactive=False)
	except ConfigError as e:
		exit_with_error("Invalid configuration.", exception=e)
		return

	listing = ChangedFilesListing(
		repository,
		session.resolver,
		session.settings,
		lambda: session.ignored_files.get(repository.root),
		search=search,
	)
	snapshot = await listing.load()
	if snapshot.error:
		exit_with_error(snapshot.error)
		return
	if not snapshot.changes:
		show_warning(f"No changes to list ({snapshot.resolution.status.value}).")
		return

	base = snapshot.resolution.base_ref
	console.print(render_listing(f"{snapshot.branch} vs {base}", snapshot))
