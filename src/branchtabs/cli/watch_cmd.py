"""CLI command that watches repositories and opens changed files on branch switches."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import asyncer
import typer

from .cli_types import ConfigOpt, NoInputFlag

logger = logging.getLogger(__name__)

PathsArg = Annotated[
	list[Path] | None,
	typer.Argument(
		help="Paths inside the repositories to watch (defaults to the current directory).",
		exists=True,
		resolve_path=True,
	),
]

ShowChangesFlag = Annotated[
	bool,
	typer.Option("--show-changes", help="Print the changed-file listing whenever it refreshes."),
]


def register_command(app: typer.Typer) -> None:
	"""Register the watch command with the CLI app."""

	@app.command(name="watch")
	@asyncer.runnify
	async def watch_command(
		paths: PathsArg = None,
		show_changes: ShowChangesFlag = False,
		config: ConfigOpt = None,
		no_input: NoInputFlag = False,
	) -> None:
		"""Watch repositories and open the files a branch changed whenever it is checked out."""
		await _watch_command_impl(paths=paths, show_changes=show_changes, config=config, no_input=no_input)


async def _watch_command_impl(
	paths: list[Path] | None = None,
	show_changes: bool = False,
	config: Path | None = None,
	no_input: bool = False,
) -> None:
	"""Track every repository and wait for Ctrl-C."""
	from branchtabs.changes.view import ChangedFilesListing, ListingSnapshot
	from branchtabs.cli.list_cmd import render_listing
	from branchtabs.cli.session import build_session
	from branchtabs.config.config_loader import ConfigError
	from branchtabs.git.repository import GitRepository
	from branchtabs.git.utils import GitError
	from branchtabs.utils.cli_utils import console, exit_with_error, handle_keyboard_interrupt, show_warning
	from branchtabs.watcher.repo_watcher import WorkspaceWatcher

	repositories: list[GitRepository] = []
	for path in paths or [Path.cwd()]:
		try:
			repositories.append(GitRepository.discover(path))
		except GitError as e:
			show_warning(f"Skipping {path}: {e}")
	if not repositories:
		exit_with_error("No git repositories to watch.")
		return

	try:
		session = build_session(Path.cwd(), config, interactive=not no_input)
	except ConfigError as e:
		exit_with_error("Invalid configuration.", exception=e)
		return

	watcher_config = session.config_loader.get.watcher
	workspace = WorkspaceWatcher(
		session.opener,
		lambda _repository: session.settings(),
		lambda repository: session.ignored_files.get(repository.root),
		debounce_delay=watcher_config.branch_debounce_seconds,
	)

	listings: list[ChangedFilesListing] = []
	for repository in repositories:
		repo_watcher = workspace.track(repository)
		if not show_changes:
			continue

		def print_listing(snapshot: ListingSnapshot, repository: GitRepository = repository) -> None:
			if snapshot.error:
				show_warning(snapshot.error)
				return
			console.print(render_listing(f"{repository.root} [{snapshot.branch}]", snapshot))

		listing = ChangedFilesListing(
			repository,
			session.resolver,
			session.settings,
			lambda repository=repository: session.ignored_files.get(repository.root),
			refresh_delay=watcher_config.refresh_debounce_seconds,
			on_updated=print_listing,
		)
		repo_watcher.add_refresh_listener(listing.request_refresh)
		listing.load()
		listings.append(listing)

	console.print(f"Watching {len(repositories)} repositories. Press Ctrl-C to stop.")
	try:
		await workspace.run()
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
	finally:
		for listing in listings:
			listing.cancel()
