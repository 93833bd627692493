"""CLI command for a one-shot open pass on the current branch."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncer
import typer

from .cli_types import ConfigOpt, NoInputFlag, RepoPathArg

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
	"no_branch": "No branch is checked out.",
	"excluded_branch": "The current branch is excluded by settings.",
	"disabled": "BranchTabs is disabled for this repository.",
	"no_base_ref": "No base ref found to compare against.",
	"no_changes": "No changed files found for the branch.",
	"not_owned": "None of the changed files were last changed by you.",
	"filtered_out": "Every changed file was filtered out.",
	"declined": "Open cancelled.",
}


def register_command(app: typer.Typer) -> None:
	"""Register the open command with the CLI app."""

	@app.command(name="open")
	@asyncer.runnify
	async def open_command(
		path: RepoPathArg = None,
		config: ConfigOpt = None,
		no_input: NoInputFlag = False,
	) -> None:
		"""Open the files changed on the current branch, ignoring per-repository opt-outs."""
		await _open_command_impl(path=path, config=config, no_input=no_input)


async def _open_command_impl(
	path: Path | None = None,
	config: Path | None = None,
	no_input: bool = False,
) -> None:
	"""Run one open pass with heavy imports deferred."""
	from branchtabs.changes.resolver import ResolutionStatus
	from branchtabs.cli.session import build_session, discover_repository
	from branchtabs.config.config_loader import ConfigError
	from branchtabs.state.repo_state import RepositoryStateStore
	from branchtabs.utils.cli_utils import console, exit_with_error, handle_keyboard_interrupt, show_warning

	repository = discover_repository(path)
	try:
		session = build_session(repository.root, config, interactive=not no_input)
		state = RepositoryStateStore().ensure(repository.root)
		async with state.lock:
			resolution = await session.opener.open_for_repository(
				repository,
				state,
				session.settings(),
				session.ignored_files.get(repository.root),
				ignore_enablement=True,
			)
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
		return
	except ConfigError as e:
		exit_with_error("Invalid configuration.", exception=e)
		return

	if resolution.status is ResolutionStatus.READY:
		console.print(f"[bold]{len(state.opened_files)}[/bold] files open against [cyan]{resolution.base_ref}[/cyan]")
		return
	show_warning(STATUS_MESSAGES.get(resolution.status.value, resolution.status.value))
