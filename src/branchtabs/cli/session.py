"""Wiring shared by the commands: configuration, persisted state and the opener."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from branchtabs.changes import ChangedFileResolver, ChangedFilesOpener, LimitGate, TabReconciler
from branchtabs.config.config_loader import ConfigLoader
from branchtabs.git.repository import GitRepository
from branchtabs.git.utils import GitError
from branchtabs.host.console import ConsoleDocumentHost
from branchtabs.state import IgnoredFilesStore, RepositoryEnablement, StateStore
from branchtabs.utils.cli_utils import QuestionaryPrompter, console, exit_with_error

if TYPE_CHECKING:
	from branchtabs.config.config_schema import ResolutionSettings

logger = logging.getLogger(__name__)


@dataclass
class Session:
	"""Everything a command needs, built once per invocation."""

	config_loader: ConfigLoader
	state_store: StateStore
	ignored_files: IgnoredFilesStore
	enablement: RepositoryEnablement
	host: ConsoleDocumentHost
	resolver: ChangedFileResolver
	opener: ChangedFilesOpener

	def settings(self) -> ResolutionSettings:
		"""Re-read configuration and return the settings snapshot for one pass."""
		self.config_loader.reload_config()
		return self.config_loader.resolution_settings()


def build_session(workspace_root: Path, config_file: Path | None = None, *, interactive: bool = True) -> Session:
	"""
	Build the collaborators for a command.

	Args:
	    workspace_root: Directory whose workspace configuration applies
	    config_file: Explicit configuration file, if any
	    interactive: Whether questions may be asked on the terminal

	Returns:
	    The session

	"""
	config_loader = ConfigLoader(config_file=config_file, repo_root=workspace_root)
	state_store = StateStore(config_loader.get.storage.state_file)
	prompter = QuestionaryPrompter() if interactive else None

	host = ConsoleDocumentHost(console)
	resolver = ChangedFileResolver(host, LimitGate(prompter, config_loader))
	enablement = RepositoryEnablement(state_store, prompter, config_loader)
	opener = ChangedFilesOpener(resolver, TabReconciler(host), enablement)
	return Session(
		config_loader=config_loader,
		state_store=state_store,
		ignored_files=IgnoredFilesStore(state_store),
		enablement=enablement,
		host=host,
		resolver=resolver,
		opener=opener,
	)


def discover_repository(path: Path | None) -> GitRepository:
	"""Find the repository containing path, exiting with an error if there is none."""
	try:
		return GitRepository.discover(path)
	except GitError as e:
		exit_with_error(f"Not inside a git repository: {path or Path.cwd()}", exception=e)
		raise  # exit_with_error always raises
