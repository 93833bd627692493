"""Utility functions for CLI operations in BranchTabs."""

from __future__ import annotations

import logging

import questionary
import typer
from rich.console import Console

from branchtabs.config.config_loader import ConfigScope
from branchtabs.state.enablement import EnablementChoice
from branchtabs.utils.log_setup import display_error_summary, display_warning_summary

console = Console()
logger = logging.getLogger(__name__)

OPEN_CHOICE = "Open"
CANCEL_CHOICE = "Cancel"
KEEP_LIMIT_CHOICE = "No"
SCOPE_CHOICES = {
	"This Workspace": ConfigScope.WORKSPACE,
	"User (Global)": ConfigScope.USER,
}


def validate_limit(value: str) -> bool | str:
	"""Accept whole numbers of zero or more."""
	if value.strip().isdigit():
		return True
	return "Enter a whole number (0 or more)."


class QuestionaryPrompter:
	"""Terminal answers to the limit and new-repository questions."""

	@staticmethod
	async def _answer(question: questionary.Question) -> str | None:
		return await question.ask_async()

	async def confirm_open(self, total: int, limit: int) -> bool:
		"""Ask whether to open the first limit files out of total."""
		answer = await self._answer(
			questionary.select(
				f"{total} files changed, which exceeds the max of {limit}. Open the first {limit}?",
				choices=[OPEN_CHOICE, CANCEL_CHOICE],
			)
		)
		return answer == OPEN_CHOICE

	async def ask_new_limit(self, current: int) -> tuple[ConfigScope, int] | None:
		"""Offer to change the maximum, returning the scope and value to persist."""
		answer = await self._answer(
			questionary.select(
				"Change the max files to open?",
				choices=[KEEP_LIMIT_CHOICE, *SCOPE_CHOICES],
			)
		)
		scope = SCOPE_CHOICES.get(answer or "")
		if scope is None:
			return None

		value = await self._answer(
			questionary.text(
				"Max files to open (0 for unlimited):",
				default=str(current),
				validate=validate_limit,
			)
		)
		if value is None or validate_limit(value) is not True:
			return None
		return scope, int(value.strip())

	async def choose_enablement(self, repo_root: str) -> EnablementChoice | None:
		"""Ask whether branch switches in a new repository should open files."""
		answer = await self._answer(
			questionary.select(
				f"Open changed files when switching branches in {repo_root}?",
				choices=[choice.value for choice in EnablementChoice],
			)
		)
		return EnablementChoice(answer) if answer else None


def show_error(message: str, exception: Exception | None = None) -> None:
	"""
	Display an error summary with standardized formatting.

	Args:
	        message: The error message to display
	        exception: Optional exception that caused the error

	"""
	error_text = message
	if exception:
		error_text += f"\n\nDetails: {exception!s}"
		logger.debug("Error occurred", exc_info=exception)

	display_error_summary(error_text)


def show_warning(message: str) -> None:
	"""Display a warning summary with standardized formatting."""
	display_warning_summary(message)


def exit_with_error(message: str, exit_code: int = 1, exception: Exception | None = None) -> None:
	"""
	Display an error message and exit.

	Args:
	        message: Error message to display
	        exit_code: Exit code to use
	        exception: Optional exception that caused the error

	"""
	show_error(message, exception)
	raise typer.Exit(exit_code) from exception


def handle_keyboard_interrupt() -> None:
	"""Handles KeyboardInterrupt by printing a message and exiting cleanly."""
	console.print("\n[yellow]Operation cancelled by user.[/yellow]")
	raise typer.Exit(130)
