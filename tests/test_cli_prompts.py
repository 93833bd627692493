"""Tests for the terminal prompts."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from branchtabs.config.config_loader import ConfigScope
from branchtabs.state.enablement import EnablementChoice
from branchtabs.utils.cli_utils import QuestionaryPrompter, validate_limit


def question(answer: str | None) -> MagicMock:
	"""A questionary question that answers with answer."""
	mock_question = MagicMock()
	mock_question.ask_async = AsyncMock(return_value=answer)
	return mock_question


@pytest.fixture
def mock_questionary() -> Iterator[MagicMock]:
	"""Patch questionary in the prompt module."""
	with patch("branchtabs.utils.cli_utils.questionary") as mock_module:
		yield mock_module


@pytest.mark.unit
@pytest.mark.cli
class TestQuestionaryPrompter:
	"""Answers mapped to decisions."""

	@pytest.mark.asyncio
	async def test_confirm_open(self, mock_questionary: MagicMock) -> None:
		"""Open proceeds, Cancel and dismissal do not."""
		prompter = QuestionaryPrompter()
		for answer, expected in (("Open", True), ("Cancel", False), (None, False)):
			mock_questionary.select.return_value = question(answer)
			assert await prompter.confirm_open(12, 10) is expected

		message = mock_questionary.select.call_args.args[0]
		assert "12" in message
		assert "10" in message

	@pytest.mark.asyncio
	async def test_keep_limit(self, mock_questionary: MagicMock) -> None:
		"""No keeps the current maximum."""
		mock_questionary.select.return_value = question("No")

		assert await QuestionaryPrompter().ask_new_limit(10) is None
		mock_questionary.text.assert_not_called()

	@pytest.mark.asyncio
	async def test_new_workspace_limit(self, mock_questionary: MagicMock) -> None:
		"""A scope and a whole number become the new limit."""
		mock_questionary.select.return_value = question("This Workspace")
		mock_questionary.text.return_value = question(" 25 ")

		assert await QuestionaryPrompter().ask_new_limit(10) == (ConfigScope.WORKSPACE, 25)
		assert mock_questionary.text.call_args.kwargs["default"] == "10"

	@pytest.mark.asyncio
	async def test_new_user_limit_dismissed(self, mock_questionary: MagicMock) -> None:
		"""Dismissing the number keeps the current maximum."""
		mock_questionary.select.return_value = question("User (Global)")
		mock_questionary.text.return_value = question(None)

		assert await QuestionaryPrompter().ask_new_limit(10) is None

	@pytest.mark.asyncio
	async def test_enablement_choices(self, mock_questionary: MagicMock) -> None:
		"""Every enablement answer maps onto its choice."""
		prompter = QuestionaryPrompter()
		for choice in EnablementChoice:
			mock_questionary.select.return_value = question(choice.value)
			assert await prompter.choose_enablement("/repo") is choice

		mock_questionary.select.return_value = question(None)
		assert await prompter.choose_enablement("/repo") is None


@pytest.mark.unit
@pytest.mark.cli
@pytest.mark.parametrize(("value", "valid"), [("0", True), ("15", True), ("-1", False), ("abc", False), ("", False)])
def test_validate_limit(value: str, valid: bool) -> None:
	"""Only whole numbers of zero or more are accepted."""
	assert (validate_limit(value) is True) is valid
