"""Tests for the in-process console document host."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from branchtabs.host.base import DocumentOpenError, document_uri
from branchtabs.host.console import ConsoleDocumentHost, detect_language
from tests.base import FileSystemTestBase


@pytest.mark.unit
class TestConsoleDocumentHost(FileSystemTestBase):
	"""Tab bookkeeping and text detection."""

	@pytest.fixture(autouse=True)
	def setup_host(self) -> None:
		"""Create a host writing to a buffer."""
		self.output = io.StringIO()
		self.host = ConsoleDocumentHost(Console(file=self.output, width=200))

	@pytest.mark.asyncio
	async def test_open_show_pin(self) -> None:
		"""A shown document becomes the active tab and can be pinned."""
		path = self.create_test_file("src/app.py", "print('hi')\n")

		document = await self.host.open_document(path)
		await self.host.show_document(document)
		await self.host.pin_active_document()

		assert document.uri == document_uri(path)
		assert document.language == "Python"
		assert self.host.active_document_uri() == document.uri
		assert [(tab.uri, tab.is_pinned) for tab in self.host.tabs()] == [(document.uri, True)]
		assert "Opened" in self.output.getvalue()

	@pytest.mark.asyncio
	async def test_show_twice_keeps_one_tab(self) -> None:
		"""Showing an open document reuses its tab."""
		document = await self.host.open_document(self.create_test_file("a.txt", "a"))

		await self.host.show_document(document)
		await self.host.show_document(document)

		assert len(self.host.tabs()) == 1

	@pytest.mark.asyncio
	async def test_only_shown_documents_are_kept(self) -> None:
		"""Documents read for the text check alone are not retained, and closing forgets shown ones."""
		checked = await self.host.open_document(self.create_test_file("checked.txt", "a"))
		shown = await self.host.open_document(self.create_test_file("shown.txt", "b"))

		await self.host.show_document(shown)

		assert set(self.host._documents) == {shown.uri}
		assert checked.uri not in self.host._documents

		await self.host.close_all_tabs()

		assert self.host._documents == {}
		assert "Closed" in self.output.getvalue()

	@pytest.mark.asyncio
	async def test_binary_refused(self) -> None:
		"""NUL bytes mean binary."""
		path = self.create_test_file("image.bin", b"abc\x00def")

		with pytest.raises(DocumentOpenError, match="binary"):
			await self.host.open_document(path)

	@pytest.mark.asyncio
	async def test_invalid_utf8_refused(self) -> None:
		"""Undecodable bytes are not text."""
		path = self.create_test_file("latin.txt", b"caf\xe9")

		with pytest.raises(DocumentOpenError, match="UTF-8"):
			await self.host.open_document(path)

	@pytest.mark.asyncio
	async def test_missing_file_refused(self) -> None:
		"""A vanished file cannot be opened."""
		with pytest.raises(DocumentOpenError):
			await self.host.open_document(self.temp_dir / "gone.txt")

	@pytest.mark.asyncio
	async def test_close_moves_focus(self) -> None:
		"""Closing the active tab activates the last remaining one."""
		first = await self.host.open_document(self.create_test_file("a.txt", "a"))
		second = await self.host.open_document(self.create_test_file("b.txt", "b"))
		await self.host.show_document(first)
		await self.host.show_document(second)

		await self.host.close_tabs([tab for tab in self.host.tabs() if tab.uri == second.uri])

		assert self.host.active_document_uri() == first.uri
		await self.host.close_all_tabs()
		assert self.host.tabs() == []
		assert self.host.active_document_uri() is None

	@pytest.mark.asyncio
	async def test_preserve_focus(self) -> None:
		"""preserve_focus opens without activating."""
		first = await self.host.open_document(self.create_test_file("a.txt", "a"))
		second = await self.host.open_document(self.create_test_file("b.txt", "b"))
		await self.host.show_document(first)
		await self.host.show_document(second, preserve_focus=True)

		assert self.host.active_document_uri() == first.uri


@pytest.mark.unit
def test_detect_language_falls_back_to_text() -> None:
	"""Unknown extensions are plain text."""
	from pathlib import Path

	assert detect_language(Path("notes.unknownext")) == "Text"
