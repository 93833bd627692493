"""An in-process document host that reports tab activity on a rich console."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound
from rich.console import Console

from branchtabs.host.base import Document, DocumentOpenError, Tab, document_uri

if TYPE_CHECKING:
	from pathlib import Path

logger = logging.getLogger(__name__)

# Bytes inspected when deciding whether a file is binary
BINARY_SNIFF_BYTES = 8192
PLAIN_TEXT_LANGUAGE = "Text"


def detect_language(path: Path) -> str:
	"""
	Return a display name for the language of a file.

	Args:
		path: File path; only the name is used

	Returns:
		The pygments lexer name, or "Text" when no lexer claims the file

	"""
	try:
		return get_lexer_for_filename(path.name).name
	except ClassNotFound:
		return PLAIN_TEXT_LANGUAGE


def _read_text(path: Path) -> str:
	data = path.read_bytes()
	if b"\x00" in data[:BINARY_SNIFF_BYTES]:
		msg = f"{path} looks like a binary file"
		raise DocumentOpenError(msg)
	try:
		return data.decode("utf-8")
	except UnicodeDecodeError as e:
		msg = f"{path} is not valid UTF-8 text"
		raise DocumentOpenError(msg) from e


class ConsoleDocumentHost:
	"""
	Keeps an ordered list of tabs in a single group.

	Documents are real files read from disk; opening, pinning and closing
	are echoed to the console so a watch session shows what it did.

	"""

	def __init__(self, console: Console | None = None) -> None:
		"""
		Initialize the host.

		Args:
			console: Console used for activity output

		"""
		self.console = console or Console()
		self._tabs: list[Tab] = []
		self._active: str | None = None
		self._documents: dict[str, Document] = {}

	async def open_document(self, path: Path) -> Document:
		"""Read a file as UTF-8 text."""
		try:
			await asyncio.to_thread(_read_text, path)
		except OSError as e:
			msg = f"Unable to read {path}: {e}"
			raise DocumentOpenError(msg) from e
		return Document(uri=document_uri(path), path=path, language=detect_language(path))

	async def show_document(self, document: Document, *, preview: bool = False, preserve_focus: bool = False) -> None:
		"""Add a tab for the document (or reuse its tab) and activate it."""
		if not any(tab.uri == document.uri for tab in self._tabs):
			self._tabs.append(Tab(uri=document.uri))
			self._documents[document.uri] = document
			label = "[dim](preview)[/dim] " if preview else ""
			self.console.print(f"[green]Opened[/green] {label}{document.path} [dim]{document.language}[/dim]")
		if not preserve_focus:
			self._active = document.uri

	async def pin_active_document(self) -> None:
		"""Pin the active tab."""
		if self._active is None:
			return
		self._tabs = [
			Tab(uri=tab.uri, is_pinned=True, group=tab.group) if tab.uri == self._active else tab for tab in self._tabs
		]
		logger.debug("Pinned %s", self._active)

	def tabs(self) -> list[Tab]:
		"""Return the open tabs in order."""
		return list(self._tabs)

	async def close_tabs(self, tabs: list[Tab]) -> None:
		"""Close the given tabs."""
		closing = {tab.uri for tab in tabs}
		for tab in self._tabs:
			if tab.uri in closing:
				document = self._documents.pop(tab.uri, None)
				self.console.print(f"[yellow]Closed[/yellow] {document.path if document else tab.uri}")
		self._tabs = [tab for tab in self._tabs if tab.uri not in closing]
		if self._active in closing:
			self._active = self._tabs[-1].uri if self._tabs else None

	async def close_all_tabs(self) -> None:
		"""Close every tab."""
		await self.close_tabs(self.tabs())

	def active_document_uri(self) -> str | None:
		"""Return the active document's URI."""
		return self._active
