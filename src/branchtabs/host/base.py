"""The document/tab capabilities BranchTabs needs from an editor host."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


class DocumentOpenError(Exception):
	"""Raised when a path cannot be opened as a text document."""


def document_uri(path: Path) -> str:
	"""Return the identity of the document for a file path."""
	return path.resolve().as_uri()


@dataclass(frozen=True)
class Document:
	"""An opened text document."""

	uri: str
	path: Path
	language: str = "Text"


@dataclass(frozen=True)
class Tab:
	"""An editor tab showing a document."""

	uri: str
	is_pinned: bool = False
	group: int = 0


class DocumentHost(Protocol):
	"""Open, show, pin and close documents by identity."""

	async def open_document(self, path: Path) -> Document:
		"""Open a file as a text document, raising DocumentOpenError on failure."""
		...

	async def show_document(self, document: Document, *, preview: bool = False, preserve_focus: bool = False) -> None:
		"""Show a document in a tab and make it active."""
		...

	async def pin_active_document(self) -> None:
		"""Pin the active tab."""
		...

	def tabs(self) -> list[Tab]:
		"""Return every open tab across all groups."""
		...

	async def close_tabs(self, tabs: list[Tab]) -> None:
		"""Close the given tabs."""
		...

	async def close_all_tabs(self) -> None:
		"""Close every tab regardless of who opened it."""
		...

	def active_document_uri(self) -> str | None:
		"""Return the URI of the active document, if any."""
		...
