"""Editor host abstraction for BranchTabs."""

from branchtabs.host.base import Document, DocumentHost, DocumentOpenError, Tab, document_uri
from branchtabs.host.console import ConsoleDocumentHost

__all__ = ["ConsoleDocumentHost", "Document", "DocumentHost", "DocumentOpenError", "Tab", "document_uri"]
