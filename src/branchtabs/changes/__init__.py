"""Changed-file resolution and tab reconciliation."""

from branchtabs.changes.opener import ChangedFilesOpener
from branchtabs.changes.resolver import (
	ChangedFileResolver,
	LimitGate,
	LimitPrompt,
	ListedChange,
	Resolution,
	ResolutionStatus,
)
from branchtabs.changes.tabs import TabReconciler
from branchtabs.changes.view import ChangedFilesListing

__all__ = [
	"ChangedFileResolver",
	"ChangedFilesListing",
	"ChangedFilesOpener",
	"LimitGate",
	"LimitPrompt",
	"ListedChange",
	"Resolution",
	"ResolutionStatus",
	"TabReconciler",
]
