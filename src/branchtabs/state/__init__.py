"""State kept by BranchTabs, in memory and on disk."""

from branchtabs.state.enablement import EnablementChoice, EnablementPrompt, RepositoryEnablement
from branchtabs.state.ignored_files import IgnoredFilesStore
from branchtabs.state.repo_state import RepositoryStateStore, RepositoryTrackingState
from branchtabs.state.store import StateStore, StateStoreError

__all__ = [
	"EnablementChoice",
	"EnablementPrompt",
	"IgnoredFilesStore",
	"RepositoryEnablement",
	"RepositoryStateStore",
	"RepositoryTrackingState",
	"StateStore",
	"StateStoreError",
]
