"""Git access for BranchTabs."""

from branchtabs.git.authorship import GitAuthor, filter_by_current_author
from branchtabs.git.diff import ChangedFile, ChangeKind, get_changed_files, parse_name_status, resolve_base_ref
from branchtabs.git.repository import BranchInfo, GitRepository
from branchtabs.git.utils import GitCommandResult, GitError, run_git_command

__all__ = [
	"BranchInfo",
	"ChangeKind",
	"ChangedFile",
	"GitAuthor",
	"GitCommandResult",
	"GitError",
	"GitRepository",
	"filter_by_current_author",
	"get_changed_files",
	"parse_name_status",
	"resolve_base_ref",
	"run_git_command",
]
