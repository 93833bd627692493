"""BranchTabs - open a branch's changed files whenever you check it out."""

__version__ = "0.3.0"
