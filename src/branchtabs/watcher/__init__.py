"""Watch repositories for branch switches."""

from branchtabs.watcher.repo_watcher import GitStateEventHandler, RepositoryWatcher, WorkspaceWatcher

__all__ = ["GitStateEventHandler", "RepositoryWatcher", "WorkspaceWatcher"]
