"""Tests for the debounced changed-file listing."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from branchtabs.changes.resolver import ListedChange, Resolution, ResolutionStatus
from branchtabs.changes.view import ChangedFilesListing
from branchtabs.git.repository import BranchInfo
from tests.base import FileSystemTestBase, make_settings, modified


@pytest.mark.unit
@pytest.mark.watcher
class TestChangedFilesListing(FileSystemTestBase):
	"""Caching, debouncing and single in-flight loads."""

	@pytest.fixture(autouse=True)
	def setup_listing(self) -> None:
		"""Build a listing around a mocked resolver."""
		self.repository = MagicMock()
		self.repository.root = self.temp_dir
		self.repository.head.return_value = BranchInfo(name="feature-1")
		self.resolver = MagicMock()
		self.listed = [ListedChange(file=modified("a.py"), ignored=False)]
		self.resolver.list_changes = AsyncMock(
			return_value=(Resolution(status=ResolutionStatus.READY, files=[modified("a.py")]), self.listed)
		)
		self.updates: list = []
		self.listing = ChangedFilesListing(
			self.repository,
			self.resolver,
			make_settings,
			lambda: {"b.py"},
			refresh_delay=0.05,
			on_updated=self.updates.append,
		)

	@pytest.mark.asyncio
	async def test_load_caches_snapshot(self) -> None:
		"""A load stores and announces the snapshot."""
		snapshot = await self.listing.load()

		assert snapshot.branch == "feature-1"
		assert snapshot.changes == self.listed
		assert self.listing.snapshot is snapshot
		assert self.updates == [snapshot]
		assert self.resolver.list_changes.call_args.args[3] == {"b.py"}

	@pytest.mark.asyncio
	async def test_concurrent_loads_share_one_run(self) -> None:
		"""A load requested while one is running joins it."""
		first = self.listing.load()
		second = self.listing.load()

		assert first is second
		await first
		self.resolver.list_changes.assert_awaited_once()

	@pytest.mark.asyncio
	async def test_refresh_is_debounced(self) -> None:
		"""A burst of refresh requests produces one load after the delay."""
		for _ in range(5):
			self.listing.request_refresh()
			await asyncio.sleep(0.01)

		self.resolver.list_changes.assert_not_called()
		await asyncio.sleep(0.1)
		self.resolver.list_changes.assert_awaited_once()

	@pytest.mark.asyncio
	async def test_cancel_drops_pending_refresh(self) -> None:
		"""A cancelled refresh never loads."""
		self.listing.request_refresh()
		self.listing.cancel()
		await asyncio.sleep(0.1)

		self.resolver.list_changes.assert_not_called()

	@pytest.mark.asyncio
	async def test_search_passed_to_resolver(self) -> None:
		"""The search query is normalized and passed to every load."""
		listing = ChangedFilesListing(self.repository, self.resolver, make_settings, set, search="  Src ")

		await listing.load()

		assert self.resolver.list_changes.call_args.kwargs["search"] == "src"

	@pytest.mark.asyncio
	async def test_failure_becomes_error_snapshot(self) -> None:
		"""A failing load is reported in the snapshot rather than raised."""
		self.resolver.list_changes.side_effect = RuntimeError("disk on fire")

		snapshot = await self.listing.load()

		assert snapshot.error == "Failed to load changes: disk on fire"
		assert snapshot.changes == []
