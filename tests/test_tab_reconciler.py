"""Tests for closing tracked tabs and opening the next set."""

from __future__ import annotations

import pytest

from branchtabs.changes.tabs import TabReconciler
from branchtabs.host.base import Tab, document_uri
from branchtabs.state.repo_state import RepositoryTrackingState
from tests.base import FakeDocumentHost, FileSystemTestBase, added, make_settings, modified


@pytest.mark.unit
class TestTabReconciler(FileSystemTestBase):
	"""Ownership-aware closing and ordered opening."""

	@pytest.fixture(autouse=True)
	def setup_reconciler(self) -> None:
		"""Create a fake host, a reconciler and empty tracking state."""
		self.host = FakeDocumentHost()
		self.reconciler = TabReconciler(self.host)
		self.state = RepositoryTrackingState()

	def uri(self, relative_path: str) -> str:
		"""Document identity of a file in the scratch directory."""
		return document_uri(self.temp_dir / relative_path)

	@pytest.mark.asyncio
	async def test_pinned_only_close(self) -> None:
		"""Pinned tracked tabs close; unpinned tracked tabs stay open and tracked."""
		d1, d2, user = self.uri("d1.py"), self.uri("d2.py"), self.uri("user.py")
		self.host.open_tabs = [Tab(uri=d1, is_pinned=True), Tab(uri=d2), Tab(uri=user, is_pinned=True)]
		self.state.opened_files.update({d1, d2})

		closed = await self.reconciler.close_pinned(self.state)

		assert closed == 1
		assert self.host.closed_uris == [d1]
		assert self.state.opened_files == {d2}
		assert [tab.uri for tab in self.host.tabs()] == [d2, user]

	@pytest.mark.asyncio
	async def test_close_opened_leaves_user_tabs(self) -> None:
		"""Only tracked tabs close and the tracking set is cleared."""
		d1, user = self.uri("d1.py"), self.uri("user.py")
		gone = self.uri("closed-by-user.py")
		self.host.open_tabs = [Tab(uri=d1), Tab(uri=user)]
		self.state.opened_files.update({d1, gone})

		closed = await self.reconciler.close_opened(self.state)

		assert closed == 1
		assert [tab.uri for tab in self.host.tabs()] == [user]
		assert self.state.opened_files == set()

	@pytest.mark.asyncio
	async def test_close_before_open_respects_policies(self) -> None:
		"""close_all_before_open closes user tabs as well."""
		user = self.uri("user.py")
		self.host.open_tabs = [Tab(uri=user)]

		await self.reconciler.close_before_open(self.state, make_settings(close_all_before_open=True))

		assert self.host.close_all_calls == 1
		assert self.host.tabs() == []

	@pytest.mark.asyncio
	async def test_close_before_open_pinned_only(self) -> None:
		"""The pinned-only policy is used when enabled."""
		d1, d2 = self.uri("d1.py"), self.uri("d2.py")
		self.host.open_tabs = [Tab(uri=d1, is_pinned=True), Tab(uri=d2)]
		self.state.opened_files.update({d1, d2})

		await self.reconciler.close_before_open(self.state, make_settings(close_pinned_only=True))

		assert self.state.opened_files == {d2}
		assert self.host.close_all_calls == 0

	@pytest.mark.asyncio
	async def test_open_files_pins_per_kind_and_tracks(self) -> None:
		"""Modified and added files follow their own pin flags."""
		files = [modified("src/a.ts"), added("docs/new.md")]
		settings = make_settings(pin_modified=True, pin_added=False)

		opened = await self.reconciler.open_files(self.temp_dir, self.state, files, settings)

		assert opened == 2
		assert [(tab.uri, tab.is_pinned) for tab in self.host.tabs()] == [
			(self.uri("src/a.ts"), True),
			(self.uri("docs/new.md"), False),
		]
		assert self.state.opened_files == {self.uri("src/a.ts"), self.uri("docs/new.md")}

	@pytest.mark.asyncio
	async def test_existing_user_tab_is_never_tracked(self) -> None:
		"""A changed file the user already had open is shown but stays the user's tab."""
		user = self.uri("src/a.ts")
		self.host.open_tabs = [Tab(uri=user)]
		files = [modified("src/a.ts"), added("docs/new.md")]
		settings = make_settings(pin_modified=True, pin_added=True)

		opened = await self.reconciler.open_files(self.temp_dir, self.state, files, settings)

		assert opened == 2
		assert self.state.opened_files == {self.uri("docs/new.md")}
		assert [(tab.uri, tab.is_pinned) for tab in self.host.tabs()] == [
			(user, False),
			(self.uri("docs/new.md"), True),
		]

		await self.reconciler.close_opened(self.state)

		assert [tab.uri for tab in self.host.tabs()] == [user]

	@pytest.mark.asyncio
	async def test_tracked_tab_stays_tracked_when_reopened(self) -> None:
		"""A tab opened by an earlier pass is still ours when the same file opens again."""
		tracked = self.uri("src/a.ts")
		self.host.open_tabs = [Tab(uri=tracked)]
		self.state.opened_files.add(tracked)

		await self.reconciler.open_files(self.temp_dir, self.state, [modified("src/a.ts")], make_settings())

		assert self.state.opened_files == {tracked}

	@pytest.mark.asyncio
	async def test_failed_open_does_not_stop_the_rest(self) -> None:
		"""A file that cannot open is skipped and not tracked."""
		self.host.unreadable = {"broken.bin"}
		files = [modified("broken.bin"), added("ok.md")]

		opened = await self.reconciler.open_files(self.temp_dir, self.state, files, make_settings())

		assert opened == 1
		assert self.state.opened_files == {self.uri("ok.md")}

	@pytest.mark.asyncio
	async def test_limit_counts_successful_opens(self) -> None:
		"""The limit stops after that many files actually opened."""
		self.host.unreadable = {"b.py"}
		files = [modified("a.py"), modified("b.py"), modified("c.py"), modified("d.py")]

		opened = await self.reconciler.open_files(self.temp_dir, self.state, files, make_settings(), limit=2)

		assert opened == 2
		assert self.state.opened_files == {self.uri("a.py"), self.uri("c.py")}

	@pytest.mark.asyncio
	async def test_nothing_opened_is_not_an_error(self) -> None:
		"""Zero opens returns zero."""
		self.host.unreadable = {"a.bin"}

		assert await self.reconciler.open_files(self.temp_dir, self.state, [added("a.bin")], make_settings()) == 0
		assert self.state.opened_files == set()
