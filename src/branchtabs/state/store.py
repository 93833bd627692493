"""A small YAML-backed key/value store for state that outlives one process."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml
from xdg.BaseDirectory import xdg_data_home

logger = logging.getLogger(__name__)

STATE_DIR_NAME = "branchtabs"
STATE_FILE_NAME = "state.yml"


class StateStoreError(Exception):
	"""Raised when the persisted state file cannot be read."""


def default_state_path() -> Path:
	"""Return the default location of the state file."""
	return Path(xdg_data_home) / STATE_DIR_NAME / STATE_FILE_NAME


class StateStore:
	"""
	Persisted mapping of keys to plain YAML values.

	The whole file is read on first access and rewritten on every update.
	Values handed out are copies, so callers cannot mutate the store behind
	its back.

	"""

	def __init__(self, path: Path | None = None) -> None:
		"""
		Initialize the store.

		Args:
		    path: State file location (defaults to the XDG data directory)

		"""
		self.path = path or default_state_path()
		self._data: dict[str, Any] | None = None

	def _load(self) -> dict[str, Any]:
		if self._data is not None:
			return self._data
		if not self.path.exists():
			self._data = {}
			return self._data
		try:
			with self.path.open(encoding="utf-8") as f:
				data = yaml.safe_load(f) or {}
		except (OSError, yaml.YAMLError) as e:
			msg = f"Unable to read state file {self.path}: {e}"
			raise StateStoreError(msg) from e
		if not isinstance(data, dict):
			msg = f"State file {self.path} does not contain a mapping"
			raise StateStoreError(msg)
		self._data = data
		return self._data

	def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
		"""Return a copy of the value stored under key, or default."""
		data = self._load()
		if key not in data:
			return default
		return copy.deepcopy(data[key])

	def keys(self) -> list[str]:
		"""Return every stored key."""
		return list(self._load())

	def update(self, key: str, value: Any) -> None:  # noqa: ANN401
		"""
		Store a value and write the file. A value of None deletes the key.

		Args:
		    key: Key to set
		    value: Plain YAML-serializable value

		"""
		data = self._load()
		if value is None:
			data.pop(key, None)
		else:
			data[key] = copy.deepcopy(value)

		self.path.parent.mkdir(parents=True, exist_ok=True)
		with self.path.open("w", encoding="utf-8") as f:
			yaml.safe_dump(data, f, sort_keys=True)
		logger.debug("Persisted state key %s to %s", key, self.path)
