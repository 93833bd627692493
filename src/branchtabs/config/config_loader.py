"""
Configuration loader for BranchTabs.

This module merges configuration from the user's config file, the
workspace file at the repository root and an optional explicit file, and
validates the result against the Pydantic schemas.

"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from xdg.BaseDirectory import xdg_config_home

from branchtabs.config.config_schema import AppConfigSchema, ResolutionSettings

logger = logging.getLogger(__name__)

WORKSPACE_CONFIG_NAME = ".branchtabs.yml"
USER_CONFIG_DIR_NAME = "branchtabs"
USER_CONFIG_NAME = "config.yml"


class ConfigError(Exception):
	"""Exception raised for configuration errors."""


class ConfigParsingError(ConfigError):
	"""Exception raised when configuration file cannot be parsed."""


class ConfigScope(str, Enum):
	"""Where a configuration update is written."""

	WORKSPACE = "workspace"
	USER = "user"


def user_config_path() -> Path:
	"""Return the path of the user-level configuration file."""
	return Path(xdg_config_home) / USER_CONFIG_DIR_NAME / USER_CONFIG_NAME


class ConfigLoader:
	"""
	Loads and manages configuration for BranchTabs using Pydantic schemas.

	Precedence, lowest to highest: schema defaults, user file, workspace
	file, explicit config file.

	"""

	def __init__(self, config_file: Path | None = None, repo_root: Path | None = None) -> None:
		"""
		Initialize the configuration loader.

		Args:
			config_file: Path to an explicit configuration file (optional)
			repo_root: Repository root whose workspace file should be read (optional)

		"""
		self.repo_root = repo_root
		self.config_file = config_file
		self._app_config = self._load_config()

	@property
	def get(self) -> AppConfigSchema:
		"""The validated configuration."""
		return self._app_config

	def resolution_settings(self) -> ResolutionSettings:
		"""Return the settings snapshot for one resolution pass."""
		return self._app_config.settings

	def workspace_config_path(self) -> Path:
		"""Return the workspace configuration file path."""
		return (self.repo_root or Path.cwd()) / WORKSPACE_CONFIG_NAME

	def reload_config(self) -> None:
		"""Re-read every configuration file."""
		self._app_config = self._load_config()
		logger.debug("Configuration reloaded")

	def _config_sources(self) -> list[Path]:
		sources = [user_config_path(), self.workspace_config_path()]
		if self.config_file is not None:
			sources.append(self.config_file.expanduser().resolve())
		return sources

	def _load_config(self) -> AppConfigSchema:
		merged: dict[str, Any] = {}
		for source in self._config_sources():
			file_config = self._read_yaml(source)
			if file_config:
				self._merge_configs(merged, file_config)
				logger.debug("Loaded configuration from %s", source)

		try:
			return AppConfigSchema.model_validate(merged)
		except ValidationError as e:
			msg = f"Invalid configuration: {e}"
			raise ConfigError(msg) from e

	@staticmethod
	def _read_yaml(path: Path) -> dict[str, Any]:
		"""
		Read a YAML mapping from disk.

		Args:
			path: File to read

		Returns:
			The parsed mapping, empty when the file does not exist or is empty

		Raises:
			ConfigParsingError: If the file cannot be read or is not a mapping

		"""
		if not path.exists():
			return {}
		try:
			with path.open(encoding="utf-8") as f:
				data = yaml.safe_load(f)
		except (OSError, yaml.YAMLError) as e:
			msg = f"Error loading configuration from {path}: {e}"
			logger.exception(msg)
			raise ConfigParsingError(msg) from e
		if data is None:
			return {}
		if not isinstance(data, dict):
			msg = f"Configuration in {path} must be a mapping, got {type(data).__name__}"
			raise ConfigParsingError(msg)
		return data

	def _merge_configs(self, base: dict[str, Any], override: dict[str, Any]) -> None:
		"""
		Recursively merge two configuration dictionaries.

		Args:
			base: Base configuration dictionary to merge into
			override: Override configuration to apply

		"""
		for key, value in override.items():
			if isinstance(value, dict) and key in base and isinstance(base[key], dict):
				self._merge_configs(base[key], value)
			else:
				base[key] = value

	def update_value(self, dotted_key: str, value: Any, scope: ConfigScope) -> Path:  # noqa: ANN401
		"""
		Persist a single configuration value and reload.

		Args:
			dotted_key: Key such as "settings.max_files_to_open"
			value: New value
			scope: Whether to write the workspace or the user file

		Returns:
			The file that was written

		Raises:
			ConfigError: If the resulting configuration is invalid

		"""
		target = self.workspace_config_path() if scope is ConfigScope.WORKSPACE else user_config_path()
		data = self._read_yaml(target)

		node = data
		*parents, leaf = dotted_key.split(".")
		for part in parents:
			child = node.get(part)
			if not isinstance(child, dict):
				child = {}
				node[part] = child
			node = child
		node[leaf] = value

		target.parent.mkdir(parents=True, exist_ok=True)
		with target.open("w", encoding="utf-8") as f:
			yaml.safe_dump(data, f, sort_keys=True)
		logger.info("Updated %s in %s configuration (%s)", dotted_key, scope.value, target)

		self.reload_config()
		return target
