"""Configuration for BranchTabs."""

from branchtabs.config.config_loader import ConfigError, ConfigLoader, ConfigParsingError, ConfigScope
from branchtabs.config.config_schema import (
	AppConfigSchema,
	ResolutionSettings,
	StorageConfigSchema,
	WatcherConfigSchema,
)

__all__ = [
	"AppConfigSchema",
	"ConfigError",
	"ConfigLoader",
	"ConfigParsingError",
	"ConfigScope",
	"ResolutionSettings",
	"StorageConfigSchema",
	"WatcherConfigSchema",
]
