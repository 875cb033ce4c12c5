"""
YAML-backed settings store

Persists the values the release subsystem reads and writes (installed manager
version, last resolved asset download URLs) in `patchfetch.yaml` under the
platform user config directory.
"""

import os
import tempfile
from typing import Any, Dict, Optional

import platformdirs
import yaml

from patchfetch.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    INTEGRATIONS_DOWNLOAD_URL_KEY,
    MANAGER_VERSION_KEY,
    PATCHES_DOWNLOAD_URL_KEY,
)
from patchfetch.exceptions import ConfigFileError, ConfigurationError
from patchfetch.log_utils import logger
from patchfetch.releases.interfaces import SettingsStore


def get_default_config_file() -> str:
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


class YamlSettingsStore(SettingsStore):
    """
    Settings store persisted as a flat YAML mapping.

    The file is read lazily on first access and rewritten atomically on every
    change.

    Parameters:
        config_file (Optional[str]): Path of the YAML file; defaults to the
            platform user config directory.
    """

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or get_default_config_file()
        self._config: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """
        Load the settings file, returning an empty mapping if it does not exist.

        Raises:
            ConfigFileError: If the file cannot be read or does not hold a mapping.
        """
        if self._config is not None:
            return self._config

        if not os.path.exists(self.config_file):
            self._config = {}
            return self._config

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigFileError(
                "Could not read settings file", path=self.config_file, details=str(e)
            ) from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigFileError(
                "Settings file must contain a mapping",
                path=self.config_file,
                details=type(config).__name__,
            )
        self._config = config
        return self._config

    def save(self) -> None:
        """
        Write the current settings to disk atomically.

        Raises:
            ConfigFileError: If the file cannot be written.
        """
        config = self.load()
        config_dir = os.path.dirname(self.config_file) or "."
        try:
            os.makedirs(config_dir, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=config_dir, prefix="tmp-", suffix=".yaml"
            )
        except OSError as e:
            raise ConfigFileError(
                "Could not create settings file", path=self.config_file, details=str(e)
            ) from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_f:
                yaml.safe_dump(config, temp_f, default_flow_style=False)
            os.replace(temp_path, self.config_file)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigFileError(
                "Could not write settings file", path=self.config_file, details=str(e)
            ) from e
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.load()[key] = value
        self.save()
        logger.debug("Saved %s to %s", key, self.config_file)

    def set_integrations_download_url(self, url: str) -> None:
        self.set(INTEGRATIONS_DOWNLOAD_URL_KEY, url)

    def set_patches_download_url(self, url: str) -> None:
        self.set(PATCHES_DOWNLOAD_URL_KEY, url)

    def get_integrations_download_url(self) -> str:
        return str(self.get(INTEGRATIONS_DOWNLOAD_URL_KEY) or "")

    def get_patches_download_url(self) -> str:
        return str(self.get(PATCHES_DOWNLOAD_URL_KEY) or "")

    def get_current_manager_version(self) -> str:
        """
        Return the installed manager version.

        Raises:
            ConfigurationError: If no version has been recorded.
        """
        version = self.get(MANAGER_VERSION_KEY)
        if version is None or not str(version).strip():
            raise ConfigurationError(
                f"{MANAGER_VERSION_KEY} is not set in {self.config_file}"
            )
        return str(version).strip()

    def set_current_manager_version(self, version: str) -> None:
        self.set(MANAGER_VERSION_KEY, version)
