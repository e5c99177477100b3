"""Runtime configuration shared by the file watcher and the sync driver.

The current config is an immutable snapshot. Writers build a new snapshot and
swap it in under the lock, readers take the lock only long enough to grab
the reference. No file or database I/O ever happens while the lock is held.
"""
from typing import Optional
from pathlib import Path
from pydantic import BaseModel, ConfigDict, ValidationError
import threading
import tomllib
import logging

from sshed.core.config import get_settings
from sshed.core.errors import ConfigError

logger = logging.getLogger(__name__)


class GeneralConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    ssh_config_path: Optional[str] = None


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    general: GeneralConfig = GeneralConfig()
    source: Optional[Path] = None

    @property
    def ssh_config_path(self) -> Path:
        path = self.general.ssh_config_path or get_settings().SSH_CONFIG_PATH
        return Path(path).expanduser()


def read_config(path: Optional[Path]) -> AppConfig:
    """Loads the TOML app config.

    A missing path yields the defaults from Settings.

    Raises:
        ConfigError: If the file exists but cannot be read or validated.
    """
    if path is None:
        return AppConfig()
    path = Path(path).expanduser()
    if not path.exists():
        logger.warning(f"Config file {path} not found, using defaults")
        return AppConfig(source=path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return AppConfig(source=path, **data)
    except (OSError, tomllib.TOMLDecodeError, ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e


class RuntimeConfig:
    def __init__(self, config_file: Optional[Path] = None, initial: Optional[AppConfig] = None):
        self.config_file = Path(config_file).expanduser() if config_file else None
        self._lock = threading.Lock()
        self._current = initial if initial is not None else read_config(self.config_file)

    def snapshot(self) -> AppConfig:
        with self._lock:
            return self._current

    def ssh_config_path(self) -> Path:
        return self.snapshot().ssh_config_path

    def replace(self, config: AppConfig):
        with self._lock:
            self._current = config

    def reload(self) -> bool:
        """Re-reads the config file and swaps the snapshot.

        Called from the watcher thread when the app config changes. On a
        broken edit the previous snapshot stays active and the error is logged.

        Returns:
            True if a new snapshot was installed.
        """
        try:
            config = read_config(self.config_file)
        except ConfigError as e:
            logger.error(f"Keeping previous configuration: {e}")
            return False
        self.replace(config)
        logger.info(f"Configuration reloaded, ssh config path: {config.ssh_config_path}")
        return True


_runtime: Optional[RuntimeConfig] = None
_runtime_lock = threading.Lock()


def get_runtime() -> RuntimeConfig:
    global _runtime
    with _runtime_lock:
        if _runtime is None:
            _runtime = RuntimeConfig(get_settings().CONFIG_FILE)
        return _runtime


def set_runtime(runtime: RuntimeConfig):
    global _runtime
    with _runtime_lock:
        _runtime = runtime
