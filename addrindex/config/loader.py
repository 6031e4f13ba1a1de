"""
addrindex Raw Configuration Loader

Merges the configuration sources into a single `RawConfig`:

    command-line flags > ADDRINDEX_* environment variables > TOML files > defaults

TOML files are searched in order (first listed wins for a duplicated key):
    1. ./addrindex.toml
    2. ~/.addrindex/config.toml
    3. /etc/addrindex/config.toml

Environment variable mapping:
    network          → ADDRINDEX_NETWORK
    daemon_rpc_port  → ADDRINDEX_DAEMON_RPC_PORT
    ...

The values in a `RawConfig` are not network-adjusted yet; see
`addrindex.config.config.build_config`.
"""

from __future__ import annotations

import ipaddress
import logging
import math
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    CWD_CONFIG_FILE,
    DEFAULT_BLOCKTXIDS_CACHE_SIZE_MB,
    DEFAULT_BULK_INDEX_THREADS,
    DEFAULT_DAEMON_DIR_NAME,
    DEFAULT_DB_DIR,
    DEFAULT_INDEX_BATCH_SIZE,
    DEFAULT_TXID_LIMIT,
    ENV_PREFIX,
    HOME_CONFIG_DIR,
    HOME_CONFIG_FILE,
    SYSTEM_CONFIG_FILE,
    parse_bool,
)
from ..exceptions import ConfigurationError
from .network import Network

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Filesystem locations
# ---------------------------------------------------------------------------

def home_dir() -> Optional[Path]:
    """Return the user's home directory, or None when it cannot be determined."""
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def require_home_dir() -> Path:
    home = home_dir()
    if home is None:
        raise ConfigurationError("unknown home directory")
    return home


def default_daemon_dir() -> Path:
    """Default bitcoind data directory (~/.bitcoin)."""
    return require_home_dir() / DEFAULT_DAEMON_DIR_NAME


def config_file_paths(extra: Iterable[os.PathLike] = ()) -> List[Path]:
    """
    Config files to read, highest precedence first.

    Args:
        extra: Explicitly requested files, searched before the well-known ones.

    Raises:
        ConfigurationError: if the home directory is unknown.
    """
    home = require_home_dir()
    paths = [Path(p) for p in extra]
    paths.append(Path(CWD_CONFIG_FILE))
    paths.append(home / HOME_CONFIG_DIR / HOME_CONFIG_FILE)
    paths.append(Path(SYSTEM_CONFIG_FILE))
    return paths


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    Read one optional TOML file.

    A missing file yields an empty dict. A file that exists but cannot be read
    or parsed is a configuration error.
    """
    if not path.is_file():
        logger.debug("Config file not found: %s", path)
        return {}
    try:
        with open(path, "rb") as f:
            return tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigurationError(f"invalid config file {str(path)!r}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"failed to read config file {str(path)!r}: {e}") from e


def merge_layers(layers: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge dicts given highest precedence first; the first value seen for a key wins."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            merged.setdefault(key, value)
    return merged


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

def _to_bool(key: str, value: Any) -> bool:
    value = parse_bool(value)
    if isinstance(value, str) and value.strip() in ("0", "1"):
        value = value.strip() == "1"
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key}: expected a boolean, got {value!r}")
    return value


def _to_int(key: str, value: Any) -> int:
    # floats from TOML are rejected rather than truncated
    if isinstance(value, (bool, float)):
        raise ConfigurationError(f"{key}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key}: expected an integer, got {value!r}") from None


def _to_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key}: expected a number, got {value!r}") from None


def _to_str(key: str, value: Any) -> str:
    if not isinstance(value, (str, os.PathLike)):
        raise ConfigurationError(f"{key}: expected a string, got {value!r}")
    return os.fspath(value)


def _to_path(key: str, value: Any) -> Path:
    path = Path(_to_str(key, value))
    try:
        return path.expanduser()
    except (RuntimeError, KeyError):
        raise ConfigurationError(f"{key}: cannot expand {str(path)!r}: unknown home directory") from None


def _to_network(key: str, value: Any) -> Network:
    return Network.parse(value)


_COERCERS = {
    "network": _to_network,
    "db_dir": _to_path,
    "daemon_dir": _to_path,
    "daemon_rpc_host": _to_str,
    "daemon_rpc_port": _to_int,
    "cookie": _to_str,
    "indexer_rpc_host": _to_str,
    "indexer_rpc_port": _to_int,
    "jsonrpc_import": _to_bool,
    "index_batch_size": _to_int,
    "bulk_index_threads": _to_int,
    "txid_limit": _to_int,
    "blocktxids_cache_size_mb": _to_float,
    "verbose": _to_int,
    "timestamp": _to_bool,
}


# ---------------------------------------------------------------------------
# Raw configuration
# ---------------------------------------------------------------------------

@dataclass
class RawConfig:
    """
    Source-merged configuration, before any network-dependent derivation.

    `None` for an optional field means "not set by the user".
    """
    network: Network = Network.MAINNET
    db_dir: Path = field(default_factory=lambda: Path(DEFAULT_DB_DIR))
    daemon_dir: Optional[Path] = None  # None → ~/.bitcoin
    daemon_rpc_host: Optional[str] = None
    daemon_rpc_port: Optional[int] = None
    cookie: Optional[str] = None
    indexer_rpc_host: Optional[str] = None
    indexer_rpc_port: Optional[int] = None
    jsonrpc_import: bool = False
    index_batch_size: int = DEFAULT_INDEX_BATCH_SIZE
    # 0 is a sentinel meaning "one thread per CPU"
    bulk_index_threads: int = DEFAULT_BULK_INDEX_THREADS
    txid_limit: int = DEFAULT_TXID_LIMIT
    blocktxids_cache_size_mb: float = DEFAULT_BLOCKTXIDS_CACHE_SIZE_MB
    verbose: int = 0
    timestamp: bool = False

    @classmethod
    def keys(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawConfig":
        """Create a RawConfig from a merged config-file dict."""
        cfg = cls()
        cfg.update(data)
        return cfg

    def update(self, data: Mapping[str, Any]) -> None:
        """Set every key of *data*, coercing values. Unknown keys are rejected."""
        unknown = sorted(set(data) - set(_COERCERS))
        if unknown:
            raise ConfigurationError(f"unknown configuration key(s): {', '.join(unknown)}")
        for key, value in data.items():
            setattr(self, key, _COERCERS[key](key, value))

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Override from ADDRINDEX_* environment variables."""
        if environ is None:
            environ = os.environ
        overrides = {}
        for key in _COERCERS:
            v = environ.get(ENV_PREFIX + key.upper())
            if v is not None and v != "":
                overrides[key] = v
        self.update(overrides)

    def validate(self) -> None:
        """
        Check values that cannot be expressed by type alone.

        Raises:
            ConfigurationError: on the first invalid value
        """
        for key in ("daemon_rpc_host", "indexer_rpc_host"):
            host = getattr(self, key)
            if host is None:
                continue
            try:
                ipaddress.IPv4Address(host)
            except ValueError:
                raise ConfigurationError(f"{key}: {host!r} is not an IPv4 address") from None
        for key in ("daemon_rpc_port", "indexer_rpc_port"):
            port = getattr(self, key)
            if port is not None and not 0 < port < 65536:
                raise ConfigurationError(f"{key}: {port} is not a valid port")
        for key in ("index_batch_size", "txid_limit", "bulk_index_threads", "verbose"):
            if getattr(self, key) < 0:
                raise ConfigurationError(f"{key} must be >= 0")
        cache_mb = self.blocktxids_cache_size_mb
        if not math.isfinite(cache_mb) or cache_mb < 0:
            raise ConfigurationError(f"blocktxids_cache_size_mb: {cache_mb} is not a finite number >= 0")


def load_raw_config(
    overrides: Optional[Mapping[str, Any]] = None,
    config_files: Optional[Iterable[Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RawConfig:
    """
    Load and merge every configuration source.

    Args:
        overrides: Values given on the command line (highest precedence).
        config_files: Files to search, highest precedence first. Defaults to
            `config_file_paths()`.
        environ: Environment mapping. Defaults to `os.environ`.

    Raises:
        ConfigurationError: on unknown home directory or invalid configuration.
    """
    if config_files is None:
        config_files = config_file_paths()

    file_data = merge_layers(read_config_file(Path(p)) for p in config_files)
    cfg = RawConfig.from_dict(file_data)
    cfg.apply_env(environ)
    if overrides:
        cfg.update({k: v for k, v in overrides.items() if v is not None})

    if cfg.daemon_dir is None:
        cfg.daemon_dir = default_daemon_dir()

    cfg.validate()
    return cfg
