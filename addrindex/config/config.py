"""
addrindex Resolved Configuration

Turns a source-merged `RawConfig` into the immutable `Config` consumed by the
rest of the indexer, applying the network profile and the defaulting rules.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from ipaddress import IPv4Address
from pathlib import Path
from typing import IO, Any, Dict, Iterable, Mapping, Optional, Tuple

from rich.console import Console
from rich.pretty import Pretty

from ..constants import DEFAULT_SERVER_ADDRESS, MB
from ..cookie import CookieFile, CookieGetter, StaticCookie
from .loader import RawConfig, config_file_paths, load_raw_config
from .network import Network, network_profile


@dataclass(frozen=True)
class Config:
    """
    Parsed and post-processed configuration.

    Built once at startup by `build_config` / `Config.from_args`.
    """
    network_type: Network
    db_path: Path
    daemon_dir: Path
    daemon_rpc_host: IPv4Address
    daemon_rpc_port: int
    indexer_rpc_host: IPv4Address
    indexer_rpc_port: int
    cookie: Optional[str]
    jsonrpc_import: bool
    index_batch_size: int
    bulk_index_threads: int
    txid_limit: int
    blocktxids_cache_size: int  # bytes
    verbose: int = 0
    timestamp: bool = False

    # --- factories --------------------------------------------------------

    @classmethod
    def from_args(
        cls,
        overrides: Optional[Mapping[str, Any]] = None,
        extra_config_files: Iterable[os.PathLike] = (),
        environ: Optional[Mapping[str, str]] = None,
        stream: Optional[IO[str]] = None,
        emit: bool = True,
    ) -> "Config":
        """
        Merge flags, env vars and config files, then post-process them.

        The resolved configuration is printed to stderr (or *stream*) unless
        *emit* is False, in which case the caller emits it with `emit_config`.

        Raises:
            ConfigurationError: unknown home directory or invalid configuration.
        """
        raw = load_raw_config(
            overrides=overrides,
            config_files=config_file_paths(extra_config_files),
            environ=environ,
        )
        config = build_config(raw)
        if emit:
            emit_config(config, stream)
        return config

    # --- credentials ------------------------------------------------------

    def cookie_getter(self) -> CookieGetter:
        """Static cookie if one is configured, else the daemon's cookie file."""
        if self.cookie is not None:
            return StaticCookie(self.cookie)
        return CookieFile(self.daemon_dir)

    # --- addresses --------------------------------------------------------

    @property
    def daemon_rpc_addr(self) -> Tuple[str, int]:
        return str(self.daemon_rpc_host), self.daemon_rpc_port

    @property
    def indexer_rpc_addr(self) -> Tuple[str, int]:
        return str(self.indexer_rpc_host), self.indexer_rpc_port

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict for diagnostics. The cookie value is masked."""
        return {
            "network_type": str(self.network_type),
            "db_path": str(self.db_path),
            "daemon_dir": str(self.daemon_dir),
            "daemon_rpc_host": str(self.daemon_rpc_host),
            "daemon_rpc_port": self.daemon_rpc_port,
            "indexer_rpc_host": str(self.indexer_rpc_host),
            "indexer_rpc_port": self.indexer_rpc_port,
            "cookie": None if self.cookie is None else "<hidden>",
            "jsonrpc_import": self.jsonrpc_import,
            "index_batch_size": self.index_batch_size,
            "bulk_index_threads": self.bulk_index_threads,
            "txid_limit": self.txid_limit,
            "blocktxids_cache_size": self.blocktxids_cache_size,
            "verbose": self.verbose,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"Config({body})"


def _available_cpus() -> int:
    return os.cpu_count() or 1


def build_config(raw: RawConfig, cpu_count: Optional[int] = None) -> Config:
    """
    Apply the network profile and defaulting rules to a merged raw config.

    Args:
        raw: Source-merged configuration. Its `daemon_dir` must be set.
        cpu_count: Threads used when `bulk_index_threads` is 0. Defaults to
            the number of CPUs on this host.
    """
    profile = network_profile(raw.network)

    db_path = Path(raw.db_dir) / profile.db_subdir

    daemon_dir = Path(raw.daemon_dir)
    if profile.daemon_subdir:
        daemon_dir = daemon_dir / profile.daemon_subdir

    daemon_rpc_host = IPv4Address(raw.daemon_rpc_host or DEFAULT_SERVER_ADDRESS)
    indexer_rpc_host = IPv4Address(raw.indexer_rpc_host or DEFAULT_SERVER_ADDRESS)

    daemon_rpc_port = raw.daemon_rpc_port
    if daemon_rpc_port is None:
        daemon_rpc_port = profile.default_daemon_rpc_port
    indexer_rpc_port = raw.indexer_rpc_port
    if indexer_rpc_port is None:
        indexer_rpc_port = profile.default_indexer_rpc_port

    # 0 lets users override a fixed value from a config file back to "auto"
    bulk_index_threads = raw.bulk_index_threads
    if bulk_index_threads == 0:
        bulk_index_threads = max(1, cpu_count or _available_cpus())

    return Config(
        network_type=raw.network,
        db_path=db_path,
        daemon_dir=daemon_dir,
        daemon_rpc_host=daemon_rpc_host,
        daemon_rpc_port=daemon_rpc_port,
        indexer_rpc_host=indexer_rpc_host,
        indexer_rpc_port=indexer_rpc_port,
        cookie=raw.cookie,
        jsonrpc_import=raw.jsonrpc_import,
        index_batch_size=raw.index_batch_size,
        bulk_index_threads=bulk_index_threads,
        txid_limit=raw.txid_limit,
        blocktxids_cache_size=int(raw.blocktxids_cache_size_mb * MB),
        verbose=raw.verbose,
        timestamp=raw.timestamp,
    )


def emit_config(config: Config, stream: Optional[IO[str]] = None) -> None:
    """Pretty-print the resolved configuration for the operator."""
    if stream is None:
        console = Console(stderr=True, highlight=False)
    else:
        console = Console(file=stream, highlight=False, color_system=None)
    console.print(Pretty(config.to_dict(), expand_all=True))
