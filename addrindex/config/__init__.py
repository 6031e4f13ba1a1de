"""
addrindex Configuration

Flags, ADDRINDEX_* environment variables and TOML files are merged into a
`RawConfig`, then resolved against the network profile into `Config`.
"""

from .network import Network, NetworkProfile, network_profile
from .loader import (
    RawConfig,
    config_file_paths,
    default_daemon_dir,
    load_raw_config,
)
from .config import Config, build_config, emit_config

__all__ = [
    "Network",
    "NetworkProfile",
    "network_profile",
    "RawConfig",
    "config_file_paths",
    "default_daemon_dir",
    "load_raw_config",
    "Config",
    "build_config",
    "emit_config",
]
