"""
addrindex Network Profiles

Per-network constants: storage subdirectory, daemon data subdirectory and
default RPC ports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..exceptions import ConfigurationError


class Network(Enum):
    """Bitcoin network the indexer follows."""
    MAINNET = "bitcoin"
    TESTNET = "testnet"
    REGTEST = "regtest"

    @classmethod
    def parse(cls, value: Union[str, "Network"]) -> "Network":
        """Parse a network name as found in flags, env vars and config files."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            if name == "mainnet":
                return cls.MAINNET
            for network in cls:
                if network.value == name:
                    return network
        raise ConfigurationError(
            f"invalid network {value!r}: expected either 'bitcoin', 'testnet' or 'regtest'"
        )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NetworkProfile:
    """Immutable per-network defaults."""
    db_subdir: str
    daemon_subdir: str
    default_daemon_rpc_port: int
    default_indexer_rpc_port: int


# "mainnet" must stay as is: existing databases live under that name
_PROFILES = {
    Network.MAINNET: NetworkProfile(
        db_subdir="mainnet",
        daemon_subdir="",
        default_daemon_rpc_port=8332,
        default_indexer_rpc_port=8432,
    ),
    Network.TESTNET: NetworkProfile(
        db_subdir="testnet",
        daemon_subdir="testnet3",
        default_daemon_rpc_port=18332,
        default_indexer_rpc_port=18432,
    ),
    Network.REGTEST: NetworkProfile(
        db_subdir="regtest",
        daemon_subdir="regtest",
        default_daemon_rpc_port=18443,
        default_indexer_rpc_port=18543,
    ),
}


def network_profile(network: Network) -> NetworkProfile:
    return _PROFILES[network]
