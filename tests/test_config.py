"""
addrindex Config Builder Tests

Covers:
- network-dependent db_path / daemon_dir derivation
- host and port defaulting
- bulk_index_threads "auto" sentinel
- blocktxids cache size conversion
- cookie getter selection
- Config.from_args end to end
"""

import io
from ipaddress import IPv4Address
from pathlib import Path
from unittest.mock import patch

import pytest

from addrindex.config import Config, RawConfig, build_config
from addrindex.config.network import Network
from addrindex.cookie import CookieFile, StaticCookie
from addrindex.exceptions import ConfigurationError


def make_raw(**kwargs) -> RawConfig:
    kwargs.setdefault("daemon_dir", Path("/home/user/.bitcoin"))
    kwargs.setdefault("db_dir", Path("/var/lib/addrindex"))
    return RawConfig(**kwargs)


# ============================================================================
# Paths
# ============================================================================

class TestPaths:

    @pytest.mark.parametrize("network,subdir", [
        (Network.MAINNET, "mainnet"),
        (Network.TESTNET, "testnet"),
        (Network.REGTEST, "regtest"),
    ])
    def test_db_path(self, network, subdir):
        config = build_config(make_raw(network=network))
        assert config.db_path == Path("/var/lib/addrindex") / subdir

    def test_mainnet_daemon_dir_unmodified(self):
        config = build_config(make_raw(network=Network.MAINNET))
        assert config.daemon_dir == Path("/home/user/.bitcoin")

    def test_testnet_daemon_dir(self):
        config = build_config(make_raw(network=Network.TESTNET))
        assert config.daemon_dir == Path("/home/user/.bitcoin/testnet3")
        assert config.daemon_dir.name == "testnet3"

    def test_regtest_daemon_dir(self):
        config = build_config(make_raw(network=Network.REGTEST))
        assert config.daemon_dir.name == "regtest"


# ============================================================================
# Addresses
# ============================================================================

class TestAddresses:

    @pytest.mark.parametrize("network,daemon_port,indexer_port", [
        (Network.MAINNET, 8332, 8432),
        (Network.TESTNET, 18332, 18432),
        (Network.REGTEST, 18443, 18543),
    ])
    def test_default_ports(self, network, daemon_port, indexer_port):
        config = build_config(make_raw(network=network))
        assert config.daemon_rpc_port == daemon_port
        assert config.indexer_rpc_port == indexer_port

    def test_explicit_ports(self):
        config = build_config(make_raw(
            network=Network.TESTNET, daemon_rpc_port=9000, indexer_rpc_port=9001,
        ))
        assert config.daemon_rpc_port == 9000
        assert config.indexer_rpc_port == 9001

    def test_default_hosts(self):
        config = build_config(make_raw())
        assert config.daemon_rpc_host == IPv4Address("127.0.0.1")
        assert config.indexer_rpc_host == IPv4Address("127.0.0.1")

    def test_explicit_hosts(self):
        config = build_config(make_raw(daemon_rpc_host="10.0.0.2", indexer_rpc_host="0.0.0.0"))
        assert config.daemon_rpc_addr == ("10.0.0.2", 8332)
        assert config.indexer_rpc_addr == ("0.0.0.0", 8432)


# ============================================================================
# Derived sizes
# ============================================================================

class TestDerivedValues:

    def test_auto_threads_uses_cpu_count(self):
        config = build_config(make_raw(bulk_index_threads=0), cpu_count=6)
        assert config.bulk_index_threads == 6

    def test_auto_threads_from_host(self):
        config = build_config(make_raw(bulk_index_threads=0))
        assert config.bulk_index_threads >= 1

    def test_auto_threads_when_cpu_count_unknown(self):
        with patch("addrindex.config.config.os.cpu_count", return_value=None):
            config = build_config(make_raw(bulk_index_threads=0))
        assert config.bulk_index_threads == 1

    @pytest.mark.parametrize("threads", [1, 3, 64])
    def test_explicit_threads_kept(self, threads):
        config = build_config(make_raw(bulk_index_threads=threads), cpu_count=8)
        assert config.bulk_index_threads == threads

    @pytest.mark.parametrize("mb,expected", [
        (1.0, 1_048_576),
        (2.5, 2_621_440),
        (0.0, 0),
        (10.0, 10_485_760),
        (0.0000001, 0),
    ])
    def test_blocktxids_cache_size(self, mb, expected):
        config = build_config(make_raw(blocktxids_cache_size_mb=mb))
        assert config.blocktxids_cache_size == expected
        assert isinstance(config.blocktxids_cache_size, int)

    def test_passthrough(self):
        config = build_config(make_raw(
            cookie="alice:secret",
            jsonrpc_import=True,
            index_batch_size=7,
            txid_limit=42,
            verbose=2,
            timestamp=True,
        ))
        assert config.cookie == "alice:secret"
        assert config.jsonrpc_import is True
        assert config.index_batch_size == 7
        assert config.txid_limit == 42
        assert config.verbose == 2
        assert config.timestamp is True
        assert config.network_type is Network.MAINNET

    def test_config_is_frozen(self):
        config = build_config(make_raw())
        with pytest.raises(Exception):
            config.daemon_rpc_port = 1


# ============================================================================
# Cookie getter selection
# ============================================================================

class TestCookieGetter:

    def test_static_cookie(self, tmp_path):
        (tmp_path / ".cookie").write_bytes(b"file:value")
        config = build_config(make_raw(cookie="alice:secret", daemon_dir=tmp_path))
        getter = config.cookie_getter()
        assert isinstance(getter, StaticCookie)
        assert getter.get() == b"alice:secret"
        assert getter.get() == b"alice:secret"

    def test_cookie_file(self, tmp_path):
        (tmp_path / ".cookie").write_bytes(b"bob:pw")
        config = build_config(make_raw(daemon_dir=tmp_path))
        getter = config.cookie_getter()
        assert isinstance(getter, CookieFile)
        assert getter.get() == b"bob:pw"

    def test_cookie_file_follows_network(self, tmp_path):
        config = build_config(make_raw(network=Network.REGTEST, daemon_dir=tmp_path))
        assert config.cookie_getter().path == tmp_path / "regtest" / ".cookie"

    def test_new_getter_per_call(self):
        config = build_config(make_raw())
        assert config.cookie_getter() is not config.cookie_getter()


# ============================================================================
# Diagnostics
# ============================================================================

class TestDiagnostics:

    def test_to_dict_hides_cookie(self):
        config = build_config(make_raw(cookie="alice:secret"))
        data = config.to_dict()
        assert data["cookie"] == "<hidden>"
        assert "alice:secret" not in repr(config)

    def test_to_dict(self):
        config = build_config(make_raw(network=Network.TESTNET))
        data = config.to_dict()
        assert data["network_type"] == "testnet"
        assert data["daemon_rpc_host"] == "127.0.0.1"
        assert data["daemon_rpc_port"] == 18332
        assert data["cookie"] is None


# ============================================================================
# Full startup path
# ============================================================================

class TestFromArgs:

    def test_from_args(self, home):
        Path("addrindex.toml").write_text('network = "testnet"\nbulk_index_threads = 2\n')
        stream = io.StringIO()
        config = Config.from_args(environ={}, stream=stream)
        assert config.network_type is Network.TESTNET
        assert config.daemon_dir == home / ".bitcoin" / "testnet3"
        assert config.db_path == Path("./db/testnet")
        assert config.bulk_index_threads == 2
        assert "'network_type': 'testnet'" in stream.getvalue()

    def test_zero_overrides_file_threads(self, home):
        Path("addrindex.toml").write_text("bulk_index_threads = 2\n")
        config = Config.from_args(
            overrides={"bulk_index_threads": 0}, environ={}, stream=io.StringIO(),
        )
        assert config.bulk_index_threads >= 1
        with patch("addrindex.config.config.os.cpu_count", return_value=12):
            config = Config.from_args(
                overrides={"bulk_index_threads": 0}, environ={}, stream=io.StringIO(),
            )
        assert config.bulk_index_threads == 12

    def test_extra_config_file(self, home, tmp_path):
        extra = tmp_path / "extra.toml"
        extra.write_text('network = "regtest"\n')
        Path("addrindex.toml").write_text('network = "testnet"\n')
        config = Config.from_args(extra_config_files=[extra], environ={}, stream=io.StringIO())
        assert config.network_type is Network.REGTEST

    def test_emitted_config_hides_cookie(self, home):
        stream = io.StringIO()
        Config.from_args(overrides={"cookie": "alice:secret"}, environ={}, stream=stream)
        assert "alice:secret" not in stream.getvalue()
        assert "<hidden>" in stream.getvalue()

    def test_unknown_home_is_fatal(self, home, monkeypatch):
        from addrindex.config import loader

        monkeypatch.setattr(loader, "home_dir", lambda: None)
        with pytest.raises(ConfigurationError, match="unknown home directory"):
            Config.from_args(environ={}, stream=io.StringIO())
