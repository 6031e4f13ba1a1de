#!/usr/bin/env python3
"""
addrindex Command Line

Resolves the indexer configuration from flags, environment variables and
config files, then initializes logging.

Usage:
    addrindex [--network NETWORK] [--db-dir DIR] [--daemon-dir DIR] [-v...] ...

Every flag can also be set as ADDRINDEX_<NAME> in the environment or as
<name> in a TOML config file. Flags win over the environment, which wins over
config files.
"""

import click
from click.core import ParameterSource

from .config import Config, emit_config
from .exceptions import ConfigurationError, LoggingInitError
from .logger import LogManager, get_logger

logger = get_logger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--conf", "conf", multiple=True, type=click.Path(dir_okay=False),
              help="Extra TOML config file, searched before the default locations.")
@click.option("--network", type=click.Choice(["bitcoin", "mainnet", "testnet", "regtest"], case_sensitive=False),
              help="Network to index: 'bitcoin', 'testnet' or 'regtest'.")
@click.option("--db-dir", type=click.Path(file_okay=False),
              help="Directory to store the index database in.")
@click.option("--daemon-dir", type=click.Path(file_okay=False),
              help="Data directory of bitcoind (default ~/.bitcoin).")
@click.option("--daemon-rpc-host", help="bitcoind JSON-RPC host (default 127.0.0.1).")
@click.option("--daemon-rpc-port", type=click.IntRange(1, 65535),
              help="bitcoind JSON-RPC port (default depends on the network).")
@click.option("--cookie", help="JSONRPC authentication cookie ('USER:PASSWORD'); read from the daemon's .cookie file if unset.")
@click.option("--indexer-rpc-host", help="Indexer RPC listen address (default 127.0.0.1).")
@click.option("--indexer-rpc-port", type=click.IntRange(1, 65535),
              help="Indexer RPC listen port (default depends on the network).")
@click.option("--jsonrpc-import/--no-jsonrpc-import", default=False,
              help="Fetch blocks over JSON-RPC instead of reading blk*.dat files.")
@click.option("--index-batch-size", type=click.IntRange(min=0),
              help="Number of blocks to fetch in a single batch.")
@click.option("--bulk-index-threads", type=click.IntRange(min=0),
              help="Number of threads used for bulk indexing (0 = one per CPU).")
@click.option("--txid-limit", type=click.IntRange(min=0),
              help="Maximum number of transactions returned per address lookup.")
@click.option("--blocktxids-cache-size-mb", type=click.FloatRange(min=0),
              help="Size of the block txids cache in MB.")
@click.option("-v", "--verbose", count=True, help="Increase logging verbosity.")
@click.option("--timestamp/--no-timestamp", default=False,
              help="Prepend millisecond timestamps to log records.")
@click.pass_context
def main(ctx, conf, **params):
    """Address indexer for bitcoind."""
    # Only values typed on the command line; env vars and files are merged by the loader
    overrides = {
        name: value for name, value in params.items()
        if ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE
    }

    try:
        config = Config.from_args(overrides=overrides, extra_config_files=conf, emit=False)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    try:
        LogManager().configure(verbosity=config.verbose, timestamp=config.timestamp)
    except LoggingInitError as e:
        raise click.ClickException(f"logging initialization failed: {e}") from e

    emit_config(config)

    logger.info(
        "Configured for %s: database %s, daemon %s:%d",
        config.network_type, config.db_path, *config.daemon_rpc_addr,
    )
    logger.debug("Using %r for daemon authentication", config.cookie_getter())
    return config


if __name__ == "__main__":
    main()
