"""
addrindex Constants

Fixed constants and `.env`-driven logger defaults used throughout the
package.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load .env once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_FORMAT':                      '%(levelname)s - %(name)s - %(message)s',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
}


# ==================================================================================
# CONFIGURATION SOURCES
# ==================================================================================
ENV_PREFIX = 'ADDRINDEX_'
CWD_CONFIG_FILE = 'addrindex.toml'
HOME_CONFIG_DIR = '.addrindex'
HOME_CONFIG_FILE = 'config.toml'
SYSTEM_CONFIG_FILE = '/etc/addrindex/config.toml'
DEFAULT_DAEMON_DIR_NAME = '.bitcoin'


# ==================================================================================
# RPC
# ==================================================================================
DEFAULT_SERVER_ADDRESS = '127.0.0.1'  # serve on IPv4 localhost
COOKIE_FILE_NAME = '.cookie'


# ==================================================================================
# INDEXER DEFAULTS
# ==================================================================================
DEFAULT_DB_DIR = './db'
DEFAULT_INDEX_BATCH_SIZE = 100
DEFAULT_BULK_INDEX_THREADS = 0  # 0 = one thread per CPU
DEFAULT_TXID_LIMIT = 100
DEFAULT_BLOCKTXIDS_CACHE_SIZE_MB = 10.0

MB = 1 << 20


# ==================================================================================
# LOGGING
# ==================================================================================
# Verbosity counter (-v) to logging level; anything above the last entry is DEBUG
VERBOSITY_LEVELS = ('ERROR', 'WARNING', 'INFO', 'DEBUG')
LOG_DATE_FORMAT = '%Y-%m-%dT%H:%M:%S'


def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Only calls ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v


def _env_default(key):
    raw = _config.get(key)
    return parse_bool(LOGGER_DEFAULTS[key] if raw is None else raw)


LOG_FORMAT = str(_env_default('LOG_FORMAT'))
LOG_CONSOLE_HIGHLIGHTING = _env_default('LOG_CONSOLE_HIGHLIGHTING') is True
