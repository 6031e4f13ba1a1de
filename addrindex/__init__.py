"""
addrindex Package

Runtime configuration and daemon credentials for the address indexer.

    from addrindex.config import Config
    from addrindex.cookie import CookieGetter
    from addrindex.exceptions import ConfigurationError
"""

# Lazy imports keep `import addrindex` free of third-party imports
def __getattr__(name):
    if name == 'Config':
        from .config import Config
        return Config
    elif name == 'main':
        from .cli import main
        return main
    raise AttributeError(f"module 'addrindex' has no attribute {name!r}")

__all__ = ['Config', 'main']
