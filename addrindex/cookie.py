"""
addrindex Daemon Authentication Cookies

Credentials for the bitcoind RPC interface. A `CookieGetter` is asked for the
credential every time one is needed, so a rotated `.cookie` file is picked up
without restarting the indexer.
"""

import base64
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from .constants import COOKIE_FILE_NAME
from .exceptions import DaemonConnectionError


class CookieGetter(ABC):
    """
    Supplies the `username:password` credential used for HTTP basic auth.

    Implementations must be safe to call from several threads at once.
    """

    @abstractmethod
    def get(self) -> bytes:
        """
        Return the raw credential.

        Raises:
            DaemonConnectionError: if the credential cannot be obtained.
        """

    def basic_auth(self) -> str:
        """Value of the `Authorization` header for the daemon RPC endpoint."""
        return "Basic " + base64.b64encode(self.get()).decode("ascii")


class StaticCookie(CookieGetter):
    """Credential given directly in the configuration."""

    def __init__(self, value: Union[str, bytes]):
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._value = bytes(value)

    def get(self) -> bytes:
        return self._value

    def __repr__(self) -> str:
        return "StaticCookie(<hidden>)"


class CookieFile(CookieGetter):
    """Credential read from `<daemon_dir>/.cookie` on every call."""

    def __init__(self, daemon_dir: Union[str, Path]):
        self.daemon_dir = Path(daemon_dir)

    @property
    def path(self) -> Path:
        return self.daemon_dir / COOKIE_FILE_NAME

    def get(self) -> bytes:
        path = self.path
        try:
            return path.read_bytes()
        except OSError as e:
            raise DaemonConnectionError(
                f"failed to read cookie from {str(path)!r}: {e}", path=path
            ) from e

    def __repr__(self) -> str:
        return f"CookieFile({str(self.daemon_dir)!r})"
