"""
addrindex Exceptions

Custom exception classes for the address indexer.
"""


class AddrIndexException(Exception):
    """Base exception for addrindex."""
    pass


class ConfigurationError(AddrIndexException):
    """Configuration error. Fatal at startup."""
    pass


class LoggingInitError(AddrIndexException):
    """Logging subsystem could not be initialized."""
    pass


class NetworkError(AddrIndexException):
    """Network communication error."""
    pass


class DaemonConnectionError(NetworkError):
    """
    Could not obtain what is needed to talk to the daemon RPC endpoint.

    Raised lazily, when a credential is actually requested. Callers apply
    their own retry policy.
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
