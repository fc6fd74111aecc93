"""Exception hierarchy for entity store operations."""

import errno
from typing import Any, Optional

from sqlalchemy.exc import DBAPIError

# Best-effort allow-list; not an exhaustive classification of driver errors.
LOSS_CODES = ('ECONNREFUSED', errno.ECONNREFUSED)
LOSS_MESSAGES = (
    'notconnected',
    'not connected',
    'no open connections',
    'connection refused',
    'server closed the connection',
    'connection reset',
)


class StoreError(Exception):
    """Base exception for all entity store errors."""
    critical = True


class ConfigError(StoreError):
    """Raised when a connection spec cannot be parsed."""


class NotConfiguredError(StoreError):
    """Raised when an operation runs before configure() or after close()."""

    def __init__(self, message: str = 'Store is not connected; call configure() first'):
        super().__init__(message)


class EmptyQueryError(StoreError):
    """Raised when a statement has no text."""

    def __init__(self, message: str = 'Query cannot be empty'):
        super().__init__(message)


class TransportError(StoreError):
    """Failure reported by the underlying database client."""

    def __init__(self, message: str, code: Any = None, statement: Any = None):
        self.code = code
        self.statement = statement
        super().__init__(message)


class ConnectionLostError(TransportError):
    """Transport failure matching a known connection-loss signature."""


class NoCandidateError(StoreError):
    """A remove or update matched no rows."""
    critical = False

    def __init__(self, message: str = 'no candidate for deletion'):
        super().__init__(message)


def error_code(err: BaseException) -> Optional[Any]:
    """Driver/OS error code if the exception carries one."""
    if isinstance(err, DBAPIError) and err.orig is not None:
        orig = err.orig
        return getattr(orig, 'pgcode', None) or getattr(orig, 'errno', None) or getattr(orig, 'code', None)
    code = getattr(err, 'code', None)
    return code if code is not None else getattr(err, 'errno', None)


def is_connection_lost(err: BaseException) -> bool:
    """Match err against the known connection-loss signatures."""
    if isinstance(err, DBAPIError) and err.connection_invalidated:
        return True
    if isinstance(err, ConnectionRefusedError):
        return True
    if error_code(err) in LOSS_CODES:
        return True
    msg = str(err).lower()
    return any(m in msg for m in LOSS_MESSAGES)


def classify(err: BaseException, statement: Any = None) -> TransportError:
    """Wrap a raw client exception into TransportError or ConnectionLostError."""
    cls = ConnectionLostError if is_connection_lost(err) else TransportError
    return cls(str(err) or err.__class__.__name__, code=error_code(err), statement=statement)
