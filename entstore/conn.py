"""Connection manager: lazily created server/database handles plus reconnection."""

import threading
from typing import Any, Callable, Mapping, Optional, Union
from .client import SqlAlchemyServer
from .config import ConnectionSpec, StoreOptions, parse_spec
from .errors import NotConfiguredError, classify
from .reconnect import ReconnectLoop
import logging

logger = logging.getLogger(__name__)

ServerFactory = Callable[[ConnectionSpec, StoreOptions], Any]


class ConnectionManager:
    """Owns one server handle and one database handle for the life of a store.

    Handles are created once by configure() and reused; they are only replaced
    by the reconnection loop or a later configure() after close().
    """
    def __init__(self, options: Optional[StoreOptions] = None, server_factory: Optional[ServerFactory] = None):
        self.options = options or StoreOptions()
        self._server_factory = server_factory or SqlAlchemyServer
        self._lock = threading.RLock()
        self._spec: Union[str, Mapping[str, Any], None] = None
        self._server = None
        self._db = None
        self._closed = False
        self.loop = ReconnectLoop(self._reconnect_once, self.options.minwait, self.options.maxwait)

    @property
    def wait(self) -> int:
        return self.loop.wait

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._db is not None

    def configure(self, spec: Union[str, Mapping[str, Any], None] = None):
        """Create missing handles for spec (or the last spec) and check the database answers.

        Supersedes a running reconnection loop.
        """
        self.loop.cancel()
        self._configure(spec)

    def _configure(self, spec: Union[str, Mapping[str, Any], None] = None, cancel: Optional[threading.Event] = None):
        with self._lock:
            if cancel is not None and (cancel.is_set() or self._closed):
                raise NotConfiguredError('Reconnect cancelled')
            if spec is not None:
                self._spec = spec
            if self._spec is None:
                raise NotConfiguredError('No connection spec given')
            cspec = parse_spec(self._spec)
            if self._server is None:
                self._server = self._server_factory(cspec, self.options)
            if self._db is None:
                self._db = self._server.use(cspec.name, cspec.dbuser, cspec.dbpass)
            self._closed = False
            db = self._db
        ping = getattr(db, 'ping', None)
        if ping is not None:
            try:
                ping()
            except Exception as e:
                raise classify(e) from e

    def database(self):
        """Active database handle; configures lazily unless closed."""
        with self._lock:
            if self._db is not None:
                return self._db
            if self._closed or self._spec is None:
                raise NotConfiguredError()
        self._configure()
        with self._lock:
            if self._db is None:
                raise NotConfiguredError()
            return self._db

    def connection_lost(self) -> bool:
        """Start reconnecting in the background; no-op while a reconnect is running."""
        with self._lock:
            if self._closed:
                return False
        started = self.loop.trigger()
        if not started:
            logger.debug('reconnect already in progress')
        return started

    def _reconnect_once(self, cancel: threading.Event):
        with self._lock:
            if cancel.is_set() or self._closed:
                return
            old = self._server
            self._server = None
            self._db = None
        if old is not None:
            try:
                old.close()
            except Exception as e:
                logger.debug(f'Ignoring error closing stale server handle: {e}')
        self._configure(cancel=cancel)

    def close(self):
        """Release the server handle; operations fail with NotConfiguredError until configure()."""
        self.loop.cancel()
        with self._lock:
            server = self._server
            self._server = None
            self._db = None
            self._closed = True
        if server is not None:
            server.close()
