from .store import EntityStore
from .entity import Entity, tablename, makeentp, makeent, fixquery
from .conn import ConnectionManager
from .executor import QueryExecutor
from .reconnect import ReconnectLoop, LoopState
from .rows import map_row
from .config import DB_CONFIG, StoreOptions, ConnectionSpec, parse_spec
from .audit import Audit, audited
from .client import SqlAlchemyServer, SqlAlchemyDatabase
from .errors import (
    StoreError, ConfigError, NotConfiguredError, EmptyQueryError, TransportError,
    ConnectionLostError, NoCandidateError, is_connection_lost, classify
)

__all__ = [
    'EntityStore', 'Entity', 'tablename', 'makeentp', 'makeent', 'fixquery',
    'ConnectionManager', 'QueryExecutor', 'ReconnectLoop', 'LoopState', 'map_row',
    'DB_CONFIG', 'StoreOptions', 'ConnectionSpec', 'parse_spec', 'Audit', 'audited',
    'SqlAlchemyServer', 'SqlAlchemyDatabase', 'StoreError', 'ConfigError',
    'NotConfiguredError', 'EmptyQueryError', 'TransportError', 'ConnectionLostError',
    'NoCandidateError', 'is_connection_lost', 'classify'
]
