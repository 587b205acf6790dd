"""
Backends

Concrete implementations of the capability contract. Importing this package
registers each backend with BackendFactory.
"""

from extio.backends.http import HttpxBackend, HttpxBackendError
from extio.backends.local import LocalBackend, LocalBackendError
from extio.backends.memory import MemoryBackend, MemoryBackendError
from extio.backends.sqlite import SqliteBackend, SqliteBackendError
from extio.backends.network import SocketBackend, SocketBackendError, parse_address
from extio.backends.crypto import SecretsBackend, SecretsBackendError
from extio.backends.composite import CompositeBackend, CompositeBackendError

__all__ = [
    'HttpxBackend',
    'HttpxBackendError',
    'LocalBackend',
    'LocalBackendError',
    'MemoryBackend',
    'MemoryBackendError',
    'SqliteBackend',
    'SqliteBackendError',
    'SocketBackend',
    'SocketBackendError',
    'parse_address',
    'SecretsBackend',
    'SecretsBackendError',
    'CompositeBackend',
    'CompositeBackendError'
]
