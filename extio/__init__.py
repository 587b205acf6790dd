"""
extio - One capability surface for I/O

Abstraction layer over files, object storage, networking, databases,
processes, queues, IPC, time, environment, observability and crypto.
"""

from extio.errors import ErrorKind, ExtioError
from extio.base import (
    OPERATIONS,
    Duration,
    HttpRequest,
    HttpResponse,
    IoCapability,
    IoFacade,
    OperationGroup,
    OperationSpec,
    to_seconds
)
from extio.factory import BackendFactory

# Import backends to register them
from extio.backends import (
    CompositeBackend,
    HttpxBackend,
    LocalBackend,
    MemoryBackend,
    SecretsBackend,
    SocketBackend,
    SqliteBackend
)

__version__ = "0.1.0"

__all__ = [
    'ErrorKind',
    'ExtioError',
    'OPERATIONS',
    'Duration',
    'HttpRequest',
    'HttpResponse',
    'IoCapability',
    'IoFacade',
    'OperationGroup',
    'OperationSpec',
    'to_seconds',
    'BackendFactory',
    'CompositeBackend',
    'HttpxBackend',
    'LocalBackend',
    'MemoryBackend',
    'SecretsBackend',
    'SocketBackend',
    'SqliteBackend'
]
