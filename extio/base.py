"""
Capability Contract - Base Interface

One interface for files, object storage, networking, databases, processes,
queues, IPC, time, environment, observability and crypto.

A backend overrides only the operations it supports. Everything else keeps
the default: an UNSUPPORTED error of the backend's own error type. `now` is
the one exception and reads the real clock.

Blocking-safe operations are plain methods. Suspension-required operations
are coroutines. The split is fixed here and enforced on every subclass.
"""

import inspect
from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Type, Union

from extio.errors import ExtioError
from extio.utils.logger import get_logger

logger = get_logger('contract')

PathLike = Union[str, Path]
Duration = Union[timedelta, int, float]
HeaderList = List[Tuple[str, str]]


class OperationGroup(Enum):
    """Domains the contract covers"""
    FILE = "file"
    OBJECT_STORAGE = "object_storage"
    NETWORK = "network"
    WEBSOCKET = "websocket"
    DATABASE = "database"
    PROCESS = "process"
    QUEUE = "queue"
    IPC = "ipc"
    TIME = "time"
    ENV = "env"
    OBSERVABILITY = "observability"
    CRYPTO = "crypto"


class IoCapability(Enum):
    """One member per operation; values are the method names"""
    READ_FILE = "read_file"
    WRITE_FILE = "write_file"
    DELETE_FILE = "delete_file"
    LIST_DIR = "list_dir"
    STORAGE_PUT = "storage_put"
    STORAGE_GET = "storage_get"
    STORAGE_DELETE = "storage_delete"
    HTTP_REQUEST = "http_request"
    TCP_SEND = "tcp_send"
    UDP_SEND = "udp_send"
    WS_CONNECT = "ws_connect"
    WS_SEND = "ws_send"
    WS_RECEIVE = "ws_receive"
    DB_QUERY = "db_query"
    DB_EXECUTE = "db_execute"
    EXEC = "exec"
    MQ_PUBLISH = "mq_publish"
    MQ_CONSUME = "mq_consume"
    IPC_SEND = "ipc_send"
    IPC_RECEIVE = "ipc_receive"
    NOW = "now"
    SLEEP = "sleep"
    GET_ENV = "get_env"
    SET_ENV = "set_env"
    LOG = "log"
    RECORD_METRIC = "record_metric"
    GET_SECRET = "get_secret"
    SIGN = "sign"
    VERIFY = "verify"


@dataclass(frozen=True)
class OperationSpec:
    """Fixed shape of one operation"""
    capability: IoCapability
    group: OperationGroup
    suspends: bool

    @property
    def name(self) -> str:
        return self.capability.value


def _spec(capability: IoCapability, group: OperationGroup, suspends: bool) -> Tuple[IoCapability, OperationSpec]:
    return capability, OperationSpec(capability, group, suspends)


OPERATIONS: Dict[IoCapability, OperationSpec] = dict([
    _spec(IoCapability.READ_FILE, OperationGroup.FILE, False),
    _spec(IoCapability.WRITE_FILE, OperationGroup.FILE, False),
    _spec(IoCapability.DELETE_FILE, OperationGroup.FILE, False),
    _spec(IoCapability.LIST_DIR, OperationGroup.FILE, False),
    _spec(IoCapability.STORAGE_PUT, OperationGroup.OBJECT_STORAGE, True),
    _spec(IoCapability.STORAGE_GET, OperationGroup.OBJECT_STORAGE, True),
    _spec(IoCapability.STORAGE_DELETE, OperationGroup.OBJECT_STORAGE, True),
    _spec(IoCapability.HTTP_REQUEST, OperationGroup.NETWORK, True),
    _spec(IoCapability.TCP_SEND, OperationGroup.NETWORK, True),
    _spec(IoCapability.UDP_SEND, OperationGroup.NETWORK, True),
    _spec(IoCapability.WS_CONNECT, OperationGroup.WEBSOCKET, True),
    _spec(IoCapability.WS_SEND, OperationGroup.WEBSOCKET, True),
    _spec(IoCapability.WS_RECEIVE, OperationGroup.WEBSOCKET, True),
    _spec(IoCapability.DB_QUERY, OperationGroup.DATABASE, True),
    _spec(IoCapability.DB_EXECUTE, OperationGroup.DATABASE, True),
    _spec(IoCapability.EXEC, OperationGroup.PROCESS, True),
    _spec(IoCapability.MQ_PUBLISH, OperationGroup.QUEUE, True),
    _spec(IoCapability.MQ_CONSUME, OperationGroup.QUEUE, True),
    _spec(IoCapability.IPC_SEND, OperationGroup.IPC, True),
    _spec(IoCapability.IPC_RECEIVE, OperationGroup.IPC, True),
    _spec(IoCapability.NOW, OperationGroup.TIME, False),
    _spec(IoCapability.SLEEP, OperationGroup.TIME, True),
    _spec(IoCapability.GET_ENV, OperationGroup.ENV, False),
    _spec(IoCapability.SET_ENV, OperationGroup.ENV, False),
    _spec(IoCapability.LOG, OperationGroup.OBSERVABILITY, False),
    _spec(IoCapability.RECORD_METRIC, OperationGroup.OBSERVABILITY, False),
    _spec(IoCapability.GET_SECRET, OperationGroup.CRYPTO, False),
    _spec(IoCapability.SIGN, OperationGroup.CRYPTO, False),
    _spec(IoCapability.VERIFY, OperationGroup.CRYPTO, False),
])


def to_seconds(duration: Duration) -> float:
    """Normalize a timedelta or number of seconds"""
    if isinstance(duration, timedelta):
        seconds = duration.total_seconds()
    else:
        seconds = float(duration)
    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {duration!r}")
    return seconds


class HeaderLookup:
    """Case-insensitive access to a `headers` multimap"""

    headers: HeaderList

    def header(self, name: str) -> Optional[str]:
        """First value for a header"""
        values = self.header_values(name)
        return values[0] if values else None

    def header_values(self, name: str) -> List[str]:
        """All values for a header, in order"""
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]


@dataclass
class HttpRequest(HeaderLookup):
    """Structured HTTP request (header multimap keeps order and duplicates)"""
    method: str = "GET"
    uri: str = ""
    headers: HeaderList = field(default_factory=list)
    body: bytes = b""


@dataclass
class HttpResponse(HeaderLookup):
    """Structured HTTP response"""
    status: int
    headers: HeaderList = field(default_factory=list)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body"""
        return self.body.decode(encoding, errors="replace")


class IoFacade(ABC):
    """
    Capability contract for I/O backends.

    Subclasses set `Error` to their single error class and override the
    operations they provide. Overrides must keep each operation's kind:
    coroutine for suspension-required, plain method for blocking-safe.
    """

    Error: Type[ExtioError] = ExtioError

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        if not (isinstance(cls.Error, type) and issubclass(cls.Error, ExtioError)):
            raise TypeError(f"{cls.__name__}.Error must be a subclass of ExtioError")

        for spec in OPERATIONS.values():
            impl = cls.__dict__.get(spec.name)
            if impl is None:
                continue
            if inspect.iscoroutinefunction(impl) != spec.suspends:
                expected = "a coroutine" if spec.suspends else "a plain (blocking-safe) method"
                raise TypeError(
                    f"{cls.__name__}.{spec.name} must be {expected}"
                )

    @classmethod
    def supported_capabilities(cls) -> Set[IoCapability]:
        """Operations this class overrides (plus `now`, which always works)"""
        supported = {IoCapability.NOW}
        for spec in OPERATIONS.values():
            if getattr(cls, spec.name) is not getattr(IoFacade, spec.name):
                supported.add(spec.capability)
        return supported

    def capabilities(self) -> Set[IoCapability]:
        """Operations this instance provides"""
        return self.supported_capabilities()

    def supports(self, capability: IoCapability) -> bool:
        """Check if backend provides an operation"""
        return capability in self.capabilities()

    def _unsupported(self, operation: str) -> ExtioError:
        backend = self.__class__.__name__
        logger.debug(f"{backend}: {operation} not supported")
        return self.Error.unsupported_operation(operation, backend)

    # ============================================
    # FILE
    # ============================================

    def read_file(self, path: PathLike) -> bytes:
        """Read a whole file into memory"""
        raise self._unsupported("read_file")

    def write_file(self, path: PathLike, data: bytes) -> None:
        """Write bytes to a file, creating or truncating it"""
        raise self._unsupported("write_file")

    def delete_file(self, path: PathLike) -> None:
        """Delete a file"""
        raise self._unsupported("delete_file")

    def list_dir(self, path: PathLike) -> List[str]:
        """List entry names in a directory"""
        raise self._unsupported("list_dir")

    # ============================================
    # OBJECT STORAGE
    # ============================================

    async def storage_put(self, key: str, data: bytes) -> None:
        """Upload a blob under a key"""
        raise self._unsupported("storage_put")

    async def storage_get(self, key: str) -> bytes:
        """Fetch the blob stored under a key"""
        raise self._unsupported("storage_get")

    async def storage_delete(self, key: str) -> None:
        """Remove the blob stored under a key"""
        raise self._unsupported("storage_delete")

    # ============================================
    # NETWORK
    # ============================================

    async def http_request(self, request: HttpRequest) -> HttpResponse:
        """Send an HTTP request and return the response"""
        raise self._unsupported("http_request")

    async def tcp_send(self, addr: str, data: bytes) -> bytes:
        """Send bytes over TCP and return the reply"""
        raise self._unsupported("tcp_send")

    async def udp_send(self, addr: str, data: bytes) -> None:
        """Send one UDP datagram (fire-and-forget)"""
        raise self._unsupported("udp_send")

    # ============================================
    # WEBSOCKET
    # ============================================

    async def ws_connect(self, url: str) -> None:
        """Open a WebSocket connection"""
        raise self._unsupported("ws_connect")

    async def ws_send(self, message: bytes) -> None:
        """Send a WebSocket message"""
        raise self._unsupported("ws_send")

    async def ws_receive(self) -> bytes:
        """Receive the next WebSocket message"""
        raise self._unsupported("ws_receive")

    # ============================================
    # DATABASE
    # ============================================

    async def db_query(self, query: str, params: bytes) -> bytes:
        """
        Run a query that returns rows.

        Args:
            query: Query text
            params: Serialized parameters (encoding is backend-defined)

        Returns:
            Raw result set as bytes
        """
        raise self._unsupported("db_query")

    async def db_execute(self, query: str, params: bytes) -> int:
        """Run a statement and return the number of affected rows"""
        raise self._unsupported("db_execute")

    # ============================================
    # PROCESS
    # ============================================

    async def exec(self, cmd: str, args: List[str]) -> Tuple[int, bytes]:
        """Run a command and return (exit code, combined output)"""
        raise self._unsupported("exec")

    # ============================================
    # QUEUE / IPC
    # ============================================

    async def mq_publish(self, topic: str, data: bytes) -> None:
        """Publish a message to a topic"""
        raise self._unsupported("mq_publish")

    async def mq_consume(self, topic: str) -> bytes:
        """Consume the next message from a topic"""
        raise self._unsupported("mq_consume")

    async def ipc_send(self, channel: str, data: bytes) -> None:
        """Send a message over a named channel"""
        raise self._unsupported("ipc_send")

    async def ipc_receive(self, channel: str) -> bytes:
        """Receive the next message from a named channel"""
        raise self._unsupported("ipc_receive")

    # ============================================
    # TIME
    # ============================================

    def now(self) -> datetime:
        """Current wall-clock time (UTC)"""
        return datetime.now(timezone.utc)

    async def sleep(self, duration: Duration) -> None:
        """Suspend for a duration"""
        raise self._unsupported("sleep")

    # ============================================
    # ENVIRONMENT
    # ============================================

    def get_env(self, key: str) -> Optional[str]:
        """Read an environment value"""
        raise self._unsupported("get_env")

    def set_env(self, key: str, value: str) -> None:
        """Set an environment value"""
        raise self._unsupported("set_env")

    # ============================================
    # OBSERVABILITY
    # ============================================

    def log(self, level: str, message: str) -> None:
        """Write a log entry at a severity level"""
        raise self._unsupported("log")

    def record_metric(self, name: str, value: float) -> None:
        """Record a numeric metric sample"""
        raise self._unsupported("record_metric")

    # ============================================
    # CRYPTO
    # ============================================

    def get_secret(self, key: str) -> bytes:
        """Fetch a secret value"""
        raise self._unsupported("get_secret")

    def sign(self, data: bytes) -> bytes:
        """Sign data with the backend's key"""
        raise self._unsupported("sign")

    def verify(self, data: bytes, signature: bytes) -> bool:
        """Check a signature produced by sign()"""
        raise self._unsupported("verify")
