"""
Test Capability Contract

Default behavior, suspension classification and error shape, checked
against backends that override nothing or a single operation.
"""

import inspect
from dataclasses import fields
from datetime import datetime, timedelta, timezone

import pytest

from extio import (
    OPERATIONS,
    ErrorKind,
    ExtioError,
    HttpRequest,
    HttpResponse,
    IoCapability,
    IoFacade,
    OperationGroup,
    to_seconds
)
from extio.base import HeaderLookup


class NullError(ExtioError):
    """Error type for the empty backend"""


class NullBackend(IoFacade):
    """Overrides nothing"""
    Error = NullError


class HttpOnlyError(ExtioError):
    pass


class HttpOnlyBackend(IoFacade):
    """Overrides exactly one operation"""
    Error = HttpOnlyError

    async def http_request(self, request: HttpRequest) -> HttpResponse:
        return HttpResponse(status=204)


SAMPLE_ARGS = {
    IoCapability.READ_FILE: ("a.txt",),
    IoCapability.WRITE_FILE: ("a.txt", b"data"),
    IoCapability.DELETE_FILE: ("a.txt",),
    IoCapability.LIST_DIR: (".",),
    IoCapability.STORAGE_PUT: ("key", b"data"),
    IoCapability.STORAGE_GET: ("key",),
    IoCapability.STORAGE_DELETE: ("key",),
    IoCapability.HTTP_REQUEST: (HttpRequest(uri="http://example.test/"),),
    IoCapability.TCP_SEND: ("127.0.0.1:9", b"data"),
    IoCapability.UDP_SEND: ("127.0.0.1:9", b"data"),
    IoCapability.WS_CONNECT: ("ws://example.test/",),
    IoCapability.WS_SEND: (b"data",),
    IoCapability.WS_RECEIVE: (),
    IoCapability.DB_QUERY: ("SELECT 1", b""),
    IoCapability.DB_EXECUTE: ("DELETE FROM t", b""),
    IoCapability.EXEC: ("echo", ["hi"]),
    IoCapability.MQ_PUBLISH: ("topic", b"data"),
    IoCapability.MQ_CONSUME: ("topic",),
    IoCapability.IPC_SEND: ("channel", b"data"),
    IoCapability.IPC_RECEIVE: ("channel",),
    IoCapability.SLEEP: (0.01,),
    IoCapability.GET_ENV: ("NONEXISTENT_KEY_X",),
    IoCapability.SET_ENV: ("KEY", "VALUE"),
    IoCapability.LOG: ("info", "message"),
    IoCapability.RECORD_METRIC: ("requests", 1.0),
    IoCapability.GET_SECRET: ("api_key",),
    IoCapability.SIGN: (b"data",),
    IoCapability.VERIFY: (b"data", b"signature"),
}

DEFAULTING = [c for c in IoCapability if c is not IoCapability.NOW]


async def invoke(backend: IoFacade, capability: IoCapability):
    """Call an operation with sample arguments, awaiting if it suspends"""
    result = getattr(backend, capability.value)(*SAMPLE_ARGS[capability])
    if OPERATIONS[capability].suspends:
        result = await result
    return result


class TestOperationTable:
    """The fixed shape of the contract"""

    def test_every_capability_has_a_spec(self):
        assert set(OPERATIONS) == set(IoCapability)
        assert len(OPERATIONS) == 29

    def test_sample_args_cover_all_defaulting_operations(self):
        assert set(SAMPLE_ARGS) == set(DEFAULTING)

    @pytest.mark.parametrize("capability", list(IoCapability), ids=lambda c: c.value)
    def test_method_kind_matches_classification(self, capability):
        """Suspension-required operations are coroutines, the rest are not"""
        method = getattr(IoFacade, capability.value)
        assert inspect.iscoroutinefunction(method) == OPERATIONS[capability].suspends

    def test_classification_examples(self):
        assert OPERATIONS[IoCapability.HTTP_REQUEST].suspends is True
        assert OPERATIONS[IoCapability.READ_FILE].suspends is False
        assert OPERATIONS[IoCapability.NOW].suspends is False
        assert OPERATIONS[IoCapability.SLEEP].suspends is True

    def test_groups(self):
        assert OPERATIONS[IoCapability.WS_RECEIVE].group is OperationGroup.WEBSOCKET
        assert OPERATIONS[IoCapability.VERIFY].group is OperationGroup.CRYPTO
        assert {spec.group for spec in OPERATIONS.values()} == set(OperationGroup)


class TestDefaultBehavior:
    """Operations a backend does not override"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("capability", DEFAULTING, ids=lambda c: c.value)
    async def test_unsupported_by_default(self, capability):
        backend = NullBackend()

        with pytest.raises(NullError) as exc_info:
            await invoke(backend, capability)

        error = exc_info.value
        assert error.kind is ErrorKind.UNSUPPORTED
        assert error.unsupported is True
        assert error.operation == capability.value
        assert error.backend == "NullBackend"
        assert "not implemented" in str(error)

    def test_now_reads_wall_clock(self):
        backend = NullBackend()

        before = datetime.now(timezone.utc)
        value = backend.now()
        after = datetime.now(timezone.utc)

        assert value.tzinfo is not None
        assert before <= value <= after
        assert after - value < timedelta(seconds=1)

    def test_get_env_does_not_read_environment(self, monkeypatch):
        """Default get_env is 'not implemented', never a fall-through to the OS"""
        monkeypatch.setenv("NONEXISTENT_KEY_X", "present")
        backend = NullBackend()

        with pytest.raises(NullError) as exc_info:
            backend.get_env("NONEXISTENT_KEY_X")

        assert exc_info.value.unsupported

    def test_base_facade_uses_base_error(self):
        with pytest.raises(ExtioError) as exc_info:
            IoFacade().read_file("x")
        assert exc_info.value.unsupported

    def test_null_backend_capabilities(self):
        backend = NullBackend()
        assert backend.capabilities() == {IoCapability.NOW}
        assert backend.supports(IoCapability.NOW)
        assert not backend.supports(IoCapability.READ_FILE)


class TestSingleOverride:
    """Overriding one operation must not satisfy the others"""

    @pytest.mark.asyncio
    async def test_overridden_operation_works(self):
        backend = HttpOnlyBackend()
        response = await backend.http_request(HttpRequest(uri="http://example.test/"))
        assert response.status == 204

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "capability",
        [c for c in DEFAULTING if c is not IoCapability.HTTP_REQUEST],
        ids=lambda c: c.value
    )
    async def test_other_operations_still_unsupported(self, capability):
        backend = HttpOnlyBackend()

        with pytest.raises(HttpOnlyError) as exc_info:
            await invoke(backend, capability)

        assert exc_info.value.kind is ErrorKind.UNSUPPORTED

    def test_supported_capabilities(self):
        assert HttpOnlyBackend.supported_capabilities() == {
            IoCapability.HTTP_REQUEST,
            IoCapability.NOW
        }


class TestSubclassChecks:
    """Class-definition-time enforcement"""

    def test_blocking_safe_operation_cannot_be_async(self):
        with pytest.raises(TypeError, match="read_file"):
            class Bad(IoFacade):
                async def read_file(self, path):
                    return b""

    def test_suspending_operation_cannot_be_sync(self):
        with pytest.raises(TypeError, match="storage_get"):
            class Bad(IoFacade):
                def storage_get(self, key):
                    return b""

    def test_now_cannot_be_async(self):
        with pytest.raises(TypeError, match="now"):
            class Bad(IoFacade):
                async def now(self):
                    return None

    def test_error_must_derive_from_extio_error(self):
        with pytest.raises(TypeError, match="Error"):
            class Bad(IoFacade):
                Error = ValueError

    def test_helpers_are_not_checked(self):
        class Fine(IoFacade):
            async def warm_up(self):
                return None

            def describe(self):
                return "fine"

        assert Fine().describe() == "fine"


class TestErrorShape:
    """One inspectable error type per backend"""

    def test_backend_failure_kind_is_default(self):
        error = NullError("disk full", operation="write_file", backend="NullBackend")
        assert error.kind is ErrorKind.BACKEND
        assert error.unsupported is False

    def test_unsupported_operation_constructor(self):
        error = NullError.unsupported_operation("sign", "NullBackend")
        assert isinstance(error, NullError)
        assert error.unsupported
        assert error.operation == "sign"

    def test_repr_includes_kind_and_operation(self):
        error = NullError.unsupported_operation("sign", "NullBackend")
        text = repr(error)
        assert "NullError" in text
        assert "unsupported" in text
        assert "'sign'" in text

    def test_cause_is_kept(self):
        cause = OSError("boom")
        error = NullError("read failed", cause=cause)
        assert error.cause is cause


class TestShapes:
    """HTTP shapes and durations"""

    def test_header_lookup_is_case_insensitive(self):
        request = HttpRequest(
            method="GET",
            uri="http://example.test/",
            headers=[("Accept", "text/html"), ("X-Tag", "a"), ("x-tag", "b")]
        )
        assert request.header("accept") == "text/html"
        assert request.header_values("X-TAG") == ["a", "b"]
        assert request.header("missing") is None

    def test_response_helpers(self):
        response = HttpResponse(status=200, headers=[("Content-Type", "text/plain")], body=b"hi")
        assert response.ok
        assert response.text() == "hi"
        assert response.header("content-type") == "text/plain"
        assert not HttpResponse(status=404).ok

    def test_shapes_share_header_lookup(self):
        assert issubclass(HttpRequest, HeaderLookup)
        assert issubclass(HttpResponse, HeaderLookup)
        assert [f.name for f in fields(HttpRequest)] == ["method", "uri", "headers", "body"]
        assert [f.name for f in fields(HttpResponse)] == ["status", "headers", "body"]

        response = HttpResponse(200, [("Set-Cookie", "a=1"), ("set-cookie", "b=2")])
        assert response.header_values("SET-COOKIE") == ["a=1", "b=2"]

    def test_request_defaults(self):
        request = HttpRequest()
        assert request.method == "GET"
        assert request.headers == []
        assert request.body == b""

    def test_to_seconds(self):
        assert to_seconds(timedelta(milliseconds=250)) == 0.25
        assert to_seconds(2) == 2.0
        assert to_seconds(0.5) == 0.5

    def test_to_seconds_rejects_negative(self):
        with pytest.raises(ValueError):
            to_seconds(-1)
        with pytest.raises(ValueError):
            to_seconds(timedelta(seconds=-1))
