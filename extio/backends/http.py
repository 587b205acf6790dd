"""
HTTP Backend (httpx)

Reference backend: implements only http_request by delegating to
httpx.AsyncClient. Every other operation keeps the contract default.
"""

from typing import Optional

import httpx

from extio.base import HttpRequest, HttpResponse, IoFacade
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger

logger = get_logger('backend.http')


class HttpxBackendError(ExtioError):
    """Errors raised by HttpxBackend"""


class HttpxBackend(IoFacade):
    """
    HTTP over httpx.

    The contract's request (method, uri, header list, body) is handed to
    httpx unchanged and the response is copied back header by header, so
    duplicate headers and their order survive.
    """

    Error = HttpxBackendError

    def __init__(
        self,
        timeout: float = 30.0,
        base_url: str = "",
        follow_redirects: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=follow_redirects,
            transport=transport
        )

        logger.info(f"HTTP backend initialized (timeout={timeout}, base_url={base_url or '-'})")

    async def http_request(self, request: HttpRequest) -> HttpResponse:
        """Send request through httpx and translate the response"""
        try:
            response = await self.client.request(
                request.method,
                request.uri,
                headers=list(request.headers),
                content=request.body or None
            )
        except httpx.InvalidURL as e:
            raise self.Error(
                f"Invalid URL {request.uri!r}: {e}",
                operation="http_request",
                backend=self.__class__.__name__,
                cause=e
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP {request.method} {request.uri} failed: {e!r}")
            raise self.Error(
                f"HTTP {request.method} {request.uri} failed: {e}",
                operation="http_request",
                backend=self.__class__.__name__,
                cause=e
            ) from e
        except ValueError as e:
            # Request building: non-ASCII header values, malformed method
            raise self.Error(
                f"Invalid request {request.method} {request.uri}: {e}",
                operation="http_request",
                backend=self.__class__.__name__,
                cause=e
            ) from e

        logger.debug(f"HTTP {request.method} {request.uri} -> {response.status_code}")

        return HttpResponse(
            status=response.status_code,
            headers=list(response.headers.multi_items()),
            body=response.content
        )

    async def aclose(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


# Register backend
BackendFactory.register("http", HttpxBackend)
