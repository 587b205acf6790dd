"""
Socket Backend - TCP, UDP and WebSocket clients

Addresses are "host:port"; IPv6 hosts are written "[::1]:port".
"""

import asyncio
from typing import Optional, Tuple

import websockets
from websockets.exceptions import WebSocketException

from extio.base import IoFacade
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger

logger = get_logger('backend.socket')


class SocketBackendError(ExtioError):
    """Errors raised by SocketBackend"""


def parse_address(addr: str) -> Tuple[str, int]:
    """Split "host:port" (or "[v6]:port") into its parts"""
    host, sep, port = addr.rpartition(':')
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Expected host:port, got {addr!r}")
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range in {addr!r}")
    return host, port_number


class SocketBackend(IoFacade):
    """
    Raw network backend.

    One WebSocket connection per backend instance: ws_connect replaces any
    previous connection, ws_send / ws_receive use the current one.
    """

    Error = SocketBackendError

    def __init__(self):
        self.ws = None
        self._ws_lock = asyncio.Lock()
        logger.info("Socket backend initialized")

    def _fail(self, operation: str, error: Exception) -> SocketBackendError:
        logger.error(f"{operation} failed: {error!r}")
        return self.Error(
            f"{operation} failed: {error}",
            operation=operation,
            backend=self.__class__.__name__,
            cause=error
        )

    def _address(self, operation: str, addr: str) -> Tuple[str, int]:
        try:
            return parse_address(addr)
        except ValueError as e:
            raise self._fail(operation, e) from e

    # ============================================
    # TCP / UDP
    # ============================================

    async def tcp_send(self, addr: str, data: bytes) -> bytes:
        """
        Send bytes and read the reply.

        The write side is half-closed after sending; the reply is everything
        the peer writes before closing its side.
        """
        host, port = self._address("tcp_send", addr)
        writer: Optional[asyncio.StreamWriter] = None
        try:
            reader, writer = await asyncio.open_connection(host, port)
            writer.write(data)
            await writer.drain()
            if writer.can_write_eof():
                writer.write_eof()
            return await reader.read()
        except OSError as e:
            raise self._fail("tcp_send", e) from e
        finally:
            if writer is not None:
                writer.close()
                try:
                    await writer.wait_closed()
                except OSError:
                    logger.debug(f"tcp_send: close after error on {addr}")

    async def udp_send(self, addr: str, data: bytes) -> None:
        host, port = self._address("udp_send", addr)
        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                asyncio.DatagramProtocol,
                remote_addr=(host, port)
            )
        except OSError as e:
            raise self._fail("udp_send", e) from e
        try:
            transport.sendto(data)
        finally:
            transport.close()

    # ============================================
    # WEBSOCKET
    # ============================================

    async def ws_connect(self, url: str) -> None:
        async with self._ws_lock:
            if self.ws is not None:
                await self._close_ws()
            try:
                self.ws = await websockets.connect(url)
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                raise self._fail("ws_connect", e) from e
        logger.info(f"WebSocket connected: {url}")

    def _require_ws(self, operation: str):
        if self.ws is None:
            raise self.Error(
                "WebSocket not connected (call ws_connect first)",
                operation=operation,
                backend=self.__class__.__name__
            )
        return self.ws

    async def ws_send(self, message: bytes) -> None:
        ws = self._require_ws("ws_send")
        try:
            await ws.send(bytes(message))
        except WebSocketException as e:
            raise self._fail("ws_send", e) from e

    async def ws_receive(self) -> bytes:
        """Next message; text frames are returned UTF-8 encoded"""
        ws = self._require_ws("ws_receive")
        try:
            message = await ws.recv()
        except WebSocketException as e:
            raise self._fail("ws_receive", e) from e
        if isinstance(message, str):
            return message.encode('utf-8')
        return bytes(message)

    async def _close_ws(self):
        ws, self.ws = self.ws, None
        try:
            await ws.close()
        except (OSError, WebSocketException) as e:
            logger.debug(f"WebSocket close failed: {e!r}")

    async def aclose(self):
        """Close the WebSocket connection if open"""
        async with self._ws_lock:
            if self.ws is not None:
                await self._close_ws()


# Register backend
BackendFactory.register("socket", SocketBackend)
