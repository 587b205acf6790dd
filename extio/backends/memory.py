"""
Memory Backend - In-process object storage, queues and IPC channels

Useful for tests and for embedding the contract where no broker or bucket
exists. Everything lives in the running event loop's process.
"""

import asyncio
from typing import Dict

from extio.base import IoFacade
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger

logger = get_logger('backend.memory')


class MemoryBackendError(ExtioError):
    """Errors raised by MemoryBackend"""


class MemoryBackend(IoFacade):
    """
    In-memory backend.

    Object storage is a dict guarded by an asyncio.Lock. Topics and IPC
    channels are FIFO queues created on first use. `latency` adds a delay
    before each operation to mimic a remote service; the lock is never held
    across that delay.
    """

    Error = MemoryBackendError

    def __init__(self, latency: float = 0.0):
        if latency < 0:
            raise ValueError("latency must not be negative")
        self.latency = latency

        self._objects: Dict[str, bytes] = {}
        self._lock = asyncio.Lock()
        self._topics: Dict[str, asyncio.Queue] = {}
        self._channels: Dict[str, asyncio.Queue] = {}
        self._waiting: Dict[asyncio.Queue, int] = {}

        logger.info(f"Memory backend initialized (latency={latency}s)")

    async def _delay(self):
        if self.latency:
            await asyncio.sleep(self.latency)

    @staticmethod
    def _queue(queues: Dict[str, asyncio.Queue], name: str) -> asyncio.Queue:
        # One queue per name, created on first use
        queue = queues.get(name)
        if queue is None:
            queue = queues[name] = asyncio.Queue()
        return queue

    async def _take(self, queues: Dict[str, asyncio.Queue], name: str) -> bytes:
        """Wait for the next item, dropping the queue once it is drained and unwatched"""
        queue = self._queue(queues, name)
        self._waiting[queue] = self._waiting.get(queue, 0) + 1
        try:
            return await queue.get()
        finally:
            self._waiting[queue] -= 1
            if not self._waiting[queue]:
                del self._waiting[queue]
                if queue.empty() and queues.get(name) is queue:
                    del queues[name]

    # ============================================
    # OBJECT STORAGE
    # ============================================

    async def storage_put(self, key: str, data: bytes) -> None:
        await self._delay()
        async with self._lock:
            self._objects[key] = bytes(data)

    async def storage_get(self, key: str) -> bytes:
        await self._delay()
        async with self._lock:
            if key not in self._objects:
                raise self.Error(
                    f"Key not found: {key}",
                    operation="storage_get",
                    backend=self.__class__.__name__
                )
            return self._objects[key]

    async def storage_delete(self, key: str) -> None:
        await self._delay()
        async with self._lock:
            if self._objects.pop(key, None) is None:
                raise self.Error(
                    f"Key not found: {key}",
                    operation="storage_delete",
                    backend=self.__class__.__name__
                )

    # ============================================
    # QUEUE
    # ============================================

    async def mq_publish(self, topic: str, data: bytes) -> None:
        await self._delay()
        self._queue(self._topics, topic).put_nowait(bytes(data))

    async def mq_consume(self, topic: str) -> bytes:
        """Wait for the next message on a topic"""
        await self._delay()
        return await self._take(self._topics, topic)

    # ============================================
    # IPC
    # ============================================

    async def ipc_send(self, channel: str, data: bytes) -> None:
        await self._delay()
        self._queue(self._channels, channel).put_nowait(bytes(data))

    async def ipc_receive(self, channel: str) -> bytes:
        """Wait for the next message on a channel"""
        await self._delay()
        return await self._take(self._channels, channel)


# Register backend
BackendFactory.register("memory", MemoryBackend)
