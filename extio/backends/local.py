"""
Local Backend - Host filesystem, processes, environment and logs
"""

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from extio.base import Duration, IoFacade, PathLike, to_seconds
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger, log_metric

logger = get_logger('backend.local')


class LocalBackendError(ExtioError):
    """Errors raised by LocalBackend"""


class LocalBackend(IoFacade):
    """
    Backend for the machine the program runs on.

    Provides file, process, sleep, environment, log and metric operations.
    Relative paths resolve against `root` when one is given.
    """

    Error = LocalBackendError

    def __init__(
        self,
        root: Optional[PathLike] = None,
        env_file: Optional[PathLike] = None,
        log_name: str = 'app'
    ):
        self.root = Path(root) if root is not None else None
        self.app_logger = get_logger(log_name)

        self._metrics: Dict[str, List[float]] = {}
        self._metrics_lock = threading.Lock()

        if env_file is not None:
            # Existing variables win over the file
            load_dotenv(env_file, override=False)

        logger.info(f"Local backend initialized (root={self.root or '.'})")

    def _resolve(self, path: PathLike) -> Path:
        path = Path(path)
        if self.root is not None and not path.is_absolute():
            return self.root / path
        return path

    def _fail(self, operation: str, error: Exception) -> LocalBackendError:
        logger.error(f"{operation} failed: {error}")
        return self.Error(
            f"{operation} failed: {error}",
            operation=operation,
            backend=self.__class__.__name__,
            cause=error
        )

    # ============================================
    # FILE
    # ============================================

    def read_file(self, path: PathLike) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except (OSError, ValueError) as e:
            raise self._fail("read_file", e) from e

    def write_file(self, path: PathLike, data: bytes) -> None:
        try:
            self._resolve(path).write_bytes(bytes(data))
        except (OSError, ValueError) as e:
            raise self._fail("write_file", e) from e

    def delete_file(self, path: PathLike) -> None:
        try:
            self._resolve(path).unlink()
        except (OSError, ValueError) as e:
            raise self._fail("delete_file", e) from e

    def list_dir(self, path: PathLike) -> List[str]:
        """Entry names, sorted"""
        try:
            return sorted(os.listdir(self._resolve(path)))
        except (OSError, ValueError) as e:
            raise self._fail("list_dir", e) from e

    # ============================================
    # PROCESS
    # ============================================

    async def exec(self, cmd: str, args: List[str]) -> Tuple[int, bytes]:
        """
        Run a command without a shell.

        stderr is merged into stdout. If the call is cancelled the child is
        killed and reaped before the cancellation propagates.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                cmd,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(self.root) if self.root is not None else None
            )
        except (OSError, ValueError) as e:
            raise self._fail("exec", e) from e

        try:
            output, _ = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    logger.debug(f"exec {cmd} already exited before kill")
                await process.wait()
            raise

        logger.debug(f"exec {cmd} exited with {process.returncode}")
        return process.returncode, output

    # ============================================
    # TIME
    # ============================================

    async def sleep(self, duration: Duration) -> None:
        try:
            seconds = to_seconds(duration)
        except (TypeError, ValueError) as e:
            raise self._fail("sleep", e) from e
        await asyncio.sleep(seconds)

    # ============================================
    # ENVIRONMENT
    # ============================================

    def get_env(self, key: str) -> Optional[str]:
        return os.environ.get(key)

    def set_env(self, key: str, value: str) -> None:
        # Empty names, "=" in names and NUL bytes are rejected by the OS layer
        try:
            os.environ[key] = value
        except (OSError, ValueError) as e:
            raise self._fail("set_env", e) from e

    # ============================================
    # OBSERVABILITY
    # ============================================

    def log(self, level: str, message: str) -> None:
        """Log at a named level; unknown names go out at INFO"""
        numeric = logging.getLevelName(level.upper())
        if isinstance(numeric, int):
            self.app_logger.log(numeric, message)
        else:
            self.app_logger.info(f"[{level}] {message}")

    def record_metric(self, name: str, value: float) -> None:
        with self._metrics_lock:
            self._metrics.setdefault(name, []).append(float(value))
        log_metric(name, value)

    def metrics(self) -> Dict[str, List[float]]:
        """Snapshot of recorded samples"""
        with self._metrics_lock:
            return {name: list(values) for name, values in self._metrics.items()}


# Register backend
BackendFactory.register("local", LocalBackend)
