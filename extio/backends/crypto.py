"""
Secrets Backend - Secret lookup and HMAC signing

Secrets come from a dotenv file first, then from prefixed environment
variables (key "api_token" -> EXTIO_SECRET_API_TOKEN by default).
"""

import hashlib
import hmac
import os
from typing import Dict, Optional

from dotenv import dotenv_values

from extio.base import IoFacade, PathLike
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger

logger = get_logger('backend.secrets')


class SecretsBackendError(ExtioError):
    """Errors raised by SecretsBackend"""


class SecretsBackend(IoFacade):
    """get_secret, sign and verify (HMAC-SHA256)"""

    Error = SecretsBackendError

    def __init__(
        self,
        secrets_file: Optional[PathLike] = None,
        env_prefix: str = "EXTIO_SECRET_",
        signing_key: str = "signing_key"
    ):
        self.env_prefix = env_prefix
        self.signing_key = signing_key
        self._store: Dict[str, str] = {}

        if secrets_file is not None:
            values = dotenv_values(secrets_file)
            self._store = {k: v for k, v in values.items() if v is not None}

        # Never log secret values, only how many were loaded
        logger.info(f"Secrets backend initialized ({len(self._store)} secrets from file)")

    def get_secret(self, key: str) -> bytes:
        if key in self._store:
            return self._store[key].encode('utf-8')

        value = os.environ.get(f"{self.env_prefix}{key.upper()}")
        if value is not None:
            return value.encode('utf-8')

        raise self.Error(
            f"Secret not found: {key}",
            operation="get_secret",
            backend=self.__class__.__name__
        )

    def _key(self, operation: str) -> bytes:
        try:
            return self.get_secret(self.signing_key)
        except SecretsBackendError as e:
            raise self.Error(
                f"Signing key '{self.signing_key}' is not configured",
                operation=operation,
                backend=self.__class__.__name__,
                cause=e
            ) from e

    def sign(self, data: bytes) -> bytes:
        return hmac.new(self._key("sign"), data, hashlib.sha256).digest()

    def verify(self, data: bytes, signature: bytes) -> bool:
        """False on mismatch; errors only when no key is configured"""
        expected = hmac.new(self._key("verify"), data, hashlib.sha256).digest()
        return hmac.compare_digest(expected, bytes(signature))


# Register backend
BackendFactory.register("secrets", SecretsBackend)
