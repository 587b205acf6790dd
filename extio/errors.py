"""
Error Shape

Every backend reports failures through one error class derived from
ExtioError. The kind separates "this backend does not do that" from
"this backend tried and it broke".
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Why an operation failed"""
    UNSUPPORTED = "unsupported"    # Backend did not override the operation
    BACKEND = "backend"            # Backend tried and failed


class ExtioError(Exception):
    """
    Base error for all backends.

    Holds plain data only (strings, enum, original exception) so it can be
    raised in one task and inspected in another.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.BACKEND,
        operation: Optional[str] = None,
        backend: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.operation = operation
        self.backend = backend
        self.cause = cause

    @classmethod
    def unsupported_operation(cls, operation: str, backend: str) -> "ExtioError":
        """Build the default failure for an operation a backend does not provide"""
        return cls(
            f"{operation} not implemented by {backend}",
            kind=ErrorKind.UNSUPPORTED,
            operation=operation,
            backend=backend
        )

    @property
    def unsupported(self) -> bool:
        """True if the backend does not provide the operation at all"""
        return self.kind is ErrorKind.UNSUPPORTED

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(kind={self.kind.value}, "
            f"operation={self.operation!r}, message={self.message!r})"
        )
