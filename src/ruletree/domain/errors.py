"""Structured validation error raised or returned by rule bodies."""

from __future__ import annotations


class ValidationError(Exception):
    """A deliberate, structured rule failure.

    ``error_code`` is opaque to the engine and caller-defined (an enum member, a
    string, or the raw object a crashed rule raised). ``message`` is optional
    human-readable text. Rule bodies raise this to report a structured failure;
    any other raised value is wrapped into one by the engine.
    """

    def __init__(self, error_code: object, message: str | None = None) -> None:
        if message is None:
            super().__init__()
        else:
            super().__init__(message)
        self.error_code = error_code
        self.message = message

    @classmethod
    def wrap(cls, raised: object) -> ValidationError:
        """Return ``raised`` unchanged if structured, else wrap it as the error code."""

        if isinstance(raised, ValidationError):
            return raised
        wrapped = ValidationError(raised)
        if isinstance(raised, BaseException):
            wrapped.__cause__ = raised
        return wrapped

    def __reduce__(self) -> tuple[type[ValidationError], tuple[object, str | None]]:
        # ``args`` omits ``error_code``; rebuild from both fields for copy/pickle.
        return (type(self), (self.error_code, self.message))

    def __repr__(self) -> str:
        if self.message is None:
            return f"{type(self).__name__}({self.error_code!r})"
        return f"{type(self).__name__}({self.error_code!r}, {self.message!r})"

    def __str__(self) -> str:
        if self.message is not None:
            return self.message
        return repr(self.error_code)


class NodeAttachmentError(ValueError):
    """Raised when a node cannot be attached without breaking the tree shape."""


__all__ = [
    "NodeAttachmentError",
    "ValidationError",
]
