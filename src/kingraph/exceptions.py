from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BoundaryError(Exception):
    """Raised when a request is rejected before extraction runs.

    The extraction core never raises for unparsable content; only the
    service boundary rejects input, and it does so with one of the
    subclasses below. ``status`` is the HTTP status the handler answers with.
    """

    message: str
    status: int = 400

    def __str__(self) -> str:  # pragma: no cover - human readable
        return f"{self.message} (status={self.status})"


@dataclass
class InvalidRequest(BoundaryError):
    status: int = 400


@dataclass
class PayloadTooLarge(BoundaryError):
    status: int = 413
    size: int | None = None
    limit: int | None = None


@dataclass
class UnsupportedContent(BoundaryError):
    status: int = 415
