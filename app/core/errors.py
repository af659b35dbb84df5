"""Domain errors shared by the services and rendered by the API layer.

Every error carries a machine-readable ``kind`` and the HTTP status the API
answers with. Services raise them; ``app.main`` turns them into
``{"kind": ..., "message": ...}`` responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(eq=False)
class PharmiaError(Exception):
    message: str

    kind: ClassVar[str] = "internal_error"
    status_code: ClassVar[int] = 500

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(PharmiaError):
    kind = "validation_error"
    status_code = 400


class Conflict(PharmiaError):
    kind = "conflict"
    status_code = 409


class Forbidden(PharmiaError):
    kind = "forbidden"
    status_code = 403


class NotFound(PharmiaError):
    kind = "not_found"
    status_code = 404


class InvalidCredentials(PharmiaError):
    kind = "invalid_credentials"
    status_code = 401


class InvalidToken(PharmiaError):
    kind = "invalid_token"
    status_code = 401


class ServiceUnavailable(PharmiaError):
    kind = "service_unavailable"
    status_code = 503


class UpstreamError(PharmiaError):
    kind = "upstream_error"
    status_code = 500
