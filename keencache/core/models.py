"""Core data models for keencache.

This module defines the raw Keen IO response and the error body Keen sends
with non-success responses.
"""

import pydantic
from pydantic import BaseModel, Field

from keencache.core.exceptions import DecodeError


class KeenResponse(BaseModel):
    """Raw HTTP answer of a Keen IO query: status plus undecoded body."""

    status_code: int = Field(..., description="HTTP status code")
    body: bytes = Field(default=b"", description="Raw response body")

    def text(self) -> str:
        """Body as text, for diagnostics.

        Raises:
            UnicodeDecodeError: body is not UTF-8
        """
        return self.body.decode("utf-8")


class KeenError(BaseModel):
    """Error body returned by Keen IO, e.g. ``{"message": ..., "error_code": ...}``."""

    message: str = Field(..., description="Human readable error message")
    error_code: str = Field(..., description="Keen error code (e.g. ResourceNotFoundError)")

    @classmethod
    def decode(cls, body: bytes, status_code: int) -> "KeenError":
        """Decode the error body of a non-success response.

        Raises:
            DecodeError: body is not a Keen error document
        """
        try:
            return cls.model_validate_json(body)
        except pydantic.ValidationError as e:
            raise DecodeError(
                f"Keen IO returned {status_code} with an undecodable error body",
                details={"status_code": status_code, "errors": e.errors()},
            ) from e
