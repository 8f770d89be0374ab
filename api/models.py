"""
API request and response models for the AssetGate HTTP endpoints.

These Pydantic v2 models define the HTTP transport contract. The wire format
is camelCase (wantsDerivatives, expiresIn, pngFiles) because browser viewers
already speak it; Python code uses snake_case and the alias generator maps
between the two.

Separation of concerns: core/ and access/ types = domain truth; api/ models
= API contract. Route handlers map between the two.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /auth.

    isIOS / pdfFilename are the field names used by the first viewer release
    and are accepted as aliases. A missing password is treated as a wrong
    one (401), not as a validation error.
    """

    password: str = Field(default="", max_length=1024)
    wants_derivatives: bool = Field(
        default=False,
        validation_alias=AliasChoices("wantsDerivatives", "isIOS"),
    )
    primary_name: Optional[str] = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("primaryName", "pdfFilename"),
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class LoginResponse(_CamelModel):
    """Successful POST /auth.

    use_png_mode / png_files are present only when a derivative manifest was
    attached; otherwise the client falls back to the primary asset.
    """

    success: bool = True
    token: str
    expires_in: int
    use_png_mode: Optional[bool] = None
    png_files: Optional[list[str]] = None


class LoginFailure(_CamelModel):
    success: bool = False
    message: str = "Invalid password"


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
