"""Data models for the CORS relay."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from yarl import URL


class ErrorBody(BaseModel):
    """JSON payload of every error response the relay produces itself."""

    error: Annotated[str, Field(description="Short error message")]
    detail: Annotated[str | None, Field(description="Underlying failure message")] = None


class Target(BaseModel):
    """Validated upstream target derived from the ``url`` query parameter."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    url: Annotated[URL, Field(description="Absolute http(s) URL to forward to")]
    host: Annotated[str, Field(description="Lower-cased target hostname")]
