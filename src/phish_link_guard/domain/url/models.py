"""URL domain-level models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UrlRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw: str
    scheme: str
    host: str = ""
    registrable_domain: str = ""
    port: int | None = None
    path: str = ""
    query: str = ""
    fragment: str = ""
    userinfo: str = ""
