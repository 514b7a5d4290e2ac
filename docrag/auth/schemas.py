"""Authenticated user model."""

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """A Supabase user; ``id`` scopes every document, chunk and conversation."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    created_at: str | None = None
