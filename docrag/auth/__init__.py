"""Supabase bearer-token authentication."""

from docrag.auth.dependencies import CurrentUser, get_current_user
from docrag.auth.schemas import User
from docrag.auth.supabase_client import SupabaseAuthClient, get_supabase_client

__all__ = [
    "CurrentUser",
    "SupabaseAuthClient",
    "User",
    "get_current_user",
    "get_supabase_client",
]
