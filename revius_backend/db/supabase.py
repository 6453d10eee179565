from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client

from revius_backend.utils.env import require_env


@lru_cache
def get_supabase_url() -> str:
    return require_env("SUPABASE_URL")


@lru_cache
def get_supabase_service_key() -> str:
    return require_env("SUPABASE_SERVICE_ROLE_KEY")


def create_supabase_admin_client(*, url: str | None = None, service_role_key: str | None = None) -> Client:
    """
    Create a Supabase client using the service role key (bypasses RLS).

    Intended for scripts and admin tasks (list imports run from the CLI).
    """

    return create_client(url or get_supabase_url(), service_role_key or get_supabase_service_key())
