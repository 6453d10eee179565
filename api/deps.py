"""
Dependency injection for the Supabase client, the novela catalog and the title matcher.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from supabase import Client

from revius_backend.db.supabase import create_supabase_admin_client
from revius_backend.matching.matcher import MultiSourceMatcher, build_default_matcher
from revius_backend.repositories.novela_catalog import JsonFileCatalogStore
from revius_backend.utils.env import load_env, optional_env, require_env

load_env()

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase_anon_key() -> str:
    return require_env("SUPABASE_ANON_KEY")


def get_supabase_admin_client() -> Client:
    """
    Returns a Supabase client using the service role key (bypasses RLS).
    Imports write on behalf of the authenticated user, whose id is set explicitly on every row.
    """
    return create_supabase_admin_client()


@lru_cache
def get_catalog_store() -> JsonFileCatalogStore:
    return JsonFileCatalogStore(optional_env("NOVELA_CATALOG_DIR") or "./data")


@lru_cache
def get_matcher() -> MultiSourceMatcher:
    return build_default_matcher(catalog_store=get_catalog_store())


def shutdown_matcher() -> None:
    if get_matcher.cache_info().currsize:
        get_matcher().close()
        get_matcher.cache_clear()


# Type aliases for dependency injection
SupabaseAdminClient = Annotated[Client, Depends(get_supabase_admin_client)]
ListMatcher = Annotated[MultiSourceMatcher, Depends(get_matcher)]

