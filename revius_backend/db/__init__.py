"""
Database helpers for Revius backend scripts/services.
"""

from revius_backend.db.supabase import create_supabase_admin_client

__all__ = [
    "create_supabase_admin_client",
]
