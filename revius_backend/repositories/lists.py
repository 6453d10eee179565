from __future__ import annotations

from typing import Any, Sequence

from supabase import Client

from revius_backend.models.lists import ImportedList, ResolvedListItem

LISTS_TABLE = "user_lists"
LIST_ITEMS_TABLE = "user_list_items"


class ListRepositoryError(RuntimeError):
    pass


def _raise_for_supabase_error(response: Any, context: str) -> None:
    if hasattr(response, "error") and response.error:
        raise ListRepositoryError(f"Supabase error during {context}: {response.error}")


def create_list(
    db: Client,
    *,
    name: str,
    description: str,
    owner_user_id: str,
    is_public: bool = True,
) -> ImportedList:
    payload: dict[str, Any] = {
        "name": name,
        "description": description,
        "is_public": is_public,
        "user_id": owner_user_id,
    }
    try:
        response = db.table(LISTS_TABLE).insert(payload).execute()
    except ListRepositoryError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ListRepositoryError(f"Supabase error during creating list: {exc}") from exc
    _raise_for_supabase_error(response, "creating list")

    data = response.data or []
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise ListRepositoryError("Supabase insert returned no data for list.")
    row = data[0]
    list_id = row.get("id")
    if not list_id:
        raise ListRepositoryError("Supabase insert returned a list row without an id.")

    return ImportedList(
        id=str(list_id),
        name=str(row.get("name") or name),
        description=str(row.get("description") or description),
        is_public=bool(row.get("is_public", is_public)),
        owner_user_id=str(row.get("user_id") or owner_user_id),
        created_at=row.get("created_at") if isinstance(row.get("created_at"), str) else None,
    )


def bulk_insert_items(db: Client, items: Sequence[ResolvedListItem], *, owner_user_id: str) -> int:
    """
    Insert every resolved item in a single request (one statement, so all-or-nothing).
    """

    if not items:
        return 0
    rows = [item.to_row(owner_user_id=owner_user_id) for item in items]
    try:
        response = db.table(LIST_ITEMS_TABLE).insert(rows).execute()
    except ListRepositoryError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ListRepositoryError(f"Supabase error during inserting list items: {exc}") from exc
    _raise_for_supabase_error(response, "inserting list items")
    return len(rows)
