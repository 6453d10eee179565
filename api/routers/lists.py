"""
External list import endpoints.

Imports are synchronous: the request returns once the list and all of its items are written, with
per-item match results in the body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from api.auth import CurrentUser
from api.deps import ListMatcher, SupabaseAdminClient
from revius_backend.ingestion.list_importer import ImportValidationError, import_list
from revius_backend.integrations.http import PageFetchError
from revius_backend.repositories.lists import ListRepositoryError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lists", tags=["lists"])


# --- Pydantic models ---


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImportListRequest(BaseModel):
    url: str
    service: str = "letterboxd"


class FailedItemOut(_CamelModel):
    title: str
    year: int | None = None
    reason: str
    position: int


class ImportListResponse(_CamelModel):
    success: bool
    list_id: str | None
    list_name: str
    list_description: str = ""
    service: str
    items_count: int
    matched_count: int
    failed_count: int
    match_percentage: int
    fully_matched: bool
    failed_items: list[FailedItemOut] = []
    message: str = ""


# --- Endpoints ---


@router.post("/import", response_model=ImportListResponse)
def import_external_list(
    payload: ImportListRequest,
    user: CurrentUser,
    db: SupabaseAdminClient,
    matcher: ListMatcher,
) -> ImportListResponse:
    """
    Import a public Letterboxd list into the caller's lists.

    Entries without a confident match are still added (as manual items) and listed in `failedItems`.
    """
    try:
        result = import_list(payload.url, payload.service, user["id"], db=db, matcher=matcher)
    except ImportValidationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except PageFetchError as exc:
        logger.warning("List page fetch failed for %s: %s", exc.url, exc)
        raise HTTPException(status_code=502, detail=f"Failed to fetch list page: {exc}") from exc
    except ListRepositoryError as exc:
        logger.error("Creating imported list failed: %s", exc)
        raise HTTPException(status_code=502, detail="Database error during creating list") from exc

    return ImportListResponse.model_validate(result.to_dict())
