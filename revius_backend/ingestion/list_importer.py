from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

import requests

from revius_backend.ingestion.letterboxd_lists import (
    SUPPORTED_SERVICES,
    ScrapedList,
    is_supported_service,
    scrape_list,
    validate_list_url,
)
from revius_backend.models.lists import (
    CandidateMatch,
    FailedItem,
    ImportResult,
    RawListEntry,
    ResolvedListItem,
)
from revius_backend.repositories.lists import ListRepositoryError, bulk_insert_items, create_list
from revius_backend.utils.pacing import CancellationToken, OperationCancelled

logger = logging.getLogger(__name__)

PACING_EVERY = 5
PACING_SECONDS = 1.0

NO_MATCH_REASON = "no match above similarity threshold"


class ImportValidationError(RuntimeError):
    """Rejected import request; nothing was written."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class TitleMatcher(Protocol):
    def search(
        self,
        title: str,
        year: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CandidateMatch]: ...


@dataclass(frozen=True)
class _Resolution:
    item: ResolvedListItem
    failure: FailedItem | None = None


def match_percentage(matched: int, total: int) -> int:
    """Percentage rounded half up; 0 for an empty list."""

    if total <= 0:
        return 0
    return (matched * 200 + total) // (2 * total)


def build_message(list_name: str, items_count: int, failed_count: int) -> str:
    message = f'Successfully imported "{list_name}" with {items_count} items'
    if failed_count:
        message += f" ({failed_count} need manual review)"
    return message


def _resolve_entry(
    matcher: TitleMatcher,
    entry: RawListEntry,
    *,
    list_id: str,
    position: int,
    cancel_token: CancellationToken | None,
) -> _Resolution:
    try:
        candidates = matcher.search(entry.title, entry.year, cancel_token=cancel_token)
    except OperationCancelled:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.warning("Search failed for %r (position %d): %s", entry.title, position, exc)
        reason = f"search failed: {exc}"
    else:
        if candidates:
            best = candidates[0]
            logger.debug("Matched %r -> %s %s", entry.title, best.source_name, best.external_id)
            return _Resolution(item=ResolvedListItem.from_candidate(best, list_id=list_id, position=position))
        reason = NO_MATCH_REASON

    return _Resolution(
        item=ResolvedListItem.manual(entry, list_id=list_id, position=position),
        failure=FailedItem(title=entry.title, year=entry.year, reason=reason, position=position),
    )


def resolve_entries(
    entries: Sequence[RawListEntry],
    *,
    list_id: str,
    matcher: TitleMatcher,
    pacing_every: int = PACING_EVERY,
    pacing_seconds: float = PACING_SECONDS,
    max_workers: int = 1,
    cancel_token: CancellationToken | None = None,
    sleep: Callable[[float], None] = time.sleep,
    on_cancel: Callable[[list[_Resolution]], None] | None = None,
) -> list[_Resolution]:
    """
    Resolve entries into list items, positions 1..N in input order.

    With `max_workers == 1` entries are searched one at a time with a pause after every
    `pacing_every` items. Larger values search one batch of `pacing_every` entries concurrently
    and pause between batches, so the per-batch request volume stays the same.
    """

    batch_size = max(1, pacing_every)
    resolved: list[_Resolution] = []
    pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="import") if max_workers > 1 else None

    def check_cancelled() -> None:
        if cancel_token is not None and cancel_token.cancelled:
            raise OperationCancelled(f"Import cancelled after {len(resolved)} of {len(entries)} items")

    try:
        for start in range(0, len(entries), batch_size):
            check_cancelled()
            batch = list(enumerate(entries[start : start + batch_size], start=start + 1))
            if pool is None:
                for position, entry in batch:
                    check_cancelled()
                    resolved.append(
                        _resolve_entry(matcher, entry, list_id=list_id, position=position, cancel_token=cancel_token)
                    )
            else:
                futures = [
                    pool.submit(
                        _resolve_entry, matcher, entry, list_id=list_id, position=position, cancel_token=cancel_token
                    )
                    for position, entry in batch
                ]
                # Collected in submission order so positions stay contiguous.
                batch_results = [future.result() for future in futures]
                resolved.extend(batch_results)

            logger.info("Resolved %d/%d entries", len(resolved), len(entries))
            if len(resolved) < len(entries) and pacing_seconds > 0:
                sleep(pacing_seconds)
    except OperationCancelled:
        if on_cancel is not None:
            on_cancel(resolved)
        raise
    finally:
        if pool is not None:
            pool.shutdown(wait=True)
    return resolved


def validate_import_request(url: str, service: str) -> None:
    if not is_supported_service(service):
        supported = ", ".join(SUPPORTED_SERVICES)
        raise ImportValidationError(f"Unsupported service: {service!r} (supported: {supported})")
    if not validate_list_url(url, service):
        raise ImportValidationError(f"Invalid {service} list URL: {url!r}")


def import_list(
    url: str,
    service: str,
    owner_user_id: str,
    *,
    db: Any,
    matcher: TitleMatcher,
    pacing_every: int = PACING_EVERY,
    pacing_seconds: float = PACING_SECONDS,
    max_workers: int = 1,
    cancel_token: CancellationToken | None = None,
    session: requests.Session | None = None,
    scraper: Callable[..., ScrapedList] = scrape_list,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportResult:
    """
    Import a public external list into the owner's lists.

    Validation and scraping failures raise before anything is written. Once the list row exists,
    individual entries that cannot be matched become manual items, and a failed item insert is
    reported in the result message while the list row stays in place.
    """

    service = (service or "").strip().lower()
    validate_import_request(url, service)

    scraped = scraper(url, session=session)
    if not scraped.entries:
        raise ImportValidationError("No items found in the list. Make sure the list is public and not empty.")

    description = scraped.list_description or f"Imported from {service}"
    imported = create_list(db, name=scraped.list_name, description=description, owner_user_id=owner_user_id)
    logger.info("Created list %s (%r) with %d entries to resolve", imported.id, imported.name, len(scraped.entries))

    def persist(resolutions: list[_Resolution]) -> bool:
        try:
            bulk_insert_items(db, [r.item for r in resolutions], owner_user_id=owner_user_id)
        except ListRepositoryError as exc:
            logger.error("Inserting items for list %s failed: %s", imported.id, exc)
            return False
        return True

    resolutions = resolve_entries(
        scraped.entries,
        list_id=imported.id,
        matcher=matcher,
        pacing_every=pacing_every,
        pacing_seconds=pacing_seconds,
        max_workers=max_workers,
        cancel_token=cancel_token,
        sleep=sleep,
        on_cancel=persist,
    )

    inserted = persist(resolutions)

    failed_items = [r.failure for r in resolutions if r.failure is not None]
    items_count = len(resolutions)
    matched_count = items_count - len(failed_items)
    message = build_message(imported.name, items_count, len(failed_items))
    if not inserted:
        message += ". The list was created but its items could not be saved."

    logger.info(
        "Imported list %s: %d items, %d matched, %d need review",
        imported.id,
        items_count,
        matched_count,
        len(failed_items),
    )
    return ImportResult(
        success=True,
        list_id=imported.id,
        list_name=imported.name,
        list_description=imported.description,
        service=service,
        items_count=items_count,
        matched_count=matched_count,
        failed_count=len(failed_items),
        match_percentage=match_percentage(matched_count, items_count),
        failed_items=failed_items,
        message=message,
    )
