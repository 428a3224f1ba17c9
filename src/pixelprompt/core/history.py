"""History query helpers: filtering, sorting, pagination, and counts.

These functions work on the record list returned by
:meth:`~pixelprompt.core.storage.RecordStore.list` and never touch storage,
so route handlers can compose them freely.  ``"all"`` (or ``None``) disables
a filter, matching the values the gallery filters send.
"""

from __future__ import annotations

from pixelprompt.core.records import GenerationRecord, GenerationStatus

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_PROMPT = "prompt"
SORT_OPTIONS = (SORT_NEWEST, SORT_OLDEST, SORT_PROMPT)


def filter_records(
    records: list[GenerationRecord],
    *,
    search: str | None = None,
    style: str | None = None,
    status: str | None = None,
) -> list[GenerationRecord]:
    """Apply search, style, and status filters to records.

    Args:
        records: Source records.
        search: Case-insensitive substring matched against the prompt.
        style: Style identifier to keep, or ``"all"``.
        status: Status value to keep, or ``"all"``.

    Returns:
        Filtered records in their original order.
    """
    filtered = records

    if search:
        needle = search.lower()
        filtered = [r for r in filtered if needle in r.prompt.lower()]

    if style and style != "all":
        filtered = [r for r in filtered if r.style == style]

    if status and status != "all":
        filtered = [r for r in filtered if r.status.value == status]

    return filtered


def sort_records(records: list[GenerationRecord], sort_by: str = SORT_NEWEST) -> list[GenerationRecord]:
    """Return *records* sorted by ``newest``, ``oldest``, or ``prompt``.

    Raises:
        ValueError: If *sort_by* is not one of :data:`SORT_OPTIONS`.
    """
    if sort_by == SORT_NEWEST:
        return sorted(records, key=lambda r: r.timestamp, reverse=True)
    if sort_by == SORT_OLDEST:
        return sorted(records, key=lambda r: r.timestamp)
    if sort_by == SORT_PROMPT:
        return sorted(records, key=lambda r: r.prompt.casefold())
    raise ValueError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}, got {sort_by!r}")


def paginate_records(records: list[GenerationRecord], page: int, per_page: int) -> dict:
    """Paginate records and clamp the requested page to valid bounds.

    Clamping matters after deletes: removing the last record on the final
    page makes the previous page the new last page.

    Args:
        records: Filtered, sorted records.
        page: Requested one-based page number.
        per_page: Requested items per page.

    Returns:
        Dictionary containing ``total``, ``page``, ``per_page``, ``pages``, and
        ``records`` for the resolved page.
    """
    total = len(records)
    pages = (total + per_page - 1) // per_page if total > 0 else 1
    resolved_page = min(max(page, 1), pages)

    start = (resolved_page - 1) * per_page
    end = start + per_page

    return {
        "total": total,
        "page": resolved_page,
        "per_page": per_page,
        "pages": pages,
        "records": records[start:end],
    }


def history_stats(records: list[GenerationRecord]) -> dict:
    """Count records in total, per status, and per style."""
    status_counts = {status.value: 0 for status in GenerationStatus}
    style_counts: dict[str, int] = {}
    for record in records:
        status_counts[record.status.value] += 1
        if record.style:
            style_counts[record.style] = style_counts.get(record.style, 0) + 1

    return {
        "total": len(records),
        "status_counts": status_counts,
        "style_counts": style_counts,
    }
