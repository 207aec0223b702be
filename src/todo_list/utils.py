from __future__ import annotations

from typing import Iterable, List

from .models import TaskRecord


# PUBLIC_INTERFACE
def partition_completed(records: Iterable[TaskRecord]) -> List[TaskRecord]:
    """
    Stable partition: open tasks first, completed tasks after.

    Relative order inside each group is the order of ``records``.
    """
    materialized = list(records)
    open_tasks = [r for r in materialized if not r["is_completed"]]
    done_tasks = [r for r in materialized if r["is_completed"]]
    return open_tasks + done_tasks


# PUBLIC_INTERFACE
def filter_by_title(records: Iterable[TaskRecord], search_text: str) -> List[TaskRecord]:
    """Keep records whose title contains ``search_text`` case-insensitively; empty text keeps all."""
    if not search_text:
        return list(records)
    needle = search_text.casefold()
    return [r for r in records if needle in (r["title"] or "").casefold()]


def visible_projection(records: Iterable[TaskRecord], search_text: str) -> List[TaskRecord]:
    return filter_by_title(partition_completed(records), search_text)
