from todo_list.models import make_task
from todo_list.utils import filter_by_title, partition_completed, visible_projection


def _tasks(*rows):
    return [make_task(title, is_completed=done) for title, done in rows]


def test_partition_is_stable():
    records = _tasks(("a", True), ("b", False), ("c", True), ("d", False))
    assert [r["title"] for r in partition_completed(records)] == ["b", "d", "a", "c"]


def test_partition_all_open_or_all_done_keeps_order():
    open_only = _tasks(("x", False), ("y", False))
    done_only = _tasks(("x", True), ("y", True))
    assert partition_completed(open_only) == open_only
    assert partition_completed(done_only) == done_only


def test_filter_by_title_case_insensitive():
    records = _tasks(("Buy milk", False), ("Clean", False))
    assert [r["title"] for r in filter_by_title(records, "BUY")] == ["Buy milk"]
    assert filter_by_title(records, "") == records
    assert filter_by_title(records, "zzz") == []


def test_visible_projection_partitions_then_filters():
    records = _tasks(("milk done", True), ("bread", False), ("milk open", False))
    assert [r["title"] for r in visible_projection(records, "MILK")] == ["milk open", "milk done"]
