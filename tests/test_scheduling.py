from datetime import time
from itertools import product
from types import SimpleNamespace

from app.core.scheduling import group_overlap_clusters, overlaps


def t(value: str) -> time:
    return time.fromisoformat(value)


def slot(name: str, start: str, end: str) -> SimpleNamespace:
    return SimpleNamespace(name=name, start_time=t(start), end_time=t(end))


def test_touching_intervals_conflict() -> None:
    assert overlaps(t("10:00"), t("11:00"), t("11:00"), t("12:00")) is True
    assert overlaps(t("11:00"), t("12:00"), t("10:00"), t("11:00")) is True


def test_disjoint_intervals_do_not_conflict() -> None:
    assert overlaps(t("08:00"), t("09:00"), t("09:30"), t("10:00")) is False


def test_contained_interval_conflicts() -> None:
    assert overlaps(t("08:00"), t("12:00"), t("09:00"), t("10:00")) is True


def test_overlap_is_symmetric() -> None:
    hours = [t(f"{h:02d}:00") for h in range(7, 13)]
    windows = [(a, b) for a, b in product(hours, hours) if a < b]
    for (a_start, a_end), (b_start, b_end) in product(windows, windows):
        assert overlaps(a_start, a_end, b_start, b_end) == overlaps(b_start, b_end, a_start, a_end)


def test_clusters_are_mutually_overlapping() -> None:
    slots = [
        slot("a", "08:00", "10:00"),
        slot("b", "09:00", "11:00"),
        slot("c", "10:30", "12:00"),
        slot("d", "14:00", "15:00"),
    ]
    clusters = group_overlap_clusters(slots)
    names = [[s.name for s in cluster] for cluster in clusters]
    assert names == [["a", "b"], ["b", "c"]]
    for cluster in clusters:
        for x, y in product(cluster, cluster):
            assert overlaps(x.start_time, x.end_time, y.start_time, y.end_time)


def test_no_clusters_without_overlap() -> None:
    assert group_overlap_clusters([slot("a", "08:00", "09:00"), slot("b", "10:00", "11:00")]) == []
    assert group_overlap_clusters([]) == []


def test_three_way_cluster() -> None:
    slots = [slot("a", "08:00", "12:00"), slot("b", "09:00", "10:00"), slot("c", "09:30", "11:00")]
    assert [[s.name for s in c] for c in group_overlap_clusters(slots)] == [["a", "b", "c"]]
