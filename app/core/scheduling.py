"""
Time-window helpers shared by conflict detection and reporting.

Intervals are same-day time-of-day values. The boundary is closed: two windows
that only touch at an endpoint (10:00-11:00 and 11:00-12:00) conflict.
"""

from datetime import time
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def overlaps(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    return a_start <= b_end and a_end >= b_start


def group_overlap_clusters(schedules: Sequence[T]) -> List[List[T]]:
    """
    Group schedules (anything with start_time / end_time) into maximal clusters
    in which every member overlaps every other member. Callers pass schedules of
    a single day. Clusters of one are not returned.
    """
    ordered = sorted(schedules, key=lambda s: (s.start_time, s.end_time))
    clusters: List[List[T]] = []
    active: List[T] = []
    for item in ordered:
        # Sorted by start: an active window still overlaps item iff it has not ended before item starts.
        still_open = [
            a for a in active if overlaps(a.start_time, a.end_time, item.start_time, item.end_time)
        ]
        if len(still_open) < len(active) and len(active) > 1:
            clusters.append(active)
        active = still_open + [item]
    if len(active) > 1:
        clusters.append(active)
    return clusters
