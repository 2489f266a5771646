from cerbo_scheduler.intervals import contains, duration_minutes, gap_minutes, is_adjacent, overlaps, same_interval
from cerbo_scheduler.work_blocks import WorkBlock
from conftest import utc


def block(h1, m1, h2, m2):
    return WorkBlock(utc(29, h1, m1), utc(29, h2, m2))


def test_overlap_is_half_open():
    assert overlaps(block(12, 0, 13, 0), block(12, 30, 13, 30))
    assert not overlaps(block(12, 0, 13, 0), block(13, 0, 13, 30))
    assert not overlaps(block(13, 0, 13, 30), block(12, 0, 13, 0))
    assert overlaps(block(12, 0, 14, 0), block(12, 30, 13, 0))


def test_contains():
    assert contains(block(12, 0, 14, 0), block(12, 0, 14, 0))
    assert contains(block(12, 0, 14, 0), block(12, 30, 13, 0))
    assert not contains(block(12, 0, 14, 0), block(13, 30, 14, 30))


def test_adjacency_tolerance():
    end = utc(29, 12)
    assert is_adjacent(end, utc(29, 12, 1))
    assert not is_adjacent(end, utc(29, 12, 2))
    assert is_adjacent(end, utc(29, 11, 30))  # overlapping counts
    assert gap_minutes(end, utc(29, 12, 15)) == 15


def test_duration_and_equality():
    assert duration_minutes(block(12, 0, 13, 30)) == 90
    assert same_interval(block(12, 0, 12, 30), block(12, 0, 12, 30))
    assert not same_interval(block(12, 0, 12, 30), block(12, 0, 13, 0))
