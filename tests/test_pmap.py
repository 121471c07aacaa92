import threading
import time

import pytest

from cgt_ingest.pmap import p_map, p_map_skip


def test_results_keep_input_order():
    def slow_first(x: int) -> int:
        time.sleep(0.05 if x == 0 else 0)
        return x * 10

    assert p_map(range(5), slow_first, concurrency=5) == [0, 10, 20, 30, 40]


def test_skip_sentinel_filters_items():
    assert p_map([1, 2, 3, 4], lambda x: p_map_skip if x % 2 else x, concurrency=2) == [2, 4]


def test_concurrency_is_bounded():
    active = 0
    peak = 0
    lock = threading.Lock()

    def track(_x: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1

    p_map(range(12), track, concurrency=3)
    assert 1 <= peak <= 3


def test_first_error_is_raised_unchanged():
    def boom(x: int) -> int:
        if x == 2:
            raise KeyError("bad item")
        return x

    with pytest.raises(KeyError):
        p_map(range(4), boom, concurrency=2)


def test_collect_all_errors():
    def boom(x: int) -> int:
        if x % 2:
            raise ValueError(f"odd {x}")
        return x

    with pytest.raises(ExceptionGroup) as ei:
        p_map(range(5), boom, concurrency=2, stop_on_error=False)
    assert [str(e) for e in ei.value.exceptions] == ["odd 1", "odd 3"]


def test_empty_input():
    assert p_map([], lambda x: x, concurrency=1) == []


@pytest.mark.parametrize("concurrency", [0, -1, True])
def test_invalid_concurrency(concurrency):
    with pytest.raises(ValueError):
        p_map([1], lambda x: x, concurrency=concurrency)
