from bricks.domain.cache_entry import CacheEntry


def _entry(valid_from: float, valid_to: float | None) -> CacheEntry:
    return CacheEntry(kind="k", key=b"key", value=b"v", valid_from=valid_from, valid_to=valid_to)


class TestCacheEntry:
    def test_interval_is_half_open(self) -> None:
        entry = _entry(10.0, 20.0)
        assert entry.contains(10.0)
        assert entry.contains(19.9)
        assert not entry.contains(20.0)
        assert not entry.contains(9.9)

    def test_open_ended(self) -> None:
        assert _entry(10.0, None).contains(1e12)

    def test_overlaps(self) -> None:
        entry = _entry(10.0, 20.0)
        assert entry.overlaps(15.0, 25.0)
        assert entry.overlaps(0.0, None)
        assert not entry.overlaps(20.0, 30.0)
        assert not entry.overlaps(0.0, 10.0)
