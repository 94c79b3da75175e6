from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """A cached computation result, authoritative over ``[valid_from, valid_to)``.

    ``valid_to`` of ``None`` means the entry is open-ended.
    """

    kind: str
    key: bytes
    value: bytes
    valid_from: float
    valid_to: float | None = None

    def contains(self, at: float) -> bool:
        return self.valid_from <= at and (self.valid_to is None or at < self.valid_to)

    def overlaps(self, valid_from: float, valid_to: float | None) -> bool:
        starts_before_end = valid_to is None or self.valid_from < valid_to
        ends_after_start = self.valid_to is None or self.valid_to > valid_from
        return starts_before_end and ends_after_start
