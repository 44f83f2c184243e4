from typing import Iterator, List

from csim.entity.model import CacheConfig


class Line:
    __slots__ = ("valid", "tag", "recency")

    def __init__(self):
        self.valid = False
        self.tag = 0
        self.recency = 0

    def fill(self, tag: int, recency: int):
        self.valid = True
        self.tag = tag
        self.recency = recency

    def __repr__(self):
        if not self.valid:
            return "Line(invalid)"
        return f"Line(tag={self.tag:#x}, recency={self.recency})"


class CacheSet:
    """E lines of one set. Lines are created once and only mutated afterwards."""

    def __init__(self, ways: int):
        if ways < 1:
            raise ValueError(f"a cache set needs at least one line, got {ways}")
        self._lines: List[Line] = [Line() for _ in range(ways)]

    @property
    def lines(self) -> List[Line]:
        return self._lines

    def __len__(self):
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def __getitem__(self, way: int) -> Line:
        return self._lines[way]

    def is_full(self) -> bool:
        return all(line.valid for line in self._lines)

    def resident_tags(self) -> List[int]:
        return [line.tag for line in self._lines if line.valid]


class Cache:
    def __init__(self, config: CacheConfig):
        self.config = config
        self._sets: List[CacheSet] = [CacheSet(config.E) for _ in range(config.S)]

    @property
    def sets(self) -> List[CacheSet]:
        return self._sets

    def __len__(self):
        return len(self._sets)

    def __getitem__(self, set_index: int) -> CacheSet:
        return self._sets[set_index]

    def occupancy(self) -> int:
        return sum(len(s.resident_tags()) for s in self._sets)


__all__ = ["Cache", "CacheSet", "Line"]
