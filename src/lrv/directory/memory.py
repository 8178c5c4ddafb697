"""In-memory directories served from records loaded once per invocation."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from lrv.directory.records import ReferenceRange, TestMapping


class InMemoryMappingDirectory:
    def __init__(self, mappings: Iterable[TestMapping]):
        # first occurrence of a local id is the authoritative one
        self._by_local_id: Dict[str, TestMapping] = {}
        for m in mappings:
            self._by_local_id.setdefault(m.local_test_id, m)

    def find_by_local_id(self, local_test_id: str) -> Optional[TestMapping]:
        return self._by_local_id.get(local_test_id)

    def __len__(self) -> int:
        return len(self._by_local_id)


class InMemoryReferenceRangeDirectory:
    def __init__(self, ranges: Iterable[ReferenceRange]):
        self._by_code: Dict[str, List[ReferenceRange]] = defaultdict(list)
        for r in ranges:
            self._by_code[r.canonical_code].append(r)

    def find_all_by_code(self, canonical_code: str) -> List[ReferenceRange]:
        return list(self._by_code.get(canonical_code, ()))

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_code.values())
