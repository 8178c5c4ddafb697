from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from lrv.directory.records import ReferenceRange, TestMapping


class MappingDirectory(Protocol):
    def find_by_local_id(self, local_test_id: str) -> Optional[TestMapping]: ...


class ReferenceRangeDirectory(Protocol):
    def find_all_by_code(self, canonical_code: str) -> List[ReferenceRange]: ...


class ResultSink(Protocol):
    # Must write all observations or none; raises SinkError otherwise.
    def commit(self, observations: Sequence[Any], metadata: Dict[str, Any]) -> Any: ...
