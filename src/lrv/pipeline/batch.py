"""Batch orchestration: one patient encounter, all-or-nothing.

Items are processed strictly in input order. Every per-item problem is
collected so the caller sees the complete list in one pass; a single error
rejects the whole batch and nothing reaches the sink.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from lrv.common.config import PipelineSettings
from lrv.common.errors import DirectoryError, SinkError
from lrv.directory.interfaces import MappingDirectory, ReferenceRangeDirectory, ResultSink
from lrv.directory.records import ReferenceRange, TestMapping
from lrv.governance.cache import BatchCache
from lrv.governance.reference_ranges import select_reference_range
from lrv.governance.test_mappings import resolve_test
from lrv.pipeline.interpretation import classify
from lrv.pipeline.outcome import (
    Accepted,
    BatchOutcome,
    CommitFailed,
    ItemError,
    LabBatch,
    ProcessedObservation,
    RawTestItem,
    Rejected,
)
from lrv.units.canonical import canonicalize
from lrv.units.conversion import UnitConverter

logger = logging.getLogger(__name__)


@dataclass
class BatchContext:
    """Caches owned by a single batch; discarded when the batch returns."""

    mappings: "BatchCache[str, Optional[TestMapping]]" = field(default_factory=lambda: BatchCache("mappings"))
    ranges: "BatchCache[str, List[ReferenceRange]]" = field(default_factory=lambda: BatchCache("reference_ranges"))


def parse_numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        raw = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
    else:
        return None
    try:
        f = float(raw)
    except (OverflowError, ValueError):
        return None
    return f if math.isfinite(f) else None


class BatchProcessor:
    def __init__(
        self,
        mappings: MappingDirectory,
        ranges: ReferenceRangeDirectory,
        sink: ResultSink,
        settings: Optional[PipelineSettings] = None,
    ):
        self.mappings = mappings
        self.ranges = ranges
        self.sink = sink
        self.settings = settings or PipelineSettings()
        self.converter = UnitConverter(
            molar_factors=self.settings.molar_factors,
            default_molar_factor=self.settings.default_molar_factor,
        )

    def process_item(
        self, item: RawTestItem, batch: LabBatch, ctx: BatchContext
    ) -> Union[ProcessedObservation, ItemError]:
        local_id = item.local_test_id

        try:
            mapping = resolve_test(local_id, self.mappings, ctx.mappings)
        except DirectoryError as e:
            return ItemError(local_id, "lookup", f"Mapping lookup failed: {e}")
        if mapping is None:
            return ItemError(local_id, "resolution", "Missing mapping document")

        unit = canonicalize(item.unit)
        if unit is None:
            return ItemError(local_id, "unit", f"Unknown unit: {item.unit}")

        if isinstance(item.value, bool) or not isinstance(item.value, (int, float, str)):
            return ItemError(local_id, "conversion", f"Unsupported value type: {type(item.value).__name__}")

        numeric = parse_numeric(item.value)
        final_value: Any = numeric if numeric is not None else item.value
        final_unit = unit
        conversion_note = None

        target = canonicalize(mapping.canonical_unit) or mapping.canonical_unit
        if target and target != unit:
            if numeric is None:
                return ItemError(
                    local_id,
                    "conversion",
                    f"Conversion failed: non-numeric value {item.value!r} cannot be converted {unit} -> {target}",
                )
            converted = self.converter.convert(numeric, unit, target, mapping.canonical_code)
            if converted is None:
                return ItemError(local_id, "conversion", f"Conversion failed: Unsupported conversion {unit} -> {target}")
            final_value = converted.value
            final_unit = target
            conversion_note = converted.note

        try:
            rr = select_reference_range(
                mapping.canonical_code,
                sex=batch.sex,
                age=batch.age,
                directory=self.ranges,
                cache=ctx.ranges,
                tie_break=self.settings.range_tie_break,
            )
        except DirectoryError as e:
            return ItemError(local_id, "lookup", f"Reference range lookup failed: {e}")

        if rr is not None and rr.unit:
            range_unit = canonicalize(rr.unit) or rr.unit
            if range_unit != final_unit:
                logger.warning(
                    "Reference range for %s is expressed in %s but value is in %s",
                    mapping.canonical_code,
                    rr.unit,
                    final_unit,
                )

        return ProcessedObservation(
            local_test_id=local_id,
            canonical_code=mapping.canonical_code,
            display=mapping.display_name or local_id,
            value=final_value,
            unit=final_unit,
            interpretation=classify(final_value, rr),
            timestamp=item.timestamp or batch.submitted_at,
            note=item.note,
            conversion_note=conversion_note,
            reference_range=rr,
        )

    def evaluate(self, batch: LabBatch) -> Union[Rejected, Accepted]:
        """Run every item without committing anything."""
        ctx = BatchContext()
        observations: List[ProcessedObservation] = []
        errors: List[ItemError] = []

        for item in batch.items:
            result = self.process_item(item, batch, ctx)
            if isinstance(result, ItemError):
                logger.warning("Item %s rejected (%s): %s", result.local_test_id, result.kind, result.reason)
                errors.append(result)
            else:
                observations.append(result)

        logger.debug(
            "batch caches: mappings %d hit / %d miss, ranges %d hit / %d miss",
            ctx.mappings.hits,
            ctx.mappings.misses,
            ctx.ranges.hits,
            ctx.ranges.misses,
        )

        if errors:
            return Rejected(errors=tuple(errors))
        return Accepted(observations=tuple(observations))

    def process(self, batch: LabBatch, metadata: Optional[Dict[str, Any]] = None) -> BatchOutcome:
        logger.info("Processing batch of %d item(s)", len(batch.items))
        evaluated = self.evaluate(batch)
        if isinstance(evaluated, Rejected):
            logger.info("Batch rejected with %d error(s)", len(evaluated.errors))
            return evaluated

        meta = batch.metadata()
        if metadata:
            meta.update(metadata)

        try:
            handle = self.sink.commit(list(evaluated.observations), meta)
        except SinkError as e:
            logger.error("Commit failed at %s: %s", e.step, e.detail)
            return CommitFailed(step=e.step, detail=e.detail, local_test_id=e.local_test_id)

        logger.info("Batch accepted: %d observation(s), report %s", len(evaluated.observations), handle.report_id)
        return Accepted(observations=evaluated.observations, handle=handle)
