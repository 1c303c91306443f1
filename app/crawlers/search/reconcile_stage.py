"""Reconciles fetched repositories against the store with replay-safe upserts."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from app.services.search.repository_mapper import (
    RepositoryRecord,
    map_payload_to_record,
    merge_records,
    parse_repository_payload,
)

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
UNCHANGED = "unchanged"


@dataclass
class ReconcileResult:
    records: list[RepositoryRecord] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0

    def stats(self) -> dict[str, int]:
        return {
            "input": len(self.records) + self.skipped,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
        }


class ReconcileStage:
    """Create, update or leave alone each fetched repository.

    Each item costs one lookup and at most one write. A second pass over the
    same payload writes nothing. Store errors are not caught here: they abort
    the run, and records saved before the failure stay saved.
    """

    def __init__(self, store: Any, executor: Optional[Executor] = None) -> None:
        self._store = store
        self._executor = executor

    async def reconcile_items(self, items: Sequence[Any]) -> ReconcileResult:
        result = ReconcileResult()
        loop = asyncio.get_running_loop()

        for item in items:
            payload = parse_repository_payload(item)
            if payload is None:
                result.skipped += 1
                continue

            candidate = map_payload_to_record(payload)
            outcome, record = await loop.run_in_executor(self._executor, self._reconcile_one, candidate)
            result.records.append(record)
            if outcome == CREATED:
                result.created += 1
            elif outcome == UPDATED:
                result.updated += 1
            else:
                result.unchanged += 1

        if result.skipped:
            logger.warning(
                f"Dropped {result.skipped} repositories with missing essential fields",
                extra={"stats": result.stats()},
            )
        return result

    def _reconcile_one(self, candidate: RepositoryRecord) -> tuple[str, RepositoryRecord]:
        existing = self._store.find_by_id(candidate.id)

        if existing is None:
            saved = self._store.save(candidate)
            logger.info(f"Saved new repository: {candidate.name}")
            return CREATED, saved

        if existing == candidate:
            logger.info(f"Repository {existing.name} already exists and is up-to-date. No update needed.")
            return UNCHANGED, existing

        saved = self._store.save(merge_records(existing, candidate))
        logger.info(f"Updated existing repository: {saved.name}")
        return UPDATED, saved
