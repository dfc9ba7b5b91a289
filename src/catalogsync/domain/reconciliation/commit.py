"""Batch committer: chunked, failure-isolating writes with an aggregated report."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from catalogsync.domain.errors import StoreError
from catalogsync.domain.model import BatchReport, ImportSettings
from catalogsync.domain.ports import SupportsBatchUpsert
from catalogsync.domain.reconciliation.reconcile import error_outcome, reconcile

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from catalogsync.domain.model import CandidateRecord, ReconciliationOutcome
    from catalogsync.domain.ports import CatalogItemRepository, CatalogUnitOfWorkFactory
    from catalogsync.domain.reconciliation.reconcile import ReconciliationDecision
    from catalogsync.domain.tabular.registry import ColumnRegistry

log = logging.getLogger(__name__)


class ChunkStatus(StrEnum):
    COMMITTED = "committed"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


@dataclass(slots=True, kw_only=True)
class ChunkResult:
    number: int
    status: ChunkStatus
    outcomes: list[ReconciliationOutcome]
    error: str | None = None


def chunked[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[start : start + size] for start in range(0, len(items), size)]


class BatchCommitter:
    """Reconcile and commit candidates chunk by chunk.

    Each chunk runs in its own unit of work. A failing record yields an error
    outcome for that record only; a failing chunk (including its commit) yields
    error outcomes for every record in the chunk and the remaining chunks are
    still attempted. Chunks not started before cancellation or the deadline are
    reported as not attempted.
    """

    def __init__(
        self,
        unit_of_work_factory: CatalogUnitOfWorkFactory,
        *,
        settings: ImportSettings | None = None,
        registry: ColumnRegistry | None = None,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._settings = settings or ImportSettings()
        self._registry = registry
        self._cancel_event = cancel_event or threading.Event()
        self._clock = clock
        self._started_at: float | None = None

    def commit(self, candidates: Sequence[CandidateRecord]) -> BatchReport:
        chunks = chunked(candidates, self._settings.chunk_size)
        workers = min(self._settings.max_workers, max(len(chunks), 1))
        log.info(
            "Committing %d candidate(s) in %d chunk(s) of up to %d (workers=%d)",
            len(candidates),
            len(chunks),
            self._settings.chunk_size,
            workers,
        )
        self._started_at = self._clock()
        if workers > 1:
            results = self._run_parallel(chunks, workers)
        else:
            results = self._run_sequential(chunks)
        return self._aggregate(results)

    def _run_sequential(self, chunks: list[Sequence[CandidateRecord]]) -> list[ChunkResult]:
        results: list[ChunkResult] = []
        for number, chunk in enumerate(chunks, start=1):
            if number > 1:
                self._pause()
            results.append(self._run_chunk(number, chunk))
        return results

    def _run_parallel(
        self,
        chunks: list[Sequence[CandidateRecord]],
        workers: int,
    ) -> list[ChunkResult]:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="catalogsync") as executor:
            futures = []
            for number, chunk in enumerate(chunks, start=1):
                if number > 1:
                    self._pause()
                futures.append(executor.submit(self._run_chunk, number, chunk))
            # Results are gathered here only, in submission order.
            return [future.result() for future in futures]

    def _pause(self) -> None:
        pause = self._settings.inter_chunk_pause_seconds
        if pause > 0:
            self._cancel_event.wait(pause)

    def _stop_reason(self) -> str | None:
        if self._cancel_event.is_set():
            return "cancelled"
        deadline = self._settings.deadline_seconds
        if (
            deadline is not None
            and self._started_at is not None
            and self._clock() - self._started_at >= deadline
        ):
            return "deadline exceeded"
        return None

    def _run_chunk(self, number: int, chunk: Sequence[CandidateRecord]) -> ChunkResult:
        stop_reason = self._stop_reason()
        if stop_reason is not None:
            log.warning("Chunk %d not attempted: %s", number, stop_reason)
            return ChunkResult(
                number=number,
                status=ChunkStatus.NOT_ATTEMPTED,
                outcomes=[error_outcome(c, f"not attempted ({stop_reason})") for c in chunk],
                error=stop_reason,
            )

        try:
            with self._unit_of_work_factory() as uow:
                repository = uow.repositories.catalog_items
                if isinstance(repository, SupportsBatchUpsert):
                    decisions = [
                        reconcile(candidate, repository, registry=self._registry)
                        for candidate in chunk
                    ]
                    outcomes = self._write_batch(repository, decisions)
                else:
                    # Each write lands before the next lookup so repeated keys reconcile.
                    outcomes = [
                        self._write_one(
                            repository,
                            reconcile(candidate, repository, registry=self._registry),
                        )
                        for candidate in chunk
                    ]
                uow.commit()
        except Exception as exc:  # noqa: BLE001 - chunk boundary
            log.exception("Chunk %d failed; %d record(s) marked as errors", number, len(chunk))
            return ChunkResult(
                number=number,
                status=ChunkStatus.FAILED,
                outcomes=[error_outcome(c, f"chunk {number} failed: {exc}") for c in chunk],
                error=str(exc) or type(exc).__name__,
            )

        log.info("Chunk %d committed (%d record(s))", number, len(chunk))
        return ChunkResult(number=number, status=ChunkStatus.COMMITTED, outcomes=outcomes)

    def _write_one(
        self,
        repository: CatalogItemRepository,
        decision: ReconciliationDecision,
    ) -> ReconciliationOutcome:
        if not decision.needs_write:
            return decision.to_outcome()
        try:
            if decision.record_id is None:
                repository.insert(decision.candidate)
            elif decision.changes is not None:
                repository.update(decision.record_id, decision.changes)
        except StoreError as exc:
            log.warning(
                "Write failed for %s (row %d): %s",
                decision.candidate.identity_key,
                decision.candidate.source_row,
                exc,
            )
            operation = "insert" if decision.record_id is None else "update"
            return decision.failed(f"{operation} failed: {exc}")
        return decision.to_outcome()

    def _write_batch(
        self,
        repository: SupportsBatchUpsert,
        decisions: list[ReconciliationDecision],
    ) -> list[ReconciliationOutcome]:
        writes = [write for decision in decisions if (write := decision.planned_write())]
        results = repository.batch_upsert(writes) if writes else ()
        by_key = {result.identity_key: result for result in results}

        outcomes: list[ReconciliationOutcome] = []
        for decision in decisions:
            result = by_key.get(decision.candidate.identity_key) if decision.needs_write else None
            if result is None:
                outcomes.append(decision.to_outcome())
            else:
                outcomes.append(
                    decision.to_outcome(action=result.action, message=result.message or None)
                )
        return outcomes

    def _aggregate(self, results: list[ChunkResult]) -> BatchReport:
        outcomes = [outcome for result in results for outcome in result.outcomes]
        failed = [result for result in results if result.status is ChunkStatus.FAILED]
        stopped = [result for result in results if result.status is ChunkStatus.NOT_ATTEMPTED]

        success = True
        error: str | None = None
        if results and len(failed) == len(results):
            success = False
            error = failed[0].error
        elif stopped:
            success = False
            error = f"import stopped: {stopped[0].error}"

        report = BatchReport.from_outcomes(outcomes, success=success, error=error)
        log.info(
            "Commit finished: %d inserted, %d updated, %d skipped, %d error(s); %d failed chunk(s)",
            report.inserted_count,
            report.updated_count,
            report.skipped_count,
            report.error_count,
            len(failed),
        )
        return report
