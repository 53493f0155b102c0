"""
Batch Orchestrator

Drives matching across many candidates and/or jobs in the background.

A bulk job is started synchronously (its status record exists before the
caller gets the id back) and executed by the ``matching.run_bulk_job``
Celery task. Items are processed sequentially in a stable order; a failing
item is recorded and counted but never stops the run. Cancellation is
cooperative and polled from the status store before every item and pair.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from django.db.models import Exists, OuterRef

from recruitment.models import Candidate, CvFile, JobPosting

from .bulk_status import BatchStatus, BulkJobState, BulkJobStore, BulkJobType, get_bulk_job_store
from .exceptions import BulkJobNotFound, InvalidBulkOperation, JobNotFound, MatrixNotFound
from .models import CandidateMatrix, JobMatrix
from .services.extraction import MatrixExtractionService, regenerate_candidate_matrix
from .services.matching import MatchingService

logger = logging.getLogger(__name__)


class BatchCancelled(Exception):
    """Raised inside a run when cancellation has been observed."""


class BulkMatchingOrchestrator:
    """
    Public surface of bulk matching runs.

    Usage:
        orchestrator = BulkMatchingOrchestrator()
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING)
        orchestrator.get_status(job_id).processed
    """

    def __init__(
        self,
        store: Optional[BulkJobStore] = None,
        matching_service: Optional[MatchingService] = None,
        extraction_service: Optional[MatrixExtractionService] = None,
    ):
        self.store = store or get_bulk_job_store()
        self._matching_service = matching_service
        self._extraction_service = extraction_service

    @property
    def matching_service(self) -> MatchingService:
        if self._matching_service is None:
            self._matching_service = MatchingService()
        return self._matching_service

    @property
    def extraction_service(self) -> MatrixExtractionService:
        if self._extraction_service is None:
            self._extraction_service = MatrixExtractionService()
        return self._extraction_service

    # ========================================================================
    # Public API
    # ========================================================================

    def start(
        self,
        job_type: str,
        candidate_ids: Optional[List] = None,
        only_missing: bool = False,
        job_id=None,
        dispatch: bool = True,
    ) -> str:
        """
        Create a running bulk job and dispatch it to a worker.

        Returns:
            The bulk job id

        Raises:
            InvalidBulkOperation: unknown type or missing job id
            JobNotFound: match-job for a job that does not exist
            MatrixNotFound: match-job for a job without a matrix
        """
        if job_type not in BulkJobType.ALL:
            raise InvalidBulkOperation(f"Unknown bulk operation '{job_type}'.")

        if job_type == BulkJobType.MATCH_JOB:
            if not job_id:
                raise InvalidBulkOperation('match-job requires a job id.')
            if not JobPosting.objects.filter(id=job_id).exists():
                raise JobNotFound(job_id)
            if not JobMatrix.objects.filter(job_id=job_id).exists():
                raise MatrixNotFound(detail=f"Job {job_id} has no matrix yet.")

        status = BatchStatus(
            id=str(uuid.uuid4()),
            type=job_type,
            options={
                'candidateIds': [str(c) for c in candidate_ids] if candidate_ids else None,
                'onlyMissing': bool(only_missing),
                'jobId': str(job_id) if job_id else None,
            },
        )
        self.store.set(status)
        logger.info(f"Started bulk job {status.id} ({job_type})")

        if dispatch:
            from .tasks import run_bulk_job
            run_bulk_job.delay(status.id)

        return status.id

    def get_status(self, bulk_job_id) -> BatchStatus:
        status = self.store.get(str(bulk_job_id))
        if status is None:
            raise BulkJobNotFound(bulk_job_id)
        return status

    def list_recent(self, limit: int = 10) -> List[BatchStatus]:
        return self.store.list(limit=limit)

    def cancel(self, bulk_job_id) -> BatchStatus:
        """Request cancellation; jobs that already finished are left unchanged."""
        status = self.get_status(bulk_job_id)
        if status.is_running:
            self.store.request_cancel(status.id)
            status.finish(BulkJobState.CANCELLED)
            self.store.set(status)
            logger.info(f"Cancellation requested for bulk job {status.id}")
        return status

    # ========================================================================
    # Execution
    # ========================================================================

    def run(self, bulk_job_id) -> BatchStatus:
        """
        Execute a bulk job to completion. Called by the Celery task.

        Any exception escaping the per-item handling (e.g. the candidate
        list cannot be loaded) marks the whole job failed.
        """
        status = self.get_status(bulk_job_id)
        if not status.is_running:
            logger.info(f"Bulk job {status.id} is {status.status}, not running it")
            return status

        runners = {
            BulkJobType.REGENERATE_MATRICES: self._run_regenerate_matrices,
            BulkJobType.RERUN_MATCHING: self._run_rerun_matching,
            BulkJobType.REGENERATE_AND_MATCH: self._run_regenerate_and_match,
            BulkJobType.MATCH_JOB: self._run_match_job,
        }

        try:
            runners[status.type](status)
        except BatchCancelled:
            pass
        except Exception as e:
            logger.exception(f"Bulk job {status.id} failed: {e}")
            status.record_error(error=str(e))
            status.finish(BulkJobState.FAILED)
            self._save(status)
            return status

        if status.status == BulkJobState.CANCELLED:
            status.currentCandidate = None
        else:
            status.finish(BulkJobState.COMPLETED)
        self._save(status)

        logger.info(
            f"Bulk job {status.id} {status.status}: {status.succeeded} succeeded, "
            f"{status.failed} failed of {status.total}"
        )
        return status

    # ------------------------------------------------------------------
    # Progress helpers
    # ------------------------------------------------------------------

    def _apply_cancellation(self, status: BatchStatus) -> bool:
        """Mark status cancelled if a cancel was requested. Returns True if cancelled."""
        if status.status == BulkJobState.CANCELLED:
            return True
        if status.is_running and self.store.is_cancel_requested(status.id):
            status.finish(BulkJobState.CANCELLED)
            logger.info(f"Bulk job {status.id} cancelled after {status.processed} items")
            return True
        return False

    def _save(self, status: BatchStatus):
        """Persist progress without overwriting an external cancellation."""
        self._apply_cancellation(status)
        self.store.set(status)

    def _check_cancelled(self, status: BatchStatus):
        if self._apply_cancellation(status):
            raise BatchCancelled()

    def _item_done(self, status: BatchStatus, ok: bool):
        status.processed += 1
        if ok:
            status.succeeded += 1
        else:
            status.failed += 1
        self._save(status)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _candidates(self, status: BatchStatus):
        queryset = Candidate.objects.order_by('created_at', 'id')
        candidate_ids = status.options.get('candidateIds')
        if candidate_ids:
            queryset = queryset.filter(id__in=candidate_ids)
        return queryset

    def _candidates_with_cv_text(self, status: BatchStatus) -> List[Candidate]:
        has_cv_text = CvFile.objects.filter(
            candidate=OuterRef('pk'),
            raw_text__isnull=False,
        ).exclude(raw_text='')
        queryset = self._candidates(status).filter(Exists(has_cv_text))
        if status.options.get('onlyMissing'):
            has_matrix = CandidateMatrix.objects.filter(candidate=OuterRef('pk'))
            queryset = queryset.exclude(Exists(has_matrix))
        return list(queryset)

    def _candidates_with_matrix(self, status: BatchStatus) -> List[Candidate]:
        has_matrix = CandidateMatrix.objects.filter(candidate=OuterRef('pk'))
        return list(self._candidates(status).filter(Exists(has_matrix)))

    def _published_jobs_with_matrix(self) -> List[JobMatrix]:
        return list(
            JobMatrix.objects
            .filter(job__status=JobPosting.JobStatus.PUBLISHED)
            .select_related('job')
            .order_by('job__created_at', 'job__id')
        )

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _match_pair(self, status: BatchStatus, candidate, candidate_matrix, job_matrix) -> bool:
        """Match one pair, recording any failure. Returns True on success."""
        job = job_matrix.job
        try:
            outcome = self.matching_service.match_pair(
                candidate, job, candidate_matrix, job_matrix
            )
        except Exception as e:
            logger.warning(f"Matching failed for {candidate.name} / {job.title}: {e}")
            status.record_error(candidate.id, candidate.name, str(e), job_id=job.id)
            return False

        if outcome.explanation_error:
            status.record_error(
                candidate.id, candidate.name,
                f"Explanation failed: {outcome.explanation_error}",
                job_id=job.id,
            )
            return False
        return True

    def _run_regenerate_matrices(self, status: BatchStatus):
        candidates = self._candidates_with_cv_text(status)
        status.total = len(candidates)
        self._save(status)
        logger.info(f"Regenerating matrices for {status.total} candidates")

        for candidate in candidates:
            self._check_cancelled(status)
            status.currentCandidate = candidate.name
            logger.info(f"[{status.processed + 1}/{status.total}] Regenerating matrix for {candidate.name}")
            try:
                regenerate_candidate_matrix(candidate, self.extraction_service)
                ok = True
            except Exception as e:
                logger.warning(f"Matrix regeneration failed for {candidate.name}: {e}")
                status.record_error(candidate.id, candidate.name, str(e))
                ok = False
            self._item_done(status, ok)

    def _run_pairs(self, status: BatchStatus, candidates: Iterable[Candidate], job_matrices: List[JobMatrix]):
        for candidate in candidates:
            self._check_cancelled(status)
            status.currentCandidate = candidate.name
            candidate_matrix = CandidateMatrix.objects.latest_for(candidate)

            for job_matrix in job_matrices:
                self._check_cancelled(status)
                logger.info(
                    f"[{status.processed + 1}/{status.total}] Matching "
                    f"{candidate.name} / {job_matrix.job.title}"
                )
                ok = self._match_pair(status, candidate, candidate_matrix, job_matrix)
                self._item_done(status, ok)

    def _run_rerun_matching(self, status: BatchStatus):
        candidates = self._candidates_with_matrix(status)
        job_matrices = self._published_jobs_with_matrix()
        status.total = len(candidates) * len(job_matrices)
        self._save(status)
        logger.info(
            f"Re-running matching for {len(candidates)} candidates "
            f"against {len(job_matrices)} jobs"
        )
        self._run_pairs(status, candidates, job_matrices)

    def _run_match_job(self, status: BatchStatus):
        job_id = status.options.get('jobId')
        job_matrix = JobMatrix.objects.select_related('job').filter(job_id=job_id).first()
        if job_matrix is None:
            # Matrix removed after the run was queued; nothing to match against
            logger.warning(f"Job {job_id} has no matrix, skipping match-job run")
            return
        candidates = self._candidates_with_matrix(status)
        status.total = len(candidates)
        self._save(status)
        logger.info(f"Matching {status.total} candidates against '{job_matrix.job.title}'")
        self._run_pairs(status, candidates, [job_matrix])

    def _run_regenerate_and_match(self, status: BatchStatus):
        candidates = self._candidates_with_cv_text(status)
        job_matrices = self._published_jobs_with_matrix()
        status.total = len(candidates)
        self._save(status)
        logger.info(
            f"Regenerating and matching {status.total} candidates "
            f"against {len(job_matrices)} jobs"
        )

        for candidate in candidates:
            self._check_cancelled(status)
            status.currentCandidate = candidate.name
            logger.info(f"[{status.processed + 1}/{status.total}] Regenerating and matching {candidate.name}")

            try:
                candidate_matrix = regenerate_candidate_matrix(candidate, self.extraction_service)
            except Exception as e:
                logger.warning(f"Matrix regeneration failed for {candidate.name}: {e}")
                status.record_error(candidate.id, candidate.name, str(e))
                self._item_done(status, False)
                continue

            ok = True
            try:
                for job_matrix in job_matrices:
                    self._check_cancelled(status)
                    if not self._match_pair(status, candidate, candidate_matrix, job_matrix):
                        ok = False
            except BatchCancelled:
                # The matrix is already regenerated, so the candidate counts
                self._item_done(status, ok)
                raise
            self._item_done(status, ok)
