"""
Celery Tasks for Candidate Matching

Background entry points for bulk runs, single-pair re-matching and job
matrix generation. All tasks are routed to the ``matching`` queue.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


# ============================================================================
# Bulk Runs
# ============================================================================

@shared_task(
    name='matching.run_bulk_job',
    bind=True,
    max_retries=0,
    acks_late=True
)
def run_bulk_job(self, bulk_job_id: str):
    """
    Execute a bulk matching job created by BulkMatchingOrchestrator.start.

    Failures are recorded on the job's status record rather than retried,
    since retrying would re-run items that already succeeded.

    Returns:
        Dict with the final status record
    """
    from .orchestration import BulkMatchingOrchestrator

    logger.info(f"Running bulk job {bulk_job_id}")
    status = BulkMatchingOrchestrator().run(bulk_job_id)
    return status.to_dict()


# ============================================================================
# Single Pair
# ============================================================================

@shared_task(
    name='matching.calculate_single_match',
    bind=True,
    max_retries=3,
    default_retry_delay=60
)
def calculate_single_match(self, candidate_id: str, job_id: str):
    """
    Compute and persist the match of one candidate/job pair.

    Missing candidates, jobs or matrices are not retried.

    Returns:
        Dict with outcome status, score and match id
    """
    from .exceptions import CandidateNotFound, JobNotFound, MatrixNotFound
    from .services.matching import MatchingService

    try:
        outcome = MatchingService().calculate_match(candidate_id, job_id)
    except (CandidateNotFound, JobNotFound, MatrixNotFound) as e:
        logger.warning(f"Skipping match {candidate_id} / {job_id}: {e.detail}")
        return {'status': 'skipped', 'error': str(e.detail)}
    except Exception as e:
        logger.error(f"Match calculation failed for {candidate_id} / {job_id}: {e}")
        raise self.retry(exc=e)

    return {
        'status': outcome.status,
        'score': outcome.score,
        'match_id': str(outcome.match.id) if outcome.match else None,
        'explanation_error': outcome.explanation_error,
    }


# ============================================================================
# Job Matrix Generation
# ============================================================================

@shared_task(
    name='matching.generate_job_matrix',
    bind=True,
    max_retries=3,
    default_retry_delay=30
)
def generate_job_matrix(self, job_id: str, match_after: bool = False):
    """
    Extract and store the matrix of a job posting.

    Args:
        job_id: JobPosting id
        match_after: Start a match-job bulk run once the matrix is stored

    Returns:
        Dict with the matrix id and the bulk job id, if one was started
    """
    from recruitment.models import JobPosting

    from .bulk_status import BulkJobType
    from .exceptions import ExtractionError
    from .orchestration import BulkMatchingOrchestrator
    from .services.extraction import regenerate_job_matrix

    try:
        job = JobPosting.objects.get(id=job_id)
    except JobPosting.DoesNotExist:
        logger.warning(f"Job {job_id} not found, skipping matrix generation")
        return {'status': 'skipped'}

    try:
        matrix, created = regenerate_job_matrix(job)
    except ExtractionError as e:
        logger.error(f"Job matrix extraction failed for {job_id}: {e}")
        raise self.retry(exc=e)

    result = {'status': 'created' if created else 'updated', 'matrix_id': str(matrix.id)}

    if match_after and job.is_published:
        result['bulk_job_id'] = BulkMatchingOrchestrator().start(
            BulkJobType.MATCH_JOB, job_id=job.id
        )

    return result
