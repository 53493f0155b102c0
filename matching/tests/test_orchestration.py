"""
Tests for bulk matching runs.

Orchestrators here use an InMemoryBulkJobStore and are started with
dispatch=False, then run inline.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from django.utils import timezone

from matching.bulk_status import BulkJobState, BulkJobType, InMemoryBulkJobStore
from matching.exceptions import (
    BulkJobNotFound, ExtractionError, InvalidBulkOperation, JobNotFound, MatrixNotFound
)
from matching.models import CandidateMatrix, JobMatrix, Match
from matching.orchestration import BulkMatchingOrchestrator
from matching.services.matching import MatchingService, MatchOutcome


def saved_outcome(*args, **kwargs):
    return MatchOutcome(status=MatchOutcome.SAVED, score=80)


def make_orchestrator(matching_service=None, extraction_service=None):
    return BulkMatchingOrchestrator(
        store=InMemoryBulkJobStore(),
        matching_service=matching_service,
        extraction_service=extraction_service,
    )


def extraction_mock():
    service = MagicMock(model_version='qwen-turbo')
    service.extract_candidate_matrix.return_value = {
        'skills': [{'name': 'Python', 'level': 'advanced', 'yearsOfExperience': 4}],
        'roles': ['Backend Developer'],
        'totalYearsExperience': 4,
        'domains': ['Backend'],
        'locationSignals': {'currentCountry': 'Canada', 'willingToRelocate': False},
    }
    return service


# ============================================================================
# Start / Status / Cancel
# ============================================================================

@pytest.mark.django_db
class TestBulkJobLifecycle:

    def test_start_creates_running_record(self):
        orchestrator = make_orchestrator()

        job_id = orchestrator.start(
            BulkJobType.RERUN_MATCHING, candidate_ids=['a', 'b'], dispatch=False
        )
        status = orchestrator.get_status(job_id)

        assert status.status == BulkJobState.RUNNING
        assert status.processed == 0
        assert status.options['candidateIds'] == ['a', 'b']
        assert status.completedAt is None

    def test_start_validates_type_and_job(self, job_posting_factory):
        orchestrator = make_orchestrator()

        with pytest.raises(InvalidBulkOperation):
            orchestrator.start('reindex-everything', dispatch=False)
        with pytest.raises(InvalidBulkOperation):
            orchestrator.start(BulkJobType.MATCH_JOB, dispatch=False)
        with pytest.raises(JobNotFound):
            orchestrator.start(
                BulkJobType.MATCH_JOB,
                job_id='00000000-0000-0000-0000-000000000000',
                dispatch=False,
            )

    def test_start_dispatches_task(self):
        orchestrator = make_orchestrator()

        with patch('matching.tasks.run_bulk_job.delay') as mock_delay:
            job_id = orchestrator.start(BulkJobType.RERUN_MATCHING)

        mock_delay.assert_called_once_with(job_id)

    def test_unknown_status(self):
        with pytest.raises(BulkJobNotFound):
            make_orchestrator().get_status('missing')

    def test_cancel_before_run(self, candidate, job):
        orchestrator = make_orchestrator(matching_service=MagicMock())
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)

        cancelled = orchestrator.cancel(job_id)
        result = orchestrator.run(job_id)

        assert cancelled.status == BulkJobState.CANCELLED
        assert cancelled.completedAt is not None
        assert result.status == BulkJobState.CANCELLED
        assert result.processed == 0

    def test_cancel_survives_a_racing_progress_write(self):
        orchestrator = make_orchestrator()
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        in_flight = orchestrator.get_status(job_id)

        orchestrator.cancel(job_id)
        # A worker that read the record before the cancel writes its progress
        in_flight.processed = 1
        orchestrator.store.set(in_flight)
        assert orchestrator.get_status(job_id).is_running

        status = orchestrator.run(job_id)

        assert status.status == BulkJobState.CANCELLED
        assert orchestrator.get_status(job_id).status == BulkJobState.CANCELLED

    def test_progress_save_keeps_cancellation(self):
        orchestrator = make_orchestrator()
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        in_flight = orchestrator.get_status(job_id)
        orchestrator.cancel(job_id)

        in_flight.processed = 2
        orchestrator._save(in_flight)

        stored = orchestrator.get_status(job_id)
        assert stored.status == BulkJobState.CANCELLED
        assert stored.processed == 2

    def test_cancel_finished_job_is_noop(self):
        orchestrator = make_orchestrator()
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        orchestrator.run(job_id)

        assert orchestrator.cancel(job_id).status == BulkJobState.COMPLETED

    def test_list_recent_newest_first(self):
        orchestrator = make_orchestrator()
        first = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        status = orchestrator.get_status(first)
        status.startedAt = (timezone.now() - timedelta(minutes=5)).isoformat()
        orchestrator.store.set(status)
        second = orchestrator.start(BulkJobType.REGENERATE_MATRICES, dispatch=False)

        assert [s.id for s in orchestrator.list_recent()] == [second, first]


# ============================================================================
# Runs
# ============================================================================

@pytest.mark.django_db
@pytest.mark.workflow
class TestBulkRuns:

    def test_rerun_matching_end_to_end(self, candidate, job, mock_llm):
        orchestrator = make_orchestrator(matching_service=MatchingService())
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)

        status = orchestrator.run(job_id)

        assert status.status == BulkJobState.COMPLETED
        assert status.total == 1
        assert status.processed == status.succeeded == 1
        assert status.currentCandidate is None
        assert status.completedAt is not None
        assert Match.objects.filter(candidate=candidate, job=job, score=100).exists()

    def test_rerun_skips_drafts_and_jobs_without_matrix(
        self, candidate, job_matrix_factory, job_posting_factory, draft_job_posting_factory
    ):
        job_matrix_factory()
        job_matrix_factory(job=draft_job_posting_factory())
        job_posting_factory()
        service = MagicMock()
        service.match_pair.side_effect = saved_outcome
        orchestrator = make_orchestrator(matching_service=service)

        status = orchestrator.run(
            orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        )

        assert status.total == 1
        assert service.match_pair.call_count == 1

    def test_failures_are_isolated(self, candidate_matrix_factory, job_matrix_factory):
        now = timezone.now()
        candidate_matrix_factory(candidate__name='Ada', candidate__created_at=now - timedelta(hours=3))
        second = candidate_matrix_factory(candidate__name='Grace', candidate__created_at=now - timedelta(hours=2))
        candidate_matrix_factory(candidate__name='Linus', candidate__created_at=now - timedelta(hours=1))
        job_matrix = job_matrix_factory()

        def flaky(candidate, *args):
            if candidate.name == 'Grace':
                raise RuntimeError('database hiccup')
            return saved_outcome()

        service = MagicMock()
        service.match_pair.side_effect = flaky
        orchestrator = make_orchestrator(matching_service=service)

        status = orchestrator.run(
            orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        )

        assert status.status == BulkJobState.COMPLETED
        assert (status.total, status.processed, status.succeeded, status.failed) == (3, 3, 2, 1)
        assert status.errors == [{
            'candidateId': str(second.candidate.id),
            'name': 'Grace',
            'error': 'database hiccup',
            'jobId': str(job_matrix.job.id),
        }]
        processed = [call.args[0].name for call in service.match_pair.call_args_list]
        assert processed == ['Ada', 'Grace', 'Linus']

    def test_explanation_failure_counts_as_failed(self, candidate, job):
        service = MagicMock()
        service.match_pair.return_value = MatchOutcome(
            status=MatchOutcome.SAVED, score=90, explanation_error='timeout'
        )
        orchestrator = make_orchestrator(matching_service=service)

        status = orchestrator.run(
            orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)
        )

        assert status.failed == 1
        assert status.errors[0]['error'] == 'Explanation failed: timeout'

    def test_cancellation_during_run(self, candidate_matrix_factory, job):
        for _ in range(4):
            candidate_matrix_factory()
        orchestrator = make_orchestrator()
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)

        def cancel_after_second(*args):
            if service.match_pair.call_count == 2:
                orchestrator.cancel(job_id)
            return saved_outcome()

        service = MagicMock()
        service.match_pair.side_effect = cancel_after_second
        orchestrator._matching_service = service

        status = orchestrator.run(job_id)

        assert status.status == BulkJobState.CANCELLED
        assert status.processed == 2
        assert status.total == 4
        assert orchestrator.get_status(job_id).status == BulkJobState.CANCELLED

    def test_fatal_error_fails_the_job(self, candidate):
        orchestrator = make_orchestrator(matching_service=MagicMock())
        job_id = orchestrator.start(BulkJobType.RERUN_MATCHING, dispatch=False)

        with patch.object(
            BulkMatchingOrchestrator, '_published_jobs_with_matrix',
            side_effect=RuntimeError('connection lost')
        ):
            status = orchestrator.run(job_id)

        assert status.status == BulkJobState.FAILED
        assert status.completedAt is not None
        assert status.errors[-1]['error'] == 'connection lost'
        assert orchestrator.get_status(job_id).status == BulkJobState.FAILED

    def test_candidate_ids_restrict_the_pool(self, candidate_matrix_factory, job):
        wanted = candidate_matrix_factory().candidate
        candidate_matrix_factory()
        service = MagicMock()
        service.match_pair.side_effect = saved_outcome
        orchestrator = make_orchestrator(matching_service=service)

        status = orchestrator.run(orchestrator.start(
            BulkJobType.RERUN_MATCHING, candidate_ids=[wanted.id], dispatch=False
        ))

        assert status.total == 1
        assert service.match_pair.call_args.args[0] == wanted

    def test_match_job(self, candidate_matrix_factory, job, job_matrix_factory):
        candidate_matrix_factory()
        candidate_matrix_factory()
        job_matrix_factory()  # another job, not matched
        service = MagicMock()
        service.match_pair.side_effect = saved_outcome
        orchestrator = make_orchestrator(matching_service=service)

        status = orchestrator.run(
            orchestrator.start(BulkJobType.MATCH_JOB, job_id=job.id, dispatch=False)
        )

        assert status.total == 2
        assert status.succeeded == 2
        assert {call.args[1] for call in service.match_pair.call_args_list} == {job}

    def test_match_job_without_matrix_is_rejected_at_start(self, candidate, job_posting_factory):
        job = job_posting_factory()
        orchestrator = make_orchestrator(matching_service=MagicMock())

        with pytest.raises(MatrixNotFound):
            orchestrator.start(BulkJobType.MATCH_JOB, job_id=job.id, dispatch=False)
        assert orchestrator.list_recent() == []

    def test_match_job_matrix_removed_after_start_is_skipped(self, candidate, job):
        service = MagicMock()
        orchestrator = make_orchestrator(matching_service=service)
        job_id = orchestrator.start(BulkJobType.MATCH_JOB, job_id=job.id, dispatch=False)
        JobMatrix.objects.filter(job=job).delete()

        status = orchestrator.run(job_id)

        assert status.status == BulkJobState.COMPLETED
        assert (status.total, status.processed, status.failed) == (0, 0, 0)
        assert status.errors == []
        service.match_pair.assert_not_called()

    def test_regenerate_matrices_only_missing(self, cv_file_factory, candidate_matrix_factory):
        fresh = cv_file_factory().candidate
        existing = candidate_matrix_factory().candidate
        cv_file_factory(candidate=existing)
        cv_file_factory(raw_text='')
        extraction = extraction_mock()
        orchestrator = make_orchestrator(extraction_service=extraction)

        status = orchestrator.run(orchestrator.start(
            BulkJobType.REGENERATE_MATRICES, only_missing=True, dispatch=False
        ))

        assert status.total == 1
        assert status.succeeded == 1
        assert CandidateMatrix.objects.filter(candidate=fresh).count() == 1
        assert CandidateMatrix.objects.filter(candidate=existing).count() == 1

    def test_regenerate_matrices_records_extraction_errors(self, cv_file_factory):
        cv_file_factory()
        extraction = extraction_mock()
        extraction.extract_candidate_matrix.side_effect = ExtractionError('model timeout')
        orchestrator = make_orchestrator(extraction_service=extraction)

        status = orchestrator.run(
            orchestrator.start(BulkJobType.REGENERATE_MATRICES, dispatch=False)
        )

        assert status.status == BulkJobState.COMPLETED
        assert status.failed == 1
        assert status.errors[0]['error'] == 'model timeout'

    def test_regenerate_and_match(self, cv_file_factory, job, job_matrix_factory, mock_llm):
        job_matrix_factory(job__title='Platform Engineer')
        cv_file_factory()
        orchestrator = make_orchestrator(
            matching_service=MatchingService(),
            extraction_service=extraction_mock(),
        )

        status = orchestrator.run(
            orchestrator.start(BulkJobType.REGENERATE_AND_MATCH, dispatch=False)
        )

        assert status.status == BulkJobState.COMPLETED
        # One item per candidate, each matched against every published job
        assert (status.total, status.processed, status.succeeded) == (1, 1, 1)
        assert Match.objects.filter(job=job).count() == 1

    def test_regenerate_and_match_counts_candidate_cancelled_mid_item(
        self, cv_file_factory, job, job_matrix_factory
    ):
        job_matrix_factory(job__title='Platform Engineer')
        cv_file_factory()
        cv_file_factory()
        orchestrator = make_orchestrator(extraction_service=extraction_mock())
        job_id = orchestrator.start(BulkJobType.REGENERATE_AND_MATCH, dispatch=False)

        def cancel_on_first_pair(*args):
            orchestrator.cancel(job_id)
            return saved_outcome()

        service = MagicMock()
        service.match_pair.side_effect = cancel_on_first_pair
        orchestrator._matching_service = service

        status = orchestrator.run(job_id)

        assert status.status == BulkJobState.CANCELLED
        assert service.match_pair.call_count == 1
        # The first candidate's matrix was regenerated before the cancel landed
        assert CandidateMatrix.objects.count() == 1
        assert (status.processed, status.succeeded) == (1, 1)
        assert orchestrator.get_status(job_id).processed == 1
