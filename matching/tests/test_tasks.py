"""
Tests for matching Celery tasks, executed eagerly.
"""

from unittest.mock import patch

import pytest

from matching.bulk_status import BulkJobState, BulkJobType
from matching.models import JobMatrix, Match
from matching.orchestration import BulkMatchingOrchestrator
from matching.tasks import calculate_single_match, generate_job_matrix, run_bulk_job


@pytest.mark.django_db
class TestMatchingTasks:

    def test_run_bulk_job(self, candidate, job, mock_llm):
        job_id = BulkMatchingOrchestrator().start(BulkJobType.RERUN_MATCHING, dispatch=False)

        result = run_bulk_job.delay(job_id).get()

        assert result['status'] == BulkJobState.COMPLETED
        assert result['succeeded'] == 1

    def test_calculate_single_match(self, candidate, job, mock_llm):
        result = calculate_single_match.delay(str(candidate.id), str(job.id)).get()

        assert result['status'] == 'saved'
        assert result['score'] == 100
        assert Match.objects.filter(id=result['match_id']).exists()

    def test_calculate_single_match_skips_missing(self, job):
        result = calculate_single_match.delay(
            '00000000-0000-0000-0000-000000000000', str(job.id)
        ).get()

        assert result['status'] == 'skipped'

    def test_generate_job_matrix_and_match(self, candidate, job_posting_factory, mock_llm):
        job = job_posting_factory()
        mock_llm.return_value = {
            'requiredSkills': [{'skill': 'Python', 'weight': 90}],
            'preferredSkills': [],
            'experienceWeight': 20,
            'locationWeight': 15,
            'domainWeight': 10,
        }

        with patch('matching.services.matching.MatchingService.match_pair') as mock_match:
            result = generate_job_matrix.delay(str(job.id), match_after=True).get()

        assert result['status'] == 'created'
        assert JobMatrix.objects.get(job=job).required_skills == [{'skill': 'Python', 'weight': 90}]
        assert 'bulk_job_id' in result
        mock_match.assert_called_once()

    def test_generate_job_matrix_missing_job(self):
        result = generate_job_matrix.delay('00000000-0000-0000-0000-000000000000').get()

        assert result == {'status': 'skipped'}
