"""
Match Record Repository

Upsert-by-pair persistence of match results and recruiter status changes.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from .exceptions import MatchNotFound
from .models import Match

logger = logging.getLogger(__name__)


class MatchRepository:
    """
    Storage access for Match records.

    Re-scoring a pair never creates a second row: the existing record keeps
    its id and status and only has its scoring fields refreshed.
    """

    @transaction.atomic
    def upsert(
        self,
        candidate_id,
        job_id,
        score: int,
        breakdown: Dict[str, Any],
        explanation: str = '',
        gaps: Optional[List[Dict[str, Any]]] = None,
    ) -> Tuple[Match, bool]:
        """
        Create or refresh the match for a (candidate, job) pair.

        Returns:
            Tuple of (Match, created)
        """
        match, created = Match.objects.update_or_create(
            candidate_id=candidate_id,
            job_id=job_id,
            defaults={
                'score': score,
                'breakdown': breakdown,
                'explanation': explanation or '',
                'gaps': gaps or [],
                'calculated_at': timezone.now(),
            }
        )
        action = 'Created' if created else 'Updated'
        logger.debug(f"{action} match {match.id} ({candidate_id} / {job_id}) score={score}")
        return match, created

    def get(self, match_id) -> Match:
        try:
            return Match.objects.select_related('candidate', 'job').get(id=match_id)
        except (Match.DoesNotExist, ValidationError, ValueError):
            raise MatchNotFound(match_id)

    def _set_status(self, match_id, status: str) -> Match:
        match = self.get(match_id)
        match.status = status
        match.save(update_fields=['status'])
        logger.info(f"Match {match.id} marked {status}")
        return match

    def shortlist(self, match_id) -> Match:
        return self._set_status(match_id, Match.Status.SHORTLISTED)

    def reject(self, match_id) -> Match:
        return self._set_status(match_id, Match.Status.REJECTED)

    def list_for_job(self, job_id):
        """Matches of a job at or above the display threshold, best first."""
        return (
            Match.objects.for_job(job_id)
            .above_threshold()
            .select_related('candidate', 'job')
            .best_first()
        )

    def list_for_candidate(self, candidate_id):
        """Matches of a candidate at or above the display threshold, best first."""
        return (
            Match.objects.for_candidate(candidate_id)
            .above_threshold()
            .select_related('candidate', 'job')
            .best_first()
        )
