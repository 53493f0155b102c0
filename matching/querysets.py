"""
Matching QuerySets - database access helpers for matrices and matches.
"""

from django.conf import settings
from django.db import models


def get_min_match_score():
    """Minimum score a match needs to be saved and listed."""
    return getattr(settings, 'MATCHING_MIN_SCORE', 30)


class CandidateMatrixQuerySet(models.QuerySet):
    """QuerySet for candidate matrix snapshots."""

    def latest_first(self):
        return self.order_by('-generated_at', '-id')

    def latest_for(self, candidate):
        """
        Return the most recently generated matrix for a candidate.

        A candidate accumulates one snapshot per extraction run; the newest
        one is the only one the matcher reads.

        Returns:
            CandidateMatrix or None
        """
        return self.filter(candidate=candidate).latest_first().first()


class MatchQuerySet(models.QuerySet):
    """QuerySet for persisted match results."""

    def above_threshold(self, min_score=None):
        """Matches at or above the display threshold."""
        if min_score is None:
            min_score = get_min_match_score()
        return self.filter(score__gte=min_score)

    def for_job(self, job_id):
        return self.filter(job_id=job_id)

    def for_candidate(self, candidate_id):
        return self.filter(candidate_id=candidate_id)

    def best_first(self):
        return self.order_by('-score', '-calculated_at')
