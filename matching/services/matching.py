"""
Matching Service

Single-pair matching pipeline:

    load -> eligibility filter -> score -> threshold -> explain -> upsert

Explanation failures never block persistence: the match is saved with its
score and breakdown, an empty explanation and no gaps, and the failure is
reported back on the outcome.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError

from recruitment.models import Candidate, JobPosting

from ..eligibility import EligibilityFilter
from ..exceptions import CandidateNotFound, ExplanationError, JobNotFound, MatrixNotFound
from ..matrices import CandidateProfile, JobProfile
from ..models import CandidateMatrix, JobMatrix, Match
from ..querysets import get_min_match_score
from ..repository import MatchRepository
from ..scoring import MatchScorer
from .explanations import MatchExplanationService, candidate_summary, job_summary

logger = logging.getLogger(__name__)


@dataclass
class MatchOutcome:
    """Result of running the pipeline on one candidate/job pair."""

    SAVED = 'saved'
    INELIGIBLE = 'ineligible'
    BELOW_THRESHOLD = 'below_threshold'

    status: str
    score: Optional[int] = None
    breakdown: Dict[str, Any] = field(default_factory=dict)
    match: Optional[Match] = None
    explanation_error: Optional[str] = None

    @property
    def saved(self) -> bool:
        return self.status == self.SAVED


class MatchingService:
    """
    Orchestrates filter, scorer, explainer and repository for one pair.

    Usage:
        outcome = MatchingService().calculate_match(candidate_id, job_id)
        if outcome.saved:
            print(outcome.match.score)
    """

    def __init__(
        self,
        eligibility: Optional[EligibilityFilter] = None,
        scorer: Optional[MatchScorer] = None,
        explainer: Optional[MatchExplanationService] = None,
        repository: Optional[MatchRepository] = None,
        min_score: Optional[int] = None,
    ):
        self.eligibility = eligibility or EligibilityFilter()
        self.scorer = scorer or MatchScorer()
        self._explainer = explainer
        self.repository = repository or MatchRepository()
        self.min_score = min_score if min_score is not None else get_min_match_score()

    @property
    def explainer(self) -> MatchExplanationService:
        """Lazy-load the explanation service."""
        if self._explainer is None:
            self._explainer = MatchExplanationService()
        return self._explainer

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_candidate(self, candidate_id) -> Candidate:
        try:
            return Candidate.objects.get(id=candidate_id)
        except (Candidate.DoesNotExist, ValidationError, ValueError):
            raise CandidateNotFound(candidate_id)

    def load_job(self, job_id) -> JobPosting:
        try:
            return JobPosting.objects.get(id=job_id)
        except (JobPosting.DoesNotExist, ValidationError, ValueError):
            raise JobNotFound(job_id)

    def load_candidate_matrix(self, candidate) -> CandidateMatrix:
        matrix = CandidateMatrix.objects.latest_for(candidate)
        if matrix is None:
            raise MatrixNotFound(detail=f"Candidate {candidate.id} has no matrix.")
        return matrix

    def load_job_matrix(self, job) -> JobMatrix:
        try:
            return JobMatrix.objects.get(job=job)
        except JobMatrix.DoesNotExist:
            raise MatrixNotFound(detail=f"Job {job.id} has no matrix.")

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def calculate_match(self, candidate_id, job_id) -> MatchOutcome:
        """
        Compute and persist the match for one pair.

        Raises:
            CandidateNotFound, JobNotFound, MatrixNotFound
        """
        candidate = self.load_candidate(candidate_id)
        job = self.load_job(job_id)
        candidate_matrix = self.load_candidate_matrix(candidate)
        job_matrix = self.load_job_matrix(job)
        return self.match_pair(candidate, job, candidate_matrix, job_matrix)

    def match_pair(self, candidate, job, candidate_matrix, job_matrix) -> MatchOutcome:
        """Run the pipeline on already-loaded records."""
        candidate_profile = CandidateProfile.build(candidate_matrix, candidate)
        job_profile = JobProfile.build(job_matrix, job)

        if not self.eligibility.should_consider(candidate_profile, job_profile):
            return MatchOutcome(status=MatchOutcome.INELIGIBLE)

        result = self.scorer.score(candidate_profile, job_profile)
        if result.score < self.min_score:
            logger.debug(
                f"Score {result.score} below threshold {self.min_score} "
                f"for {candidate.id} / {job.id}"
            )
            return MatchOutcome(
                status=MatchOutcome.BELOW_THRESHOLD,
                score=result.score,
                breakdown=result.breakdown,
            )

        explanation, gaps, explanation_error = '', [], None
        try:
            explained = self.explainer.explain(
                candidate_summary(candidate_profile),
                job_summary(job_profile),
                result.score,
            )
            explanation, gaps = explained.explanation, explained.gaps
        except ExplanationError as e:
            explanation_error = str(e)
            logger.warning(
                f"Explanation failed for {candidate.id} / {job.id}, "
                f"saving score only: {e}"
            )

        match, created = self.repository.upsert(
            candidate_id=candidate.id,
            job_id=job.id,
            score=result.score,
            breakdown=result.breakdown,
            explanation=explanation,
            gaps=gaps,
        )
        logger.info(
            f"{'Created' if created else 'Updated'} match {match.id}: "
            f"{candidate.name} / {job.title} = {result.score}"
        )

        return MatchOutcome(
            status=MatchOutcome.SAVED,
            score=result.score,
            breakdown=result.breakdown,
            match=match,
            explanation_error=explanation_error,
        )
