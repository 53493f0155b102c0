"""
Eligibility Filter

Coarse pass/fail gate applied to a candidate/job pair before scoring.
Rejects pairs that are structurally incompatible (too little experience,
seniority mismatch, interns against senior roles) so the scorer and the
explanation service are never spent on them.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .matrices import CandidateProfile, JobProfile

logger = logging.getLogger(__name__)


INTERN_KEYWORDS = ('intern', 'internship', 'trainee', 'apprentice')

# Fraction of the job minimum a candidate must reach to be considered
EXPERIENCE_TOLERANCE = 0.8

# Overqualification ceilings by seniority level (years)
SENIORITY_MAX_YEARS = {
    'junior': 3,
    'mid': 8,
    'senior': 15,
}

SENIOR_LEVELS = ('lead', 'principal')


def is_intern(headline: Optional[str], roles: Iterable[str] = ()) -> bool:
    """Case-insensitive keyword check of headline and role titles."""
    texts = [headline or '']
    texts.extend(role or '' for role in roles)
    for text in texts:
        lowered = text.lower()
        if any(keyword in lowered for keyword in INTERN_KEYWORDS):
            return True
    return False


@dataclass
class EligibilityDecision:
    eligible: bool
    reason: str = ''

    def __bool__(self):
        return self.eligible


class EligibilityFilter:
    """
    Pure predicate over a candidate profile and a job profile.

    Usage:
        if EligibilityFilter().should_consider(candidate_profile, job_profile):
            ...
    """

    def should_consider(self, candidate: CandidateProfile, job: JobProfile) -> bool:
        decision = self.evaluate(candidate, job)
        if not decision.eligible:
            logger.debug(
                f"Rejected {candidate.name or 'candidate'} for "
                f"'{job.title}': {decision.reason}"
            )
        return decision.eligible

    def evaluate(self, candidate: CandidateProfile, job: JobProfile) -> EligibilityDecision:
        """Apply the rules in order and return the first rejection, if any."""
        years = candidate.total_years_experience
        intern = is_intern(candidate.headline, candidate.roles)
        level = (job.seniority_level or '').lower()

        if level == 'internship':
            if intern and years > 2:
                return EligibilityDecision(False, f'intern with {years:g} years for internship')
            if not intern and years > 1:
                return EligibilityDecision(False, f'{years:g} years is too senior for internship')
            return EligibilityDecision(True)

        minimum = job.min_years_experience
        if minimum > 0 and years < minimum * EXPERIENCE_TOLERANCE:
            return EligibilityDecision(
                False, f'{years:g} years below required {minimum:g}'
            )

        if level in SENIOR_LEVELS:
            if intern:
                return EligibilityDecision(False, f'intern candidate for {level} role')
            if years < 1:
                return EligibilityDecision(False, f'under 1 year for {level} role')

        ceiling = SENIORITY_MAX_YEARS.get(level)
        if ceiling is not None and years > ceiling:
            return EligibilityDecision(
                False, f'{years:g} years overqualified for {level} role'
            )

        return EligibilityDecision(True)
