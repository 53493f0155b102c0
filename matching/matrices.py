"""
Matrix Store

Typed views over the JSON matrices stored on CandidateMatrix / JobMatrix and
the helpers that persist freshly extracted matrices.

The scorer and eligibility filter only ever see these views, so malformed or
partial matrix data (missing lists, missing numbers, wrong types) is coerced
to safe defaults here instead of raising deeper in the pipeline.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


# Minimum share of the overall score always kept for skills
MIN_SKILLS_WEIGHT = 40

DEFAULT_EXPERIENCE_WEIGHT = 20
DEFAULT_LOCATION_WEIGHT = 15
DEFAULT_DOMAIN_WEIGHT = 10


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _as_number(value, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return number


def _as_text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


SKILL_LEVELS = ('beginner', 'intermediate', 'advanced', 'expert')
DEFAULT_SKILL_LEVEL = 'intermediate'


def normalize_level(value) -> str:
    level = _as_text(value).lower()
    return level if level in SKILL_LEVELS else DEFAULT_SKILL_LEVEL


# ============================================================================
# Value Objects
# ============================================================================

@dataclass
class CandidateSkill:
    name: str
    level: str = DEFAULT_SKILL_LEVEL
    years_of_experience: float = 0.0


@dataclass
class RequiredSkill:
    """A job skill with its importance weight (0-100)."""
    skill: str
    weight: float = 0.0


@dataclass
class LocationSignals:
    current_country: str = ''
    willing_to_relocate: bool = False
    preferred_locations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LocationSignals':
        if not isinstance(data, dict):
            return cls()
        preferred = [
            _as_text(loc) for loc in _as_list(data.get('preferredLocations'))
            if _as_text(loc)
        ]
        return cls(
            current_country=_as_text(data.get('currentCountry')),
            willing_to_relocate=bool(data.get('willingToRelocate', False)),
            preferred_locations=preferred,
        )


@dataclass
class DimensionWeights:
    """
    Explicit weights for the four scoring dimensions.

    The four weights always sum to 100. Skills take whatever the other three
    leave, and never less than MIN_SKILLS_WEIGHT; when the stored experience,
    location and domain weights ask for more than that allows they are scaled
    down proportionally.
    """
    skills: float
    experience: float
    location: float
    domain: float

    @classmethod
    def from_stored(cls, experience, location, domain) -> 'DimensionWeights':
        experience = max(0.0, _as_number(experience, DEFAULT_EXPERIENCE_WEIGHT))
        location = max(0.0, _as_number(location, DEFAULT_LOCATION_WEIGHT))
        domain = max(0.0, _as_number(domain, DEFAULT_DOMAIN_WEIGHT))

        budget = 100 - MIN_SKILLS_WEIGHT
        others = experience + location + domain
        if others > budget:
            factor = budget / others
            experience *= factor
            location *= factor
            domain *= factor
            others = budget

        return cls(
            skills=100 - others,
            experience=experience,
            location=location,
            domain=domain,
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            'skills': round(self.skills, 2),
            'experience': round(self.experience, 2),
            'location': round(self.location, 2),
            'domain': round(self.domain, 2),
        }


@dataclass
class CandidateProfile:
    """
    Everything the matcher knows about a candidate: the latest matrix plus
    the candidate record fields the filter and scorer consult.
    """
    skills: List[CandidateSkill] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    total_years_experience: float = 0.0
    domains: List[str] = field(default_factory=list)
    location: LocationSignals = field(default_factory=LocationSignals)
    country: str = ''
    headline: str = ''
    name: str = ''

    @classmethod
    def build(cls, matrix, candidate=None) -> 'CandidateProfile':
        """Build a profile from a CandidateMatrix and its Candidate."""
        skills = []
        for entry in _as_list(getattr(matrix, 'skills', None)):
            if isinstance(entry, str):
                entry = {'name': entry}
            if not isinstance(entry, dict) or not _as_text(entry.get('name')):
                continue
            skills.append(CandidateSkill(
                name=_as_text(entry.get('name')),
                level=normalize_level(entry.get('level')),
                years_of_experience=max(0.0, _as_number(entry.get('yearsOfExperience'))),
            ))

        domains = []
        for entry in _as_list(getattr(matrix, 'domains', None)):
            if isinstance(entry, dict):
                entry = entry.get('name') or entry.get('domain')
            if _as_text(entry):
                domains.append(_as_text(entry))

        location = LocationSignals.from_dict(getattr(matrix, 'location_signals', None))
        country = _as_text(getattr(candidate, 'country', None)) or location.current_country

        return cls(
            skills=skills,
            roles=[_as_text(r) for r in _as_list(getattr(matrix, 'roles', None)) if _as_text(r)],
            total_years_experience=max(
                0.0, _as_number(getattr(matrix, 'total_years_experience', 0))
            ),
            domains=domains,
            location=location,
            country=country,
            headline=_as_text(getattr(candidate, 'headline', None)),
            name=_as_text(getattr(candidate, 'name', None)),
        )


@dataclass
class JobProfile:
    """The job matrix plus the job posting fields used in matching."""
    required_skills: List[RequiredSkill] = field(default_factory=list)
    preferred_skills: List[RequiredSkill] = field(default_factory=list)
    semantic_keywords: List[str] = field(default_factory=list)
    weights: DimensionWeights = field(
        default_factory=lambda: DimensionWeights.from_stored(
            DEFAULT_EXPERIENCE_WEIGHT, DEFAULT_LOCATION_WEIGHT, DEFAULT_DOMAIN_WEIGHT
        )
    )
    title: str = ''
    department: str = ''
    description: str = ''
    country: str = ''
    location_type: str = 'onsite'
    min_years_experience: float = 0.0
    seniority_level: str = 'mid'

    @staticmethod
    def _parse_skills(entries) -> List[RequiredSkill]:
        skills = []
        for entry in _as_list(entries):
            if isinstance(entry, str):
                entry = {'skill': entry, 'weight': 50}
            if not isinstance(entry, dict):
                continue
            name = _as_text(entry.get('skill') or entry.get('name'))
            if not name:
                continue
            weight = min(100.0, max(0.0, _as_number(entry.get('weight'))))
            skills.append(RequiredSkill(skill=name, weight=weight))
        return skills

    @classmethod
    def build(cls, matrix, job=None) -> 'JobProfile':
        """Build a profile from a JobMatrix and its JobPosting."""
        return cls(
            required_skills=cls._parse_skills(getattr(matrix, 'required_skills', None)),
            preferred_skills=cls._parse_skills(getattr(matrix, 'preferred_skills', None)),
            semantic_keywords=[
                _as_text(k) for k in _as_list(getattr(matrix, 'semantic_keywords', None))
                if _as_text(k)
            ],
            weights=DimensionWeights.from_stored(
                getattr(matrix, 'experience_weight', DEFAULT_EXPERIENCE_WEIGHT),
                getattr(matrix, 'location_weight', DEFAULT_LOCATION_WEIGHT),
                getattr(matrix, 'domain_weight', DEFAULT_DOMAIN_WEIGHT),
            ),
            title=_as_text(getattr(job, 'title', None)),
            department=_as_text(getattr(job, 'department', None)),
            description=_as_text(getattr(job, 'description', None)),
            country=_as_text(getattr(job, 'country', None)),
            location_type=_as_text(getattr(job, 'location_type', None)) or 'onsite',
            min_years_experience=max(
                0.0, _as_number(getattr(job, 'min_years_experience', 0))
            ),
            seniority_level=_as_text(getattr(job, 'seniority_level', None)) or 'mid',
        )


# ============================================================================
# Persistence
# ============================================================================

def save_candidate_matrix(candidate, data: Dict[str, Any], model_version: str = ''):
    """
    Store a freshly extracted candidate matrix as a new snapshot.

    Args:
        candidate: Candidate instance
        data: Extraction payload (camelCase keys as returned by the LLM)
        model_version: Name of the model that produced the payload

    Returns:
        The created CandidateMatrix
    """
    from .models import CandidateMatrix

    matrix = CandidateMatrix.objects.create(
        candidate=candidate,
        skills=_as_list(data.get('skills')),
        roles=_as_list(data.get('roles')),
        total_years_experience=max(0.0, _as_number(data.get('totalYearsExperience'))),
        domains=_as_list(data.get('domains')),
        education=_as_list(data.get('education')),
        languages=_as_list(data.get('languages')),
        location_signals=data.get('locationSignals') if isinstance(data.get('locationSignals'), dict) else {},
        evidence=_as_list(data.get('evidence')),
        confidence=int(min(100, max(0, _as_number(data.get('confidence'))))),
        model_version=model_version,
        generated_at=timezone.now(),
    )
    logger.info(f"Saved candidate matrix {matrix.id} for candidate {candidate.id}")
    return matrix


def _stored_weight(value, default: int) -> int:
    return int(round(min(100.0, max(0.0, _as_number(value, default)))))


@transaction.atomic
def save_job_matrix(job, data: Dict[str, Any], model_version: str = ''):
    """
    Create or replace the matrix of a job posting.

    Returns:
        Tuple of (JobMatrix, created)
    """
    from .models import JobMatrix

    matrix, created = JobMatrix.objects.update_or_create(
        job=job,
        defaults={
            'required_skills': _as_list(data.get('requiredSkills')),
            'preferred_skills': _as_list(data.get('preferredSkills')),
            'experience_weight': _stored_weight(
                data.get('experienceWeight'), DEFAULT_EXPERIENCE_WEIGHT
            ),
            'location_weight': _stored_weight(
                data.get('locationWeight'), DEFAULT_LOCATION_WEIGHT
            ),
            'domain_weight': _stored_weight(
                data.get('domainWeight'), DEFAULT_DOMAIN_WEIGHT
            ),
            'semantic_keywords': _as_list(data.get('semanticKeywords')),
            'model_version': model_version,
            'generated_at': timezone.now(),
        }
    )
    action = 'Created' if created else 'Replaced'
    logger.info(f"{action} job matrix for job {job.id}")
    return matrix, created
