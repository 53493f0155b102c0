"""
Match Scorer

Deterministic scoring of a candidate/job pair across four dimensions:
- Skills: weighted coverage of required and preferred skills
- Experience: candidate years against the job minimum
- Domain: overlap between candidate domains/roles and job domain signals
- Location: remote, country and relocation compatibility

Every matcher returns a sub-score in [0, 100]. MatchScorer combines them with
the job's DimensionWeights into an integer overall score.
"""

import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from .matrices import CandidateProfile, DimensionWeights, JobProfile, RequiredSkill

logger = logging.getLogger(__name__)


def clamp_score(value: float) -> float:
    return min(100.0, max(0.0, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_skill(name: str) -> str:
    return ' '.join((name or '').split()).lower()


# ============================================================================
# Base Classes
# ============================================================================

@dataclass
class ScoreResult:
    """Result of scoring one candidate/job pair."""
    score: int
    breakdown: Dict[str, int]
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    weights: Dict[str, float] = field(default_factory=dict)


class BaseMatcher(ABC):
    """Base class for all dimension matchers."""

    # Key of the dimension in the breakdown and in DimensionWeights
    dimension: str = ''

    @abstractmethod
    def score(self, candidate: CandidateProfile, job: JobProfile) -> float:
        """
        Calculate the sub-score of this dimension.

        Returns:
            Float score between 0 and 100
        """

    def get_weight(self, weights: DimensionWeights) -> float:
        return getattr(weights, self.dimension)


# ============================================================================
# Skill Matcher
# ============================================================================

SOFT_SKILLS = {
    'communication', 'teamwork', 'team work', 'problem solving', 'leadership',
    'time management', 'critical thinking', 'adaptability', 'creativity',
    'collaboration', 'interpersonal', 'interpersonal skills', 'presentation',
    'presentation skills', 'public speaking', 'negotiation',
    'conflict resolution', 'decision making', 'emotional intelligence',
    'work ethic', 'self motivated', 'attention to detail', 'multitasking',
    'organization', 'organizational', 'flexibility', 'reliability',
    'analytical skills', 'analytical thinking', 'strategic thinking',
    'project management',
}


def is_soft_skill(name: str) -> bool:
    normalized = normalize_skill(name)
    if normalized in SOFT_SKILLS:
        return True
    # "Problem-Solving", "problem_solving", "ProblemSolving"
    compact = normalized.replace('-', '').replace('_', '').replace(' ', '')
    return any(compact == soft.replace(' ', '') for soft in SOFT_SKILLS)


class SkillMatcher(BaseMatcher):
    """
    Weighted coverage of the job's skills by the candidate's skills.

    Matching is exact on the normalised name; synonyms and semantic
    equivalence are left to the explanation layer. Soft skills are dropped
    on both sides.
    """

    dimension = 'skills'

    REQUIRED_SHARE = 0.8
    PREFERRED_SHARE = 0.2
    NEUTRAL_REQUIRED = 50.0

    def score(self, candidate: CandidateProfile, job: JobProfile) -> float:
        return self.get_match_details(candidate, job)['score']

    def _candidate_skill_set(self, candidate: CandidateProfile) -> Set[str]:
        return {
            normalize_skill(skill.name) for skill in candidate.skills
            if not is_soft_skill(skill.name)
        }

    @staticmethod
    def _technical(skills: List[RequiredSkill]) -> List[RequiredSkill]:
        return [s for s in skills if not is_soft_skill(s.skill)]

    @staticmethod
    def _coverage(
        skills: List[RequiredSkill],
        candidate_skills: Set[str]
    ) -> Tuple[float, List[str], List[str]]:
        """Return (coverage ratio 0-1, matched names, missing names)."""
        matched, missing = [], []
        use_weights = any(s.weight > 0 for s in skills)
        total = 0.0
        covered = 0.0

        for skill in skills:
            weight = skill.weight if use_weights else 1.0
            total += weight
            if normalize_skill(skill.skill) in candidate_skills:
                covered += weight
                matched.append(skill.skill)
            else:
                missing.append(skill.skill)

        ratio = covered / total if total > 0 else 0.0
        return ratio, matched, missing

    def get_match_details(self, candidate: CandidateProfile, job: JobProfile) -> Dict:
        """Get the skills sub-score together with matched and missing skills."""
        required = self._technical(job.required_skills)
        preferred = self._technical(job.preferred_skills)

        if not candidate.skills:
            return {
                'score': 0.0,
                'matched_skills': [],
                'missing_skills': [s.skill for s in required],
            }

        candidate_skills = self._candidate_skill_set(candidate)

        if required:
            required_ratio, matched, missing = self._coverage(required, candidate_skills)
            required_score = 100.0 * required_ratio
        else:
            required_score, matched, missing = self.NEUTRAL_REQUIRED, [], []

        if preferred:
            preferred_ratio, preferred_matched, _ = self._coverage(preferred, candidate_skills)
            score = (
                self.REQUIRED_SHARE * required_score
                + self.PREFERRED_SHARE * 100.0 * preferred_ratio
            )
            matched = matched + preferred_matched
        else:
            score = required_score

        return {
            'score': clamp_score(score),
            'matched_skills': matched,
            'missing_skills': missing,
        }


# ============================================================================
# Experience Matcher
# ============================================================================

class ExperienceMatcher(BaseMatcher):
    """
    Candidate years against the job minimum.

    Meeting the minimum scores full marks; a shortfall scales down
    linearly. Excess experience is not penalised here.
    """

    dimension = 'experience'

    def score(self, candidate: CandidateProfile, job: JobProfile) -> float:
        minimum = job.min_years_experience
        if minimum <= 0:
            return 100.0
        years = candidate.total_years_experience
        if years >= minimum:
            return 100.0
        return clamp_score(100.0 * years / minimum)


# ============================================================================
# Domain Matcher
# ============================================================================

DOMAIN_PATTERNS: Dict[str, List[str]] = {
    'mobile': ['mobile', 'ios', 'android', 'react native', 'flutter', 'swift',
               'kotlin', 'app development'],
    'web': ['web', 'frontend', 'front-end', 'front end', 'fullstack',
            'full-stack', 'full stack', 'webapp', 'web app'],
    'backend': ['backend', 'back-end', 'back end', 'server-side', 'server side',
                'api', 'microservices'],
    'devops': ['devops', 'infrastructure', 'cloud', 'aws', 'azure', 'gcp', 'sre',
               'site reliability'],
    'data': ['data', 'analytics', 'data science', 'data engineer', 'big data',
             'etl', 'data pipeline'],
    'ml': ['machine learning', 'deep learning', 'artificial intelligence', 'ai',
           'nlp', 'computer vision'],
    'security': ['security', 'cybersecurity', 'infosec', 'penetration testing'],
    'fintech': ['fintech', 'financial', 'banking', 'payment', 'trading', 'finance'],
    'healthcare': ['healthcare', 'health tech', 'medical', 'pharma', 'clinical'],
    'ecommerce': ['ecommerce', 'e-commerce', 'retail', 'marketplace', 'shopping'],
    'saas': ['saas', 'software as a service', 'cloud software', 'platform'],
    'gaming': ['gaming', 'game dev', 'game development', 'unity', 'unreal'],
    'embedded': ['embedded', 'iot', 'firmware', 'hardware', 'microcontroller'],
    'blockchain': ['blockchain', 'web3', 'crypto', 'defi', 'smart contract'],
}

# Only the head of long descriptions is scanned for domain patterns
DESCRIPTION_SCAN_LIMIT = 2000

# Patterns must start on a word boundary so short ones like "ai" do not
# fire inside words such as "maintain"
DOMAIN_REGEXES: Dict[str, List[re.Pattern]] = {
    domain: [re.compile(r"\b" + re.escape(pattern)) for pattern in patterns]
    for domain, patterns in DOMAIN_PATTERNS.items()
}


def infer_job_domains(title: str, department: str, description: str) -> List[str]:
    """Infer domain categories from free job text with DOMAIN_PATTERNS."""
    text = ' '.join([
        title or '',
        department or '',
        (description or '')[:DESCRIPTION_SCAN_LIMIT],
    ]).lower()
    return [
        domain for domain, regexes in DOMAIN_REGEXES.items()
        if any(regex.search(text) for regex in regexes)
    ]


class DomainMatcher(BaseMatcher):
    """Share of the job's domain signals covered by the candidate."""

    dimension = 'domain'

    NEUTRAL = 50.0
    NO_CANDIDATE_DATA = 40.0
    FLOOR = 30.0

    def get_job_signals(self, job: JobProfile) -> List[str]:
        signals = []
        for keyword in job.semantic_keywords:
            keyword = normalize_skill(keyword)
            if keyword and keyword not in signals:
                signals.append(keyword)
        for domain in infer_job_domains(job.title, job.department, job.description):
            if domain not in signals:
                signals.append(domain)
        return signals

    def score(self, candidate: CandidateProfile, job: JobProfile) -> float:
        signals = self.get_job_signals(job)
        if not signals:
            return self.NEUTRAL

        candidate_terms = {
            normalize_skill(term) for term in candidate.domains + candidate.roles
            if normalize_skill(term)
        }
        if not candidate_terms:
            return self.NO_CANDIDATE_DATA

        candidate_text = ' '.join(sorted(candidate_terms))
        covered = sum(
            1 for signal in signals
            if signal in candidate_terms or signal in candidate_text
        )
        ratio = covered / len(signals)
        return clamp_score(max(self.FLOOR, float(round_half_up(100 * ratio))))


# ============================================================================
# Location Matcher
# ============================================================================

class LocationMatcher(BaseMatcher):
    """Remote, country and relocation compatibility."""

    dimension = 'location'

    def score(self, candidate: CandidateProfile, job: JobProfile) -> float:
        if job.location_type == 'remote':
            return 100.0

        signals = candidate.location
        candidate_country = candidate.country.lower()
        job_country = job.country.lower()

        if not candidate_country or not job_country:
            return 80.0 if signals.willing_to_relocate else 50.0

        if candidate_country == job_country:
            return 100.0

        if signals.willing_to_relocate:
            preferred = {loc.lower() for loc in signals.preferred_locations}
            if job_country in preferred:
                return 90.0
            return 70.0

        if job.location_type == 'hybrid':
            return 40.0
        return 20.0


# ============================================================================
# Composite Scorer
# ============================================================================

class MatchScorer:
    """
    Combines the four dimension matchers into the overall match score.

    Usage:
        result = MatchScorer().score(candidate_profile, job_profile)
        result.score      # 0-100
        result.breakdown  # {'skills', 'experience', 'domain', 'location'}
    """

    def __init__(self, matchers: List[BaseMatcher] = None):
        self.matchers = matchers or [
            SkillMatcher(),
            ExperienceMatcher(),
            DomainMatcher(),
            LocationMatcher(),
        ]

    def score(self, candidate: CandidateProfile, job: JobProfile) -> ScoreResult:
        weights = job.weights
        breakdown = {}
        weighted_sum = 0.0

        for matcher in self.matchers:
            sub_score = clamp_score(matcher.score(candidate, job))
            breakdown[matcher.dimension] = round_half_up(sub_score)
            weighted_sum += sub_score * matcher.get_weight(weights)

        overall = int(clamp_score(round_half_up(weighted_sum / 100.0)))

        skill_details = {}
        for matcher in self.matchers:
            if isinstance(matcher, SkillMatcher):
                skill_details = matcher.get_match_details(candidate, job)
                break

        return ScoreResult(
            score=overall,
            breakdown=breakdown,
            matched_skills=skill_details.get('matched_skills', []),
            missing_skills=skill_details.get('missing_skills', []),
            weights=weights.as_dict(),
        )
