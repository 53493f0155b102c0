"""
Match Explanation Service

Generates a short natural-language explanation and a list of gaps for an
already-scored candidate/job pair.

The explanation never feeds back into the score; semantic equivalences the
deterministic scorer ignores (e.g. "GenAI" and "LLM") are only surfaced
here, in prose.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..exceptions import ExplanationError
from ..matrices import CandidateProfile, JobProfile
from .llm import LLMClient

logger = logging.getLogger(__name__)


GAP_SEVERITIES = ('minor', 'moderate', 'major')
DEFAULT_GAP_SEVERITY = 'moderate'


@dataclass
class MatchExplanation:
    """Explanation of a candidate-job match."""
    explanation: str
    gaps: List[Dict[str, str]] = field(default_factory=list)


def candidate_summary(profile: CandidateProfile) -> Dict[str, Any]:
    """Candidate facts sent to the explanation prompt."""
    return {
        'skills': [
            {
                'name': skill.name,
                'level': skill.level,
                'yearsOfExperience': skill.years_of_experience,
            }
            for skill in profile.skills
        ],
        'totalYearsExperience': profile.total_years_experience,
        'roles': profile.roles,
        'domains': profile.domains,
        'locationSignals': {
            'currentCountry': profile.location.current_country or profile.country,
            'willingToRelocate': profile.location.willing_to_relocate,
            'preferredLocations': profile.location.preferred_locations,
        },
    }


def job_summary(profile: JobProfile) -> Dict[str, Any]:
    """Job requirements sent to the explanation prompt."""
    return {
        'requiredSkills': [
            {'skill': s.skill, 'weight': s.weight} for s in profile.required_skills
        ],
        'preferredSkills': [
            {'skill': s.skill, 'weight': s.weight} for s in profile.preferred_skills
        ],
        'minYearsExperience': profile.min_years_experience,
        'seniorityLevel': profile.seniority_level,
    }


def normalize_gaps(raw_gaps) -> List[Dict[str, str]]:
    """Coerce model-provided gaps to {type, description, severity}."""
    gaps = []
    if not isinstance(raw_gaps, list):
        return gaps

    for gap in raw_gaps:
        if isinstance(gap, str):
            gap = {'description': gap}
        if not isinstance(gap, dict):
            continue
        description = str(gap.get('description') or '').strip()
        if not description:
            continue
        severity = str(gap.get('severity') or '').strip().lower()
        if severity not in GAP_SEVERITIES:
            severity = DEFAULT_GAP_SEVERITY
        gaps.append({
            'type': str(gap.get('type') or 'other').strip().lower(),
            'description': description,
            'severity': severity,
        })
    return gaps


class MatchExplanationService:
    """
    Service for generating LLM-written match explanations.

    Usage:
        service = MatchExplanationService()
        result = service.explain(candidate_summary(c), job_summary(j), 82)
        print(result.explanation)
        print("Gaps:", result.gaps)
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or LLMClient()

    def explain(
        self,
        candidate: Dict[str, Any],
        job: Dict[str, Any],
        score: int
    ) -> MatchExplanation:
        """
        Explain a match score.

        Raises:
            ExplanationError: on transport, timeout or malformed reply
        """
        data = self.client.complete_json(
            self._build_prompt(candidate, job, score),
            error_class=ExplanationError,
        )

        explanation = str(data.get('explanation') or '').strip()
        if not explanation:
            raise ExplanationError('Explanation missing from LLM reply')

        return MatchExplanation(
            explanation=explanation,
            gaps=normalize_gaps(data.get('gaps')),
        )

    def _build_prompt(self, candidate: Dict[str, Any], job: Dict[str, Any], score: int) -> str:
        return f"""Candidate Profile:
Skills: {json.dumps(candidate.get('skills', []))}
Experience: {candidate.get('totalYearsExperience', 0)} years
Roles: {json.dumps(candidate.get('roles', []))}
Domains: {json.dumps(candidate.get('domains', []))}
Location: {json.dumps(candidate.get('locationSignals', {}))}

Job Requirements:
Required Skills: {json.dumps(job.get('requiredSkills', []))}
Preferred Skills: {json.dumps(job.get('preferredSkills', []))}
Min Experience: {job.get('minYearsExperience', 0)} years
Seniority Level: {job.get('seniorityLevel') or 'not specified'}

Match Score: {score}

Generate a natural language explanation (2-3 sentences) of why this candidate matches (or doesn't match) this job. Also identify any gaps (missing skills, insufficient experience, etc.).

Return a JSON object:
{{
  "explanation": "The candidate demonstrates...",
  "gaps": [
    {{"type": "skill", "description": "Missing experience with X", "severity": "minor"}}
  ]
}}

Severity must be one of: minor, moderate, major.
Return ONLY valid JSON, no additional text."""
