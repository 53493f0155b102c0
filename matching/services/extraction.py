"""
Matrix Extraction Service

Turns raw CV text and job postings into the structured matrices the
matcher works on. The returned dicts use the camelCase keys of the stored
JSON and are persisted with matrices.save_candidate_matrix /
matrices.save_job_matrix.
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ExtractionError
from .llm import LLMClient

logger = logging.getLogger(__name__)


# CVs longer than this are truncated before being sent to the model
MAX_CV_CHARS = 20000


CANDIDATE_MATRIX_PROMPT = """You are a CV parsing expert. Extract ALL structured information from this CV thoroughly.

{cv_text}

Return a JSON object with this exact structure:
{{
  "skills": [{{"name": "JavaScript", "level": "advanced", "yearsOfExperience": 5}}],
  "roles": ["Software Engineer", "Tech Lead"],
  "totalYearsExperience": 8,
  "domains": ["FinTech", "SaaS", "AI/ML", "Web Development"],
  "education": [{{"degree": "BSc Computer Science", "institution": "MIT", "year": 2015}}],
  "languages": [{{"language": "English", "proficiency": "Native"}}],
  "locationSignals": {{
    "currentCountry": "US",
    "willingToRelocate": true,
    "preferredLocations": ["US", "UK"]
  }},
  "evidence": [
    {{"id": "ev-1", "text": "Led team of 5 engineers...", "category": "Leadership", "source": "Work Experience"}}
  ],
  "confidence": 85
}}

Rules:
1. Extract every technical skill mentioned: languages, frameworks, libraries, tools, platforms, databases, cloud services.
2. Include implied skills (e.g. "fine-tuned BERT model" implies "BERT", "NLP", "Deep Learning").
3. Skill levels are one of "beginner", "intermediate", "advanced", "expert".
4. Domains include both technology domains ("Web Development", "DevOps") and industry domains ("FinTech", "Healthcare").
5. If a role contains "Intern", "Internship" or "Trainee", keep that word in the roles array.

Return ONLY valid JSON, no additional text."""


JOB_MATRIX_PROMPT = """Analyze this job posting and extract structured requirements.

Title: {title}
Description: {description}
Must-have skills: {must_have}
Nice-to-have skills: {nice_to_have}

Return a JSON object with this exact structure:
{{
  "requiredSkills": [{{"skill": "JavaScript", "weight": 85}}],
  "preferredSkills": [{{"skill": "TypeScript", "weight": 60}}],
  "experienceWeight": 20,
  "locationWeight": 15,
  "domainWeight": 10,
  "semanticKeywords": ["machine learning", "backend development"]
}}

Rules:
1. "weight" (0-100) is how important each skill is for THIS job: core skills 85-95, secondary 60-80, generic 30-50.
2. Do NOT include soft skills in requiredSkills.
3. Use exact technology names: "React" is not "React Native".
4. experienceWeight + locationWeight + domainWeight must not exceed 60.
5. semanticKeywords: 5-15 phrases describing what the job is really about (technology, domain and methodology themes).

Return ONLY valid JSON, no additional text."""


class MatrixExtractionService:
    """
    LLM-backed extraction of candidate and job matrices.

    Usage:
        service = MatrixExtractionService()
        data = service.extract_candidate_matrix(cv_text)
        save_candidate_matrix(candidate, data, model_version=service.model_version)
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or LLMClient()

    @property
    def model_version(self) -> str:
        return self.client.model

    def extract_candidate_matrix(self, cv_text: str) -> Dict[str, Any]:
        """
        Extract a candidate matrix from CV text.

        Raises:
            ExtractionError: on empty input or LLM failure
        """
        if not cv_text or not cv_text.strip():
            raise ExtractionError('CV text is empty')

        text = cv_text[:MAX_CV_CHARS]
        logger.info(f"Extracting candidate matrix from {len(text)} chars of CV text")
        data = self.client.complete_json(
            CANDIDATE_MATRIX_PROMPT.format(cv_text=text),
            error_class=ExtractionError,
        )
        if not isinstance(data.get('skills', []), list):
            raise ExtractionError('Candidate matrix has malformed skills')
        return data

    def extract_job_matrix(
        self,
        title: str,
        description: str,
        must_have: List[str],
        nice_to_have: List[str]
    ) -> Dict[str, Any]:
        """
        Extract a job matrix from a job posting.

        Raises:
            ExtractionError: on LLM failure
        """
        logger.info(f"Extracting job matrix for '{title}'")
        data = self.client.complete_json(
            JOB_MATRIX_PROMPT.format(
                title=title,
                description=description or '',
                must_have=', '.join(must_have or []),
                nice_to_have=', '.join(nice_to_have or []),
            ),
            error_class=ExtractionError,
        )
        if not isinstance(data.get('requiredSkills', []), list):
            raise ExtractionError('Job matrix has malformed requiredSkills')
        return data


# ============================================================================
# Matrix Regeneration
# ============================================================================

def regenerate_candidate_matrix(candidate, service: Optional[MatrixExtractionService] = None):
    """
    Extract and store a new matrix snapshot from the candidate's latest CV.

    Raises:
        ExtractionError: when the candidate has no CV text or extraction fails
    """
    from recruitment.models import get_latest_cv_text
    from ..matrices import save_candidate_matrix

    cv_text = get_latest_cv_text(candidate)
    if not cv_text:
        raise ExtractionError(f"No CV text available for candidate {candidate.id}")

    service = service or MatrixExtractionService()
    data = service.extract_candidate_matrix(cv_text)
    return save_candidate_matrix(candidate, data, model_version=service.model_version)


def regenerate_job_matrix(job, service: Optional[MatrixExtractionService] = None):
    """
    Extract and store the matrix of a job posting.

    Returns:
        Tuple of (JobMatrix, created)
    """
    from ..matrices import save_job_matrix

    service = service or MatrixExtractionService()
    data = service.extract_job_matrix(
        job.title,
        job.description,
        job.must_have_skills or [],
        job.nice_to_have_skills or [],
    )
    return save_job_matrix(job, data, model_version=service.model_version)
