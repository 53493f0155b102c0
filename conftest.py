"""
TalentMatch Test Configuration - pytest fixtures and factories

This module provides:
- pytest-django configuration (settings module set in pyproject.toml)
- factory_boy factories for recruitment and matching models
- Shared fixtures for API clients and LLM mocking

RUNNING TESTS:
# Run all tests
pytest -v

# Run by module
pytest matching/tests/test_scoring.py -v

# Run by marker
pytest -m integration -v
pytest -m workflow -v
"""

import uuid
from unittest.mock import MagicMock, patch

import factory
import pytest
from django.core.cache import cache
from django.utils import timezone
from factory.django import DjangoModelFactory


# ============================================================================
# USER FACTORIES
# ============================================================================

class UserFactory(DjangoModelFactory):
    """Factory for Django auth users."""

    class Meta:
        model = 'auth.User'
        django_get_or_create = ('username',)

    username = factory.LazyAttribute(lambda o: f"user_{uuid.uuid4().hex[:8]}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = factory.PostGenerationMethodCall('set_password', 'testpass123')
    is_active = True


class StaffUserFactory(UserFactory):
    """Factory for staff users allowed to run bulk operations."""

    is_staff = True


# ============================================================================
# RECRUITMENT FACTORIES
# ============================================================================

class CandidateFactory(DjangoModelFactory):
    """Factory for candidates."""

    class Meta:
        model = 'recruitment.Candidate'

    name = factory.Faker('name')
    email = factory.Sequence(lambda n: f"candidate{n}@example.com")
    phone = factory.Faker('phone_number')
    country = 'Canada'
    country_code = 'CA'
    headline = 'Software Engineer'


class JobPostingFactory(DjangoModelFactory):
    """Factory for published job postings."""

    class Meta:
        model = 'recruitment.JobPosting'

    title = 'Backend Developer'
    department = 'Engineering'
    company = factory.Faker('company')
    description = 'Build and maintain Python services.'
    must_have_skills = factory.LazyFunction(lambda: ['Python', 'Django'])
    nice_to_have_skills = factory.LazyFunction(lambda: ['Docker'])
    location_type = 'onsite'
    country = 'Canada'
    city = 'Toronto'
    min_years_experience = 2
    seniority_level = 'mid'
    status = 'published'


class DraftJobPostingFactory(JobPostingFactory):
    """Factory for draft job postings."""

    status = 'draft'


class CvFileFactory(DjangoModelFactory):
    """Factory for uploaded CVs with extracted text."""

    class Meta:
        model = 'recruitment.CvFile'

    candidate = factory.SubFactory(CandidateFactory)
    file_name = factory.LazyAttribute(lambda o: f"cv_{uuid.uuid4().hex[:6]}.pdf")
    raw_text = factory.Faker('text', max_nb_chars=1500)


# ============================================================================
# MATCHING FACTORIES
# ============================================================================

class CandidateMatrixFactory(DjangoModelFactory):
    """Factory for candidate matrices."""

    class Meta:
        model = 'matching.CandidateMatrix'

    candidate = factory.SubFactory(CandidateFactory)
    skills = factory.LazyFunction(lambda: [
        {'name': 'Python', 'level': 'advanced', 'yearsOfExperience': 4},
        {'name': 'Django', 'level': 'advanced', 'yearsOfExperience': 3},
    ])
    roles = factory.LazyFunction(lambda: ['Backend Developer'])
    total_years_experience = 4
    domains = factory.LazyFunction(lambda: ['Backend', 'SaaS'])
    location_signals = factory.LazyFunction(lambda: {
        'currentCountry': 'Canada',
        'willingToRelocate': False,
        'preferredLocations': [],
    })
    confidence = 80
    model_version = 'qwen-turbo'
    generated_at = factory.LazyFunction(timezone.now)


class JobMatrixFactory(DjangoModelFactory):
    """Factory for job matrices."""

    class Meta:
        model = 'matching.JobMatrix'

    job = factory.SubFactory(JobPostingFactory)
    required_skills = factory.LazyFunction(lambda: [
        {'skill': 'Python', 'weight': 90},
        {'skill': 'Django', 'weight': 80},
    ])
    preferred_skills = factory.LazyFunction(list)
    experience_weight = 20
    location_weight = 15
    domain_weight = 10
    semantic_keywords = factory.LazyFunction(list)
    model_version = 'qwen-turbo'


class MatchFactory(DjangoModelFactory):
    """Factory for persisted matches."""

    class Meta:
        model = 'matching.Match'

    candidate = factory.SubFactory(CandidateFactory)
    job = factory.SubFactory(JobPostingFactory)
    score = 75
    breakdown = factory.LazyFunction(lambda: {
        'skills': 80, 'experience': 100, 'domain': 50, 'location': 100
    })
    explanation = 'Strong backend profile.'
    gaps = factory.LazyFunction(list)
    status = 'pending'


# ============================================================================
# FACTORY FIXTURES
# ============================================================================

@pytest.fixture
def user_factory(db):
    """Provide UserFactory for tests."""
    return UserFactory


@pytest.fixture
def candidate_factory(db):
    """Provide CandidateFactory for tests."""
    return CandidateFactory


@pytest.fixture
def job_posting_factory(db):
    """Provide JobPostingFactory for tests."""
    return JobPostingFactory


@pytest.fixture
def draft_job_posting_factory(db):
    """Provide DraftJobPostingFactory for tests."""
    return DraftJobPostingFactory


@pytest.fixture
def cv_file_factory(db):
    """Provide CvFileFactory for tests."""
    return CvFileFactory


@pytest.fixture
def candidate_matrix_factory(db):
    """Provide CandidateMatrixFactory for tests."""
    return CandidateMatrixFactory


@pytest.fixture
def job_matrix_factory(db):
    """Provide JobMatrixFactory for tests."""
    return JobMatrixFactory


@pytest.fixture
def match_factory(db):
    """Provide MatchFactory for tests."""
    return MatchFactory


# ============================================================================
# MODEL FIXTURES
# ============================================================================

@pytest.fixture
def user(db):
    """Create a standard test user."""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Create a staff user."""
    return StaffUserFactory()


@pytest.fixture
def candidate(db):
    """Create a candidate with a matrix."""
    matrix = CandidateMatrixFactory()
    return matrix.candidate


@pytest.fixture
def job(db):
    """Create a published job with a matrix."""
    matrix = JobMatrixFactory()
    return matrix.job


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client(db):
    """Provide a DRF API test client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_api_client(db, api_client, user):
    """Provide an authenticated DRF API test client."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def staff_api_client(db, api_client, staff_user):
    """Provide a DRF API test client authenticated as staff."""
    api_client.force_authenticate(user=staff_user)
    return api_client


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache():
    """Bulk job records live in the cache; isolate them per test."""
    from matching.bulk_status import get_bulk_job_store

    cache.clear()
    get_bulk_job_store.cache_clear()
    yield
    cache.clear()
    get_bulk_job_store.cache_clear()


@pytest.fixture
def mock_llm():
    """
    Mock the LLM client used by the explanation and extraction services.

    Usage:
        def test_explained(mock_llm):
            mock_llm.return_value = {'explanation': 'Good fit.', 'gaps': []}
            # Test code here
    """
    with patch('matching.services.llm.LLMClient.complete_json') as mock_complete:
        mock_complete.return_value = {
            'explanation': 'The candidate covers the core backend stack.',
            'gaps': [
                {'type': 'skill', 'description': 'No Docker experience', 'severity': 'minor'}
            ],
        }
        yield mock_complete


@pytest.fixture
def mock_openai():
    """Mock the openai SDK client so no HTTP request is made."""
    with patch('matching.services.llm.openai.OpenAI') as mock_client_class:
        client = MagicMock()
        mock_client_class.return_value = client
        yield client
