"""
Tests for the eligibility filter.
"""

import pytest

from matching.eligibility import EligibilityFilter, is_intern
from matching.matrices import CandidateProfile, JobProfile


def make_candidate(years=3, headline='Software Engineer', roles=None):
    return CandidateProfile(
        total_years_experience=years,
        headline=headline,
        roles=roles or [],
    )


def make_job(level='mid', minimum=0):
    return JobProfile(seniority_level=level, min_years_experience=minimum, title='Role')


class TestInternDetection:

    @pytest.mark.parametrize('headline,roles', [
        ('Data Analyst Intern', []),
        ('SOFTWARE INTERNSHIP', []),
        ('', ['Graduate Trainee']),
        ('', ['Electrician Apprentice']),
    ])
    def test_detects_intern_markers(self, headline, roles):
        assert is_intern(headline, roles) is True

    def test_regular_titles_are_not_interns(self):
        assert is_intern('Senior Backend Engineer', ['Tech Lead']) is False
        assert is_intern(None, []) is False


class TestEligibilityFilter:
    """Coarse gate applied before scoring."""

    def setup_method(self):
        self.filter = EligibilityFilter()

    def test_intern_rejected_for_principal_role(self):
        candidate = make_candidate(years=0, headline='Data Analyst Intern')

        assert self.filter.should_consider(candidate, make_job('principal')) is False

    def test_lead_role_rejects_under_one_year(self):
        assert self.filter.should_consider(make_candidate(years=0.5), make_job('lead')) is False
        assert self.filter.should_consider(make_candidate(years=6), make_job('lead')) is True

    def test_experience_floor_uses_tolerance(self):
        job = make_job('senior', minimum=5)

        assert self.filter.should_consider(make_candidate(years=1), job) is False
        assert self.filter.should_consider(make_candidate(years=4), job) is True
        assert self.filter.should_consider(make_candidate(years=3.9), job) is False

    @pytest.mark.parametrize('level,ok_years,too_many', [
        ('junior', 3, 3.5),
        ('mid', 8, 9),
        ('senior', 15, 16),
    ])
    def test_overqualification_ceilings(self, level, ok_years, too_many):
        assert self.filter.should_consider(make_candidate(years=ok_years), make_job(level)) is True
        assert self.filter.should_consider(make_candidate(years=too_many), make_job(level)) is False

    def test_internship_accepts_interns_up_to_two_years(self):
        job = make_job('internship')
        intern = 'Marketing Intern'

        assert self.filter.should_consider(make_candidate(years=2, headline=intern), job) is True
        assert self.filter.should_consider(make_candidate(years=2.5, headline=intern), job) is False

    def test_internship_accepts_non_interns_up_to_one_year(self):
        job = make_job('internship')

        assert self.filter.should_consider(make_candidate(years=0), job) is True
        assert self.filter.should_consider(make_candidate(years=1), job) is True
        assert self.filter.should_consider(make_candidate(years=3), job) is False

    def test_evaluate_reports_reason(self):
        decision = self.filter.evaluate(make_candidate(years=20), make_job('mid'))

        assert not decision
        assert 'overqualified' in decision.reason
