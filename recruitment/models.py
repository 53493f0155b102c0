"""
Recruitment Models

Candidates, job postings and uploaded CV files. The matching engine reads
these rows but never writes them.
"""

import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Candidate(models.Model):
    """A person in the talent pool."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=50, blank=True)
    country = models.CharField(max_length=100, blank=True)
    country_code = models.CharField(max_length=2, blank=True)
    headline = models.CharField(
        max_length=255,
        blank=True,
        help_text=_('Current or desired role, e.g. "Data Analyst Intern"')
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Candidate')
        verbose_name_plural = _('Candidates')
        ordering = ['created_at', 'id']

    def __str__(self):
        return self.name


class JobPosting(models.Model):
    """A job posting that candidates are matched against."""

    class JobStatus(models.TextChoices):
        DRAFT = 'draft', _('Draft')
        PUBLISHED = 'published', _('Published')
        CLOSED = 'closed', _('Closed')

    class LocationType(models.TextChoices):
        ONSITE = 'onsite', _('On-site')
        HYBRID = 'hybrid', _('Hybrid')
        REMOTE = 'remote', _('Remote')

    class SeniorityLevel(models.TextChoices):
        INTERNSHIP = 'internship', _('Internship')
        JUNIOR = 'junior', _('Junior')
        MID = 'mid', _('Mid-Level')
        SENIOR = 'senior', _('Senior')
        LEAD = 'lead', _('Lead')
        PRINCIPAL = 'principal', _('Principal')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    department = models.CharField(max_length=100, blank=True)
    company = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)

    must_have_skills = models.JSONField(default=list, blank=True)
    nice_to_have_skills = models.JSONField(default=list, blank=True)

    location_type = models.CharField(
        max_length=10,
        choices=LocationType.choices,
        default=LocationType.ONSITE
    )
    country = models.CharField(max_length=100, blank=True)
    city = models.CharField(max_length=100, blank=True)

    min_years_experience = models.PositiveIntegerField(default=0)
    seniority_level = models.CharField(
        max_length=20,
        choices=SeniorityLevel.choices,
        default=SeniorityLevel.MID
    )

    status = models.CharField(
        max_length=20,
        choices=JobStatus.choices,
        default=JobStatus.DRAFT
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Job Posting')
        verbose_name_plural = _('Job Postings')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['status'], name='recruitment_job_status_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_published(self):
        return self.status == self.JobStatus.PUBLISHED


class CvFile(models.Model):
    """An uploaded CV with the text extracted from it."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    candidate = models.ForeignKey(
        Candidate,
        on_delete=models.CASCADE,
        related_name='cv_files'
    )
    file_name = models.CharField(max_length=255)
    raw_text = models.TextField(null=True, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('CV File')
        verbose_name_plural = _('CV Files')
        ordering = ['-uploaded_at']

    def __str__(self):
        return f"{self.file_name} ({self.candidate})"


def get_latest_cv_text(candidate):
    """
    Return the raw text of the candidate's most recent CV upload.

    Uploads whose text extraction produced nothing are skipped. Returns None
    when no usable upload exists.
    """
    cv_file = (
        CvFile.objects
        .filter(candidate=candidate, raw_text__isnull=False)
        .exclude(raw_text='')
        .order_by('-uploaded_at')
        .first()
    )
    return cv_file.raw_text if cv_file else None
