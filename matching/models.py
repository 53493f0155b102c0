"""
Matching Models

Structured matrices extracted from CVs and job postings, and the persisted
match results computed from them.

- CandidateMatrix: one snapshot per extraction run; the newest one wins
- JobMatrix: one per job posting, carries skill weights and dimension weights
- Match: one per (candidate, job) pair, upserted on every re-score
"""

import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .querysets import CandidateMatrixQuerySet, MatchQuerySet


class CandidateMatrix(models.Model):
    """
    Structured representation of a candidate's CV.

    Skills are stored as ``[{"name", "level", "yearsOfExperience"}]`` and
    location signals as ``{"currentCountry", "willingToRelocate",
    "preferredLocations"}``, exactly as the extraction service returns them.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    candidate = models.ForeignKey(
        'recruitment.Candidate',
        on_delete=models.CASCADE,
        related_name='matrices'
    )

    skills = models.JSONField(default=list, blank=True)
    roles = models.JSONField(default=list, blank=True)
    total_years_experience = models.FloatField(
        default=0,
        validators=[MinValueValidator(0)]
    )
    domains = models.JSONField(default=list, blank=True)
    location_signals = models.JSONField(default=dict, blank=True)

    # Extraction extras, kept for explanation prompts and auditing
    education = models.JSONField(default=list, blank=True)
    languages = models.JSONField(default=list, blank=True)
    evidence = models.JSONField(default=list, blank=True)
    confidence = models.PositiveSmallIntegerField(
        default=0,
        validators=[MaxValueValidator(100)]
    )

    generated_at = models.DateTimeField(default=timezone.now)
    model_version = models.CharField(max_length=100, blank=True)

    objects = CandidateMatrixQuerySet.as_manager()

    class Meta:
        verbose_name = _('Candidate Matrix')
        verbose_name_plural = _('Candidate Matrices')
        indexes = [
            models.Index(fields=['candidate', '-generated_at'], name='matching_cm_latest_idx'),
        ]

    def __str__(self):
        return f"Matrix for {self.candidate} ({self.generated_at:%Y-%m-%d %H:%M})"


class JobMatrix(models.Model):
    """
    Structured requirements of a job posting.

    Required and preferred skills are stored as ``[{"skill", "weight"}]``
    with weights in [0, 100]. The three dimension weights are relative
    shares out of 100; the skills dimension takes the remainder.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job = models.OneToOneField(
        'recruitment.JobPosting',
        on_delete=models.CASCADE,
        related_name='matrix'
    )

    required_skills = models.JSONField(default=list, blank=True)
    preferred_skills = models.JSONField(default=list, blank=True)

    experience_weight = models.PositiveSmallIntegerField(
        default=20,
        validators=[MaxValueValidator(100)],
        help_text=_('Share of the overall score given to experience')
    )
    location_weight = models.PositiveSmallIntegerField(
        default=15,
        validators=[MaxValueValidator(100)],
        help_text=_('Share of the overall score given to location')
    )
    domain_weight = models.PositiveSmallIntegerField(
        default=10,
        validators=[MaxValueValidator(100)],
        help_text=_('Share of the overall score given to domain fit')
    )
    semantic_keywords = models.JSONField(
        default=list,
        blank=True,
        help_text=_('Themes describing the job, used as domain signals')
    )

    generated_at = models.DateTimeField(default=timezone.now)
    model_version = models.CharField(max_length=100, blank=True)

    class Meta:
        verbose_name = _('Job Matrix')
        verbose_name_plural = _('Job Matrices')

    def __str__(self):
        return f"Matrix for {self.job}"

    def get_weights(self):
        """Return the explicit four-dimension weights for this job."""
        from .matrices import DimensionWeights
        return DimensionWeights.from_stored(
            self.experience_weight,
            self.location_weight,
            self.domain_weight
        )


class Match(models.Model):
    """
    Persisted compatibility result for a candidate/job pair.

    Re-scoring updates score, breakdown, explanation, gaps and
    calculated_at in place. Status only changes through recruiter action.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        SHORTLISTED = 'shortlisted', _('Shortlisted')
        REJECTED = 'rejected', _('Rejected')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    candidate = models.ForeignKey(
        'recruitment.Candidate',
        on_delete=models.CASCADE,
        related_name='matches'
    )
    job = models.ForeignKey(
        'recruitment.JobPosting',
        on_delete=models.CASCADE,
        related_name='matches'
    )

    score = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text=_('Overall match score (0-100)')
    )
    breakdown = models.JSONField(
        default=dict,
        help_text=_('Sub-scores: {"skills", "experience", "domain", "location"}')
    )
    explanation = models.TextField(blank=True)
    gaps = models.JSONField(
        default=list,
        blank=True,
        help_text=_('[{"type", "description", "severity"}]')
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING
    )
    calculated_at = models.DateTimeField(default=timezone.now)

    objects = MatchQuerySet.as_manager()

    class Meta:
        verbose_name = _('Match')
        verbose_name_plural = _('Matches')
        ordering = ['-score']
        constraints = [
            models.UniqueConstraint(
                fields=['candidate', 'job'],
                name='matching_unique_candidate_job'
            ),
        ]
        indexes = [
            models.Index(fields=['job', '-score'], name='matching_match_job_idx'),
            models.Index(fields=['candidate', '-score'], name='matching_match_cand_idx'),
        ]

    def __str__(self):
        return f"Match: {self.candidate} - {self.job} ({self.score})"
