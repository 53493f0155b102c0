import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('recruitment', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CandidateMatrix',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('skills', models.JSONField(blank=True, default=list)),
                ('roles', models.JSONField(blank=True, default=list)),
                ('total_years_experience', models.FloatField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('domains', models.JSONField(blank=True, default=list)),
                ('location_signals', models.JSONField(blank=True, default=dict)),
                ('education', models.JSONField(blank=True, default=list)),
                ('languages', models.JSONField(blank=True, default=list)),
                ('evidence', models.JSONField(blank=True, default=list)),
                ('confidence', models.PositiveSmallIntegerField(default=0, validators=[django.core.validators.MaxValueValidator(100)])),
                ('generated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('model_version', models.CharField(blank=True, max_length=100)),
                ('candidate', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matrices', to='recruitment.candidate')),
            ],
            options={
                'verbose_name': 'Candidate Matrix',
                'verbose_name_plural': 'Candidate Matrices',
                'indexes': [models.Index(fields=['candidate', '-generated_at'], name='matching_cm_latest_idx')],
            },
        ),
        migrations.CreateModel(
            name='JobMatrix',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('required_skills', models.JSONField(blank=True, default=list)),
                ('preferred_skills', models.JSONField(blank=True, default=list)),
                ('experience_weight', models.PositiveSmallIntegerField(default=20, help_text='Share of the overall score given to experience', validators=[django.core.validators.MaxValueValidator(100)])),
                ('location_weight', models.PositiveSmallIntegerField(default=15, help_text='Share of the overall score given to location', validators=[django.core.validators.MaxValueValidator(100)])),
                ('domain_weight', models.PositiveSmallIntegerField(default=10, help_text='Share of the overall score given to domain fit', validators=[django.core.validators.MaxValueValidator(100)])),
                ('semantic_keywords', models.JSONField(blank=True, default=list, help_text='Themes describing the job, used as domain signals')),
                ('generated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('model_version', models.CharField(blank=True, max_length=100)),
                ('job', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='matrix', to='recruitment.jobposting')),
            ],
            options={
                'verbose_name': 'Job Matrix',
                'verbose_name_plural': 'Job Matrices',
            },
        ),
        migrations.CreateModel(
            name='Match',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('score', models.PositiveSmallIntegerField(help_text='Overall match score (0-100)', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('breakdown', models.JSONField(default=dict, help_text='Sub-scores: {"skills", "experience", "domain", "location"}')),
                ('explanation', models.TextField(blank=True)),
                ('gaps', models.JSONField(blank=True, default=list, help_text='[{"type", "description", "severity"}]')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('shortlisted', 'Shortlisted'), ('rejected', 'Rejected')], default='pending', max_length=20)),
                ('calculated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('candidate', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matches', to='recruitment.candidate')),
                ('job', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matches', to='recruitment.jobposting')),
            ],
            options={
                'verbose_name': 'Match',
                'verbose_name_plural': 'Matches',
                'ordering': ['-score'],
                'indexes': [
                    models.Index(fields=['job', '-score'], name='matching_match_job_idx'),
                    models.Index(fields=['candidate', '-score'], name='matching_match_cand_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('candidate', 'job'), name='matching_unique_candidate_job'),
                ],
            },
        ),
    ]
