from django.contrib import admin

from .models import CandidateMatrix, JobMatrix, Match


@admin.register(CandidateMatrix)
class CandidateMatrixAdmin(admin.ModelAdmin):
    list_display = ['candidate', 'total_years_experience', 'confidence', 'model_version', 'generated_at']
    list_filter = ['model_version']
    search_fields = ['candidate__name', 'candidate__email']
    raw_id_fields = ['candidate']
    readonly_fields = ['generated_at']


@admin.register(JobMatrix)
class JobMatrixAdmin(admin.ModelAdmin):
    list_display = ['job', 'experience_weight', 'location_weight', 'domain_weight', 'generated_at']
    search_fields = ['job__title']
    raw_id_fields = ['job']
    readonly_fields = ['generated_at']


@admin.register(Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = ['candidate', 'job', 'score', 'status', 'calculated_at']
    list_filter = ['status']
    search_fields = ['candidate__name', 'job__title']
    raw_id_fields = ['candidate', 'job']
    readonly_fields = ['score', 'breakdown', 'explanation', 'gaps', 'calculated_at']
