from django.contrib import admin

from .models import Candidate, CvFile, JobPosting


@admin.register(Candidate)
class CandidateAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'headline', 'country', 'created_at']
    search_fields = ['name', 'email', 'headline']
    list_filter = ['country']


@admin.register(JobPosting)
class JobPostingAdmin(admin.ModelAdmin):
    list_display = [
        'title', 'company', 'status', 'seniority_level',
        'location_type', 'country', 'min_years_experience'
    ]
    list_filter = ['status', 'seniority_level', 'location_type']
    search_fields = ['title', 'company', 'department']


@admin.register(CvFile)
class CvFileAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'candidate', 'uploaded_at']
    raw_id_fields = ['candidate']
