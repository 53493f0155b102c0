"""
Matching URL Configuration

Mounted at /api/matching/ by the project urls.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    BulkOperationCancelView, BulkOperationStartView, BulkOperationStatusListView,
    BulkOperationStatusView, CandidateMatchListView, CandidatesSummaryView,
    JobMatchCalculateView, JobMatchListView, MatchViewSet
)

app_name = 'matching'

router = DefaultRouter()
router.register(r'matches', MatchViewSet, basename='match')

urlpatterns = [
    # Match listings
    path('jobs/<uuid:job_id>/matches/', JobMatchListView.as_view(), name='job-matches'),
    path(
        'jobs/<uuid:job_id>/matches/calculate/',
        JobMatchCalculateView.as_view(),
        name='job-matches-calculate'
    ),
    path(
        'candidates/<uuid:candidate_id>/matches/',
        CandidateMatchListView.as_view(),
        name='candidate-matches'
    ),

    # Bulk operations (specific routes before the <type> catch-all)
    path(
        'bulk-operations/status/',
        BulkOperationStatusListView.as_view(),
        name='bulk-status-list'
    ),
    path(
        'bulk-operations/status/<str:bulk_job_id>/',
        BulkOperationStatusView.as_view(),
        name='bulk-status'
    ),
    path(
        'bulk-operations/cancel/<str:bulk_job_id>/',
        BulkOperationCancelView.as_view(),
        name='bulk-cancel'
    ),
    path(
        'bulk-operations/candidates-summary/',
        CandidatesSummaryView.as_view(),
        name='bulk-candidates-summary'
    ),
    path(
        'bulk-operations/<str:job_type>/',
        BulkOperationStartView.as_view(),
        name='bulk-start'
    ),

    path('', include(router.urls)),
]
