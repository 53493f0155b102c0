"""
Views for Matching API

Match listings, single-pair calculation, recruiter status changes and the
bulk operations admin surface.
"""

import logging

from django.db.models import Exists, OuterRef
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import ListAPIView
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from recruitment.models import Candidate, CvFile, JobPosting

from .bulk_status import BulkJobType
from .exceptions import CandidateNotFound, JobNotFound
from .filters import MatchFilter
from .models import CandidateMatrix, JobMatrix, Match
from .orchestration import BulkMatchingOrchestrator
from .repository import MatchRepository
from .serializers import (
    BulkOperationInputSerializer, BulkOperationTypeSerializer,
    CalculateMatchInputSerializer, CandidatesSummarySerializer,
    MatchOutcomeSerializer, MatchSerializer
)
from .services.matching import MatchingService

logger = logging.getLogger(__name__)


# ============================================================================
# Pagination
# ============================================================================

class MatchPagination(PageNumberPagination):
    """Pagination for match listings."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


# ============================================================================
# Match Listings
# ============================================================================

class JobMatchListView(ListAPIView):
    """
    Matches of a job at or above the display threshold, best first.

    GET /api/matching/jobs/<job_id>/matches/
    """
    permission_classes = [IsAuthenticated]
    serializer_class = MatchSerializer
    pagination_class = MatchPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = MatchFilter

    def get_queryset(self):
        job_id = self.kwargs['job_id']
        if not JobPosting.objects.filter(id=job_id).exists():
            raise JobNotFound(job_id)
        return MatchRepository().list_for_job(job_id)


class CandidateMatchListView(ListAPIView):
    """
    Matches of a candidate at or above the display threshold, best first.

    GET /api/matching/candidates/<candidate_id>/matches/
    """
    permission_classes = [IsAuthenticated]
    serializer_class = MatchSerializer
    pagination_class = MatchPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = MatchFilter

    def get_queryset(self):
        candidate_id = self.kwargs['candidate_id']
        if not Candidate.objects.filter(id=candidate_id).exists():
            raise CandidateNotFound(candidate_id)
        return MatchRepository().list_for_candidate(candidate_id)


class JobMatchCalculateView(APIView):
    """
    Fire-and-forget matching of one job against the candidate pool.

    POST /api/matching/jobs/<job_id>/matches/calculate/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, job_id):
        bulk_job_id = BulkMatchingOrchestrator().start(
            BulkJobType.MATCH_JOB,
            job_id=job_id
        )
        return Response(
            {
                'status': 'Matching queued',
                'bulkJobId': bulk_job_id,
            },
            status=status.HTTP_202_ACCEPTED
        )


# ============================================================================
# Match ViewSet
# ============================================================================

class MatchViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Single match access and recruiter actions.

    GET  /api/matching/matches/<id>/
    POST /api/matching/matches/calculate/
    POST /api/matching/matches/<id>/shortlist/
    POST /api/matching/matches/<id>/reject/
    """
    permission_classes = [IsAuthenticated]
    serializer_class = MatchSerializer
    queryset = Match.objects.select_related('candidate', 'job')

    @action(detail=False, methods=['post'])
    def calculate(self, request):
        """
        Compute and persist the match of one candidate/job pair.

        Request body:
        {
            "candidate_id": "uuid",
            "job_id": "uuid"
        }

        An explanation failure still saves the match and is reported in
        ``explanationError``.
        """
        serializer = CalculateMatchInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = MatchingService().calculate_match(data['candidate_id'], data['job_id'])
        return Response(MatchOutcomeSerializer(outcome).data)

    @action(detail=True, methods=['post'])
    def shortlist(self, request, pk=None):
        match = MatchRepository().shortlist(pk)
        return Response(MatchSerializer(match).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        match = MatchRepository().reject(pk)
        return Response(MatchSerializer(match).data)


# ============================================================================
# Bulk Operations (Admin Only)
# ============================================================================

class BulkOperationStartView(APIView):
    """
    Start a bulk operation.

    POST /api/matching/bulk-operations/<type>/

    Request body:
    {
        "candidateIds": ["uuid", ...],  // Optional
        "onlyMissing": false
    }
    """
    permission_classes = [IsAdminUser]

    def post(self, request, job_type):
        type_serializer = BulkOperationTypeSerializer(data={'type': job_type})
        type_serializer.is_valid(raise_exception=True)

        serializer = BulkOperationInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        orchestrator = BulkMatchingOrchestrator()
        bulk_job_id = orchestrator.start(
            job_type,
            candidate_ids=data.get('candidateIds') or None,
            only_missing=data.get('onlyMissing', False)
        )
        logger.info(f"{request.user} started bulk operation {job_type} ({bulk_job_id})")

        return Response(
            orchestrator.get_status(bulk_job_id).to_dict(),
            status=status.HTTP_202_ACCEPTED
        )


class BulkOperationStatusListView(APIView):
    """
    Most recent bulk jobs, newest first.

    GET /api/matching/bulk-operations/status/
    """
    permission_classes = [IsAdminUser]

    def get(self, request):
        jobs = BulkMatchingOrchestrator().list_recent(limit=10)
        return Response([job.to_dict() for job in jobs])


class BulkOperationStatusView(APIView):
    """
    Status of one bulk job.

    GET /api/matching/bulk-operations/status/<id>/
    """
    permission_classes = [IsAdminUser]

    def get(self, request, bulk_job_id):
        return Response(BulkMatchingOrchestrator().get_status(bulk_job_id).to_dict())


class BulkOperationCancelView(APIView):
    """
    Cancel a running bulk job.

    POST /api/matching/bulk-operations/cancel/<id>/
    """
    permission_classes = [IsAdminUser]

    def post(self, request, bulk_job_id):
        return Response(BulkMatchingOrchestrator().cancel(bulk_job_id).to_dict())


class CandidatesSummaryView(APIView):
    """
    Pool totals shown before starting a bulk operation.

    GET /api/matching/bulk-operations/candidates-summary/
    """
    permission_classes = [IsAdminUser]

    def get(self, request):
        total_candidates = Candidate.objects.count()
        with_matrix = CandidateMatrix.objects.values('candidate_id').distinct().count()
        has_cv_text = CvFile.objects.filter(
            candidate=OuterRef('pk'),
            raw_text__isnull=False,
        ).exclude(raw_text='')

        summary = {
            'totalCandidates': total_candidates,
            'withMatrix': with_matrix,
            'withoutMatrix': total_candidates - with_matrix,
            'withCvText': Candidate.objects.filter(Exists(has_cv_text)).count(),
            'totalJobs': JobPosting.objects.filter(
                status=JobPosting.JobStatus.PUBLISHED
            ).count(),
            'jobsWithMatrix': JobMatrix.objects.filter(
                job__status=JobPosting.JobStatus.PUBLISHED
            ).count(),
        }
        return Response(CandidatesSummarySerializer(summary).data)
