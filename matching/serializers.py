"""
Serializers for Matching API

Payloads use camelCase keys to match the status records and the matrix JSON.
"""

from rest_framework import serializers

from .bulk_status import BulkJobType
from .models import Match


# ============================================================================
# Input Serializers
# ============================================================================

class CalculateMatchInputSerializer(serializers.Serializer):
    """Input serializer for matching a single candidate/job pair."""
    candidate_id = serializers.UUIDField(
        help_text="ID of the candidate to match"
    )
    job_id = serializers.UUIDField(
        help_text="ID of the job posting to match against"
    )


class BulkOperationInputSerializer(serializers.Serializer):
    """Input serializer for starting a bulk operation."""
    candidateIds = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=True,
        help_text="Restrict the run to these candidates"
    )
    onlyMissing = serializers.BooleanField(
        default=False,
        help_text="Only regenerate candidates that have no matrix yet"
    )


class BulkOperationTypeSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=BulkJobType.PUBLIC)


# ============================================================================
# Output Serializers
# ============================================================================

class MatchSerializer(serializers.ModelSerializer):
    """Serializer for persisted match results."""
    candidateId = serializers.UUIDField(source='candidate_id', read_only=True)
    jobId = serializers.UUIDField(source='job_id', read_only=True)
    calculatedAt = serializers.DateTimeField(source='calculated_at', read_only=True)

    class Meta:
        model = Match
        fields = [
            'id', 'candidateId', 'jobId', 'score', 'breakdown',
            'explanation', 'gaps', 'status', 'calculatedAt'
        ]
        read_only_fields = fields


class MatchOutcomeSerializer(serializers.Serializer):
    """Result of a single-pair calculation."""
    status = serializers.CharField()
    score = serializers.IntegerField(allow_null=True)
    breakdown = serializers.DictField()
    match = MatchSerializer(allow_null=True)
    explanationError = serializers.CharField(
        source='explanation_error',
        allow_null=True
    )


class CandidatesSummarySerializer(serializers.Serializer):
    totalCandidates = serializers.IntegerField()
    withMatrix = serializers.IntegerField()
    withoutMatrix = serializers.IntegerField()
    withCvText = serializers.IntegerField()
    totalJobs = serializers.IntegerField()
    jobsWithMatrix = serializers.IntegerField()
