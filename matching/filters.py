"""
Matching Filters - Django Filter classes for match listings
"""

import django_filters

from .models import Match


class MatchFilter(django_filters.FilterSet):
    """Filter for match listings."""
    status = django_filters.ChoiceFilter(choices=Match.Status.choices)
    min_score = django_filters.NumberFilter(field_name='score', lookup_expr='gte')
    max_score = django_filters.NumberFilter(field_name='score', lookup_expr='lte')
    calculated_after = django_filters.DateTimeFilter(
        field_name='calculated_at',
        lookup_expr='gte'
    )

    class Meta:
        model = Match
        fields = ['status', 'min_score', 'max_score', 'calculated_after']
