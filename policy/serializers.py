"""
Serializers for policy recommendations, simulations and zone alerts
"""
from rest_framework import serializers
from .models import PolicyRecommendation


class PolicyRecommendationSerializer(serializers.ModelSerializer):
    """Serializer for policy recommendation model"""
    cost_estimate = serializers.FloatField(allow_null=True, required=False)

    class Meta:
        model = PolicyRecommendation
        fields = [
            'id', 'zone_id', 'title', 'description', 'policy_type', 'priority',
            'expected_impact_percent', 'cost_estimate', 'implementation_time_days',
            'affected_population', 'status', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class RecommendationQuerySerializer(serializers.Serializer):
    priority = serializers.ChoiceField(
        choices=[c[0] for c in PolicyRecommendation.PRIORITY_CHOICES],
        required=False,
    )
    status = serializers.ChoiceField(
        choices=[c[0] for c in PolicyRecommendation.STATUS_CHOICES] + ['all'],
        required=False,
    )
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=10)


class StatusUpdateSerializer(serializers.Serializer):
    """Serializer for approving/rejecting a recommendation"""
    status = serializers.ChoiceField(choices=[c[0] for c in PolicyRecommendation.STATUS_CHOICES])
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class SimulationRequestSerializer(serializers.Serializer):
    policy_id = serializers.IntegerField(min_value=1)
    baseline_pm25 = serializers.FloatField(required=False, min_value=0)


class ZoneAlertQuerySerializer(serializers.Serializer):
    severity = serializers.ChoiceField(choices=['high', 'critical'], required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=20)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    country = serializers.CharField(required=False, allow_blank=True, max_length=100)
