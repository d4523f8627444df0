"""
Views for policy recommendation endpoints (/api/policy/)
"""
import logging
from django.utils import timezone
from rest_framework import status, generics
from rest_framework.response import Response
from air.broadcast import broadcast_event, POLICY_STATUS_UPDATE, SIMULATION_COMPLETE
from air.services import data_service, PM25_CRITICAL
from .models import PolicyRecommendation
from .serializers import (
    PolicyRecommendationSerializer,
    RecommendationQuerySerializer,
    StatusUpdateSerializer,
    SimulationRequestSerializer,
    ZoneAlertQuerySerializer,
)
from .services import simulate_policy_impact, build_zone_alerts, get_policy_stats, get_alert_stats

logger = logging.getLogger(__name__)


class RecommendationListView(generics.GenericAPIView):
    """
    GET /api/policy/recommendations/?priority=<>&status=<>&limit=<>
    """
    serializer_class = RecommendationQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        priority = serializer.validated_data.get('priority')
        status_filter = serializer.validated_data.get('status')

        queryset = PolicyRecommendation.objects.all()
        if priority:
            queryset = queryset.filter(priority=priority)
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        queryset = queryset[:serializer.validated_data.get('limit', 10)]

        recommendations = PolicyRecommendationSerializer(queryset, many=True).data
        return Response({
            'recommendations': recommendations,
            'metadata': {
                'total': len(recommendations),
                'filters': {'priority': priority, 'status': status_filter},
                'generated_at': timezone.now().isoformat(),
            },
        })


class RecommendationStatusView(generics.GenericAPIView):
    """
    PATCH /api/policy/recommendations/<id>/

    Approve, reject or otherwise move a recommendation along
    """
    serializer_class = StatusUpdateSerializer

    def patch(self, request, pk, *args, **kwargs):
        try:
            policy = PolicyRecommendation.objects.get(pk=pk)
        except PolicyRecommendation.DoesNotExist:
            return Response(
                {'error': True, 'detail': 'Policy recommendation not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']
        notes = serializer.validated_data.get('notes', '')

        policy.status = new_status
        update_fields = ['status', 'updated_at']
        if notes:
            policy.notes = notes
            update_fields.append('notes')
        policy.save(update_fields=update_fields)

        logger.info(f"Policy {policy.pk} ({policy.zone_id}) set to {new_status}")

        broadcast_event(POLICY_STATUS_UPDATE, {
            'policy_id': policy.pk,
            'new_status': new_status,
            'policy_title': policy.title,
            'notes': notes,
            'timestamp': timezone.now().isoformat(),
        })

        return Response({
            'message': f'Policy recommendation {new_status} successfully',
            'policy': PolicyRecommendationSerializer(policy).data,
            'notes': notes,
        })


class SimulateView(generics.GenericAPIView):
    """
    POST /api/policy/simulate/ {policy_id, baseline_pm25?}
    """
    serializer_class = SimulationRequestSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        policy_id = serializer.validated_data['policy_id']

        try:
            policy = PolicyRecommendation.objects.get(pk=policy_id)
        except PolicyRecommendation.DoesNotExist:
            return Response(
                {'error': True, 'detail': 'Policy not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        results = simulate_policy_impact(policy, serializer.validated_data.get('baseline_pm25'))

        broadcast_event(SIMULATION_COMPLETE, {
            'policy_id': policy_id,
            'simulation_results': results,
        })

        return Response({
            'policy_id': policy_id,
            'policy_title': policy.title,
            'simulation_results': results,
            'generated_at': timezone.now().isoformat(),
        })


class ZoneAlertsView(generics.GenericAPIView):
    """
    GET /api/policy/alerts/?severity=high|critical&limit=<>
    """
    serializer_class = ZoneAlertQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        severity = serializer.validated_data.get('severity')

        data = data_service.get_city_data(
            serializer.validated_data.get('city') or None,
            serializer.validated_data.get('country') or None,
        )
        alerts = build_zone_alerts(data['hotspots'])
        if severity:
            alerts = [a for a in alerts if a['severity'] == severity]
        alerts = alerts[:serializer.validated_data.get('limit', 20)]

        return Response({
            'alerts': alerts,
            'metadata': {
                'total_active': len(alerts),
                'location': data['location'],
                'generated_at': timezone.now().isoformat(),
            },
        })


class PolicyDashboardView(generics.GenericAPIView):
    """
    GET /api/policy/dashboard/

    Air quality summary with policy and alert statistics
    """

    def get(self, request, *args, **kwargs):
        data = data_service.get_city_data()
        summary = data['summary']
        pm25 = [
            m['properties']['pm25'] for m in data['measurements']
            if m['properties'].get('pm25') is not None
        ]

        return Response({
            'location': data['location'],
            'air_quality': {
                'total_measurements': summary.get('total_measurements', 0),
                'avg_pm25': summary.get('avg_pm25'),
                'max_pm25': summary.get('max_pm25'),
                'min_pm25': summary.get('min_pm25'),
                'unhealthy_readings': summary.get('unhealthy_readings', 0),
                'very_unhealthy_readings': len([v for v in pm25 if v > PM25_CRITICAL]),
                'last_update': data['timestamp'],
            },
            'policy_stats': get_policy_stats(),
            'alert_stats': get_alert_stats(build_zone_alerts(data['hotspots']) + data['alerts']),
            'generated_at': timezone.now().isoformat(),
        })
