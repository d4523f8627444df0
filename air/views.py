"""
Views for air quality endpoints (/api/air/) and AI analysis (/api/ai/)
"""
import uuid
import logging
from datetime import timedelta
from django.conf import settings
from django.utils import timezone
from rest_framework import status, generics
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, ScopedRateThrottle
from core.exceptions import ProviderNotConfigured
from core.utils import (
    get_air_quality_emoji,
    get_health_message,
    get_trend_indicator,
    get_quick_recommendation,
    get_severity_level,
)
from .broadcast import (
    broadcast_event,
    DATA_UPDATE,
    DATA_REFRESHED,
    ANALYSIS_STARTED,
    AI_ANALYSIS_COMPLETE,
)
from .providers import ProviderError
from .serializers import (
    CityQuerySerializer,
    MeasurementsQuerySerializer,
    HotspotsQuerySerializer,
    AlertsQuerySerializer,
    LocationQuerySerializer,
    AnalyzeRequestSerializer,
    AIAnalysisQuerySerializer,
    SmartHotspotsQuerySerializer,
)
from .services import data_service
from .tasks import run_hotspot_analysis

logger = logging.getLogger(__name__)

EXPECTED_SOURCES = 4

SEVERITY_FILTERS = {
    'moderate': ['moderate', 'high', 'critical'],
    'high': ['high', 'critical'],
    'critical': ['critical'],
}

# Rough population exposed per smart hotspot cluster
CLUSTER_POPULATION = {
    'critical': 150000,
    'high': 100000,
    'moderate': 50000,
}


def _now():
    return timezone.now().isoformat()


class CityDataMixin:
    """Resolve ?city=&country= into the aggregated snapshot"""

    def get_city_data(self, validated_data):
        return data_service.get_city_data(
            validated_data.get('city') or None,
            validated_data.get('country') or None,
        )


class CityDataView(CityDataMixin, generics.GenericAPIView):
    """
    GET /api/air/data/?city=<>&country=<>

    Complete snapshot for a city; announces a data_update to the dashboard
    """
    serializer_class = CityQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        data = self.get_city_data(serializer.validated_data)

        broadcast_event(DATA_UPDATE, {
            'location': data['location'],
            'measurements_count': len(data['measurements']),
            'avg_pm25': data['summary'].get('avg_pm25'),
            'air_quality_status': data['summary'].get('air_quality_status'),
            'timestamp': data['timestamp'],
        })

        return Response({
            'success': True,
            **data,
            'metadata': {
                'api_sources': data['data_sources'],
                'cache_ttl': getattr(settings, 'AIR_CACHE_TTL', 900),
                'next_update': (timezone.now() + timedelta(
                    seconds=getattr(settings, 'AUTO_REFRESH_INTERVAL', 900)
                )).isoformat(),
            },
        })


class MeasurementsView(CityDataMixin, generics.GenericAPIView):
    """
    GET /api/air/measurements/?format=geojson|simple&bbox=<>&pollutants=<>
    """
    serializer_class = MeasurementsQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        data = self.get_city_data(params)
        measurements = data['measurements']

        pollutants = params.get('pollutants')
        if pollutants:
            measurements = [
                m for m in measurements
                if any(m['properties'].get(p) is not None for p in pollutants)
            ]

        bbox = params.get('bbox')
        if bbox:
            min_lon, min_lat, max_lon, max_lat = bbox
            measurements = [
                m for m in measurements
                if min_lon <= m['geometry']['coordinates'][0] <= max_lon
                and min_lat <= m['geometry']['coordinates'][1] <= max_lat
            ]

        if params.get('format') == 'simple':
            return Response({
                'measurements': [
                    {
                        'location': m['properties'].get('name'),
                        'coordinates': m['geometry']['coordinates'],
                        'air_quality': {
                            'pm25': m['properties'].get('pm25'),
                            'pm10': m['properties'].get('pm10'),
                            'no2': m['properties'].get('no2'),
                            'aqi': m['properties'].get('aqi_us') or m['properties'].get('aqi'),
                        },
                        'level': get_severity_level(m['properties'].get('pm25')),
                        'source': m['properties'].get('source'),
                        'timestamp': m['properties'].get('timestamp'),
                    }
                    for m in measurements
                ],
                'metadata': {
                    'count': len(measurements),
                    'generated_at': data['timestamp'],
                },
            })

        return Response({
            'type': 'FeatureCollection',
            'features': measurements,
            'metadata': {
                'total_measurements': len(measurements),
                'bbox': bbox or f"{data['location']} area",
                'pollutants_included': pollutants or 'all available',
                'data_sources': data['data_sources'],
                'generated_at': data['timestamp'],
            },
        })


class HotspotsView(CityDataMixin, generics.GenericAPIView):
    """
    GET /api/air/hotspots/?severity=moderate|high|critical|all&format=geojson|simple

    A severity filter includes everything at or above that level
    """
    serializer_class = HotspotsQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        severity = serializer.validated_data.get('severity', 'moderate')

        data = self.get_city_data(serializer.validated_data)
        hotspots = data['hotspots']

        if severity != 'all':
            allowed = SEVERITY_FILTERS[severity]
            hotspots = [h for h in hotspots if h['properties']['severity'] in allowed]

        if serializer.validated_data.get('format') == 'simple':
            return Response({
                'hotspots': [
                    {
                        'location': h['properties']['location_name'],
                        'coordinates': h['geometry']['coordinates'],
                        'pollutant': h['properties']['pollutant'],
                        'value': h['properties']['value'],
                        'severity': h['properties']['severity'],
                        'threshold': h['properties']['threshold'],
                    }
                    for h in hotspots
                ],
                'metadata': {
                    'count': len(hotspots),
                    'generated_at': data['timestamp'],
                },
            })

        return Response({
            'type': 'FeatureCollection',
            'features': hotspots,
            'metadata': {
                'total_hotspots': len(hotspots),
                'severity_filter': severity,
                'detection_time': data['timestamp'],
                'data_sources': data['data_sources'],
            },
        })


class AlertsView(CityDataMixin, generics.GenericAPIView):
    """
    GET /api/air/alerts/?severity=<>&limit=<>
    """
    serializer_class = AlertsQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        severity = serializer.validated_data.get('severity')
        limit = serializer.validated_data.get('limit', 20)

        data = self.get_city_data(serializer.validated_data)
        alerts = data['alerts']
        if severity:
            alerts = [a for a in alerts if a.get('severity') == severity]
        alerts = alerts[:limit]

        return Response({
            'alerts': [
                {
                    'id': alert['id'],
                    'type': alert['type'],
                    'severity': alert['severity'],
                    'message': alert['message'],
                    'affected_area': alert.get('affected_area'),
                    'timestamp': alert['timestamp'],
                    'actions': alert.get('actions', []),
                    'current_value': alert.get('current_value'),
                    'threshold': alert.get('threshold'),
                }
                for alert in alerts
            ],
            'metadata': {
                'total_alerts': len(alerts),
                'severity_filter': severity or 'all',
                'generated_at': data['timestamp'],
                'alert_types': sorted({a['type'] for a in alerts}),
            },
        })


class DashboardView(CityDataMixin, generics.GenericAPIView):
    """
    GET /api/air/dashboard/

    Overview, live metrics and per-severity breakdowns for dashboard widgets
    """
    serializer_class = CityQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        data = self.get_city_data(serializer.validated_data)
        summary = data['summary']
        hotspots = data['hotspots']
        alerts = data['alerts']
        avg_pm25 = summary.get('avg_pm25')

        def count(items, key, value):
            return len([i for i in items if i.get(key) == value])

        hotspot_props = [h['properties'] for h in hotspots]

        return Response({
            'timestamp': _now(),
            'location': data['location'],
            'overview': {
                'air_quality_status': summary.get('air_quality_status'),
                'current_aqi': summary.get('aqi') or 0,
                'pm25_level': avg_pm25,
                'dominant_pollutant': 'PM2.5' if (avg_pm25 or 0) > 25 else 'Within limits',
            },
            'realtime_metrics': {
                'total_measurements': len(data['measurements']),
                'active_sources': len(data['data_sources']),
                'pollution_hotspots': len(hotspots),
                'active_alerts': len(alerts),
                'last_update': data['timestamp'],
            },
            'air_quality': {
                'pm25': {
                    'current': avg_pm25,
                    'max': summary.get('max_pm25'),
                    'min': summary.get('min_pm25'),
                    'status': summary.get('air_quality_status'),
                },
                'no2': {
                    'current': summary.get('avg_no2'),
                    'max': summary.get('max_no2'),
                },
                'aqi': {
                    'value': summary.get('aqi') or 0,
                    'category': summary.get('air_quality_status'),
                },
            },
            'hotspots_summary': {
                'total': len(hotspots),
                'by_severity': {
                    'critical': count(hotspot_props, 'severity', 'critical'),
                    'high': count(hotspot_props, 'severity', 'high'),
                    'moderate': count(hotspot_props, 'severity', 'moderate'),
                },
                'by_pollutant': {
                    'pm25': count(hotspot_props, 'pollutant', 'PM2.5'),
                    'no2': count(hotspot_props, 'pollutant', 'NO2'),
                    'o3': count(hotspot_props, 'pollutant', 'O3'),
                },
            },
            'alerts_summary': {
                'total': len(alerts),
                'by_severity': {
                    'critical': count(alerts, 'severity', 'critical'),
                    'high': count(alerts, 'severity', 'high'),
                    'medium': count(alerts, 'severity', 'medium'),
                },
                'latest_alert': alerts[0] if alerts else None,
            },
            'data_health': {
                'sources_active': len(data['data_sources']),
                'expected_sources': EXPECTED_SOURCES,
                'data_freshness': 'current' if data['measurements'] else 'unavailable',
                'coverage_completeness': min(len(data['data_sources']) / EXPECTED_SOURCES, 1) * 100,
                'warnings': data.get('warnings', []),
            },
            'quick_stats': {
                'air_quality_emoji': get_air_quality_emoji(summary.get('air_quality_status')),
                'health_message': get_health_message(avg_pm25),
                'trend_indicator': get_trend_indicator(avg_pm25),
                'recommendation': get_quick_recommendation(avg_pm25),
            },
        })


class RefreshView(generics.GenericAPIView):
    """
    POST /api/air/refresh/

    Drop the cached snapshot, fetch again and tell the dashboard room
    """
    serializer_class = CityQuerySerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        logger.info("Manual data refresh triggered")
        data = data_service.refresh(
            serializer.validated_data.get('city') or None,
            serializer.validated_data.get('country') or None,
        )

        broadcast_event(DATA_REFRESHED, {
            'location': data['location'],
            'timestamp': data['timestamp'],
            'measurements_count': len(data['measurements']),
            'sources_active': len(data['data_sources']),
            'message': 'Data refreshed successfully',
        })

        return Response({
            'success': True,
            'message': 'Data refreshed successfully',
            'timestamp': data['timestamp'],
            'measurements_count': len(data['measurements']),
            'sources_active': len(data['data_sources']),
            'cache_cleared': True,
        })


class LocationView(generics.GenericAPIView):
    """
    GET /api/air/location/?lat=<>&lon=<>&name=<>

    Single-point reading from WeatherAPI
    """
    serializer_class = LocationQuerySerializer

    def get(self, request, *args, **kwargs):
        if not request.query_params.get('lat') or not request.query_params.get('lon'):
            return Response(
                {'error': True, 'detail': 'Missing coordinates. Please provide lat and lon parameters.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        lat = serializer.validated_data['lat']
        lon = serializer.validated_data['lon']

        try:
            location = data_service.get_location_data(lat, lon, serializer.validated_data['name'])
        except ProviderNotConfigured as e:
            return Response(
                {'error': True, 'detail': str(e)},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )
        except ProviderError as e:
            logger.warning(f"Location lookup failed for ({lat}, {lon}): {e}")
            return Response(
                {'error': True, 'detail': 'Failed to fetch location data from external API.'},
                status=status.HTTP_502_BAD_GATEWAY
            )

        return Response({
            'success': True,
            'location': location,
            'metadata': {
                'source': 'WeatherAPI.com',
                'coordinates_provided': {'lat': lat, 'lon': lon},
                'timestamp': location['timestamp'],
            },
        })


class AnalyzeView(generics.GenericAPIView):
    """
    POST /api/air/analyze/

    Queue a hotspot analysis; progress is reported over the dashboard socket
    """
    serializer_class = AnalyzeRequestSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        analysis_id = f"analysis_{uuid.uuid4().hex[:12]}"
        started_at = _now()

        broadcast_event(ANALYSIS_STARTED, {
            'analysis_id': analysis_id,
            'status': 'processing',
            'timestamp': started_at,
        })

        run_hotspot_analysis.delay(
            analysis_id,
            serializer.validated_data.get('city') or None,
            serializer.validated_data.get('country') or None,
        )

        return Response({
            'analysis_id': analysis_id,
            'status': 'started',
            'message': 'Hotspot analysis initiated. Results will be sent via WebSocket.',
            'timestamp': started_at,
        }, status=status.HTTP_202_ACCEPTED)


# AI endpoints

class AIView(CityDataMixin, generics.GenericAPIView):
    throttle_classes = [AnonRateThrottle, ScopedRateThrottle]
    throttle_scope = 'ai'


class AIAnalysisView(AIView):
    """
    GET /api/ai/analysis/?city=<>&country=<>&analysis_depth=standard|comprehensive

    Model-written assessment of the current snapshot (rule-based when the
    model is unavailable)
    """
    serializer_class = AIAnalysisQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        depth = serializer.validated_data.get('analysis_depth', 'standard')

        data = self.get_city_data(serializer.validated_data)
        analysis = data_service.ai.generate_comprehensive_analysis(data, depth=depth)
        summary = data['summary']

        response = {
            'timestamp': _now(),
            'analysis_type': depth,
            'location': data['location'],
            'ai_insights': {
                'overall_assessment': analysis['assessment'],
                'risk_level': analysis['riskLevel'],
                'confidence_score': analysis['confidence'],
                'key_findings': analysis['keyFindings'],
                'trend_analysis': analysis['trends'],
                'source': analysis.get('source'),
            },
            'current_conditions': {
                'air_quality_index': summary.get('aqi') or 0,
                'air_quality_category': summary.get('air_quality_status'),
                'pm25_level': summary.get('avg_pm25'),
                'hotspot_count': len(data['hotspots']),
                'active_alerts': len(data['alerts']),
            },
            'predictions': {
                'next_6_hours': analysis['predictions'].get('short_term'),
                'next_24_hours': analysis['predictions'].get('daily'),
                'weekly_outlook': analysis['predictions'].get('weekly'),
                'seasonal_trends': analysis['predictions'].get('seasonal'),
            },
            'health_impact': {
                'immediate_risks': analysis['healthRisks'].get('immediate'),
                'vulnerable_populations': analysis['healthRisks'].get('vulnerable'),
                'recommended_precautions': analysis['healthRisks'].get('precautions'),
                'hospital_readiness': analysis['healthRisks'].get('hospitalAlert'),
            },
            'data_sources': data['data_sources'],
            'measurements_count': len(data['measurements']),
        }

        broadcast_event(AI_ANALYSIS_COMPLETE, {
            'risk_level': analysis['riskLevel'],
            'confidence': analysis['confidence'],
            'key_finding': analysis['keyFindings'][0] if analysis['keyFindings'] else None,
            'timestamp': response['timestamp'],
        })

        return Response(response)


class SmartHotspotsView(AIView):
    """
    GET /api/ai/smart-hotspots/?algorithm=dbscan|kmeans&sensitivity=low|medium|high
    """
    serializer_class = SmartHotspotsQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        algorithm = serializer.validated_data.get('algorithm', 'dbscan')

        data = self.get_city_data(serializer.validated_data)
        result = data_service.ai.detect_smart_hotspots(
            data['hotspots'],
            data['data_sources'],
            algorithm=algorithm,
            sensitivity=serializer.validated_data.get('sensitivity', 'medium'),
        )

        return Response({
            'type': 'FeatureCollection',
            'features': [
                {
                    'type': 'Feature',
                    'geometry': cluster['geometry'],
                    'properties': {
                        'cluster_id': cluster['id'],
                        'confidence': cluster['confidence'],
                        'severity': cluster['severity'],
                        'source_attribution': cluster['source_attribution'],
                        'pollutants': cluster.get('pollutants'),
                        'estimated_population_affected': CLUSTER_POPULATION.get(cluster['severity'], 50000),
                        'risk_factors': cluster['ai_analysis']['risk_factors'],
                        'intervention_priority': cluster['ai_analysis']['priority'],
                        'recommended_response': cluster['ai_analysis']['response'],
                        'peak_hours': cluster['temporal']['peak_hours'],
                        'trend_direction': cluster['temporal']['trend'],
                        'persistence_score': cluster['temporal']['persistence'],
                    },
                }
                for cluster in result['clusters']
            ],
            'metadata': {
                'algorithm_used': result['algorithm_used'],
                'total_clusters': len(result['clusters']),
                'detection_confidence': result['overall_confidence'],
                'data_sources': data['data_sources'],
                'source': result.get('source'),
                'analysis_timestamp': _now(),
            },
        })


class SmartRecommendationsView(AIView):
    """
    GET /api/ai/recommendations/?city=<>&country=<>
    """
    serializer_class = CityQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        data = self.get_city_data(serializer.validated_data)
        summary = data['summary']
        wind = [
            m['properties']['wind_speed'] for m in data['measurements']
            if m['properties'].get('wind_speed') is not None
        ]

        conditions = {
            'location': data['location'],
            'aqi': summary.get('aqi'),
            'avg_pm25': summary.get('avg_pm25'),
            'avg_no2': summary.get('avg_no2'),
            'avg_wind_speed': round(sum(wind) / len(wind), 1) if wind else None,
            'hotspot_count': len(data['hotspots']),
        }

        result = data_service.ai.generate_smart_recommendations(conditions)
        return Response({**result, 'current_conditions': conditions})
