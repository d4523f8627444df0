"""
Operational endpoints: health, cache control, provider connectivity and the API index
"""
import time
import logging
from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from core.utils import generate_api_recommendations
from .cache import clear_cache, get_cache_stats, get_connected_clients
from .services import data_service

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


def _api_status(configured, missing='optional'):
    return 'configured' if configured else missing


class HealthView(APIView):
    """
    GET /health/

    Liveness plus configuration flags for every external service
    """
    throttle_classes = []

    def get(self, request, *args, **kwargs):
        try:
            providers = data_service.providers
            ai_configured = bool(getattr(settings, 'OPENROUTER_API_KEY', ''))
            cache_stats = get_cache_stats()

            return Response({
                'status': 'healthy',
                'timestamp': timezone.now().isoformat(),
                'version': settings.APP_VERSION,
                'mode': settings.APP_MODE,
                'environment': settings.ENVIRONMENT,
                'uptime': int(time.monotonic() - STARTED_AT),
                'services': {
                    'cache': {
                        'status': 'active',
                        'keys_count': cache_stats['keys_count'],
                        'hits': cache_stats['hits'],
                        'misses': cache_stats['misses'],
                        'ttl': cache_stats['ttl'],
                    },
                    'websocket': {
                        'status': 'active',
                        'connected_clients': get_connected_clients(),
                    },
                    'apis': {
                        'weatherapi': _api_status(providers['weatherapi'].is_configured, 'not_configured'),
                        'openaq': _api_status(providers['openaq'].is_configured),
                        'iqair': _api_status(providers['iqair'].is_configured),
                        'waqi': _api_status(providers['waqi'].is_configured),
                        'openrouter': _api_status(ai_configured, 'ai_disabled'),
                    },
                },
                'features': {
                    'database_required': False,
                    'real_time_apis': True,
                    'ai_analysis': ai_configured,
                    'caching': True,
                    'websockets': True,
                },
            })
        except Exception as e:
            logger.error(f"Health check error: {e}", exc_info=True)
            return Response(
                {
                    'status': 'unhealthy',
                    'error': str(e),
                    'timestamp': timezone.now().isoformat(),
                },
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )


class CacheClearView(APIView):
    """
    POST /api/cache/clear/
    """

    def post(self, request, *args, **kwargs):
        result = clear_cache()
        return Response({**result, 'timestamp': timezone.now().isoformat()})


class TestAPIsView(APIView):
    """
    GET /api/test-apis/

    Ping every configured provider and suggest fixes for the ones that fail
    """

    def get(self, request, *args, **kwargs):
        logger.info("Testing provider connectivity")

        providers = data_service.providers
        results = {name: client.ping() for name, client in providers.items()}

        working = len([ok for ok in results.values() if ok])
        configured = len([client for client in providers.values() if client.is_configured])

        return Response({
            'success': working > 0,
            'apis_tested': results,
            'summary': {
                'working_apis': working,
                'total_configured': configured,
                'success_rate': f"{round(working / configured * 100)}%" if configured else '0%',
            },
            'recommendations': generate_api_recommendations(results),
            'timestamp': timezone.now().isoformat(),
        })


class APIIndexView(APIView):
    """
    GET /
    """
    throttle_classes = []

    def get(self, request, *args, **kwargs):
        return Response({
            'message': 'AirWatch Air Quality API',
            'description': 'Live air quality from multiple providers with AI analysis and policy tracking',
            'version': settings.APP_VERSION,
            'mode': settings.APP_MODE,
            'endpoints': {
                'core': {
                    'city_data': 'GET /api/air/data/?city=Nairobi&country=Kenya',
                    'measurements': 'GET /api/air/measurements/',
                    'hotspots': 'GET /api/air/hotspots/',
                    'alerts': 'GET /api/air/alerts/',
                    'dashboard': 'GET /api/air/dashboard/',
                    'location': 'GET /api/air/location/?lat=-1.29&lon=36.82',
                },
                'ai_powered': {
                    'ai_analysis': 'GET /api/ai/analysis/',
                    'smart_hotspots': 'GET /api/ai/smart-hotspots/',
                    'recommendations': 'GET /api/ai/recommendations/',
                },
                'policy': {
                    'recommendations': 'GET /api/policy/recommendations/',
                    'update_status': 'PATCH /api/policy/recommendations/<id>/',
                    'simulate': 'POST /api/policy/simulate/',
                    'alerts': 'GET /api/policy/alerts/',
                    'dashboard': 'GET /api/policy/dashboard/',
                },
                'utilities': {
                    'refresh_data': 'POST /api/air/refresh/',
                    'analyze': 'POST /api/air/analyze/',
                    'clear_cache': 'POST /api/cache/clear/',
                    'test_apis': 'GET /api/test-apis/',
                    'health': 'GET /health/',
                },
            },
            'data_sources': [
                'WeatherAPI.com (air quality + weather)',
                'OpenAQ (global monitoring network)',
                'IQAir (AirVisual)',
                'WAQI (World Air Quality Index)',
            ],
            'websocket': {
                'endpoint': '/ws/dashboard/',
                'room': settings.DASHBOARD_GROUP,
                'events': [
                    'connection_status', 'data_update', 'auto_refresh', 'critical_alert',
                    'ai_analysis_complete', 'data_refreshed', 'analysis_started',
                    'analysis_complete', 'simulation_complete', 'policy_status_update',
                ],
            },
        })
