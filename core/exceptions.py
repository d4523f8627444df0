"""
Custom exception handlers for DRF and Django
"""
import logging
from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status

logger = logging.getLogger(__name__)

AVAILABLE_ROUTES = {
    'health': '/health/',
    'air_quality': '/api/air/*',
    'ai': '/api/ai/*',
    'policy': '/api/policy/*',
    'websocket': '/ws/dashboard/',
}


class ProviderNotConfigured(Exception):
    """Raised when an operation needs a provider key that is not set"""


def custom_exception_handler(exc, context):
    """
    Custom exception handler that formats errors consistently

    Errors DRF knows about keep their status code. Anything else is logged
    with its traceback and reported as a 500 whose message is hidden unless
    DEBUG is on.
    """
    response = exception_handler(exc, context)

    if response is None:
        request = context.get('request')
        path = request.path if request is not None else None
        logger.error(f"Unhandled error on {path}: {exc}", exc_info=exc)

        return Response(
            {
                'error': True,
                'detail': str(exc) if settings.DEBUG else 'Internal server error',
                'timestamp': timezone.now().isoformat(),
                'path': path,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    custom_response_data = {'error': True}

    if isinstance(response.data, dict):
        if 'detail' in response.data:
            custom_response_data['detail'] = response.data['detail']
        elif 'non_field_errors' in response.data:
            custom_response_data['detail'] = response.data['non_field_errors']
        else:
            custom_response_data['detail'] = response.data
    else:
        custom_response_data['detail'] = response.data

    response.data = custom_response_data
    return response


def handler404(request, exception=None):
    """JSON 404 for routes outside the API"""
    return JsonResponse(
        {
            'error': True,
            'detail': 'Route not found',
            'path': request.path,
            'available_routes': AVAILABLE_ROUTES,
        },
        status=404
    )


def handler500(request):
    """JSON 500 for errors raised outside DRF views"""
    return JsonResponse(
        {
            'error': True,
            'detail': 'Internal server error',
            'timestamp': timezone.now().isoformat(),
            'path': request.path,
        },
        status=500
    )
