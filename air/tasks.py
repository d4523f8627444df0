"""
Celery tasks for the dashboard refresh cycle and on-demand hotspot analysis
"""
import logging
from django.conf import settings
from django.utils import timezone
from celery import shared_task
from core.utils import generate_recommended_actions
from .broadcast import (
    broadcast_event,
    AUTO_REFRESH,
    CRITICAL_ALERT,
    ANALYSIS_COMPLETE,
    ANALYSIS_FAILED,
)
from .services import data_service

logger = logging.getLogger(__name__)


@shared_task(bind=True, name='air.tasks.auto_refresh_dashboard')
def auto_refresh_dashboard(self, city=None, country=None):
    """
    Periodic task (Celery beat, every AUTO_REFRESH_INTERVAL seconds) that
    rebuilds the city snapshot and pushes it to the dashboard room.

    This task:
    1. Drops the cached snapshot for the city
    2. Fetches every provider again
    3. Broadcasts auto_refresh with the new snapshot
    4. Broadcasts critical_alert when any alert is critical
    """
    city = city or settings.DEFAULT_CITY
    country = country or settings.DEFAULT_COUNTRY
    logger.info(f"Starting dashboard auto-refresh for {city}, {country}")

    try:
        data = data_service.refresh(city, country)

        broadcast_event(AUTO_REFRESH, data)

        critical = [a for a in data.get('alerts', []) if a.get('severity') == 'critical']
        if critical:
            logger.warning(f"{len(critical)} critical alert(s) for {city}")
            broadcast_event(CRITICAL_ALERT, {
                'alerts': critical,
                'timestamp': timezone.now().isoformat(),
            })

        logger.info(
            f"Auto-refresh complete: {len(data.get('measurements', []))} measurements, "
            f"{len(critical)} critical alerts"
        )
        return {
            'status': 'success',
            'message': f'Dashboard refreshed for {city}, {country}',
            'measurements': len(data.get('measurements', [])),
            'critical_alerts': len(critical),
            'timestamp': data.get('timestamp'),
        }

    except Exception as e:
        logger.error(f"Error in auto_refresh_dashboard task: {e}", exc_info=True)
        return {
            'status': 'error',
            'message': str(e),
            'measurements': 0,
            'critical_alerts': 0,
        }


@shared_task(bind=True, name='air.tasks.run_hotspot_analysis')
def run_hotspot_analysis(self, analysis_id, city=None, country=None):
    """
    Hotspot analysis queued by POST /api/air/analyze/

    Announces analysis_complete with the findings, or analysis_failed.
    """
    logger.info(f"Running hotspot analysis {analysis_id}")

    try:
        data = data_service.get_city_data(city, country)
        hotspots = data.get('hotspots', [])

        results = {
            'hotspots_found': len(hotspots),
            'priority_zones': len([h for h in hotspots if h['properties']['severity'] in ('high', 'critical')]),
            'critical_areas': [
                h['properties']['location_name'] for h in hotspots
                if h['properties']['severity'] == 'critical'
            ],
            'recommended_actions': generate_recommended_actions(data),
        }

        broadcast_event(ANALYSIS_COMPLETE, {
            'analysis_id': analysis_id,
            'results': results,
            'status': 'completed',
        })

        logger.info(f"Hotspot analysis {analysis_id} complete: {results['hotspots_found']} hotspots")
        return {
            'status': 'success',
            'analysis_id': analysis_id,
            'results': results,
        }

    except Exception as e:
        logger.error(f"Error in hotspot analysis {analysis_id}: {e}", exc_info=True)
        broadcast_event(ANALYSIS_FAILED, {
            'analysis_id': analysis_id,
            'status': 'failed',
            'error': str(e),
        })
        return {
            'status': 'error',
            'analysis_id': analysis_id,
            'message': str(e),
        }
