"""
Server-side events pushed to every dashboard socket

All events share one envelope: {"type": <event>, "data": ..., "timestamp": ...}
"""
import logging
from typing import Any, Dict, Optional
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

# Handler name on DashboardConsumer ('dashboard.event' -> dashboard_event)
GROUP_MESSAGE_TYPE = 'dashboard.event'

DATA_UPDATE = 'data_update'
AUTO_REFRESH = 'auto_refresh'
CRITICAL_ALERT = 'critical_alert'
AI_ANALYSIS_COMPLETE = 'ai_analysis_complete'
DATA_REFRESHED = 'data_refreshed'
ANALYSIS_STARTED = 'analysis_started'
ANALYSIS_COMPLETE = 'analysis_complete'
ANALYSIS_FAILED = 'analysis_failed'
SIMULATION_COMPLETE = 'simulation_complete'
POLICY_STATUS_UPDATE = 'policy_status_update'


def dashboard_group() -> str:
    return getattr(settings, 'DASHBOARD_GROUP', 'nairobi_dashboard')


def build_event(event: str, data: Any, timestamp: Optional[str] = None) -> Dict[str, Any]:
    return {
        'type': event,
        'data': data,
        'timestamp': timestamp or timezone.now().isoformat(),
    }


def group_message(event: str, data: Any) -> Dict[str, Any]:
    return {'type': GROUP_MESSAGE_TYPE, 'event': build_event(event, data)}


async def abroadcast_event(event: str, data: Any) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning(f"No channel layer configured; dropping {event}")
        return
    await channel_layer.group_send(dashboard_group(), group_message(event, data))


def broadcast_event(event: str, data: Any) -> bool:
    """
    Send an event to the dashboard room from synchronous code

    Returns:
        True if the event was handed to the channel layer
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning(f"No channel layer configured; dropping {event}")
        return False

    try:
        async_to_sync(channel_layer.group_send)(dashboard_group(), group_message(event, data))
    except Exception as e:
        # A dead broker must not fail the HTTP request that triggered the event
        logger.error(f"Failed to broadcast {event}: {e}", exc_info=True)
        return False

    logger.debug(f"Broadcast {event} to {dashboard_group()}")
    return True
