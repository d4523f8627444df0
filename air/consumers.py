"""
WebSocket consumer for the live dashboard room
"""
import json
import asyncio
import logging
from channels.generic.websocket import AsyncWebsocketConsumer
from django.utils import timezone
from .broadcast import (
    build_event,
    dashboard_group,
    group_message,
    DATA_UPDATE,
    DATA_REFRESHED,
)
from .cache import acquire_refresh_slot, increment_connected_clients, decrement_connected_clients
from .services import data_service

logger = logging.getLogger(__name__)


class DashboardConsumer(AsyncWebsocketConsumer):
    """
    Every client joins the shared dashboard room

    Message types from client:
    - ping: {type: 'ping'}
    - request_data_update: {type: 'request_data_update', city?: '...', country?: '...'}
    - request_refresh: {type: 'request_refresh', city?: '...', country?: '...'}

    Message types to client:
    - connection_status: welcome event sent on connect
    - pong: reply to ping
    - data_update: snapshot for this client
    - room events (auto_refresh, critical_alert, data_refreshed, ...)
    - error: {type: 'error', message: '...'}
    """

    async def connect(self):
        """Handle WebSocket connection"""
        self.group_name = dashboard_group()

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        clients = await asyncio.to_thread(increment_connected_clients)
        logger.info(f"Dashboard client connected: {self.channel_name} ({clients} connected)")

        await self.send_event('connection_status', {
            'status': 'connected',
            'room': self.group_name,
            'client_id': self.channel_name,
            'message': 'Connected to real-time air quality updates',
        })

    async def disconnect(self, close_code):
        """Handle WebSocket disconnection"""
        await self.channel_layer.group_discard(self.group_name, self.channel_name)
        clients = await asyncio.to_thread(decrement_connected_clients)
        logger.info(f"Dashboard client disconnected: {self.channel_name} (code {close_code}, {clients} connected)")

    async def receive(self, text_data=None, bytes_data=None):
        """Handle messages from WebSocket client"""
        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            await self.send_error('Invalid JSON format')
            return

        if not isinstance(data, dict):
            await self.send_error('Message must be a JSON object')
            return

        message_type = data.get('type')
        try:
            if message_type == 'ping':
                await self.send(text_data=json.dumps({'type': 'pong', 'timestamp': timezone.now().isoformat()}))
            elif message_type == 'request_data_update':
                await self.handle_data_update(data)
            elif message_type == 'request_refresh':
                await self.handle_refresh(data)
            else:
                await self.send_error(f'Unknown message type: {message_type}')
        except Exception as e:
            logger.error(f"Error handling WebSocket message: {e}", exc_info=True)
            await self.send_error('Failed to process message')

    async def handle_data_update(self, data):
        """Send the current snapshot to this client only"""
        city_data = await asyncio.to_thread(
            data_service.get_city_data,
            data.get('city'),
            data.get('country'),
        )
        await self.send_event(DATA_UPDATE, city_data)

    async def handle_refresh(self, data):
        """Rebuild the snapshot and announce it to the whole room"""
        if not await asyncio.to_thread(acquire_refresh_slot):
            await self.send_error('A refresh was requested recently; try again shortly')
            return

        city_data = await asyncio.to_thread(
            data_service.refresh,
            data.get('city'),
            data.get('country'),
        )
        await self.channel_layer.group_send(self.group_name, group_message(DATA_REFRESHED, city_data))

    async def dashboard_event(self, message):
        """Relay a room event (sent via broadcast_event) to the client"""
        await self.send(text_data=json.dumps(message['event'], default=str))

    async def send_event(self, event, data):
        await self.send(text_data=json.dumps(build_event(event, data), default=str))

    async def send_error(self, message):
        await self.send(text_data=json.dumps({'type': 'error', 'message': message}))
