"""
Tests for the dashboard WebSocket consumer
"""
import pytest
from asgiref.sync import sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from air.broadcast import abroadcast_event, AUTO_REFRESH, CRITICAL_ALERT, DATA_REFRESHED
from air.cache import get_connected_clients
from air.routing import websocket_urlpatterns
from air.tasks import auto_refresh_dashboard

application = URLRouter(websocket_urlpatterns)


async def connect():
    communicator = WebsocketCommunicator(application, '/ws/dashboard/')
    connected, _ = await communicator.connect()
    assert connected
    welcome = await communicator.receive_json_from()
    return communicator, welcome


@pytest.mark.websocket
@pytest.mark.asyncio
class TestDashboardConsumer:

    async def test_welcome_event(self):
        communicator, welcome = await connect()

        assert welcome['type'] == 'connection_status'
        assert welcome['data']['status'] == 'connected'
        assert welcome['data']['room'] == 'nairobi_dashboard'
        assert 'timestamp' in welcome

        await communicator.disconnect()

    async def test_connected_clients_are_counted(self):
        first, _ = await connect()
        second, _ = await connect()
        assert await sync_to_async(get_connected_clients)() == 2

        await first.disconnect()
        assert await sync_to_async(get_connected_clients)() == 1
        await second.disconnect()

    async def test_ping_pong(self):
        communicator, _ = await connect()

        await communicator.send_json_to({'type': 'ping'})
        response = await communicator.receive_json_from()

        assert response['type'] == 'pong'
        assert 'timestamp' in response
        await communicator.disconnect()

    async def test_invalid_json(self):
        communicator, _ = await connect()

        await communicator.send_to(text_data='not json')
        response = await communicator.receive_json_from()

        assert response == {'type': 'error', 'message': 'Invalid JSON format'}
        await communicator.disconnect()

    async def test_non_object_message(self):
        communicator, _ = await connect()

        await communicator.send_json_to([1, 2])
        response = await communicator.receive_json_from()

        assert response == {'type': 'error', 'message': 'Message must be a JSON object'}
        await communicator.disconnect()

    async def test_handler_error_is_not_reported_as_bad_json(self, mocker):
        mock_service = mocker.patch('air.consumers.data_service')
        mock_service.get_city_data.side_effect = ValueError('bad coordinates')
        communicator, _ = await connect()

        await communicator.send_json_to({'type': 'request_data_update'})
        response = await communicator.receive_json_from()

        assert response == {'type': 'error', 'message': 'Failed to process message'}
        await communicator.disconnect()

    async def test_unknown_message_type(self):
        communicator, _ = await connect()

        await communicator.send_json_to({'type': 'subscribe'})
        response = await communicator.receive_json_from()

        assert response['type'] == 'error'
        assert 'Unknown message type' in response['message']
        await communicator.disconnect()

    async def test_request_data_update_goes_to_requester_only(self, mocker, city_data):
        mock_service = mocker.patch('air.consumers.data_service')
        mock_service.get_city_data.return_value = city_data
        requester, _ = await connect()
        bystander, _ = await connect()

        await requester.send_json_to({'type': 'request_data_update', 'city': 'Nairobi'})
        response = await requester.receive_json_from()

        assert response['type'] == 'data_update'
        assert response['data']['location'] == 'Nairobi, Kenya'
        mock_service.get_city_data.assert_called_once_with('Nairobi', None)
        assert await bystander.receive_nothing()

        await requester.disconnect()
        await bystander.disconnect()

    async def test_request_refresh_reaches_whole_room(self, mocker, city_data):
        mock_service = mocker.patch('air.consumers.data_service')
        mock_service.refresh.return_value = city_data
        requester, _ = await connect()
        bystander, _ = await connect()

        await requester.send_json_to({'type': 'request_refresh'})

        for communicator in (requester, bystander):
            event = await communicator.receive_json_from()
            assert event['type'] == DATA_REFRESHED
            assert event['data']['summary']['avg_pm25'] == 55.0

        await requester.disconnect()
        await bystander.disconnect()

    async def test_request_refresh_cooldown(self, mocker, city_data):
        mock_service = mocker.patch('air.consumers.data_service')
        mock_service.refresh.return_value = city_data
        first, _ = await connect()
        second, _ = await connect()

        await first.send_json_to({'type': 'request_refresh'})
        assert (await first.receive_json_from())['type'] == DATA_REFRESHED
        assert (await second.receive_json_from())['type'] == DATA_REFRESHED

        await second.send_json_to({'type': 'request_refresh'})
        response = await second.receive_json_from()

        assert response['type'] == 'error'
        assert 'try again shortly' in response['message']
        assert mock_service.refresh.call_count == 1
        assert await first.receive_nothing()

        await first.disconnect()
        await second.disconnect()

    async def test_room_event_is_relayed(self):
        communicator, _ = await connect()

        await abroadcast_event(CRITICAL_ALERT, {'alerts': [{'severity': 'critical'}]})
        event = await communicator.receive_json_from()

        assert event['type'] == CRITICAL_ALERT
        assert event['data']['alerts'][0]['severity'] == 'critical'
        await communicator.disconnect()

    async def test_auto_refresh_task_reaches_clients(self, mocker, city_data):
        mock_service = mocker.patch('air.tasks.data_service')
        mock_service.refresh.return_value = city_data
        communicator, _ = await connect()

        result = await sync_to_async(auto_refresh_dashboard)()

        assert result['status'] == 'success'
        refresh = await communicator.receive_json_from()
        assert refresh['type'] == AUTO_REFRESH
        assert len(refresh['data']['measurements']) == 2
        alert = await communicator.receive_json_from()
        assert alert['type'] == CRITICAL_ALERT

        await communicator.disconnect()
