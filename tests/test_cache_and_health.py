"""
Tests for cache helpers and the operational endpoints
"""
import pytest
from django.core.cache import cache
from rest_framework import status
from air.cache import (
    CLIENTS_KEY,
    REGISTRY_KEY,
    acquire_refresh_slot,
    current_generation,
    storage_key,
    city_cache_key,
    generate_cache_key,
    get_cached,
    set_cached,
    clear_cache,
    get_cache_stats,
    get_live_keys,
    increment_connected_clients,
    decrement_connected_clients,
    get_connected_clients,
)


@pytest.mark.air
class TestCacheHelpers:

    def test_cache_key_format(self):
        assert city_cache_key('Nairobi', 'Kenya') == 'air:nairobi:kenya:complete_data'
        assert generate_cache_key('New York', 'United States') == 'air:new_york:united_states'

    def test_long_keys_are_hashed(self):
        key = generate_cache_key('x' * 300)
        assert len(key) < 250
        assert key.startswith('air:')

    def test_hits_and_misses(self):
        key = city_cache_key('Nairobi', 'Kenya')

        assert get_cached(key) is None
        set_cached(key, {'value': 1})
        assert get_cached(key) == {'value': 1}

        stats = get_cache_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['keys'] == [key]
        assert stats['ttl'] == 900

    def test_clear_removes_data_keys_only(self):
        set_cached(city_cache_key('Nairobi', 'Kenya'), {'value': 1})
        set_cached(city_cache_key('London', 'United Kingdom'), {'value': 2})
        increment_connected_clients()

        result = clear_cache()

        assert result['success'] is True
        assert result['keys_removed'] == 2
        assert get_live_keys() == []
        assert get_cached(city_cache_key('Nairobi', 'Kenya')) is None
        assert cache.get(CLIENTS_KEY) == 1

    def test_expired_keys_are_not_listed(self):
        set_cached(city_cache_key('Nairobi', 'Kenya'), {'value': 1})
        cache.delete(storage_key(city_cache_key('Nairobi', 'Kenya')))

        assert get_live_keys() == []

    def test_clear_drops_entries_missing_from_registry(self):
        nairobi = city_cache_key('Nairobi', 'Kenya')
        london = city_cache_key('London', 'United Kingdom')
        set_cached(nairobi, {'value': 1})
        set_cached(london, {'value': 2})
        # A concurrent writer overwrote the registry and lost the Nairobi entry
        cache.set(f'{REGISTRY_KEY}:g{current_generation()}', [london], timeout=None)

        clear_cache()

        assert get_cached(nairobi) is None
        assert get_cached(london) is None

    def test_clear_bumps_generation(self):
        generation = current_generation()
        set_cached(city_cache_key('Nairobi', 'Kenya'), {'value': 1})

        clear_cache()

        assert current_generation() == generation + 1
        set_cached(city_cache_key('Nairobi', 'Kenya'), {'value': 2})
        assert get_cached(city_cache_key('Nairobi', 'Kenya')) == {'value': 2}

    def test_refresh_slot_cooldown(self):
        assert acquire_refresh_slot(cooldown=30) is True
        assert acquire_refresh_slot(cooldown=30) is False
        assert acquire_refresh_slot(cooldown=0) is True

    def test_connected_clients_counter(self):
        assert get_connected_clients() == 0
        assert increment_connected_clients() == 1
        assert increment_connected_clients() == 2
        assert decrement_connected_clients() == 1
        assert decrement_connected_clients() == 0
        assert decrement_connected_clients() == 0


@pytest.mark.air
class TestHealthEndpoint:

    def test_health_reports_unconfigured_services(self, api_client):
        response = api_client.get('/health/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'healthy'
        assert response.data['version'] == '2.0.0'
        assert response.data['services']['apis'] == {
            'weatherapi': 'not_configured',
            'openaq': 'optional',
            'iqair': 'optional',
            'waqi': 'optional',
            'openrouter': 'ai_disabled',
        }
        assert response.data['features']['ai_analysis'] is False

    def test_health_reports_configured_services(self, api_client, settings):
        settings.WEATHERAPI_KEY = 'w-key'
        settings.WAQI_TOKEN = 'waqi-token'
        settings.OPENROUTER_API_KEY = 'or-key'

        response = api_client.get('/health/')

        apis = response.data['services']['apis']
        assert apis['weatherapi'] == 'configured'
        assert apis['waqi'] == 'configured'
        assert apis['iqair'] == 'optional'
        assert apis['openrouter'] == 'configured'
        assert response.data['features']['ai_analysis'] is True

    def test_health_counts_cache_keys_and_clients(self, api_client):
        key = city_cache_key('Nairobi', 'Kenya')
        get_cached(key)
        set_cached(key, {'value': 1})
        get_cached(key)
        get_cached(key)
        increment_connected_clients()

        response = api_client.get('/health/')

        cache_service = response.data['services']['cache']
        assert cache_service['keys_count'] == 1
        assert cache_service['hits'] == 2
        assert cache_service['misses'] == 1
        assert cache_service['ttl'] == 900
        assert response.data['services']['websocket']['connected_clients'] == 1

    def test_health_failure_is_503(self, api_client, mocker):
        mocker.patch('air.utility_views.get_cache_stats', side_effect=RuntimeError('cache down'))

        response = api_client.get('/health/')

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['status'] == 'unhealthy'


@pytest.mark.air
class TestCacheClearEndpoint:

    def test_clear_empties_store(self, api_client):
        set_cached(city_cache_key('Nairobi', 'Kenya'), {'value': 1})
        set_cached(city_cache_key('Paris', 'France'), {'value': 2})

        response = api_client.post('/api/cache/clear/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['message'] == 'Cache cleared successfully'
        assert get_live_keys() == []
        assert get_cached(city_cache_key('Paris', 'France')) is None

        health = api_client.get('/health/')
        assert health.data['services']['cache']['keys_count'] == 0

    def test_get_not_allowed(self, api_client):
        response = api_client.get('/api/cache/clear/')
        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED


@pytest.mark.air
class TestTestAPIsEndpoint:

    def test_nothing_configured(self, api_client):
        response = api_client.get('/api/test-apis/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is False
        assert response.data['apis_tested'] == {
            'weatherapi': False, 'openaq': False, 'iqair': False, 'waqi': False,
        }
        assert response.data['summary']['success_rate'] == '0%'
        assert [r['priority'] for r in response.data['recommendations']] == ['high', 'medium', 'critical']

    def test_partial_connectivity(self, api_client, settings, mocker):
        settings.WEATHERAPI_KEY = 'w-key'
        settings.WAQI_TOKEN = 'waqi-token'
        mocker.patch('air.providers.WeatherAPIClient.ping', return_value=True)
        mocker.patch('air.providers.WAQIClient.ping', return_value=False)

        response = api_client.get('/api/test-apis/')

        assert response.data['success'] is True
        assert response.data['summary']['working_apis'] == 1
        assert response.data['summary']['total_configured'] == 2
        assert response.data['summary']['success_rate'] == '50%'


class TestRootAndErrors:

    def test_api_index(self, api_client):
        response = api_client.get('/')

        assert response.status_code == status.HTTP_200_OK
        assert '/api/air/' in response.data['endpoints']['core']['city_data']
        assert response.data['websocket']['endpoint'] == '/ws/dashboard/'

    def test_unknown_route_is_json_404(self, client, settings):
        settings.DEBUG = False

        response = client.get('/no/such/route/')

        assert response.status_code == 404
        body = response.json()
        assert body['error'] is True
        assert body['available_routes']['health'] == '/health/'
