"""
Pytest configuration and shared fixtures
"""
import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from tests.utils.test_helpers import make_city_data, make_hotspot, make_measurement


@pytest.fixture
def api_client():
    """Create an API client for testing"""
    return APIClient()


@pytest.fixture(autouse=True)
def air_settings(settings):
    """
    Provider keys off, no sleeping between requests, AI disabled

    Tests that need a provider set its key explicitly.
    """
    settings.WEATHERAPI_KEY = ''
    settings.OPENAQ_API_KEY = ''
    settings.IQAIR_API_KEY = ''
    settings.WAQI_TOKEN = ''
    settings.OPENROUTER_API_KEY = ''
    settings.AI_ENABLED = False
    settings.WEATHERAPI_POINT_DELAY = 0
    settings.AIR_FETCH_RETRY_DELAY = 0
    settings.AIR_FETCH_RETRIES = 2
    settings.DEFAULT_CITY = 'Nairobi'
    settings.DEFAULT_COUNTRY = 'Kenya'
    settings.CHANNEL_LAYERS = {'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'}}
    return settings


@pytest.fixture(autouse=True)
def clear_test_cache():
    """Every test starts with an empty cache (data, counters and throttle history)"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def enable_db_access_for_all_tests(db):
    """Enable database access for all tests"""
    pass


@pytest.fixture
def city_data():
    """Snapshot with one critical and one high hotspot"""
    return make_city_data(
        measurements=[
            make_measurement('Nairobi CBD', pm25=62.0, no2=45.0, wind_speed=1.5),
            make_measurement('Nairobi West', lat=-1.2721, lon=36.8019, pm25=48.0, wind_speed=2.5),
        ],
        hotspots=[
            make_hotspot('Nairobi CBD', severity='critical', value=62.0),
            make_hotspot('Nairobi West', severity='high', value=48.0, lat=-1.2721, lon=36.8019),
            make_hotspot('Nairobi CBD', severity='moderate', value=45.0, pollutant='NO2'),
        ],
        alerts=[{
            'id': 'alert_pm25_1',
            'type': 'health_emergency',
            'severity': 'critical',
            'message': 'Very unhealthy air quality: PM2.5 at 55.0 μg/m³',
            'threshold': 55,
            'current_value': 55.0,
            'affected_area': 'City-wide',
            'timestamp': '2025-01-15T10:00:00+00:00',
            'actions': ['Stay indoors'],
        }],
        summary={
            'total_measurements': 2,
            'active_sources': ['WeatherAPI.com'],
            'avg_pm25': 55.0,
            'max_pm25': 62.0,
            'min_pm25': 48.0,
            'aqi': 149,
            'air_quality_status': 'Unhealthy for Sensitive Groups',
            'unhealthy_readings': 2,
            'avg_no2': 45.0,
            'max_no2': 45.0,
        },
    )


@pytest.fixture
def mock_city_data(mocker, city_data):
    """Patch the shared data service so views never hit providers"""
    return mocker.patch('air.services.data_service.get_city_data', return_value=city_data)


@pytest.fixture
def mock_broadcast(mocker):
    """Capture dashboard broadcasts from the HTTP views"""
    air_mock = mocker.patch('air.views.broadcast_event', return_value=True)
    policy_mock = mocker.patch('policy.views.broadcast_event', return_value=True)
    return {'air': air_mock, 'policy': policy_mock}
