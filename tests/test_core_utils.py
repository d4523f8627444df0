"""
Tests for core utility functions
"""
import pytest
import requests
import responses
from core.utils import (
    GEOCODING_URL,
    geocode_city,
    calculate_epa_aqi,
    get_aqi_category,
    get_health_advisory,
    get_severity_level,
    get_air_quality_emoji,
    get_health_message,
    get_trend_indicator,
    get_quick_recommendation,
    generate_recommended_actions,
    generate_api_recommendations,
)
from tests.utils.test_helpers import make_city_data, make_hotspot


class TestGeocodeCity:
    """Test geocode_city function"""

    @responses.activate
    def test_geocode_city_valid(self):
        responses.add(
            responses.GET,
            GEOCODING_URL,
            json={'results': [{'name': 'Kampala', 'latitude': 0.3476, 'longitude': 32.5825}]},
            status=200
        )

        result = geocode_city('Kampala')

        assert result == (0.3476, 32.5825)

    @responses.activate
    def test_geocode_city_not_found(self):
        responses.add(responses.GET, GEOCODING_URL, json={'generationtime_ms': 0.5}, status=200)

        assert geocode_city('InvalidCity123') is None

    @responses.activate
    def test_geocode_city_network_error(self):
        responses.add(responses.GET, GEOCODING_URL, body=requests.exceptions.ConnectionError('down'))

        assert geocode_city('Kampala') is None

    @responses.activate
    def test_geocode_city_malformed_payload(self):
        responses.add(responses.GET, GEOCODING_URL, json={'results': [{'name': 'Kampala'}]}, status=200)
        assert geocode_city('Kampala') is None

    @responses.activate
    def test_geocode_city_non_json_body(self):
        responses.add(responses.GET, GEOCODING_URL, body='<html>busy</html>', status=200)
        assert geocode_city('Kampala') is None


class TestCalculateEPAAQI:
    """Test EPA AQI calculation"""

    def test_pm25_band_edges(self):
        assert calculate_epa_aqi('pm25', 0) == 0
        assert calculate_epa_aqi('pm25', 12.0) == 50
        assert calculate_epa_aqi('pm25', 35.4) == 100
        assert calculate_epa_aqi('pm25', 55.4) == 150

    def test_pm25_interpolation(self):
        # (100 - 51) / (35.4 - 12.1) * (25 - 12.1) + 51 = 78.1
        assert calculate_epa_aqi('pm25', 25.0) == 78

    def test_value_between_breakpoints_uses_upper_band(self):
        assert calculate_epa_aqi('pm25', 12.05) == 51
        assert calculate_epa_aqi('pm10', 54.5) == 51

    def test_above_table_is_500(self):
        assert calculate_epa_aqi('pm25', 900) == 500

    def test_invalid_inputs(self):
        assert calculate_epa_aqi('pm25', None) is None
        assert calculate_epa_aqi('pm25', -1) is None
        assert calculate_epa_aqi('benzene', 10) is None

    def test_pollutant_name_is_case_insensitive(self):
        assert calculate_epa_aqi('PM25', 12.0) == 50


class TestAQICategory:

    @pytest.mark.parametrize('aqi,category', [
        (25, 'Good'),
        (75, 'Moderate'),
        (125, 'Unhealthy for Sensitive Groups'),
        (175, 'Unhealthy'),
        (250, 'Very Unhealthy'),
        (400, 'Hazardous'),
        (None, 'Unknown'),
    ])
    def test_categories(self, aqi, category):
        assert get_aqi_category(aqi)['category'] == category

    def test_category_has_color_and_advice(self):
        result = get_aqi_category(40)
        assert result['color'] == '#00E400'
        assert result['health_advice']


class TestHealthAdvisory:

    def test_unknown_without_status(self):
        assert get_health_advisory({})['level'] == 'unknown'
        assert get_health_advisory({'air_quality_status': 'Data Unavailable'})['level'] == 'unknown'

    @pytest.mark.parametrize('aqi,level', [
        (40, 'good'),
        (90, 'moderate'),
        (140, 'unhealthy_sensitive'),
        (180, 'unhealthy'),
        (260, 'very_unhealthy'),
    ])
    def test_levels(self, aqi, level):
        advisory = get_health_advisory({'aqi': aqi, 'air_quality_status': 'Any'})
        assert advisory['level'] == level
        assert advisory['precautions']


class TestDashboardHelpers:

    @pytest.mark.parametrize('pm25,severity', [
        (None, 'unknown'),
        (10, 'good'),
        (20, 'moderate'),
        (30, 'unhealthy_sensitive'),
        (50, 'unhealthy'),
        (100, 'very_unhealthy'),
        (200, 'hazardous'),
    ])
    def test_severity_level(self, pm25, severity):
        assert get_severity_level(pm25) == severity

    def test_emoji(self):
        assert get_air_quality_emoji('Good') == '😊'
        assert get_air_quality_emoji('Hazardous') == '❓'
        assert get_air_quality_emoji(None) == '❓'

    def test_health_message_and_recommendation(self):
        assert get_health_message(None) == 'Air quality data unavailable'
        assert get_health_message(60) == 'Avoid outdoor activities. Health alert in effect.'
        assert get_quick_recommendation(10) == 'Great day for outdoor activities!'
        assert get_quick_recommendation(60) == 'Stay indoors and avoid outdoor activities'

    def test_trend_indicator(self):
        assert get_trend_indicator(None) == 'stable'
        assert get_trend_indicator(40) == 'worsening'
        assert get_trend_indicator(20) == 'improving'
        assert get_trend_indicator(30) == 'stable'


class TestRecommendedActions:

    def test_clean_air(self):
        data = make_city_data(summary={'avg_pm25': 12.0})
        assert generate_recommended_actions(data) == [
            'Continue routine monitoring and public awareness campaigns'
        ]

    def test_very_polluted_with_critical_hotspot(self):
        data = make_city_data(
            summary={'avg_pm25': 70.0},
            hotspots=[make_hotspot(severity='critical', value=70.0)],
        )
        actions = generate_recommended_actions(data)

        assert 'Issue public health advisory for sensitive groups' in actions
        assert 'Consider implementing traffic restrictions in high-pollution areas' in actions
        assert any('mobile monitoring' in a for a in actions)

    def test_no_data(self):
        data = make_city_data(measurements=[], summary={'avg_pm25': None})
        assert generate_recommended_actions(data) == ['No specific actions recommended at this time']


class TestAPIRecommendations:

    def test_missing_weatherapi_is_high_priority(self):
        recs = generate_api_recommendations({'weatherapi': False, 'openaq': True, 'iqair': False, 'waqi': False})
        assert [r['priority'] for r in recs] == ['high']

    def test_no_secondary_sources(self):
        recs = generate_api_recommendations({'weatherapi': True, 'openaq': False, 'iqair': False, 'waqi': False})
        assert [r['priority'] for r in recs] == ['medium']

    def test_nothing_working(self):
        recs = generate_api_recommendations({'weatherapi': False, 'openaq': False, 'iqair': False, 'waqi': False})
        assert [r['priority'] for r in recs] == ['high', 'medium', 'critical']

    def test_all_working(self):
        recs = generate_api_recommendations({'weatherapi': True, 'openaq': True, 'iqair': True, 'waqi': True})
        assert recs == []
