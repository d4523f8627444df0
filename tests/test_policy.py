"""
Tests for policy recommendations, simulations and zone alerts
"""
import pytest
from rest_framework import status
from air.broadcast import POLICY_STATUS_UPDATE, SIMULATION_COMPLETE
from policy.models import PolicyRecommendation
from policy.services import (
    simulate_policy_impact,
    build_zone_alerts,
    get_policy_stats,
    get_alert_stats,
)
from tests.utils.test_helpers import make_hotspot


@pytest.fixture
def cbd_policy():
    return PolicyRecommendation.objects.get(zone_id='NBO_CBD_01')


@pytest.mark.policy
class TestSeededRecommendations:

    def test_pilot_zones_are_seeded(self):
        assert list(PolicyRecommendation.objects.values_list('zone_id', flat=True)) == [
            'NBO_CBD_01', 'NBO_IND_01', 'NBO_DAN_01',
        ]

    def test_str(self, cbd_policy):
        assert str(cbd_policy) == 'Peak-Hour Vehicle Restrictions (CBD) (NBO_CBD_01) - pending'


@pytest.mark.policy
class TestSimulation:

    def test_default_baseline(self, cbd_policy):
        results = simulate_policy_impact(cbd_policy)

        assert results['baseline_pm25'] == 45.2
        assert results['projected_pm25'] == 32.3
        assert results['impact_percent'] == 28.5
        assert results['health_benefits']['avoided_deaths'] == 1
        assert results['health_benefits']['avoided_hospital_visits'] == 34
        assert results['health_benefits']['economic_benefit_usd'] == pytest.approx(138225, abs=1)
        assert results['implementation_timeline'] == {
            'preparation_days': 15,
            'rollout_days': 30,
            'full_effect_days': 90,
        }
        assert results['confidence_level'] == 0.78

    def test_custom_baseline(self, cbd_policy):
        results = simulate_policy_impact(cbd_policy, baseline_pm25=60.0)

        assert results['baseline_pm25'] == 60.0
        assert results['projected_pm25'] == 42.9

    def test_baseline_from_settings(self, cbd_policy, settings):
        settings.POLICY_BASELINE_PM25 = 100.0
        assert simulate_policy_impact(cbd_policy)['projected_pm25'] == 71.5


@pytest.mark.policy
class TestZoneAlerts:

    def test_high_and_critical_only_critical_first(self, city_data):
        alerts = build_zone_alerts(city_data['hotspots'])

        assert [(a['id'], a['zone_name'], a['alert_type']) for a in alerts] == [
            (1, 'Nairobi CBD', 'pollution_spike'),
            (2, 'Nairobi West', 'policy_trigger'),
        ]
        assert alerts[0]['message'] == 'Very unhealthy air quality detected in Nairobi CBD - PM2.5: 62.0 μg/m³'
        assert alerts[0]['pm25_level'] == 62.0
        assert alerts[0]['status'] == 'active'
        assert alerts[1]['recommended_actions'][0] == 'Notify zone health officers'

    def test_ranked_by_value_within_severity(self):
        alerts = build_zone_alerts([
            make_hotspot('A', severity='high', value=40.0),
            make_hotspot('B', severity='high', value=50.0),
            make_hotspot('C', severity='critical', value=90.0, pollutant='NO2'),
        ])

        assert [a['zone_name'] for a in alerts] == ['C', 'B', 'A']
        assert alerts[0]['pm25_level'] is None

    def test_alert_stats(self, city_data):
        stats = get_alert_stats(build_zone_alerts(city_data['hotspots']) + city_data['alerts'])
        assert stats == {'critical': 2, 'high': 1, 'medium': 0, 'low': 0}


@pytest.mark.policy
class TestPolicyStats:

    def test_grouped_by_status(self):
        stats = get_policy_stats()

        assert stats == {
            'approved': {'count': 1, 'avg_impact': 18.2},
            'in_progress': {'count': 1, 'avg_impact': 42.0},
            'pending': {'count': 1, 'avg_impact': 28.5},
        }


@pytest.mark.policy
class TestRecommendationListEndpoint:

    def test_list_all(self, api_client):
        response = api_client.get('/api/policy/recommendations/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['metadata']['total'] == 3
        first = response.data['recommendations'][0]
        assert first['zone_id'] == 'NBO_CBD_01'
        assert first['cost_estimate'] == 8200.0

    def test_filter_by_priority(self, api_client):
        response = api_client.get('/api/policy/recommendations/', {'priority': 'high'})

        assert [r['zone_id'] for r in response.data['recommendations']] == ['NBO_CBD_01', 'NBO_DAN_01']
        assert response.data['metadata']['filters']['priority'] == 'high'

    def test_filter_by_status_and_limit(self, api_client):
        approved = api_client.get('/api/policy/recommendations/', {'status': 'approved'})
        limited = api_client.get('/api/policy/recommendations/', {'status': 'all', 'limit': 1})

        assert [r['zone_id'] for r in approved.data['recommendations']] == ['NBO_IND_01']
        assert limited.data['metadata']['total'] == 1

    def test_invalid_priority(self, api_client):
        response = api_client.get('/api/policy/recommendations/', {'priority': 'urgent'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.policy
class TestRecommendationStatusEndpoint:

    def test_approve(self, api_client, cbd_policy, mock_broadcast):
        response = api_client.patch(
            f'/api/policy/recommendations/{cbd_policy.pk}/',
            {'status': 'approved', 'notes': 'Approved by transport committee'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Policy recommendation approved successfully'
        assert response.data['policy']['status'] == 'approved'

        cbd_policy.refresh_from_db()
        assert cbd_policy.status == 'approved'
        assert cbd_policy.notes == 'Approved by transport committee'

        event, payload = mock_broadcast['policy'].call_args.args
        assert event == POLICY_STATUS_UPDATE
        assert payload['policy_id'] == cbd_policy.pk
        assert payload['new_status'] == 'approved'
        assert payload['policy_title'] == cbd_policy.title

    def test_blank_notes_keep_existing(self, api_client, cbd_policy, mock_broadcast):
        cbd_policy.notes = 'Initial review'
        cbd_policy.save()

        api_client.patch(f'/api/policy/recommendations/{cbd_policy.pk}/', {'status': 'rejected'}, format='json')

        cbd_policy.refresh_from_db()
        assert cbd_policy.status == 'rejected'
        assert cbd_policy.notes == 'Initial review'

    def test_missing_policy(self, api_client, mock_broadcast):
        response = api_client.patch('/api/policy/recommendations/9999/', {'status': 'approved'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {'error': True, 'detail': 'Policy recommendation not found'}
        mock_broadcast['policy'].assert_not_called()

    def test_invalid_status(self, api_client, cbd_policy, mock_broadcast):
        response = api_client.patch(
            f'/api/policy/recommendations/{cbd_policy.pk}/', {'status': 'archived'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        cbd_policy.refresh_from_db()
        assert cbd_policy.status == 'pending'


@pytest.mark.policy
class TestSimulateEndpoint:

    def test_simulate(self, api_client, cbd_policy, mock_broadcast):
        response = api_client.post('/api/policy/simulate/', {'policy_id': cbd_policy.pk}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['policy_title'] == cbd_policy.title
        assert response.data['simulation_results']['projected_pm25'] == 32.3

        event, payload = mock_broadcast['policy'].call_args.args
        assert event == SIMULATION_COMPLETE
        assert payload['policy_id'] == cbd_policy.pk

    def test_unknown_policy(self, api_client, mock_broadcast):
        response = api_client.post('/api/policy/simulate/', {'policy_id': 9999}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['detail'] == 'Policy not found'

    def test_policy_id_required(self, api_client):
        response = api_client.post('/api/policy/simulate/', {}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.policy
class TestZoneAlertsEndpoint:

    def test_alerts(self, api_client, mock_city_data):
        response = api_client.get('/api/policy/alerts/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['metadata']['total_active'] == 2
        assert response.data['metadata']['location'] == 'Nairobi, Kenya'

    def test_severity_filter(self, api_client, mock_city_data):
        response = api_client.get('/api/policy/alerts/', {'severity': 'critical'})

        assert [a['zone_name'] for a in response.data['alerts']] == ['Nairobi CBD']


@pytest.mark.policy
class TestPolicyDashboardEndpoint:

    def test_dashboard(self, api_client, mock_city_data):
        response = api_client.get('/api/policy/dashboard/')

        assert response.status_code == status.HTTP_200_OK
        air_quality = response.data['air_quality']
        assert air_quality['total_measurements'] == 2
        assert air_quality['very_unhealthy_readings'] == 1
        assert response.data['policy_stats']['pending']['count'] == 1
        assert response.data['alert_stats']['critical'] == 2
