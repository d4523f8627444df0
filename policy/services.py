"""
Policy impact simulation and zone alerts derived from live hotspots
"""
import logging
from typing import Any, Dict, List, Optional
from django.conf import settings
from django.db.models import Avg, Count
from django.utils import timezone
from .models import PolicyRecommendation

logger = logging.getLogger(__name__)

# Health burden per unit of PM2.5 reduction for the Nairobi pilot population
AVOIDED_DEATHS_FACTOR = 5.2
AVOIDED_HOSPITAL_VISITS_FACTOR = 120
ECONOMIC_BENEFIT_FACTOR = 485000

PREPARATION_DAYS = 15
FULL_EFFECT_LAG_DAYS = 60
SIMULATION_CONFIDENCE = 0.78

ZONE_ALERT_ACTIONS = {
    'critical': [
        'Issue public health emergency notice',
        'Activate traffic and industrial restrictions for the zone',
        'Deploy mobile monitoring units',
    ],
    'high': [
        'Notify zone health officers',
        'Review applicable policy recommendations',
        'Increase monitoring frequency',
    ],
}


def simulate_policy_impact(policy: PolicyRecommendation,
                           baseline_pm25: Optional[float] = None) -> Dict[str, Any]:
    """
    Project PM2.5 and health outcomes if a recommendation is implemented

    The projection scales the baseline by the policy's expected impact;
    health and economic benefits scale linearly with the reduction.
    """
    if baseline_pm25 is None:
        baseline_pm25 = getattr(settings, 'POLICY_BASELINE_PM25', 45.2)

    reduction = policy.expected_impact_percent / 100
    projected_pm25 = baseline_pm25 * (1 - reduction)

    return {
        'baseline_pm25': baseline_pm25,
        'projected_pm25': round(projected_pm25, 1),
        'impact_percent': policy.expected_impact_percent,
        'affected_population': policy.affected_population,
        'health_benefits': {
            'avoided_deaths': round(reduction * AVOIDED_DEATHS_FACTOR),
            'avoided_hospital_visits': round(reduction * AVOIDED_HOSPITAL_VISITS_FACTOR),
            'economic_benefit_usd': round(reduction * ECONOMIC_BENEFIT_FACTOR),
        },
        'implementation_timeline': {
            'preparation_days': PREPARATION_DAYS,
            'rollout_days': policy.implementation_time_days,
            'full_effect_days': policy.implementation_time_days + FULL_EFFECT_LAG_DAYS,
        },
        'confidence_level': SIMULATION_CONFIDENCE,
    }


def build_zone_alerts(hotspots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Zone alerts for every high or critical hotspot, critical first"""
    alerts = []
    ranked = sorted(
        (h for h in hotspots if h['properties']['severity'] in ('high', 'critical')),
        key=lambda h: (h['properties']['severity'] != 'critical', -(h['properties'].get('value') or 0)),
    )

    for index, hotspot in enumerate(ranked, start=1):
        props = hotspot['properties']
        severity = props['severity']
        zone_name = props.get('location_name') or 'Unknown zone'
        pollutant = props.get('pollutant', 'PM2.5')

        if severity == 'critical':
            alert_type = 'pollution_spike'
            message = f"Very unhealthy air quality detected in {zone_name} - {pollutant}: {props['value']} μg/m³"
        else:
            alert_type = 'policy_trigger'
            message = f"{pollutant} above {props['threshold']} μg/m³ in {zone_name}; review policy measures"

        alerts.append({
            'id': index,
            'alert_type': alert_type,
            'zone_name': zone_name,
            'location': hotspot['geometry'],
            'severity': severity,
            'message': message,
            'pollutant': pollutant,
            'pm25_level': props['value'] if pollutant == 'PM2.5' else None,
            'triggered_at': props.get('detection_time') or timezone.now().isoformat(),
            'status': 'active',
            'recommended_actions': ZONE_ALERT_ACTIONS[severity],
        })

    return alerts


def get_policy_stats() -> Dict[str, Dict[str, Any]]:
    rows = (
        PolicyRecommendation.objects
        .values('status')
        .annotate(count=Count('id'), avg_impact=Avg('expected_impact_percent'))
        .order_by('status')
    )
    return {
        row['status']: {'count': row['count'], 'avg_impact': round(row['avg_impact'] or 0, 1)}
        for row in rows
    }


def get_alert_stats(alerts: List[Dict[str, Any]]) -> Dict[str, int]:
    stats = {'critical': 0, 'high': 0, 'medium': 0, 'low': 0}
    for alert in alerts:
        if alert.get('severity') in stats:
            stats[alert['severity']] += 1
    return stats
