# Seed the Nairobi pilot zones

from decimal import Decimal
from django.db import migrations

NAIROBI_RECOMMENDATIONS = [
    {
        'zone_id': 'NBO_CBD_01',
        'title': 'Peak-Hour Vehicle Restrictions (CBD)',
        'description': 'Implement odd-even license plate restrictions during peak hours',
        'policy_type': 'vehicle_restriction',
        'priority': 'high',
        'expected_impact_percent': 28.5,
        'cost_estimate': Decimal('8200.00'),
        'implementation_time_days': 30,
        'affected_population': 250000,
        'status': 'pending',
    },
    {
        'zone_id': 'NBO_IND_01',
        'title': 'Industrial Stack Monitoring (Embakasi)',
        'description': 'Install continuous monitoring systems on industrial emitters',
        'policy_type': 'emission_monitoring',
        'priority': 'critical',
        'expected_impact_percent': 18.2,
        'cost_estimate': Decimal('15000.00'),
        'implementation_time_days': 90,
        'affected_population': 180000,
        'status': 'approved',
    },
    {
        'zone_id': 'NBO_DAN_01',
        'title': 'Waste Management Enhancement (Dandora)',
        'description': 'Increase waste collection frequency and anti-burning enforcement',
        'policy_type': 'waste_management',
        'priority': 'high',
        'expected_impact_percent': 42.0,
        'cost_estimate': Decimal('7500.00'),
        'implementation_time_days': 60,
        'affected_population': 120000,
        'status': 'in_progress',
    },
]


def seed_recommendations(apps, schema_editor):
    PolicyRecommendation = apps.get_model('policy', 'PolicyRecommendation')
    for fields in NAIROBI_RECOMMENDATIONS:
        PolicyRecommendation.objects.get_or_create(zone_id=fields['zone_id'], defaults=fields)


def remove_recommendations(apps, schema_editor):
    PolicyRecommendation = apps.get_model('policy', 'PolicyRecommendation')
    PolicyRecommendation.objects.filter(
        zone_id__in=[r['zone_id'] for r in NAIROBI_RECOMMENDATIONS]
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('policy', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_recommendations, remove_recommendations),
    ]
