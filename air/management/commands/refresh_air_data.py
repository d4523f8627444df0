"""
Django management command to rebuild the city snapshot and push it to the dashboard
Useful when Celery beat is not running

Usage:
    python manage.py refresh_air_data
    python manage.py refresh_air_data --city London --country "United Kingdom"
"""
from django.core.management.base import BaseCommand
from air.tasks import auto_refresh_dashboard


class Command(BaseCommand):
    help = 'Clear cached air quality data, fetch all providers again and broadcast the refresh'

    def add_arguments(self, parser):
        parser.add_argument('--city', help='City to refresh (defaults to DEFAULT_CITY)')
        parser.add_argument('--country', help='Country of the city (defaults to DEFAULT_COUNTRY)')

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Starting air quality refresh...'))

        # Run the task body in-process, not through the broker
        result = auto_refresh_dashboard(city=options.get('city'), country=options.get('country'))

        if result['status'] == 'success':
            self.stdout.write(
                self.style.SUCCESS(
                    f"✓ {result['message']}\n"
                    f"  Measurements: {result.get('measurements', 0)}\n"
                    f"  Critical alerts: {result.get('critical_alerts', 0)}"
                )
            )
            if result.get('critical_alerts'):
                self.stdout.write(self.style.WARNING('⚠ Critical alerts were broadcast to the dashboard'))
        else:
            self.stdout.write(
                self.style.ERROR(f"✗ Refresh failed: {result.get('message', 'Unknown error')}")
            )
