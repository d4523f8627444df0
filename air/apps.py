from django.apps import AppConfig


class AirConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'air'
    verbose_name = 'Air Quality'
