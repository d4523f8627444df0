"""
Celery application for airwatch background jobs

Worker:  celery -A airwatch worker -l info
Beat:    celery -A airwatch beat -l info
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'airwatch.settings')

app = Celery('airwatch')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
