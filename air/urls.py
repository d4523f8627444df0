"""
URL configuration for the air quality app
"""
from django.urls import path
from .views import (
    CityDataView,
    MeasurementsView,
    HotspotsView,
    AlertsView,
    DashboardView,
    RefreshView,
    LocationView,
    AnalyzeView,
)

app_name = 'air'

urlpatterns = [
    path('data/', CityDataView.as_view(), name='city-data'),
    path('measurements/', MeasurementsView.as_view(), name='measurements'),
    path('hotspots/', HotspotsView.as_view(), name='hotspots'),
    path('alerts/', AlertsView.as_view(), name='alerts'),
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
    path('refresh/', RefreshView.as_view(), name='refresh'),
    path('location/', LocationView.as_view(), name='location'),
    path('analyze/', AnalyzeView.as_view(), name='analyze'),
]
