"""
URL configuration for policy app
"""
from django.urls import path
from .views import (
    RecommendationListView,
    RecommendationStatusView,
    SimulateView,
    ZoneAlertsView,
    PolicyDashboardView,
)

app_name = 'policy'

urlpatterns = [
    path('recommendations/<int:pk>/', RecommendationStatusView.as_view(), name='recommendation-status'),
    path('recommendations/', RecommendationListView.as_view(), name='recommendations'),
    path('simulate/', SimulateView.as_view(), name='simulate'),
    path('alerts/', ZoneAlertsView.as_view(), name='alerts'),
    path('dashboard/', PolicyDashboardView.as_view(), name='dashboard'),
]
