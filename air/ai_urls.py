"""
URL configuration for AI analysis endpoints
"""
from django.urls import path
from .views import AIAnalysisView, SmartHotspotsView, SmartRecommendationsView

app_name = 'ai'

urlpatterns = [
    path('analysis/', AIAnalysisView.as_view(), name='analysis'),
    path('smart-hotspots/', SmartHotspotsView.as_view(), name='smart-hotspots'),
    path('recommendations/', SmartRecommendationsView.as_view(), name='recommendations'),
]
