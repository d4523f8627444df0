"""
URL configuration for airwatch project.
"""
from django.contrib import admin
from django.urls import path, include
from air.utility_views import HealthView, CacheClearView, TestAPIsView, APIIndexView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', APIIndexView.as_view(), name='api-index'),
    path('health/', HealthView.as_view(), name='health'),
    path('api/cache/clear/', CacheClearView.as_view(), name='cache-clear'),
    path('api/test-apis/', TestAPIsView.as_view(), name='test-apis'),
    path('api/air/', include('air.urls')),
    path('api/ai/', include('air.ai_urls')),
    path('api/policy/', include('policy.urls')),
]

handler404 = 'core.exceptions.handler404'
handler500 = 'core.exceptions.handler500'
