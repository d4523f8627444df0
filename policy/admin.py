"""
Admin configuration for policy app
"""
from django.contrib import admin
from .models import PolicyRecommendation


@admin.register(PolicyRecommendation)
class PolicyRecommendationAdmin(admin.ModelAdmin):
    """Admin for PolicyRecommendation model"""
    list_display = ('title', 'zone_id', 'policy_type', 'priority', 'status', 'expected_impact_percent', 'updated_at')
    list_filter = ('priority', 'status', 'policy_type')
    search_fields = ('title', 'zone_id', 'description')
    readonly_fields = ('created_at', 'updated_at')
    ordering = ('id',)
