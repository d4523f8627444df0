"""
Policy interventions proposed for monitoring zones
"""
from django.db import models


class PolicyRecommendation(models.Model):
    """
    A policy intervention for one monitoring zone and its review status
    """

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('in_progress', 'In Progress'),
        ('implemented', 'Implemented'),
    ]

    zone_id = models.CharField(max_length=50, db_index=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    policy_type = models.CharField(max_length=50)
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='medium')
    expected_impact_percent = models.FloatField(help_text="Expected PM2.5 reduction (0-100)")
    cost_estimate = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    implementation_time_days = models.PositiveIntegerField(default=30)
    affected_population = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'policy_recommendations'
        ordering = ['id']
        indexes = [
            models.Index(fields=['priority'], name='policy_reco_priorit_idx'),
            models.Index(fields=['status', 'created_at'], name='policy_reco_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.zone_id}) - {self.status}"
