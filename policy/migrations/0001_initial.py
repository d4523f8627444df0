# Generated migration for PolicyRecommendation model

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PolicyRecommendation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('zone_id', models.CharField(db_index=True, max_length=50)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('policy_type', models.CharField(max_length=50)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=20)),
                ('expected_impact_percent', models.FloatField(help_text='Expected PM2.5 reduction (0-100)')),
                ('cost_estimate', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ('implementation_time_days', models.PositiveIntegerField(default=30)),
                ('affected_population', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('in_progress', 'In Progress'), ('implemented', 'Implemented')], default='pending', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'policy_recommendations',
                'ordering': ['id'],
            },
        ),
        migrations.AddIndex(
            model_name='policyrecommendation',
            index=models.Index(fields=['priority'], name='policy_reco_priorit_idx'),
        ),
        migrations.AddIndex(
            model_name='policyrecommendation',
            index=models.Index(fields=['status', 'created_at'], name='policy_reco_status_idx'),
        ),
    ]
