"""
Serializers for air quality query parameters
"""
from rest_framework import serializers


class CityQuerySerializer(serializers.Serializer):
    """City selector shared by the aggregate endpoints"""
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    country = serializers.CharField(required=False, allow_blank=True, max_length=100)


class MeasurementsQuerySerializer(CityQuerySerializer):
    format = serializers.ChoiceField(
        choices=['geojson', 'simple'],
        default='geojson',
        required=False,
    )
    bbox = serializers.CharField(
        required=False,
        help_text="Bounding box as minLon,minLat,maxLon,maxLat"
    )
    pollutants = serializers.CharField(
        required=False,
        help_text="Comma separated measurement fields, e.g. pm25,no2"
    )

    def validate_bbox(self, value):
        try:
            parts = [float(p) for p in value.split(',')]
        except ValueError:
            raise serializers.ValidationError('bbox values must be numbers')
        if len(parts) != 4:
            raise serializers.ValidationError('bbox must be minLon,minLat,maxLon,maxLat')
        return parts

    def validate_pollutants(self, value):
        return [p.strip() for p in value.split(',') if p.strip()]


class HotspotsQuerySerializer(CityQuerySerializer):
    severity = serializers.ChoiceField(
        choices=['moderate', 'high', 'critical', 'all'],
        default='moderate',
        required=False,
    )
    format = serializers.ChoiceField(
        choices=['geojson', 'simple'],
        default='geojson',
        required=False,
    )


class AlertsQuerySerializer(CityQuerySerializer):
    severity = serializers.CharField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=20)


class LocationQuerySerializer(serializers.Serializer):
    """Serializer for a single-point lookup"""
    lat = serializers.FloatField(
        required=True,
        min_value=-90,
        max_value=90,
        help_text="Latitude coordinate (-90 to 90)"
    )
    lon = serializers.FloatField(
        required=True,
        min_value=-180,
        max_value=180,
        help_text="Longitude coordinate (-180 to 180)"
    )
    name = serializers.CharField(required=False, default='Custom Location', max_length=100)


class AnalyzeRequestSerializer(CityQuerySerializer):
    pass


class AIAnalysisQuerySerializer(CityQuerySerializer):
    analysis_depth = serializers.ChoiceField(
        choices=['standard', 'comprehensive'],
        default='standard',
        required=False,
    )


class SmartHotspotsQuerySerializer(CityQuerySerializer):
    algorithm = serializers.ChoiceField(
        choices=['dbscan', 'kmeans'],
        default='dbscan',
        required=False,
    )
    sensitivity = serializers.ChoiceField(
        choices=['low', 'medium', 'high'],
        default='medium',
        required=False,
    )
