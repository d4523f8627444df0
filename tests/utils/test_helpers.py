"""
Test helper functions and utilities
"""
from typing import Dict, Any, List, Optional


def make_measurement(
    name: str = 'Nairobi CBD',
    lat: float = -1.2921,
    lon: float = 36.8219,
    source: str = 'WeatherAPI.com',
    **readings
) -> Dict[str, Any]:
    """
    Create a GeoJSON measurement feature

    Args:
        name: Station name
        lat: Latitude
        lon: Longitude
        source: Provider label
        **readings: Pollutant and weather properties (pm25=40.0, no2=20.0, ...)

    Returns:
        Measurement feature dict
    """
    return {
        'id': f"test_{name.lower().replace(' ', '_')}",
        'type': 'Feature',
        'geometry': {'type': 'Point', 'coordinates': [lon, lat]},
        'properties': {
            'name': name,
            'source': source,
            'timestamp': '2025-01-15T10:00:00+00:00',
            **readings,
        },
    }


def make_hotspot(
    location_name: str = 'Nairobi CBD',
    severity: str = 'high',
    value: float = 50.0,
    pollutant: str = 'PM2.5',
    lat: float = -1.2921,
    lon: float = 36.8219,
) -> Dict[str, Any]:
    """Create a hotspot feature as produced by identify_hotspots"""
    return {
        'type': 'Feature',
        'geometry': {'type': 'Point', 'coordinates': [lon, lat]},
        'properties': {
            'hotspot_type': 'pm25_elevated' if pollutant == 'PM2.5' else 'no2_elevated',
            'severity': severity,
            'value': value,
            'threshold': 35 if pollutant == 'PM2.5' else 40,
            'pollutant': pollutant,
            'source': 'WeatherAPI.com',
            'location_name': location_name,
            'detection_time': '2025-01-15T10:00:00+00:00',
        },
    }


def make_city_data(
    measurements: Optional[List[Dict[str, Any]]] = None,
    hotspots: Optional[List[Dict[str, Any]]] = None,
    alerts: Optional[List[Dict[str, Any]]] = None,
    summary: Optional[Dict[str, Any]] = None,
    data_sources: Optional[List[str]] = None,
    location: str = 'Nairobi, Kenya',
) -> Dict[str, Any]:
    """
    Create an aggregated city snapshot

    Returns:
        City data dict shaped like DirectDataService.get_city_data output
    """
    if measurements is None:
        measurements = [make_measurement(pm25=40.0, no2=20.0, wind_speed=2.5)]
    return {
        'timestamp': '2025-01-15T10:00:00+00:00',
        'location': location,
        'coordinates': {'lat': -1.2921, 'lon': 36.8219},
        'measurements': measurements,
        'summary': summary if summary is not None else {
            'total_measurements': len(measurements),
            'active_sources': ['WeatherAPI.com'],
            'avg_pm25': 40.0,
            'max_pm25': 40.0,
            'min_pm25': 40.0,
            'aqi': 112,
            'air_quality_status': 'Unhealthy for Sensitive Groups',
            'unhealthy_readings': 1,
        },
        'hotspots': hotspots if hotspots is not None else [],
        'alerts': alerts if alerts is not None else [],
        'data_sources': data_sources if data_sources is not None else ['WeatherAPI.com'],
        'health_advisory': {'level': 'unhealthy_sensitive', 'message': '', 'precautions': []},
        'warnings': [],
        'ai_insights': None,
    }


def weatherapi_response(
    lat: float = -1.2921,
    lon: float = 36.8219,
    pm25: float = 40.0,
    no2: float = 20.0,
    wind_kph: float = 9.0,
) -> Dict[str, Any]:
    """Mock payload for WeatherAPI /current.json?aqi=yes"""
    return {
        'location': {'name': 'Nairobi', 'country': 'Kenya', 'lat': lat, 'lon': lon},
        'current': {
            'temp_c': 22.0,
            'humidity': 60,
            'wind_kph': wind_kph,
            'pressure_mb': 1015.0,
            'condition': {'text': 'Partly cloudy'},
            'air_quality': {
                'pm2_5': pm25,
                'pm10': 55.0,
                'no2': no2,
                'o3': 30.0,
                'co': 300.0,
                'so2': 5.0,
                'us-epa-index': 3,
                'gb-defra-index': 4,
            },
        },
    }


def iqair_response(aqius: int = 95, lat: float = -1.2921, lon: float = 36.8219) -> Dict[str, Any]:
    """Mock payload for AirVisual /v2/city"""
    return {
        'status': 'success',
        'data': {
            'city': 'Nairobi',
            'state': 'Nairobi',
            'country': 'Kenya',
            'location': {'type': 'Point', 'coordinates': [lon, lat]},
            'current': {
                'pollution': {'ts': '2025-01-15T10:00:00.000Z', 'aqius': aqius, 'mainus': 'p2', 'aqicn': 48},
                'weather': {'tp': 23, 'hu': 55, 'ws': 3.1, 'pr': 1016},
            },
        },
    }


def waqi_search_response(uids=(8675, 8676)) -> Dict[str, Any]:
    return {
        'status': 'ok',
        'data': [
            {'uid': uid, 'aqi': '60', 'station': {'name': f'Nairobi Station {uid}', 'geo': [-1.28, 36.82]}}
            for uid in uids
        ],
    }


def waqi_feed_response(uid: int = 8675, aqi: Any = 60, pm25: float = 18.0) -> Dict[str, Any]:
    return {
        'status': 'ok',
        'data': {
            'idx': uid,
            'aqi': aqi,
            'city': {'name': f'Nairobi Station {uid}', 'geo': [-1.28, 36.82]},
            'iaqi': {'pm25': {'v': pm25}, 'no2': {'v': 12.0}, 't': {'v': 21}, 'h': {'v': 58}},
            'time': {'iso': '2025-01-15T13:00:00+03:00'},
        },
    }
