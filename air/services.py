"""
City-level air quality aggregation across all configured providers
"""
import time
import uuid
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional
from django.conf import settings
from django.utils import timezone
from core.exceptions import ProviderNotConfigured
from core.utils import calculate_epa_aqi, get_aqi_category, get_health_advisory, geocode_city
from .cache import city_cache_key, get_cached, set_cached, delete_cached
from .providers import WeatherAPIClient, IQAirClient, WAQIClient, OpenAQClient

logger = logging.getLogger(__name__)

CITY_COORDINATES = {
    'nairobi': {'lat': -1.2921, 'lon': 36.8219},
    'paris': {'lat': 48.8566, 'lon': 2.3522},
    'london': {'lat': 51.5074, 'lon': -0.1278},
    'new york': {'lat': 40.7128, 'lon': -74.0060},
    'tokyo': {'lat': 35.6762, 'lon': 139.6503},
}
DEFAULT_COORDINATES = CITY_COORDINATES['nairobi']

# Reading thresholds (µg/m³)
PM25_UNHEALTHY = 35
PM25_HIGH = 45
PM25_CRITICAL = 55
NO2_ELEVATED = 40
NO2_HIGH = 80
O3_ELEVATED = 100
O3_HIGH = 150

MEASUREMENT_FIELDS = (
    'pm25', 'pm10', 'no2', 'o3', 'co', 'so2', 'aqi', 'aqi_us', 'aqi_cn',
)
WEATHER_FIELDS = ('temperature', 'humidity', 'wind_speed')


def _now() -> str:
    return timezone.now().isoformat()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 1)


def fetch_with_retry(call: Callable[[], Any], retries: Optional[int] = None,
                     delay: Optional[float] = None) -> Any:
    """
    Run a provider call, retrying on failure with growing delay

    Errors flagged ``retryable = False`` (client errors such as a rejected
    key) are raised at once.

    Args:
        call: Zero-argument callable doing the request
        retries: Extra attempts after the first (AIR_FETCH_RETRIES)
        delay: Initial wait in seconds, multiplied by 1.5 per retry

    Raises:
        The last exception once all attempts are exhausted
    """
    if retries is None:
        retries = getattr(settings, 'AIR_FETCH_RETRIES', 2)
    if delay is None:
        delay = getattr(settings, 'AIR_FETCH_RETRY_DELAY', 1.0)

    while True:
        try:
            return call()
        except Exception as e:
            if retries <= 0 or not getattr(e, 'retryable', True):
                raise
            logger.info(f"Retrying provider call after error: {e} ({retries} attempts left)")
            if delay:
                time.sleep(delay)
            retries -= 1
            delay *= 1.5


class DirectDataService:
    """
    Fetches every provider concurrently and folds the results into one
    city snapshot: GeoJSON measurements, summary, hotspots, alerts and a
    health advisory
    """

    def __init__(self, weatherapi=None, iqair=None, waqi=None, openaq=None, ai=None):
        self.weatherapi = weatherapi or WeatherAPIClient()
        self.iqair = iqair or IQAirClient()
        self.waqi = waqi or WAQIClient()
        self.openaq = openaq or OpenAQClient()
        self._ai = ai

    @property
    def ai(self):
        if self._ai is None:
            from .ai import ai_service
            self._ai = ai_service
        return self._ai

    @property
    def providers(self) -> Dict[str, Any]:
        return {
            'weatherapi': self.weatherapi,
            'openaq': self.openaq,
            'iqair': self.iqair,
            'waqi': self.waqi,
        }

    # City data

    def get_city_data(self, city: Optional[str] = None, country: Optional[str] = None,
                      use_cache: bool = True) -> Dict[str, Any]:
        """
        Get the aggregated snapshot for a city, from cache when fresh

        Never raises: if building the snapshot fails the emergency fallback
        is returned (and not cached).
        """
        city = city or getattr(settings, 'DEFAULT_CITY', 'Nairobi')
        country = country or getattr(settings, 'DEFAULT_COUNTRY', 'Kenya')
        cache_key = city_cache_key(city, country)

        if use_cache:
            cached = get_cached(cache_key)
            if cached is not None:
                logger.debug(f"Returning cached data for {city}")
                return cached

        try:
            data = self.build_city_data(city, country)
        except Exception as e:
            logger.error(f"Error building air quality data for {city}, {country}: {e}", exc_info=True)
            return self.get_emergency_fallback(city, country)

        set_cached(cache_key, data)
        logger.info(
            f"Data compiled for {city}: {len(data['measurements'])} measurements "
            f"from {len(data['data_sources'])} sources"
        )
        return data

    def build_city_data(self, city: str, country: str) -> Dict[str, Any]:
        coords = self.get_city_coordinates(city, country)
        results = self.fetch_all(city, country, coords)

        warnings = []
        if not self.openaq.is_configured:
            warnings.append('OpenAQ API key not configured; OpenAQ stations skipped')
        for name, result in results.items():
            if isinstance(result, Exception):
                warnings.append(f"{name} unavailable: {result}")

        measurements = self.process_measurements(results)
        summary = self.calculate_summary(measurements)
        hotspots = self.identify_hotspots(measurements)

        data = {
            'timestamp': _now(),
            'location': f"{city}, {country}",
            'coordinates': coords,
            'measurements': measurements,
            'summary': summary,
            'hotspots': hotspots,
            'alerts': self.generate_alerts(summary, hotspots),
            'data_sources': self.get_active_sources(results),
            'health_advisory': get_health_advisory(summary),
            'warnings': warnings,
            'ai_insights': None,
        }

        if getattr(settings, 'AI_ENABLED', False):
            data['ai_insights'] = self.get_ai_insights(data)

        return data

    def fetch_all(self, city: str, country: str, coords: Dict[str, float]) -> Dict[str, Any]:
        """
        Query every provider in parallel

        Returns:
            Mapping of provider name to its result, or to the exception it
            raised after retries
        """
        calls = {
            'weatherapi': lambda: self.weatherapi.fetch_city(city, coords),
            'openaq': lambda: self.openaq.fetch_latest(coords),
            'iqair': lambda: self.iqair.fetch_city(city, country, coords),
            'waqi': lambda: self.waqi.fetch_city(city),
        }

        results = {}
        with ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix='air-fetch') as executor:
            futures = {name: executor.submit(fetch_with_retry, call) for name, call in calls.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as e:
                    logger.warning(f"{name} fetch failed after retries: {e}")
                    results[name] = e

        return results

    def get_ai_insights(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not data['measurements'] and not data['hotspots']:
            return {
                'status': 'skipped',
                'message': 'Insufficient data for AI analysis',
                'timestamp': _now(),
            }

        try:
            analysis = self.ai.generate_comprehensive_analysis(
                data, depth=getattr(settings, 'AI_ANALYSIS_DEPTH', 'standard')
            )
        except Exception as e:
            # Keep the provider data; the narrative is optional
            logger.error(f"AI insights failed for {data['location']}: {e}", exc_info=True)
            from .ai import AIPolicyService
            analysis = AIPolicyService.generate_fallback_analysis(data)
        return {**analysis, 'generated_at': _now()}

    def refresh(self, city: Optional[str] = None, country: Optional[str] = None) -> Dict[str, Any]:
        """Drop the cached snapshot and rebuild it"""
        city = city or getattr(settings, 'DEFAULT_CITY', 'Nairobi')
        country = country or getattr(settings, 'DEFAULT_COUNTRY', 'Kenya')
        delete_cached(city_cache_key(city, country))
        return self.get_city_data(city, country, use_cache=False)

    # Processing

    @staticmethod
    def _feature(prefix: str, station: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        coordinates = station.get('coordinates') or {}
        lat, lon = coordinates.get('lat'), coordinates.get('lon')
        if not (_is_number(lat) and _is_number(lon)):
            return None

        air_quality = station.get('air_quality') or {}
        weather = station.get('weather') or {}

        properties = {
            'name': station.get('location'),
            'source': station.get('source'),
        }
        for field in MEASUREMENT_FIELDS:
            if _is_number(air_quality.get(field)):
                properties[field] = air_quality[field]
        for field in WEATHER_FIELDS:
            if _is_number(weather.get(field)):
                properties[field] = weather[field]
        properties['quality'] = station.get('quality')
        properties['timestamp'] = station.get('timestamp') or _now()

        return {
            'id': f"{prefix}_{uuid.uuid4().hex[:10]}",
            'type': 'Feature',
            'geometry': {'type': 'Point', 'coordinates': [lon, lat]},
            'properties': properties,
        }

    def process_measurements(self, results: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Convert provider station dicts into GeoJSON Point features

        Failed providers (exceptions) and empty results contribute nothing.
        """
        measurements = []

        for name in ('weatherapi', 'openaq', 'iqair', 'waqi'):
            result = results.get(name)
            if not result or isinstance(result, Exception):
                continue
            stations = result if isinstance(result, list) else [result]
            for station in stations:
                if not station:
                    continue
                feature = self._feature(name, station)
                if feature:
                    measurements.append(feature)

        return measurements

    @staticmethod
    def get_active_sources(results: Dict[str, Any]) -> List[str]:
        labels = {
            'weatherapi': 'WeatherAPI.com',
            'openaq': 'OpenAQ',
            'iqair': 'IQAir',
            'waqi': 'WAQI',
        }
        return [
            labels[name] for name in labels
            if results.get(name) and not isinstance(results.get(name), Exception)
        ]

    @staticmethod
    def calculate_spatial_coverage(measurements: List[Dict[str, Any]]) -> int:
        if len(measurements) <= 1:
            return len(measurements)
        unique_names = {m['properties'].get('name') for m in measurements}
        return min(len(unique_names) * 2, 10)

    def calculate_summary(self, measurements: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not measurements:
            return {
                'total_measurements': 0,
                'avg_pm25': None,
                'max_pm25': None,
                'air_quality_status': 'Unknown',
                'data_freshness': 'No data',
            }

        def values(field):
            return [m['properties'][field] for m in measurements if _is_number(m['properties'].get(field))]

        pm25 = values('pm25')
        no2 = values('no2')
        o3 = values('o3')

        summary = {
            'total_measurements': len(measurements),
            'active_sources': sorted({m['properties'].get('source') for m in measurements}),
            'spatial_coverage': self.calculate_spatial_coverage(measurements),
            'last_update': _now(),
            'air_quality_status': 'Unknown',
        }

        if pm25:
            summary['avg_pm25'] = _mean(pm25)
            summary['max_pm25'] = round(max(pm25), 1)
            summary['min_pm25'] = round(min(pm25), 1)
            summary['aqi'] = calculate_epa_aqi('pm25', summary['avg_pm25'])
            summary['air_quality_status'] = get_aqi_category(summary['aqi'])['category']
            summary['unhealthy_readings'] = len([v for v in pm25 if v > PM25_UNHEALTHY])

        if no2:
            summary['avg_no2'] = _mean(no2)
            summary['max_no2'] = round(max(no2), 1)

        if o3:
            summary['avg_o3'] = _mean(o3)
            summary['max_o3'] = round(max(o3), 1)

        return summary

    def identify_hotspots(self, measurements: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        hotspots = []
        detected = _now()

        def hotspot(measurement, hotspot_type, severity, value, threshold, pollutant):
            return {
                'type': 'Feature',
                'geometry': measurement['geometry'],
                'properties': {
                    'hotspot_type': hotspot_type,
                    'severity': severity,
                    'value': value,
                    'threshold': threshold,
                    'pollutant': pollutant,
                    'source': measurement['properties'].get('source'),
                    'location_name': measurement['properties'].get('name'),
                    'detection_time': detected,
                },
            }

        for m in measurements:
            props = m['properties']
            pm25, no2, o3 = props.get('pm25'), props.get('no2'), props.get('o3')

            if _is_number(pm25) and pm25 > PM25_UNHEALTHY:
                if pm25 > PM25_CRITICAL:
                    severity = 'critical'
                elif pm25 > PM25_HIGH:
                    severity = 'high'
                else:
                    severity = 'moderate'
                hotspots.append(hotspot(m, 'pm25_elevated', severity, pm25, PM25_UNHEALTHY, 'PM2.5'))

            if _is_number(no2) and no2 > NO2_ELEVATED:
                severity = 'high' if no2 > NO2_HIGH else 'moderate'
                hotspots.append(hotspot(m, 'no2_elevated', severity, no2, NO2_ELEVATED, 'NO2'))

            if _is_number(o3) and o3 > O3_ELEVATED:
                severity = 'high' if o3 > O3_HIGH else 'moderate'
                hotspots.append(hotspot(m, 'o3_elevated', severity, o3, O3_ELEVATED, 'O3'))

        return hotspots

    def generate_alerts(self, summary: Dict[str, Any], hotspots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        alerts = []
        now = _now()
        stamp = int(time.time() * 1000)
        avg_pm25 = summary.get('avg_pm25')
        avg_no2 = summary.get('avg_no2')

        if avg_pm25 is not None and avg_pm25 > PM25_CRITICAL:
            alerts.append({
                'id': f'alert_pm25_{stamp}',
                'type': 'health_emergency',
                'severity': 'critical',
                'message': f'Very unhealthy air quality: PM2.5 at {avg_pm25} μg/m³',
                'threshold': PM25_CRITICAL,
                'current_value': avg_pm25,
                'affected_area': 'City-wide',
                'timestamp': now,
                'actions': [
                    'Stay indoors',
                    'Avoid outdoor activities',
                    'Use air purifiers if available',
                    'Wear N95 masks if must go outside',
                ],
            })
        elif avg_pm25 is not None and avg_pm25 > PM25_UNHEALTHY:
            alerts.append({
                'id': f'alert_pm25_{stamp}',
                'type': 'air_pollution',
                'severity': 'high',
                'message': f'Unhealthy air quality: PM2.5 at {avg_pm25} μg/m³',
                'threshold': PM25_UNHEALTHY,
                'current_value': avg_pm25,
                'affected_area': 'City-wide',
                'timestamp': now,
                'actions': [
                    'Sensitive groups should limit outdoor activities',
                    'Consider wearing masks outdoors',
                    'Monitor air quality regularly',
                ],
            })

        if avg_no2 is not None and avg_no2 > NO2_HIGH:
            alerts.append({
                'id': f'alert_no2_{stamp}',
                'type': 'air_pollution',
                'severity': 'high',
                'message': f'Elevated nitrogen dioxide levels: NO2 at {avg_no2} μg/m³',
                'threshold': NO2_HIGH,
                'current_value': avg_no2,
                'affected_area': 'City-wide',
                'timestamp': now,
                'actions': [
                    'Avoid strenuous outdoor activities',
                    'Consider reducing vehicle usage',
                    'Monitor air quality for changes',
                ],
            })

        critical = [h for h in hotspots if h['properties']['severity'] == 'critical']
        if critical:
            alerts.append({
                'id': f'hotspot_alert_{stamp}',
                'type': 'pollution_hotspot',
                'severity': 'high',
                'message': f'{len(critical)} critical pollution hotspot(s) detected',
                'hotspots': [h['properties']['location_name'] for h in critical],
                'affected_area': ', '.join(h['properties']['location_name'] or 'Unknown' for h in critical),
                'timestamp': now,
                'actions': ['Deploy mobile monitoring units to affected areas'],
            })

        return alerts

    # Locations

    def get_city_coordinates(self, city: str, country: Optional[str] = None) -> Dict[str, float]:
        """
        Known city table first, then the geocoder, then Nairobi
        """
        known = CITY_COORDINATES.get(city.strip().lower())
        if known:
            return dict(known)

        geocoded = geocode_city(city)
        if geocoded:
            return {'lat': geocoded[0], 'lon': geocoded[1]}

        logger.warning(f"Could not resolve coordinates for {city}; defaulting to Nairobi")
        return dict(DEFAULT_COORDINATES)

    def get_location_data(self, lat: float, lon: float, name: str = 'Custom Location') -> Dict[str, Any]:
        """
        Single-point reading from WeatherAPI

        Raises:
            ProviderNotConfigured: when no WeatherAPI key is set
            ProviderError: when the request fails
        """
        if not self.weatherapi.is_configured:
            raise ProviderNotConfigured('WeatherAPI key required for location-specific data')

        station = self.weatherapi.fetch_location(lat, lon, name)
        pm25 = station['air_quality'].get('pm25')
        aqi = calculate_epa_aqi('pm25', pm25) if _is_number(pm25) else None
        station['aqi'] = aqi
        station['category'] = get_aqi_category(aqi)
        return station

    def get_emergency_fallback(self, city: str, country: str) -> Dict[str, Any]:
        now = _now()
        return {
            'timestamp': now,
            'location': f"{city}, {country}",
            'coordinates': dict(CITY_COORDINATES.get(city.lower(), DEFAULT_COORDINATES)),
            'measurements': [],
            'summary': {
                'total_measurements': 0,
                'air_quality_status': 'Data Unavailable',
                'message': 'All data sources temporarily unavailable',
            },
            'hotspots': [],
            'alerts': [{
                'id': 'system_alert',
                'type': 'system',
                'severity': 'medium',
                'message': 'Air quality data sources temporarily unavailable',
                'timestamp': now,
            }],
            'data_sources': [],
            'health_advisory': get_health_advisory({}),
            'warnings': ['All data sources temporarily unavailable'],
            'ai_insights': None,
        }


data_service = DirectDataService()
