"""
HTTP clients for the third-party air quality providers

Each client knows its own endpoint and response shape and returns plain
dicts in a common "station" layout:

    {'location', 'coordinates': {'lat', 'lon'}, 'air_quality': {...},
     'weather': {...}, 'source', 'quality', 'timestamp'}

An unconfigured client returns None / [] without touching the network.
Request or payload errors raise ProviderError so callers can retry.
"""
import time
import logging
import requests
from typing import Dict, List, Optional, Any
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

WEATHERAPI_BASE_URL = 'https://api.weatherapi.com/v1'
IQAIR_BASE_URL = 'https://api.airvisual.com/v2'
WAQI_BASE_URL = 'https://api.waqi.info'
OPENAQ_BASE_URL = 'https://api.openaq.org/v3'

# Offsets (lat, lon) in degrees around the city centre for WeatherAPI sampling
SAMPLE_POINTS = [
    ('CBD', 0.0, 0.0),
    ('West', 0.02, -0.02),
    ('East', 0.02, 0.02),
    ('North', -0.02, 0.0),
    ('South', 0.02, 0.0),
]

US_CITY_STATES = {
    'new york': 'New York',
    'los angeles': 'California',
    'chicago': 'Illinois',
    'houston': 'Texas',
    'phoenix': 'Arizona',
}


class ProviderError(Exception):
    """
    A provider request failed or returned an unusable payload

    The message never contains the request URL, since several providers
    take their key in the query string. ``retryable`` is False for client
    errors that another attempt cannot fix (bad key, bad parameters).
    """

    def __init__(self, provider: str, message: str, status: Optional[int] = None,
                 retryable: bool = True):
        self.provider = provider
        self.status = status
        self.retryable = retryable
        super().__init__(f"{provider}: {message}")


def is_retryable_status(status: Optional[int]) -> bool:
    # Rate limits, request timeouts and server errors
    return status is None or status in (408, 429) or status >= 500


def _now() -> str:
    return timezone.now().isoformat()


class BaseProviderClient:
    """
    Shared request plumbing for provider clients
    """
    name = ''
    base_url = ''
    setting_name = ''

    # Default headers for all requests
    DEFAULT_HEADERS = {
        'User-Agent': 'AirWatch-API/2.0',
        'Accept': 'application/json',
    }

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[int] = None):
        self._api_key = api_key
        self.timeout = timeout or getattr(settings, 'PROVIDER_TIMEOUT', 10)
        self.session = requests.Session()
        self.session.headers.update(self.DEFAULT_HEADERS)

    @property
    def api_key(self) -> str:
        if self._api_key is not None:
            return self._api_key
        return getattr(settings, self.setting_name, '')

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.debug(f"{self.name} request failed: {e}")
            raise ProviderError(
                self.name, f"HTTP {status} from {path}",
                status=status, retryable=is_retryable_status(status)
            ) from e
        except requests.exceptions.Timeout as e:
            logger.debug(f"{self.name} request timed out: {e}")
            raise ProviderError(self.name, f"request to {path} timed out") from e
        except ValueError as e:
            # requests' JSONDecodeError is also a RequestException
            raise ProviderError(self.name, f"invalid JSON from {path}", retryable=False) from e
        except requests.exceptions.RequestException as e:
            logger.debug(f"{self.name} request failed: {e}")
            raise ProviderError(self.name, f"request to {path} failed ({type(e).__name__})") from e

    def ping(self) -> bool:
        """Cheap connectivity check used by the API test endpoint"""
        raise NotImplementedError


class WeatherAPIClient(BaseProviderClient):
    """
    WeatherAPI.com current conditions with air quality
    """
    name = 'WeatherAPI.com'
    base_url = WEATHERAPI_BASE_URL
    setting_name = 'WEATHERAPI_KEY'

    def __init__(self, *args, point_delay: Optional[float] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._point_delay = point_delay

    @property
    def point_delay(self) -> float:
        # Pause between sample points to stay under the free-tier rate limit
        if self._point_delay is not None:
            return self._point_delay
        return getattr(settings, 'WEATHERAPI_POINT_DELAY', 0.2)

    def _current(self, query: str) -> Dict[str, Any]:
        return self._get('/current.json', params={'key': self.api_key, 'q': query, 'aqi': 'yes'})

    def _parse_station(self, data: Dict[str, Any], name: str) -> Dict[str, Any]:
        try:
            current = data['current']
            location = data['location']
        except (KeyError, TypeError) as e:
            raise ProviderError(self.name, 'unexpected response shape') from e

        air_quality = current.get('air_quality') or {}
        wind_kph = current.get('wind_kph')

        return {
            'location': name,
            'coordinates': {'lat': location.get('lat'), 'lon': location.get('lon')},
            'air_quality': {
                'pm25': air_quality.get('pm2_5'),
                'pm10': air_quality.get('pm10'),
                'no2': air_quality.get('no2'),
                'o3': air_quality.get('o3'),
                'co': air_quality.get('co'),
                'so2': air_quality.get('so2'),
                'aqi_us': air_quality.get('us-epa-index'),
                'aqi_uk': air_quality.get('gb-defra-index'),
            },
            'weather': {
                'temperature': current.get('temp_c'),
                'humidity': current.get('humidity'),
                'wind_speed': round(wind_kph / 3.6, 2) if wind_kph is not None else None,
                'pressure': current.get('pressure_mb'),
                'condition': (current.get('condition') or {}).get('text'),
            },
            'source': self.name,
            'quality': 'premium',
            'timestamp': _now(),
        }

    def fetch_city(self, city: str, coords: Dict[str, float]) -> Optional[List[Dict[str, Any]]]:
        """
        Sample the city centre and four nearby points

        Individual point failures are skipped; ProviderError is raised only
        when every point fails.
        """
        if not self.is_configured:
            logger.warning("WeatherAPI key not configured")
            return None

        results = []
        last_error = None

        for i, (label, lat_offset, lon_offset) in enumerate(SAMPLE_POINTS):
            query = f"{coords['lat'] + lat_offset:.4f},{coords['lon'] + lon_offset:.4f}"
            try:
                data = self._current(query)
                results.append(self._parse_station(data, f"{city} {label}"))
            except ProviderError as e:
                logger.warning(f"WeatherAPI failed for {city} {label}: {e}")
                # A rejected key fails every point the same way
                if e.status in (401, 403):
                    raise
                last_error = e

            if self.point_delay and i < len(SAMPLE_POINTS) - 1:
                time.sleep(self.point_delay)

        if not results and last_error is not None:
            raise last_error

        return results or None

    def fetch_location(self, lat: float, lon: float, name: str = 'Custom Location') -> Dict[str, Any]:
        data = self._current(f"{lat},{lon}")
        station = self._parse_station(data, name)
        station.pop('source')
        station.pop('quality')
        return station

    def ping(self) -> bool:
        if not self.is_configured:
            return False
        try:
            self._current('Nairobi,KE')
            return True
        except ProviderError as e:
            logger.warning(f"WeatherAPI test failed: {e}")
            return False


class IQAirClient(BaseProviderClient):
    """
    IQAir AirVisual city endpoint
    """
    name = 'IQAir'
    base_url = IQAIR_BASE_URL
    setting_name = 'IQAIR_API_KEY'

    @staticmethod
    def state_for(city: str, country: str) -> str:
        if country.lower() == 'united states':
            return US_CITY_STATES.get(city.lower(), 'California')
        return city

    def fetch_city(self, city: str, country: str, coords: Dict[str, float]) -> Optional[Dict[str, Any]]:
        if not self.is_configured:
            logger.warning("IQAir API key not configured")
            return None

        payload = self._get('/city', params={
            'city': city,
            'state': self.state_for(city, country),
            'country': country,
            'key': self.api_key,
        })

        if payload.get('status') != 'success':
            message = (payload.get('data') or {}).get('message', 'Unknown error')
            raise ProviderError(self.name, f"API returned error: {message}")

        data = payload.get('data') or {}
        current = data.get('current') or {}
        geo = (data.get('location') or {}).get('coordinates')

        # AirVisual coordinates are [lon, lat]
        if geo and len(geo) == 2:
            coordinates = {'lat': geo[1], 'lon': geo[0]}
        else:
            coordinates = coords

        pollution = current.get('pollution') or {}
        weather = current.get('weather') or {}

        return {
            'location': data.get('city', city),
            'coordinates': coordinates,
            'air_quality': {
                'aqi_us': pollution.get('aqius'),
                'aqi_cn': pollution.get('aqicn'),
                'main_pollutant': pollution.get('mainus'),
            },
            'weather': {
                'temperature': weather.get('tp'),
                'humidity': weather.get('hu'),
                'wind_speed': weather.get('ws'),
                'pressure': weather.get('pr'),
            },
            'source': self.name,
            'quality': 'commercial',
            'timestamp': _now(),
        }

    def ping(self) -> bool:
        if not self.is_configured:
            return False
        try:
            self._get('/nearest_city', params={'lat': -1.2921, 'lon': 36.8219, 'key': self.api_key})
            return True
        except ProviderError as e:
            logger.warning(f"IQAir test failed: {e}")
            return False


class WAQIClient(BaseProviderClient):
    """
    World Air Quality Index: keyword search then per-station feeds
    """
    name = 'WAQI'
    base_url = WAQI_BASE_URL
    setting_name = 'WAQI_TOKEN'
    max_stations = 3

    def fetch_city(self, city: str) -> List[Dict[str, Any]]:
        if not self.is_configured:
            logger.warning("WAQI token not configured")
            return []

        search = self._get('/search/', params={'token': self.api_key, 'keyword': city})
        stations = search.get('data') or []

        if search.get('status') != 'ok' or not isinstance(stations, list):
            raise ProviderError(self.name, f"search failed: {search.get('data')}")

        if not stations:
            logger.warning(f"WAQI search for {city} returned no results")
            return []

        results = []
        for station in stations[:self.max_stations]:
            try:
                results.append(self._fetch_station(station))
            except ProviderError as e:
                logger.warning(f"WAQI station data fetch failed: {e}")

        return results

    def _fetch_station(self, station: Dict[str, Any]) -> Dict[str, Any]:
        uid = station.get('uid')
        feed = self._get(f'/feed/@{uid}/', params={'token': self.api_key})

        if feed.get('status') != 'ok':
            raise ProviderError(self.name, f"feed @{uid} returned {feed.get('data')}")

        data = feed.get('data') or {}
        city_info = data.get('city') or {}
        geo = city_info.get('geo') or []
        iaqi = data.get('iaqi') or {}

        def reading(key):
            return (iaqi.get(key) or {}).get('v')

        aqi = data.get('aqi')
        # WAQI reports '-' for stations without a current index
        if not isinstance(aqi, (int, float)):
            aqi = None

        return {
            'station': (station.get('station') or {}).get('name'),
            'location': city_info.get('name') or (station.get('station') or {}).get('name'),
            # WAQI geo is [lat, lon]
            'coordinates': {'lat': geo[0], 'lon': geo[1]} if len(geo) == 2 else None,
            'air_quality': {
                'aqi': aqi,
                'pm25': reading('pm25'),
                'pm10': reading('pm10'),
                'no2': reading('no2'),
                'o3': reading('o3'),
                'co': reading('co'),
                'so2': reading('so2'),
            },
            'weather': {
                'temperature': reading('t'),
                'humidity': reading('h'),
                'wind_speed': reading('w'),
            },
            'source': self.name,
            'quality': 'community',
            'timestamp': (data.get('time') or {}).get('iso') or _now(),
        }

    def ping(self) -> bool:
        if not self.is_configured:
            return False
        try:
            return self._get('/feed/nairobi/', params={'token': self.api_key}).get('status') == 'ok'
        except ProviderError as e:
            logger.warning(f"WAQI test failed: {e}")
            return False


class OpenAQClient(BaseProviderClient):
    """
    OpenAQ v3: monitoring locations near a point and their latest values
    """
    name = 'OpenAQ'
    base_url = OPENAQ_BASE_URL
    setting_name = 'OPENAQ_API_KEY'
    radius_m = 25000
    max_locations = 5

    PARAMETERS = {'pm25', 'pm10', 'no2', 'o3', 'co', 'so2'}

    def _headers(self) -> Dict[str, str]:
        return {'X-API-Key': self.api_key}

    def fetch_latest(self, coords: Dict[str, float]) -> List[Dict[str, Any]]:
        if not self.is_configured:
            return []

        payload = self._get('/locations', params={
            'coordinates': f"{coords['lat']},{coords['lon']}",
            'radius': self.radius_m,
            'limit': self.max_locations,
        }, headers=self._headers())

        results = []
        for location in payload.get('results') or []:
            try:
                station = self._fetch_location_latest(location)
            except ProviderError as e:
                logger.warning(f"OpenAQ latest fetch failed for location {location.get('id')}: {e}")
                continue
            if station:
                results.append(station)

        return results

    def _fetch_location_latest(self, location: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        sensor_params = {}
        for sensor in location.get('sensors') or []:
            parameter = ((sensor.get('parameter') or {}).get('name') or '').lower().replace('.', '')
            if parameter in self.PARAMETERS:
                sensor_params[sensor.get('id')] = parameter

        if not sensor_params:
            return None

        latest = self._get(f"/locations/{location['id']}/latest", headers=self._headers())

        air_quality = {}
        timestamp = None
        for item in latest.get('results') or []:
            parameter = sensor_params.get(item.get('sensorsId'))
            if parameter and item.get('value') is not None and item['value'] >= 0:
                air_quality[parameter] = item['value']
                timestamp = timestamp or (item.get('datetime') or {}).get('utc')

        if not air_quality:
            return None

        coordinates = location.get('coordinates') or {}
        return {
            'location': location.get('name') or f"OpenAQ {location['id']}",
            'coordinates': {'lat': coordinates.get('latitude'), 'lon': coordinates.get('longitude')},
            'air_quality': air_quality,
            'weather': {},
            'source': self.name,
            'quality': 'reference',
            'timestamp': timestamp or _now(),
        }

    def ping(self) -> bool:
        if not self.is_configured:
            return False
        try:
            self._get('/locations', params={'iso': 'KE', 'limit': 1}, headers=self._headers())
            return True
        except ProviderError as e:
            logger.warning(f"OpenAQ test failed: {e}")
            return False
