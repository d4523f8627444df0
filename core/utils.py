"""
Shared utility functions
"""
import logging
import requests
from typing import Optional, Tuple, Dict, Any, List

logger = logging.getLogger(__name__)

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

# EPA AQI breakpoints: (c_low, c_high, aqi_low, aqi_high)
AQI_BREAKPOINTS = {
    'pm25': [
        (0, 12.0, 0, 50),
        (12.1, 35.4, 51, 100),
        (35.5, 55.4, 101, 150),
        (55.5, 150.4, 151, 200),
        (150.5, 250.4, 201, 300),
        (250.5, 350.4, 301, 400),
        (350.5, 500.4, 401, 500),
    ],
    'pm10': [
        (0, 54, 0, 50),
        (55, 154, 51, 100),
        (155, 254, 101, 150),
        (255, 354, 151, 200),
        (355, 424, 201, 300),
        (425, 504, 301, 400),
        (505, 604, 401, 500),
    ],
    'o3': [
        (0, 54, 0, 50),
        (55, 70, 51, 100),
        (71, 85, 101, 150),
        (86, 105, 151, 200),
        (106, 200, 201, 300),
        (201, 400, 301, 400),
    ],
    'no2': [
        (0, 53, 0, 50),
        (54, 100, 51, 100),
        (101, 360, 101, 150),
        (361, 649, 151, 200),
        (650, 1249, 201, 300),
        (1250, 2049, 301, 400),
    ],
    'so2': [
        (0, 35, 0, 50),
        (36, 75, 51, 100),
        (76, 185, 101, 150),
        (186, 304, 151, 200),
        (305, 604, 201, 300),
        (605, 1004, 301, 400),
    ],
    'co': [
        (0, 4400, 0, 50),
        (4401, 9400, 51, 100),
        (9401, 12400, 101, 150),
        (12401, 15400, 151, 200),
        (15401, 30400, 201, 300),
        (30401, 50400, 301, 400),
    ],
}


def geocode_city(city_name: str) -> Optional[Tuple[float, float]]:
    """
    Geocode a city name to latitude and longitude using Open-Meteo Geocoding API

    Args:
        city_name: Name of the city

    Returns:
        Tuple of (latitude, longitude) or None if not found
    """
    try:
        params = {
            'name': city_name,
            'count': 1,
            'language': 'en',
            'format': 'json'
        }

        response = requests.get(GEOCODING_URL, params=params, timeout=10)
        response.raise_for_status()
        data = response.json()

        if data.get('results'):
            result = data['results'][0]
            return (result['latitude'], result['longitude'])

        return None
    except requests.exceptions.RequestException as e:
        logger.warning(f"Error geocoding city {city_name}: {e}")
        return None
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning(f"Unexpected geocoding response for {city_name}: {e}")
        return None


def calculate_epa_aqi(pollutant: str, concentration: Optional[float]) -> Optional[int]:
    """
    Calculate EPA AQI for a given pollutant and concentration

    Concentrations falling between two published breakpoints (e.g. PM2.5 of
    12.05) are placed in the upper band.

    Args:
        pollutant: One of 'pm25', 'pm10', 'o3', 'no2', 'co', 'so2'
        concentration: Pollutant concentration in appropriate units

    Returns:
        AQI value (0-500) or None if invalid
    """
    if concentration is None or concentration < 0:
        return None

    breakpoints = AQI_BREAKPOINTS.get(pollutant.lower())
    if breakpoints is None:
        return None

    for c_low, c_high, aqi_low, aqi_high in breakpoints:
        if concentration <= c_high:
            # Gap between bands: clamp to the band's lower edge
            concentration = max(concentration, c_low)
            aqi = ((aqi_high - aqi_low) / (c_high - c_low)) * (concentration - c_low) + aqi_low
            return int(round(aqi))

    # Above the highest breakpoint
    return 500


def get_aqi_category(aqi: Optional[float]) -> dict:
    """
    Get AQI category, color, and health advice based on AQI value

    Args:
        aqi: AQI value (0-500)

    Returns:
        Dictionary with category, color, and health_advice
    """
    if aqi is None or not isinstance(aqi, (int, float)):
        return {
            'category': 'Unknown',
            'color': '#808080',
            'health_advice': 'Unable to determine air quality.'
        }

    aqi = int(aqi)

    if aqi <= 50:
        return {
            'category': 'Good',
            'color': '#00E400',
            'health_advice': 'Air quality is satisfactory, and air pollution poses little or no risk.'
        }
    elif aqi <= 100:
        return {
            'category': 'Moderate',
            'color': '#FFFF00',
            'health_advice': 'Air quality is acceptable. However, there may be a risk for some people, particularly those who are unusually sensitive to air pollution.'
        }
    elif aqi <= 150:
        return {
            'category': 'Unhealthy for Sensitive Groups',
            'color': '#FF7E00',
            'health_advice': 'Members of sensitive groups may experience health effects. The general public is less likely to be affected.'
        }
    elif aqi <= 200:
        return {
            'category': 'Unhealthy',
            'color': '#FF0000',
            'health_advice': 'Some members of the general public may experience health effects; members of sensitive groups may experience more serious health effects.'
        }
    elif aqi <= 300:
        return {
            'category': 'Very Unhealthy',
            'color': '#8F3F97',
            'health_advice': 'Health alert: The risk of health effects is increased for everyone.'
        }
    else:
        return {
            'category': 'Hazardous',
            'color': '#7E0023',
            'health_advice': 'Health warning of emergency conditions: everyone is more likely to be affected.'
        }


def get_health_advisory(summary: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the public health advisory for a city summary

    Args:
        summary: Summary dict with 'aqi' and 'air_quality_status'

    Returns:
        Dictionary with level, message and precautions
    """
    status = summary.get('air_quality_status')
    if not status or status in ('Unknown', 'Data Unavailable'):
        return {
            'level': 'unknown',
            'message': 'Insufficient data to provide health advisory',
            'precautions': ['Check back later for updated information']
        }

    aqi = summary.get('aqi') or 0

    if aqi <= 50:
        return {
            'level': 'good',
            'message': 'Air quality is satisfactory, and air pollution poses little or no risk',
            'precautions': [
                'Enjoy outdoor activities',
                'Open windows for ventilation'
            ]
        }
    elif aqi <= 100:
        return {
            'level': 'moderate',
            'message': 'Air quality is acceptable. However, there may be a risk for some people, particularly those who are unusually sensitive to air pollution',
            'precautions': [
                'Unusually sensitive people should consider reducing prolonged or heavy exertion',
                'Watch for symptoms such as coughing or shortness of breath'
            ]
        }
    elif aqi <= 150:
        return {
            'level': 'unhealthy_sensitive',
            'message': 'Members of sensitive groups may experience health effects. The general public is less likely to be affected',
            'precautions': [
                'Sensitive groups should reduce prolonged or heavy exertion',
                'People with heart or lung disease, older adults, and children should limit outdoor exertion'
            ]
        }
    elif aqi <= 200:
        return {
            'level': 'unhealthy',
            'message': 'Some members of the general public may experience health effects; members of sensitive groups may experience more serious health effects',
            'precautions': [
                'Everyone should reduce prolonged or heavy exertion',
                'Sensitive groups should avoid all physical activity outdoors',
                'Move activities indoors or reschedule to a time when air quality is better'
            ]
        }
    return {
        'level': 'very_unhealthy',
        'message': 'Health alert: The risk of health effects is increased for everyone',
        'precautions': [
            'Everyone should avoid all physical activity outdoors',
            'Sensitive groups should remain indoors and keep activity levels low',
            'Keep windows and doors closed',
            'Use air purifiers if available'
        ]
    }


def get_severity_level(pm25: Optional[float]) -> str:
    """Map a PM2.5 reading (µg/m³) to a severity label"""
    if not pm25:
        return 'unknown'
    if pm25 <= 15:
        return 'good'
    if pm25 <= 25:
        return 'moderate'
    if pm25 <= 35:
        return 'unhealthy_sensitive'
    if pm25 <= 55:
        return 'unhealthy'
    if pm25 <= 150:
        return 'very_unhealthy'
    return 'hazardous'


# Dashboard quick-stat helpers

AIR_QUALITY_EMOJI = {
    'Good': '😊',
    'Moderate': '😐',
    'Unhealthy for Sensitive Groups': '😷',
    'Unhealthy': '😨',
    'Very Unhealthy': '🚨',
    'Unknown': '❓',
}


def get_air_quality_emoji(status: Optional[str]) -> str:
    return AIR_QUALITY_EMOJI.get(status, '❓')


def get_health_message(pm25: Optional[float]) -> str:
    if not pm25:
        return 'Air quality data unavailable'
    if pm25 <= 15:
        return 'Air quality is good for outdoor activities'
    if pm25 <= 25:
        return 'Air quality is acceptable for most people'
    if pm25 <= 35:
        return 'Sensitive individuals should consider limiting prolonged outdoor exertion'
    if pm25 <= 55:
        return 'Everyone should limit prolonged outdoor exertion'
    return 'Avoid outdoor activities. Health alert in effect.'


def get_trend_indicator(pm25: Optional[float]) -> str:
    # No history is kept, so the trend is inferred from the current level only
    if not pm25:
        return 'stable'
    if pm25 > 35:
        return 'worsening'
    if pm25 < 25:
        return 'improving'
    return 'stable'


def get_quick_recommendation(pm25: Optional[float]) -> str:
    if not pm25:
        return 'Monitor air quality regularly'
    if pm25 <= 15:
        return 'Great day for outdoor activities!'
    if pm25 <= 25:
        return 'Good air quality - enjoy outdoor time'
    if pm25 <= 35:
        return 'Consider wearing a mask for extended outdoor activities'
    if pm25 <= 55:
        return 'Limit outdoor activities, especially for sensitive groups'
    return 'Stay indoors and avoid outdoor activities'


def generate_recommended_actions(city_data: Dict[str, Any]) -> List[str]:
    """
    Suggest operator actions for the current city snapshot

    Args:
        city_data: Aggregated city data with 'summary' and 'hotspots'

    Returns:
        List of action strings (never empty)
    """
    actions = []
    avg_pm25 = (city_data.get('summary') or {}).get('avg_pm25') or 0
    hotspots = city_data.get('hotspots') or []

    if avg_pm25 > 35:
        actions.append('Issue public health advisory for sensitive groups')

    if avg_pm25 > 55:
        actions.append('Consider implementing traffic restrictions in high-pollution areas')

    if any(h['properties'].get('severity') == 'critical' for h in hotspots):
        actions.append('Deploy mobile monitoring units to critical areas for detailed assessment')

    if 0 < avg_pm25 <= 35:
        actions.append('Continue routine monitoring and public awareness campaigns')

    return actions or ['No specific actions recommended at this time']


def generate_api_recommendations(test_results: Dict[str, bool]) -> List[Dict[str, str]]:
    """
    Turn provider connectivity results into setup recommendations

    Args:
        test_results: Mapping of provider name to connectivity flag

    Returns:
        List of {priority, message, action} dicts
    """
    recommendations = []

    if not test_results.get('weatherapi'):
        recommendations.append({
            'priority': 'high',
            'message': 'WeatherAPI.com is required for air quality data',
            'action': 'Get free API key at https://www.weatherapi.com/signup.aspx'
        })

    if not any(test_results.get(name) for name in ('openaq', 'iqair', 'waqi')):
        recommendations.append({
            'priority': 'medium',
            'message': 'Consider adding additional data sources for better coverage',
            'action': 'Register for OpenAQ (free) or other premium services'
        })

    if test_results and not any(test_results.values()):
        recommendations.append({
            'priority': 'critical',
            'message': 'No working API connections found',
            'action': 'Check internet connection and API key configurations'
        })

    return recommendations
