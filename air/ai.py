"""
LLM-backed narrative analysis of air quality snapshots

The model is reached through OpenRouter's OpenAI-compatible endpoint using
huggingface_hub's InferenceClient. Every public method degrades to a
rule-based result when the key is missing, the request fails or the reply
is not valid JSON.
"""
import json
import logging
import re
import uuid
from typing import Any, Dict, List, Optional
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert air quality scientist and policy advisor specializing in environmental data analysis for Nairobi, Kenya.

Your expertise includes:
- Air quality monitoring and sensor data interpretation
- Environmental health impact assessment
- Evidence-based policy recommendation
- Weather-pollution correlation analysis
- Hotspot detection and source attribution

Guidelines:
- Provide specific, actionable insights
- Use quantified metrics when possible
- Consider local context (traffic, industry, weather patterns)
- Prioritize public health protection
- Consider implementation feasibility and cost-effectiveness

Response format: Always structure responses as valid JSON with clear categories and confidence scores where applicable."""

ANALYSIS_PROMPT = """Analyze the following air quality data for {location} and provide a {depth} assessment:

Context Data:
{context}

Please provide analysis in this JSON format:
{{
  "assessment": "overall air quality assessment",
  "riskLevel": "low|medium|high|critical",
  "confidence": 0.0-1.0,
  "keyFindings": ["finding1", "finding2", "finding3"],
  "trends": {{
    "direction": "improving|stable|worsening",
    "confidence": 0.0-1.0,
    "timeframe": "short_term|medium_term|long_term"
  }},
  "predictions": {{
    "short_term": "6-hour forecast",
    "daily": "24-hour outlook",
    "weekly": "7-day trend prediction",
    "seasonal": "seasonal outlook"
  }},
  "healthRisks": {{
    "immediate": ["risk1", "risk2"],
    "vulnerable": ["children", "elderly", "respiratory_patients"],
    "precautions": ["action1", "action2"],
    "hospitalAlert": true|false
  }}
}}"""

HOTSPOT_PROMPT = """Analyze pollution hotspots using {algorithm} clustering with {sensitivity} sensitivity:

Hotspot Data:
{context}

Provide AI analysis for each hotspot in JSON format:
{{
  "clustered_hotspots": [
    {{
      "cluster_id": "unique_id",
      "confidence": 0.0-1.0,
      "severity": "low|moderate|high|critical",
      "source_attribution": "traffic|industrial|waste|mixed",
      "ai_analysis": {{
        "risk_factors": ["factor1", "factor2"],
        "priority": "low|medium|high|urgent",
        "response": "recommended immediate response"
      }},
      "temporal": {{
        "peak_hours": ["hour1", "hour2"],
        "trend": "increasing|stable|decreasing",
        "persistence": 0.0-1.0
      }}
    }}
  ]
}}"""

RECOMMENDATIONS_PROMPT = """Generate evidence-based policy recommendations for {location}:

Current Context:
{context}

Provide recommendations in JSON format:
{{
  "recommendations": [
    {{
      "id": "rec_id",
      "category": "traffic|industrial|waste|monitoring|health",
      "title": "Recommendation title",
      "description": "Detailed description",
      "priority": "low|medium|high|urgent",
      "implementation": {{
        "timeline": "immediate|short_term|medium_term|long_term",
        "cost_estimate": "low|medium|high",
        "stakeholders": ["stakeholder1", "stakeholder2"],
        "prerequisites": ["prereq1", "prereq2"]
      }},
      "expected_outcomes": {{
        "air_quality_improvement": "expected improvement",
        "health_benefits": "expected health benefits",
        "economic_impact": "economic considerations",
        "timeframe": "time to see results"
      }},
      "monitoring": {{
        "kpis": ["kpi1", "kpi2"],
        "measurement_method": "how to measure success",
        "review_frequency": "monitoring frequency"
      }}
    }}
  ]
}}"""

SOURCE_POLLUTANTS = {
    'traffic': ['NO2', 'PM2.5'],
    'industrial': ['SO2', 'PM10', 'NO2'],
    'waste': ['PM2.5', 'CO'],
    'mixed': ['PM2.5', 'NO2'],
}

TIMELINE_PRIORITY = {
    'immediate': 4,
    'short_term': 3,
    'medium_term': 2,
    'long_term': 1,
}

IMPACT_ESTIMATES = {
    'monitoring': {'improvement': '10-20%', 'timeframe': '6-12 months'},
    'traffic': {'improvement': '15-30%', 'timeframe': '3-6 months'},
    'industrial': {'improvement': '20-40%', 'timeframe': '6-18 months'},
    'health': {'improvement': '5-15%', 'timeframe': 'immediate to 3 months'},
}

DEFAULT_LOCATION = {'type': 'Point', 'coordinates': [36.8219, -1.2921]}


class AIUnavailable(Exception):
    """The model could not be reached or is not configured"""


def clamp(value: Any, low: float = 0.0, high: float = 1.0, default: float = 0.5) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(number, low), high)


# Model replies are valid JSON but not always the requested shape

def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def as_list(value: Any, default: List[Any]) -> List[Any]:
    """A non-empty list, a lone string wrapped in a list, or the default"""
    if isinstance(value, list) and value:
        return value
    if isinstance(value, str) and value.strip():
        return [value]
    return default


def clean_json_response(text: str) -> str:
    """Strip markdown code fences and blank lines around a JSON reply"""
    text = re.sub(r'```json\n?', '', text)
    text = re.sub(r'```\n?', '', text)
    text = re.sub(r'^\s*[\r\n]', '', text, flags=re.MULTILINE)
    return text.strip()


def get_current_season(month: Optional[int] = None) -> str:
    """East African seasons by calendar month (1-12)"""
    month = month or timezone.now().month
    if month in (12, 1, 2):
        return 'dry_season'
    if month in (3, 4, 5):
        return 'long_rains'
    if month in (6, 7, 8, 9):
        return 'dry_season'
    return 'short_rains'


def get_time_of_day(hour: Optional[int] = None) -> str:
    hour = timezone.localtime().hour if hour is None else hour
    if 6 <= hour < 12:
        return 'morning'
    if 12 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 22:
        return 'evening'
    return 'night'


class AIPolicyService:
    """
    OpenRouter-backed analysis service with lazy client initialization
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self._model = model
        self._client = None

    @property
    def api_key(self) -> str:
        if self._api_key is not None:
            return self._api_key
        return getattr(settings, 'OPENROUTER_API_KEY', '')

    @property
    def model(self) -> str:
        return self._model or getattr(settings, 'PREFERRED_AI_MODEL', 'meta-llama/llama-3.3-70b-instruct')

    @property
    def base_url(self) -> str:
        return getattr(settings, 'OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1')

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        """Create the inference client on first use"""
        if not self.is_configured:
            raise AIUnavailable('OpenRouter API key not configured')

        if self._client is None:
            # Import here to avoid import-time cost when AI is disabled
            from huggingface_hub import InferenceClient

            self._client = InferenceClient(
                base_url=self.base_url,
                api_key=self.api_key,
                headers={
                    'HTTP-Referer': getattr(settings, 'FRONTEND_URL', '') or 'http://localhost:3000',
                    'X-Title': 'AirWatch Air Quality Platform',
                },
                timeout=30,
            )
        return self._client

    def call_model(self, prompt: str, temperature: Optional[float] = None,
                   max_tokens: Optional[int] = None) -> str:
        """
        Send one prompt with the system prompt and return the reply text

        Raises:
            AIUnavailable: when the key is missing or the request fails
        """
        client = self._get_client()
        messages = [
            {'role': 'system', 'content': SYSTEM_PROMPT},
            {'role': 'user', 'content': prompt},
        ]

        try:
            response = client.chat_completion(
                messages=messages,
                model=self.model,
                max_tokens=max_tokens or getattr(settings, 'AI_MAX_TOKENS', 2000),
                temperature=temperature if temperature is not None else getattr(settings, 'AI_TEMPERATURE', 0.3),
                top_p=0.9,
                frequency_penalty=0.1,
                presence_penalty=0.1,
            )
            return response.choices[0].message.content
        except Exception as e:
            raise AIUnavailable(f'Model request failed: {e}') from e

    def _call_json(self, prompt: str, **kwargs) -> Dict[str, Any]:
        reply = self.call_model(prompt, **kwargs)
        try:
            parsed = json.loads(clean_json_response(reply or ''))
        except json.JSONDecodeError as e:
            raise AIUnavailable(f'Model returned invalid JSON: {e}') from e
        if not isinstance(parsed, dict):
            raise AIUnavailable('Model returned a non-object JSON value')
        return parsed

    # Comprehensive analysis

    def prepare_analysis_context(self, city_data: Dict[str, Any]) -> Dict[str, Any]:
        summary = city_data.get('summary') or {}
        weather = [
            m['properties'] for m in city_data.get('measurements') or []
            if m['properties'].get('wind_speed') is not None
        ]
        avg_wind = round(sum(w['wind_speed'] for w in weather) / len(weather), 1) if weather else None

        return {
            'air_quality': {
                'summary': summary,
                'hotspots_detected': len(city_data.get('hotspots') or []),
                'alerts_active': len(city_data.get('alerts') or []),
                'data_sources': city_data.get('data_sources') or [],
                'overall_status': summary.get('air_quality_status'),
            },
            'weather': {
                'avg_wind_speed': avg_wind,
                'impact_on_pollution': self.assess_weather_impact(avg_wind),
            },
            'temporal': {
                'timestamp': timezone.now().isoformat(),
                'season': get_current_season(),
                'time_of_day': get_time_of_day(),
            },
        }

    @staticmethod
    def assess_weather_impact(avg_wind_speed: Optional[float]) -> str:
        if avg_wind_speed is None:
            return 'unknown'
        if avg_wind_speed < 2:
            return 'pollution_accumulation'
        if avg_wind_speed > 5:
            return 'pollution_clearance'
        return 'neutral'

    def generate_comprehensive_analysis(self, city_data: Dict[str, Any],
                                        depth: str = 'comprehensive') -> Dict[str, Any]:
        """
        Narrative assessment of a city snapshot

        Returns:
            assessment, riskLevel, confidence, keyFindings, trends,
            predictions and healthRisks; 'source' tells whether the model
            or the rule-based fallback produced it
        """
        context = self.prepare_analysis_context(city_data)
        prompt = ANALYSIS_PROMPT.format(
            location=city_data.get('location', 'Nairobi, Kenya'),
            depth=depth,
            context=json.dumps(context, indent=2, default=str),
        )

        try:
            parsed = self._call_json(prompt, temperature=0.3, max_tokens=2000)
        except AIUnavailable as e:
            logger.warning(f"AI analysis unavailable, using rule-based assessment: {e}")
            return self.generate_fallback_analysis(city_data)

        analysis = self.parse_analysis(parsed)
        analysis['source'] = 'ai'
        analysis['model'] = self.model
        return analysis

    @staticmethod
    def parse_analysis(parsed: Dict[str, Any]) -> Dict[str, Any]:
        trends = parsed.get('trends')
        if isinstance(trends, str):
            trends = {'direction': trends}
        trends = as_dict(trends)
        predictions = as_dict(parsed.get('predictions'))
        health = as_dict(parsed.get('healthRisks'))

        return {
            'assessment': as_text(parsed.get('assessment'), 'Analysis unavailable'),
            'riskLevel': as_text(parsed.get('riskLevel'), 'medium'),
            'confidence': clamp(parsed.get('confidence')),
            'keyFindings': as_list(parsed.get('keyFindings'), ['No specific findings available']),
            'trends': {
                'direction': as_text(trends.get('direction'), 'stable'),
                'confidence': clamp(trends.get('confidence')),
                'timeframe': as_text(trends.get('timeframe'), 'medium_term'),
            },
            'predictions': {
                'short_term': as_text(predictions.get('short_term'), 'No short-term prediction available'),
                'daily': as_text(predictions.get('daily'), 'No daily outlook available'),
                'weekly': as_text(predictions.get('weekly'), 'No weekly trend available'),
                'seasonal': as_text(predictions.get('seasonal'), 'No seasonal outlook available'),
            },
            'healthRisks': {
                'immediate': as_list(health.get('immediate'), []),
                'vulnerable': as_list(health.get('vulnerable'), ['sensitive_groups']),
                'precautions': as_list(health.get('precautions'), ['monitor_air_quality']),
                'hospitalAlert': health.get('hospitalAlert') is True,
            },
        }

    @staticmethod
    def generate_fallback_analysis(city_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        summary = (city_data or {}).get('summary') or {}
        avg_pm25 = summary.get('avg_pm25')
        critical = any(
            a.get('severity') == 'critical' for a in (city_data or {}).get('alerts') or []
        )

        if avg_pm25 is None:
            risk_level = 'medium'
        elif critical or avg_pm25 > 55:
            risk_level = 'critical'
        elif avg_pm25 > 35:
            risk_level = 'high'
        elif avg_pm25 > 15:
            risk_level = 'medium'
        else:
            risk_level = 'low'

        findings = ['Automated analysis in progress']
        if summary.get('active_sources'):
            findings.append(f"{len(summary['active_sources'])} data source(s) active")
        if avg_pm25 is not None:
            findings.append(f"Average PM2.5 at {avg_pm25} μg/m³")

        return {
            'assessment': 'AI analysis temporarily unavailable - using rule-based assessment',
            'riskLevel': risk_level,
            'confidence': 0.3,
            'keyFindings': findings,
            'trends': {'direction': 'stable', 'confidence': 0.3, 'timeframe': 'medium_term'},
            'predictions': {
                'short_term': 'Conditions expected to remain stable',
                'daily': 'Monitor for changes',
                'weekly': 'Seasonal patterns expected',
                'seasonal': 'Dry season impact anticipated',
            },
            'healthRisks': {
                'immediate': [],
                'vulnerable': ['sensitive_groups'],
                'precautions': ['monitor_air_quality'],
                'hospitalAlert': risk_level == 'critical',
            },
            'source': 'fallback',
        }

    # Smart hotspots

    def detect_smart_hotspots(self, hotspots: List[Dict[str, Any]], data_sources: List[str],
                              algorithm: str = 'dbscan', sensitivity: str = 'medium') -> Dict[str, Any]:
        """
        Cluster and attribute hotspots

        Returns:
            clusters, overall_confidence, data_sources and algorithm_used
        """
        if not hotspots:
            return {'clusters': [], 'overall_confidence': 0, 'data_sources': data_sources,
                    'algorithm_used': algorithm}

        context = {
            'hotspots': [
                {
                    'location': h['geometry']['coordinates'],
                    'severity': h['properties'].get('severity'),
                    'value': h['properties'].get('value'),
                    'source': h['properties'].get('source'),
                    'pollutant': h['properties'].get('pollutant', 'PM2.5'),
                    'location_name': h['properties'].get('location_name'),
                }
                for h in hotspots
            ],
            'data_sources': data_sources,
        }
        prompt = HOTSPOT_PROMPT.format(
            algorithm=algorithm,
            sensitivity=sensitivity,
            context=json.dumps(context, indent=2, default=str),
        )

        try:
            parsed = self._call_json(prompt, temperature=0.2, max_tokens=1500)
            clusters = self.parse_hotspot_clusters(parsed, hotspots)
            source = 'ai'
        except AIUnavailable as e:
            logger.warning(f"Smart hotspot analysis unavailable, using fallback: {e}")
            clusters = self.fallback_clusters(hotspots)
            source = 'fallback'

        return {
            'clusters': clusters,
            'overall_confidence': self.overall_confidence(clusters),
            'data_sources': data_sources,
            'algorithm_used': algorithm,
            'source': source,
        }

    @staticmethod
    def parse_hotspot_clusters(parsed: Dict[str, Any], hotspots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        clusters = []
        entries = [c for c in as_list(parsed.get('clustered_hotspots'), []) if isinstance(c, dict)]
        for index, cluster in enumerate(entries):
            ai_analysis = as_dict(cluster.get('ai_analysis'))
            temporal = as_dict(cluster.get('temporal'))
            attribution = as_text(cluster.get('source_attribution'), 'mixed')
            geometry = hotspots[index]['geometry'] if index < len(hotspots) else DEFAULT_LOCATION

            clusters.append({
                'id': as_text(cluster.get('cluster_id'), f'cluster_{index}'),
                'geometry': geometry,
                'confidence': clamp(cluster.get('confidence')),
                'severity': as_text(cluster.get('severity'), 'moderate'),
                'source_attribution': attribution,
                'pollutants': SOURCE_POLLUTANTS.get(attribution, ['PM2.5']),
                'ai_analysis': {
                    'risk_factors': as_list(ai_analysis.get('risk_factors'), ['unknown_factors']),
                    'priority': as_text(ai_analysis.get('priority'), 'medium'),
                    'response': as_text(ai_analysis.get('response'), 'monitor_and_assess'),
                },
                'temporal': {
                    'peak_hours': as_list(temporal.get('peak_hours'), ['07:00-09:00', '17:00-19:00']),
                    'trend': as_text(temporal.get('trend'), 'stable'),
                    'persistence': clamp(temporal.get('persistence')),
                },
            })
        return clusters

    @staticmethod
    def fallback_clusters(hotspots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        priority = {'critical': 'urgent', 'high': 'high', 'moderate': 'medium'}
        clusters = []
        for index, hotspot in enumerate(hotspots):
            props = hotspot['properties']
            attribution = 'traffic' if props.get('pollutant') == 'NO2' else 'mixed'
            clusters.append({
                'id': f'cluster_{index}',
                'geometry': hotspot['geometry'],
                'confidence': 0.5,
                'severity': props.get('severity', 'moderate'),
                'source_attribution': attribution,
                'pollutants': SOURCE_POLLUTANTS[attribution],
                'location_name': props.get('location_name'),
                'ai_analysis': {
                    'risk_factors': [f"{props.get('pollutant', 'PM2.5')} above {props.get('threshold')}"],
                    'priority': priority.get(props.get('severity'), 'medium'),
                    'response': 'monitor_and_assess',
                },
                'temporal': {
                    'peak_hours': ['07:00-09:00', '17:00-19:00'],
                    'trend': 'stable',
                    'persistence': 0.5,
                },
            })
        return clusters

    @staticmethod
    def overall_confidence(clusters: List[Dict[str, Any]]) -> float:
        if not clusters:
            return 0
        return round(sum(c['confidence'] for c in clusters) / len(clusters), 2)

    # Smart recommendations

    def generate_smart_recommendations(self, current_conditions: Dict[str, Any]) -> Dict[str, Any]:
        """
        Policy recommendations for the current conditions, scored locally
        for confidence, implementation priority and estimated impact
        """
        context = {
            'current_conditions': current_conditions,
            'environmental_factors': {
                'season': get_current_season(),
                'time_of_day': get_time_of_day(),
            },
            'policy_context': {
                'existing_policies': ['traffic_restrictions', 'industrial_emissions_control'],
                'enforcement_level': 'moderate',
                'public_compliance': 'fair',
            },
        }
        prompt = RECOMMENDATIONS_PROMPT.format(
            location=current_conditions.get('location', 'Nairobi, Kenya'),
            context=json.dumps(context, indent=2, default=str),
        )

        try:
            parsed = self._call_json(prompt, temperature=0.5, max_tokens=2000)
            recommendations = self.parse_recommendations(parsed)
            source = 'ai'
        except AIUnavailable as e:
            logger.warning(f"Smart recommendations unavailable, using fallback: {e}")
            recommendations = self.fallback_recommendations()
            source = 'fallback'

        return {
            'recommendations': [
                {
                    **rec,
                    'confidence': self.recommendation_confidence(rec, current_conditions),
                    'implementation_priority': TIMELINE_PRIORITY.get(
                        (rec.get('implementation') or {}).get('timeline'), 2),
                    'estimated_impact': IMPACT_ESTIMATES.get(
                        rec.get('category'), {'improvement': '5-15%', 'timeframe': '6-12 months'}),
                }
                for rec in recommendations
            ],
            'generated_at': timezone.now().isoformat(),
            'context_factors': self.context_factors(current_conditions),
            'source': source,
        }

    @staticmethod
    def parse_recommendations(parsed: Dict[str, Any]) -> List[Dict[str, Any]]:
        recommendations = []
        for rec in as_list(parsed.get('recommendations'), []):
            # A bare string is taken as the recommendation title
            if isinstance(rec, str):
                rec = {'title': rec}
            if not isinstance(rec, dict):
                continue
            implementation = as_dict(rec.get('implementation'))
            outcomes = as_dict(rec.get('expected_outcomes'))
            monitoring = as_dict(rec.get('monitoring'))
            recommendations.append({
                'id': as_text(rec.get('id'), f'rec_{uuid.uuid4().hex[:8]}'),
                'category': as_text(rec.get('category'), 'monitoring'),
                'title': as_text(rec.get('title'), 'Air Quality Monitoring Enhancement'),
                'description': as_text(rec.get('description'), 'Enhance air quality monitoring capabilities'),
                'priority': as_text(rec.get('priority'), 'medium'),
                'implementation': {
                    'timeline': as_text(implementation.get('timeline'), 'medium_term'),
                    'cost_estimate': as_text(implementation.get('cost_estimate'), 'medium'),
                    'stakeholders': as_list(implementation.get('stakeholders'), ['NEMA', 'County_Government']),
                    'prerequisites': as_list(implementation.get('prerequisites'), ['stakeholder_alignment']),
                },
                'expected_outcomes': {
                    'air_quality_improvement': as_text(
                        outcomes.get('air_quality_improvement'), 'Gradual improvement expected'),
                    'health_benefits': as_text(outcomes.get('health_benefits'), 'Reduced respiratory health risks'),
                    'economic_impact': as_text(outcomes.get('economic_impact'), 'Cost-effective intervention'),
                    'timeframe': as_text(outcomes.get('timeframe'), '6-12 months'),
                },
                'monitoring': {
                    'kpis': as_list(monitoring.get('kpis'), ['pm25_levels', 'aqi_improvement']),
                    'measurement_method': as_text(monitoring.get('measurement_method'), 'Continuous monitoring'),
                    'review_frequency': as_text(monitoring.get('review_frequency'), 'monthly'),
                },
            })
        return recommendations or AIPolicyService.fallback_recommendations()

    @staticmethod
    def fallback_recommendations() -> List[Dict[str, Any]]:
        return [
            {
                'id': 'fallback_rec_1',
                'category': 'monitoring',
                'title': 'Enhance Air Quality Monitoring',
                'description': 'Improve monitoring infrastructure and data collection to better track pollution sources',
                'priority': 'high',
                'implementation': {
                    'timeline': 'immediate',
                    'cost_estimate': 'medium',
                    'stakeholders': ['NEMA', 'County_Government'],
                    'prerequisites': ['stakeholder_alignment'],
                },
                'expected_outcomes': {
                    'air_quality_improvement': 'Gradual improvement expected with better data',
                    'health_benefits': 'Reduced exposure for sensitive groups',
                    'economic_impact': 'Cost-effective intervention',
                    'timeframe': '6-12 months',
                },
                'monitoring': {
                    'kpis': ['pm25_levels', 'aqi_improvement'],
                    'measurement_method': 'Continuous monitoring',
                    'review_frequency': 'monthly',
                },
            },
            {
                'id': 'fallback_rec_2',
                'category': 'traffic',
                'title': 'Implement Traffic Restrictions',
                'description': 'Temporary traffic restrictions in high pollution areas',
                'priority': 'medium',
                'implementation': {
                    'timeline': 'short_term',
                    'cost_estimate': 'low',
                    'stakeholders': ['Traffic Police', 'City Council'],
                    'prerequisites': ['public_awareness_campaign'],
                },
                'expected_outcomes': {
                    'air_quality_improvement': 'Temporary reduction in PM2.5 levels',
                    'health_benefits': 'Immediate relief for residents',
                    'economic_impact': 'Minimal economic disruption',
                    'timeframe': 'immediate to 3 months',
                },
                'monitoring': {
                    'kpis': ['traffic_volume_reduction', 'pollution_levels'],
                    'measurement_method': 'Real-time monitoring',
                    'review_frequency': 'daily',
                },
            },
        ]

    @staticmethod
    def recommendation_confidence(recommendation: Dict[str, Any], conditions: Dict[str, Any]) -> float:
        confidence = 0.5
        if (conditions.get('aqi') or 0) > 100:
            confidence += 0.2
        if conditions.get('avg_wind_speed') is not None and conditions['avg_wind_speed'] < 3:
            confidence += 0.1
        if recommendation.get('category') == 'traffic' and (conditions.get('avg_no2') or 0) > 40:
            confidence += 0.1
        if recommendation.get('category') == 'industrial' and (conditions.get('hotspot_count') or 0) > 0:
            confidence += 0.1
        return round(min(confidence, 1.0), 2)

    @staticmethod
    def context_factors(conditions: Dict[str, Any]) -> List[str]:
        factors = []
        if conditions.get('aqi') is not None:
            factors.append(f"AQI: {conditions['aqi']}")
        if conditions.get('avg_pm25') is not None:
            factors.append(f"PM2.5: {conditions['avg_pm25']} μg/m³")
        if (conditions.get('avg_no2') or 0) > 40:
            factors.append('Elevated traffic-related NO2')
        if conditions.get('hotspot_count'):
            factors.append(f"{conditions['hotspot_count']} active hotspot(s)")
        return factors


ai_service = AIPolicyService()
