# File: agribot/schemas.py
"""
Typed request payloads and result records for the recommendation pipeline.

Request structs are built from inbound JSON with ``from_mapping``; that is the
only place where input is validated. Records are created by the fallback
engine or the response parser and serialised with ``to_dict`` into the shape
the UI already consumes.
"""

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from .errors import InvalidInput

SOURCE_MODEL = 'model'
SOURCE_FALLBACK = 'fallback engine'

SUITABILITY_LEVELS = ('High', 'Medium', 'Low')


# --- Input helpers ---

def _lookup(data, key):
    """Finds ``key`` in snake_case or its camelCase spelling."""
    if key in data:
        return data[key]
    head, *rest = key.split('_')
    camel = head + ''.join(part.capitalize() for part in rest)
    return data.get(camel)


def _number(data, key, required=True):
    value = _lookup(data, key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidInput(f"'{key}' is required", field=key)
        return None
    if isinstance(value, bool):
        raise InvalidInput(f"'{key}' must be numeric", field=key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"'{key}' must be numeric, got {value!r}", field=key)
    if not math.isfinite(number):
        raise InvalidInput(f"'{key}' must be a finite number", field=key)
    return number


def _text(data, key, required=False):
    value = _lookup(data, key)
    if value is None or not str(value).strip():
        if required:
            raise InvalidInput(f"'{key}' is required", field=key)
        return None
    return str(value).strip()


def _require_mapping(data):
    if not isinstance(data, Mapping):
        raise InvalidInput("Request body must be a JSON object")
    return data


# --- Requests ---

@dataclass(frozen=True)
class SoilEnvironmentInput:
    nitrogen: float
    phosphorus: float
    potassium: float
    temperature: float
    humidity: float
    ph: float
    rainfall: float
    state: Optional[str] = None
    district: Optional[str] = None
    soil_type: Optional[str] = None
    climate: Optional[str] = None
    area: Optional[str] = None
    season: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        return cls(
            nitrogen=_number(data, 'nitrogen'),
            phosphorus=_number(data, 'phosphorus'),
            potassium=_number(data, 'potassium'),
            temperature=_number(data, 'temperature'),
            humidity=_number(data, 'humidity'),
            ph=_number(data, 'ph'),
            rainfall=_number(data, 'rainfall'),
            state=_text(data, 'state'),
            district=_text(data, 'district'),
            soil_type=_text(data, 'soil_type'),
            climate=_text(data, 'climate'),
            area=_text(data, 'area'),
            season=_text(data, 'season'),
        )


@dataclass(frozen=True)
class ChatRequest:
    message: str
    context: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        context = data.get('context')
        if context is not None and not isinstance(context, str):
            # Structured context is rendered as stable key=value pairs
            context = ', '.join(f"{k}={context[k]}" for k in sorted(context)) if isinstance(context, Mapping) else str(context)
        return cls(message=_text(data, 'message', required=True), context=context or None)


@dataclass(frozen=True)
class DiseaseRequest:
    crop_type: str
    symptoms: str
    affected_area: Optional[str] = None
    weather_conditions: Optional[str] = None
    severity: Optional[str] = None
    location: Optional[str] = None
    previous_treatments: Optional[str] = None
    detection_type: Optional[str] = None
    image_count: int = 0

    @property
    def is_pest(self):
        return (self.detection_type or '').lower() == 'pest_outbreak'

    @classmethod
    def from_mapping(cls, data, detection_type=None):
        data = _require_mapping(data)
        images = data.get('images') or []
        image_count = len(images) if isinstance(images, (list, tuple)) else 0
        return cls(
            crop_type=_text(data, 'crop_type', required=True),
            symptoms=_text(data, 'symptoms', required=True),
            affected_area=_text(data, 'affected_area'),
            weather_conditions=_text(data, 'weather_conditions'),
            severity=_text(data, 'severity'),
            location=_text(data, 'location'),
            previous_treatments=_text(data, 'previous_treatments'),
            detection_type=detection_type or _text(data, 'detection_type'),
            image_count=image_count,
        )


@dataclass(frozen=True)
class YieldRequest:
    crop_type: str
    area: float
    season: str
    soil_type: Optional[str] = None
    irrigation_type: Optional[str] = None
    rainfall: Optional[float] = None
    temperature: Optional[float] = None
    fertilizers: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        return cls(
            crop_type=_text(data, 'crop_type', required=True),
            area=_number(data, 'area'),
            season=_text(data, 'season', required=True),
            soil_type=_text(data, 'soil_type'),
            irrigation_type=_text(data, 'irrigation_type'),
            rainfall=_number(data, 'rainfall', required=False),
            temperature=_number(data, 'temperature', required=False),
            fertilizers=_text(data, 'fertilizers'),
        )


@dataclass(frozen=True)
class SwapRequest:
    current_crop: str
    farm_location: str
    current_yield: Optional[str] = None
    farm_size: Optional[str] = None
    season: Optional[str] = None
    available_budget: Optional[str] = None
    risk_tolerance: Optional[str] = None
    sustainability_goals: Optional[str] = None
    # (nitrogen, phosphorus, potassium, ph, soil_type); any may be None
    soil_conditions: Optional[Tuple[Any, ...]] = None
    # (current_price, demand_trend, competition)
    market_conditions: Optional[Tuple[Any, ...]] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        soil = _lookup(data, 'soil_conditions')
        market = _lookup(data, 'market_conditions')
        soil_conditions = None
        if isinstance(soil, Mapping):
            soil_conditions = (
                _number(soil, 'nitrogen', required=False),
                _number(soil, 'phosphorus', required=False),
                _number(soil, 'potassium', required=False),
                _number(soil, 'ph', required=False),
                _text(soil, 'soil_type'),
            )
        market_conditions = None
        if isinstance(market, Mapping):
            market_conditions = (
                _text(market, 'current_price'),
                _text(market, 'demand_trend'),
                _text(market, 'competition'),
            )
        return cls(
            current_crop=_text(data, 'current_crop', required=True),
            farm_location=_text(data, 'farm_location', required=True),
            current_yield=_text(data, 'current_yield'),
            farm_size=_text(data, 'farm_size'),
            season=_text(data, 'season'),
            available_budget=_text(data, 'available_budget'),
            risk_tolerance=_text(data, 'risk_tolerance'),
            sustainability_goals=_text(data, 'sustainability_goals'),
            soil_conditions=soil_conditions,
            market_conditions=market_conditions,
        )


@dataclass(frozen=True)
class SeasonRequest:
    crop_type: str
    region: Optional[str] = None
    soil_type: Optional[str] = None
    farm_size: Optional[str] = None
    current_year: Optional[str] = None
    water_availability: Optional[str] = None
    climate_conditions: Optional[str] = None
    farming_experience: Optional[str] = None
    budget_range: Optional[str] = None
    sustainability_preference: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        return cls(
            crop_type=_text(data, 'crop_type', required=True),
            region=_text(data, 'region'),
            soil_type=_text(data, 'soil_type'),
            farm_size=_text(data, 'farm_size'),
            current_year=_text(data, 'current_year'),
            water_availability=_text(data, 'water_availability'),
            climate_conditions=_text(data, 'climate_conditions'),
            farming_experience=_text(data, 'farming_experience'),
            budget_range=_text(data, 'budget_range'),
            sustainability_preference=_text(data, 'sustainability_preference'),
        )


@dataclass(frozen=True)
class FertilizerRequest:
    nitrogen: float
    phosphorus: float
    potassium: float
    ph: Optional[float] = None
    organic_matter: Optional[float] = None
    soil_type: Optional[str] = None
    crop_type: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        return cls(
            nitrogen=_number(data, 'nitrogen'),
            phosphorus=_number(data, 'phosphorus'),
            potassium=_number(data, 'potassium'),
            ph=_number(data, 'ph', required=False),
            organic_matter=_number(data, 'organic_matter', required=False),
            soil_type=_text(data, 'soil_type'),
            crop_type=_text(data, 'crop_type'),
        )


@dataclass(frozen=True)
class MarketRequest:
    crop_type: str
    region: Optional[str] = None
    current_price: Optional[float] = None
    season: Optional[str] = None
    quantity: Optional[float] = None
    quality_grade: Optional[str] = None
    time_frame: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        region = _text(data, 'region')
        if region is None:
            market, state = _text(data, 'market'), _text(data, 'state')
            region = ', '.join(part for part in (market, state) if part) or None
        return cls(
            crop_type=_text(data, 'crop_type', required=True),
            region=region,
            current_price=_number(data, 'current_price', required=False),
            season=_text(data, 'season'),
            quantity=_number(data, 'quantity', required=False),
            quality_grade=_text(data, 'quality_grade') or _text(data, 'quality'),
            time_frame=_text(data, 'time_frame'),
        )


@dataclass(frozen=True)
class GeospatialRequest:
    latitude: float
    longitude: float
    crop_type: str
    analysis_type: Optional[str] = None
    region: Optional[str] = None
    elevation: Optional[float] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        location = data.get('location')
        coords = location if isinstance(location, Mapping) else data
        latitude = _lookup(coords, 'latitude')
        longitude = _lookup(coords, 'longitude')
        if latitude is None and longitude is None:
            coords = {'latitude': coords.get('lat'), 'longitude': coords.get('lng')}
        return cls(
            latitude=_number(coords, 'latitude'),
            longitude=_number(coords, 'longitude'),
            crop_type=_text(data, 'crop_type', required=True),
            analysis_type=_text(data, 'analysis_type'),
            region=_text(data, 'region'),
            elevation=_number(data, 'elevation', required=False),
        )


@dataclass(frozen=True)
class IrrigationRequest:
    crop_type: str
    area: Optional[float] = None
    season: Optional[str] = None
    soil_type: Optional[str] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    rainfall: Optional[float] = None
    location: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        data = _require_mapping(data)
        return cls(
            crop_type=_text(data, 'crop_type', required=True),
            area=_number(data, 'area', required=False),
            season=_text(data, 'season'),
            soil_type=_text(data, 'soil_type'),
            temperature=_number(data, 'temperature', required=False),
            humidity=_number(data, 'humidity', required=False),
            rainfall=_number(data, 'rainfall', required=False),
            location=_text(data, 'location'),
        )


# --- Records ---

@dataclass(frozen=True)
class AdvisoryItem:
    """A ranked suggestion: a crop, a fertilizer action, an irrigation plan or a risk."""

    name: str
    suitability: str = 'Medium'
    details: Tuple[str, ...] = ()
    confidence: Optional[float] = None

    name_key = 'name'

    def to_dict(self):
        return {
            self.name_key: self.name,
            'suitability': self.suitability,
            'details': list(self.details),
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class CropCandidate(AdvisoryItem):
    name_key = 'crop'


@dataclass(frozen=True)
class TaskRecord:
    """
    A flat task-specific record (diagnosis, yield prediction, swap strategy,
    season plan, ...). ``fields`` maps the UI field names to extracted values.
    """

    kind: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    confidence: Optional[float] = None

    def __getitem__(self, key):
        return self.fields[key]

    def get(self, key, default=None):
        return self.fields.get(key, default)

    def to_dict(self):
        data = copy.deepcopy(dict(self.fields))
        data['confidence'] = self.confidence
        return data


@dataclass(frozen=True)
class AggregateResult:
    task: Any
    recommendations: Tuple[Any, ...]
    confidence: float
    source: str
    raw_response: str = ''
    model: Optional[str] = None
    soil_health: Optional[str] = None
    general_recommendations: Optional[str] = None
    risk_advisories: Optional[Tuple[Any, ...]] = None
    states: Tuple[str, ...] = ()
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def from_model(self):
        return self.source == SOURCE_MODEL

    def to_dict(self):
        data = {
            'recommendations': [item.to_dict() for item in self.recommendations],
            'confidence': self.confidence,
            'source': self.source,
            'rawResponse': self.raw_response,
            'task': getattr(self.task, 'value', self.task),
            'model': self.model,
            'timestamp': self.timestamp,
        }
        if self.soil_health is not None:
            data['soilHealth'] = self.soil_health
        if self.general_recommendations is not None:
            data['generalRecommendations'] = self.general_recommendations
        if self.risk_advisories is not None:
            data['riskAdvisories'] = [item.to_dict() for item in self.risk_advisories]
        return data
