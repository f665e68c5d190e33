# File: agribot/parsers.py
"""
Turns free model text into the same records the fallback engine produces.

Every parser here is total: malformed or empty text yields default records,
never an exception. Field extraction goes through ``extract_field`` driven by
per-task ``FieldPattern`` tables.
"""

import json
import logging
import random
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Optional

from . import fallback
from .confidence import clamp_unit
from .model_selector import TaskCategory
from .schemas import CropCandidate, TaskRecord

log = logging.getLogger(__name__)

MAX_SEGMENTS = 3
EXCERPT_LENGTH = 200

GENERAL_ADVICE_NAME = 'General Crop Advice'
GENERAL_ADVICE_CONFIDENCE = 0.75
MIXED_CROPS_NAME = 'Mixed Crops'
MIXED_CROPS_CONFIDENCE = 0.6
UNKNOWN_CROP = 'Unknown Crop'
EMPTY_RESPONSE_DETAIL = 'No response text was returned by the model'

# Default confidence bands when the text carries no "confidence: NN%"
CONFIDENCE_BAND = (0.6, 0.9)
DIAGNOSIS_BAND = (0.75, 0.95)
SWAP_BAND = (0.68, 0.92)
CHAT_BAND = (0.88, 0.96)

_CONFIDENCE = re.compile(r'confidence[:\s]+(\d+\.?\d*)%?', re.IGNORECASE)
_MARKUP = re.compile(r'[*#]')
_NAME = r'([A-Za-z][A-Za-z \t]*(?:\([A-Za-z \t]+\))?)'
_CROP_LABEL = re.compile(r'\bcrop\s*:\s*' + _NAME, re.IGNORECASE)
_CROP_LABEL_ANYWHERE = re.compile(r'\bcrop\s*:', re.IGNORECASE)
_ORDINAL_START = re.compile(r'^\s*\d+\.(?!\d)')
_ORDINAL_NAME = re.compile(r'^\s*\d+\.\s*' + _NAME)


def random_confidence_provider():
    """A provider drawing from its own PRNG, so concurrent parses share no state."""
    rng = random.Random()
    return rng.uniform


def string_to_dict(dict_string):
    try:
        return json.loads(dict_string)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid dictionary string: {e}")


# --- Field extraction ---

def extract_field(text, pattern, default=None):
    """
    Returns the first capture group of ``pattern`` in ``text`` (the whole
    match when the pattern has no groups), stripped, or ``default``.
    """
    if not text:
        return default
    if isinstance(pattern, str):
        pattern = re.compile(pattern, re.IGNORECASE)
    match = pattern.search(text)
    if not match:
        return default
    value = match.group(1) if pattern.groups else match.group(0)
    value = (value or '').strip()
    return value if value else default


def first_keyword(text, table, default):
    """Label of the first (keywords, label) row with a keyword present in ``text``."""
    lower = (text or '').lower()
    for keywords, label in table:
        if any(keyword in lower for keyword in keywords):
            return label
    return default


def all_keywords(text, table, default):
    """Labels of every (keywords, label) row with a keyword present in ``text``."""
    lower = (text or '').lower()
    found = [label for keywords, label in table if any(keyword in lower for keyword in keywords)]
    return found if found else list(default)


def extract_confidence(text, band, confidence_provider):
    value = extract_field(text, _CONFIDENCE)
    if value is not None:
        try:
            return clamp_unit(float(value) / 100)
        except ValueError:
            pass
    return clamp_unit(confidence_provider(*band))


@dataclass(frozen=True)
class FieldPattern:
    """
    One output field: a regex ``pattern`` with a literal ``default``. Fields
    that are keyword lookups rather than regexes pass ``extractor`` instead.
    """

    name: str
    pattern: Any
    default: Any
    extractor: Optional[Callable] = None

    def extract(self, text):
        if self.extractor is not None:
            value = self.extractor(text)
            return self.default if value is None else value
        return extract_field(text, self.pattern, self.default)


def extract_fields(text, fields):
    return {field.name: field.extract(text) for field in fields}


def field_defaults(fields):
    return {field.name: field.default for field in fields}


# --- Crop recommendation ---

SUITABILITY_KEYWORDS = (
    (('high', 'excellent'), 'High'),
    (('medium', 'good'), 'Medium'),
    (('low', 'poor'), 'Low'),
)


def _is_segment_start(line):
    return bool(_CROP_LABEL_ANYWHERE.search(line) or _ORDINAL_START.match(line))


def _segment_name(header):
    label = _CROP_LABEL.search(header)
    if label and label.group(1).strip():
        return label.group(1).strip()
    ordinal = _ORDINAL_NAME.match(header)
    if ordinal and ordinal.group(1).strip():
        return ordinal.group(1).strip()
    return UNKNOWN_CROP


def _general_advice(text):
    excerpt = text.strip()
    if len(excerpt) > EXCERPT_LENGTH:
        excerpt = excerpt[:EXCERPT_LENGTH] + '...'
    return CropCandidate(
        name=GENERAL_ADVICE_NAME,
        suitability='Medium',
        details=(excerpt or EMPTY_RESPONSE_DETAIL,),
        confidence=GENERAL_ADVICE_CONFIDENCE,
    )


def _parse_crops(text, confidence_provider):
    lines = [line for line in (text or '').splitlines() if line.strip()]

    segments = []
    for line in lines:
        plain = _MARKUP.sub('', line)
        if _is_segment_start(plain):
            segments.append((plain, []))
        elif segments:
            segments[-1][1].append(line.strip())

    if not segments:
        return [_general_advice(text or '')]

    candidates = []
    for header, details in segments[:MAX_SEGMENTS]:
        body = '\n'.join([header] + details)
        candidates.append(CropCandidate(
            name=_segment_name(header),
            suitability=first_keyword(body, SUITABILITY_KEYWORDS, 'Medium'),
            details=tuple(details),
            confidence=extract_confidence(body, CONFIDENCE_BAND, confidence_provider),
        ))
    return candidates


def parse_crop_recommendations(text, confidence_provider=None):
    """
    Segments model text into at most 3 crop candidates.

    A segment starts at any line carrying a "Crop:" label or at a leading
    "N." ordinal, so "Recommended Crop: Rice" opens a segment too. Text with
    no markers becomes one "General Crop Advice" record; any internal error
    becomes a single "Mixed Crops" record carrying the raw text.
    """
    provider = confidence_provider or random_confidence_provider()
    try:
        return _parse_crops(text, provider)
    except Exception as e:
        log.error(f"Failed to parse crop recommendations: {e}", exc_info=True)
        return [CropCandidate(
            name=MIXED_CROPS_NAME,
            suitability='Medium',
            details=(str(text),),
            confidence=MIXED_CROPS_CONFIDENCE,
        )]


# --- Disease / pest diagnosis ---

COMMON_DISEASES = ('blight', 'rust', 'mildew', 'rot', 'spot', 'wilt', 'mosaic', 'canker')

SEVERITY_KEYWORDS = (
    (('severe', 'critical'), 'Severe'),
    (('moderate',), 'Moderate'),
    (('mild', 'early'), 'Mild'),
)


def _disease_name(text):
    name = extract_field(text, r'(?:disease|diagnosis|pest)(?:\s+identification)?\s*[:\-]\s*([^\n.]+)')
    if name:
        return _MARKUP.sub('', name).strip() or None
    lower = text.lower()
    for disease in COMMON_DISEASES:
        if disease in lower:
            return disease.capitalize()
    return None


DISEASE_FIELDS = (
    FieldPattern('disease', None, 'Disease identification needed', extractor=_disease_name),
    FieldPattern('treatment', r'(?:treatment|remedy)[:\s]*([^\n.]+(?:\n[^\n.]+)*)',
                 'Apply appropriate fungicide or pesticide as recommended by agricultural expert'),
    FieldPattern('prevention', r'(?:prevention|preventive)[:\s]*([^\n.]+(?:\n[^\n.]+)*)',
                 'Maintain proper field hygiene and crop rotation'),
    FieldPattern('severity', None, 'Moderate',
                 extractor=lambda text: first_keyword(text, SEVERITY_KEYWORDS, None)),
    FieldPattern('organicAlternatives', r'(?:organic|natural)[:\s]*([^\n.]+(?:\n[^\n.]+)*)',
                 'Neem oil spray, compost tea, or beneficial microorganisms'),
    FieldPattern('timeline', r'(?:recovery|timeline)[:\s]*([^\n.]+)', '2-4 weeks with proper treatment'),
)


def parse_diagnosis(text, confidence_provider, kind='diagnosis'):
    fields = extract_fields(text, DISEASE_FIELDS)
    return [TaskRecord(kind, fields, confidence=extract_confidence(text, DIAGNOSIS_BAND, confidence_provider))]


# --- Yield prediction ---

QUALITY_GRADES = (
    (('grade a', 'premium'), 'Grade A (70-80%)'),
    (('grade b', 'standard'), 'Grade B (15-20%)'),
    (('grade c', 'below'), 'Grade C (5-10%)'),
)

YIELD_FACTORS = (
    (('soil',), 'Soil quality'),
    (('water', 'irrigation'), 'Water management'),
    (('fertilizer', 'nutrient'), 'Fertilizer application'),
    (('weather', 'climate'), 'Weather conditions'),
    (('pest', 'disease'), 'Pest and disease control'),
)

OPTIMIZATION_TIPS = (
    (('irrigation',), 'Optimize irrigation schedule'),
    (('fertilizer',), 'Adjust fertilizer application'),
    (('timing',), 'Improve planting timing'),
    (('spacing',), 'Optimize plant spacing'),
)

YIELD_RISKS = (
    (('drought',), 'Drought risk'),
    (('flood',), 'Flooding risk'),
    (('pest',), 'Pest infestation'),
    (('disease',), 'Disease outbreak'),
    (('market',), 'Market volatility'),
)


def _expected_yield(text):
    value = extract_field(text, r'(?:yield|production)[:\s]*(\d+\.?\d*)\s*(?:tons?|kg|quintals?)')
    return f"{value} tons per hectare" if value else None


def _optimization_tips(text):
    tips = all_keywords(text, OPTIMIZATION_TIPS, ())
    return '; '.join(tips) if tips else None


def _profit_margin(text):
    value = extract_field(text, r'(?:profit|margin)[:\s]*(\d+\.?\d*)%?')
    return f"{value}% margin" if value else None


YIELD_FIELDS = (
    FieldPattern('expectedYield', None, '2.5-4.0 tons per hectare (estimated)', extractor=_expected_yield),
    FieldPattern('qualityGrade', None, 'Mixed grades expected',
                 extractor=lambda text: first_keyword(text, QUALITY_GRADES, None)),
    FieldPattern('factors', None, ['Soil health', 'Weather conditions', 'Cultivation practices'],
                 extractor=lambda text: all_keywords(text, YIELD_FACTORS, ()) or None),
    FieldPattern('recommendations', None, 'Follow recommended agricultural practices', extractor=_optimization_tips),
    FieldPattern('riskAssessment', None, ['Weather dependent', 'Market fluctuations'],
                 extractor=lambda text: all_keywords(text, YIELD_RISKS, ()) or None),
    FieldPattern('profitMargin', None, 'Profit margin depends on market prices', extractor=_profit_margin),
    FieldPattern('harvestTiming', r'(?:harvest|timing)[:\s]*([^\n.]+)', 'Harvest when crops reach physiological maturity'),
)


def total_production(text, area):
    value = extract_field(text, r'(\d+\.?\d*)\s*(?:tons?|kg)')
    if value and area:
        return f"{float(value) * area:.1f} tons total"
    return 'Calculated based on area and yield per hectare'


def parse_yield(text, confidence_provider, area=None):
    fields = extract_fields(text, YIELD_FIELDS)
    fields['totalProduction'] = total_production(text, area)
    return [TaskRecord('yield', fields, confidence=extract_confidence(text, DIAGNOSIS_BAND, confidence_provider))]


# --- Crop swapping strategy ---

SWAP_CROP_NAME = re.compile(
    r'(wheat|rice|corn|maize|cotton|soybean|chickpea|sugarcane|tomato|potato|onion|garlic|chili|pepper|'
    r'cabbage|cauliflower|broccoli|spinach|mustard|groundnut|sunflower|sesame|millet|sorghum|barley|oats|'
    r'legume|pulse|vegetable|cash crop|cereal|fruit)',
    re.IGNORECASE,
)

PROFITABILITY_LEVELS = (
    (('very high',), 'Very high'),
    (('high',), 'High'),
    (('medium',), 'Medium'),
    (('moderate',), 'Moderate'),
    (('low',), 'Low'),
)

DIFFICULTY_LEVELS = (
    (('very easy',), 'Very easy'),
    (('easy',), 'Easy'),
    (('medium',), 'Medium'),
    (('moderate',), 'Moderate'),
    (('hard',), 'Hard'),
    (('difficult',), 'Difficult'),
)

# Spans stay inside one paragraph and are length-bounded, so text missing the
# closing token fails in linear time
_GAP = r'(?:(?!\n\n)[\s\S]){0,200}?'
_NEAR = r'(?:(?!\n\n)[\s\S]){0,80}?'
_TO_PARAGRAPH_END = r'(?:(?!\n\n|\d\.)[\s\S]){0,300}'

SWAP_ECONOMIC_FIELDS = (
    FieldPattern('investmentRequired', r'(?:investment|cost|budget|capital)' + _GAP + r'₹?[\d,]+(?:[-–]₹?[\d,]+)?',
                 fallback.SWAP_ECONOMICS['investmentRequired']),
    FieldPattern('expectedROI', r'(?:roi|return)' + _GAP + r'\d+[-–]?\d*%', fallback.SWAP_ECONOMICS['expectedROI']),
    FieldPattern('breakEvenPeriod', r'(?:break.?even)' + _GAP + r'\d+[-–]?\d*\s*(?:months?|years?)',
                 fallback.SWAP_ECONOMICS['breakEvenPeriod']),
    FieldPattern('profitImprovement',
                 r'(?:profit|income)' + _GAP + r'(?:increase|improvement)' + _NEAR + r'\d+[-–]?\d*%',
                 fallback.SWAP_ECONOMICS['profitImprovement']),
)

SWAP_OPTIMIZATION_FIELDS = (
    FieldPattern('rotationSequence', r'rotation' + _TO_PARAGRAPH_END, fallback.SWAP_OPTIMIZATION['rotationSequence']),
    FieldPattern('intercropping', r'intercrop' + _TO_PARAGRAPH_END, fallback.SWAP_OPTIMIZATION['intercropping']),
    FieldPattern('timeline', r'(?:timeline|duration|period)' + _GAP + r'\d+[-–]?\d*\s*(?:months?|years?)',
                 fallback.SWAP_OPTIMIZATION['timeline']),
)

SWAP_RISK_FIELDS = (
    FieldPattern('marketRisk', r'market' + _GAP + r'risk' + _TO_PARAGRAPH_END, fallback.SWAP_RISKS['marketRisk']),
    FieldPattern('weatherRisk', r'weather' + _GAP + r'risk' + _TO_PARAGRAPH_END, fallback.SWAP_RISKS['weatherRisk']),
    FieldPattern('financialRisk', r'financial' + _GAP + r'risk' + _TO_PARAGRAPH_END, fallback.SWAP_RISKS['financialRisk']),
)

SWAP_SUSTAINABILITY_FIELDS = (
    FieldPattern('soilHealth', r'soil' + _GAP + r'(?:health|improvement)' + _TO_PARAGRAPH_END,
                 fallback.SWAP_SUSTAINABILITY['soilHealth']),
    FieldPattern('waterUsage', r'water' + _GAP + r'(?:efficiency|reduction|saving)' + _TO_PARAGRAPH_END,
                 fallback.SWAP_SUSTAINABILITY['waterUsage']),
    FieldPattern('carbonFootprint', r'carbon' + _GAP + r'(?:reduction|footprint)' + _TO_PARAGRAPH_END,
                 fallback.SWAP_SUSTAINABILITY['carbonFootprint']),
)


def _crop_name(line):
    name = extract_field(line or '', SWAP_CROP_NAME)
    return name[0].upper() + name[1:] if name else None


def alternative_crops(text):
    """Up to 3 distinct alternative crops, or the default trio when none are named."""
    lines = text.split('\n')
    expected_yield = extract_field(text, r'(\d+[-–]?\d*%?\s*(?:increase|improvement|boost|gain|higher|more))',
                                   '20-30% yield increase')
    profitability = first_keyword(text, PROFITABILITY_LEVELS, 'Medium')
    difficulty = first_keyword(text, DIFFICULTY_LEVELS, 'Medium')

    crops = []
    for index, line in enumerate(lines):
        lower = line.lower()
        if 'crop' not in lower or not ('recommend' in lower or 'alternative' in lower):
            continue
        following = lines[index + 1] if index + 1 < len(lines) else ''
        name = _crop_name(line) or _crop_name(following)
        if name and all(crop['name'] != name for crop in crops):
            crops.append({
                'name': name,
                'expectedYield': expected_yield,
                'profitability': profitability,
                'difficulty': difficulty,
            })
    if not crops:
        return [dict(crop) for crop in fallback.DEFAULT_ALTERNATIVE_CROPS]
    return crops[:MAX_SEGMENTS]


def parse_swap_strategy(text, confidence_provider):
    fields = {
        'alternativeCrops': alternative_crops(text),
        'economicAnalysis': extract_fields(text, SWAP_ECONOMIC_FIELDS),
        'optimizationPlan': extract_fields(text, SWAP_OPTIMIZATION_FIELDS),
        'riskAssessment': extract_fields(text, SWAP_RISK_FIELDS),
        'sustainability': extract_fields(text, SWAP_SUSTAINABILITY_FIELDS),
        'implementationRoadmap': dict(fallback.IMPLEMENTATION_ROADMAP),
    }
    return [TaskRecord('swap', fields, confidence=extract_confidence(text, SWAP_BAND, confidence_provider))]


# --- Optimal season ---

_MONTH = r'\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*'
_MONTH_RANGE = re.compile(r'(' + _MONTH + r'\s*(?:-|–|to)\s*' + _MONTH + r')', re.IGNORECASE)

SEASON_WEATHER_FIELDS = (
    FieldPattern('temperature', r'temperature[^:\n]*:\s*([^\n]+)', 'Follow regional sowing temperature windows'),
    FieldPattern('rainfall', r'rainfall[^:\n]*:\s*([^\n]+)', 'Plan supplemental irrigation'),
    FieldPattern('humidity', r'humidity[^:\n]*:\s*([^\n]+)', 'Monitor humidity for fungal disease pressure'),
    FieldPattern('windConditions', r'wind[^:\n]*:\s*([^\n]+)', 'Protect young plants from strong winds'),
)

SEASON_ECONOMIC_FIELDS = (
    FieldPattern('profitability', r'profitab\w*[^:\n]*:\s*([^\n]+)', 'Medium'),
    FieldPattern('costVariation', r'cost[^:\n]*:\s*([^\n]+)', 'Input costs vary by season and region'),
    FieldPattern('marketPricing', r'pric\w*[^:\n]*:\s*([^\n]+)', 'Prices typically peak before the main harvest'),
)

SEASON_RISK_FIELDS = (
    FieldPattern('weatherRisk', r'weather\s+risk[^:\n]*:\s*([^\n]+)', 'Medium'),
    FieldPattern('pestRisk', r'pest\s+risk[^:\n]*:\s*([^\n]+)', 'Medium'),
    FieldPattern('marketRisk', r'market\s+risk[^:\n]*:\s*([^\n]+)', 'Medium'),
)

SEASON_ACTION_FIELDS = (
    FieldPattern('immediate', r'immediate[^:\n]*:\s*([^\n]+)', 'Test soil and arrange quality seed'),
    FieldPattern('shortTerm', r'short[-\s]term[^:\n]*:\s*([^\n]+)', 'Prepare land and schedule sowing for the recommended window'),
    FieldPattern('longTerm', r'long[-\s]term[^:\n]*:\s*([^\n]+)', 'Plan crop rotation across seasons'),
    FieldPattern('monitoring', r'monitor\w*[^:\n]*:\s*([^\n]+)', 'Track weather forecasts and pest incidence weekly'),
)


def optimal_seasons(text):
    """One entry per Kharif / Rabi / Zaid season the text talks about."""
    lines = [_MARKUP.sub('', line).strip() for line in text.splitlines() if line.strip()]
    seasons = []
    for name in fallback.SEASON_MONTHS:
        mentions = [line for line in lines if name.lower() in line.lower()]
        if not mentions:
            continue
        context = '\n'.join(mentions)
        reasons = mentions[0]
        if len(reasons) > EXCERPT_LENGTH:
            reasons = reasons[:EXCERPT_LENGTH] + '...'
        seasons.append({
            'name': f"{name} Season",
            'suitability': first_keyword(context, SUITABILITY_KEYWORDS, 'Medium'),
            'months': extract_field(context, _MONTH_RANGE, fallback.SEASON_MONTHS[name]),
            'reasons': reasons,
        })
    return seasons


def parse_season(text, confidence_provider, crop_type=None):
    seasons = optimal_seasons(text)
    if not seasons:
        seasons = [
            {
                'name': f"{name} Season",
                'suitability': 'Medium',
                'months': fallback.SEASON_MONTHS[name],
                'reasons': 'Traditional sowing window for this crop',
            }
            for name in fallback.seasons_for_crop(crop_type)
        ]
    fields = {
        'optimalSeasons': seasons,
        'weatherConsiderations': extract_fields(text, SEASON_WEATHER_FIELDS),
        'economicAnalysis': extract_fields(text, SEASON_ECONOMIC_FIELDS),
        'riskAssessment': extract_fields(text, SEASON_RISK_FIELDS),
        'actionPlan': extract_fields(text, SEASON_ACTION_FIELDS),
    }
    return [TaskRecord('season', fields, confidence=extract_confidence(text, CONFIDENCE_BAND, confidence_provider))]


# --- Fertilizer, irrigation, market, geospatial ---

APPLICATION_METHODS = (
    (('fertigation',), 'Fertigation'),
    (('foliar',), 'Foliar spray'),
    (('top dress', 'top-dress', 'topdress'), 'Top dressing'),
    (('basal',), 'Basal application'),
)

FERTILIZER_FIELDS = (
    FieldPattern('primaryFertilizer',
                 r'\b(NPK\s*\d+[-:]\d+[-:]\d+|Urea|DAP|MOP|SSP|Muriate of Potash|Single Super Phosphate)\b',
                 'NPK 10-26-26'),
    FieldPattern('quantity', r'(\d+(?:\.\d+)?(?:\s*[-–]\s*\d+(?:\.\d+)?)?\s*kg\s*(?:per|/)\s*(?:acre|hectare|ha)\b)',
                 '50 kg per acre'),
    FieldPattern('applicationMethod', None, 'Basal application',
                 extractor=lambda text: first_keyword(text, APPLICATION_METHODS, None)),
    FieldPattern('timing', r'(?:timing|apply at|application time)[^:\n]*:\s*([^\n]+)', 'At sowing time'),
    FieldPattern('additionalRecommendations', r'[^\n.]*(?:organic|compost|manure)[^\n.]*',
                 'Apply organic compost for better soil health'),
)

IRRIGATION_METHODS = (
    (('drip',), 'Drip irrigation recommended'),
    (('sprinkler',), 'Sprinkler irrigation recommended'),
    (('furrow',), 'Furrow irrigation recommended'),
    (('flood',), 'Flood irrigation'),
)

_WATER_AMOUNT = r'(\d[\d,.]*(?:\s*[-–]\s*\d[\d,.]*)?\s*(?:mm|liters?|litres?|L)\b)'

IRRIGATION_FIELDS = (
    FieldPattern('dailyRequirement', r'daily[^\n\d]*' + _WATER_AMOUNT, fallback.DEFAULT_IRRIGATION['dailyRequirement']),
    FieldPattern('weeklyRequirement', r'(?:weekly|per week)[^\n\d]*' + _WATER_AMOUNT,
                 fallback.DEFAULT_IRRIGATION['weeklyRequirement']),
    FieldPattern('irrigationSchedule', r'(every\s+\d+(?:\s*[-–]\s*\d+)?\s+days?)',
                 fallback.DEFAULT_IRRIGATION['irrigationSchedule']),
    FieldPattern('method', None, fallback.DEFAULT_IRRIGATION['method'],
                 extractor=lambda text: first_keyword(text, IRRIGATION_METHODS, None)),
    FieldPattern('efficiency', r'efficien\w*[^\n\d]*(\d+(?:\.\d+)?\s*%)', fallback.DEFAULT_IRRIGATION['efficiency']),
)

PRICE_TRENDS = (
    (('increas', 'upward', 'rising', 'bullish'), 'Increasing'),
    (('decreas', 'downward', 'falling', 'bearish'), 'Decreasing'),
    (('stable', 'steady'), 'Stable'),
)

DEMAND_LEVELS = (
    (('high demand', 'strong demand'), 'High'),
    (('low demand', 'weak demand'), 'Low'),
    (('moderate demand', 'stable demand'), 'Medium'),
)

RISK_LEVELS = (
    (('high risk',), 'High'),
    (('low risk',), 'Low'),
    (('medium risk', 'moderate risk'), 'Medium'),
)

MARKET_FACTORS = (
    (('season', 'festival'), 'Seasonal demand'),
    (('supply', 'arrival'), 'Regional supply'),
    (('storage',), 'Storage capacity'),
    (('export',), 'Export demand'),
    (('weather', 'monsoon'), 'Weather conditions'),
)

MARKET_FIELDS = (
    FieldPattern('currentPrice', r'current\s+price[^:\n]*:\s*([^\n]+)', '₹2,500 per quintal'),
    FieldPattern('predictedPrice', r'(?:predicted|expected|forecast)\s+price[^:\n]*:\s*([^\n]+)', 'Market survey required'),
    FieldPattern('trend', None, 'Stable', extractor=lambda text: first_keyword(text, PRICE_TRENDS, None)),
    FieldPattern('demandForecast', None, 'Medium', extractor=lambda text: first_keyword(text, DEMAND_LEVELS, None)),
    FieldPattern('bestSellingPeriod', r'(?:best|optimal)\s+(?:selling\s+)?(?:time|period|window)[^:\n]*:\s*([^\n]+)',
                 'Next 2-3 months'),
    FieldPattern('riskLevel', None, 'Medium', extractor=lambda text: first_keyword(text, RISK_LEVELS, None)),
    FieldPattern('factors', None, ['Seasonal demand', 'Regional supply'],
                 extractor=lambda text: all_keywords(text, MARKET_FACTORS, ()) or None),
)

GEOSPATIAL_FIELDS = (
    FieldPattern('soilQuality', r'soil\s+quality[^:\n]*:\s*([^\n]+)', 'Good'),
    FieldPattern('waterAvailability', r'water\s+(?:resource\s+)?availability[^:\n]*:\s*([^\n]+)', 'Adequate'),
    FieldPattern('climateConditions', r'climate[^:\n]*:\s*([^\n]+)', 'Favorable'),
    FieldPattern('landSuitability', r'suitab\w*[^\n\d]*(\d+(?:\.\d+)?\s*%)', '85%'),
    FieldPattern('recommendations', r'recommend\w*[^:\n]*:\s*([^\n]+)', 'Suitable for year-round cultivation'),
)


def _excerpt(text):
    text = (text or '').strip()
    return text[:EXCERPT_LENGTH] + '...' if len(text) > EXCERPT_LENGTH else text


def parse_fertilizer(text, confidence_provider):
    fields = extract_fields(text, FERTILIZER_FIELDS)
    fields['actions'] = []
    return [TaskRecord('fertilizer', fields, confidence=extract_confidence(text, CONFIDENCE_BAND, confidence_provider))]


def parse_irrigation(text, confidence_provider):
    fields = extract_fields(text, IRRIGATION_FIELDS)
    return [TaskRecord('irrigation', fields, confidence=extract_confidence(text, CONFIDENCE_BAND, confidence_provider))]


def parse_market(text, confidence_provider):
    fields = extract_fields(text, MARKET_FIELDS)
    fields['marketInsights'] = _excerpt(text) or 'Market survey required'
    return [TaskRecord('market', fields, confidence=extract_confidence(text, CONFIDENCE_BAND, confidence_provider))]


def parse_geospatial(text, confidence_provider):
    fields = extract_fields(text, GEOSPATIAL_FIELDS)
    return [TaskRecord('geospatial', fields, confidence=extract_confidence(text, CONFIDENCE_BAND, confidence_provider))]


# --- Chat ---

def _chat_json(text):
    block = extract_field(text, re.compile(r'\{[\s\S]*\}'))
    if not block:
        return None
    try:
        data = string_to_dict(block)
    except ValueError:
        return None
    if not isinstance(data, dict) or not data.get('advice'):
        return None
    return data


def parse_chat(text, confidence_provider, message=''):
    data = _chat_json(text)
    if data is not None:
        try:
            confidence = clamp_unit(float(data.get('confidence_score')) / 100)
        except (TypeError, ValueError):
            confidence = clamp_unit(confidence_provider(*CHAT_BAND))
        fields = {
            'reply': str(data['advice']),
            'explanation': str(data.get('explanation') or ''),
            'additionalConsiderations': str(data.get('additional_considerations') or ''),
        }
    else:
        confidence = extract_confidence(text, CHAT_BAND, confidence_provider)
        fields = {'reply': text.strip(), 'explanation': '', 'additionalConsiderations': ''}
    fields['suggestions'] = fallback.chat_suggestions(message)
    return [TaskRecord('chat', fields, confidence=confidence)]


class ResponseParser:
    """
    Dispatches model text to the parser for its task.

    ``confidence_provider(low, high)`` supplies confidences the text does not
    state; by default each parse gets a fresh PRNG.
    """

    def __init__(self, confidence_provider=None):
        self.confidence_provider = confidence_provider

    def parse(self, task, text, payload=None):
        category = TaskCategory.coerce(task)
        provider = self.confidence_provider or random_confidence_provider()
        text = text if isinstance(text, str) else ('' if text is None else str(text))

        if category is TaskCategory.CROP_RECOMMENDATION or category is None:
            return parse_crop_recommendations(text, provider)
        try:
            return self._parse_task(category, text, payload, provider)
        except Exception as e:
            log.error(f"Failed to parse {category.value} response: {e}", exc_info=True)
            return self._defaults(category, payload)

    def _parse_task(self, category, text, payload, provider):
        if category is TaskCategory.DISEASE_DETECTION:
            kind = 'pest' if getattr(payload, 'is_pest', False) else 'diagnosis'
            return parse_diagnosis(text, provider, kind=kind)
        if category is TaskCategory.YIELD_PREDICTION:
            return parse_yield(text, provider, area=getattr(payload, 'area', None))
        if category is TaskCategory.CROP_SWAPPING:
            return parse_swap_strategy(text, provider)
        if category is TaskCategory.OPTIMAL_SEASON:
            return parse_season(text, provider, crop_type=getattr(payload, 'crop_type', None))
        if category is TaskCategory.CHAT:
            return parse_chat(text, provider, message=getattr(payload, 'message', ''))
        return self.simple_parsers[category](text, provider)

    simple_parsers = MappingProxyType({
        TaskCategory.FERTILIZER: parse_fertilizer,
        TaskCategory.IRRIGATION: parse_irrigation,
        TaskCategory.MARKET_ANALYSIS: parse_market,
        TaskCategory.GEOSPATIAL: parse_geospatial,
    })

    def _defaults(self, category, payload):
        """Records built from literal defaults only, for text that broke a parser."""
        tables = {
            TaskCategory.DISEASE_DETECTION: ('diagnosis', DISEASE_FIELDS),
            TaskCategory.YIELD_PREDICTION: ('yield', YIELD_FIELDS),
            TaskCategory.FERTILIZER: ('fertilizer', FERTILIZER_FIELDS),
            TaskCategory.IRRIGATION: ('irrigation', IRRIGATION_FIELDS),
            TaskCategory.MARKET_ANALYSIS: ('market', MARKET_FIELDS),
            TaskCategory.GEOSPATIAL: ('geospatial', GEOSPATIAL_FIELDS),
        }
        if category in tables:
            kind, fields = tables[category]
            if getattr(payload, 'is_pest', False):
                kind = 'pest'
            return [TaskRecord(kind, field_defaults(fields), confidence=MIXED_CROPS_CONFIDENCE)]
        # Structured tasks reuse the deterministic rule records
        records = fallback.FallbackRuleEngine().recommend(category, payload) if payload is not None else []
        if records:
            return [TaskRecord(r.kind, r.fields, confidence=MIXED_CROPS_CONFIDENCE) for r in records]
        return [TaskRecord(category.value, {'reply': ''}, confidence=MIXED_CROPS_CONFIDENCE)]
