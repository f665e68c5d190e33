# File: agribot/fallback.py
"""
Deterministic rule-based recommendations used when the generative model is
unavailable, disabled or its output cannot be used.

Every rule follows the same shape: an eligibility predicate, a suitability
threshold, additive confidence bonuses on a 0.5 base clamped to the fallback
band, and templated advisory lines that quote the input values.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Tuple

from .confidence import clamp_fallback
from .model_selector import TaskCategory
from .prompts import format_value
from .schemas import AdvisoryItem, CropCandidate, TaskRecord

log = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
MAX_RECOMMENDATIONS = 3


def _between(value, low, high):
    return low <= value <= high


def _score(bonuses, inputs):
    total = BASE_CONFIDENCE + sum(bonus for condition, bonus in bonuses if condition(inputs))
    return round(clamp_fallback(total), 2)


def _rank(items):
    # sorted() is stable, so ties keep table order
    return sorted(items, key=lambda item: item.confidence, reverse=True)[:MAX_RECOMMENDATIONS]


# --- Crop table ---

@dataclass(frozen=True)
class CropRule:
    name: str
    eligible: Callable
    high: Callable
    bonuses: Tuple[Tuple[Callable, float], ...]
    details: Callable


def _rice_details(s):
    t, h, r = format_value(s.temperature), format_value(s.humidity), format_value(s.rainfall)
    return (
        f"Optimal for current humidity ({h}%) and rainfall ({r}mm)",
        f"Temperature {t}°C is {'ideal' if s.temperature >= 25 else 'suitable'} for rice",
        'Nitrogen levels support high yield potential' if s.nitrogen >= 20 else 'Consider nitrogen supplementation',
        f"Expected yield: {'4.5-5.5' if s.nitrogen >= 25 and s.ph >= 6.0 else '3.5-4.5'} tons per hectare",
        'Apply lime to improve pH for better nutrient uptake' if s.ph < 6.0 else 'pH levels are suitable',
    )


def _wheat_details(s):
    return (
        f"Temperature {format_value(s.temperature)}°C is excellent for wheat cultivation",
        f"Rainfall {format_value(s.rainfall)}mm is {'optimal' if _between(s.rainfall, 75, 150) else 'adequate'} for wheat",
        'Phosphorus levels support strong root development' if s.phosphorus >= 15 else 'Consider phosphorus fertilization',
        f"Expected yield: {'3.5-4.0' if s.phosphorus >= 20 and s.nitrogen >= 25 else '2.5-3.5'} tons per hectare",
        'Ensure proper drainage to prevent waterlogging',
    )


def _corn_details(s):
    if s.nitrogen >= 30:
        nitrogen = 'are excellent'
    elif s.nitrogen >= 20:
        nitrogen = 'are good'
    else:
        nitrogen = 'need improvement'
    return (
        f"Temperature {format_value(s.temperature)}°C provides excellent growing conditions",
        f"Nitrogen levels {nitrogen} for corn",
        f"Potassium content {format_value(s.potassium)}kg/ha {'supports strong stalks' if s.potassium >= 25 else 'may need supplementation'}",
        f"Expected yield: {'6.5-7.5' if s.nitrogen >= 30 and s.potassium >= 25 else '5.0-6.0'} tons per hectare",
        'Implement drip irrigation for optimal water management' if s.rainfall < 100 else 'Monitor soil moisture levels',
    )


def _cotton_details(s):
    if s.potassium >= 25:
        potassium = 'excellent'
    elif s.potassium >= 15:
        potassium = 'adequate'
    else:
        potassium = 'low'
    return (
        f"Temperature {format_value(s.temperature)}°C and humidity {format_value(s.humidity)}% are ideal for cotton",
        f"Potassium levels {potassium} for fiber quality",
        'Requires deep, well-drained soil with good water management',
        f"Expected yield: {'500-600' if s.potassium >= 25 and s.ph >= 6.0 else '400-500'} kg per hectare",
        'Monitor for pest management throughout growing season',
    )


def _soybean_details(s):
    if _between(s.ph, 6.2, 6.8):
        ph = 'optimal'
    elif s.ph >= 6.0:
        ph = 'suitable'
    else:
        ph = 'needs adjustment'
    return (
        f"pH {format_value(s.ph)} is {ph} for soybean",
        f"Temperature {format_value(s.temperature)}°C provides good growing conditions",
        'Natural nitrogen fixation reduces fertilizer requirements',
        f"Expected yield: {'2.5-3.0' if s.ph >= 6.2 and s.temperature >= 22 else '2.0-2.5'} tons per hectare",
        'Excellent crop rotation option to improve soil nitrogen',
    )


CROP_RULES = (
    CropRule(
        name='Rice',
        eligible=lambda s: s.humidity >= 70 and s.rainfall >= 150 and _between(s.temperature, 20, 35),
        high=lambda s: s.nitrogen >= 20,
        bonuses=(
            (lambda s: s.humidity >= 70, 0.15),
            (lambda s: s.rainfall >= 150, 0.15),
            (lambda s: _between(s.temperature, 20, 35), 0.10),
            (lambda s: s.nitrogen >= 20, 0.10),
        ),
        details=_rice_details,
    ),
    CropRule(
        name='Wheat',
        eligible=lambda s: _between(s.temperature, 15, 25) and _between(s.rainfall, 50, 200),
        high=lambda s: s.phosphorus >= 15,
        bonuses=(
            (lambda s: _between(s.temperature, 15, 25), 0.20),
            (lambda s: _between(s.rainfall, 50, 200), 0.15),
            (lambda s: s.phosphorus >= 15, 0.10),
        ),
        details=_wheat_details,
    ),
    CropRule(
        name='Corn (Maize)',
        eligible=lambda s: _between(s.temperature, 20, 30) and s.nitrogen >= 15,
        high=lambda s: s.nitrogen >= 25,
        bonuses=(
            (lambda s: _between(s.temperature, 20, 30), 0.15),
            (lambda s: s.nitrogen >= 25, 0.20),
            (lambda s: s.potassium >= 20, 0.10),
        ),
        details=_corn_details,
    ),
    CropRule(
        name='Cotton',
        eligible=lambda s: _between(s.temperature, 25, 35) and _between(s.humidity, 50, 70),
        high=lambda s: s.potassium >= 20,
        bonuses=(
            (lambda s: _between(s.temperature, 25, 35), 0.15),
            (lambda s: s.potassium >= 20, 0.15),
            (lambda s: _between(s.humidity, 50, 70), 0.10),
        ),
        details=_cotton_details,
    ),
    CropRule(
        name='Soybean',
        eligible=lambda s: _between(s.temperature, 20, 30) and _between(s.ph, 6.0, 7.0),
        high=lambda s: _between(s.ph, 6.2, 6.8),
        bonuses=(
            (lambda s: _between(s.ph, 6.0, 7.0), 0.20),
            (lambda s: _between(s.temperature, 20, 30), 0.15),
        ),
        details=_soybean_details,
    ),
)


def recommend_crops(soil):
    """
    Ranks the crops whose eligibility predicate holds for ``soil``.

    Args:
        soil (SoilEnvironmentInput): Soil and environment readings.

    Returns:
        list[CropCandidate]: At most 3 candidates, highest confidence first.
            Empty when no crop is eligible.
    """
    candidates = [
        CropCandidate(
            name=rule.name,
            suitability='High' if rule.high(soil) else 'Medium',
            details=rule.details(soil),
            confidence=_score(rule.bonuses, soil),
        )
        for rule in CROP_RULES
        if rule.eligible(soil)
    ]
    log.debug(f"Fallback crop rules matched {len(candidates)} crop(s)")
    return _rank(candidates)


# --- Fertilizer table ---

def fertilizer_actions(nitrogen, phosphorus, potassium, ph=None):
    """Ranked fertilizer and soil amendment actions for the given NPK/pH readings."""
    actions = []
    if nitrogen < 20:
        severe = nitrogen < 10
        actions.append(AdvisoryItem(
            name='Urea (46-0-0)',
            suitability='High' if severe else 'Medium',
            details=(
                f"Nitrogen {format_value(nitrogen)} ppm is below the 20 ppm target",
                f"Apply {'100-120' if severe else '60-80'} kg urea per hectare in two split doses",
                'Top-dress at the vegetative stage for best uptake',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v < 10, 0.15)), nitrogen),
        ))
    if phosphorus < 15:
        severe = phosphorus < 8
        actions.append(AdvisoryItem(
            name='DAP (18-46-0) or Single Super Phosphate',
            suitability='High' if severe else 'Medium',
            details=(
                f"Phosphorus {format_value(phosphorus)} ppm is below the 15 ppm target",
                f"Apply {'100-125' if severe else '50-75'} kg DAP per hectare as basal dose",
                'Place fertilizer near the root zone at sowing',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v < 8, 0.15)), phosphorus),
        ))
    if potassium < 15:
        severe = potassium < 8
        actions.append(AdvisoryItem(
            name='MOP (Muriate of Potash, 0-0-60)',
            suitability='High' if severe else 'Medium',
            details=(
                f"Potassium {format_value(potassium)} ppm is below the 15 ppm target",
                f"Apply {'80-100' if severe else '40-60'} kg MOP per hectare",
                'Potassium improves disease resistance and grain filling',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v < 8, 0.15)), potassium),
        ))
    if ph is not None and ph < 6.0:
        actions.append(AdvisoryItem(
            name='Agricultural lime',
            suitability='High' if ph < 5.5 else 'Medium',
            details=(
                f"pH {format_value(ph)} is acidic",
                'Apply 1-2 tons of agricultural lime per hectare before sowing',
            ),
            confidence=_score(((lambda v: True, 0.10), (lambda v: v < 5.5, 0.15)), ph),
        ))
    elif ph is not None and ph > 7.5:
        actions.append(AdvisoryItem(
            name='Gypsum or elemental sulfur',
            suitability='High' if ph > 8.0 else 'Medium',
            details=(
                f"pH {format_value(ph)} is alkaline",
                'Apply gypsum (2-3 tons per hectare) or elemental sulfur to lower pH',
            ),
            confidence=_score(((lambda v: True, 0.10), (lambda v: v > 8.0, 0.15)), ph),
        ))
    if not actions:
        actions.append(AdvisoryItem(
            name='NPK 10-26-26',
            suitability='Medium',
            details=(
                'Soil nutrients are balanced',
                'Apply maintenance dose of 50 kg per acre at sowing',
                'Apply organic compost for better soil health',
            ),
            confidence=_score(((lambda v: True, 0.20),), None),
        ))
    return _rank(actions)


# --- Risk table ---

def risk_advice(temperature=None, humidity=None, rainfall=None, ph=None):
    """Weather and soil risks implied by the readings; missing readings are skipped."""
    risks = []
    if humidity is not None and humidity >= 80:
        risks.append(AdvisoryItem(
            name='Fungal disease risk',
            suitability='High' if humidity >= 90 else 'Medium',
            details=(
                f"Humidity {format_value(humidity)}% favours fungal infections",
                'Improve air circulation and scout for leaf spots and mildew',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v >= 90, 0.15)), humidity),
        ))
    if temperature is not None and temperature >= 35:
        risks.append(AdvisoryItem(
            name='Heat stress',
            suitability='High' if temperature >= 40 else 'Medium',
            details=(
                f"Temperature {format_value(temperature)}°C can cause flower drop and poor grain set",
                'Irrigate in the evening and use mulch to cool the root zone',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v >= 40, 0.15)), temperature),
        ))
    if rainfall is not None and rainfall >= 250:
        risks.append(AdvisoryItem(
            name='Waterlogging',
            suitability='High' if rainfall >= 350 else 'Medium',
            details=(
                f"Rainfall {format_value(rainfall)}mm may saturate the root zone",
                'Open drainage channels and use raised beds',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v >= 350, 0.15)), rainfall),
        ))
    elif rainfall is not None and rainfall < 50:
        risks.append(AdvisoryItem(
            name='Drought stress',
            suitability='High' if rainfall < 25 else 'Medium',
            details=(
                f"Rainfall {format_value(rainfall)}mm is insufficient for most field crops",
                'Plan supplemental irrigation and choose drought-tolerant varieties',
            ),
            confidence=_score(((lambda v: True, 0.15), (lambda v: v < 25, 0.15)), rainfall),
        ))
    if ph is not None and not _between(ph, 5.5, 8.0):
        risks.append(AdvisoryItem(
            name='Nutrient lock-out',
            suitability='High',
            details=(
                f"pH {format_value(ph)} limits nutrient availability",
                'Correct soil pH before applying fertilizers',
            ),
            confidence=_score(((lambda v: True, 0.20),), ph),
        ))
    return _rank(risks)


# --- Irrigation table ---

DEFAULT_IRRIGATION = MappingProxyType({
    'dailyRequirement': '15mm',
    'weeklyRequirement': '105mm',
    'irrigationSchedule': 'Every 3 days',
    'method': 'Drip irrigation recommended',
    'efficiency': '85%',
})

# (upper rainfall bound, daily mm, schedule, method, efficiency)
IRRIGATION_BANDS = (
    (50, 15, 'Every 2 days', 'Drip irrigation recommended', '90%'),
    (100, 12, 'Every 3 days', 'Drip irrigation recommended', '85%'),
    (150, 8, 'Every 4 days', 'Sprinkler irrigation recommended', '75%'),
    (None, 5, 'Weekly, only during dry spells', 'Supplemental furrow irrigation', '65%'),
)


def irrigation_plan(rainfall=None, temperature=None, humidity=None):
    """Water requirement record from the rainfall band, raised for heat and dry air."""
    if rainfall is None:
        return TaskRecord('irrigation', dict(DEFAULT_IRRIGATION), confidence=BASE_CONFIDENCE)

    for upper, daily, schedule, method, efficiency in IRRIGATION_BANDS:
        if upper is None or rainfall < upper:
            break
    if temperature is not None and temperature >= 30:
        daily += 3
    if humidity is not None and humidity < 40:
        daily += 2

    fields = {
        'dailyRequirement': f"{daily}mm",
        'weeklyRequirement': f"{daily * 7}mm",
        'irrigationSchedule': schedule,
        'method': method,
        'efficiency': efficiency,
    }
    confidence = _score((
        (lambda v: True, 0.15),
        (lambda v: temperature is not None, 0.10),
        (lambda v: humidity is not None, 0.10),
    ), rainfall)
    return TaskRecord('irrigation', fields, confidence=confidence)


# --- Task default records ---

DEFAULT_ALTERNATIVE_CROPS = (
    {'name': 'Legumes (Soybean/Chickpea)', 'expectedYield': '20-30% yield increase',
     'profitability': 'High', 'difficulty': 'Low'},
    {'name': 'Cash Crops (Cotton/Sugarcane)', 'expectedYield': '25-40% revenue increase',
     'profitability': 'Very High', 'difficulty': 'Medium'},
    {'name': 'Horticultural Crops (Vegetables)', 'expectedYield': '35-50% profit increase',
     'profitability': 'High', 'difficulty': 'Medium'},
)

SWAP_ECONOMICS = MappingProxyType({
    'investmentRequired': '₹20,000-40,000 per hectare',
    'expectedROI': '200-300% within 18 months',
    'breakEvenPeriod': '8-12 months',
    'profitImprovement': '30-45% increase in net income',
})

SWAP_OPTIMIZATION = MappingProxyType({
    'rotationSequence': 'Season 1: Cash crop → Season 2: Legume → Season 3: Cereal rotation',
    'intercropping': 'Companion planting with nitrogen-fixing crops for soil health',
    'timeline': '6-12 months for complete transition',
})

SWAP_RISKS = MappingProxyType({
    'marketRisk': 'Medium risk - diversification recommended',
    'weatherRisk': 'Climate-dependent - consider resilient varieties',
    'financialRisk': 'Moderate investment - phased implementation advised',
})

SWAP_SUSTAINABILITY = MappingProxyType({
    'soilHealth': 'Improved through diversified cropping and organic matter',
    'waterUsage': '15-25% reduction through efficient crop selection',
    'carbonFootprint': 'Reduced through sustainable agricultural practices',
})

IMPLEMENTATION_ROADMAP = MappingProxyType({
    'phase1': 'Soil testing and crop selection planning (Month 1-2)',
    'phase2': 'Gradual transition with pilot area testing (Month 3-6)',
    'phase3': 'Full-scale implementation and monitoring (Month 7-12)',
    'monitoring': 'Continuous yield tracking and market analysis',
})

SEASON_MONTHS = MappingProxyType({
    'Kharif': 'June - October',
    'Rabi': 'October - March',
    'Zaid': 'March - June',
})

# Crop keyword -> seasons it is traditionally sown in, best first
CROP_SEASONS = (
    (('rice', 'paddy', 'cotton', 'soybean', 'groundnut', 'bajra', 'millet', 'sorghum', 'jowar', 'sugarcane', 'turmeric', 'ginger'), ('Kharif',)),
    (('maize', 'corn'), ('Kharif', 'Rabi')),
    (('wheat', 'barley', 'mustard', 'chickpea', 'gram', 'pea', 'potato', 'onion', 'garlic'), ('Rabi',)),
    (('watermelon', 'cucumber', 'muskmelon', 'moong', 'pumpkin'), ('Zaid',)),
    (('tomato', 'chili', 'chilli', 'sunflower'), ('Rabi', 'Kharif')),
)

CHAT_REPLIES = (
    (('organic',), {
        'reply': "Transition to organic farming by gradually reducing synthetic inputs and incorporating natural alternatives.",
        'confidence_score': 90,
        'explanation': "Organic farming promotes biodiversity, soil health, and environmental sustainability. By transitioning gradually, you can minimize crop losses and maintain soil fertility.",
        'additionalConsiderations': "Consider obtaining organic certification to access premium markets. Be prepared for potential yield reductions during the transition period (2-3 years).",
    }),
    (('crop', 'plant'), {
        'reply': "Choose crops based on your local climate, soil type, and market demand. Start with climate-appropriate varieties.",
        'confidence_score': 85,
        'explanation': "Successful crop selection requires matching plant requirements with your specific growing conditions. Local varieties are typically better adapted and more resilient.",
        'additionalConsiderations': "Consider soil testing for N-P-K levels, research local market prices, and plan for crop rotation.",
    }),
    (('disease', 'pest'), {
        'reply': "Implement integrated pest management (IPM) combining prevention, monitoring, and targeted treatment.",
        'confidence_score': 88,
        'explanation': "IPM reduces pesticide use while maintaining crop health through biological controls, resistant varieties, and cultural practices.",
        'additionalConsiderations': "Regular field scouting, proper sanitation and crop rotation reduce pest pressure. Consider organic treatments like neem oil.",
    }),
    (('irrigation', 'water'), {
        'reply': "Use drip irrigation or micro-sprinklers to maximize water efficiency and reduce waste.",
        'confidence_score': 92,
        'explanation': "Efficient irrigation systems deliver water directly to plant roots, reducing evaporation and water waste by 30-50%.",
        'additionalConsiderations': "Consider soil moisture sensors, mulching to retain moisture, and rainwater harvesting.",
    }),
)

GENERIC_CHAT_REPLY = MappingProxyType({
    'reply': "I'm here to help with farming questions! Ask me about crops, organic farming, pest control, or irrigation.",
    'confidence_score': 95,
    'explanation': "I can provide guidance on crop planning, disease management, soil health, irrigation, and sustainable farming practices.",
    'additionalConsiderations': "For best results, provide details about your location, crop type, soil conditions, or specific farming challenges you're facing.",
})

SUGGESTION_RULES = (
    (('crop', 'plant'), "Get crop recommendations based on soil analysis"),
    (('disease', 'pest'), "Identify crop diseases and get treatment advice"),
    (('fertilizer', 'nutrient'), "Get fertilizer recommendations for your crops"),
    (('water', 'irrigation'), "Calculate irrigation requirements"),
    (('price', 'market'), "Analyze market trends and prices"),
)

DEFAULT_SUGGESTIONS = (
    "Ask about crop diseases and treatments",
    "Get fertilizer recommendations",
    "Learn about market prices and trends",
)


def chat_suggestions(message):
    lower = (message or '').lower()
    suggestions = [text for keywords, text in SUGGESTION_RULES if any(k in lower for k in keywords)]
    return (suggestions or list(DEFAULT_SUGGESTIONS))[:3]


def chat_record(req):
    lower = req.message.lower()
    reply = next((reply for keywords, reply in CHAT_REPLIES if any(k in lower for k in keywords)), GENERIC_CHAT_REPLY)
    fields = {key: value for key, value in reply.items() if key != 'confidence_score'}
    fields['suggestions'] = chat_suggestions(req.message)
    return TaskRecord('chat', fields, confidence=clamp_fallback(reply['confidence_score'] / 100))


def disease_record(req):
    fields = {
        'disease': 'Analysis unavailable',
        'treatment': 'Consult agricultural expert for proper diagnosis',
        'prevention': 'Maintain proper field hygiene and crop rotation',
        'severity': (req.severity or 'Moderate').title(),
        'organicAlternatives': 'Neem oil spray, compost tea, or beneficial microorganisms',
        'timeline': '2-4 weeks with proper treatment',
    }
    return TaskRecord('pest' if req.is_pest else 'diagnosis', fields, confidence=BASE_CONFIDENCE)


def yield_record(req):
    risks = [item.name for item in risk_advice(temperature=req.temperature, rainfall=req.rainfall)]
    fields = {
        'expectedYield': 'Analysis unavailable',
        'totalProduction': 'Calculated based on area and yield per hectare',
        'qualityGrade': 'Mixed grades expected',
        'factors': ['Soil health', 'Weather conditions', 'Cultivation practices'],
        'recommendations': 'Consult agricultural expert for yield estimation',
        'riskAssessment': risks or ['Weather dependent', 'Market fluctuations'],
        'profitMargin': 'Profit margin depends on market prices',
        'harvestTiming': 'Harvest when crops reach physiological maturity',
    }
    return TaskRecord('yield', fields, confidence=BASE_CONFIDENCE)


def swap_confidence(req):
    """Confidence grows with how much of the farm profile was supplied."""
    bonuses = (
        (lambda r: bool(r.farm_location), 0.06),
        (lambda r: bool(r.current_crop), 0.05),
        (lambda r: bool(r.risk_tolerance), 0.04),
        (lambda r: bool(r.farm_size), 0.03),
        (lambda r: bool(r.available_budget), 0.04),
        (lambda r: bool(r.sustainability_goals), 0.02),
    )
    return _score(bonuses, req)


def swap_record(req):
    fields = {
        'alternativeCrops': [dict(crop) for crop in DEFAULT_ALTERNATIVE_CROPS],
        'economicAnalysis': dict(SWAP_ECONOMICS),
        'optimizationPlan': dict(SWAP_OPTIMIZATION),
        'riskAssessment': dict(SWAP_RISKS),
        'sustainability': dict(SWAP_SUSTAINABILITY),
        'implementationRoadmap': dict(IMPLEMENTATION_ROADMAP),
    }
    return TaskRecord('swap', fields, confidence=swap_confidence(req))


def seasons_for_crop(crop_type):
    lower = (crop_type or '').lower()
    for keywords, seasons in CROP_SEASONS:
        if any(keyword in lower for keyword in keywords):
            return seasons
    return ('Kharif', 'Rabi')


def season_record(req):
    seasons = seasons_for_crop(req.crop_type)
    optimal = [
        {
            'name': f"{name} Season",
            'suitability': 'High' if index == 0 else 'Medium',
            'months': SEASON_MONTHS[name],
            'reasons': f"{req.crop_type} is traditionally sown in the {name} season",
        }
        for index, name in enumerate(seasons)
    ]
    water = (req.water_availability or '').lower()
    fields = {
        'optimalSeasons': optimal,
        'weatherConsiderations': {
            'temperature': 'Follow regional sowing temperature windows',
            'rainfall': 'Rain-fed cultivation possible' if water in ('abundant', 'rain-fed') else 'Plan supplemental irrigation',
            'humidity': 'Monitor humidity for fungal disease pressure',
            'windConditions': 'Protect young plants from strong winds',
        },
        'economicAnalysis': {
            'profitability': 'Medium',
            'costVariation': 'Input costs vary by season and region',
            'marketPricing': 'Prices typically peak before the main harvest',
        },
        'riskAssessment': {
            'weatherRisk': 'Medium',
            'pestRisk': 'Medium',
            'marketRisk': 'Medium',
        },
        'actionPlan': {
            'immediate': 'Test soil and arrange quality seed',
            'shortTerm': 'Prepare land and schedule sowing for the recommended window',
            'longTerm': 'Plan crop rotation across seasons',
            'monitoring': 'Track weather forecasts and pest incidence weekly',
        },
    }
    return TaskRecord('season', fields, confidence=clamp_fallback(0.6))


def market_record(req):
    price = f"₹{format_value(req.current_price)} per kg" if req.current_price is not None else '₹2,500 per quintal'
    fields = {
        'currentPrice': price,
        'predictedPrice': 'Market survey required',
        'trend': 'Increasing',
        'demandForecast': 'High',
        'bestSellingPeriod': 'Next 2-3 months',
        'riskLevel': 'Medium',
        'factors': ['Seasonal demand', 'Regional supply'],
        'marketInsights': 'High demand expected due to festival season',
    }
    return TaskRecord('market', fields, confidence=BASE_CONFIDENCE)


def geospatial_record(req):
    fields = {
        'soilQuality': 'Good',
        'waterAvailability': 'Adequate',
        'climateConditions': 'Favorable',
        'landSuitability': '85%',
        'recommendations': 'Suitable for year-round cultivation',
    }
    return TaskRecord('geospatial', fields, confidence=BASE_CONFIDENCE)


def fertilizer_record(req):
    actions = fertilizer_actions(req.nitrogen, req.phosphorus, req.potassium, req.ph)
    primary = actions[0]
    fields = {
        'primaryFertilizer': primary.name,
        'quantity': primary.details[1] if len(primary.details) > 1 else '50 kg per acre',
        'applicationMethod': 'Basal application',
        'timing': 'At sowing time',
        'additionalRecommendations': '; '.join(item.name for item in actions[1:]) or 'Apply organic compost for better soil health',
        'actions': [item.to_dict() for item in actions],
    }
    return TaskRecord('fertilizer', fields, confidence=primary.confidence)


def irrigation_record(req):
    return irrigation_plan(rainfall=req.rainfall, temperature=req.temperature, humidity=req.humidity)


class FallbackRuleEngine:
    """Runs the rule table registered for a task."""

    rules = MappingProxyType({
        TaskCategory.CROP_RECOMMENDATION: recommend_crops,
        TaskCategory.CHAT: lambda req: [chat_record(req)],
        TaskCategory.DISEASE_DETECTION: lambda req: [disease_record(req)],
        TaskCategory.YIELD_PREDICTION: lambda req: [yield_record(req)],
        TaskCategory.CROP_SWAPPING: lambda req: [swap_record(req)],
        TaskCategory.OPTIMAL_SEASON: lambda req: [season_record(req)],
        TaskCategory.FERTILIZER: lambda req: [fertilizer_record(req)],
        TaskCategory.MARKET_ANALYSIS: lambda req: [market_record(req)],
        TaskCategory.GEOSPATIAL: lambda req: [geospatial_record(req)],
        TaskCategory.IRRIGATION: lambda req: [irrigation_record(req)],
    })

    def recommend(self, task, payload):
        category = TaskCategory.coerce(task)
        if category is None:
            log.warning(f"No fallback rules for task '{task}'")
            return []
        return list(self.rules[category](payload))
