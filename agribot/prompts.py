# File: agribot/prompts.py

import logging
from types import MappingProxyType

from .model_selector import TaskCategory

log = logging.getLogger(__name__)

NOT_SPECIFIED = 'Not specified'


def format_value(value, default=NOT_SPECIFIED):
    """
    Renders a payload value for a prompt.

    Whole floats drop their trailing '.0' and other floats use repr, so two
    different numbers never render the same. None and blank strings render as
    ``default``.
    """
    if value is None:
        return default
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    text = str(value).strip()
    return text if text else default


def crop_recommendation_prompt(soil):
    """
    Generates the crop recommendation prompt from soil and weather readings.

    Args:
        soil (SoilEnvironmentInput): Soil nutrients and environmental conditions.

    Returns:
        str: Prompt asking for the top 3 crops with yields, NPK needs and risks.
    """
    return f"""You are an agricultural expert. Based on the following soil and environmental data, recommend the best crops for cultivation:

Soil Analysis:
- Nitrogen: {format_value(soil.nitrogen)} ppm
- Phosphorus: {format_value(soil.phosphorus)} ppm
- Potassium: {format_value(soil.potassium)} ppm
- pH Level: {format_value(soil.ph)}

Environmental Conditions:
- Temperature: {format_value(soil.temperature)}°C
- Humidity: {format_value(soil.humidity)}%
- Rainfall: {format_value(soil.rainfall)}mm
- Location: {format_value(soil.state)}, {format_value(soil.district)}
- Soil Type: {format_value(soil.soil_type)}
- Climate: {format_value(soil.climate)}
- Area: {format_value(soil.area)}
- Season: {format_value(soil.season)}

Please provide:
1. Top 3 recommended crops with specific varieties
2. Expected yield per hectare for each crop
3. Basic fertilizer requirements (NPK recommendations)
4. Water requirements and irrigation schedule
5. Planting and harvesting timeline
6. Potential risks and mitigation strategies

Format each recommendation as a numbered entry starting with "Crop: <name>", state its suitability (High/Medium/Low) and a line "Confidence: NN%"."""


_DISEASE_IMAGE_BLOCK = """
IMAGE-BASED ANALYSIS INSTRUCTIONS:
Analyze the uploaded plant images for:
- Visual disease symptoms (spots, discoloration, wilting, lesions)
- Severity assessment from visual indicators
- Pattern recognition for disease identification
- Color changes and texture abnormalities
- Affected plant parts visible in images"""

_PEST_IMAGE_BLOCK = """
PEST IMAGE ANALYSIS INSTRUCTIONS:
Analyze the uploaded images for:
- Visible pests (insects, larvae, eggs)
- Pest damage patterns (chewed leaves, holes, feeding marks)
- Secondary signs (honeydew, webbing, frass)
- Pest-specific indicators (tunnels, mines, galls)
- Damage severity and distribution"""

_DISEASE_REQUIREMENTS = """
REQUIRED DIAGNOSIS:
1. PRIMARY DISEASE IDENTIFICATION (with confidence %)
2. SECONDARY POSSIBLE DISEASES (differential diagnosis)
3. DISEASE SEVERITY ASSESSMENT (mild/moderate/severe)
4. IMMEDIATE TREATMENT PROTOCOL (step-by-step)
5. ORGANIC TREATMENT ALTERNATIVES
6. PREVENTIVE MEASURES (future protection)
7. RECOVERY TIMELINE (expected duration)
8. ECONOMIC IMPACT ASSESSMENT
9. MONITORING GUIDELINES (what to watch for)

Provide specific diagnostic confidence scores (0-100%) and detailed treatment protocols. Include both chemical and organic treatment options with application schedules."""

_PEST_REQUIREMENTS = """
REQUIRED PEST ANALYSIS:
1. PRIMARY PEST IDENTIFICATION (with confidence %)
2. PEST LIFE CYCLE STAGE (egg, larva, adult, etc.)
3. DAMAGE SEVERITY ASSESSMENT (low/moderate/high/severe)
4. IMMEDIATE CONTROL MEASURES (emergency treatment)
5. INTEGRATED PEST MANAGEMENT (IPM) STRATEGY
6. BIOLOGICAL CONTROL OPTIONS (natural predators, parasites)
7. ORGANIC/NATURAL TREATMENT ALTERNATIVES
8. PREVENTION STRATEGIES (future outbreak prevention)
9. MONITORING SCHEDULE (when to check again)

Provide specific pest identification with confidence scores (0-100%) and detailed integrated pest management protocols. Include both immediate action and long-term prevention strategies."""


def disease_detection_prompt(req):
    """
    Generates the disease diagnosis prompt, or the pest outbreak prompt when
    ``req.is_pest`` is set. Image instructions are appended when images were
    uploaded; the images themselves are never inspected here.
    """
    if req.is_pest:
        header = f"""PEST OUTBREAK IDENTIFICATION & MANAGEMENT ANALYSIS

CROP INFORMATION:
- Crop Type: {format_value(req.crop_type)}
- Pest Symptoms & Damage: {format_value(req.symptoms)}
- Affected Area: {format_value(req.affected_area)}
- Severity Level: {format_value(req.severity)}
- Location: {format_value(req.location)}
- Weather Conditions: {format_value(req.weather_conditions)}
- Previous Treatments: {format_value(req.previous_treatments)}"""
    else:
        header = f"""PLANT DISEASE DIAGNOSIS & TREATMENT ANALYSIS

CROP INFORMATION:
- Crop Type: {format_value(req.crop_type)}
- Observed Symptoms: {format_value(req.symptoms)}
- Affected Area: {format_value(req.affected_area)}
- Weather Conditions: {format_value(req.weather_conditions)}
- Severity Level: {format_value(req.severity)}
- Location: {format_value(req.location)}"""

    parts = [header]
    if req.image_count > 0:
        parts.append(f"- Number of Images Provided: {req.image_count}")
        parts.append(_PEST_IMAGE_BLOCK if req.is_pest else _DISEASE_IMAGE_BLOCK)
    parts.append(_PEST_REQUIREMENTS if req.is_pest else _DISEASE_REQUIREMENTS)
    if req.image_count > 0:
        parts.append("Correlate visual evidence from images with described symptoms for enhanced accuracy.")
    return '\n'.join(parts)


def yield_prediction_prompt(req):
    return f"""CROP YIELD PREDICTION & OPTIMIZATION ANALYSIS

CULTIVATION PARAMETERS:
- Crop Type: {format_value(req.crop_type)}
- Cultivation Area: {format_value(req.area)} hectares
- Growing Season: {format_value(req.season)}
- Soil Type: {format_value(req.soil_type)}
- Irrigation System: {format_value(req.irrigation_type)}
- Expected Rainfall: {format_value(req.rainfall)} mm
- Average Temperature: {format_value(req.temperature)}°C
- Fertilizer Program: {format_value(req.fertilizers)}

PREDICTION REQUIREMENTS:
1. YIELD ESTIMATION (per hectare with confidence %)
2. TOTAL PRODUCTION FORECAST (for entire area)
3. QUALITY GRADE PREDICTION (Grade A/B/C with percentages)
4. YIELD INFLUENCING FACTORS (ranked by impact)
5. OPTIMIZATION STRATEGIES (to maximize yield)
6. RISK FACTORS & MITIGATION (weather, pests, market)
7. COMPARATIVE ANALYSIS (vs. regional averages)
8. PROFIT MARGIN ESTIMATION (cost vs. revenue)
9. HARVEST TIMING RECOMMENDATIONS (optimal windows)

Provide specific numerical estimates with confidence intervals and practical optimization recommendations. Include best-case, most-likely, and worst-case scenarios."""


def crop_swapping_prompt(req):
    """
    Generates the crop swapping strategy prompt.

    Soil and market sub-sections are listed field by field when supplied,
    otherwise a single placeholder line is rendered.
    """
    if req.soil_conditions:
        nitrogen, phosphorus, potassium, ph, soil_type = req.soil_conditions
        soil_section = f"""- Nitrogen: {format_value(nitrogen)} ppm
- Phosphorus: {format_value(phosphorus)} ppm
- Potassium: {format_value(potassium)} ppm
- pH Level: {format_value(ph)}
- Soil Type: {format_value(soil_type)}"""
    else:
        soil_section = NOT_SPECIFIED

    if req.market_conditions:
        price, demand, competition = req.market_conditions
        market_section = f"""- Current Price: {format_value(price)}
- Demand Trend: {format_value(demand)}
- Competition Level: {format_value(competition)}"""
    else:
        market_section = NOT_SPECIFIED

    return f"""As an expert agricultural strategist, analyze the following farming scenario and provide a comprehensive crop swapping strategy.

CURRENT FARMING SITUATION:
- Current Crop: {format_value(req.current_crop)}
- Current Yield: {format_value(req.current_yield)}
- Farm Location: {format_value(req.farm_location)}
- Farm Size: {format_value(req.farm_size)}
- Season: {format_value(req.season)}
- Available Budget: {format_value(req.available_budget)}
- Risk Tolerance: {format_value(req.risk_tolerance)}
- Sustainability Goals: {format_value(req.sustainability_goals)}

SOIL CONDITIONS:
{soil_section}

MARKET CONDITIONS:
{market_section}

Please provide a structured analysis with:

1. ALTERNATIVE CROP RECOMMENDATIONS (Top 3):
   - Crop name and variety
   - Expected yield improvement percentage
   - Profitability assessment (High/Medium/Low)
   - Implementation difficulty level

2. ECONOMIC ANALYSIS:
   - Investment required for transition
   - Expected ROI timeline
   - Break-even period
   - Profit improvement potential

3. OPTIMIZATION STRATEGY:
   - Crop rotation sequence
   - Intercropping opportunities
   - Implementation timeline

4. RISK ASSESSMENT:
   - Market risks and mitigation
   - Weather dependency factors
   - Financial risk management

5. SUSTAINABILITY IMPACT:
   - Soil health improvements
   - Water usage efficiency
   - Carbon footprint reduction

6. IMPLEMENTATION ROADMAP:
   - Phase 1: Preparation and planning
   - Phase 2: Transition and pilot testing
   - Phase 3: Full implementation and optimization

Provide specific, actionable recommendations with confidence levels for Indian agricultural conditions."""


def optimal_season_prompt(req):
    return f"""OPTIMAL CROP SEASON & PLANTING CALENDAR ANALYSIS

FARM PROFILE:
- Crop Type: {format_value(req.crop_type)}
- Region/State: {format_value(req.region)}
- Soil Type: {format_value(req.soil_type)}
- Farm Size: {format_value(req.farm_size)}
- Planning Year: {format_value(req.current_year)}
- Water Availability: {format_value(req.water_availability)}
- Climate Conditions: {format_value(req.climate_conditions)}
- Farming Experience: {format_value(req.farming_experience)}
- Budget Range: {format_value(req.budget_range)}
- Sustainability Preference: {format_value(req.sustainability_preference)}

SEASON ANALYSIS REQUIREMENTS:
1. OPTIMAL SEASONS (Kharif / Rabi / Zaid) with suitability and sowing months
2. WEATHER CONSIDERATIONS (temperature, rainfall, humidity, wind)
3. ECONOMIC ANALYSIS (profitability, cost variation, market pricing)
4. RISK ASSESSMENT (weather, pest, market risks)
5. ACTION PLAN (immediate, short-term, long-term, monitoring)

Provide month ranges for each recommended season and a line "Confidence: NN%"."""


def fertilizer_prompt(req):
    return f"""FERTILIZER OPTIMIZATION & SOIL NUTRITION ANALYSIS

SOIL ANALYSIS DATA:
- Nitrogen (N): {format_value(req.nitrogen)} ppm
- Phosphorus (P): {format_value(req.phosphorus)} ppm
- Potassium (K): {format_value(req.potassium)} ppm
- pH Level: {format_value(req.ph)}
- Organic Matter: {format_value(req.organic_matter)}%
- Soil Type: {format_value(req.soil_type)}
- Crop Type: {format_value(req.crop_type)}

FERTILIZER RECOMMENDATIONS REQUIRED:
1. NPK RATIO CALCULATION (optimal for soil conditions)
2. ORGANIC FERTILIZER OPTIONS (compost, manure, bio-fertilizers)
3. CHEMICAL FERTILIZER ALTERNATIVES (specific products)
4. APPLICATION SCHEDULE (timing and frequency)
5. DOSAGE RECOMMENDATIONS (per hectare)
6. COST-BENEFIT ANALYSIS (ROI calculations)
7. SOIL IMPROVEMENT STRATEGIES (long-term health)
8. MICRO-NUTRIENT SUPPLEMENTS (if needed)
9. SEASONAL ADJUSTMENT PROTOCOLS

Provide specific fertilizer formulations, application rates, and timing schedules. Include both budget-friendly and premium options with expected results."""


def market_analysis_prompt(req):
    price = f"₹{format_value(req.current_price)} per kg" if req.current_price is not None else NOT_SPECIFIED
    return f"""AGRICULTURAL MARKET INTELLIGENCE & PRICING STRATEGY

MARKET PARAMETERS:
- Crop/Product: {format_value(req.crop_type)}
- Region: {format_value(req.region)}
- Current Price: {price}
- Season: {format_value(req.season)}
- Quantity: {format_value(req.quantity)}
- Quality Grade: {format_value(req.quality_grade)}
- Time Frame: {format_value(req.time_frame)}

MARKET ANALYSIS REQUIREMENTS:
1. PRICE TREND ANALYSIS (historical patterns, seasonal variations)
2. DEMAND-SUPPLY DYNAMICS (current market conditions)
3. OPTIMAL SELLING STRATEGY (timing recommendations)
4. STORAGE VS IMMEDIATE SALE (profitability comparison)
5. ALTERNATIVE MARKET CHANNELS (direct sales, cooperatives, online)
6. VALUE ADDITION OPPORTUNITIES (processing, branding)
7. PRICE RISK MITIGATION (hedging strategies)

Provide specific pricing strategies, market timing advice, and actionable recommendations for maximizing farmer profits with confidence scores."""


def geospatial_prompt(req):
    return f"""GEOSPATIAL CROP ANALYSIS & LOCATION INTELLIGENCE

LOCATION PARAMETERS:
- Coordinates: {format_value(req.latitude)}°N, {format_value(req.longitude)}°E
- Target Crop: {format_value(req.crop_type)}
- Analysis Type: {format_value(req.analysis_type)}
- Region: {format_value(req.region)}
- Elevation: {format_value(req.elevation)} meters

GEOSPATIAL ANALYSIS REQUIREMENTS:
1. SOIL QUALITY MAPPING (for specific coordinates)
2. CLIMATE SUITABILITY ASSESSMENT (temperature, rainfall patterns)
3. TOPOGRAPHICAL IMPACT ANALYSIS (slope, drainage, elevation effects)
4. WATER RESOURCE AVAILABILITY (groundwater, surface water access)
5. RISK ZONE IDENTIFICATION (flood-prone, drought-prone areas)
6. OPTIMAL CULTIVATION ZONES (within the region)
7. YIELD POTENTIAL MAPPING (based on location factors)

Provide location-specific insights with confidence scores. Include recommendations for maximizing the geographic advantages and mitigating location-based challenges."""


def irrigation_prompt(req):
    return f"""IRRIGATION WATER MANAGEMENT & EFFICIENCY ANALYSIS

CROP & CULTIVATION DATA:
- Crop Type: {format_value(req.crop_type)}
- Cultivation Area: {format_value(req.area)} hectares
- Growth Stage: {format_value(req.season)} season
- Soil Type: {format_value(req.soil_type)}
- Location: {format_value(req.location)}

ENVIRONMENTAL PARAMETERS:
- Temperature: {format_value(req.temperature)}°C
- Humidity: {format_value(req.humidity)}%
- Annual Rainfall: {format_value(req.rainfall)}mm

IRRIGATION ANALYSIS REQUIREMENTS:
1. DAILY WATER REQUIREMENT (liters per hectare)
2. SEASONAL WATER BUDGET (total requirement)
3. IRRIGATION SCHEDULING (frequency and timing)
4. SYSTEM EFFICIENCY RECOMMENDATIONS (drip, sprinkler, flood)
5. WATER CONSERVATION STRATEGIES (mulching, cover crops)
6. DROUGHT CONTINGENCY PLANNING (water scarcity protocols)

Provide specific calculations, schedules, and cost-effective irrigation strategies."""


def chat_prompt(req):
    """Generates the AgriBot chat prompt; the model is asked to answer in JSON."""
    return f"""You are AgriBot, an AI farming assistant. You provide expert agricultural guidance with confidence-scored recommendations.

IMPORTANT: Always format your response as valid JSON with these exact keys:
{{
  "advice": "A concise, actionable recommendation (string)",
  "confidence_score": "Your confidence in this recommendation (number, 0-100)",
  "explanation": "A brief explanation of why this advice is recommended (string)",
  "additional_considerations": "Any additional factors or considerations for the user (string)"
}}

EXPERTISE AREAS:
- Crop selection and rotation planning
- Soil health and fertilizer optimization
- Pest and disease diagnosis
- Weather impact analysis
- Sustainable farming practices
- Market trends and profitability
- Irrigation and water management
- Organic farming techniques

CURRENT CONTEXT: {format_value(req.context)}

USER QUERY: {format_value(req.message)}

RESPONSE GUIDELINES:
- Provide specific, actionable advice
- Include confidence scores (0-100)
- Consider local/regional factors when possible
- Offer both immediate and long-term solutions

Respond ONLY with valid JSON in the format specified above. No additional text outside the JSON."""


class PromptBuilder:
    """Renders the fixed prompt template registered for each task."""

    templates = MappingProxyType({
        TaskCategory.CHAT: chat_prompt,
        TaskCategory.CROP_RECOMMENDATION: crop_recommendation_prompt,
        TaskCategory.DISEASE_DETECTION: disease_detection_prompt,
        TaskCategory.YIELD_PREDICTION: yield_prediction_prompt,
        TaskCategory.CROP_SWAPPING: crop_swapping_prompt,
        TaskCategory.OPTIMAL_SEASON: optimal_season_prompt,
        TaskCategory.FERTILIZER: fertilizer_prompt,
        TaskCategory.MARKET_ANALYSIS: market_analysis_prompt,
        TaskCategory.GEOSPATIAL: geospatial_prompt,
        TaskCategory.IRRIGATION: irrigation_prompt,
    })

    def build(self, task, payload):
        category = TaskCategory.coerce(task)
        if category is None:
            raise ValueError(f"No prompt template for task '{task}'")
        prompt = self.templates[category](payload)
        log.debug(f"Built {category.value} prompt ({len(prompt)} chars)")
        return prompt
