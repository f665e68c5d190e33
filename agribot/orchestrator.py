# File: agribot/orchestrator.py

import enum
import logging
from types import MappingProxyType

from .ai_service import build_client
from .confidence import aggregate, clamp_fallback, clamp_unit
from .errors import InvalidInput, ServiceUnavailable
from .fallback import FallbackRuleEngine, risk_advice
from .model_selector import ModelSelector, TaskCategory, max_tokens_for
from .parsers import ResponseParser
from .prompts import PromptBuilder
from .schemas import (
    SOURCE_FALLBACK, SOURCE_MODEL, AggregateResult, ChatRequest, DiseaseRequest,
    FertilizerRequest, GeospatialRequest, IrrigationRequest, MarketRequest,
    SeasonRequest, SoilEnvironmentInput, SwapRequest, YieldRequest,
)
from .soil import assess_soil_health, general_soil_advice

log = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 3


class State(enum.Enum):
    BUILDING_PROMPT = 'BUILDING_PROMPT'
    INVOKING_MODEL = 'INVOKING_MODEL'
    PARSING_RESPONSE = 'PARSING_RESPONSE'
    RUNNING_FALLBACK = 'RUNNING_FALLBACK'
    AGGREGATING = 'AGGREGATING'
    DONE = 'DONE'


REQUEST_TYPES = MappingProxyType({
    TaskCategory.CHAT: ChatRequest,
    TaskCategory.CROP_RECOMMENDATION: SoilEnvironmentInput,
    TaskCategory.DISEASE_DETECTION: DiseaseRequest,
    TaskCategory.YIELD_PREDICTION: YieldRequest,
    TaskCategory.CROP_SWAPPING: SwapRequest,
    TaskCategory.OPTIMAL_SEASON: SeasonRequest,
    TaskCategory.FERTILIZER: FertilizerRequest,
    TaskCategory.MARKET_ANALYSIS: MarketRequest,
    TaskCategory.GEOSPATIAL: GeospatialRequest,
    TaskCategory.IRRIGATION: IrrigationRequest,
})


def coerce_request(task, data):
    """
    Builds the typed request for ``task`` from an inbound JSON mapping.

    Raises:
        InvalidInput: unknown task, or a missing/non-numeric field.
    """
    category = TaskCategory.coerce(task)
    if category is None:
        raise InvalidInput(f"Unknown task '{task}'")
    return REQUEST_TYPES[category].from_mapping(data)


class RecommendationOrchestrator:
    """
    Runs one request through prompt building, the model call and parsing,
    switching to the fallback engine whenever the model path fails.

    ``run`` never raises; the ``source`` of the result tells which path ran.
    """

    def __init__(self, client=None, selector=None, prompt_builder=None, parser=None, fallback_engine=None):
        self.client = client
        self.selector = selector or ModelSelector()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()
        self.fallback_engine = fallback_engine or FallbackRuleEngine()

    @classmethod
    def from_config(cls, config):
        return cls(client=build_client(config), selector=ModelSelector.from_config(config))

    def run(self, task, payload):
        category = TaskCategory.coerce(task)
        tag = category.value if category else str(task)
        states = []

        def enter(state):
            previous = states[-1] if states else 'START'
            states.append(state.value)
            log.debug(f"[{tag}] {previous} -> {state.value}")

        enter(State.BUILDING_PROMPT)
        model = self.selector.select(category or task)
        raw_text = ''
        records = None
        try:
            prompt = self.prompt_builder.build(category or task, payload)
            enter(State.INVOKING_MODEL)
            if self.client is None:
                raise ServiceUnavailable("No generative model client configured")
            raw_text = self.client.generate(prompt, model, max_tokens_for(category))
            if not isinstance(raw_text, str) or not raw_text.strip():
                raise ServiceUnavailable("Model returned no text")
            enter(State.PARSING_RESPONSE)
            records = self.parser.parse(category, raw_text, payload)
        except ServiceUnavailable as e:
            log.warning(f"[{tag}] Model unavailable, using fallback engine: {e}")
        except Exception as e:
            log.error(f"[{tag}] Model path failed, using fallback engine: {e}", exc_info=True)

        if records is None:
            enter(State.RUNNING_FALLBACK)
            source, raw_text, model = SOURCE_FALLBACK, '', None
            try:
                records = self.fallback_engine.recommend(category, payload)
            except Exception as e:
                log.error(f"[{tag}] Fallback rules failed: {e}", exc_info=True)
                records = []
        else:
            source = SOURCE_MODEL

        enter(State.AGGREGATING)
        records = tuple(records[:MAX_RECOMMENDATIONS])
        confidence = aggregate(records)
        confidence = clamp_fallback(confidence) if source == SOURCE_FALLBACK else clamp_unit(confidence)

        extras = {}
        if category is TaskCategory.CROP_RECOMMENDATION and isinstance(payload, SoilEnvironmentInput):
            extras = {
                'soil_health': assess_soil_health(payload.nitrogen, payload.phosphorus, payload.potassium, payload.ph),
                'general_recommendations': general_soil_advice(payload.nitrogen, payload.phosphorus, payload.potassium, payload.ph),
                'risk_advisories': tuple(risk_advice(payload.temperature, payload.humidity, payload.rainfall, payload.ph)),
            }

        enter(State.DONE)
        log.info(f"[{tag}] Completed via {source} with {len(records)} record(s), confidence {confidence}")
        return AggregateResult(
            task=category or task,
            recommendations=records,
            confidence=confidence,
            source=source,
            raw_response=raw_text,
            model=model,
            states=tuple(states),
            **extras,
        )
