# File: agribot/model_selector.py

import enum
import logging
from types import MappingProxyType

log = logging.getLogger(__name__)


class TaskCategory(enum.Enum):
    CHAT = 'chat'
    CROP_RECOMMENDATION = 'crop-recommendation'
    DISEASE_DETECTION = 'disease-detection'
    YIELD_PREDICTION = 'yield-prediction'
    CROP_SWAPPING = 'crop-swapping'
    OPTIMAL_SEASON = 'optimal-season'
    FERTILIZER = 'fertilizer'
    MARKET_ANALYSIS = 'market-analysis'
    GEOSPATIAL = 'geospatial'
    IRRIGATION = 'irrigation'

    @classmethod
    def coerce(cls, value):
        """Returns the TaskCategory for an enum member or tag string, or None if unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


DEFAULT_MODEL = 'gemini-1.5-flash'

# Output budget per task, in tokens
MAX_TOKENS = MappingProxyType({
    TaskCategory.CHAT: 600,
    TaskCategory.CROP_RECOMMENDATION: 800,
    TaskCategory.DISEASE_DETECTION: 700,
    TaskCategory.YIELD_PREDICTION: 700,
    TaskCategory.CROP_SWAPPING: 1000,
    TaskCategory.OPTIMAL_SEASON: 900,
})
DEFAULT_MAX_TOKENS = 500


def max_tokens_for(task):
    return MAX_TOKENS.get(TaskCategory.coerce(task), DEFAULT_MAX_TOKENS)


class ModelSelector:
    """
    Maps a task category to the model handle used to serve it.

    The table is built once and never mutated. Chat goes to the chat model,
    every analytical task goes to the analysis model, and anything
    unrecognized (including arbitrary strings) gets the default handle.
    """

    def __init__(self, chat_model=None, analysis_model=None, default_model=DEFAULT_MODEL):
        self.default_model = default_model or DEFAULT_MODEL
        chat_model = chat_model or self.default_model
        analysis_model = analysis_model or self.default_model

        table = {task: analysis_model for task in TaskCategory}
        table[TaskCategory.CHAT] = chat_model
        self._table = MappingProxyType(table)

    @classmethod
    def from_config(cls, config):
        """Builds a selector from a Flask config mapping or a Config class."""
        get = config.get if hasattr(config, 'get') else lambda key, default=None: getattr(config, key, default)
        if str(get('MODEL_PROVIDER', 'gemini')).lower() == 'huggingface':
            hf_model = get('HUGGINGFACE_MODEL_NAME')
            return cls(chat_model=hf_model, analysis_model=hf_model, default_model=hf_model or DEFAULT_MODEL)
        return cls(chat_model=get('CHAT_MODEL_NAME'), analysis_model=get('ANALYSIS_MODEL_NAME'))

    @property
    def table(self):
        return self._table

    def select(self, task):
        model = self._table.get(TaskCategory.coerce(task), self.default_model)
        log.debug(f"Selected model '{model}' for task '{task}'")
        return model
