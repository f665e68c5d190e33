import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agribot.model_selector import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    ModelSelector,
    TaskCategory,
    max_tokens_for,
)


class TaskCategoryTests(unittest.TestCase):
    def test_coerce_accepts_members_and_tags(self) -> None:
        self.assertIs(TaskCategory.coerce(TaskCategory.CHAT), TaskCategory.CHAT)
        self.assertIs(TaskCategory.coerce("crop-recommendation"), TaskCategory.CROP_RECOMMENDATION)
        self.assertIs(TaskCategory.coerce(" Irrigation "), TaskCategory.IRRIGATION)

    def test_coerce_returns_none_for_unknown(self) -> None:
        self.assertIsNone(TaskCategory.coerce("weather-forecast"))
        self.assertIsNone(TaskCategory.coerce(None))


class ModelSelectorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.selector = ModelSelector(chat_model="chat-m", analysis_model="analysis-m", default_model="default-m")

    def test_chat_uses_chat_model(self) -> None:
        self.assertEqual(self.selector.select(TaskCategory.CHAT), "chat-m")

    def test_analytical_tasks_use_analysis_model(self) -> None:
        for task in TaskCategory:
            if task is TaskCategory.CHAT:
                continue
            self.assertEqual(self.selector.select(task), "analysis-m")

    def test_unknown_task_gets_default(self) -> None:
        self.assertEqual(self.selector.select("something-else"), "default-m")

    def test_table_is_read_only(self) -> None:
        with self.assertRaises(TypeError):
            self.selector.table[TaskCategory.CHAT] = "other"

    def test_missing_models_fall_back_to_default(self) -> None:
        selector = ModelSelector()
        self.assertEqual(selector.select(TaskCategory.CHAT), DEFAULT_MODEL)
        self.assertEqual(selector.select(TaskCategory.FERTILIZER), DEFAULT_MODEL)

    def test_from_config_huggingface(self) -> None:
        config = {"MODEL_PROVIDER": "huggingface", "HUGGINGFACE_MODEL_NAME": "granite-8b"}
        selector = ModelSelector.from_config(config)
        self.assertEqual(selector.select(TaskCategory.CHAT), "granite-8b")
        self.assertEqual(selector.select(TaskCategory.YIELD_PREDICTION), "granite-8b")

    def test_from_config_gemini(self) -> None:
        config = {"MODEL_PROVIDER": "gemini", "CHAT_MODEL_NAME": "g-chat", "ANALYSIS_MODEL_NAME": "g-pro"}
        selector = ModelSelector.from_config(config)
        self.assertEqual(selector.select(TaskCategory.CHAT), "g-chat")
        self.assertEqual(selector.select(TaskCategory.MARKET_ANALYSIS), "g-pro")


class MaxTokensTests(unittest.TestCase):
    def test_known_budgets(self) -> None:
        self.assertEqual(max_tokens_for(TaskCategory.CROP_RECOMMENDATION), 800)
        self.assertEqual(max_tokens_for("crop-swapping"), 1000)

    def test_default_budget(self) -> None:
        self.assertEqual(max_tokens_for(TaskCategory.FERTILIZER), DEFAULT_MAX_TOKENS)
        self.assertEqual(max_tokens_for("unknown"), DEFAULT_MAX_TOKENS)


if __name__ == "__main__":
    unittest.main()
