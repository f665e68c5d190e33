import sys
import unittest
from dataclasses import replace
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agribot.model_selector import TaskCategory
from agribot.prompts import NOT_SPECIFIED, PromptBuilder, format_value
from agribot.schemas import (
    ChatRequest,
    DiseaseRequest,
    FertilizerRequest,
    SoilEnvironmentInput,
    YieldRequest,
)

SOIL = SoilEnvironmentInput(
    nitrogen=30.0, phosphorus=25.0, potassium=28.0,
    temperature=27.0, humidity=75.0, ph=6.2, rainfall=200.0,
)


class FormatValueTests(unittest.TestCase):
    def test_whole_float_drops_fraction(self) -> None:
        self.assertEqual(format_value(27.0), "27")

    def test_fraction_kept(self) -> None:
        self.assertEqual(format_value(6.2), "6.2")
        self.assertEqual(format_value(27.5), "27.5")

    def test_missing_values(self) -> None:
        self.assertEqual(format_value(None), NOT_SPECIFIED)
        self.assertEqual(format_value("   "), NOT_SPECIFIED)
        self.assertEqual(format_value(None, default="n/a"), "n/a")


class PromptBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.builder = PromptBuilder()

    def test_every_task_has_a_template(self) -> None:
        self.assertEqual(set(self.builder.templates), set(TaskCategory))

    def test_build_is_deterministic(self) -> None:
        first = self.builder.build(TaskCategory.CROP_RECOMMENDATION, SOIL)
        second = self.builder.build("crop-recommendation", SOIL)
        self.assertEqual(first, second)

    def test_crop_prompt_quotes_readings(self) -> None:
        prompt = self.builder.build(TaskCategory.CROP_RECOMMENDATION, SOIL)
        self.assertIn("Nitrogen: 30 ppm", prompt)
        self.assertIn("pH Level: 6.2", prompt)
        self.assertIn("Rainfall: 200mm", prompt)
        self.assertIn(f"Soil Type: {NOT_SPECIFIED}", prompt)

    def test_changed_field_changes_prompt(self) -> None:
        base = self.builder.build(TaskCategory.CROP_RECOMMENDATION, SOIL)
        changed = self.builder.build(TaskCategory.CROP_RECOMMENDATION, replace(SOIL, ph=6.3))
        self.assertNotEqual(base, changed)

    def test_disease_prompt_without_images(self) -> None:
        req = DiseaseRequest(crop_type="Tomato", symptoms="brown leaf spots")
        prompt = self.builder.build(TaskCategory.DISEASE_DETECTION, req)
        self.assertIn("PLANT DISEASE DIAGNOSIS", prompt)
        self.assertIn("Observed Symptoms: brown leaf spots", prompt)
        self.assertNotIn("IMAGE-BASED ANALYSIS", prompt)
        self.assertIn(f"Location: {NOT_SPECIFIED}", prompt)

    def test_disease_prompt_with_images(self) -> None:
        req = DiseaseRequest(crop_type="Tomato", symptoms="brown leaf spots", image_count=2)
        prompt = self.builder.build(TaskCategory.DISEASE_DETECTION, req)
        self.assertIn("Number of Images Provided: 2", prompt)
        self.assertIn("IMAGE-BASED ANALYSIS", prompt)

    def test_pest_prompt(self) -> None:
        req = DiseaseRequest(crop_type="Cotton", symptoms="holes in bolls", detection_type="pest_outbreak", image_count=1)
        prompt = self.builder.build(TaskCategory.DISEASE_DETECTION, req)
        self.assertIn("PEST OUTBREAK IDENTIFICATION", prompt)
        self.assertIn("PEST IMAGE ANALYSIS", prompt)
        self.assertIn("REQUIRED PEST ANALYSIS", prompt)

    def test_yield_prompt(self) -> None:
        req = YieldRequest(crop_type="Wheat", area=2.5, season="Rabi")
        prompt = self.builder.build(TaskCategory.YIELD_PREDICTION, req)
        self.assertIn("Cultivation Area: 2.5 hectares", prompt)

    def test_fertilizer_prompt_handles_missing_ph(self) -> None:
        req = FertilizerRequest(nitrogen=10.0, phosphorus=8.0, potassium=5.0)
        prompt = self.builder.build(TaskCategory.FERTILIZER, req)
        self.assertIn(NOT_SPECIFIED, prompt)

    def test_chat_prompt_asks_for_json(self) -> None:
        prompt = self.builder.build(TaskCategory.CHAT, ChatRequest(message="How do I grow rice?"))
        self.assertIn("USER QUERY: How do I grow rice?", prompt)
        self.assertIn('"advice"', prompt)

    def test_unknown_task_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.builder.build("weather-forecast", SOIL)


if __name__ == "__main__":
    unittest.main()
