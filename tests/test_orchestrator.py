import sys
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agribot.confidence import FALLBACK_CEILING, FALLBACK_FLOOR
from agribot.errors import InvalidInput, ServiceUnavailable
from agribot.model_selector import ModelSelector, TaskCategory
from agribot.orchestrator import RecommendationOrchestrator, State, coerce_request
from agribot.parsers import ResponseParser
from agribot.schemas import (
    SOURCE_FALLBACK,
    SOURCE_MODEL,
    DiseaseRequest,
    FertilizerRequest,
    SoilEnvironmentInput,
)

HUMID_WARM = SoilEnvironmentInput(
    nitrogen=30.0, phosphorus=25.0, potassium=28.0,
    temperature=27.0, humidity=75.0, ph=6.2, rainfall=200.0,
)
COLD_DRY = SoilEnvironmentInput(
    nitrogen=10.0, phosphorus=8.0, potassium=5.0,
    temperature=5.0, humidity=20.0, ph=9.0, rainfall=10.0,
)


class StubClient:
    name = "stub"

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate(self, prompt, model, max_tokens):
        self.calls.append((prompt, model, max_tokens))
        if self.error is not None:
            raise self.error
        return self.text


def fallback_states():
    return (
        State.BUILDING_PROMPT.value,
        State.INVOKING_MODEL.value,
        State.RUNNING_FALLBACK.value,
        State.AGGREGATING.value,
        State.DONE.value,
    )


class FallbackPathTests(unittest.TestCase):
    def test_unavailable_model_uses_rules(self) -> None:
        client = StubClient(error=ServiceUnavailable("timeout"))
        result = RecommendationOrchestrator(client=client).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(result.source, SOURCE_FALLBACK)
        self.assertEqual([r.name for r in result.recommendations], ["Rice", "Corn (Maize)", "Soybean"])
        self.assertEqual(result.confidence, 0.92)
        self.assertGreaterEqual(result.confidence, FALLBACK_FLOOR)
        self.assertLessEqual(result.confidence, FALLBACK_CEILING)
        self.assertEqual(result.raw_response, "")
        self.assertIsNone(result.model)
        self.assertEqual(result.states, fallback_states())

    def test_no_client_configured(self) -> None:
        result = RecommendationOrchestrator(client=None).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(result.source, SOURCE_FALLBACK)
        self.assertEqual(result.soil_health, "Excellent")
        self.assertEqual(result.general_recommendations, "Soil conditions are optimal")

    def test_unexpected_client_error(self) -> None:
        client = StubClient(error=RuntimeError("socket closed"))
        result = RecommendationOrchestrator(client=client).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(result.source, SOURCE_FALLBACK)

    def test_blank_model_text(self) -> None:
        client = StubClient(text="   ")
        result = RecommendationOrchestrator(client=client).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(result.source, SOURCE_FALLBACK)

    def test_no_eligible_crop(self) -> None:
        result = RecommendationOrchestrator().run(TaskCategory.CROP_RECOMMENDATION, COLD_DRY)
        self.assertEqual(result.recommendations, ())
        self.assertEqual(result.confidence, 0.5)
        self.assertEqual(
            [r.name for r in result.risk_advisories],
            ["Drought stress", "Nutrient lock-out"],
        )

    def test_parser_failure_falls_back(self) -> None:
        parser = mock.Mock(spec=ResponseParser)
        parser.parse.side_effect = ValueError("bad text")
        client = StubClient(text="1. Crop: Wheat")
        result = RecommendationOrchestrator(client=client, parser=parser).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(result.source, SOURCE_FALLBACK)
        self.assertEqual(result.recommendations[0].name, "Rice")

    def test_fallback_rule_failure_gives_empty_result(self) -> None:
        engine = mock.Mock()
        engine.recommend.side_effect = KeyError("missing")
        result = RecommendationOrchestrator(fallback_engine=engine).run(TaskCategory.FERTILIZER, object())
        self.assertEqual(result.recommendations, ())
        self.assertEqual(result.confidence, 0.5)

    def test_task_record_fallback(self) -> None:
        req = DiseaseRequest(crop_type="Tomato", symptoms="spots")
        result = RecommendationOrchestrator().run(TaskCategory.DISEASE_DETECTION, req)
        [record] = result.recommendations
        self.assertEqual(record["disease"], "Analysis unavailable")
        self.assertIsNone(result.soil_health)
        self.assertNotIn("soilHealth", result.to_dict())


class ModelPathTests(unittest.TestCase):
    def test_model_text_is_parsed(self) -> None:
        client = StubClient(text="1. Crop: Wheat\nSuitability: High\nExpected yield 3.5 tons\nConfidence: 82%")
        orchestrator = RecommendationOrchestrator(
            client=client,
            selector=ModelSelector(chat_model="chat-m", analysis_model="analysis-m"),
        )
        result = orchestrator.run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)

        self.assertEqual(result.source, SOURCE_MODEL)
        self.assertTrue(result.from_model)
        self.assertEqual([r.name for r in result.recommendations], ["Wheat"])
        self.assertEqual(result.confidence, 0.82)
        self.assertEqual(result.model, "analysis-m")
        self.assertEqual(result.raw_response, client.text)
        self.assertEqual(result.soil_health, "Excellent")
        self.assertEqual(result.states, (
            State.BUILDING_PROMPT.value,
            State.INVOKING_MODEL.value,
            State.PARSING_RESPONSE.value,
            State.AGGREGATING.value,
            State.DONE.value,
        ))

        [(prompt, model, max_tokens)] = client.calls
        self.assertIn("Nitrogen: 30 ppm", prompt)
        self.assertEqual(model, "analysis-m")
        self.assertEqual(max_tokens, 800)

    def test_records_capped_at_three(self) -> None:
        text = "\n".join(f"{i}. Crop: Crop{chr(64 + i)}\nConfidence: 70%" for i in range(1, 6))
        result = RecommendationOrchestrator(client=StubClient(text=text)).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(len(result.recommendations), 3)

    def test_chat_uses_chat_model(self) -> None:
        client = StubClient(text='{"advice": "Mulch your beds", "confidence_score": 90}')
        orchestrator = RecommendationOrchestrator(
            client=client,
            selector=ModelSelector(chat_model="chat-m", analysis_model="analysis-m"),
        )
        result = orchestrator.run("chat", coerce_request("chat", {"message": "How do I keep soil moist?"}))
        self.assertEqual(result.source, SOURCE_MODEL)
        self.assertEqual(result.recommendations[0]["reply"], "Mulch your beds")
        self.assertEqual(result.model, "chat-m")

    def test_model_confidence_not_bound_to_fallback_band(self) -> None:
        client = StubClient(text="Crop: Millet\nConfidence: 99%")
        result = RecommendationOrchestrator(client=client).run(TaskCategory.CROP_RECOMMENDATION, HUMID_WARM)
        self.assertEqual(result.confidence, 0.99)


class CoerceRequestTests(unittest.TestCase):
    def test_builds_typed_request(self) -> None:
        req = coerce_request(TaskCategory.FERTILIZER, {"nitrogen": 10, "phosphorus": 8, "potassium": "5"})
        self.assertIsInstance(req, FertilizerRequest)
        self.assertEqual(req.potassium, 5.0)
        self.assertIsNone(req.ph)

    def test_unknown_task(self) -> None:
        with self.assertRaises(InvalidInput):
            coerce_request("weather-forecast", {})

    def test_invalid_field(self) -> None:
        with self.assertRaises(InvalidInput) as ctx:
            coerce_request("crop-recommendation", {"nitrogen": "lots"})
        self.assertEqual(ctx.exception.field, "nitrogen")


if __name__ == "__main__":
    unittest.main()
