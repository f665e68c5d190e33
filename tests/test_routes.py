import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agribot import create_app
from agribot.orchestrator import RecommendationOrchestrator

SOIL_BODY = {
    "nitrogen": 30, "phosphorus": 25, "potassium": 28,
    "temperature": 27, "humidity": 75, "ph": 6.2, "rainfall": 200,
    "state": "Karnataka", "district": "Mandya",
}


class StubClient:
    name = "stub"

    def __init__(self, text):
        self.text = text

    def generate(self, prompt, model, max_tokens):
        return self.text


class RouteTests(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app("agribot.config.TestingConfig")
        self.client = self.app.test_client()

    def test_crop_recommendation_fallback(self) -> None:
        response = self.client.post("/api/ai/crop-recommendation", json=SOIL_BODY)
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body["success"])
        data = body["data"]
        self.assertEqual(data["source"], "fallback engine")
        self.assertEqual([r["crop"] for r in data["recommendations"]], ["Rice", "Corn (Maize)", "Soybean"])
        self.assertEqual(data["soilHealth"], "Excellent")
        self.assertEqual(data["riskAdvisories"], [])
        self.assertEqual(data["rawResponse"], "")
        self.assertEqual(data["task"], "crop-recommendation")

    def test_crop_recommendation_model(self) -> None:
        text = "1. Crop: Wheat\nSuitability: High\nConfidence: 82%"
        self.app.extensions["agribot_orchestrator"] = RecommendationOrchestrator(client=StubClient(text))
        response = self.client.post("/api/ai/crop-recommendation", json=SOIL_BODY)
        data = response.get_json()["data"]
        self.assertEqual(data["source"], "model")
        self.assertEqual(data["recommendations"][0]["crop"], "Wheat")
        self.assertEqual(data["confidence"], 0.82)
        self.assertEqual(data["rawResponse"], text)

    def test_non_numeric_field(self) -> None:
        response = self.client.post("/api/ai/crop-recommendation", json=dict(SOIL_BODY, ph="acidic"))
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertFalse(body["success"])
        self.assertEqual(body["field"], "ph")

    def test_missing_body(self) -> None:
        response = self.client.post("/api/ai/yield-prediction", data="not json", content_type="text/plain")
        self.assertEqual(response.status_code, 400)

    def test_unknown_endpoint(self) -> None:
        response = self.client.post("/api/ai/weather-forecast", json={"a": 1})
        self.assertEqual(response.status_code, 404)

    def test_pest_outbreak(self) -> None:
        response = self.client.post("/api/ai/pest-outbreak", json={"cropType": "Cotton", "symptoms": "holes in bolls"})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["task"], "disease-detection")
        self.assertEqual(data["recommendations"][0]["disease"], "Analysis unavailable")

    def test_irrigation_requirement(self) -> None:
        response = self.client.post(
            "/api/ai/irrigation-requirement",
            json={"cropType": "Tomato", "rainfall": 80, "temperature": 32, "humidity": 35},
        )
        data = response.get_json()["data"]
        self.assertEqual(data["recommendations"][0]["dailyRequirement"], "17mm")

    def test_fertilizer_recommendation(self) -> None:
        response = self.client.post(
            "/api/ai/fertilizer-recommendation",
            json={"nitrogen": 10, "phosphorus": 8, "potassium": 5, "ph": 9},
        )
        record = response.get_json()["data"]["recommendations"][0]
        self.assertEqual(record["primaryFertilizer"], "MOP (Muriate of Potash, 0-0-60)")
        self.assertEqual(record["actions"][0]["name"], "MOP (Muriate of Potash, 0-0-60)")

    def test_chat(self) -> None:
        response = self.client.post("/api/chat/", json={"message": "Should I go organic?"})
        self.assertEqual(response.status_code, 200)
        record = response.get_json()["data"]["recommendations"][0]
        self.assertIn("organic", record["reply"].lower())
        self.assertTrue(record["suggestions"])

    def test_chat_without_message(self) -> None:
        response = self.client.post("/api/chat/", json={"context": "Punjab"})
        self.assertEqual(response.status_code, 400)

    def test_health(self) -> None:
        response = self.client.get("/api/ai/health")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["provider"], "none")
        self.assertFalse(data["modelConfigured"])
        self.assertTrue(data["fallbackEngine"])
        self.assertIn("chat", data["models"])


if __name__ == "__main__":
    unittest.main()
