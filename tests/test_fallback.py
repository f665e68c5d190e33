import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agribot.confidence import FALLBACK_CEILING, FALLBACK_FLOOR
from agribot.fallback import (
    DEFAULT_ALTERNATIVE_CROPS,
    DEFAULT_IRRIGATION,
    FallbackRuleEngine,
    chat_suggestions,
    fertilizer_actions,
    irrigation_plan,
    recommend_crops,
    risk_advice,
    seasons_for_crop,
    swap_confidence,
)
from agribot.model_selector import TaskCategory
from agribot.schemas import (
    ChatRequest,
    DiseaseRequest,
    FertilizerRequest,
    SeasonRequest,
    SoilEnvironmentInput,
    SwapRequest,
    YieldRequest,
)

HUMID_WARM = SoilEnvironmentInput(
    nitrogen=30.0, phosphorus=25.0, potassium=28.0,
    temperature=27.0, humidity=75.0, ph=6.2, rainfall=200.0,
)
COLD_DRY = SoilEnvironmentInput(
    nitrogen=10.0, phosphorus=8.0, potassium=5.0,
    temperature=5.0, humidity=20.0, ph=9.0, rainfall=10.0,
)


class CropRuleTests(unittest.TestCase):
    def test_humid_warm_field_ranks_rice_corn_soybean(self) -> None:
        crops = recommend_crops(HUMID_WARM)
        self.assertEqual([c.name for c in crops], ["Rice", "Corn (Maize)", "Soybean"])
        self.assertEqual([c.confidence for c in crops], [0.95, 0.95, 0.85])
        self.assertTrue(all(c.suitability == "High" for c in crops))

    def test_rice_details_quote_readings(self) -> None:
        rice = recommend_crops(HUMID_WARM)[0]
        self.assertEqual(rice.details[0], "Optimal for current humidity (75%) and rainfall (200mm)")
        self.assertEqual(rice.details[1], "Temperature 27°C is ideal for rice")

    def test_no_eligible_crop_returns_empty(self) -> None:
        self.assertEqual(recommend_crops(COLD_DRY), [])

    def test_confidences_stay_in_band(self) -> None:
        for crop in recommend_crops(HUMID_WARM):
            self.assertGreaterEqual(crop.confidence, FALLBACK_FLOOR)
            self.assertLessEqual(crop.confidence, FALLBACK_CEILING)

    def test_wheat_for_cool_field(self) -> None:
        soil = SoilEnvironmentInput(
            nitrogen=20.0, phosphorus=18.0, potassium=15.0,
            temperature=18.0, humidity=50.0, ph=7.2, rainfall=100.0,
        )
        crops = recommend_crops(soil)
        self.assertEqual([c.name for c in crops], ["Wheat"])
        self.assertEqual(crops[0].suitability, "High")
        self.assertEqual(crops[0].confidence, 0.95)


class FertilizerRuleTests(unittest.TestCase):
    def test_deficient_alkaline_soil(self) -> None:
        actions = fertilizer_actions(10.0, 8.0, 5.0, 9.0)
        self.assertEqual(
            [a.name for a in actions],
            ["MOP (Muriate of Potash, 0-0-60)", "Gypsum or elemental sulfur", "Urea (46-0-0)"],
        )
        self.assertEqual(actions[0].suitability, "High")
        self.assertEqual(actions[0].confidence, 0.8)

    def test_acidic_soil_gets_lime(self) -> None:
        actions = fertilizer_actions(30.0, 25.0, 28.0, 5.0)
        self.assertEqual([a.name for a in actions], ["Agricultural lime"])
        self.assertEqual(actions[0].suitability, "High")

    def test_balanced_soil_gets_maintenance_dose(self) -> None:
        actions = fertilizer_actions(30.0, 25.0, 28.0, 6.5)
        self.assertEqual(len(actions), 1)
        self.assertEqual(actions[0].name, "NPK 10-26-26")
        self.assertEqual(actions[0].confidence, 0.7)


class RiskRuleTests(unittest.TestCase):
    def test_multiple_risks_ranked(self) -> None:
        risks = risk_advice(temperature=38.0, humidity=85.0, rainfall=300.0, ph=5.0)
        self.assertEqual(
            [r.name for r in risks],
            ["Nutrient lock-out", "Fungal disease risk", "Heat stress"],
        )

    def test_missing_readings_are_skipped(self) -> None:
        self.assertEqual(risk_advice(), [])

    def test_drought(self) -> None:
        risks = risk_advice(rainfall=20.0)
        self.assertEqual([r.name for r in risks], ["Drought stress"])
        self.assertEqual(risks[0].suitability, "High")


class IrrigationRuleTests(unittest.TestCase):
    def test_hot_dry_low_rainfall(self) -> None:
        plan = irrigation_plan(rainfall=80.0, temperature=32.0, humidity=35.0)
        self.assertEqual(plan["dailyRequirement"], "17mm")
        self.assertEqual(plan["weeklyRequirement"], "119mm")
        self.assertEqual(plan["irrigationSchedule"], "Every 3 days")
        self.assertEqual(plan["method"], "Drip irrigation recommended")
        self.assertEqual(plan.confidence, 0.85)

    def test_heavy_rainfall(self) -> None:
        plan = irrigation_plan(rainfall=400.0)
        self.assertEqual(plan["dailyRequirement"], "5mm")
        self.assertEqual(plan["efficiency"], "65%")

    def test_no_rainfall_reading_uses_defaults(self) -> None:
        plan = irrigation_plan()
        self.assertEqual(dict(plan.fields), dict(DEFAULT_IRRIGATION))
        self.assertEqual(plan.confidence, 0.5)


class TaskRecordTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = FallbackRuleEngine()

    def test_every_task_has_rules(self) -> None:
        self.assertEqual(set(self.engine.rules), set(TaskCategory))

    def test_unknown_task_returns_empty(self) -> None:
        self.assertEqual(self.engine.recommend("weather-forecast", HUMID_WARM), [])

    def test_chat_keyword_reply(self) -> None:
        [record] = self.engine.recommend(TaskCategory.CHAT, ChatRequest(message="Best irrigation for tomatoes?"))
        self.assertIn("drip irrigation", record["reply"])
        self.assertEqual(record.confidence, 0.92)
        self.assertEqual(record["suggestions"], ["Calculate irrigation requirements"])

    def test_chat_generic_reply_is_clamped(self) -> None:
        [record] = self.engine.recommend(TaskCategory.CHAT, ChatRequest(message="hello"))
        self.assertEqual(record.confidence, FALLBACK_CEILING)

    def test_disease_and_pest_kinds(self) -> None:
        [diagnosis] = self.engine.recommend(
            TaskCategory.DISEASE_DETECTION, DiseaseRequest(crop_type="Tomato", symptoms="spots"))
        [pest] = self.engine.recommend(
            TaskCategory.DISEASE_DETECTION,
            DiseaseRequest(crop_type="Cotton", symptoms="holes", detection_type="pest_outbreak"))
        self.assertEqual(diagnosis.kind, "diagnosis")
        self.assertEqual(pest.kind, "pest")
        self.assertEqual(diagnosis["severity"], "Moderate")

    def test_yield_risks_follow_weather(self) -> None:
        [record] = self.engine.recommend(
            TaskCategory.YIELD_PREDICTION,
            YieldRequest(crop_type="Rice", area=2.0, season="Kharif", rainfall=400.0))
        self.assertEqual(record["riskAssessment"], ["Waterlogging"])

    def test_swap_record_and_confidence(self) -> None:
        req = SwapRequest(current_crop="Wheat", farm_location="Punjab", risk_tolerance="low")
        [record] = self.engine.recommend(TaskCategory.CROP_SWAPPING, req)
        self.assertEqual(len(record["alternativeCrops"]), len(DEFAULT_ALTERNATIVE_CROPS))
        self.assertEqual(record.confidence, swap_confidence(req))
        self.assertEqual(record.confidence, 0.65)

    def test_season_record(self) -> None:
        [record] = self.engine.recommend(TaskCategory.OPTIMAL_SEASON, SeasonRequest(crop_type="Wheat"))
        seasons = record["optimalSeasons"]
        self.assertEqual([s["name"] for s in seasons], ["Rabi Season"])
        self.assertEqual(seasons[0]["months"], "October - March")
        self.assertEqual(record.confidence, 0.6)

    def test_seasons_for_unknown_crop(self) -> None:
        self.assertEqual(seasons_for_crop("Quinoa"), ("Kharif", "Rabi"))

    def test_fertilizer_record(self) -> None:
        [record] = self.engine.recommend(
            TaskCategory.FERTILIZER, FertilizerRequest(nitrogen=10.0, phosphorus=8.0, potassium=5.0, ph=9.0))
        self.assertEqual(record["primaryFertilizer"], "MOP (Muriate of Potash, 0-0-60)")
        self.assertEqual(len(record["actions"]), 3)
        self.assertEqual(record.confidence, 0.8)

    def test_record_dict_is_a_copy(self) -> None:
        [record] = self.engine.recommend(TaskCategory.OPTIMAL_SEASON, SeasonRequest(crop_type="Rice"))
        data = record.to_dict()
        data["optimalSeasons"].clear()
        self.assertTrue(record["optimalSeasons"])


class SuggestionTests(unittest.TestCase):
    def test_keyword_suggestions(self) -> None:
        self.assertEqual(
            chat_suggestions("Which fertilizer and market price?"),
            ["Get fertilizer recommendations for your crops", "Analyze market trends and prices"],
        )

    def test_default_suggestions(self) -> None:
        self.assertEqual(len(chat_suggestions("hello")), 3)


if __name__ == "__main__":
    unittest.main()
