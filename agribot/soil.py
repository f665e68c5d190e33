# File: agribot/soil.py
"""Soil health labelling and general soil advice attached to crop recommendations."""


def _nutrient_score(value, good, fair):
    if value >= good:
        return 1.0
    if value >= fair:
        return 0.7
    return 0.4


def _ph_score(ph):
    if 6.0 <= ph <= 7.5:
        return 1.0
    if 5.5 <= ph <= 8.0:
        return 0.7
    return 0.4


def assess_soil_health(nitrogen, phosphorus, potassium, ph):
    """Returns 'Excellent', 'Good', 'Fair' or 'Poor' from the NPK and pH readings."""
    scores = (
        _nutrient_score(nitrogen, 25, 15),
        _nutrient_score(phosphorus, 20, 10),
        _nutrient_score(potassium, 20, 10),
        _ph_score(ph),
    )
    average = sum(scores) / len(scores)
    if average >= 0.8:
        return 'Excellent'
    if average >= 0.6:
        return 'Good'
    if average >= 0.4:
        return 'Fair'
    return 'Poor'


def general_soil_advice(nitrogen, phosphorus, potassium, ph):
    advice = []
    if nitrogen < 20:
        advice.append("Consider nitrogen-rich fertilizers or compost")
    if phosphorus < 15:
        advice.append("Add phosphorus supplements for root development")
    if potassium < 15:
        advice.append("Increase potassium for disease resistance")
    if ph < 6:
        advice.append("Apply lime to increase soil pH")
    if ph > 7.5:
        advice.append("Add organic matter to lower pH")
    return "; ".join(advice) if advice else "Soil conditions are optimal"
