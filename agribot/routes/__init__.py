# File: agribot/routes/__init__.py

from flask import Blueprint, current_app

from ..orchestrator import RecommendationOrchestrator

chat_bp = Blueprint('chat', __name__, url_prefix='/api/chat')
ai_bp = Blueprint('ai', __name__, url_prefix='/api/ai')


def get_orchestrator():
    """Returns the app's orchestrator, building it from config on first use."""
    orchestrator = current_app.extensions.get('agribot_orchestrator')
    if orchestrator is None:
        orchestrator = RecommendationOrchestrator.from_config(current_app.config)
        current_app.extensions['agribot_orchestrator'] = orchestrator
    return orchestrator


from . import chat_routes, recommendation_routes  # noqa: E402,F401
