# File: agribot/routes/recommendation_routes.py

from datetime import datetime, timezone

from flask import request, jsonify, current_app
import logging
from . import ai_bp, get_orchestrator
from ..errors import InvalidInput
from ..model_selector import TaskCategory
from ..orchestrator import coerce_request
from ..schemas import DiseaseRequest

log = logging.getLogger(__name__)

# URL slug -> task served by that endpoint
ENDPOINT_TASKS = {
    'crop-recommendation': TaskCategory.CROP_RECOMMENDATION,
    'disease-detection': TaskCategory.DISEASE_DETECTION,
    'pest-outbreak': TaskCategory.DISEASE_DETECTION,
    'yield-prediction': TaskCategory.YIELD_PREDICTION,
    'crop-swapping-strategy': TaskCategory.CROP_SWAPPING,
    'optimal-crop-season': TaskCategory.OPTIMAL_SEASON,
    'fertilizer-recommendation': TaskCategory.FERTILIZER,
    'market-analysis': TaskCategory.MARKET_ANALYSIS,
    'geospatial-analysis': TaskCategory.GEOSPATIAL,
    'irrigation-requirement': TaskCategory.IRRIGATION,
}


@ai_bp.route('/<endpoint>', methods=['POST'])
def run_task(endpoint):
    """Validates the JSON body into the task's request and runs the pipeline."""
    task = ENDPOINT_TASKS.get(endpoint)
    if task is None:
        return jsonify({"success": False, "error": f"Unknown endpoint '{endpoint}'"}), 404

    data = request.get_json(silent=True)
    if not data:
        return jsonify({"success": False, "error": "Invalid request: No JSON body found"}), 400

    try:
        if endpoint == 'pest-outbreak':
            payload = DiseaseRequest.from_mapping(data, detection_type='pest_outbreak')
        else:
            payload = coerce_request(task, data)
    except InvalidInput as e:
        log.info(f"Rejected {endpoint} request: {e}")
        return jsonify({"success": False, "error": f"Invalid request: {e}", "field": e.field}), 400

    log.info(f"Received {endpoint} request")
    try:
        result = get_orchestrator().run(task, payload)
    except Exception as e:
        log.exception(f"Unexpected error during {endpoint}: {e}")
        return jsonify({"success": False, "error": "An unexpected internal server error occurred."}), 500

    return jsonify({"success": True, "data": result.to_dict()}), 200


@ai_bp.route('/health', methods=['GET'])
def health():
    """Reports which model provider is configured; no model is called."""
    orchestrator = get_orchestrator()
    client = orchestrator.client
    return jsonify({
        "success": True,
        "data": {
            "provider": current_app.config.get('MODEL_PROVIDER'),
            "modelConfigured": client is not None,
            "client": getattr(client, 'name', None),
            "models": {task.value: model for task, model in orchestrator.selector.table.items()},
            "fallbackEngine": True,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }), 200
