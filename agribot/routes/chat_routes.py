# File: agribot/routes/chat_routes.py

from flask import request, jsonify
import logging
from . import chat_bp, get_orchestrator
from ..errors import InvalidInput
from ..model_selector import TaskCategory
from ..schemas import ChatRequest

log = logging.getLogger(__name__)


@chat_bp.route('/', methods=['POST'])
def handle_chat():
    """Handles incoming chat messages."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"success": False, "error": "Invalid request: No JSON body found"}), 400

    try:
        chat_request = ChatRequest.from_mapping(data)
    except InvalidInput as e:
        log.info(f"Rejected chat request: {e}")
        return jsonify({"success": False, "error": f"Invalid request: {e}"}), 400

    try:
        result = get_orchestrator().run(TaskCategory.CHAT, chat_request)
    except Exception as e:
        log.exception(f"Unexpected error during chat: {e}")
        return jsonify({"success": False, "error": "An unexpected internal server error occurred."}), 500

    return jsonify({"success": True, "data": result.to_dict()}), 200
