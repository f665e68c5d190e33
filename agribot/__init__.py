# File: agribot/__init__.py

from flask import Flask
import logging


def create_app(config_class='agribot.config.Config'):
    """Creates and configures the Flask application."""
    app = Flask(__name__)

    # Load configuration from config.py
    app.config.from_object(config_class)

    # Setup logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s')
    app.logger.info('AgriBot Backend starting up...')

    # Register Blueprints
    from .routes import chat_bp, ai_bp
    app.register_blueprint(chat_bp)
    app.register_blueprint(ai_bp)

    app.logger.info(f"Application setup complete. Model provider: {app.config.get('MODEL_PROVIDER')}")
    return app
