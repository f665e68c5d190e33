# File: run.py

import os

from dotenv import load_dotenv

# .env must be loaded before the app reads MODEL_PROVIDER and the API keys
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))

from agribot import create_app  # noqa: E402

app = create_app(os.environ.get('AGRIBOT_CONFIG', 'agribot.config.Config'))

if __name__ == '__main__':
    app.run(
        host=os.environ.get('HOST', '0.0.0.0'),
        port=int(os.environ.get('PORT', '5000')),
        debug=os.environ.get('FLASK_DEBUG', '1') == '1',
    )
