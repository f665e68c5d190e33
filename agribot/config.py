import os
from dotenv import load_dotenv

# Load environment variables from .env file located in the parent directory
basedir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
load_dotenv(os.path.join(basedir, '.env'))


class Config:
    """Base configuration variables."""

    # Which text-generation backend to use: 'gemini', 'huggingface' or 'none'
    MODEL_PROVIDER = os.environ.get('MODEL_PROVIDER', 'gemini').strip().lower()

    # API Keys from .env
    GOOGLE_API_KEY = os.environ.get('GOOGLE_API_KEY')
    HUGGINGFACE_API_KEY = os.environ.get('HUGGINGFACE_API_KEY')

    # Model Names from .env
    CHAT_MODEL_NAME = os.environ.get('CHAT_MODEL_NAME', 'gemini-1.5-flash')
    ANALYSIS_MODEL_NAME = os.environ.get('ANALYSIS_MODEL_NAME', 'gemini-1.5-flash')
    HUGGINGFACE_MODEL_NAME = os.environ.get('HUGGINGFACE_MODEL_NAME', 'ibm-granite/granite-3.3-8b-instruct')

    HUGGINGFACE_BASE_URL = os.environ.get('HUGGINGFACE_BASE_URL', 'https://api-inference.huggingface.co/models/')
    MODEL_TIMEOUT_SECONDS = float(os.environ.get('MODEL_TIMEOUT_SECONDS', '30'))


class TestingConfig(Config):
    """Configuration for tests: no external model is ever contacted."""

    TESTING = True
    MODEL_PROVIDER = 'none'
    GOOGLE_API_KEY = None
    HUGGINGFACE_API_KEY = None
