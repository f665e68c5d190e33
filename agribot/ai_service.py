# File: agribot/ai_service.py

import logging

import google.generativeai as genai
import requests

from .errors import ServiceUnavailable

log = logging.getLogger(__name__)


def call_ai_model(prompt, model_name, api_key, max_tokens=500, timeout=None):
    """
    Calls the Google AI model with a single text prompt.

    Returns:
        dict: {'text', 'input_tokens', 'output_tokens'} on success,
              {'error': message} on any failure.
    """
    if not api_key:
        log.error(f"API Key is missing for model {model_name}.")
        return {"error": "AI service API key not configured."}
    if not model_name:
        log.error("AI Model name is missing.")
        return {"error": "AI service model name not configured."}
    if not isinstance(prompt, str) or not prompt.strip():
        log.error(f"Invalid prompt format type: {type(prompt)}")
        return {"error": "Invalid prompt format."}

    try:
        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(model_name)
        log.info(f"Calling AI model '{model_name}' (max tokens: {max_tokens})...")

        # --- Estimate Input Tokens ---
        input_token_count = 0
        try:
            input_token_count = model.count_tokens(prompt).total_tokens
            log.debug(f"Estimated Input tokens for '{model_name}': {input_token_count}")
        except Exception as count_err:
            log.warning(f"Could not estimate input tokens for '{model_name}': {count_err}")

        request_options = {'timeout': timeout} if timeout else None
        response = model.generate_content(
            [prompt],
            generation_config={'max_output_tokens': max_tokens},
            request_options=request_options,
        )

        generated_text = ""
        try:
            if hasattr(response, 'text'):
                generated_text = response.text
            elif hasattr(response, 'parts'):
                generated_text = "".join(part.text for part in response.parts if hasattr(part, 'text'))
            else:
                log.warning(f"AI response for '{model_name}' has unexpected structure: {response}")
                if hasattr(response, 'prompt_feedback') and response.prompt_feedback.block_reason:
                    reason = response.prompt_feedback.block_reason
                    log.error(f"AI response blocked. Reason: {reason}")
                    return {"error": f"AI response blocked due to: {reason}"}
        except Exception as resp_err:
            log.error(f"Error processing AI response for '{model_name}': {resp_err}", exc_info=True)
            return {"error": "Error processing AI response."}

        if not generated_text or not generated_text.strip():
            log.warning(f"AI response for '{model_name}' was empty or inaccessible.")
            return {"error": "AI response was empty."}

        output_token_count = 0
        try:
            output_token_count = model.count_tokens(generated_text).total_tokens
        except Exception as count_err:
            log.warning(f"Could not estimate output tokens for '{model_name}': {count_err}")

        log.info(f"AI model '{model_name}' call successful. Input Est: {input_token_count}, Output Est: {output_token_count}")
        return {
            'text': generated_text,
            'input_tokens': input_token_count,
            'output_tokens': output_token_count
        }

    except genai.types.generation_types.BlockedPromptException as bpe:
        log.error(f"AI Model call blocked prompt ({model_name}): {bpe}", exc_info=True)
        return {"error": "AI request blocked by safety filters."}
    except Exception as e:
        log.error(f"AI Model call error ({model_name}): {e}", exc_info=True)
        return {"error": "AI service encountered an unexpected error."}


class GeminiClient:
    """Text generation through Google's Gemini models."""

    name = 'gemini'

    def __init__(self, api_key, timeout=None):
        self.api_key = api_key
        self.timeout = timeout

    def generate(self, prompt, model, max_tokens):
        result = call_ai_model(prompt, model, self.api_key, max_tokens=max_tokens, timeout=self.timeout)
        if 'error' in result:
            raise ServiceUnavailable(result['error'])
        return result['text'].strip()


class HuggingFaceClient:
    """Text generation through the Hugging Face inference API."""

    name = 'huggingface'

    def __init__(self, api_key, base_url, timeout=30):
        self.api_key = api_key
        self.base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.timeout = timeout

    def generate(self, prompt, model, max_tokens, temperature=0.7):
        payload = {
            'inputs': prompt,
            'parameters': {
                'max_new_tokens': max_tokens,
                'temperature': temperature,
                'do_sample': True,
                'top_p': 0.9,
                'repetition_penalty': 1.1,
                'return_full_text': False,
            },
        }
        headers = {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json',
        }
        log.info(f"Calling Hugging Face model '{model}' (max tokens: {max_tokens})...")
        try:
            response = requests.post(self.base_url + model, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            log.error(f"Hugging Face API error ({model}): {e}", exc_info=True)
            raise ServiceUnavailable(f"Failed to generate text with '{model}': {e}") from e

        if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get('generated_text'):
            text = data[0]['generated_text']
        elif isinstance(data, dict) and data.get('generated_text'):
            text = data['generated_text']
        else:
            log.error(f"Unexpected response format from Hugging Face API: {str(data)[:200]}")
            raise ServiceUnavailable("Unexpected response format from Hugging Face API")

        text = text.strip()
        if not text:
            raise ServiceUnavailable("Hugging Face model returned empty text")
        return text


def build_client(config):
    """
    Builds the text generation client named by MODEL_PROVIDER.

    Args:
        config: Flask config mapping or a Config class.

    Returns:
        GeminiClient | HuggingFaceClient | None: None when the provider is
        disabled or its API key is not set.
    """
    get = config.get if hasattr(config, 'get') else lambda key, default=None: getattr(config, key, default)
    provider = str(get('MODEL_PROVIDER', 'gemini') or 'none').strip().lower()
    timeout = get('MODEL_TIMEOUT_SECONDS', 30)

    if provider == 'gemini':
        api_key = get('GOOGLE_API_KEY')
        if not api_key:
            log.warning("GOOGLE_API_KEY is not set; using the fallback engine only.")
            return None
        return GeminiClient(api_key, timeout=timeout)
    if provider == 'huggingface':
        api_key = get('HUGGINGFACE_API_KEY')
        if not api_key:
            log.warning("HUGGINGFACE_API_KEY is not set; using the fallback engine only.")
            return None
        return HuggingFaceClient(api_key, get('HUGGINGFACE_BASE_URL', 'https://api-inference.huggingface.co/models/'), timeout=timeout)
    if provider != 'none':
        log.warning(f"Unknown MODEL_PROVIDER '{provider}'; using the fallback engine only.")
    return None
