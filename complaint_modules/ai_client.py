"""Groq chat-completion client used for AI letter generation.

Groq exposes an OpenAI-compatible ``/chat/completions`` endpoint, so this is a
plain ``requests`` POST with a bearer token. Every failure mode is reported as
``AIServiceError``; the generator treats that as a signal to use the template
letter instead.
"""
from typing import Optional

import requests

from complaint_modules import config
from complaint_modules.errors import AIServiceError

DEFAULT_URL = 'https://api.groq.com/openai/v1/chat/completions'
DEFAULT_MODEL = 'llama-3.3-70b-versatile'


class GroqClient:
    """One-shot chat completion against a single user message."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, url: str = DEFAULT_URL,
                 timeout: float = 30.0, temperature: float = 0.7, max_tokens: int = 2048):
        if not api_key:
            raise ValueError('api_key is required')
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_env(cls) -> Optional["GroqClient"]:
        """Build a client from environment settings.

        Returns None when ``GROQ_API_KEY`` is missing or still the placeholder,
        which puts the generator in template-only mode.
        """
        api_key = config.ai_api_key()
        if not api_key:
            return None
        return cls(
            api_key=api_key,
            model=config.env_str('GROQ_MODEL', DEFAULT_MODEL),
            url=config.env_str('GROQ_API_URL', DEFAULT_URL),
            timeout=config.env_float('AI_TIMEOUT', 30.0),
            temperature=config.env_float('AI_TEMPERATURE', 0.7),
            max_tokens=config.env_int('AI_MAX_TOKENS', 2048),
        )

    @property
    def provider_name(self) -> str:
        return f'Groq {self.model}'

    def complete(self, prompt: str) -> str:
        headers = {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json'
        }
        payload = {
            'model': self.model,
            'messages': [
                {'role': 'user', 'content': prompt}
            ],
            'temperature': self.temperature,
            'max_tokens': self.max_tokens,
        }
        try:
            r = requests.post(self.url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AIServiceError(f'Groq request failed: {e}') from e
        if r.status_code != 200:
            raise AIServiceError(f'Groq error {r.status_code}: {r.text[:200]}')
        try:
            data = r.json()
            content = data['choices'][0]['message']['content']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIServiceError(f'Malformed Groq response: {e}') from e
        if not isinstance(content, str):
            raise AIServiceError(f'Malformed Groq response: content is {type(content).__name__}')
        if not content.strip():
            raise AIServiceError('Empty response from Groq')
        return content
