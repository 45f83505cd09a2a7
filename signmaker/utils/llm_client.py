"""
LLM client.

Used by the chat endpoint (when no chat webhook is configured) and by the
weekly insights report. The flow is:

1) Decide the path: real OpenAI call when not testing and OPEN_AI_API_KEYS is set,
   otherwise a stubbed completion so development and tests never leave the process.
2) Call OpenAI Chat Completions with one system + one user message.
3) Log request start/success/error as JSON lines (no prompt bodies, masked key).
4) Return a plain result dict: success, content, usage, provider, error.
"""

import time
import json
import random
import logging
from typing import Dict, Any, Optional
from flask import current_app


class LLMClient:
    """Thin wrapper around the OpenAI SDK."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _api_keys(self):
        keys_env = current_app.config.get('OPEN_AI_API_KEYS', '') or ''
        return [k.strip() for k in keys_env.split(',') if k.strip()]

    def complete(self, system_prompt: str, user_text: str, model: str = None,
                 temperature: float = 0.7, max_tokens: int = 1024) -> Dict[str, Any]:
        """
        Produce one assistant reply.

        Args:
            system_prompt: System instructions
            user_text: The user's message
            model: Model name (defaults to CHAT_MODEL)
            temperature: Sampling temperature
            max_tokens: Completion token cap

        Returns:
            Dictionary with success, content, usage and provider
        """
        model = model or current_app.config.get('CHAT_MODEL', 'gpt-4o')
        is_testing = bool(current_app.config.get('TESTING'))
        api_keys = self._api_keys()

        if not is_testing and api_keys:
            return self._call_openai(system_prompt, user_text, model, temperature, max_tokens, api_keys)

        self.logger.info(f"Using stub LLM response (testing or no OPEN_AI_API_KEYS). model={model}")
        preview = (user_text or '')[:50]
        return {
            'success': True,
            'content': f"Mock LLM response for: {preview}...",
            'usage': {
                'prompt_tokens': len((system_prompt or '').split()) + len((user_text or '').split()),
                'completion_tokens': 20,
            },
            'provider': 'stub',
            'model': model,
        }

    def _call_openai(self, system_prompt: str, user_text: str, model: str, temperature: float,
                     max_tokens: int, api_keys: list) -> Dict[str, Any]:
        """Call OpenAI Chat Completions with structured logging and error handling."""
        from openai import OpenAI

        api_key = random.choice(api_keys)
        masked_key = f"***{api_key[-4:]}" if len(api_key) >= 4 else "***"

        self.logger.info(
            json.dumps({
                'event': 'openai_request_start',
                'provider': 'openai',
                'model': model,
                'temperature': temperature,
                'text_len': len(user_text or ''),
                'api_key_last4': masked_key,
            })
        )

        try:
            client = OpenAI(api_key=api_key)
            started_at = time.time()
            completion = client.chat.completions.create(
                model=model,
                messages=[
                    {'role': 'system', 'content': system_prompt or ''},
                    {'role': 'user', 'content': user_text or ''},
                ],
                temperature=float(temperature) if temperature is not None else 0.7,
                max_tokens=max_tokens,
            )
            elapsed_ms = int((time.time() - started_at) * 1000)

            content = completion.choices[0].message.content if completion.choices else ''
            usage = getattr(completion, 'usage', None)
            usage_dict = {
                'prompt_tokens': getattr(usage, 'prompt_tokens', 0) or 0,
                'completion_tokens': getattr(usage, 'completion_tokens', 0) or 0,
            }

            self.logger.info(
                json.dumps({
                    'event': 'openai_request_success',
                    'provider': 'openai',
                    'model': model,
                    'elapsed_ms': elapsed_ms,
                    'api_key_last4': masked_key,
                    'usage': usage_dict,
                })
            )
            return {'success': True, 'content': content or '', 'usage': usage_dict,
                    'provider': 'openai', 'model': model}

        except Exception as e:
            err_text = str(e)
            status: Optional[int] = getattr(e, 'status_code', None) or getattr(e, 'status', None)

            self.logger.error(
                json.dumps({
                    'event': 'openai_request_error',
                    'provider': 'openai',
                    'model': model,
                    'status': status,
                    'error': err_text[:500],
                }),
                exc_info=True
            )
            if status == 401 or 'authentication' in err_text.lower():
                message = 'OpenAI authentication failed'
            elif status == 429 or 'rate limit' in err_text.lower():
                message = 'OpenAI rate limit exceeded'
            elif isinstance(status, int) and status >= 500:
                message = 'OpenAI service error'
            else:
                message = 'OpenAI request failed'

            return {'success': False, 'error': f"{message}: {err_text}", 'provider': 'openai'}


llm_client = LLMClient()
