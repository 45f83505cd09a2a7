"""
Token utilities using tiktoken and pricing.json

FLOW OVERVIEW
- load_pricing(): Load the JSON pricing table shipped in the signmaker package.
- count_tokens(text, model): Return token count using tiktoken for the given model.
- estimate_cost(token_count, model, is_output=False): Use pricing.json per-1k rates to estimate cost (USD).
- estimate_exchange_cents(prompt, reply, model): cost of one chat exchange in cents, for usage_stats.
"""

import json
import os
from typing import Dict

import tiktoken


_PRICING_CACHE: Dict[str, Dict[str, float]] = {}
DEFAULT_MODEL = 'gpt-4o'


def load_pricing() -> Dict[str, Dict[str, float]]:
    global _PRICING_CACHE
    if _PRICING_CACHE:
        return _PRICING_CACHE
    # pricing.json ships inside the signmaker package
    package_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    pricing_path = os.path.join(package_dir, 'pricing.json')
    with open(pricing_path, 'r', encoding='utf-8') as f:
        _PRICING_CACHE = json.load(f)
    return _PRICING_CACHE


def get_encoding_for_model(model: str):
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding('cl100k_base')


def count_tokens(text: str, model: str = DEFAULT_MODEL) -> int:
    if not text:
        return 0
    enc = get_encoding_for_model(model)
    return len(enc.encode(text))


def estimate_cost(token_count: int, model: str = DEFAULT_MODEL, is_output: bool = False) -> float:
    pricing = load_pricing()
    model_key = model if model in pricing else DEFAULT_MODEL
    per_1k = pricing[model_key]['output_per_1k' if is_output else 'input_per_1k']
    cost = (token_count / 1000.0) * float(per_1k)
    return round(cost, 6)


def estimate_exchange_cents(prompt: str, reply: str, model: str = DEFAULT_MODEL) -> float:
    """Estimated cost in cents of sending `prompt` and receiving `reply`"""
    dollars = (
        estimate_cost(count_tokens(prompt, model), model, is_output=False)
        + estimate_cost(count_tokens(reply, model), model, is_output=True)
    )
    return round(dollars * 100, 4)
