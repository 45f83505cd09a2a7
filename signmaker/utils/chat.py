"""
Chat orchestration.

Coordinates prompt building, the outbound reply, persona offers, persistence
and usage accounting for `/api/chat`. The flow is:

1) Load the conversation (if any): offers already shown, prior user questions.
2) Build the contextual system prompt from the active `system_prompt` setting,
   the user's name/experience/intent and, for shoppers, buyer guidance.
3) Get the reply: POST to CHAT_WEBHOOK_URL when configured, otherwise ask the
   LLM client directly.
4) With 3+ user questions, detect persona patterns and append at most one
   not-yet-shown offer; record the dominant persona.
5) Persist both messages, offers_shown and detected_persona; merge lead fields
   found in the question into the user's empty columns; bump daily usage stats.
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ..models import db, Conversation, Message, Setting, UsageStat
from .llm_client import llm_client
from .lead_extraction import extract_lead_fields
from .personas import MIN_USER_MESSAGES, detect_patterns, choose_offer, dominant_persona
from .prom_metrics import observe_outbound_call
from .token_utils import estimate_exchange_cents

DEFAULT_SYSTEM_PROMPT = (
    'You are SignMaker.ai, a helpful assistant for the sign industry. You help with signage '
    'and fabrication questions including channel letters, monument signs, materials, LED '
    'lighting, pricing, and installation.'
)

SHOPPER_GUIDANCE = """

SPECIAL GUIDANCE FOR SIGN BUYERS:
This user is looking to purchase a sign, not a sign industry professional. Adapt your responses:
- Be helpful but guide toward getting a quote from a professional sign company
- Explain options in buyer-friendly terms, avoid fabricator jargon
- After answering technical questions, consider offering: "Would you like help understanding what to ask sign companies for this project?"
- Don't overwhelm with technical manufacturing details unless they specifically ask
- Focus on: what they'll get, realistic timeline expectations, and questions to ask vendors
- If discussing materials or options, explain the benefits from an end-user perspective"""

ADAPT_INSTRUCTION = (
    'Adapt your response based on their experience level and intent. For beginners, explain '
    'concepts more thoroughly. For veterans, be more technical and concise.'
)


class ChatError(Exception):
    """Reply could not be produced by the webhook or the LLM"""


@dataclass
class ChatResult:
    response: str
    detected_persona: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'response': self.response}


def build_system_prompt(user_context: Dict[str, Any]) -> str:
    base = Setting.get_active_value('system_prompt', DEFAULT_SYSTEM_PROMPT)
    context = user_context or {}
    guidance = SHOPPER_GUIDANCE if context.get('intent') == 'shopping' else ''
    return (
        f"{base}\n\n"
        f"USER CONTEXT:\n"
        f"Name: {context.get('name') or 'Unknown'}\n"
        f"Experience Level: {context.get('experience_level') or 'Unknown'}\n"
        f"Intent: {context.get('intent') or 'Unknown'}\n"
        f"{guidance}\n\n"
        f"{ADAPT_INSTRUCTION}"
    )


def _webhook_reply(payload: Any) -> Optional[str]:
    """Pull the reply text out of a webhook response body"""
    if isinstance(payload, list):
        payload = payload[0] if payload else {}
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        for key in ('response', 'output', 'text'):
            if isinstance(payload.get(key), str):
                return payload[key]
    return None


class ChatService:
    """Produce and persist one chat exchange."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def respond(self, question: str, user_context: Optional[Dict[str, Any]] = None,
                conversation_id: Optional[str] = None) -> ChatResult:
        user_context = dict(user_context or {})
        conversation = db.session.get(Conversation, conversation_id) if conversation_id else None
        if conversation_id and conversation is None:
            self.logger.warning(f"Chat for unknown conversation {conversation_id}; not persisting")

        if conversation is not None and conversation.user is not None:
            user = conversation.user
            user_context.setdefault('name', user.name)
            user_context.setdefault('experience_level', user.experience_level)
            user_context.setdefault('intent', user.intent)

        questions: List[str] = conversation.user_questions() if conversation else []
        questions.append(question)
        offers_shown = list(conversation.offers_shown or []) if conversation else []

        system_prompt = build_system_prompt(user_context)
        reply = self._get_reply(question, system_prompt, conversation_id, user_context)
        result = ChatResult(response=reply)

        if len(questions) >= MIN_USER_MESSAGES:
            counts = detect_patterns(questions)
            self.logger.info(f"Detected patterns: {counts.to_dict()}")
            offer = choose_offer(counts, offers_shown, user_context.get('intent'))
            if offer:
                result.response = offer.append_to(result.response)
                offers_shown.append(offer.persona)
                result.detected_persona = dominant_persona(counts)

        if conversation is not None:
            self._persist(conversation, question, result, offers_shown)

        self._record_usage(system_prompt + '\n' + question, result.response)
        return result

    def _get_reply(self, question, system_prompt, conversation_id, user_context) -> str:
        webhook_url = current_app.config.get('CHAT_WEBHOOK_URL')
        if webhook_url:
            return self._call_webhook(webhook_url, {
                'question': question,
                'system_prompt': system_prompt,
                'conversation_id': conversation_id,
                'user_context': user_context,
            })

        llm_result = llm_client.complete(system_prompt, question)
        if not llm_result.get('success'):
            raise ChatError(llm_result.get('error') or 'LLM request failed')
        return llm_result['content']

    def _call_webhook(self, url: str, payload: Dict[str, Any]) -> str:
        timeout = current_app.config.get('WEBHOOK_TIMEOUT', 30)
        started = time.time()
        try:
            response = requests.post(url, json=payload, timeout=timeout)
            response.raise_for_status()
            reply = _webhook_reply(response.json())
        except (requests.RequestException, ValueError) as e:
            observe_outbound_call('chat_webhook', time.time() - started, ok=False)
            self.logger.error(f"Chat webhook failed: {str(e)}")
            raise ChatError('Chat service unavailable') from e

        observe_outbound_call('chat_webhook', time.time() - started, ok=reply is not None)
        if reply is None:
            self.logger.error("Chat webhook returned no reply text")
            raise ChatError('Chat service returned an empty reply')
        return reply

    def _persist(self, conversation: Conversation, question: str, result: ChatResult, offers_shown):
        db.session.add(Message(conversation_id=conversation.id, role='user', content=question))
        db.session.add(Message(conversation_id=conversation.id, role='assistant', content=result.response))

        conversation.offers_shown = offers_shown
        if result.detected_persona:
            conversation.detected_persona = result.detected_persona

        user = conversation.user
        if user is not None:
            fields = extract_lead_fields(question)
            changed = fields.merge_into(user)
            if changed:
                self.logger.info(f"Captured lead fields {changed} for user {user.id}")

        db.session.commit()

    def _record_usage(self, prompt: str, reply: str):
        try:
            cents = estimate_exchange_cents(prompt, reply)
        except Exception as e:
            # tiktoken may be unable to load its encoding offline
            self.logger.warning(f"Token cost estimate unavailable: {str(e)}")
            cents = 0.0
        UsageStat.record_call(cost_cents=cents)


chat_service = ChatService()
