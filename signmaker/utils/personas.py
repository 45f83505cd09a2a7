"""
Persona Pattern Detection

FLOW OVERVIEW
- detect_patterns(messages) → PatternCounts
  • Join all user messages, lowercase, count how many keywords of each persona appear.
- choose_offer(counts, offers_shown, current_intent) → Offer | None
  • Shopper → owner → installer; a persona needs 2+ matches and must not have
    been offered yet. Users whose intent is already 'shopping' never get the
    shopper offer.
- dominant_persona(counts) → highest count ≥ 2 (ties resolve shopper, owner, installer).

Offers are only considered once the conversation has MIN_USER_MESSAGES user turns.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

MIN_USER_MESSAGES = 3
OFFER_THRESHOLD = 2
OFFER_SEPARATOR = "\n\n---\n"

SHOPPER_PATTERNS = [
    'how much', 'cost', 'price', 'pricing', 'expensive', 'budget', 'how long',
    'timeline', 'when can', 'find a', 'hire', 'recommend a', 'near me', 'in my area',
]
OWNER_PATTERNS = [
    'train', 'training', 'staff', 'team', 'employees', 'sales tool', 'customer education',
    'embed', 'white-label', 'api', 'integrate', 'business', 'pricing strategy', 'hiring',
    'operations', 'my company', 'my shop',
]
INSTALLER_PATTERNS = [
    'troubleshoot', 'fix', 'repair', 'not working', 'problem with', 'issue with', 'code',
    'compliance', 'permit', 'installation', 'mounting', 'wiring', 'electrical',
]

OFFER_TEXT = {
    'shopper': "💡 *It sounds like you might be looking to get a sign made. Would you like me "
               "to help connect you with a sign professional in your area?*",
    'owner': "💼 *It sounds like you might be a sign company owner. SignMaker.ai can be customized "
             "as a training tool for your team or a sales tool for your website. Would you like "
             "to learn more?*",
    'installer': "🔧 *If you're working on a project and need materials or components, I can "
                 "suggest suppliers in your area. Would that help?*",
}

PERSONA_ORDER = ('shopper', 'owner', 'installer')


@dataclass
class PatternCounts:
    shopper: int = 0
    owner: int = 0
    installer: int = 0

    def get(self, persona: str) -> int:
        return getattr(self, persona)

    def to_dict(self):
        return {'shopper': self.shopper, 'owner': self.owner, 'installer': self.installer}


@dataclass
class Offer:
    persona: str
    text: str

    def append_to(self, reply: str) -> str:
        return f"{reply}{OFFER_SEPARATOR}{self.text}"


def _count(text: str, patterns: Iterable[str]) -> int:
    return sum(1 for p in patterns if p in text)


def detect_patterns(messages: Iterable[str]) -> PatternCounts:
    text = ' '.join(m or '' for m in messages).lower()
    return PatternCounts(
        shopper=_count(text, SHOPPER_PATTERNS),
        owner=_count(text, OWNER_PATTERNS),
        installer=_count(text, INSTALLER_PATTERNS),
    )


def choose_offer(counts: PatternCounts, offers_shown: Iterable[str],
                 current_intent: Optional[str] = None) -> Optional[Offer]:
    shown = set(offers_shown or [])
    for persona in PERSONA_ORDER:
        if persona == 'shopper' and (current_intent or '') == 'shopping':
            continue
        if counts.get(persona) >= OFFER_THRESHOLD and persona not in shown:
            return Offer(persona=persona, text=OFFER_TEXT[persona])
    return None


def dominant_persona(counts: PatternCounts) -> Optional[str]:
    best = max(counts.get(p) for p in PERSONA_ORDER)
    if best < OFFER_THRESHOLD:
        return None
    for persona in PERSONA_ORDER:
        if counts.get(persona) == best:
            return persona
    return None
