"""
Lead Field Extraction

FLOW OVERVIEW
- extract_lead_fields(text) → LeadFields
  1) email: first address-shaped token.
  2) phone: US formats, normalized to digits with optional leading +1.
  3) location: "in/near/located in City, ST", bare "City, ST", or a US state name.
  4) timeline: urgency words → "ASAP", else relative/month expressions as written.
  5) project_type: first matching entry of the sign-type keyword table.
- detect_intent(text) → 'shopping' | 'professional' | None from keyword counts.
- LeadFields.merge_into(user) fills only the user's empty columns.

Patterns are intentionally conservative: a missed field costs nothing, a wrong
one pollutes the lead record.
"""

import re
import logging
from dataclasses import dataclass, asdict
from typing import Optional, Dict

logger = logging.getLogger(__name__)

US_STATES = {
    'alabama': 'AL', 'alaska': 'AK', 'arizona': 'AZ', 'arkansas': 'AR', 'california': 'CA',
    'colorado': 'CO', 'connecticut': 'CT', 'delaware': 'DE', 'florida': 'FL', 'georgia': 'GA',
    'hawaii': 'HI', 'idaho': 'ID', 'illinois': 'IL', 'indiana': 'IN', 'iowa': 'IA',
    'kansas': 'KS', 'kentucky': 'KY', 'louisiana': 'LA', 'maine': 'ME', 'maryland': 'MD',
    'massachusetts': 'MA', 'michigan': 'MI', 'minnesota': 'MN', 'mississippi': 'MS',
    'missouri': 'MO', 'montana': 'MT', 'nebraska': 'NE', 'nevada': 'NV', 'new hampshire': 'NH',
    'new jersey': 'NJ', 'new mexico': 'NM', 'new york': 'NY', 'north carolina': 'NC',
    'north dakota': 'ND', 'ohio': 'OH', 'oklahoma': 'OK', 'oregon': 'OR', 'pennsylvania': 'PA',
    'rhode island': 'RI', 'south carolina': 'SC', 'south dakota': 'SD', 'tennessee': 'TN',
    'texas': 'TX', 'utah': 'UT', 'vermont': 'VT', 'virginia': 'VA', 'washington': 'WA',
    'west virginia': 'WV', 'wisconsin': 'WI', 'wyoming': 'WY',
}
STATE_CODES = set(US_STATES.values()) | {'DC'}

EMAIL_RE = re.compile(r'[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}')

PHONE_RE = re.compile(
    r'(?<!\d)(?:\+?1[\s.-]?)?\(?(\d{3})\)?[\s.-]?(\d{3})[\s.-]?(\d{4})(?!\d)'
)

# "in Austin, TX" / "near St. Louis, MO" / "located in Fort Worth, Texas"
CITY_STATE_RE = re.compile(
    r'\b(?:(?:located|based)\s+in|in|near|around)\s+'
    r'([A-Z][a-zA-Z.\']+(?:\s+[A-Z][a-zA-Z.\']+){0,2}),\s*([A-Z]{2}|[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b'
)
BARE_CITY_STATE_RE = re.compile(
    r'\b([A-Z][a-zA-Z.\']+(?:\s+[A-Z][a-zA-Z.\']+){0,2}),\s*([A-Z]{2})\b'
)
STATE_NAME_RE = re.compile(
    r'\b(' + '|'.join(sorted((re.escape(s) for s in US_STATES), key=len, reverse=True)) + r')\b',
    re.IGNORECASE,
)

URGENT_RE = re.compile(r'\b(asap|urgent(?:ly)?|rush(?:\s+job)?|right away|immediately)\b', re.IGNORECASE)
WITHIN_RE = re.compile(
    r'\b(?:within|in|under)\s+(?:the\s+next\s+)?(\d{1,3}|a|one|two|three|four|six)\s+(days?|weeks?|months?)\b',
    re.IGNORECASE,
)
BY_MONTH_RE = re.compile(
    r'\b(?:by|before|in|for)\s+((?:early|mid|late)[\s-])?'
    r'(january|february|march|april|may|june|july|august|september|october|november|december)\b',
    re.IGNORECASE,
)
NEXT_PERIOD_RE = re.compile(r'\b(next|this)\s+(week|month|quarter|year|spring|summer|fall|winter)\b', re.IGNORECASE)

PROJECT_TYPES = [
    ('Channel Letters', ('channel letter', 'channel-letter')),
    ('Monument Sign', ('monument sign', 'monument')),
    ('Dimensional Letters', ('dimensional letter', 'flat cut', 'flat-cut', 'metal letters', 'lobby sign')),
    ('LED Neon', ('led neon', 'neon')),
    ('Pylon Sign', ('pylon', 'pole sign')),
    ('Cabinet / Lightbox', ('cabinet sign', 'lightbox', 'light box', 'box sign')),
    ('Wayfinding / ADA', ('wayfinding', 'ada sign', 'directional sign')),
    ('Vehicle Wrap', ('vehicle wrap', 'car wrap', 'truck wrap', 'fleet graphics')),
    ('Banner', ('banner',)),
    ('Awning', ('awning',)),
    ('Window Graphics', ('window graphic', 'window vinyl', 'window decal')),
]

SHOPPING_SIGNALS = ('quote', 'how much', 'cost', 'price', 'for my business', 'for my store',
                    'my restaurant', 'need a sign', 'want a sign', 'looking for a sign', 'buy')
PROFESSIONAL_SIGNALS = ('my shop', 'our shop', 'fabricat', 'install', 'my customer', 'our customer',
                        'bid', 'spec sheet', 'router', 'cnc', 'my crew', 'subcontract')


@dataclass
class LeadFields:
    """Lead details pulled from free text; None means not found"""
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    timeline: Optional[str] = None
    project_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)

    def found(self) -> Dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v}

    def merge_into(self, user) -> list:
        """Copy found fields onto empty user columns; returns changed names"""
        changed = []
        for field in ('phone', 'location', 'timeline', 'project_type'):
            value = getattr(self, field)
            if value and not getattr(user, field, None):
                setattr(user, field, value)
                changed.append(field)
        return changed


def extract_email(text: str) -> Optional[str]:
    match = EMAIL_RE.search(text or '')
    return match.group(0).lower() if match else None


def extract_phone(text: str) -> Optional[str]:
    # Drop emails first so digits inside them are not read as numbers
    match = PHONE_RE.search(EMAIL_RE.sub(' ', text or ''))
    if not match:
        return None
    area, exchange, line = match.groups()
    return f"({area}) {exchange}-{line}"


def _normalize_state(state: str) -> Optional[str]:
    if state.upper() in STATE_CODES and len(state) == 2:
        return state.upper()
    return US_STATES.get(state.lower())


def extract_location(text: str) -> Optional[str]:
    text = text or ''
    for pattern in (CITY_STATE_RE, BARE_CITY_STATE_RE):
        for match in pattern.finditer(text):
            city, state = match.group(1).strip(), match.group(2).strip()
            code = _normalize_state(state)
            if code:
                return f"{city}, {code}"
    match = STATE_NAME_RE.search(text)
    if match:
        return US_STATES[match.group(1).lower()]
    return None


def extract_timeline(text: str) -> Optional[str]:
    text = text or ''
    if URGENT_RE.search(text):
        return 'ASAP'
    match = WITHIN_RE.search(text)
    if match:
        amount, unit = match.group(1).lower(), match.group(2).lower()
        if amount in ('a', 'one'):
            amount = '1'
        return f"within {amount} {unit}"
    match = BY_MONTH_RE.search(text)
    if match:
        qualifier = (match.group(1) or '').strip(' -').lower()
        month = match.group(2).capitalize()
        return f"by {qualifier + ' ' if qualifier else ''}{month}"
    match = NEXT_PERIOD_RE.search(text)
    if match:
        return f"{match.group(1).lower()} {match.group(2).lower()}"
    return None


def extract_project_type(text: str) -> Optional[str]:
    lowered = (text or '').lower()
    for label, keywords in PROJECT_TYPES:
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


def extract_lead_fields(text: str) -> LeadFields:
    """Pull every lead field we can find from a message"""
    fields = LeadFields(
        email=extract_email(text),
        phone=extract_phone(text),
        location=extract_location(text),
        timeline=extract_timeline(text),
        project_type=extract_project_type(text),
    )
    if fields.found():
        logger.debug(f"Extracted lead fields: {sorted(fields.found())}")
    return fields


def detect_intent(text: str) -> Optional[str]:
    """Guess whether the writer is buying a sign or works in the trade"""
    lowered = (text or '').lower()
    shopping = sum(1 for s in SHOPPING_SIGNALS if s in lowered)
    professional = sum(1 for s in PROFESSIONAL_SIGNALS if s in lowered)
    if shopping == professional:
        return None
    return 'shopping' if shopping > professional else 'professional'
