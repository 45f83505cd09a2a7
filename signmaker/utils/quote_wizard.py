"""
Quote Wizard Rules

FLOW OVERVIEW
- Five steps: 1 artwork, 2 environment + lighting, 3 sign details, 4 budget, 5 contact.
- LIGHTING_PROFILES: 16 profiles keyed by a 4-bit SKU (face, side-front, side-back, halo).
- QuoteForm.select_environment(env): indoor → 1000 Face Lit, outdoor → 0001 Halo Lit.
- QuoteForm.select_profile(sku): pick any profile from the table.
- validate_step(step, form) → list of error strings; can_advance() is the empty check.
- validate_all(form) → {step: errors} for every failing step (submission gate).
- build_payload(form) → trimmed dict ready for quote_submissions and the webhook.
- check_artwork(filename, size_bytes) → ValidationResult for uploads.
"""

import os
import re
from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Any
from .validators import ValidationResult

STEPS = (1, 2, 3, 4, 5)
SOURCE = 'sign-shop-guru'

ENVIRONMENTS = ('indoor', 'outdoor')
ENVIRONMENT_DEFAULT_SKU = {'indoor': '1000', 'outdoor': '0001'}

SIGN_TYPES = ('letters', 'logo')
HEIGHTS = [4, 6, 8, 10, 12, 18, 24]
QUANTITIES = ['1', '2', '3', '4', '5', '6-10', '11-20', '20+']
SIGN_TEXT_MAX = 200

BUDGETS = [
    {'range': '$150 – $300', 'badges': ['Flex LED Neon'],
     'sub': 'Entry-level illuminated signage on acrylic backer'},
    {'range': '$300 – $600', 'badges': ['Non-Lit Metal', 'Halo Lit'],
     'sub': 'Fabricated stainless steel or aluminum letters'},
    {'range': '$600 – $1,200', 'badges': ['Face Lit', 'Face + Halo', 'SS316 Coastal Grade'],
     'sub': 'All standard profiles, premium steel options'},
    {'range': '$1,200 – $2,500', 'badges': ['All Profiles', 'Brass', 'Copper', 'PVD Finishes'],
     'sub': 'Full material selection, specialty metals'},
    {'range': '$2,500+', 'badges': ['Large Format', 'Full Custom', 'All Materials'],
     'sub': 'Complex projects, oversized letters, full spec control'},
]
BUDGET_RANGES = [b['range'] for b in BUDGETS]

ARTWORK_EXTENSIONS = ('.pdf', '.ai', '.eps', '.jpg', '.jpeg', '.png')
ARTWORK_MAX_BYTES = 20 * 1024 * 1024

CONTACT_EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

SURFACES = ('face', 'side_front', 'side_back', 'halo')
SURFACE_LABELS = {'face': 'Face', 'side_front': 'Side Front', 'side_back': 'Side Back', 'halo': 'Halo'}

# Headline profiles keep their catalogue names and copy
FEATURED_PROFILES = {
    '0000': ('Non-Illuminated', 'No lighting. Clean metal finish.'),
    '0001': ('Halo Lit', 'Soft glow behind the letter. Halo effect.'),
    '0011': ('Side Back + Halo', 'Halo plus lit side returns.'),
    '1000': ('Face Lit', 'Bright face illumination. Maximum impact.'),
    '1100': ('Face + Side Front', 'Face lit with illuminated front sides.'),
    '1111': ('All Sides Lit', 'Every surface illuminated.'),
}


@dataclass(frozen=True)
class LightingProfile:
    sku: str
    name: str
    description: str
    face: bool
    side_front: bool
    side_back: bool
    halo: bool
    featured: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sku': self.sku,
            'name': self.name,
            'description': self.description,
            'face': self.face,
            'side_front': self.side_front,
            'side_back': self.side_back,
            'halo': self.halo,
            'featured': self.featured,
        }


def _build_profiles() -> Dict[str, LightingProfile]:
    profiles = {}
    for value in range(16):
        sku = format(value, '04b')
        lit = dict(zip(SURFACES, (bit == '1' for bit in sku)))
        if sku in FEATURED_PROFILES:
            name, description = FEATURED_PROFILES[sku]
        else:
            labels = [SURFACE_LABELS[s] for s in SURFACES if lit[s]]
            name = ' + '.join(labels) if len(labels) > 1 else f"{labels[0]} Lit"
            description = f"Illuminated surfaces: {', '.join(label.lower() for label in labels)}."
        profiles[sku] = LightingProfile(sku=sku, name=name, description=description,
                                        featured=sku in FEATURED_PROFILES, **lit)
    return profiles


LIGHTING_PROFILES = _build_profiles()


def profile_for(face=False, side_front=False, side_back=False, halo=False) -> LightingProfile:
    """Look up the profile for a combination of lit surfaces"""
    sku = ''.join('1' if flag else '0' for flag in (face, side_front, side_back, halo))
    return LIGHTING_PROFILES[sku]


@dataclass
class QuoteForm:
    """Wizard state as submitted by the client"""
    artwork_url: Optional[str] = None
    indoor_outdoor: str = ''
    lighting_profile_sku: str = ''
    lighting_profile_name: str = ''
    sign_type: str = 'letters'
    sign_text: str = ''
    letter_height_inches: Optional[float] = None
    quantity_range: str = ''
    budget_range: str = ''
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    phone: str = ''
    notes: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuoteForm':
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (data or {}).items():
            if key not in known or value is None:
                continue
            if key == 'letter_height_inches':
                if value == '':
                    continue
                try:
                    value = float(value)
                except (TypeError, ValueError):
                    # Unparseable heights fail the positive check in step 3
                    value = -1.0
            elif key != 'artwork_url':
                value = str(value)
            values[key] = value
        return cls(**values)

    def select_environment(self, environment: str) -> None:
        """Set the environment and reset the lighting profile to its default"""
        if environment not in ENVIRONMENTS:
            raise ValueError(f"Unknown environment: {environment}")
        self.indoor_outdoor = environment
        self.select_profile(ENVIRONMENT_DEFAULT_SKU[environment])

    def select_profile(self, sku: str) -> None:
        profile = LIGHTING_PROFILES.get(sku)
        if profile is None:
            raise ValueError(f"Unknown lighting profile: {sku}")
        self.lighting_profile_sku = profile.sku
        self.lighting_profile_name = profile.name


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_step(step: int, form: QuoteForm) -> List[str]:
    """Errors blocking the user from leaving `step`"""
    errors = []
    if step == 2:
        if form.indoor_outdoor not in ENVIRONMENTS:
            errors.append('Choose indoors or outdoors')
        if form.lighting_profile_sku not in LIGHTING_PROFILES:
            errors.append('Choose a lighting profile')
    elif step == 3:
        if form.sign_type not in SIGN_TYPES:
            errors.append('Choose letters or logo')
        if _blank(form.sign_text):
            errors.append('Sign text or description is required')
        elif len(form.sign_text.strip()) > SIGN_TEXT_MAX:
            errors.append(f'Sign text must be {SIGN_TEXT_MAX} characters or less')
        height = form.letter_height_inches
        if height is None:
            errors.append('Choose a letter height')
        elif height <= 0:
            errors.append('Custom height must be a positive number of inches')
        if form.quantity_range not in QUANTITIES:
            errors.append('Choose a quantity')
    elif step == 4:
        if form.budget_range not in BUDGET_RANGES:
            errors.append('Choose a budget range')
    elif step == 5:
        if _blank(form.first_name):
            errors.append('First name is required')
        if _blank(form.last_name):
            errors.append('Last name is required')
        if not CONTACT_EMAIL_RE.match((form.email or '').strip()):
            errors.append('A valid email is required')
    return errors


def can_advance(step: int, form: QuoteForm) -> bool:
    return not validate_step(step, form)


def validate_all(form: QuoteForm) -> Dict[int, List[str]]:
    failures = {}
    for step in STEPS:
        errors = validate_step(step, form)
        if errors:
            failures[step] = errors
    return failures


def build_payload(form: QuoteForm) -> Dict[str, Any]:
    """Trimmed submission payload"""
    return {
        'first_name': form.first_name.strip(),
        'last_name': form.last_name.strip(),
        'email': form.email.strip(),
        'phone': (form.phone or '').strip() or None,
        'indoor_outdoor': form.indoor_outdoor,
        'lighting_profile_sku': form.lighting_profile_sku,
        'lighting_profile_name': form.lighting_profile_name or LIGHTING_PROFILES[form.lighting_profile_sku].name,
        'sign_type': form.sign_type,
        'sign_text': form.sign_text.strip(),
        'letter_height_inches': form.letter_height_inches,
        'quantity_range': form.quantity_range,
        'budget_range': form.budget_range,
        'artwork_url': form.artwork_url,
        'notes': (form.notes or '').strip() or None,
        'source': SOURCE,
    }


def check_artwork(filename: str, size_bytes: int) -> ValidationResult:
    """Validate an artwork upload by extension and size"""
    if not filename:
        return ValidationResult(False, 'File name is required')
    ext = os.path.splitext(filename)[1].lower()
    if ext not in ARTWORK_EXTENSIONS:
        return ValidationResult(False, f"Unsupported file type. Allowed: {', '.join(ARTWORK_EXTENSIONS)}")
    if size_bytes is None or size_bytes <= 0:
        return ValidationResult(False, 'File is empty')
    if size_bytes > ARTWORK_MAX_BYTES:
        return ValidationResult(False, 'File too large. Max 20MB.')
    return ValidationResult(True, sanitized_value=filename)


def options() -> Dict[str, Any]:
    """Reference data the client renders the wizard from"""
    return {
        'steps': list(STEPS),
        'environments': list(ENVIRONMENTS),
        'environment_defaults': dict(ENVIRONMENT_DEFAULT_SKU),
        'lighting_profiles': [p.to_dict() for p in LIGHTING_PROFILES.values()],
        'sign_types': list(SIGN_TYPES),
        'heights': list(HEIGHTS),
        'quantities': list(QUANTITIES),
        'budgets': [dict(b) for b in BUDGETS],
        'sign_text_max': SIGN_TEXT_MAX,
        'artwork': {'extensions': list(ARTWORK_EXTENSIONS), 'max_bytes': ARTWORK_MAX_BYTES},
    }
