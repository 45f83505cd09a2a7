"""
White-label Branding

FLOW OVERVIEW
- hex_to_hsl('#1e90ff') → '210 100% 56%' (the CSS custom-property format).
- resolve_branding(company_slug, user_email)
  1) Start from DEFAULT_BRANDING.
  2) An active company matching the slug overrides it.
  3) A known user with an active company overrides the slug.
- Branding.css_variables(): --primary from primary_color, --secondary and
  --accent from secondary_color; unset or malformed colours are skipped.
"""

import colorsys
import math
import re
from dataclasses import dataclass
from typing import Dict, Optional

HEX_RE = re.compile(r'^#?([a-fA-F\d]{2})([a-fA-F\d]{2})([a-fA-F\d]{2})$')

DEFAULT_COMPANY_NAME = 'Sign Industry Consultant'
DEFAULT_SUPPORT_EMAIL = 'ask@signmaker.ai'


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hex_to_hsl(hex_color: Optional[str]) -> Optional[str]:
    """Convert '#rrggbb' to 'H S% L%', or None when malformed"""
    match = HEX_RE.match((hex_color or '').strip())
    if not match:
        return None
    r, g, b = (int(part, 16) / 255 for part in match.groups())
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return f"{_round_half_up(h * 360)} {_round_half_up(s * 100)}% {_round_half_up(l * 100)}%"


@dataclass
class Branding:
    company_name: str = DEFAULT_COMPANY_NAME
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    bot_avatar_url: Optional[str] = None
    support_email: str = DEFAULT_SUPPORT_EMAIL
    company_slug: Optional[str] = None

    @classmethod
    def from_company(cls, company) -> 'Branding':
        return cls(
            company_name=company.name or DEFAULT_COMPANY_NAME,
            logo_url=company.logo_url or None,
            primary_color=company.primary_color or None,
            secondary_color=company.secondary_color or None,
            bot_avatar_url=company.bot_avatar_url or None,
            support_email=company.support_email or DEFAULT_SUPPORT_EMAIL,
            company_slug=company.slug,
        )

    def css_variables(self) -> Dict[str, str]:
        variables = {}
        primary = hex_to_hsl(self.primary_color)
        if primary:
            variables['--primary'] = primary
        secondary = hex_to_hsl(self.secondary_color)
        if secondary:
            variables['--secondary'] = secondary
            variables['--accent'] = secondary
        return variables

    def to_dict(self):
        return {
            'company_name': self.company_name,
            'company_slug': self.company_slug,
            'logo_url': self.logo_url,
            'primary_color': self.primary_color,
            'secondary_color': self.secondary_color,
            'bot_avatar_url': self.bot_avatar_url,
            'support_email': self.support_email,
            'css_variables': self.css_variables(),
        }


def resolve_branding(company_slug: Optional[str] = None, user_email: Optional[str] = None) -> Branding:
    from ..models import Company, User

    branding = Branding()

    if company_slug:
        company = Company.get_active_by_slug(company_slug)
        if company:
            branding = Branding.from_company(company)

    if user_email:
        user = User.query.filter_by(email=user_email.strip().lower()).first()
        if user and user.company_id:
            company = Company.query.filter_by(id=user.company_id, active=True).first()
            if company:
                branding = Branding.from_company(company)

    return branding
