"""
Lead Models

FLOW OVERVIEW
- Referral: shopper asked to be connected to a sign professional.
- B2BInquiry: sign-company owner interested in training/sales tooling.
- Partner: sign professionals referrals are routed to.
- SignExpertsReferral: hand-off offered to the SignExperts directory.
- QuoteSubmission: completed quote wizard, mirrored to the quote webhook.

Admin edits go through `EDITABLE_FIELDS` so arbitrary columns cannot be written.
"""

from datetime import datetime
from .database import db
from .utils import generate_uuid, isoformat


class Referral(db.Model):
    __tablename__ = 'referrals'

    STATUSES = ('new', 'contacted', 'converted', 'closed')
    EDITABLE_FIELDS = ('status', 'notes', 'partner_id', 'preferred_contact', 'best_time_to_call')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'))
    partner_id = db.Column(db.String(36), db.ForeignKey('partners.id'))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(20))
    location_city = db.Column(db.String(100))
    location_state = db.Column(db.String(50))
    project_type = db.Column(db.String(100))
    timeline = db.Column(db.String(100))
    timezone = db.Column(db.String(50))
    preferred_contact = db.Column(db.String(20))
    best_time_to_call = db.Column(db.String(50))
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), default='new')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'conversation_id': self.conversation_id,
            'partner_id': self.partner_id,
            'email': self.email,
            'phone': self.phone,
            'location_city': self.location_city,
            'location_state': self.location_state,
            'project_type': self.project_type,
            'timeline': self.timeline,
            'timezone': self.timezone,
            'preferred_contact': self.preferred_contact,
            'best_time_to_call': self.best_time_to_call,
            'notes': self.notes,
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }


class B2BInquiry(db.Model):
    __tablename__ = 'b2b_inquiries'

    EDITABLE_FIELDS = ('status', 'notes', 'company_name', 'contact_info', 'goals', 'role', 'interest_type')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'))
    company_name = db.Column(db.String(200))
    contact_info = db.Column(db.String(255))
    role = db.Column(db.String(100))
    interest_type = db.Column(db.String(50))
    goals = db.Column(db.Text)
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), default='new')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'conversation_id': self.conversation_id,
            'company_name': self.company_name,
            'contact_info': self.contact_info,
            'role': self.role,
            'interest_type': self.interest_type,
            'goals': self.goals,
            'notes': self.notes,
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }


class Partner(db.Model):
    __tablename__ = 'partners'

    EDITABLE_FIELDS = ('company_name', 'contact_name', 'email', 'phone', 'location_city',
                       'location_state', 'services', 'notes', 'is_active')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    company_name = db.Column(db.String(200), nullable=False)
    contact_name = db.Column(db.String(100))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(20))
    location_city = db.Column(db.String(100))
    location_state = db.Column(db.String(50))
    services = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'company_name': self.company_name,
            'contact_name': self.contact_name,
            'email': self.email,
            'phone': self.phone,
            'location_city': self.location_city,
            'location_state': self.location_state,
            'services': list(self.services or []),
            'notes': self.notes,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
        }


class SignExpertsReferral(db.Model):
    __tablename__ = 'signexperts_referrals'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'))
    referral_type = db.Column(db.String(50), nullable=False)
    referral_context = db.Column(db.Text)
    user_response = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'conversation_id': self.conversation_id,
            'referral_type': self.referral_type,
            'referral_context': self.referral_context,
            'user_response': self.user_response,
            'created_at': isoformat(self.created_at),
        }


class QuoteSubmission(db.Model):
    """Completed quote wizard"""
    __tablename__ = 'quote_submissions'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20))
    indoor_outdoor = db.Column(db.String(10), nullable=False)
    lighting_profile_sku = db.Column(db.String(4), nullable=False)
    lighting_profile_name = db.Column(db.String(100))
    sign_type = db.Column(db.String(20), default='letters')
    sign_text = db.Column(db.String(200), nullable=False)
    letter_height_inches = db.Column(db.Float)
    quantity_range = db.Column(db.String(20))
    budget_range = db.Column(db.String(50))
    artwork_url = db.Column(db.String(500))
    notes = db.Column(db.Text)
    source = db.Column(db.String(50), default='sign-shop-guru')
    webhook_sent = db.Column(db.Boolean, default=False)
    webhook_sent_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def mark_webhook_sent(self):
        self.webhook_sent = True
        self.webhook_sent_at = datetime.utcnow()
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'indoor_outdoor': self.indoor_outdoor,
            'lighting_profile_sku': self.lighting_profile_sku,
            'lighting_profile_name': self.lighting_profile_name,
            'sign_type': self.sign_type,
            'sign_text': self.sign_text,
            'letter_height_inches': self.letter_height_inches,
            'quantity_range': self.quantity_range,
            'budget_range': self.budget_range,
            'artwork_url': self.artwork_url,
            'notes': self.notes,
            'source': self.source,
            'webhook_sent': self.webhook_sent,
            'webhook_sent_at': isoformat(self.webhook_sent_at),
            'created_at': isoformat(self.created_at),
        }
