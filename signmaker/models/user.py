"""
User Models

FLOW OVERVIEW
- User: chat visitor captured by the intake form (profile + lead fields).
- Conversation: one chat session; tracks offers shown, persona and transcript state.
- Message: a single user/assistant turn in a conversation.
- Feedback: helpful / not_helpful rating on an assistant message.
- UserContext: per-user context items; save_items() replaces the active set.
"""

from datetime import datetime
from .database import db
from .utils import generate_uuid, isoformat


class User(db.Model):
    """Chat user created from the intake form"""
    __tablename__ = 'users'

    EXPERIENCE_LEVELS = ('new', '1-3', 'veteran')
    INTENTS = ('learning', 'active', 'training', 'shopping')
    PROJECT_TYPES = ('channel-letters', 'monument', 'dimensional', 'led-neon', 'other')
    TIMELINES = ('asap', '2-4-weeks', '1-2-months', 'researching')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    experience_level = db.Column(db.String(20))
    intent = db.Column(db.String(50))
    tos_accepted = db.Column(db.Boolean, default=False)
    business_name = db.Column(db.String(200))
    project_type = db.Column(db.String(100))
    timeline = db.Column(db.String(100))
    location = db.Column(db.String(200))
    phone = db.Column(db.String(20))
    tier = db.Column(db.String(20), default='free')
    company_id = db.Column(db.String(36), db.ForeignKey('companies.id'))
    contacted = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    conversations = db.relationship('Conversation', backref='user', lazy=True)

    def __init__(self, name, email, **fields):
        """Initialize a user after validating name and email"""
        from ..utils.validators import validate_email, sanitize_input

        email_validation = validate_email(email)
        if not email_validation.is_valid:
            raise ValueError(email_validation.error_message)

        name = sanitize_input(name, max_length=100)
        if not name:
            raise ValueError("Name is required")

        super().__init__(name=name, email=email_validation.sanitized_value, **fields)

    def __repr__(self):
        return f'<User {self.email}>'

    @property
    def is_shopper(self):
        return (self.intent or '').lower() == 'shopping'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'experience_level': self.experience_level,
            'intent': self.intent,
            'tos_accepted': self.tos_accepted,
            'business_name': self.business_name,
            'project_type': self.project_type,
            'timeline': self.timeline,
            'location': self.location,
            'phone': self.phone,
            'tier': self.tier,
            'company_id': self.company_id,
            'contacted': self.contacted,
            'created_at': isoformat(self.created_at),
        }


class Conversation(db.Model):
    """A chat session belonging to one user"""
    __tablename__ = 'conversations'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    offers_shown = db.Column(db.JSON, default=list)
    detected_persona = db.Column(db.String(20))
    shortcut_selected = db.Column(db.String(100))
    transcript_emailed = db.Column(db.Boolean, default=False)
    transcript_emailed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    messages = db.relationship('Message', backref='conversation', lazy=True,
                               order_by='Message.created_at')

    def __repr__(self):
        return f'<Conversation {self.id} user={self.user_id}>'

    def user_questions(self):
        """Contents of the user's messages, oldest first"""
        return [m.content for m in self.messages if m.role == 'user']

    def mark_transcript_sent(self):
        self.transcript_emailed = True
        self.transcript_emailed_at = datetime.utcnow()
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'offers_shown': list(self.offers_shown or []),
            'detected_persona': self.detected_persona,
            'shortcut_selected': self.shortcut_selected,
            'transcript_emailed': self.transcript_emailed,
            'transcript_emailed_at': isoformat(self.transcript_emailed_at),
            'created_at': isoformat(self.created_at),
        }


class Message(db.Model):
    """A single chat turn"""
    __tablename__ = 'messages'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # user, assistant
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'conversation_id': self.conversation_id,
            'role': self.role,
            'content': self.content,
            'created_at': isoformat(self.created_at),
        }


class Feedback(db.Model):
    """Helpfulness rating on an assistant message"""
    __tablename__ = 'feedback'

    RATINGS = ('helpful', 'not_helpful')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    message_id = db.Column(db.String(36), db.ForeignKey('messages.id'), nullable=False)
    rating = db.Column(db.String(20), nullable=False)
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'message_id': self.message_id,
            'rating': self.rating,
            'comment': self.comment,
            'created_at': isoformat(self.created_at),
        }


class UserContext(db.Model):
    """Context item the user asked the assistant to remember"""
    __tablename__ = 'user_context'

    FREE_TIER_LIMIT = 10

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    context_type = db.Column(db.String(50), nullable=False)
    context_key = db.Column(db.String(100), nullable=False)
    context_value = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'context_type', 'context_key', name='unique_user_context_key'),
    )

    def to_dict(self):
        return {
            'context_type': self.context_type,
            'context_key': self.context_key,
            'context_value': self.context_value,
        }

    @classmethod
    def get_active(cls, user_id):
        """Active context items for a user"""
        return cls.query.filter_by(user_id=user_id, is_active=True).order_by(cls.created_at).all()

    @classmethod
    def save_items(cls, user_id, items):
        """Replace the user's active context set.

        Every existing row is deactivated first, then each item is upserted on
        (user_id, context_type, context_key) and marked active.
        """
        cls.query.filter_by(user_id=user_id).update({'is_active': False})

        saved = 0
        for item in items:
            context_type = item.get('context_type')
            context_key = item.get('context_key')
            existing = cls.query.filter_by(
                user_id=user_id, context_type=context_type, context_key=context_key
            ).first()
            if existing:
                existing.context_value = item.get('context_value')
                existing.is_active = True
            else:
                db.session.add(cls(
                    user_id=user_id,
                    context_type=context_type,
                    context_key=context_key,
                    context_value=item.get('context_value'),
                    is_active=True,
                ))
            saved += 1

        db.session.commit()
        return saved
