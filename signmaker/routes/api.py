"""
API Routes

FLOW OVERVIEW
- /api/intake [POST]
  • Validate the intake form, create (or reuse) the user, open a conversation.
- /api/get-user-by-email, /api/update-user-phone [POST]
  • Returning-visitor lookup (never exposes the phone number) and phone capture.
- /api/get-conversations, /api/conversation-messages [POST]
  • Conversation list (newest first) and a conversation's messages (oldest first).
- /api/user-context [POST]
  • get / save the user's active context items (free tier capped).
- /api/chat [POST]
  • Contextual prompt → webhook or LLM reply, persona offers, persistence.
- /api/send-transcript, /api/send-alert [POST]
  • Transcript email (at most once per conversation), de-duplicated team alerts.
- /api/search-images [POST]
  • Google CSE image search with a 7-day DB cache.
- /api/track-followup-click, /api/feedback [POST]
- /api/glossary [GET], /api/glossary/highlight, /api/glossary/track [POST]
- /api/notes [GET, POST, DELETE]
- /api/branding [GET], /api/expert-feedback [POST]
- /api/status [GET]
"""

import os
from flask import Blueprint, jsonify, request, current_app
from ..models import (
    db, User, Conversation, Message, Feedback, UserContext, Alert, KnowledgeNote,
    ExpertKnowledge, GlossaryTerm, GlossaryInteraction, SuggestedFollowup, FollowupClick
)
from ..utils.api_utils import parse_json_request, request_validator, response_formatter, get_client_ip
from ..utils.validators import validate_email, validate_phone, validate_text, validate_choice
from ..utils.chat import chat_service, ChatError
from ..utils.image_search import image_search, DEFAULT_COUNT
from ..utils.glossary import highlight_text
from ..utils.branding import resolve_branding
from ..utils.mailer import (
    send_email, transcript_subject, render_transcript,
    alert_subject, render_alert
)

api_bp = Blueprint('api', __name__)

ALERT_REPLY_TO = 'ask@signmaker.ai'


def _error(message, status_code=400, error_code='VALIDATION_ERROR', **extra):
    return jsonify(response_formatter.format_error(message, error_code, **extra)), status_code


def _server_error(action):
    """Roll back and return the generic 500 body; call from inside an except block"""
    db.session.rollback()
    current_app.logger.error(f"Error in {action}", exc_info=True)
    return jsonify(response_formatter.format_server_error()), 500


def _missing(data, *fields):
    ok, error = request_validator.validate_required(data, fields, get_client_ip())
    if ok:
        return None
    return jsonify(error), 400


@api_bp.route('/status')
def api_status():
    """API status endpoint"""
    return jsonify({
        'status': 'operational',
        'version': '1.0.0',
        'environment': os.getenv('FLASK_ENV', 'development')
    })


# ---------------------------------------------------------------------------
# Intake & users
# ---------------------------------------------------------------------------

@api_bp.route('/intake', methods=['POST'])
def intake():
    """
    Register a visitor from the intake form.

    Expects JSON payload with:
    - name, email, experience_level, intent (required)
    - tos_accepted: must be true
    - business_name, project_type, timeline, location, phone (shoppers only, optional)

    Returns:
    - 201 {"user_id", "conversation_id"} for a new user
    - 200 with the same shape when the email is already registered
    """
    data, error = parse_json_request()
    if error:
        return error

    name = validate_text(data.get('name'), 'name', max_length=100, required=True)
    if not name.is_valid:
        return _error(name.error_message)

    email = validate_email(data.get('email'))
    if not email.is_valid:
        return _error(email.error_message)

    for field, choices in (('experience_level', User.EXPERIENCE_LEVELS), ('intent', User.INTENTS)):
        result = validate_choice(data.get(field), field, choices)
        if not result.is_valid:
            return _error(result.error_message)

    if data.get('tos_accepted') is not True:
        return _error('You must accept the terms of service', error_code='TOS_REQUIRED')

    fields = {
        'experience_level': data['experience_level'],
        'intent': data['intent'],
        'tos_accepted': True,
    }

    if data['intent'] == 'shopping':
        business = validate_text(data.get('business_name'), 'business_name', max_length=200)
        location = validate_text(data.get('location'), 'location', max_length=200)
        phone = validate_phone(data.get('phone'))
        project_type = validate_choice(data.get('project_type'), 'project_type', User.PROJECT_TYPES, required=False)
        timeline = validate_choice(data.get('timeline'), 'timeline', User.TIMELINES, required=False)
        for result in (business, location, phone, project_type, timeline):
            if not result.is_valid:
                return _error(result.error_message)
        fields.update({
            'business_name': business.sanitized_value,
            'location': location.sanitized_value,
            'phone': phone.sanitized_value,
            'project_type': project_type.sanitized_value,
            'timeline': timeline.sanitized_value,
        })

    try:
        user = User.query.filter_by(email=email.sanitized_value).first()
        status_code = 200
        if user is None:
            user = User(name.sanitized_value, email.sanitized_value, **fields)
            db.session.add(user)
            db.session.flush()
            status_code = 201

        conversation = Conversation(user_id=user.id, offers_shown=[])
        db.session.add(conversation)
        db.session.commit()

        current_app.logger.info(f"Intake for user {user.id} (new={status_code == 201})")
        return jsonify({'user_id': user.id, 'conversation_id': conversation.id}), status_code
    except ValueError as e:
        db.session.rollback()
        return _error(str(e))
    except Exception:
        return _server_error('intake')


@api_bp.route('/get-user-by-email', methods=['POST'])
def get_user_by_email():
    """Look up a returning visitor; the phone number itself is never returned."""
    data, error = parse_json_request()
    if error:
        return error

    email = data.get('email')
    if not email or not isinstance(email, str):
        return _error('email is required', error_code='MISSING_FIELD')

    try:
        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None:
            return jsonify({'user': None})

        return jsonify({'user': {
            'id': user.id,
            'name': user.name,
            'experience_level': user.experience_level,
            'intent': user.intent,
            'phone': bool(user.phone),
        }})
    except Exception:
        return _server_error('get-user-by-email')


@api_bp.route('/update-user-phone', methods=['POST'])
def update_user_phone():
    data, error = parse_json_request()
    if error:
        return error

    user_id = data.get('user_id')
    phone = data.get('phone')
    conversation_id = data.get('conversation_id')

    if not user_id or not isinstance(user_id, str):
        return _error('Invalid user_id')
    if not phone or not isinstance(phone, str) or len(phone) > 20:
        return _error('Invalid phone number')
    if not conversation_id or not isinstance(conversation_id, str):
        return _error('Invalid conversation_id')

    try:
        owned = Conversation.query.filter_by(id=conversation_id, user_id=user_id).first()
        if owned is None:
            current_app.logger.warning(f"Phone update refused: {conversation_id} not owned by {user_id}")
            return _error('Unauthorized', 403, 'UNAUTHORIZED')

        owned.user.phone = phone.strip()[:20]
        db.session.commit()
        return jsonify({'success': True})
    except Exception:
        return _server_error('update-user-phone')


# ---------------------------------------------------------------------------
# Conversations & context
# ---------------------------------------------------------------------------

@api_bp.route('/get-conversations', methods=['POST'])
def get_conversations():
    data, error = parse_json_request()
    if error:
        return error

    missing = _missing(data, 'user_id')
    if missing:
        return missing

    try:
        if db.session.get(User, data['user_id']) is None:
            return _error('User not found', 404, 'NOT_FOUND')

        conversations = (Conversation.query
                         .filter_by(user_id=data['user_id'])
                         .order_by(Conversation.created_at.desc())
                         .all())
        return jsonify({'conversations': [
            {'id': c.id, 'created_at': c.created_at.isoformat()} for c in conversations
        ]})
    except Exception:
        return _server_error('get-conversations')


@api_bp.route('/conversation-messages', methods=['POST'])
def conversation_messages():
    data, error = parse_json_request()
    if error:
        return error

    missing = _missing(data, 'conversation_id')
    if missing:
        return missing

    conversation = db.session.get(Conversation, data['conversation_id'])
    if conversation is None:
        return _error('Conversation not found', 404, 'NOT_FOUND')

    return jsonify({
        'conversation': conversation.to_dict(),
        'messages': [m.to_dict() for m in conversation.messages],
    })


@api_bp.route('/user-context', methods=['POST'])
def user_context():
    """
    Read or replace a user's context items.

    action=get  → {"context": [...]}
    action=save → {"success": true, "items_saved": n}
    """
    data, error = parse_json_request()
    if error:
        return error

    user_id = data.get('user_id')
    if not user_id:
        return _error('user_id is required', error_code='MISSING_FIELD')

    try:
        user = db.session.get(User, user_id)
        if user is None:
            return _error('User not found', 404, 'NOT_FOUND')

        action = data.get('action')
        if action == 'get':
            return jsonify({'context': [item.to_dict() for item in UserContext.get_active(user_id)]})

        if action == 'save':
            items = data.get('context_items')
            if not isinstance(items, list):
                return _error('context_items array is required')
            if not all(isinstance(item, dict) and item.get('context_type') and item.get('context_key')
                       for item in items):
                return _error('Each context item needs context_type and context_key')

            limit = UserContext.FREE_TIER_LIMIT
            if (user.tier or 'free') == 'free' and len(items) > limit:
                return _error(f'Free users can add up to {limit} context items.', error_code='TIER_LIMIT')

            saved = UserContext.save_items(user_id, items)
            return jsonify({'success': True, 'items_saved': saved})

        return _error('Invalid action', error_code='INVALID_ACTION')
    except Exception:
        return _server_error('user-context')


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

@api_bp.route('/chat', methods=['POST'])
def chat():
    """
    Answer a sign-industry question.

    Expects JSON payload with:
    - question (required)
    - user_context: {name, experience_level, intent} (optional)
    - conversation_id (optional; enables persistence and persona offers)

    Returns:
    - {"response": "..."} on success
    - 502 when the chat webhook or LLM fails
    """
    data, error = parse_json_request()
    if error:
        return error

    question = validate_text(data.get('question'), 'question', max_length=4000, required=True)
    if not question.is_valid:
        return _error(question.error_message)

    context = data.get('user_context')
    if context is not None and not isinstance(context, dict):
        return _error('user_context must be an object')

    try:
        result = chat_service.respond(question.sanitized_value, context, data.get('conversation_id'))
        return jsonify(result.to_dict())
    except ChatError as e:
        db.session.rollback()
        current_app.logger.error(f"Chat reply failed: {str(e)}")
        return _error(str(e), 502, 'UPSTREAM_ERROR')
    except Exception:
        return _server_error('chat')


# ---------------------------------------------------------------------------
# Transcript & alerts
# ---------------------------------------------------------------------------

@api_bp.route('/send-transcript', methods=['POST'])
def send_transcript():
    data, error = parse_json_request()
    if error:
        return error

    conversation_id = data.get('conversation_id')
    user_email = data.get('user_email')
    if not conversation_id or not user_email:
        return _error('Missing required fields: conversation_id and user_email', error_code='MISSING_FIELD')

    email = validate_email(user_email)
    if not email.is_valid:
        return _error(email.error_message)

    try:
        conversation = db.session.get(Conversation, conversation_id)
        if conversation is None:
            return _error('Conversation not found', 404, 'NOT_FOUND')

        if conversation.transcript_emailed:
            return jsonify({'success': False, 'error': 'Transcript already sent', 'alreadySent': True})

        messages = list(conversation.messages)
        if not messages:
            return _error('No messages found', error_code='NO_MESSAGES')

        sent = send_email(
            'transcript',
            transcript_subject(messages),
            [email.sanitized_value],
            render_transcript(messages, user_name=data.get('user_name')),
            sender=current_app.config.get('TRANSCRIPT_SENDER'),
        )
        if not sent:
            return _error('Failed to send email', 500, 'EMAIL_FAILED')

        conversation.mark_transcript_sent()
        current_app.logger.info(f"Transcript sent for conversation {conversation_id}")
        return jsonify({'success': True})
    except Exception:
        return _server_error('send-transcript')


@api_bp.route('/send-alert', methods=['POST'])
def send_alert():
    data, error = parse_json_request()
    if error:
        return error

    alert_type = validate_choice(data.get('alert_type'), 'alert_type', Alert.TYPES)
    if not alert_type.is_valid:
        return _error(alert_type.error_message)

    subject = validate_text(data.get('subject'), 'subject', max_length=255, required=True)
    if not subject.is_valid:
        return _error(subject.error_message)

    details = data.get('details') or {}
    if not isinstance(details, dict):
        return _error('details must be an object')

    try:
        if Alert.sent_recently(alert_type.sanitized_value, subject.sanitized_value):
            current_app.logger.info(f"Skipping duplicate alert: {subject.sanitized_value}")
            return jsonify({'success': True, 'skipped': True, 'reason': 'duplicate_within_hour'})

        user_id = data.get('user_id')
        conversation_id = data.get('conversation_id')
        user = db.session.get(User, user_id) if user_id else None

        sent = send_email(
            'alert',
            alert_subject(alert_type.sanitized_value, subject.sanitized_value),
            [current_app.config['ALERT_RECIPIENT']],
            render_alert(alert_type.sanitized_value, subject.sanitized_value, details,
                         user=user, conversation_id=conversation_id),
            sender=current_app.config.get('ALERT_SENDER'),
            reply_to=ALERT_REPLY_TO,
        )
        if not sent:
            return _error('Failed to send alert', 500, 'EMAIL_FAILED')

        db.session.add(Alert(
            alert_type=alert_type.sanitized_value,
            subject=subject.sanitized_value,
            details=details,
            user_id=user.id if user else None,
            conversation_id=conversation_id,
        ))
        db.session.commit()
        return jsonify({'success': True, 'email_sent': True})
    except Exception:
        return _server_error('send-alert')


# ---------------------------------------------------------------------------
# Images, follow-ups, feedback
# ---------------------------------------------------------------------------

@api_bp.route('/search-images', methods=['POST'])
def search_images():
    data, error = parse_json_request()
    if error:
        return error

    query = data.get('query')
    if not query or not isinstance(query, str) or not query.strip():
        return _error('Query is required', error_code='MISSING_FIELD')

    count = data.get('count', DEFAULT_COUNT)
    if not isinstance(count, int) or isinstance(count, bool):
        return _error('count must be an integer')

    try:
        return jsonify(image_search.search(query, count).to_dict())
    except Exception:
        return _server_error('search-images')


@api_bp.route('/track-followup-click', methods=['POST'])
def track_followup_click():
    data, error = parse_json_request()
    if error:
        return error

    if not data.get('clicked_question'):
        return _error('clicked_question is required', error_code='MISSING_FIELD')

    try:
        followup_id = data.get('followup_id')
        followup = db.session.get(SuggestedFollowup, followup_id) if followup_id else None

        db.session.add(FollowupClick(
            followup_id=followup.id if followup else None,
            clicked_question=data['clicked_question'],
            user_id=data.get('user_id'),
            conversation_id=data.get('conversation_id'),
            variant_group=data.get('variant_group') or 'control',
        ))
        if followup is not None:
            followup.click_count = (followup.click_count or 0) + 1
        db.session.commit()
        return jsonify({'success': True})
    except Exception:
        return _server_error('track-followup-click')


@api_bp.route('/feedback', methods=['POST'])
def feedback():
    data, error = parse_json_request()
    if error:
        return error

    missing = _missing(data, 'message_id')
    if missing:
        return missing

    rating = validate_choice(data.get('rating'), 'rating', Feedback.RATINGS)
    if not rating.is_valid:
        return _error(rating.error_message)

    comment = validate_text(data.get('comment'), 'comment', max_length=2000)
    if not comment.is_valid:
        return _error(comment.error_message)

    try:
        if db.session.get(Message, data['message_id']) is None:
            return _error('Message not found', 404, 'NOT_FOUND')

        entry = Feedback(message_id=data['message_id'], rating=rating.sanitized_value,
                         comment=comment.sanitized_value)
        db.session.add(entry)
        db.session.commit()
        return jsonify({'success': True, 'feedback': entry.to_dict()}), 201
    except Exception:
        return _server_error('feedback')


# ---------------------------------------------------------------------------
# Glossary
# ---------------------------------------------------------------------------

@api_bp.route('/glossary', methods=['GET'])
def glossary():
    return jsonify({'terms': [t.to_dict() for t in GlossaryTerm.get_active()]})


@api_bp.route('/glossary/highlight', methods=['POST'])
def glossary_highlight():
    data, error = parse_json_request()
    if error:
        return error

    text = data.get('text')
    if not isinstance(text, str):
        return _error('text is required', error_code='MISSING_FIELD')

    return jsonify({'segments': highlight_text(text)})


@api_bp.route('/glossary/track', methods=['POST'])
def glossary_track():
    data, error = parse_json_request()
    if error:
        return error

    missing = _missing(data, 'term_id')
    if missing:
        return missing

    action = validate_choice(data.get('action'), 'action', GlossaryInteraction.ACTIONS)
    if not action.is_valid:
        return _error(action.error_message)

    try:
        if db.session.get(GlossaryTerm, data['term_id']) is None:
            return _error('Term not found', 404, 'NOT_FOUND')

        db.session.add(GlossaryInteraction(
            term_id=data['term_id'],
            action=action.sanitized_value,
            user_id=data.get('user_id'),
            conversation_id=data.get('conversation_id'),
        ))
        db.session.commit()
        return jsonify({'success': True})
    except Exception:
        return _server_error('glossary-track')


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

@api_bp.route('/notes', methods=['GET'])
def list_notes():
    user_id = request.args.get('user_id')
    if not user_id:
        return _error('user_id is required', error_code='MISSING_FIELD')
    return jsonify({'notes': [n.to_dict() for n in KnowledgeNote.for_user(user_id)]})


@api_bp.route('/notes', methods=['POST'])
def create_note():
    data, error = parse_json_request()
    if error:
        return error

    missing = _missing(data, 'user_id')
    if missing:
        return missing

    content = validate_text(data.get('content'), 'content', max_length=5000, required=True)
    if not content.is_valid:
        return _error(content.error_message)

    note_type = validate_choice(data.get('note_type') or 'general', 'note_type', KnowledgeNote.NOTE_TYPES)
    if not note_type.is_valid:
        return _error(note_type.error_message)

    try:
        if db.session.get(User, data['user_id']) is None:
            return _error('User not found', 404, 'NOT_FOUND')

        note = KnowledgeNote(
            user_id=data['user_id'],
            company_id=data.get('company_id'),
            content=content.sanitized_value,
            note_type=note_type.sanitized_value,
        )
        db.session.add(note)
        db.session.commit()
        return jsonify({'success': True, 'note': note.to_dict()}), 201
    except Exception:
        return _server_error('create-note')


@api_bp.route('/notes/<note_id>', methods=['DELETE'])
def delete_note(note_id):
    user_id = request.args.get('user_id')
    if not user_id:
        return _error('user_id is required', error_code='MISSING_FIELD')

    try:
        note = KnowledgeNote.query.filter_by(id=note_id, user_id=user_id).first()
        if note is None:
            return _error('Note not found', 404, 'NOT_FOUND')

        db.session.delete(note)
        db.session.commit()
        return jsonify({'success': True})
    except Exception:
        return _server_error('delete-note')


# ---------------------------------------------------------------------------
# Branding & expert knowledge
# ---------------------------------------------------------------------------

@api_bp.route('/branding', methods=['GET'])
def branding():
    branding = resolve_branding(request.args.get('company'), request.args.get('email'))
    return jsonify(branding.to_dict())


@api_bp.route('/expert-feedback', methods=['POST'])
def expert_feedback():
    """
    Save an expert's verdict on an assistant reply.

    feedback_type:
    - verify  → verified company knowledge ("Verified as accurate by expert")
    - correct → correction, add → addition; company-scoped and auto-verified,
      or global and unverified when suggest_global is true.
    """
    data, error = parse_json_request()
    if error:
        return error

    missing = _missing(data, 'expert_id', 'message_content')
    if missing:
        return missing

    feedback_type = validate_choice(data.get('feedback_type'), 'feedback_type', ('verify', 'correct', 'add'))
    if not feedback_type.is_valid:
        return _error(feedback_type.error_message)

    message = validate_text(data.get('message_content'), 'message_content', max_length=20000, required=True)
    if not message.is_valid:
        return _error(message.error_message)
    topic = validate_text(data.get('topic'), 'topic', max_length=200)
    if not topic.is_valid:
        return _error(topic.error_message)

    topic = topic.sanitized_value or message.sanitized_value[:100]
    suggest_global = bool(data.get('suggest_global'))

    if feedback_type.sanitized_value == 'verify':
        entry = ExpertKnowledge(
            scope='company',
            knowledge_text='Verified as accurate by expert',
            knowledge_type='verification',
            verified=True,
        )
    else:
        text = validate_text(data.get('feedback_text'), 'feedback_text', max_length=5000, required=True)
        if not text.is_valid:
            return _error(text.error_message)
        entry = ExpertKnowledge(
            scope='global' if suggest_global else 'company',
            knowledge_text=text.sanitized_value,
            knowledge_type='correction' if feedback_type.sanitized_value == 'correct' else 'addition',
            verified=not suggest_global,
        )

    entry.topic = topic[:200]
    entry.company_id = data.get('company_id')
    entry.expert_id = data['expert_id']

    if entry.scope == 'company' and not entry.company_id:
        return _error('company_id is required for company knowledge', error_code='MISSING_FIELD')

    try:
        db.session.add(entry)
        db.session.commit()
        current_app.logger.info(f"Expert {entry.expert_id} saved {entry.knowledge_type} ({entry.scope})")
        return jsonify({'success': True, 'knowledge': entry.to_dict()}), 201
    except Exception:
        return _server_error('expert-feedback')
