"""
Admin Routes

FLOW OVERVIEW
- /admin/auth [POST]
  • login: SHA-256 password check against ADMIN_PASSWORD_HASH, purge expired
    sessions, issue a 24h token → {success, sessionToken, expiresAt}.
  • validate: {sessionToken} → {valid}; touches last_accessed_at.
  • logout: deletes the session.
- /admin/data [POST] (X-Admin-Token)
  • {action, data} dispatched through ADMIN_ACTIONS; unknown action → 400,
    missing target row → 404.
- /admin/generate-insights [POST] (X-Admin-Token)
  • Build, store and email the weekly insights report.
"""

import re
from flask import Blueprint, jsonify, current_app
from ..models import (
    db, User, Conversation, Message, Feedback, Setting, B2BInquiry, Partner, Referral,
    SignExpertsReferral, SuggestedFollowup, FollowupClick, KnowledgeGap, Company,
    UserRole, ExpertKnowledge, AdminSession
)
from ..models.utils import apply_updates, isoformat
from ..utils.api_utils import parse_json_request, response_formatter
from ..utils.auth_utils import admin_required, verify_password, start_admin_session, end_admin_session
from ..utils.insights import generate_weekly_report, InsightsError

admin_bp = Blueprint('admin', __name__)

ADMIN_ACTIONS = {}


class RowNotFound(Exception):
    """Admin action targeted a row that does not exist"""


def admin_action(name):
    def register(handler):
        ADMIN_ACTIONS[name] = handler
        return handler
    return register


def _get(model, row_id):
    row = db.session.get(model, row_id) if row_id else None
    if row is None:
        raise RowNotFound(f"{model.__name__} not found")
    return row


def _rows(model, newest_first=True):
    query = model.query
    if hasattr(model, 'created_at'):
        order = model.created_at.desc() if newest_first else model.created_at.asc()
        query = query.order_by(order)
    return [row.to_dict() for row in query.all()]


def _ok(**extra):
    return dict(success=True, **extra)


def slugify(name):
    return re.sub(r'[^a-z0-9]+', '-', (name or '').lower()).strip('-')


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@admin_bp.route('/auth', methods=['POST'])
def admin_auth():
    data, error = parse_json_request()
    if error:
        return error

    action = data.get('action')

    if action == 'login':
        password = data.get('password')
        if not isinstance(password, str) or not password:
            return jsonify(response_formatter.format_error('Password required', 'MISSING_FIELD')), 400

        stored_hash = current_app.config.get('ADMIN_PASSWORD_HASH')
        if not stored_hash:
            current_app.logger.error("ADMIN_PASSWORD_HASH not configured")
            return jsonify(response_formatter.format_error(
                'Admin authentication not configured', 'NOT_CONFIGURED')), 500

        if not verify_password(password, stored_hash):
            current_app.logger.warning("Invalid admin password attempt")
            return jsonify(response_formatter.format_error('Invalid password', 'INVALID_PASSWORD')), 401

        session = start_admin_session(current_app.config.get('ADMIN_SESSION_HOURS', 24))
        current_app.logger.info("Admin login successful, session created")
        return jsonify({
            'success': True,
            'sessionToken': session.token,
            'expiresAt': isoformat(session.expires_at),
        })

    token = data.get('sessionToken')

    if action == 'validate':
        if not token or not isinstance(token, str):
            return jsonify({'valid': False})
        session = AdminSession.get_live(token)
        if session is None:
            return jsonify({'valid': False})
        session.touch()
        return jsonify({'valid': True})

    if action == 'logout':
        if token and isinstance(token, str):
            end_admin_session(token)
        return jsonify({'success': True})

    return jsonify(response_formatter.format_error('Invalid action', 'INVALID_ACTION')), 400


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

@admin_bp.route('/data', methods=['POST'])
@admin_required
def admin_data():
    body, error = parse_json_request()
    if error:
        return error

    handler = ADMIN_ACTIONS.get(body.get('action'))
    if handler is None:
        return jsonify(response_formatter.format_error('Invalid action', 'INVALID_ACTION')), 400

    data = body.get('data') or {}
    if not isinstance(data, dict):
        return jsonify(response_formatter.format_error('data must be an object', 'INVALID_DATA_TYPE')), 400

    try:
        result = handler(data)
    except RowNotFound as e:
        db.session.rollback()
        return jsonify(response_formatter.format_error(str(e), 'NOT_FOUND')), 404
    except ValueError as e:
        db.session.rollback()
        return jsonify(response_formatter.format_error(str(e))), 400
    except Exception:
        db.session.rollback()
        current_app.logger.error(f"Admin data error in {body.get('action')}", exc_info=True)
        return jsonify(response_formatter.format_server_error()), 500

    return jsonify(result)


@admin_action('fetchAll')
def fetch_all(data):
    return {
        'users': _rows(User),
        'conversations': _rows(Conversation),
        'messages': _rows(Message, newest_first=False),
        'feedback': _rows(Feedback),
        'settings': _rows(Setting),
        'b2b_inquiries': _rows(B2BInquiry),
        'partners': _rows(Partner),
        'referrals': _rows(Referral),
        'signexperts_referrals': _rows(SignExpertsReferral),
        'suggested_followups': _rows(SuggestedFollowup),
        'knowledge_gaps': _rows(KnowledgeGap),
    }


@admin_action('updateSetting')
def update_setting(data):
    setting = _get(Setting, data.get('id'))
    if not isinstance(data.get('setting_value'), str):
        raise ValueError('setting_value is required')
    setting.setting_value = data['setting_value']
    db.session.commit()
    return _ok()


@admin_action('updateUserContacted')
def update_user_contacted(data):
    user = _get(User, data.get('id'))
    user.contacted = bool(data.get('contacted'))
    db.session.commit()
    return _ok()


@admin_action('updateB2BInquiry')
def update_b2b_inquiry(data):
    inquiry = _get(B2BInquiry, data.get('id'))
    apply_updates(inquiry, data.get('updates') or {}, B2BInquiry.EDITABLE_FIELDS)
    db.session.commit()
    return _ok()


@admin_action('updateReferral')
def update_referral(data):
    referral = _get(Referral, data.get('id'))
    updates = data.get('updates') or {}
    if 'status' in updates and updates['status'] not in Referral.STATUSES:
        raise ValueError(f"status must be one of: {', '.join(Referral.STATUSES)}")
    apply_updates(referral, updates, Referral.EDITABLE_FIELDS)
    db.session.commit()
    return _ok()


@admin_action('togglePartner')
def toggle_partner(data):
    partner = _get(Partner, data.get('id'))
    partner.is_active = bool(data.get('is_active'))
    db.session.commit()
    return _ok()


@admin_action('addPartner')
def add_partner(data):
    if not (data.get('company_name') or '').strip():
        raise ValueError('company_name is required')
    partner = Partner(company_name=data['company_name'].strip())
    apply_updates(partner, {k: v for k, v in data.items() if k != 'company_name'}, Partner.EDITABLE_FIELDS)
    db.session.add(partner)
    db.session.commit()
    return _ok(partner=partner.to_dict())


@admin_action('toggleFollowup')
def toggle_followup(data):
    followup = _get(SuggestedFollowup, data.get('id'))
    followup.is_active = bool(data.get('is_active'))
    db.session.commit()
    return _ok()


@admin_action('updateFollowup')
def update_followup(data):
    followup = _get(SuggestedFollowup, data.get('id'))
    apply_updates(followup, data.get('updates') or {}, SuggestedFollowup.EDITABLE_FIELDS)
    db.session.commit()
    return _ok()


@admin_action('resolveKnowledgeGap')
def resolve_knowledge_gap(data):
    gap = _get(KnowledgeGap, data.get('id'))
    gap.resolved = True
    gap.resolution = data.get('resolution')
    db.session.commit()
    return _ok()


@admin_action('deleteKnowledgeGap')
def delete_knowledge_gap(data):
    db.session.delete(_get(KnowledgeGap, data.get('id')))
    db.session.commit()
    return _ok()


# Companies and roles

@admin_action('fetchCompanies')
def fetch_companies(data):
    return {'companies': _rows(Company)}


@admin_action('createCompany')
def create_company(data):
    name = (data.get('name') or '').strip()
    if not name:
        raise ValueError('Company name is required')
    slug = slugify(data.get('slug') or name)
    if Company.query.filter_by(slug=slug).first():
        raise ValueError(f"Company slug already in use: {slug}")

    company = Company(name=name, slug=slug)
    apply_updates(company, {k: v for k, v in data.items() if k not in ('name', 'slug')}, Company.EDITABLE_FIELDS)
    db.session.add(company)
    db.session.commit()
    return _ok(company=company.to_dict())


@admin_action('updateCompany')
def update_company(data):
    company = _get(Company, data.get('id'))
    updates = dict(data.get('updates') or {})
    if 'slug' in updates:
        updates['slug'] = slugify(updates['slug'])
        clash = Company.query.filter(Company.slug == updates['slug'], Company.id != company.id).first()
        if clash:
            raise ValueError(f"Company slug already in use: {updates['slug']}")
    apply_updates(company, updates, Company.EDITABLE_FIELDS)
    db.session.commit()
    return _ok(company=company.to_dict())


@admin_action('deleteCompany')
def delete_company(data):
    company = _get(Company, data.get('id'))
    UserRole.query.filter_by(company_id=company.id).delete()
    User.query.filter_by(company_id=company.id).update({'company_id': None})
    db.session.delete(company)
    db.session.commit()
    return _ok()


@admin_action('fetchUserRoles')
def fetch_user_roles(data):
    roles = []
    for role in UserRole.query.order_by(UserRole.created_at.desc()).all():
        item = role.to_dict()
        user = db.session.get(User, role.user_id)
        company = db.session.get(Company, role.company_id) if role.company_id else None
        item['user_email'] = user.email if user else None
        item['company_name'] = company.name if company else None
        roles.append(item)
    return {'roles': roles}


@admin_action('assignUserRole')
def assign_user_role(data):
    email = (data.get('user_email') or '').strip().lower()
    if not email:
        raise ValueError('User email is required')
    if data.get('role') not in UserRole.ROLES:
        raise ValueError(f"role must be one of: {', '.join(UserRole.ROLES)}")

    user = User.query.filter_by(email=email).first()
    if user is None:
        raise RowNotFound('User not found')
    company_id = data.get('company_id')
    if company_id:
        _get(Company, company_id)

    role = UserRole.query.filter_by(user_id=user.id, company_id=company_id, role=data['role']).first()
    if role is None:
        role = UserRole(user_id=user.id, company_id=company_id, role=data['role'])
        db.session.add(role)
    if company_id and not user.company_id:
        user.company_id = company_id
    db.session.commit()
    return _ok(role=role.to_dict())


@admin_action('removeUserRole')
def remove_user_role(data):
    db.session.delete(_get(UserRole, data.get('id')))
    db.session.commit()
    return _ok()


# Expert knowledge

@admin_action('fetchExpertKnowledge')
def fetch_expert_knowledge(data):
    query = ExpertKnowledge.query
    if data.get('scope') in ExpertKnowledge.SCOPES:
        query = query.filter_by(scope=data['scope'])
    if data.get('company_id'):
        query = query.filter_by(company_id=data['company_id'])
    rows = query.order_by(ExpertKnowledge.created_at.desc()).all()
    return {'knowledge': [k.to_dict() for k in rows]}


@admin_action('createGlobalKnowledge')
def create_global_knowledge(data):
    topic = (data.get('topic') or '').strip()
    text = (data.get('knowledge_text') or '').strip()
    if not topic or not text:
        raise ValueError('Topic and knowledge text are required')

    entry = ExpertKnowledge(
        scope='global',
        topic=topic[:200],
        knowledge_text=text,
        knowledge_type=data.get('knowledge_type') or 'addition',
        verified=True,
    )
    db.session.add(entry)
    db.session.commit()
    return _ok(knowledge=entry.to_dict())


@admin_action('approveKnowledge')
def approve_knowledge(data):
    entry = _get(ExpertKnowledge, data.get('id'))
    entry.verified = True
    db.session.commit()
    return _ok()


@admin_action('deleteKnowledge')
def delete_knowledge(data):
    db.session.delete(_get(ExpertKnowledge, data.get('id')))
    db.session.commit()
    return _ok()


# Follow-up A/B tests

@admin_action('getABTestResults')
def get_ab_test_results(data):
    """Per variant group: followups, impressions, clicks, recorded clicks and CTR"""
    results = {}
    for followup in SuggestedFollowup.query.all():
        group = results.setdefault(followup.variant_group or 'control', {
            'followups': 0, 'impressions': 0, 'clicks': 0, 'recorded_clicks': 0,
        })
        group['followups'] += 1
        group['impressions'] += followup.impression_count or 0
        group['clicks'] += followup.click_count or 0

    for click in FollowupClick.query.all():
        group = results.setdefault(click.variant_group or 'control', {
            'followups': 0, 'impressions': 0, 'clicks': 0, 'recorded_clicks': 0,
        })
        group['recorded_clicks'] += 1

    for group in results.values():
        impressions = group['impressions']
        group['click_through_rate'] = round(group['clicks'] / impressions * 100, 1) if impressions else 0.0

    return {'results': results}


@admin_action('createVariant')
def create_variant(data):
    original = _get(SuggestedFollowup, data.get('original_id'))
    questions = data.get('new_questions')
    if not isinstance(questions, list) or not [q for q in questions if isinstance(q, str) and q.strip()]:
        raise ValueError('new_questions must be a non-empty list')

    variant = SuggestedFollowup(
        category=original.category,
        trigger_keywords=list(original.trigger_keywords or []),
        followup_questions=[q.strip() for q in questions if isinstance(q, str) and q.strip()],
        variant_group=data.get('variant_name') or 'variant',
        is_active=True,
    )
    db.session.add(variant)
    db.session.commit()
    return _ok(followup=variant.to_dict())


@admin_action('deleteVariant')
def delete_variant(data):
    variant = _get(SuggestedFollowup, data.get('id'))
    if (variant.variant_group or 'control') == 'control':
        raise ValueError('Control followups cannot be deleted as variants')
    FollowupClick.query.filter_by(followup_id=variant.id).update({'followup_id': None})
    db.session.delete(variant)
    db.session.commit()
    return _ok()


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

@admin_bp.route('/generate-insights', methods=['POST'])
@admin_required
def generate_insights():
    try:
        result = generate_weekly_report()
        return jsonify(result.to_dict())
    except InsightsError as e:
        db.session.rollback()
        current_app.logger.error(f"Insights generation failed: {str(e)}")
        return jsonify(response_formatter.format_error(str(e), 'INSIGHTS_FAILED')), 502
    except Exception:
        db.session.rollback()
        current_app.logger.error("Error generating insights", exc_info=True)
        return jsonify(response_formatter.format_server_error('Failed to generate insights')), 500
