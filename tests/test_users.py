"""
Tests for intake, returning-visitor lookup, phone capture and conversation listing.
"""

from datetime import datetime, timedelta

from signmaker.models import db, User, Conversation, Message


def intake_payload(**overrides):
    payload = {
        'name': 'Pat Installer',
        'email': 'Pat@Example.com',
        'experience_level': '1-3',
        'intent': 'learning',
        'tos_accepted': True,
    }
    payload.update(overrides)
    return payload


class TestIntake:
    """Test /api/intake"""

    def test_new_user(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload())
        assert resp.status_code == 201
        data = resp.get_json()

        user = db.session.get(User, data['user_id'])
        assert user.email == 'pat@example.com'
        assert user.tos_accepted is True
        assert user.tier == 'free'
        conversation = db.session.get(Conversation, data['conversation_id'])
        assert conversation.user_id == user.id
        assert conversation.offers_shown == []

    def test_existing_email_reuses_user(self, client, db_session, sample_user):
        resp = client.post('/api/intake', json=intake_payload(email='dana@example.com'))
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['user_id'] == sample_user.id
        assert Conversation.query.filter_by(user_id=sample_user.id).count() == 1

    def test_terms_required(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(tos_accepted=False))
        assert resp.status_code == 400
        assert resp.get_json()['error_code'] == 'TOS_REQUIRED'

    def test_invalid_choices(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(experience_level='guru'))
        assert resp.status_code == 400
        assert 'experience_level must be one of' in resp.get_json()['error']

        resp = client.post('/api/intake', json=intake_payload(intent=None))
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'intent is required'

    def test_invalid_email(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(email='not-an-email'))
        assert resp.status_code == 400

    def test_name_required(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(name='  '))
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'name is required'

    def test_shopper_fields(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(
            intent='shopping', business_name="Main St Bakery", project_type='monument',
            timeline='asap', location='Austin, TX', phone='512-555-0142',
        ))
        assert resp.status_code == 201
        user = db.session.get(User, resp.get_json()['user_id'])
        assert user.business_name == 'Main St Bakery'
        assert user.project_type == 'monument'
        assert user.timeline == 'asap'
        assert user.phone == '512-555-0142'

    def test_shopper_fields_ignored_for_professionals(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(business_name='Ignored Co'))
        user = db.session.get(User, resp.get_json()['user_id'])
        assert user.business_name is None

    def test_shopper_invalid_timeline(self, client, db_session):
        resp = client.post('/api/intake', json=intake_payload(intent='shopping', timeline='someday'))
        assert resp.status_code == 400

    def test_non_json_body(self, client, db_session):
        resp = client.post('/api/intake', data='name=Pat', content_type='application/json')
        assert resp.status_code == 400
        assert resp.get_json()['error_code'] == 'INVALID_JSON'


class TestGetUserByEmail:
    def test_unknown(self, client, db_session):
        resp = client.post('/api/get-user-by-email', json={'email': 'nobody@example.com'})
        assert resp.status_code == 200
        assert resp.get_json() == {'user': None}

    def test_known_hides_phone(self, client, db_session, shopper_user):
        shopper_user.phone = '512-555-0142'
        db_session.commit()

        resp = client.post('/api/get-user-by-email', json={'email': ' SAM@example.com '})
        user = resp.get_json()['user']
        assert user['id'] == shopper_user.id
        assert user['intent'] == 'shopping'
        assert user['phone'] is True

    def test_email_required(self, client, db_session):
        resp = client.post('/api/get-user-by-email', json={})
        assert resp.status_code == 400


class TestUpdateUserPhone:
    def test_updates_owner_phone(self, client, db_session, sample_conversation, sample_user):
        resp = client.post('/api/update-user-phone', json={
            'user_id': sample_user.id,
            'phone': ' (512) 555-0142 ',
            'conversation_id': sample_conversation.id,
        })
        assert resp.status_code == 200
        assert resp.get_json() == {'success': True}
        assert db.session.get(User, sample_user.id).phone == '(512) 555-0142'

    def test_rejects_other_users_conversation(self, client, db_session, sample_conversation, shopper_user):
        resp = client.post('/api/update-user-phone', json={
            'user_id': shopper_user.id,
            'phone': '512-555-0142',
            'conversation_id': sample_conversation.id,
        })
        assert resp.status_code == 403
        assert resp.get_json()['error'] == 'Unauthorized'
        assert shopper_user.phone is None

    def test_validation(self, client, db_session, sample_conversation, sample_user):
        base = {'user_id': sample_user.id, 'phone': '512-555-0142', 'conversation_id': sample_conversation.id}

        for field, value, message in (
            ('user_id', '', 'Invalid user_id'),
            ('phone', '1' * 21, 'Invalid phone number'),
            ('conversation_id', 42, 'Invalid conversation_id'),
        ):
            resp = client.post('/api/update-user-phone', json=dict(base, **{field: value}))
            assert resp.status_code == 400
            assert resp.get_json()['error'] == message


class TestConversations:
    def test_newest_first(self, client, db_session, sample_user):
        older = Conversation(user_id=sample_user.id, created_at=datetime.utcnow() - timedelta(days=1))
        newer = Conversation(user_id=sample_user.id)
        db_session.add_all([older, newer])
        db_session.commit()

        resp = client.post('/api/get-conversations', json={'user_id': sample_user.id})
        assert resp.status_code == 200
        ids = [c['id'] for c in resp.get_json()['conversations']]
        assert ids == [newer.id, older.id]

    def test_unknown_user(self, client, db_session):
        resp = client.post('/api/get-conversations', json={'user_id': 'missing'})
        assert resp.status_code == 404

    def test_user_id_required(self, client, db_session):
        resp = client.post('/api/get-conversations', json={})
        assert resp.status_code == 400
        assert resp.get_json()['error_code'] == 'MISSING_FIELD'

    def test_messages_oldest_first(self, client, db_session, conversation_with_messages):
        resp = client.post('/api/conversation-messages',
                           json={'conversation_id': conversation_with_messages.id})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['conversation']['id'] == conversation_with_messages.id
        assert [m['role'] for m in data['messages']] == ['user', 'assistant']

    def test_messages_unknown_conversation(self, client, db_session):
        resp = client.post('/api/conversation-messages', json={'conversation_id': 'missing'})
        assert resp.status_code == 404
