"""
Tests for feedback, follow-up click tracking, knowledge notes and expert feedback.
"""

from signmaker.models import db, Feedback, FollowupClick, SuggestedFollowup, KnowledgeNote, ExpertKnowledge, Message


class TestFeedback:
    def test_rate_message(self, client, db_session, conversation_with_messages):
        answer = Message.query.filter_by(conversation_id=conversation_with_messages.id, role='assistant').one()

        resp = client.post('/api/feedback', json={'message_id': answer.id, 'rating': 'helpful', 'comment': 'Spot on'})
        assert resp.status_code == 201
        assert resp.get_json()['feedback']['rating'] == 'helpful'
        assert Feedback.query.filter_by(message_id=answer.id).count() == 1

    def test_invalid_rating(self, client, db_session, conversation_with_messages):
        answer = Message.query.filter_by(role='assistant').first()
        resp = client.post('/api/feedback', json={'message_id': answer.id, 'rating': 'meh'})
        assert resp.status_code == 400

    def test_unknown_message(self, client, db_session):
        resp = client.post('/api/feedback', json={'message_id': 'missing', 'rating': 'not_helpful'})
        assert resp.status_code == 404


class TestFollowupClicks:
    def test_click_increments_followup(self, client, db_session, sample_conversation):
        followup = SuggestedFollowup(category='lighting', followup_questions=['What about halo lit?'],
                                     variant_group='variant_b', click_count=2)
        db_session.add(followup)
        db_session.commit()

        resp = client.post('/api/track-followup-click', json={
            'followup_id': followup.id,
            'clicked_question': 'What about halo lit?',
            'conversation_id': sample_conversation.id,
            'variant_group': 'variant_b',
        })
        assert resp.status_code == 200
        assert db.session.get(SuggestedFollowup, followup.id).click_count == 3
        click = FollowupClick.query.one()
        assert click.variant_group == 'variant_b'
        assert click.followup_id == followup.id

    def test_click_without_followup_defaults_to_control(self, client, db_session):
        resp = client.post('/api/track-followup-click', json={'clicked_question': 'How are raceways mounted?'})
        assert resp.status_code == 200
        click = FollowupClick.query.one()
        assert click.variant_group == 'control'
        assert click.followup_id is None

    def test_question_required(self, client, db_session):
        resp = client.post('/api/track-followup-click', json={})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'clicked_question is required'


class TestNotes:
    def test_create_list_delete(self, client, db_session, sample_user):
        resp = client.post('/api/notes', json={
            'user_id': sample_user.id, 'content': 'Use 3/16" clear acrylic for faces', 'note_type': 'material',
        })
        assert resp.status_code == 201
        note_id = resp.get_json()['note']['id']

        resp = client.post('/api/notes', json={'user_id': sample_user.id, 'content': 'Default type'})
        assert resp.get_json()['note']['note_type'] == 'general'

        resp = client.get(f'/api/notes?user_id={sample_user.id}')
        assert resp.status_code == 200
        assert len(resp.get_json()['notes']) == 2

        resp = client.delete(f'/api/notes/{note_id}?user_id={sample_user.id}')
        assert resp.status_code == 200
        assert db.session.get(KnowledgeNote, note_id) is None

    def test_delete_requires_owner(self, client, db_session, sample_user, shopper_user):
        note = KnowledgeNote(user_id=sample_user.id, content='Mine')
        db_session.add(note)
        db_session.commit()

        resp = client.delete(f'/api/notes/{note.id}?user_id={shopper_user.id}')
        assert resp.status_code == 404
        assert db.session.get(KnowledgeNote, note.id) is not None

    def test_validation(self, client, db_session, sample_user):
        assert client.get('/api/notes').status_code == 400
        resp = client.post('/api/notes', json={'user_id': sample_user.id, 'content': ''})
        assert resp.status_code == 400
        resp = client.post('/api/notes', json={'user_id': sample_user.id, 'content': 'x', 'note_type': 'gossip'})
        assert resp.status_code == 400
        resp = client.post('/api/notes', json={'user_id': 'missing', 'content': 'x'})
        assert resp.status_code == 404


class TestExpertFeedback:
    def test_verify(self, client, db_session, sample_user):
        resp = client.post('/api/expert-feedback', json={
            'expert_id': sample_user.id,
            'company_id': 'company-1',
            'feedback_type': 'verify',
            'message_content': 'Halo lit letters need at least 1.5" standoffs.',
        })
        assert resp.status_code == 201
        knowledge = resp.get_json()['knowledge']
        assert knowledge['scope'] == 'company'
        assert knowledge['verified'] is True
        assert knowledge['knowledge_type'] == 'verification'
        assert knowledge['knowledge_text'] == 'Verified as accurate by expert'
        assert knowledge['topic'] == 'Halo lit letters need at least 1.5" standoffs.'

    def test_global_correction_is_unverified(self, client, db_session, sample_user):
        resp = client.post('/api/expert-feedback', json={
            'expert_id': sample_user.id,
            'feedback_type': 'correct',
            'message_content': 'Use 12V modules.',
            'feedback_text': 'Most channel letter modules run on 12V DC; 24V is also common.',
            'topic': 'LED module voltage',
            'suggest_global': True,
        })
        assert resp.status_code == 201
        entry = ExpertKnowledge.query.one()
        assert entry.scope == 'global'
        assert entry.verified is False
        assert entry.knowledge_type == 'correction'
        assert entry.topic == 'LED module voltage'

    def test_company_addition_is_verified(self, client, db_session, sample_user):
        resp = client.post('/api/expert-feedback', json={
            'expert_id': sample_user.id,
            'company_id': 'company-1',
            'feedback_type': 'add',
            'message_content': 'Raceways',
            'feedback_text': 'We paint raceways to match the wall.',
        })
        knowledge = resp.get_json()['knowledge']
        assert knowledge['knowledge_type'] == 'addition'
        assert knowledge['verified'] is True

    def test_company_scope_needs_company(self, client, db_session, sample_user):
        resp = client.post('/api/expert-feedback', json={
            'expert_id': sample_user.id,
            'feedback_type': 'verify',
            'message_content': 'Answer',
        })
        assert resp.status_code == 400

    def test_message_content_must_be_text(self, client, db_session, sample_user):
        resp = client.post('/api/expert-feedback', json={
            'expert_id': sample_user.id,
            'company_id': 'company-1',
            'feedback_type': 'verify',
            'message_content': 12345,
        })
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'message_content must be a string'
        assert ExpertKnowledge.query.count() == 0

    def test_correction_needs_text(self, client, db_session, sample_user):
        resp = client.post('/api/expert-feedback', json={
            'expert_id': sample_user.id,
            'company_id': 'company-1',
            'feedback_type': 'correct',
            'message_content': 'Answer',
        })
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'feedback_text is required'
