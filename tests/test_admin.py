"""
Tests for admin authentication and the /admin/data action dispatcher.
"""

from signmaker.models import (
    db, AdminSession, Setting, User, Partner, Referral, B2BInquiry, SuggestedFollowup,
    FollowupClick, KnowledgeGap, Company, UserRole, ExpertKnowledge
)


def admin_post(client, headers, action, data=None):
    return client.post('/admin/data', json={'action': action, 'data': data or {}}, headers=headers)


class TestAdminAuth:
    """Test /admin/auth login, validate and logout"""

    def test_login(self, client, db_session, admin_password):
        resp = client.post('/admin/auth', json={'action': 'login', 'password': admin_password})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['success'] is True
        assert len(data['sessionToken']) == 36
        assert AdminSession.query.filter_by(token=data['sessionToken']).count() == 1

    def test_wrong_password(self, client, db_session):
        resp = client.post('/admin/auth', json={'action': 'login', 'password': 'guess'})
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Invalid password'

    def test_password_required(self, client, db_session):
        resp = client.post('/admin/auth', json={'action': 'login'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Password required'

    def test_non_string_password_rejected(self, client, db_session):
        resp = client.post('/admin/auth', json={'action': 'login', 'password': 12345})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Password required'

    def test_not_configured(self, app, client, db_session, admin_password):
        app.config['ADMIN_PASSWORD_HASH'] = ''
        resp = client.post('/admin/auth', json={'action': 'login', 'password': admin_password})
        assert resp.status_code == 500

    def test_login_purges_expired_sessions(self, client, db_session, admin_password):
        stale = AdminSession(expires_in_hours=-1)
        db_session.add(stale)
        db_session.commit()
        stale_token = stale.token

        client.post('/admin/auth', json={'action': 'login', 'password': admin_password})
        assert AdminSession.query.filter_by(token=stale_token).count() == 0

    def test_validate_and_logout(self, client, db_session, admin_token):
        resp = client.post('/admin/auth', json={'action': 'validate', 'sessionToken': admin_token})
        assert resp.get_json() == {'valid': True}

        resp = client.post('/admin/auth', json={'action': 'logout', 'sessionToken': admin_token})
        assert resp.get_json() == {'success': True}

        resp = client.post('/admin/auth', json={'action': 'validate', 'sessionToken': admin_token})
        assert resp.get_json() == {'valid': False}

    def test_validate_expired(self, client, db_session):
        session = AdminSession(expires_in_hours=-1)
        db_session.add(session)
        db_session.commit()
        resp = client.post('/admin/auth', json={'action': 'validate', 'sessionToken': session.token})
        assert resp.get_json() == {'valid': False}

    def test_invalid_action(self, client, db_session):
        resp = client.post('/admin/auth', json={'action': 'reset'})
        assert resp.status_code == 400


class TestAdminDataAccess:
    def test_requires_token(self, client, db_session):
        resp = client.post('/admin/data', json={'action': 'fetchAll'})
        assert resp.status_code == 401

    def test_rejects_unknown_token(self, client, db_session):
        resp = admin_post(client, {'X-Admin-Token': 'x' * 36}, 'fetchAll')
        assert resp.status_code == 401

    def test_unknown_action(self, client, db_session, admin_headers):
        resp = admin_post(client, admin_headers, 'dropTables')
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid action'

    def test_data_must_be_object(self, client, db_session, admin_headers):
        resp = client.post('/admin/data', json={'action': 'fetchAll', 'data': [1]}, headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_row(self, client, db_session, admin_headers):
        resp = admin_post(client, admin_headers, 'updateUserContacted', {'id': 'missing', 'contacted': True})
        assert resp.status_code == 404


class TestAdminDataActions:
    def test_fetch_all(self, client, db_session, admin_headers, conversation_with_messages):
        resp = admin_post(client, admin_headers, 'fetchAll')
        assert resp.status_code == 200
        data = resp.get_json()
        for key in ('users', 'conversations', 'messages', 'feedback', 'settings', 'b2b_inquiries',
                    'partners', 'referrals', 'signexperts_referrals', 'suggested_followups', 'knowledge_gaps'):
            assert key in data
        assert len(data['users']) == 1
        assert [m['role'] for m in data['messages']] == ['user', 'assistant']

    def test_update_setting(self, client, db_session, admin_headers):
        setting = Setting(setting_name='system_prompt', setting_value='old')
        db_session.add(setting)
        db_session.commit()

        resp = admin_post(client, admin_headers, 'updateSetting', {'id': setting.id, 'setting_value': 'new'})
        assert resp.get_json() == {'success': True}
        assert Setting.get_active_value('system_prompt') == 'new'

    def test_update_user_contacted(self, client, db_session, admin_headers, sample_user):
        admin_post(client, admin_headers, 'updateUserContacted', {'id': sample_user.id, 'contacted': True})
        assert db.session.get(User, sample_user.id).contacted is True

    def test_update_b2b_inquiry_whitelist(self, client, db_session, admin_headers):
        inquiry = B2BInquiry(company_name='Beacon Signs')
        db_session.add(inquiry)
        db_session.commit()

        admin_post(client, admin_headers, 'updateB2BInquiry', {
            'id': inquiry.id, 'updates': {'status': 'contacted', 'id': 'hijack', 'notes': 'Called Monday'},
        })
        inquiry = db.session.get(B2BInquiry, inquiry.id)
        assert inquiry.status == 'contacted'
        assert inquiry.notes == 'Called Monday'

    def test_update_referral_status(self, client, db_session, admin_headers):
        referral = Referral(email='sam@example.com')
        db_session.add(referral)
        db_session.commit()

        resp = admin_post(client, admin_headers, 'updateReferral', {'id': referral.id, 'updates': {'status': 'lost'}})
        assert resp.status_code == 400

        resp = admin_post(client, admin_headers, 'updateReferral', {'id': referral.id, 'updates': {'status': 'converted'}})
        assert resp.status_code == 200
        assert db.session.get(Referral, referral.id).status == 'converted'

    def test_partners(self, client, db_session, admin_headers):
        resp = admin_post(client, admin_headers, 'addPartner', {'company_name': ' Lone Star Signs ', 'location_state': 'TX'})
        partner = resp.get_json()['partner']
        assert partner['company_name'] == 'Lone Star Signs'
        assert partner['location_state'] == 'TX'

        admin_post(client, admin_headers, 'togglePartner', {'id': partner['id'], 'is_active': False})
        assert db.session.get(Partner, partner['id']).is_active is False

        assert admin_post(client, admin_headers, 'addPartner', {}).status_code == 400

    def test_followups(self, client, db_session, admin_headers):
        followup = SuggestedFollowup(category='lighting', followup_questions=['Q1'])
        db_session.add(followup)
        db_session.commit()

        admin_post(client, admin_headers, 'toggleFollowup', {'id': followup.id, 'is_active': False})
        admin_post(client, admin_headers, 'updateFollowup', {'id': followup.id, 'updates': {'followup_questions': ['Q2']}})
        followup = db.session.get(SuggestedFollowup, followup.id)
        assert followup.is_active is False
        assert followup.followup_questions == ['Q2']

    def test_knowledge_gaps(self, client, db_session, admin_headers):
        gap = KnowledgeGap(question='How do I wire a transformer?')
        other = KnowledgeGap(question='Duplicate')
        db_session.add_all([gap, other])
        db_session.commit()

        admin_post(client, admin_headers, 'resolveKnowledgeGap', {'id': gap.id, 'resolution': 'Added to prompt'})
        gap = db.session.get(KnowledgeGap, gap.id)
        assert gap.resolved is True
        assert gap.resolution == 'Added to prompt'

        admin_post(client, admin_headers, 'deleteKnowledgeGap', {'id': other.id})
        assert db.session.get(KnowledgeGap, other.id) is None


class TestCompanyActions:
    def test_create_company(self, client, db_session, admin_headers):
        resp = admin_post(client, admin_headers, 'createCompany', {'name': 'Acme Sign Co.', 'primary_color': '#1e90ff'})
        company = resp.get_json()['company']
        assert company['slug'] == 'acme-sign-co'
        assert company['primary_color'] == '#1e90ff'

        resp = admin_post(client, admin_headers, 'createCompany', {'name': 'Acme Sign Co'})
        assert resp.status_code == 400

        resp = admin_post(client, admin_headers, 'fetchCompanies')
        assert len(resp.get_json()['companies']) == 1

    def test_update_company(self, client, db_session, admin_headers):
        company = Company(name='Acme', slug='acme')
        db_session.add(company)
        db_session.commit()

        resp = admin_post(client, admin_headers, 'updateCompany', {'id': company.id, 'updates': {'slug': 'Acme West'}})
        assert resp.get_json()['company']['slug'] == 'acme-west'

    def test_roles_and_delete(self, client, db_session, admin_headers, sample_user):
        company = Company(name='Acme', slug='acme')
        db_session.add(company)
        db_session.commit()

        resp = admin_post(client, admin_headers, 'assignUserRole', {
            'user_email': 'DANA@example.com', 'role': 'expert', 'company_id': company.id,
        })
        assert resp.status_code == 200
        assert db.session.get(User, sample_user.id).company_id == company.id

        roles = admin_post(client, admin_headers, 'fetchUserRoles').get_json()['roles']
        assert roles[0]['user_email'] == 'dana@example.com'
        assert roles[0]['company_name'] == 'Acme'

        admin_post(client, admin_headers, 'deleteCompany', {'id': company.id})
        assert UserRole.query.count() == 0
        assert db.session.get(User, sample_user.id).company_id is None

    def test_assign_role_validation(self, client, db_session, admin_headers, sample_user):
        resp = admin_post(client, admin_headers, 'assignUserRole', {'user_email': 'dana@example.com', 'role': 'owner'})
        assert resp.status_code == 400
        resp = admin_post(client, admin_headers, 'assignUserRole', {'user_email': 'ghost@example.com', 'role': 'member'})
        assert resp.status_code == 404

    def test_remove_role(self, client, db_session, admin_headers, sample_user):
        role = UserRole(user_id=sample_user.id, role='member')
        db_session.add(role)
        db_session.commit()
        admin_post(client, admin_headers, 'removeUserRole', {'id': role.id})
        assert UserRole.query.count() == 0


class TestExpertKnowledgeActions:
    def test_create_approve_delete(self, client, db_session, admin_headers):
        resp = admin_post(client, admin_headers, 'createGlobalKnowledge', {
            'topic': 'Halo standoffs', 'knowledge_text': 'Use 1.5" standoffs for even halo.',
        })
        knowledge = resp.get_json()['knowledge']
        assert knowledge['scope'] == 'global'
        assert knowledge['verified'] is True

        pending = ExpertKnowledge(scope='global', topic='Voltage', knowledge_text='12V', verified=False)
        db_session.add(pending)
        db_session.commit()

        admin_post(client, admin_headers, 'approveKnowledge', {'id': pending.id})
        assert db.session.get(ExpertKnowledge, pending.id).verified is True

        listed = admin_post(client, admin_headers, 'fetchExpertKnowledge', {'scope': 'global'}).get_json()['knowledge']
        assert len(listed) == 2

        admin_post(client, admin_headers, 'deleteKnowledge', {'id': pending.id})
        assert ExpertKnowledge.query.count() == 1

    def test_create_requires_topic_and_text(self, client, db_session, admin_headers):
        resp = admin_post(client, admin_headers, 'createGlobalKnowledge', {'topic': 'Only topic'})
        assert resp.status_code == 400


class TestABTestActions:
    def test_results_and_variants(self, client, db_session, admin_headers):
        control = SuggestedFollowup(category='lighting', trigger_keywords=['led'], followup_questions=['Q1'],
                                    variant_group='control', impression_count=10, click_count=2)
        db_session.add(control)
        db_session.commit()
        db_session.add(FollowupClick(followup_id=control.id, clicked_question='Q1', variant_group='control'))
        db_session.commit()

        resp = admin_post(client, admin_headers, 'createVariant', {
            'original_id': control.id, 'new_questions': ['Q1b', ' '], 'variant_name': 'variant_b',
        })
        variant = resp.get_json()['followup']
        assert variant['followup_questions'] == ['Q1b']
        assert variant['trigger_keywords'] == ['led']

        results = admin_post(client, admin_headers, 'getABTestResults').get_json()['results']
        assert results['control'] == {
            'followups': 1, 'impressions': 10, 'clicks': 2, 'recorded_clicks': 1, 'click_through_rate': 20.0,
        }
        assert results['variant_b']['click_through_rate'] == 0.0

        assert admin_post(client, admin_headers, 'deleteVariant', {'id': control.id}).status_code == 400
        assert admin_post(client, admin_headers, 'deleteVariant', {'id': variant['id']}).status_code == 200
        assert db.session.get(SuggestedFollowup, variant['id']) is None

    def test_variant_needs_questions(self, client, db_session, admin_headers):
        control = SuggestedFollowup(category='lighting', followup_questions=['Q1'])
        db_session.add(control)
        db_session.commit()
        resp = admin_post(client, admin_headers, 'createVariant', {'original_id': control.id, 'new_questions': []})
        assert resp.status_code == 400
