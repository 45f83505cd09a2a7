"""
Tests for white-label branding resolution.
"""

from signmaker.models import Company, User
from signmaker.utils.branding import Branding, hex_to_hsl, resolve_branding, DEFAULT_COMPANY_NAME


class TestHexToHsl:
    def test_conversion(self):
        assert hex_to_hsl('#1e90ff') == '210 100% 56%'
        assert hex_to_hsl('ffffff') == '0 0% 100%'
        assert hex_to_hsl('#000000') == '0 0% 0%'

    def test_malformed(self):
        assert hex_to_hsl('red') is None
        assert hex_to_hsl('#12345') is None
        assert hex_to_hsl(None) is None


class TestBranding:
    def test_defaults(self):
        branding = Branding()
        assert branding.company_name == DEFAULT_COMPANY_NAME
        assert branding.support_email == 'ask@signmaker.ai'
        assert branding.css_variables() == {}

    def test_css_variables(self):
        branding = Branding(primary_color='#1e90ff', secondary_color='#ffffff')
        assert branding.css_variables() == {
            '--primary': '210 100% 56%',
            '--secondary': '0 0% 100%',
            '--accent': '0 0% 100%',
        }


def _company(db_session, slug, active=True, **fields):
    company = Company(name=f'{slug.title()} Signs', slug=slug, active=active, **fields)
    db_session.add(company)
    db_session.commit()
    return company


class TestResolveBranding:
    def test_no_match_uses_defaults(self, db_session):
        assert resolve_branding('unknown').company_name == DEFAULT_COMPANY_NAME

    def test_company_slug(self, db_session):
        _company(db_session, 'acme', primary_color='#1e90ff', support_email='help@acme.test')
        branding = resolve_branding('acme')
        assert branding.company_name == 'Acme Signs'
        assert branding.support_email == 'help@acme.test'
        assert branding.company_slug == 'acme'

    def test_inactive_company_ignored(self, db_session):
        _company(db_session, 'closed', active=False)
        assert resolve_branding('closed').company_name == DEFAULT_COMPANY_NAME

    def test_user_company_overrides_slug(self, db_session, sample_user):
        _company(db_session, 'acme')
        mine = _company(db_session, 'beacon')
        sample_user.company_id = mine.id
        db_session.commit()

        branding = resolve_branding('acme', 'DANA@example.com')
        assert branding.company_slug == 'beacon'

    def test_branding_endpoint(self, client, db_session):
        _company(db_session, 'acme', primary_color='#1e90ff')
        resp = client.get('/api/branding?company=acme')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['company_name'] == 'Acme Signs'
        assert data['css_variables']['--primary'] == '210 100% 56%'
