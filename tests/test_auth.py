"""
Tests for identity resolution
"""
from flask import g, session
from workstream.auth import Identity, current_identity, load_identity, sign_in_identity, sign_out_identity


def test_identity_from_claims():
    identity = Identity.from_claims({
        'sub': 'auth0|42', 'email': 'ada@example.com', 'name': 'Ada', 'picture': 'https://cdn.example.com/a.png'
    })

    assert identity.get_id() == 'auth0|42'
    assert identity.email == 'ada@example.com'
    assert identity.display_name == 'Ada'
    assert identity.picture_url == 'https://cdn.example.com/a.png'
    assert identity.is_authenticated


def test_claims_without_subject_are_rejected():
    assert Identity.from_claims({'email': 'ada@example.com'}) is None


def test_sign_in_and_out(app):
    with app.test_request_context('/'):
        try:
            identity = sign_in_identity({'sub': 'auth0|42', 'email': 'ada@example.com'})

            assert current_identity().subject_id == identity.subject_id
            assert session['identity_claims']['email'] == 'ada@example.com'

            sign_out_identity()

            assert current_identity() is None
            assert 'identity_claims' not in session
        finally:
            g.pop('_login_user', None)


def test_loader_requires_matching_session_claims(app):
    with app.test_request_context('/'):
        session['identity_claims'] = {'sub': 'auth0|42', 'email': 'ada@example.com'}

        assert load_identity('auth0|42').email == 'ada@example.com'
        assert load_identity('auth0|other') is None
