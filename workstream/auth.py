"""
Identity resolution

Authentication happens at the identity provider. Its callback stores the
verified claims in the session through sign_in_identity(); every request
then resolves them back into an Identity for Flask-Login.
"""
from flask import session, jsonify
from flask_login import UserMixin, login_user, logout_user, current_user
from workstream import login_manager


class Identity(UserMixin):
    """The signed-in subject as asserted by the identity provider"""

    def __init__(self, subject_id, email=None, display_name=None, picture_url=None, claims=None):
        self.subject_id = subject_id
        self.email = email
        self.display_name = display_name
        self.picture_url = picture_url
        self.claims = dict(claims or {})

    def __repr__(self):
        return f'<Identity {self.subject_id}>'

    def get_id(self):
        return self.subject_id

    @classmethod
    def from_claims(cls, claims):
        """Build an identity from OIDC-style claims ('sub', 'email', 'name', 'picture')"""
        subject_id = claims.get('sub') or claims.get('subject_id')
        if not subject_id:
            return None
        return cls(
            subject_id=subject_id,
            email=claims.get('email'),
            display_name=claims.get('name'),
            picture_url=claims.get('picture'),
            claims=claims
        )


@login_manager.user_loader
def load_identity(subject_id):
    """Load the identity for Flask-Login from the session-held claims"""
    claims = session.get('identity_claims')
    if not claims or (claims.get('sub') or claims.get('subject_id')) != subject_id:
        return None
    return Identity.from_claims(claims)


@login_manager.unauthorized_handler
def unauthorized():
    """API callers get a JSON 401 instead of a redirect"""
    return jsonify({'error': 'Not authenticated', 'code': 'NotAuthenticated'}), 401


def sign_in_identity(claims):
    """Store verified identity claims in the session and log the subject in"""
    identity = Identity.from_claims(claims)
    if identity is None:
        return None
    session['identity_claims'] = dict(claims)
    login_user(identity)
    return identity


def sign_out_identity():
    session.pop('identity_claims', None)
    logout_user()


def current_identity():
    """The resolved identity for this request, or None when signed out"""
    if current_user and current_user.is_authenticated:
        return current_user._get_current_object()
    return None
