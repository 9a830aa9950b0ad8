"""
Tests for the HTTP API
"""
import pytest
from datetime import datetime, timedelta
from flask import g
from workstream.models.invitation import Invitation
from workstream.models.notification import Notification
from workstream.services import invitation_service


class TestInvitationRoutes:
    """Test suite for /invitations"""

    def test_send_requires_login(self, client):
        response = client.post('/invitations/', json={'email': 'new@example.com'})

        assert response.status_code == 401
        assert response.get_json()['code'] == 'NotAuthenticated'

    def test_send(self, client, owner_claims, owner_user, dispatcher):
        client.login(owner_claims)

        response = client.post('/invitations/', json={
            'email': 'new@example.com', 'role': 'viewer', 'message': 'Join us', 'project_id': None
        })

        assert response.status_code == 201
        data = response.get_json()
        invitation = Invitation.query.get(data['invitation_id'])
        assert invitation.role == 'viewer'
        assert invitation.message == 'Join us'
        assert 'token' not in data['invitation']

    def test_send_project_invitation(self, client, owner_claims, project, dispatcher):
        client.login(owner_claims)

        response = client.post('/invitations/', json={
            'email': 'new@example.com', 'type': 'project', 'project_id': project.id
        })

        assert response.status_code == 201
        assert response.get_json()['invitation']['project_id'] == project.id

    def test_send_validation_errors(self, client, owner_claims, owner_user):
        client.login(owner_claims)

        bad_email = client.post('/invitations/', json={'email': 'nope'})
        bad_role = client.post('/invitations/', json={'email': 'a@example.com', 'role': 'owner'})
        missing_project = client.post('/invitations/', json={'email': 'a@example.com', 'type': 'project'})

        assert bad_email.status_code == 400
        assert bad_email.get_json()['code'] == 'InvalidInput'
        assert bad_role.status_code == 400
        assert missing_project.status_code == 400

    def test_duplicate_send_conflicts(self, client, owner_claims, owner_user, dispatcher):
        client.login(owner_claims)
        client.post('/invitations/', json={'email': 'dup@example.com'})

        response = client.post('/invitations/', json={'email': 'dup@example.com'})

        assert response.status_code == 409
        assert response.get_json()['code'] == 'AlreadyExists'

    def test_public_token_lookup(self, client, owner_identity, owner_user, dispatcher):
        invitation = invitation_service.send_invitation(owner_identity, 'new@example.com')

        response = client.get(f'/invitations/token/{invitation.token}')
        missing = client.get('/invitations/token/does-not-exist')

        assert response.status_code == 200
        assert response.get_json()['invitation']['inviter_name'] == 'Olivia Owner'
        assert response.get_json()['invitation']['status'] == 'pending'
        assert missing.status_code == 404

    def test_accept_and_accept_again(self, client, owner_identity, owner_user, invitee_identity, dispatcher):
        invitation = invitation_service.send_invitation(owner_identity, 'invitee@example.com')
        client.login(invitee_identity.claims)

        first = client.post(f'/invitations/token/{invitation.token}/accept')
        second = client.post(f'/invitations/token/{invitation.token}/accept')

        assert first.status_code == 200
        assert first.get_json()['invitation']['status'] == 'accepted'
        assert second.status_code == 409
        assert second.get_json()['code'] == 'InvalidState'

    def test_accept_requires_login(self, client, owner_identity, owner_user, dispatcher):
        invitation = invitation_service.send_invitation(owner_identity, 'invitee@example.com')

        response = client.post(f'/invitations/token/{invitation.token}/accept')

        assert response.status_code == 401
        assert invitation.status == 'pending'

    def test_lapsed_accept_is_gone(self, client, owner_identity, owner_user, invitee_identity,
                                   dispatcher, db_session):
        invitation = invitation_service.send_invitation(owner_identity, 'invitee@example.com')
        invitation.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db_session.commit()
        client.login(invitee_identity.claims)

        response = client.post(f'/invitations/token/{invitation.token}/accept')

        assert response.status_code == 410
        assert response.get_json()['code'] == 'Expired'

    def test_public_decline(self, client, owner_identity, owner_user, dispatcher):
        invitation = invitation_service.send_invitation(owner_identity, 'invitee@example.com')

        response = client.post(f'/invitations/token/{invitation.token}/decline')

        assert response.status_code == 200
        assert invitation.status == 'declined'

    def test_cancel_and_resend(self, client, owner_claims, owner_identity, owner_user, dispatcher):
        first = invitation_service.send_invitation(owner_identity, 'one@example.com')
        second = invitation_service.send_invitation(owner_identity, 'two@example.com')
        client.login(owner_claims)

        cancelled = client.post(f'/invitations/{first.id}/cancel')
        resent = client.post(f'/invitations/{second.id}/resend')

        assert cancelled.status_code == 200
        assert cancelled.get_json()['invitation']['status'] == 'cancelled'
        assert resent.status_code == 201
        assert resent.get_json()['invitation_id'] != second.id

    def test_cancel_by_other_user_forbidden(self, client, owner_identity, owner_user, invitee_identity, dispatcher):
        invitation = invitation_service.send_invitation(owner_identity, 'one@example.com')
        client.login(invitee_identity.claims)

        response = client.post(f'/invitations/{invitation.id}/cancel')

        assert response.status_code == 403
        assert response.get_json()['code'] == 'NotAuthorized'

    def test_sent_list(self, client, owner_claims, owner_identity, owner_user, dispatcher):
        invitation_service.send_invitation(owner_identity, 'one@example.com')
        client.login(owner_claims)

        response = client.get('/invitations/sent')

        assert response.status_code == 200
        assert [i['email'] for i in response.get_json()['invitations']] == ['one@example.com']

    def test_project_list_forbidden_for_outsiders(self, client, project, invitee_identity):
        client.login(invitee_identity.claims)

        response = client.get(f'/invitations/project/{project.id}')

        assert response.status_code == 403


class TestNotificationRoutes:
    """Test suite for /notifications"""

    def test_unread_count_when_signed_out(self, client):
        response = client.get('/notifications/unread-count')

        assert response.status_code == 200
        assert response.get_json() == {'count': 0}

    def test_inviter_sees_accept_notification(self, client, owner_claims, owner_identity, owner_user,
                                              invitee_identity, dispatcher):
        invitation = invitation_service.send_invitation(owner_identity, 'invitee@example.com')
        invitation_service.accept_invitation(invitee_identity, invitation.token)
        client.login(owner_claims)

        listing = client.get('/notifications/')
        count = client.get('/notifications/unread-count')

        notifications = listing.get_json()['notifications']
        assert len(notifications) == 1
        assert notifications[0]['type'] == 'invitation_accepted'
        assert notifications[0]['read'] is False
        assert count.get_json() == {'count': 1}

        read = client.post(f"/notifications/{notifications[0]['id']}/read")
        assert read.get_json()['notification']['read'] is True

        deleted = client.delete(f"/notifications/{notifications[0]['id']}")
        assert deleted.status_code == 200
        assert Notification.query.count() == 0

    def test_read_all(self, client, owner_claims, owner_identity, owner_user, dispatcher):
        for email in ('a@example.com', 'b@example.com'):
            invitation = invitation_service.send_invitation(owner_identity, email)
            invitation_service.decline_invitation(invitation.token)
        client.login(owner_claims)

        response = client.post('/notifications/read-all')

        assert response.get_json()['updated'] == 2

    def test_settings_round_trip(self, client, owner_claims, owner_user):
        client.login(owner_claims)

        initial = client.get('/notifications/settings')
        updated = client.put('/notifications/settings', json={
            'digest_frequency': 'daily',
            'due_date_reminders': {'enabled': True, 'reminder_days': [1, 7]}
        })
        invalid = client.put('/notifications/settings', json={'digest_frequency': 'hourly'})

        assert initial.get_json()['settings']['digest_frequency'] == 'weekly'
        assert updated.status_code == 200
        assert updated.get_json()['settings']['due_date_reminders']['reminder_days'] == [1, 7]
        assert invalid.status_code == 400

    def test_settings_require_login(self, client):
        assert client.get('/notifications/settings').status_code == 401


class TestAdminRoutes:
    """Test suite for /admin"""

    def test_non_admin_forbidden(self, client, owner_claims, owner_user):
        client.login(owner_claims)

        response = client.get('/admin/invitations')

        assert response.status_code == 403

    def test_admin_bulk_operations(self, client, admin_identity, owner_identity, owner_user, dispatcher):
        first = invitation_service.send_invitation(owner_identity, 'one@example.com')
        second = invitation_service.send_invitation(owner_identity, 'two@example.com')
        client.login(admin_identity.claims)

        listing = client.get('/admin/invitations')
        cancelled = client.post('/admin/invitations/cancel', json={'invitation_ids': [first.id]})
        deleted = client.post('/admin/invitations/delete', json={'invitation_ids': [first.id, second.id]})
        bad = client.post('/admin/invitations/resend', json={})

        assert len(listing.get_json()['invitations']) == 2
        assert cancelled.get_json() == {'success': True, 'count': 1}
        assert deleted.get_json() == {'success': True, 'count': 2}
        assert bad.status_code == 400
        assert Invitation.query.count() == 0


def test_health_check(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['database'] == 'connected'


class TestCsrfProtection:
    """Test suite for the API with CSRF protection switched on"""

    @pytest.fixture(autouse=True)
    def csrf_enabled(self, app, monkeypatch):
        monkeypatch.setitem(app.config, 'WTF_CSRF_ENABLED', True)
        g.pop('csrf_token', None)
        yield
        g.pop('csrf_token', None)
        g.pop('csrf_valid', None)

    def test_public_decline_needs_no_token(self, client):
        response = client.post('/invitations/token/does-not-exist/decline')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NotFound'

    def test_session_write_without_token_rejected(self, client, owner_claims, owner_user):
        client.login(owner_claims)

        response = client.post('/notifications/read-all')

        assert response.status_code == 400
        assert response.get_json()['code'] == 'CSRFError'

    def test_session_write_with_token(self, client, owner_claims, owner_user):
        client.login(owner_claims)
        token = client.get('/csrf-token').get_json()['csrf_token']

        response = client.post('/notifications/read-all', headers={'X-CSRFToken': token})

        assert response.status_code == 200
        assert response.get_json()['updated'] == 0
