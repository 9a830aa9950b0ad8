"""
Tests for membership provisioning and directory records
"""
from workstream.auth import Identity
from workstream.models.project import ProjectMember
from workstream.models.user import User
from workstream.services.membership_service import assign_task, ensure_membership, has_project_role
from workstream.services.user_service import get_display_name, get_or_create_user, refresh_user_from_identity


class TestEnsureMembership:
    """Test suite for idempotent membership grants"""

    def test_grant_is_idempotent(self, project, outsider_identity, db_session):
        user = User.get_by_subject(outsider_identity.subject_id)

        first, created = ensure_membership(project.id, user, role='member')
        second, created_again = ensure_membership(project.id, user, role='member')
        db_session.commit()

        assert created is True
        assert created_again is False
        assert first.id == second.id
        assert ProjectMember.query.filter_by(project_id=project.id, user_id=user.subject_id).count() == 1

    def test_existing_role_is_never_changed(self, project, owner_user, db_session):
        membership, created = ensure_membership(project.id, owner_user, role='viewer')
        db_session.commit()

        assert created is False
        assert membership.role == 'owner'

    def test_existing_row_gets_profile_snapshot_refreshed(self, project, owner_user, db_session):
        owner_user.name = 'Olivia Renamed'
        owner_user.avatar_url = 'https://cdn.example.com/o.png'

        membership, _ = ensure_membership(project.id, owner_user)
        db_session.commit()

        assert membership.name == 'Olivia Renamed'
        assert membership.avatar_url == 'https://cdn.example.com/o.png'

    def test_has_project_role(self, project, owner_user, outsider_identity):
        assert has_project_role(project.id, owner_user.subject_id, ('owner', 'admin'))
        assert not has_project_role(project.id, outsider_identity.subject_id, ('owner', 'admin'))

    def test_assign_task(self, task, outsider_identity):
        user = User.get_by_subject(outsider_identity.subject_id)
        before = task.updated_at

        assign_task(task, user)

        assert task.assigned_to == user.subject_id
        assert task.updated_at >= before


class TestDirectoryRecords:
    """Test suite for resolving identities into users"""

    def test_creates_user_with_derived_name(self, db_session):
        identity = Identity.from_claims({
            'sub': 'auth0|new', 'email': 'jane_doe@example.com', 'given_name': 'Jane', 'family_name': 'Doe'
        })

        user = get_or_create_user(identity)
        db_session.commit()

        assert user.subject_id == 'auth0|new'
        assert user.name == 'Jane Doe'
        assert user.email == 'jane_doe@example.com'

    def test_falls_back_to_invited_email(self, db_session):
        identity = Identity.from_claims({'sub': 'auth0|bare'})

        user = get_or_create_user(identity, 'mary.ann@example.com')

        assert user.email == 'mary.ann@example.com'
        assert user.name == 'Mary Ann'

    def test_returns_existing_user(self, owner_user, owner_identity):
        assert get_or_create_user(owner_identity).id == owner_user.id

    def test_refresh_updates_stale_profile(self, owner_user):
        identity = Identity.from_claims({
            'sub': owner_user.subject_id, 'email': 'olivia@new.example.com',
            'name': 'Olivia O.', 'picture': 'https://cdn.example.com/olivia.png'
        })

        assert refresh_user_from_identity(owner_user, identity) is True
        assert owner_user.name == 'Olivia O.'
        assert owner_user.email == 'olivia@new.example.com'
        assert owner_user.avatar_url == 'https://cdn.example.com/olivia.png'

    def test_refresh_without_changes(self, owner_user, owner_identity):
        assert refresh_user_from_identity(owner_user, owner_identity) is False

    def test_mixed_case_email_stays_lower_case(self, db_session):
        """Test a mixed-case email claim does not count as a profile change"""
        identity = Identity.from_claims({'sub': 'auth0|ivy', 'email': 'Ivy@Example.com', 'name': 'Ivy Invitee'})

        user = get_or_create_user(identity)

        assert refresh_user_from_identity(user, identity) is False
        assert user.email == 'ivy@example.com'

    def test_refresh_lower_cases_new_email(self, owner_user):
        identity = Identity.from_claims({
            'sub': owner_user.subject_id, 'email': 'Olivia@New.Example.com', 'name': 'Olivia Owner'
        })

        assert refresh_user_from_identity(owner_user, identity) is True
        assert owner_user.email == 'olivia@new.example.com'

    def test_display_name_lookup(self, owner_user, invitee_identity):
        assert get_display_name(owner_user.subject_id) == 'Olivia Owner'
        assert get_display_name(invitee_identity.subject_id, invitee_identity) == 'Ivy Invitee'
        assert get_display_name('auth0|ghost') == 'Someone'
