"""Unit tests for the in-memory token authority.

Tests for:
- Seeding users and profiles
- authenticate / refresh / validate / invalidate / sign_out semantics
- Consistency of the access-token and client-token indexes
"""

import pytest

from conftest import TEST_PASSWORD, TEST_PROFILE, TEST_USERNAME
from yggauth.service.errors import (
    ForbiddenOperationError,
    InvalidCredentialsError,
    InvalidTokenError,
    NoProfileError,
)
from yggauth.service.identity import derive_from_name, is_valid, random_identifier
from yggauth.storage.errors import ConstraintViolation


def assert_indexes_consistent(authority):
    """Both indexes describe exactly the same set of live sessions."""
    assert set(authority.client_tokens.values()) == set(authority.sessions.keys())
    for client_token, access_token in authority.client_tokens.items():
        assert authority.sessions[access_token].client_token == client_token


class TestSeeding:
    def test_register_user_returns_undashed_id(self, authority):
        user_id = authority.register_user("alex@example.com", "pw")
        assert is_valid(user_id)
        assert authority.users["alex@example.com"].user_id == user_id

    def test_duplicate_username_rejected(self, authority):
        authority.register_user("alex@example.com", "pw")
        with pytest.raises(ConstraintViolation):
            authority.register_user("alex@example.com", "other")

    def test_profile_id_derived_from_name(self, authority):
        user_id = authority.register_user("bob@example.com", "pw")
        profile = authority.register_profile(user_id, "Bob")
        assert profile.profile_id == derive_from_name("Bob")
        assert profile.name == "Bob"

    def test_profile_requires_existing_user(self, authority):
        with pytest.raises(ConstraintViolation):
            authority.register_profile(random_identifier(), "Ghost")

    def test_second_profile_replaces_first(self, authority):
        user_id = authority.register_user("bob@example.com", "pw")
        authority.register_profile(user_id, "Bob")
        authority.register_profile(user_id, "Robert")
        assert authority.get_profile(user_id).name == "Robert"


class TestAuthenticate:
    def test_success_returns_session_and_profile(self, authority, seeded_user):
        user_id, profile = seeded_user
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)

        assert is_valid(result.access_token)
        assert is_valid(result.client_token)
        assert result.profile == profile
        assert result.session.user_id == user_id
        assert result.session.profile_id == derive_from_name(TEST_PROFILE)
        assert result.user is None
        assert authority.validate(result.access_token)
        assert_indexes_consistent(authority)

    def test_supplied_client_token_is_kept(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD, client_token="my-launcher")
        assert result.client_token == "my-launcher"
        assert authority.client_tokens["my-launcher"] == result.access_token

    def test_request_user_adds_language_property(self, authority, seeded_user):
        user_id, _ = seeded_user
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD, request_user=True)
        assert result.user.user_id == user_id
        assert [(p.name, p.value) for p in result.user.properties] == [
            ("preferredLanguage", "en")
        ]

    def test_unknown_user(self, authority, seeded_user):
        with pytest.raises(InvalidCredentialsError):
            authority.authenticate("nobody@example.com", TEST_PASSWORD)

    def test_wrong_password_is_case_sensitive(self, authority, seeded_user):
        with pytest.raises(InvalidCredentialsError):
            authority.authenticate(TEST_USERNAME, TEST_PASSWORD.lower())

    def test_user_without_profile(self, authority):
        authority.register_user("nobody@example.com", "pw")
        with pytest.raises(NoProfileError):
            authority.authenticate("nobody@example.com", "pw")
        assert authority.sessions == {}

    def test_failures_are_forbidden_operations(self, authority, seeded_user):
        with pytest.raises(ForbiddenOperationError) as excinfo:
            authority.authenticate(TEST_USERNAME, "wrong")
        assert excinfo.value.status_code == 403
        assert excinfo.value.error_code == "ForbiddenOperationException"

    def test_reused_client_token_retires_previous_head(self, authority, seeded_user):
        first = authority.authenticate(TEST_USERNAME, TEST_PASSWORD, client_token="launcher")
        second = authority.authenticate(TEST_USERNAME, TEST_PASSWORD, client_token="launcher")

        assert not authority.validate(first.access_token)
        assert authority.validate(second.access_token)
        assert authority.client_tokens["launcher"] == second.access_token
        assert_indexes_consistent(authority)

    def test_client_token_of_another_user_is_rejected(self, authority, seeded_user):
        other_id = authority.register_user("mallory@example.com", "pw")
        authority.register_profile(other_id, "Mallory")
        mine = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)

        with pytest.raises(InvalidTokenError):
            authority.authenticate("mallory@example.com", "pw", client_token=mine.client_token)

        # The owner's chain is untouched and nothing was issued to the other user
        assert authority.validate(mine.access_token, mine.client_token)
        assert authority.client_tokens == {mine.client_token: mine.access_token}
        assert authority.sessions_for_user(other_id) == []
        assert_indexes_consistent(authority)

    def test_get_session(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        assert authority.get_session(result.access_token) == result.session
        assert authority.get_session(random_identifier()) is None

    def test_independent_chains_coexist(self, authority, seeded_user):
        a = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        b = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        assert a.client_token != b.client_token
        assert authority.validate(a.access_token)
        assert authority.validate(b.access_token)


class TestRefresh:
    def test_rotates_access_token_and_keeps_chain(self, authority, seeded_user):
        original = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        refreshed = authority.refresh(original.access_token, original.client_token)

        assert refreshed.access_token != original.access_token
        assert refreshed.client_token == original.client_token
        assert refreshed.session.user_id == original.session.user_id
        assert refreshed.session.profile_id == original.session.profile_id
        assert not authority.validate(original.access_token)
        assert authority.validate(refreshed.access_token)
        assert_indexes_consistent(authority)

    def test_without_client_token(self, authority, seeded_user):
        original = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        refreshed = authority.refresh(original.access_token)
        assert refreshed.client_token == original.client_token

    def test_mismatched_client_token(self, authority, seeded_user):
        original = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        with pytest.raises(InvalidTokenError):
            authority.refresh(original.access_token, "someone-else")
        # Rejected refresh leaves the session untouched
        assert authority.validate(original.access_token)

    def test_unknown_token(self, authority, seeded_user):
        with pytest.raises(InvalidTokenError):
            authority.refresh(random_identifier())

    def test_old_token_cannot_refresh_twice(self, authority, seeded_user):
        original = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        authority.refresh(original.access_token)
        with pytest.raises(InvalidTokenError):
            authority.refresh(original.access_token)

    def test_request_user(self, authority, seeded_user):
        original = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        refreshed = authority.refresh(original.access_token, request_user=True)
        assert refreshed.user is not None
        assert refreshed.user.user_id == seeded_user[0]


class TestValidate:
    def test_never_issued_token_is_false(self, authority):
        assert authority.validate(random_identifier()) is False

    def test_client_token_checked_only_when_supplied(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        assert authority.validate(result.access_token) is True
        assert authority.validate(result.access_token, "") is True
        assert authority.validate(result.access_token, result.client_token) is True
        assert authority.validate(result.access_token, "other") is False

    def test_does_not_mutate(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        before = dict(authority.sessions)
        authority.validate(result.access_token, "other")
        authority.validate(random_identifier())
        assert authority.sessions == before


class TestInvalidate:
    def test_removes_only_that_session(self, authority, seeded_user):
        a = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        b = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)

        authority.invalidate(a.access_token, a.client_token)

        assert not authority.validate(a.access_token)
        assert authority.validate(b.access_token)
        assert a.client_token not in authority.client_tokens
        assert_indexes_consistent(authority)

    def test_empty_client_token_does_not_bypass(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        with pytest.raises(InvalidTokenError):
            authority.invalidate(result.access_token, "")
        assert authority.validate(result.access_token)

    def test_mismatched_client_token(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        with pytest.raises(InvalidTokenError):
            authority.invalidate(result.access_token, "other")

    def test_unknown_token(self, authority):
        with pytest.raises(InvalidTokenError):
            authority.invalidate(random_identifier(), random_identifier())

    def test_twice_fails(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        authority.invalidate(result.access_token, result.client_token)
        with pytest.raises(InvalidTokenError):
            authority.invalidate(result.access_token, result.client_token)


class TestSignOut:
    def test_removes_every_chain(self, authority, seeded_user):
        user_id, _ = seeded_user
        a = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        b = authority.authenticate(TEST_USERNAME, TEST_PASSWORD, client_token="second")
        b2 = authority.refresh(b.access_token)

        removed = authority.sign_out(TEST_USERNAME, TEST_PASSWORD)

        assert removed == 2
        for token in (a.access_token, b.access_token, b2.access_token):
            assert authority.validate(token) is False
        assert authority.sessions_for_user(user_id) == []
        assert_indexes_consistent(authority)

    def test_leaves_other_users_alone(self, authority, seeded_user):
        other_id = authority.register_user("alex@example.com", "pw")
        authority.register_profile(other_id, "Alex")
        mine = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        theirs = authority.authenticate("alex@example.com", "pw")

        authority.sign_out(TEST_USERNAME, TEST_PASSWORD)

        assert not authority.validate(mine.access_token)
        assert authority.validate(theirs.access_token)

    def test_bad_credentials(self, authority, seeded_user):
        result = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        with pytest.raises(InvalidCredentialsError):
            authority.sign_out(TEST_USERNAME, "wrong")
        assert authority.validate(result.access_token)

    def test_with_no_sessions(self, authority, seeded_user):
        assert authority.sign_out(TEST_USERNAME, TEST_PASSWORD) == 0

    def test_new_sessions_after_sign_out_survive(self, authority, seeded_user):
        authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        authority.sign_out(TEST_USERNAME, TEST_PASSWORD)
        fresh = authority.authenticate(TEST_USERNAME, TEST_PASSWORD)
        assert authority.validate(fresh.access_token)
