import pytest

from yggauth.service.identity import derive_from_name, is_valid
from yggauth.service.seeding import AccountSpec, parse_account_spec, seed_accounts
from yggauth.storage.errors import ConstraintViolation


class TestParseAccountSpec:
    def test_with_profile(self):
        spec = parse_account_spec("alice:secret:Alice")
        assert spec == AccountSpec(username="alice", password="secret", profile_name="Alice")

    def test_without_profile(self):
        assert parse_account_spec("alice:secret").profile_name is None

    def test_empty_profile_means_none(self):
        assert parse_account_spec("alice:secret:").profile_name is None

    @pytest.mark.parametrize("raw", ["alice", ":secret", "alice:", "a:b:c:d", ""])
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValueError):
            parse_account_spec(raw)


class TestSeedAccounts:
    def test_registers_users_and_profiles(self, authority):
        seeded = seed_accounts(
            authority,
            [AccountSpec("alice", "secret", "Alice"), AccountSpec("bob", "hunter2")],
        )

        alice, bob = seeded
        assert is_valid(alice.user_id)
        assert alice.profile.profile_id == derive_from_name("Alice")
        assert bob.profile is None

        result = authority.authenticate("alice", "secret")
        assert result.profile.name == "Alice"

    def test_duplicate_username_propagates(self, authority):
        with pytest.raises(ConstraintViolation):
            seed_accounts(
                authority, [AccountSpec("alice", "a", "A"), AccountSpec("alice", "b", "B")]
            )
