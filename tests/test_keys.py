"""
Tests for public key variants and multisig membership.

Test plan:
- SimplePublicKey: non-empty, address prefix and determinism, not multisig
- MultisigPublicKey: threshold bounds, duplicate members rejected,
  empty members rejected, is_multisig capability
- Membership: exact byte equality, order-independent, member_index
  follows member ordering, require_member raises MultisigMembershipError
- Dict form: tagged round trip for both variants, unknown type rejected
"""

import pytest

from ledgersign.errors import MultisigMembershipError
from ledgersign.keys import (
    ADDRESS_PREFIX,
    MultisigPublicKey,
    SimplePublicKey,
    is_member,
    member_index,
    public_key_from_dict,
    require_member,
)

KEY_A = b"\x01" * 32
KEY_B = b"\x02" * 32
KEY_C = b"\x03" * 32
OUTSIDER = b"\x09" * 32


def _multisig(threshold: int = 2, members: tuple[bytes, ...] = (KEY_A, KEY_B, KEY_C)) -> MultisigPublicKey:
    return MultisigPublicKey(threshold=threshold, members=members)


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class TestSimplePublicKey:
    def test_not_multisig(self) -> None:
        assert SimplePublicKey(KEY_A).is_multisig is False

    def test_address_prefix(self) -> None:
        assert SimplePublicKey(KEY_A).address.startswith(ADDRESS_PREFIX)

    def test_address_deterministic(self) -> None:
        assert SimplePublicKey(KEY_A).address == SimplePublicKey(KEY_A).address

    def test_addresses_differ_per_key(self) -> None:
        assert SimplePublicKey(KEY_A).address != SimplePublicKey(KEY_B).address

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            SimplePublicKey(b"")


class TestMultisigPublicKey:
    def test_is_multisig(self) -> None:
        assert _multisig().is_multisig is True

    def test_threshold_equal_to_members_ok(self) -> None:
        key = _multisig(threshold=3)
        assert key.threshold == 3

    def test_threshold_above_members_rejected(self) -> None:
        with pytest.raises(ValueError, match="threshold"):
            _multisig(threshold=4)

    def test_zero_threshold_rejected(self) -> None:
        with pytest.raises(ValueError, match="threshold"):
            _multisig(threshold=0)

    def test_duplicate_members_rejected(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            _multisig(members=(KEY_A, KEY_A, KEY_B))

    def test_empty_members_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one member"):
            MultisigPublicKey(threshold=1, members=())

    def test_address_depends_on_threshold(self) -> None:
        assert _multisig(threshold=1).address != _multisig(threshold=2).address


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


class TestMembership:
    def test_member_found(self) -> None:
        assert is_member(_multisig(), KEY_B) is True

    def test_outsider_not_found(self) -> None:
        assert is_member(_multisig(), OUTSIDER) is False

    def test_prefix_of_member_not_found(self) -> None:
        assert is_member(_multisig(), KEY_A[:16]) is False

    def test_order_does_not_affect_membership(self) -> None:
        reordered = _multisig(members=(KEY_C, KEY_A, KEY_B))
        assert is_member(reordered, KEY_B) is True

    def test_member_index_follows_ordering(self) -> None:
        assert member_index(_multisig(), KEY_C) == 2
        assert member_index(_multisig(members=(KEY_C, KEY_A, KEY_B)), KEY_C) == 0

    def test_member_index_outsider_raises(self) -> None:
        with pytest.raises(MultisigMembershipError, match="not a part of multisig"):
            member_index(_multisig(), OUTSIDER)

    def test_require_member_outsider_raises(self) -> None:
        with pytest.raises(MultisigMembershipError):
            require_member(_multisig(), OUTSIDER)

    def test_require_member_ok(self) -> None:
        require_member(_multisig(), KEY_A)


# ---------------------------------------------------------------------------
# Dict form
# ---------------------------------------------------------------------------


class TestPublicKeyDict:
    def test_simple_round_trip(self) -> None:
        key = SimplePublicKey(KEY_A)
        assert public_key_from_dict(key.to_dict()) == key

    def test_multisig_round_trip(self) -> None:
        key = _multisig()
        restored = public_key_from_dict(key.to_dict())
        assert restored == key
        assert restored.is_multisig

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown public key type"):
            public_key_from_dict({"type": "rsa", "key": ""})

    def test_multisig_bool_threshold_rejected(self) -> None:
        with pytest.raises(ValueError, match="threshold"):
            public_key_from_dict({"type": "multisig", "threshold": True, "members": []})
