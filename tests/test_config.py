"""
Tests for SignConfig validation.

Test plan:
- from_dict: minimal mapping, unknown keys rejected, negative integers
  rejected, wrong types rejected, signing_identity required
- Cross-field: offline single signer needs both values, offline multisig
  does not
- effective_signature_only forced by multisig
"""

import pytest

from ledgersign.config import SignConfig
from ledgersign.errors import ConfigError


class TestFromDict:
    def test_minimal(self) -> None:
        config = SignConfig.from_dict({"signing_identity": "alice"})
        assert config.signing_identity == "alice"
        assert config.offline is False
        assert config.overwrite is False

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ConfigError, match="invalid option"):
            SignConfig.from_dict({"signing_identity": "alice", "amino": True})

    def test_negative_sequence_rejected(self) -> None:
        with pytest.raises(ConfigError, match="sequence"):
            SignConfig.from_dict({"signing_identity": "alice", "sequence": -1})

    def test_wrong_type_rejected(self) -> None:
        with pytest.raises(ConfigError, match="offline"):
            SignConfig.from_dict({"signing_identity": "alice", "offline": "yes"})

    def test_signing_identity_required(self) -> None:
        with pytest.raises(ConfigError):
            SignConfig.from_dict({"offline": False})

    def test_round_trip(self) -> None:
        config = SignConfig(
            signing_identity="alice",
            offline=True,
            account_number=1,
            sequence=2,
            chain_id="c",
        )
        assert SignConfig.from_dict(config.to_dict()) == config


class TestCrossField:
    def test_offline_single_requires_values(self) -> None:
        with pytest.raises(ConfigError, match="explicit"):
            SignConfig.from_dict(
                {"signing_identity": "alice", "offline": True, "sequence": 3}
            )

    def test_offline_multisig_defaults_allowed(self) -> None:
        config = SignConfig.from_dict(
            {"signing_identity": "alice", "offline": True, "multisig": "team"}
        )
        assert config.account_number is None

    def test_online_without_values_ok(self) -> None:
        SignConfig.from_dict({"signing_identity": "alice", "node": "http://n:1"})


class TestEffectiveSignatureOnly:
    def test_multisig_forces_signature_only(self) -> None:
        config = SignConfig(signing_identity="alice", multisig="team", signature_only=False)
        assert config.effective_signature_only is True

    def test_single_follows_flag(self) -> None:
        assert SignConfig(signing_identity="alice").effective_signature_only is False
        assert (
            SignConfig(signing_identity="alice", signature_only=True).effective_signature_only
            is True
        )
