"""Encrypted saved-artwork vault and its Fernet key ring."""
from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.fernet import Fernet, InvalidToken

from contract_signing.exceptions import ArtworkDecodeError
from contract_signing.logic.artwork_vault import ArtworkVault
from contract_signing.logic.encryption import KeyRing
from contract_signing.models import FieldType
from core.config.config_service import StorageConfig
from signing_fixtures import make_artwork


def test_keyring_encrypts_with_current_and_decrypts_legacy() -> None:
    old_key = Fernet.generate_key()
    legacy_token = Fernet(old_key).encrypt(b"old secret")
    ring = KeyRing(Fernet.generate_key(), [old_key])
    assert ring.decrypt(legacy_token) == b"old secret"
    assert ring.decrypt(ring.encrypt(b"new")) == b"new"
    with pytest.raises(InvalidToken):
        KeyRing.generate().decrypt(ring.encrypt(b"new"))


def test_keyring_accepts_plaintext_png() -> None:
    png = make_artwork().png_bytes
    assert KeyRing.generate().decrypt(png) == png


def test_keyring_key_file_is_created_once(tmp_path: Path) -> None:
    cfg = StorageConfig(vault_dir=tmp_path / "vault")
    token = KeyRing.from_config(cfg).encrypt(b"payload")
    assert (tmp_path / "vault" / "vault.key").exists()
    assert KeyRing.from_config(cfg).decrypt(token) == b"payload"


def test_keyring_from_configured_keys(tmp_path: Path) -> None:
    current, legacy = Fernet.generate_key().decode(), Fernet.generate_key().decode()
    cfg = StorageConfig(vault_dir=tmp_path, fernet_key=current, legacy_keys=f"{legacy}, ")
    ring = KeyRing.from_config(cfg)
    assert ring.decrypt(Fernet(legacy.encode()).encrypt(b"x")) == b"x"
    assert not (tmp_path / "vault.key").exists()


def test_vault_round_trip_and_delete(tmp_path: Path) -> None:
    vault = ArtworkVault(tmp_path, KeyRing.generate())
    art = make_artwork(240, 80)
    path = vault.save("Jane@Example.com", FieldType.INITIALS, art)
    assert path.name == "jane@example.com.initials.sig"
    assert art.png_bytes not in path.read_bytes()

    loaded = vault.load("jane@example.com", "INITIALS")
    assert (loaded.width, loaded.height) == (240, 80)
    assert loaded.png_bytes == art.png_bytes
    assert vault.load("jane@example.com", FieldType.SIGNATURE) is None

    assert vault.delete("jane@example.com", FieldType.INITIALS)
    assert not vault.delete("jane@example.com", FieldType.INITIALS)


def test_vault_rejects_date_artwork(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        ArtworkVault(tmp_path, KeyRing.generate()).save("jane", FieldType.DATE, make_artwork())


def test_vault_with_foreign_key(tmp_path: Path) -> None:
    ArtworkVault(tmp_path, KeyRing.generate()).save("jane", FieldType.SIGNATURE, make_artwork())
    with pytest.raises(ArtworkDecodeError):
        ArtworkVault(tmp_path, KeyRing.generate()).load("jane", FieldType.SIGNATURE)
