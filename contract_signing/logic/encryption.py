# contract_signing/logic/encryption.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from cryptography.fernet import Fernet, InvalidToken

from core.config.config_service import StorageConfig
from .artwork_codec import sniff_format

logger = logging.getLogger(__name__)

KEY_FILE_NAME = "vault.key"


class KeyRing:
    """
    Ordered Fernet keys:
    - first entry is the current key (used for ENCRYPT),
    - remaining entries are legacy keys (used only for DECRYPT).
    """

    def __init__(self, current: bytes | str, legacy: Iterable[bytes | str] = ()) -> None:
        self._ferns: List[Fernet] = [Fernet(_as_bytes(current))]
        for k in legacy:
            try:
                self._ferns.append(Fernet(_as_bytes(k)))
            except ValueError:
                logger.warning("Ignoring malformed legacy vault key")

    @classmethod
    def generate(cls) -> "KeyRing":
        return cls(Fernet.generate_key())

    @classmethod
    def from_config(cls, cfg: StorageConfig, *, key_file: Optional[Path] = None) -> "KeyRing":
        """
        Key from ``fernet_key`` when configured; otherwise a key file inside the
        vault directory, created once on first use.
        """
        legacy = [k.strip() for k in (cfg.legacy_keys or "").split(",") if k.strip()]
        if cfg.fernet_key:
            return cls(cfg.fernet_key.strip(), legacy)
        path = key_file or Path(cfg.vault_dir) / KEY_FILE_NAME
        if path.exists():
            key = path.read_bytes().strip()
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            key = Fernet.generate_key()
            path.write_bytes(key)
            logger.info("Created vault key %s", path)
        return cls(key, legacy)

    def encrypt(self, data: bytes) -> bytes:
        return self._ferns[0].encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        """
        Try the current key first, then legacy keys. Legacy plaintext PNG/JPEG/GIF
        blobs are accepted as-is; anything else raises InvalidToken.
        """
        for f in self._ferns:
            try:
                return f.decrypt(token)
            except InvalidToken:
                continue
        if sniff_format(token) is not None:
            return token
        raise InvalidToken("Unable to decrypt artwork token")


def _as_bytes(key: bytes | str) -> bytes:
    return key.encode("ascii") if isinstance(key, str) else bytes(key)
