from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Optional

from cryptography.fernet import InvalidToken

from ..exceptions.errors import ArtworkDecodeError
from ..models.artwork import RasterArtwork
from ..models.signature_enums import CaptureMode, FieldType
from .artwork_codec import decode_image, encode_png, flatten_on_white
from .encryption import KeyRing

logger = logging.getLogger(__name__)

_SAFE = re.compile(r"[^A-Za-z0-9_.@-]+")


class ArtworkVault:
    """
    Encrypted store of a signer's reusable signature / initials artwork.

    One file per (owner, field type): ``{base_dir}/{owner}.{type}.sig``.
    """

    def __init__(self, base_dir: Path | str, keyring: KeyRing) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._keyring = keyring

    def _path(self, owner: str, field_type: FieldType | str) -> Path:
        ft = FieldType.parse(field_type)
        if not ft.reusable:
            raise ValueError(f"{ft.value} artwork is not kept in the vault.")
        safe_owner = _SAFE.sub("_", (owner or "").strip().lower())
        if not safe_owner:
            raise ValueError("Vault owner must not be empty.")
        return self._base_dir / f"{safe_owner}.{ft.value.lower()}.sig"

    def save(self, owner: str, field_type: FieldType | str, artwork: RasterArtwork) -> Path:
        p = self._path(owner, field_type)
        p.write_bytes(self._keyring.encrypt(artwork.png_bytes))
        logger.info("Stored %s artwork for %s", FieldType.parse(field_type).value, owner)
        return p

    def load(self, owner: str, field_type: FieldType | str) -> Optional[RasterArtwork]:
        """
        Decrypted artwork, or None if nothing is stored.
        Undecryptable files raise ArtworkDecodeError.
        """
        p = self._path(owner, field_type)
        if not p.exists():
            return None
        try:
            png = self._keyring.decrypt(p.read_bytes())
        except InvalidToken as exc:
            raise ArtworkDecodeError(f"Stored artwork {p.name} cannot be decrypted with the configured keys.") from exc
        img = decode_image(png)
        if img.format != "PNG":
            png = encode_png(flatten_on_white(img))
        return RasterArtwork(width=img.width, height=img.height, png_bytes=png, mode=CaptureMode.UPLOAD)

    def delete(self, owner: str, field_type: FieldType | str) -> bool:
        p = self._path(owner, field_type)
        if p.exists():
            p.unlink()
            return True
        return False
