# contract_signing/logic/font_catalog.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from PIL import ImageFont

from core.config.config_service import FontsConfig
from ..exceptions.errors import FontNotInstalledError, UnsupportedFontError

logger = logging.getLogger(__name__)

# display name -> FontsConfig attribute holding the TTF file name
SIGNATURE_FONTS: Dict[str, str] = {
    "Dancing Script": "dancing_script",
    "Great Vibes": "great_vibes",
    "Allura": "allura",
    "Pacifico": "pacifico",
}


class FontCatalog:
    """
    Resolves signature font names to Pillow fonts.

    TTF files are looked up in ``FontsConfig.font_dir`` first, then by bare file
    name (FreeType searches the system font folders). A catalogue font whose
    file is not installed raises :class:`FontNotInstalledError`; substituting
    another face would silently ignore the signer's choice. Only the neutral
    date font may fall back to Pillow's bundled face.
    """

    def __init__(self, config: Optional[FontsConfig] = None) -> None:
        self._cfg = config or FontsConfig()
        self._cache: Dict[Tuple[str, int], Any] = {}

    @property
    def names(self) -> List[str]:
        return list(SIGNATURE_FONTS)

    def signature_font(self, name: str, size: int):
        """Catalogue face at ``size``; raises if its TTF cannot be loaded."""
        key = self._canonical(name)
        file_name = getattr(self._cfg, SIGNATURE_FONTS[key])
        font = self._load(key, file_name, size)
        if font is None:
            raise FontNotInstalledError(key, file_name, self._search_dirs())
        return font

    def neutral_font(self, size: int):
        font = self._load("<neutral>", self._cfg.neutral, size)
        if font is None:
            logger.warning("Font file %s not found; date stamps use Pillow's default face",
                           self._cfg.neutral)
            font = ImageFont.load_default(size=int(size))
            self._cache[("<neutral>", int(size))] = font
        return font

    # -------- internals ------------------------------------------------------
    def _canonical(self, name: str) -> str:
        wanted = (name or "").strip().lower()
        for known in SIGNATURE_FONTS:
            if known.lower() == wanted:
                return known
        raise UnsupportedFontError(name, SIGNATURE_FONTS)

    def _search_dirs(self) -> List[str]:
        dirs = [str(Path(self._cfg.font_dir).expanduser())] if self._cfg.font_dir else []
        return dirs + ["system font folders"]

    def _candidates(self, file_name: str) -> List[str]:
        out: List[str] = []
        if self._cfg.font_dir:
            out.append(str(Path(self._cfg.font_dir).expanduser() / file_name))
        out.append(file_name)
        return out

    def _load(self, key: str, file_name: str, size: int):
        cache_key = (key, int(size))
        font = self._cache.get(cache_key)
        if font is not None:
            return font
        for candidate in self._candidates(file_name):
            try:
                font = ImageFont.truetype(candidate, int(size))
            except OSError:
                continue
            self._cache[cache_key] = font
            return font
        return None
