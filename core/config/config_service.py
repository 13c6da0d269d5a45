"""Typed, layered configuration loader with precedence handling.

Layers (later wins):
    0. embedded defaults (``_DEFAULTS``)
    1. ``defaults.ini`` shipped next to this module
    2. environment variables ``ESIGN_<SECTION>__<KEY>``
    3. user config (``$XDG_CONFIG_HOME/contract_signing/config.ini``) or an
       explicit ``user_ini`` path
"""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple, get_type_hints

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
ENV_PREFIX = "ESIGN_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Artwork": {
        "canvas_width": "800",
        "canvas_height": "220",
        "pen_min_width": "1.0",
        "pen_max_width": "3.0",
        "velocity_filter_weight": "0.7",
        "signature_font_size": "64",
        "initials_font_size": "48",
        "text_padding": "20",
    },
    "Placement": {
        "date_font": "Helvetica",
        "date_font_size": "12",
        "date_text_x_offset": "50.0",
        "date_baseline_offset": "0.0",
    },
    "Fonts": {
        "font_dir": "",
        "dancing_script": "DancingScript-Bold.ttf",
        "great_vibes": "GreatVibes-Regular.ttf",
        "allura": "Allura-Regular.ttf",
        "pacifico": "Pacifico-Regular.ttf",
        "neutral": "DejaVuSans.ttf",
    },
    "Storage": {
        "database": (Path("data") / "signing.db").as_posix(),
        "audit_database": (Path("data") / "signing_audit.db").as_posix(),
        "vault_dir": (Path("data") / "signatures").as_posix(),
        "fernet_key": "",
        "legacy_keys": "",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class ArtworkConfig:
    canvas_width: int = 800
    canvas_height: int = 220
    pen_min_width: float = 1.0
    pen_max_width: float = 3.0
    velocity_filter_weight: float = 0.7
    signature_font_size: int = 64
    initials_font_size: int = 48
    text_padding: int = 20


@dataclass
class PlacementConfig:
    date_font: str = "Helvetica"
    date_font_size: int = 12
    date_text_x_offset: float = 50.0
    date_baseline_offset: float = 0.0


@dataclass
class FontsConfig:
    font_dir: str = ""
    dancing_script: str = "DancingScript-Bold.ttf"
    great_vibes: str = "GreatVibes-Regular.ttf"
    allura: str = "Allura-Regular.ttf"
    pacifico: str = "Pacifico-Regular.ttf"
    neutral: str = "DejaVuSans.ttf"


@dataclass
class StorageConfig:
    database: Path = Path("data") / "signing.db"
    audit_database: Path = Path("data") / "signing_audit.db"
    vault_dir: Path = Path("data") / "signatures"
    fernet_key: str = ""
    legacy_keys: str = ""


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: Any) -> Any:
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    # annotations are strings under postponed evaluation; resolve them first
    hints = get_type_hints(cls)
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, hints[field.name])
    return cls(**kwargs)


def _env_overlays(environ: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in (os.environ if environ is None else environ).items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "ContractSigning" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "contract_signing" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety."""

    def __init__(self, *, user_ini: Optional[Path] = None,
                 environ: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._user_ini = Path(user_ini) if user_ini else None
        self._environ = environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if DEFAULTS_INI.exists():
                _apply(merged, _read_ini(DEFAULTS_INI), "defaults.ini", str(DEFAULTS_INI), sources)

            # Layer 2: environment variables
            _apply(merged, _env_overlays(self._environ), "env", "os.environ", sources)

            # Layer 3: user overrides
            user_ini = self._user_ini or _user_config_path()
            if user_ini.exists():
                _apply(merged, _read_ini(user_ini), "user", str(user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.artwork = _build_dataclass(ArtworkConfig, merged.get("Artwork", {}))
            self.placement = _build_dataclass(PlacementConfig, merged.get("Placement", {}))
            self.fonts = _build_dataclass(FontsConfig, merged.get("Fonts", {}))
            self.storage = _build_dataclass(StorageConfig, merged.get("Storage", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


_service: Optional[ConfigService] = None
_service_lock = RLock()


def get_config_service() -> ConfigService:
    """Process-wide ConfigService, created on first use."""
    global _service
    with _service_lock:
        if _service is None:
            _service = ConfigService()
        return _service
