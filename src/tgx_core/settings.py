"""Plugin settings: the metadata packed next to the code blob."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable
from warnings import warn

import yaml

from tgx_core.protocol import U32_MAX


class SettingsError(ValueError):
    """Settings file is malformed or holds an out-of-range value."""


def normalize_targets(targets: Iterable[int]) -> tuple[int, ...]:
    """A list led by 0 means "no restriction" and is dropped as a whole."""
    targets = tuple(targets)
    if targets and targets[0] == 0:
        if len(targets) > 1:
            warn(f"Targets list starts with 0; ignoring {len(targets) - 1} further entries")
        return ()
    return targets


@dataclass(frozen=True)
class Settings:
    author: str | None = None
    title: str | None = None
    summary: str | None = None
    description: str | None = None
    major: int = 0
    minor: int = 0
    revision: int = 0
    targets: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "targets", normalize_targets(self.targets))
        for name, part in zip(("major", "minor", "revision"), self.version):
            if not 0 <= part <= 0xFF:
                raise SettingsError(f"Version {name} {part} outside 0..255")
        for t in self.targets:
            if not 0 <= t <= U32_MAX:
                raise SettingsError(f"Target {t} is not a 32-bit unsigned value")

    @property
    def version(self) -> tuple[int, int, int]:
        return self.major, self.minor, self.revision


def _parse_int(raw: Any, key: str, limit: int) -> int:
    if not isinstance(raw, str):
        raise SettingsError(f"{key}: expected an integer, got {type(raw).__name__}")
    text = raw.strip().replace("_", "")
    try:
        value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
    except ValueError:
        raise SettingsError(f"{key}: {raw!r} is not an integer") from None
    if not 0 <= value <= limit:
        raise SettingsError(f"{key}: {value} outside 0..{limit}")
    return value


# BaseLoader does not resolve nulls, so the YAML 1.1 spellings arrive as text.
NULLS = frozenset({"", "~", "null", "Null", "NULL"})


def _is_null(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw in NULLS)


def _parse_text(raw: Any, key: str) -> str | None:
    if _is_null(raw):
        return None
    if not isinstance(raw, str):
        raise SettingsError(f"{key}: expected a string, got {type(raw).__name__}")
    return raw


def settings_from_mapping(doc: Any) -> Settings:
    """Build Settings from a parsed YAML document (scalars as text)."""
    if _is_null(doc):
        doc = {}
    if not isinstance(doc, dict):
        raise SettingsError("Settings document must be a mapping")

    version = doc.get("Version")
    if _is_null(version):
        version = {}
    if not isinstance(version, dict):
        raise SettingsError("Version: expected a mapping with Major/Minor/Revision")
    parts = {
        name.lower(): _parse_int(version[name], f"Version.{name}", 0xFF)
        if not _is_null(version.get(name))
        else 0
        for name in ("Major", "Minor", "Revision")
    }

    targets = doc.get("Targets")
    if _is_null(targets):
        targets = []
    if not isinstance(targets, list):
        raise SettingsError("Targets: expected a list of integers")

    return Settings(
        author=_parse_text(doc.get("Author"), "Author"),
        title=_parse_text(doc.get("Title"), "Title"),
        summary=_parse_text(doc.get("Summary"), "Summary"),
        description=_parse_text(doc.get("Description"), "Description"),
        targets=tuple(_parse_int(t, f"Targets[{i}]", U32_MAX) for i, t in enumerate(targets)),
        **parts,
    )


def load_settings(path: Path) -> Settings:
    """Read a .plgInfo YAML file.

    BaseLoader keeps every scalar as the text written in the file, so
    `Title: 1.0` stays "1.0" and integers are parsed here with key-aware errors.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        doc = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e
    return settings_from_mapping(doc)
