"""Project configuration: discovery, loading, validation."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from typeinline.exit_codes import ConfigError
from typeinline.index.macros import DEFAULT_MACROS
from typeinline.index.modules import AliasEntry

log = logging.getLogger(__name__)

CONFIG_NAME = "typeinline.json"
TSCONFIG_NAME = "tsconfig.json"
ROOT_MARKERS = (CONFIG_NAME, TSCONFIG_NAME, "package.json")

# Strings are kept; comments and trailing commas are dropped
_JSONC_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/|,(?=\s*[}\]])', re.DOTALL)
_JS_GROUP_RE = re.compile(r"\$(\d+)")


@dataclass(frozen=True)
class InlineConfig:
    root: Path | None = None
    aliases: tuple[AliasEntry, ...] = ()
    macros: tuple[str, ...] = DEFAULT_MACROS
    clean_newline: bool = False
    clean_interface: bool = False

    def with_overrides(self, **overrides) -> "InlineConfig":
        """Copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def find_project_root(start: str | Path = ".") -> Path | None:
    """Walk up from *start* looking for typeinline.json, tsconfig.json or package.json.

    Returns the directory containing the marker, or None.
    """
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    while True:
        if any((current / marker).exists() for marker in ROOT_MARKERS):
            return current
        if current == current.parent:
            return None
        current = current.parent


def strip_jsonc(text: str) -> str:
    """Turn JSON-with-comments (tsconfig flavour) into plain JSON."""
    return _JSONC_RE.sub(lambda m: m.group(1) or "", text)


def _read_json(path: Path, *, comments: bool = False) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    try:
        return json.loads(strip_jsonc(text) if comments else text)
    except ValueError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc


def parse_alias(find: str, replacement: str, root: Path) -> AliasEntry:
    """Build an alias entry; ``/pattern/`` keys become regular expressions."""
    if len(find) > 2 and find.startswith("/") and find.endswith("/"):
        return AliasEntry(re.compile(find[1:-1]), _JS_GROUP_RE.sub(r"\\g<\1>", replacement))
    if replacement.startswith("."):
        replacement = str((root / replacement).resolve())
    return AliasEntry(find, replacement)


def tsconfig_aliases(path: Path) -> list[AliasEntry]:
    """Aliases from ``compilerOptions.paths`` (first target of each entry)."""
    data = _read_json(path, comments=True)
    options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(options, dict):
        return []
    base = (path.parent / options.get("baseUrl", ".")).resolve()
    entries = []
    for pattern, targets in (options.get("paths") or {}).items():
        if not isinstance(targets, list) or not targets or not isinstance(targets[0], str):
            log.debug("%s: skipping paths entry %r", path, pattern)
            continue
        target = targets[0]
        if pattern.endswith("/*") and target.endswith("/*"):
            entries.append(AliasEntry(pattern[:-2], str(base / target[:-2])))
        elif "*" not in pattern and "*" not in target:
            entries.append(AliasEntry(pattern, str(base / target)))
        else:
            log.debug("%s: unsupported paths pattern %r", path, pattern)
    return entries


def load_config(start: str | Path = ".") -> InlineConfig:
    """Find the project around *start* and load its configuration.

    A project without typeinline.json or tsconfig.json gets the defaults.
    Raises :class:`ConfigError` on unreadable or invalid files.
    """
    root = find_project_root(start)
    if root is None:
        return InlineConfig()

    cfg: dict[str, Any] = {}
    config_path = root / CONFIG_NAME
    if config_path.exists():
        cfg = _read_json(config_path)
        try:
            _validate_config(cfg)
        except ValueError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc

    aliases = [parse_alias(find, repl, root) for find, repl in cfg.get("aliases", {}).items()]
    tsconfig = root / cfg.get("tsconfig", TSCONFIG_NAME)
    if tsconfig.exists():
        aliases.extend(tsconfig_aliases(tsconfig))

    clean = cfg.get("clean", {})
    return InlineConfig(
        root=root,
        aliases=tuple(aliases),
        macros=tuple(cfg.get("macros", DEFAULT_MACROS)),
        clean_newline=bool(clean.get("newline", False)),
        clean_interface=bool(clean.get("interface", False)),
    )


def _validate_config(cfg: dict[str, Any]) -> None:
    """Raise ValueError if the config is structurally invalid."""
    if not isinstance(cfg, dict):
        raise ValueError("config must be a JSON object")
    aliases = cfg.get("aliases", {})
    if not isinstance(aliases, dict) or not all(isinstance(v, str) for v in aliases.values()):
        raise ValueError("'aliases' must map strings to strings")
    macros = cfg.get("macros", [])
    if not isinstance(macros, list) or not all(isinstance(m, str) for m in macros):
        raise ValueError("'macros' must be a list of names")
    clean = cfg.get("clean", {})
    if not isinstance(clean, dict) or not all(isinstance(v, bool) for v in clean.values()):
        raise ValueError("'clean' must map 'newline' / 'interface' to booleans")
    unknown = set(clean) - {"newline", "interface"}
    if unknown:
        raise ValueError(f"unknown 'clean' option(s): {', '.join(sorted(unknown))}")
    if not isinstance(cfg.get("tsconfig", TSCONFIG_NAME), str):
        raise ValueError("'tsconfig' must be a path")
