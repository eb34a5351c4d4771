"""Router configuration.

RouterConfig is a frozen dataclass: immutable after creation, no
string-key dict lookups at request time. ``from_options()`` is the
permissive front door; anything missing or malformed falls back to a
default instead of failing startup.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

logger = logging.getLogger("modserve.config")

OPTION_NAMES: frozenset[str] = frozenset(
    {"root_folder", "reg_exp", "use_cache", "folders", "mount", "sources"}
)

# Single-line static ``import ... from '...'`` / ``export ... from '...'``.
# Groups: keyword, binding clause, specifier.
DEFAULT_IMPORT_PATTERN: re.Pattern[str] = re.compile(
    r"""\b(import|export)([^'"\w\n][^'"\n]*?)from[ \t]*['"]([^'"\n]+)['"]"""
)

# Well-known front-end packages, in mount order.
PACKAGES: tuple[str, ...] = ("flow_ux", "lit_html", "lit_element", "sockjs", "webcomponents")

# Prefix each package carries inside import specifiers (after normalization).
PACKAGE_PREFIXES: Mapping[str, str] = MappingProxyType(
    {
        "flow_ux": "/node_modules/@aspectron/flow-ux",
        "lit_html": "/node_modules/lit-html",
        "lit_element": "/node_modules/lit-element",
        "sockjs": "/node_modules/sockjs-client/dist",
        "webcomponents": "/node_modules/@webcomponents/webcomponentsjs",
    }
)

DEFAULT_MOUNT: Mapping[str, str] = PACKAGE_PREFIXES

DEFAULT_SOURCES: Mapping[str, str] = MappingProxyType(
    {name: prefix.lstrip("/") for name, prefix in PACKAGE_PREFIXES.items()}
)


def default_root_folder() -> Path:
    """Two levels above this module: the folder holding the package directory."""
    return Path(__file__).resolve().parents[1]


@dataclass(frozen=True, slots=True)
class FolderMount:
    """An extra folder served at a public URL prefix."""

    url: str
    folder: str

    # True when both url and folder were given, so imports that name
    # the folder get rewritten to the url.
    explicit: bool = False


def _merge(defaults: Mapping[str, str], overrides: Any) -> Mapping[str, str]:
    merged = dict(defaults)
    if isinstance(overrides, Mapping):
        merged.update({k: v for k, v in overrides.items() if isinstance(v, str) and v})
    return MappingProxyType(merged)


def normalize_folders(folders: Any) -> tuple[FolderMount, ...]:
    """Turn the ``folders`` option into FolderMount entries.

    Accepts bare strings (served at the same path), mappings with
    ``url``/``folder`` keys, ``(url, folder)`` pairs and FolderMount
    instances. Unusable entries are skipped.
    """
    if folders is None or isinstance(folders, str | bytes) or not isinstance(folders, Iterable):
        return ()

    result: list[FolderMount] = []
    for entry in folders:
        if isinstance(entry, FolderMount):
            result.append(entry)
        elif isinstance(entry, str) and entry:
            result.append(FolderMount(url=entry, folder=entry))
        elif isinstance(entry, Mapping):
            url = entry.get("url") or ""
            folder = entry.get("folder") or ""
            if url and folder:
                result.append(FolderMount(url=url, folder=folder, explicit=True))
            elif url or folder:
                result.append(FolderMount(url=url or folder, folder=url or folder))
            else:
                logger.warning("Ignoring folder entry without url or folder: %r", entry)
        elif isinstance(entry, tuple) and len(entry) == 2 and all(entry):
            result.append(FolderMount(url=entry[0], folder=entry[1], explicit=True))
        else:
            logger.warning("Ignoring unusable folder entry: %r", entry)
    return tuple(result)


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have defaults. Override what you need::

        config = RouterConfig(root_folder=Path("."), use_cache=True)

    ``mount`` maps a well-known package name to the public URL prefix it
    is served under; ``sources`` maps it to the folder (relative to
    ``root_folder``) its files are read from. Both are merged over the
    defaults, so unmentioned packages keep their default prefix.
    """

    root_folder: Path = field(default_factory=default_root_folder)
    reg_exp: re.Pattern[str] = DEFAULT_IMPORT_PATTERN
    use_cache: bool = False
    folders: tuple[FolderMount, ...] = ()
    mount: Mapping[str, str] = DEFAULT_MOUNT
    sources: Mapping[str, str] = DEFAULT_SOURCES

    @classmethod
    def from_options(cls, **options: Any) -> RouterConfig:
        """Build a config from loosely-typed options, defaulting bad values.

        Unknown keys are ignored with a warning. A ``reg_exp`` given as a string is
        compiled; a string that fails to compile raises ``re.error``.
        """
        for name in sorted(options.keys() - OPTION_NAMES):
            logger.warning("Ignoring unknown router option %r", name)

        root = options.get("root_folder")
        root_folder = Path(root) if isinstance(root, str | Path) and str(root) else None

        reg_exp = options.get("reg_exp")
        if isinstance(reg_exp, str) and reg_exp:
            reg_exp = re.compile(reg_exp)
        elif not isinstance(reg_exp, re.Pattern):
            reg_exp = DEFAULT_IMPORT_PATTERN

        return cls(
            root_folder=root_folder or default_root_folder(),
            reg_exp=reg_exp,
            use_cache=bool(options.get("use_cache")),
            folders=normalize_folders(options.get("folders")),
            mount=_merge(DEFAULT_MOUNT, options.get("mount")),
            sources=_merge(DEFAULT_SOURCES, options.get("sources")),
        )
