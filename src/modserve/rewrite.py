"""Import specifier rewriting.

Browsers cannot resolve bare module specifiers such as ``lit-html/x.js``.
The rewriter turns every matched ``import ... from '...'`` and
``export ... from '...'`` into an absolute URL path under the public
mount points. It is a regular-expression substitution over the file
text, not a JavaScript parser: multi-line statements, dynamic
``import()`` and import-like text inside strings or comments are out
of its reach.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from modserve.config import DEFAULT_MOUNT, PACKAGE_PREFIXES, PACKAGES, RouterConfig

NODE_MODULES = "/node_modules"

# Extensions a specifier may already carry; anything else is treated
# as a directory holding its own index file.
MODULE_EXTENSIONS: tuple[str, ...] = (".js", ".mjs")


@dataclass(frozen=True, slots=True)
class ProxyMapping:
    """Translate an internal path prefix into the public prefix clients use."""

    source_prefix: str
    public_prefix: str


def build_proxy_table(config: RouterConfig) -> tuple[ProxyMapping, ...]:
    """Build the ordered mapping table: well-known packages, then folders."""
    table: list[ProxyMapping] = []
    for name in PACKAGES:
        public = config.mount.get(name) or DEFAULT_MOUNT[name]
        table.append(ProxyMapping(PACKAGE_PREFIXES[name], public))
    for entry in config.folders:
        if entry.explicit:
            table.append(ProxyMapping(entry.folder, entry.url))
    return tuple(p for p in table if p.source_prefix and p.public_prefix)


class ImportRewriter:
    """Rewrites module specifiers against a proxy mapping table.

    Usage::

        rewriter = ImportRewriter(build_proxy_table(config), config.reg_exp)
        text = rewriter.rewrite(source)
    """

    __slots__ = ("_pattern", "_proxies", "_public_prefixes")

    def __init__(self, proxies: Iterable[ProxyMapping], pattern: re.Pattern[str]) -> None:
        self._proxies = tuple(proxies)
        self._public_prefixes = tuple(p.public_prefix for p in self._proxies)
        self._pattern = pattern

    @property
    def proxies(self) -> tuple[ProxyMapping, ...]:
        return self._proxies

    def rewrite_specifier(self, specifier: str) -> str:
        """Return the URL path the browser should fetch for *specifier*."""
        if not specifier.endswith(MODULE_EXTENSIONS):
            base = specifier.rstrip("/")
            specifier = f"{base}/{base.split('/')[-1]}.js"

        if specifier.startswith("."):
            return specifier

        # Already public (rewritten before, or authored that way).
        if specifier.startswith(self._public_prefixes):
            return specifier

        if not specifier.startswith(NODE_MODULES):
            specifier = f"{NODE_MODULES}/{specifier}"

        for proxy in self._proxies:
            if specifier.startswith(proxy.source_prefix):
                return proxy.public_prefix + specifier[len(proxy.source_prefix) :]
        return specifier

    def rewrite(self, text: str) -> str:
        """Rewrite every matched import/export statement in *text*."""
        return self._pattern.sub(self._replace, text)

    def _replace(self, match: re.Match[str]) -> str:
        keyword, names, specifier = match.group(1, 2, 3)
        return f'{keyword}{names}from "{self.rewrite_specifier(specifier)}"'
