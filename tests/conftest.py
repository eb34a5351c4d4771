"""Shared fixtures: a package tree on disk and an in-memory file system."""

from collections import Counter
from pathlib import Path

import pytest

LIT_HTML_JS = "import {directive} from 'lit-html/directive.js';\nexport * from './lib/render.js';\n"
LIT_ELEMENT_JS = "import {html} from 'lit-html';\nexport {html};\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    """A package root with node_modules and an app folder."""
    lit_html = tmp_path / "node_modules" / "lit-html"
    (lit_html / "lib").mkdir(parents=True)
    (lit_html / "lit-html.js").write_text(LIT_HTML_JS)
    (lit_html / "directive.js").write_text("export const directive = 1;\n")
    (lit_html / "lib" / "render.js").write_text("export const render = () => {};\n")
    (lit_html / "style.css").write_text('@import url("base.css");\nbody { color: red; }\n')
    (lit_html / "README.md").write_text("# lit-html\n")

    directives = lit_html / "directives"
    directives.mkdir()
    (directives / "directives.js").write_text("import {x} from '../directive.js';\n")

    lit_element = tmp_path / "node_modules" / "lit-element"
    lit_element.mkdir()
    (lit_element / "lit-element.js").write_text(LIT_ELEMENT_JS)

    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "logo.png").write_bytes(PNG_BYTES)

    app = tmp_path / "app"
    app.mkdir()
    (app / "main.js").write_text(
        "import {LitElement} from 'lit-element';\nimport {render} from './render.js';\n"
    )
    return tmp_path


class MemoryFileSystem:
    """FileSystem double holding files in a dict and counting reads."""

    def __init__(self, files: dict[str, bytes | str]) -> None:
        self.files = {
            Path(name): data.encode("utf-8") if isinstance(data, str) else data
            for name, data in files.items()
        }
        self.reads: Counter[Path] = Counter()

    def exists(self, path: Path) -> bool:
        return path in self.files or self.is_dir(path)

    def is_dir(self, path: Path) -> bool:
        return any(name != path and name.is_relative_to(path) for name in self.files)

    def read_bytes(self, path: Path) -> bytes:
        self.reads[path] += 1
        return self.files[path]


@pytest.fixture
def memory_fs():
    """Factory for in-memory file systems: ``memory_fs({path: content})``."""
    return MemoryFileSystem
