"""Tests for modserve.router: mount table, request resolution and caching."""

from pathlib import Path

import pytest

from modserve.config import RouterConfig
from modserve.rewrite import ProxyMapping
from modserve.router import NEXT, ImportRewritingStaticRouter, Resolution

LIT_HTML = "/pkgroot/node_modules/lit-html"


class RecordingHost:
    def __init__(self) -> None:
        self.mounted: list[tuple[str, object]] = []

    def mount(self, prefix: str, handler: object) -> None:
        self.mounted.append((prefix, handler))


class RecordingResponder:
    def send_file(self, path: Path) -> tuple[str, Path]:
        return ("file", path)

    def write_body(self, body: bytes, content_type: str) -> tuple[str, bytes, str]:
        return ("body", body, content_type)

    def next(self) -> str:
        return "next"


@pytest.fixture
def lit_fs(memory_fs):
    return memory_fs(
        {
            f"{LIT_HTML}/lit-html.js": "import {x} from 'lit-html/directives.js';",
            f"{LIT_HTML}/style.css": "body { color: red; }",
            f"{LIT_HTML}/directives/directives.js": "export const d = 1;",
            f"{LIT_HTML}/empty/readme.txt": "nothing",
            f"{LIT_HTML}/logo.png": b"\x89PNG",
        }
    )


def _router(fs, **options: object) -> ImportRewritingStaticRouter:
    return ImportRewritingStaticRouter(root_folder="/pkgroot", fs=fs, **options)


class TestMounts:
    def test_default_mounts(self) -> None:
        router = ImportRewritingStaticRouter(root_folder="/pkgroot")

        assert router.mounts == (
            ("/node_modules/@aspectron/flow-ux", "node_modules/@aspectron/flow-ux"),
            ("/node_modules/lit-html", "node_modules/lit-html"),
            ("/node_modules/lit-element", "node_modules/lit-element"),
            ("/node_modules/sockjs-client/dist", "node_modules/sockjs-client/dist"),
            (
                "/node_modules/@webcomponents/webcomponentsjs",
                "node_modules/@webcomponents/webcomponentsjs",
            ),
        )

    def test_folders_mount_first_in_given_order(self) -> None:
        router = ImportRewritingStaticRouter(
            root_folder="/pkgroot",
            folders=["/assets", {"url": "/app", "folder": "src/app"}],
            mount={"lit_html": "/lit"},
            sources={"lit_html": "vendor/lit"},
        )

        assert router.mounts[:2] == (("/assets", "/assets"), ("/app", "src/app"))
        assert ("/lit", "vendor/lit") in router.mounts
        assert len(router.mounts) == 7

    def test_init_registers_one_handler_per_mount(self, lit_fs) -> None:
        router = _router(lit_fs)
        host = RecordingHost()
        router.init(host)

        assert [prefix for prefix, _ in host.mounted] == [p for p, _ in router.mounts]
        _, lit_handler = host.mounted[1]
        assert lit_handler("/lit-html.js").kind == "body"

    def test_proxies_follow_the_config(self) -> None:
        router = ImportRewritingStaticRouter(
            root_folder="/pkgroot",
            folders=[{"url": "/app", "folder": "src/app"}],
            mount={"lit_html": "/lit"},
        )

        assert ProxyMapping("/node_modules/lit-html", "/lit") in router.proxies
        assert router.proxies[-1] == ProxyMapping("src/app", "/app")

    def test_config_object_is_used_as_is(self) -> None:
        config = RouterConfig(root_folder=Path("/srv"), use_cache=True)
        router = ImportRewritingStaticRouter(config)

        assert router.config is config
        assert router.root_folder == Path("/srv")


class TestResolve:
    def test_rewrites_javascript(self, lit_fs) -> None:
        resolution = _router(lit_fs).resolve("node_modules/lit-html", "/lit-html.js")

        assert resolution == Resolution(
            "body",
            body=b'import {x} from "/node_modules/lit-html/directives.js";',
            content_type="application/javascript",
        )

    def test_query_string_is_ignored(self, lit_fs) -> None:
        resolution = _router(lit_fs).resolve("node_modules/lit-html", "/lit-html.js?v=3")
        assert resolution.kind == "body"

    def test_css_content_type_and_body_unchanged(self, lit_fs) -> None:
        resolution = _router(lit_fs).resolve("node_modules/lit-html", "/style.css")

        assert resolution.content_type == "text/css"
        assert resolution.body == b"body { color: red; }"

    def test_other_files_are_sent_unread(self, lit_fs) -> None:
        router = _router(lit_fs, use_cache=True)
        resolution = router.resolve("node_modules/lit-html", "/logo.png")

        assert resolution == Resolution("file", path=Path(f"{LIT_HTML}/logo.png"))
        assert sum(lit_fs.reads.values()) == 0
        assert len(router.cache) == 0

    def test_missing_file_is_next(self, lit_fs) -> None:
        assert _router(lit_fs).resolve("node_modules/lit-html", "/nope.js") is NEXT

    def test_directory_resolves_to_index_module(self, lit_fs) -> None:
        resolution = _router(lit_fs).resolve("node_modules/lit-html", "/directives")

        assert resolution.kind == "body"
        assert resolution.body == b"export const d = 1;"

    def test_mount_root_resolves_to_package_module(self, lit_fs) -> None:
        resolution = _router(lit_fs).resolve("node_modules/lit-html", "")
        assert resolution.body.startswith(b"import {x} from")

    def test_directory_without_index_is_next(self, lit_fs) -> None:
        assert _router(lit_fs).resolve("node_modules/lit-html", "/empty") is NEXT

    def test_path_outside_folder_is_next(self, lit_fs) -> None:
        router = _router(lit_fs)

        assert router.resolve("node_modules/lit-html", "/../lit-html/lit-html.js").kind == "body"
        assert router.resolve("node_modules/lit-html", "/../../etc/passwd") is NEXT

    def test_leading_slash_on_folder_is_relative_to_root(self, lit_fs) -> None:
        resolution = _router(lit_fs).resolve("/node_modules/lit-html", "/lit-html.js")
        assert resolution.kind == "body"

    def test_read_errors_propagate(self, memory_fs) -> None:
        class Unreadable(memory_fs):
            def read_bytes(self, path: Path) -> bytes:
                raise PermissionError(path)

        fs = Unreadable({f"{LIT_HTML}/lit-html.js": ""})
        with pytest.raises(PermissionError):
            _router(fs).resolve("node_modules/lit-html", "/lit-html.js")


class TestContentCaching:
    def test_cache_reads_once(self, lit_fs) -> None:
        router = _router(lit_fs, use_cache=True)

        first = router.resolve("node_modules/lit-html", "/lit-html.js")
        second = router.resolve("node_modules/lit-html", "/lit-html.js")

        assert first.body == second.body
        assert lit_fs.reads[Path(f"{LIT_HTML}/lit-html.js")] == 1
        assert (router.cache.hits, router.cache.misses) == (1, 1)

    def test_without_cache_reads_every_time(self, lit_fs) -> None:
        router = _router(lit_fs)

        router.resolve("node_modules/lit-html", "/lit-html.js")
        router.resolve("node_modules/lit-html", "/lit-html.js")

        assert lit_fs.reads[Path(f"{LIT_HTML}/lit-html.js")] == 2
        assert len(router.cache) == 0

    def test_cached_content_ignores_later_changes(self, lit_fs) -> None:
        router = _router(lit_fs, use_cache=True)
        path = Path(f"{LIT_HTML}/style.css")

        router.resolve("node_modules/lit-html", "/style.css")
        lit_fs.files[path] = b"body { color: blue; }"

        assert router.resolve("node_modules/lit-html", "/style.css").body == b"body { color: red; }"

    def test_css_goes_through_cache(self, lit_fs) -> None:
        router = _router(lit_fs, use_cache=True)
        router.resolve("node_modules/lit-html", "/style.css")

        assert f"{LIT_HTML}/style.css" in router.cache

    def test_directory_cache_key_is_index_file(self, lit_fs) -> None:
        router = _router(lit_fs, use_cache=True)
        router.resolve("node_modules/lit-html", "/directives")

        assert f"{LIT_HTML}/directives/directives.js" in router.cache

    def test_routers_do_not_share_cache(self, lit_fs) -> None:
        first = _router(lit_fs, use_cache=True)
        second = _router(lit_fs, use_cache=True)

        first.resolve("node_modules/lit-html", "/lit-html.js")
        assert len(second.cache) == 0


class TestResolutionApply:
    def test_dispatches_to_responder(self) -> None:
        responder = RecordingResponder()

        assert NEXT.apply(responder) == "next"
        assert Resolution("file", path=Path("/a.png")).apply(responder) == ("file", Path("/a.png"))
        assert Resolution("body", body=b"x", content_type="text/css").apply(responder) == (
            "body",
            b"x",
            "text/css",
        )

    def test_file_resolution_needs_a_path(self) -> None:
        with pytest.raises(ValueError, match="needs a path"):
            Resolution("file")
