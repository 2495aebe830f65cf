"""Tests for perch.apps.app — Markdown, dynamic modules, and up-tree dispatch."""

import datetime
from pathlib import Path

import pytest

from perch.apps.app import App
from perch.errors import InvalidPathKind, ModuleLoadError
from perch.http.request import Request
from perch.loader import RenderModule, ResourceModule
from perch.resolve.pathinfo import PathInfo, PathKind
from perch.routing.resource import Resource


def _req(path: str) -> Request:
    return Request.build(path)


class TestResourceModules:
    async def test_first_request_mounts_module(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/api/users/42"))
        assert response.status == 200
        assert response.text == "users /42"

        api = app.children["/api"]
        assert api.absolute_path == "/api"
        assert api.parent is app

    async def test_second_request_routes_through_tree(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        await app.handle(_req("/api/users/42"))

        request = _req("/api/users/7")
        target = app.route(request)
        assert target is app.children["/api"].children["/users"]
        assert request.relative_path == "/7"

        response = await app.handle(_req("/api/users/7"))
        assert response.text == "users /7"

    async def test_module_url_itself(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/api"))
        assert response.text == "api /"

        # Mounted now; same answer through routing
        response = await app.handle(_req("/api"))
        assert response.text == "api /"

    async def test_module_own_remainder(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/api/other/thing"))
        assert response.text == "api /other/thing"

    async def test_module_loaded_once(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        await app.handle(_req("/api/users/1"))
        await app.handle(_req("/api"))
        assert len(app.modules) == 1
        assert str(site_dir / "api.py") in app.modules

    async def test_non_root_app(self, site_dir: Path) -> None:
        root = Resource()
        app = App("/app", parent=root, directory=site_dir)

        response = await root.handle(_req("/app/api/users/42"))
        assert response.text == "users /42"
        assert app.children["/api"].absolute_path == "/app/api"

        response = await root.handle(_req("/app/api/users/5"))
        assert response.text == "users /5"

        response = await root.handle(_req("/app/foo"))
        assert response.text == (site_dir / "foo.html").read_text()


class TestRenderModules:
    async def test_direct(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/resources/greeter?name=Ada"))
        assert response.status == 200
        assert response.text == "Hello, Ada! (/)"

    async def test_sub_path(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/resources/greeter/x/y"))
        assert response.text == "Hello, world! (/x/y)"

    async def test_render_module_not_mounted(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        await app.handle(_req("/resources/greeter"))
        assert app.children == {}
        module = app.modules.get(str(site_dir / "resources" / "greeter.py"))
        assert isinstance(module, RenderModule)

    async def test_async_render(self, site_dir: Path) -> None:
        (site_dir / "slow.py").write_text(
            "async def render(request):\n    return ('accepted', 202)\n"
        )
        app = App(directory=site_dir)
        response = await app.handle(_req("/slow"))
        assert response.status == 202
        assert response.text == "accepted"

    async def test_extension_priority(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/both"))
        assert response.text == "both.py"


class TestUpTree:
    async def test_file_blocks_search(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        assert (await app.handle(_req("/foo/bar"))).status == 404

    async def test_directory_index_blocks_search(self, site_dir: Path) -> None:
        (site_dir / "bar.py").write_text("def render(request):\n    return 'bar.py'\n")
        app = App(directory=site_dir)
        assert (await app.handle(_req("/bar/baz"))).status == 404

    async def test_assets_never_search(self, site_dir: Path) -> None:
        (site_dir / "assets.py").write_text("def render(request):\n    return 'assets.py'\n")
        app = App(directory=site_dir)
        assert (await app.handle(_req("/assets/js/missing.js"))).status == 404

        response = await app.handle(_req("/assets/js/app.js"))
        assert response.text == (site_dir / "assets" / "js" / "app.js").read_text()

    async def test_private_paths_not_found(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        assert (await app.handle(_req("/_layouts/default"))).status == 404
        assert (await app.handle(_req("/_layouts/default.html"))).status == 404

    async def test_not_found_handler(self, site_dir: Path) -> None:
        app = App(directory=site_dir, handler=lambda request: ("gone", 410))
        response = await app.handle(_req("/nowhere/at/all"))
        assert response.status == 410
        assert response.text == "gone"


class TestBrokenModules:
    async def test_load_error_propagates(self, site_dir: Path) -> None:
        (site_dir / "broken.py").write_text("raise RuntimeError('boom')\n")
        app = App(directory=site_dir)
        with pytest.raises(ModuleLoadError, match="boom"):
            await app.handle(_req("/broken"))
        assert str(site_dir / "broken.py") not in app.modules
        assert app.children == {}

    async def test_retried_after_fix(self, site_dir: Path) -> None:
        broken = site_dir / "broken.py"
        broken.write_text("raise RuntimeError('boom')\n")
        app = App(directory=site_dir)
        with pytest.raises(ModuleLoadError):
            await app.handle(_req("/broken"))

        broken.write_text("def render(request):\n    return 'fixed'\n")
        response = await app.handle(_req("/broken"))
        assert response.text == "fixed"

    async def test_empty_module(self, site_dir: Path) -> None:
        (site_dir / "nothing.py").write_text("x = 1\n")
        app = App(directory=site_dir)
        with pytest.raises(ModuleLoadError, match="neither"):
            await app.handle(_req("/nothing"))


class TestMarkdown:
    async def test_without_renderer(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        response = await app.handle(_req("/articles/a"))
        assert response.status == 200
        assert response.text == "# AAA"
        assert response.content_type.startswith("text/markdown")

    async def test_with_renderer(self, site_dir: Path) -> None:
        def renderer(source, info, request):
            return f"<article>{source}</article>"

        app = App(directory=site_dir, markdown_renderer=renderer)
        response = await app.handle(_req("/articles/a.md"))
        assert response.text == "<article># AAA</article>"

    async def test_async_renderer_receives_info(self, site_dir: Path) -> None:
        seen = []

        async def renderer(source, info, request):
            seen.append((info.kind, info.date, request.path))
            return source.upper()

        app = App(directory=site_dir, markdown_renderer=renderer)
        response = await app.handle(_req("/articles/2008-06-14-manu"))
        assert response.text == "# MMM"
        assert seen == [
            (PathKind.MARKDOWN, datetime.date(2008, 6, 14), "/articles/2008-06-14-manu")
        ]


class TestPageList:
    async def test_articles(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        pages = await app.page_list("/articles")
        assert [info.url for info in pages] == [
            "/articles/2008-06-14-manu",
            "/articles/2009-06-12-noatche",
            "/articles/a",
        ]
        assert pages[0].date == datetime.date(2008, 6, 14)
        assert pages[2].date is None
        assert all(info.kind is PathKind.MARKDOWN for info in pages)

    async def test_root_skips_private_and_non_pages(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        urls = [info.url for info in await app.page_list()]
        assert "/foo" in urls
        assert "/" in urls
        assert "/both" in urls
        assert not any(url.startswith("/_") for url in urls)
        assert "/api" not in urls

    async def test_missing_directory(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        assert await app.page_list("/nope") == []


class TestMountedModuleType:
    async def test_resource_module_kept(self, site_dir: Path) -> None:
        app = App(directory=site_dir)
        await app.handle(_req("/api"))
        module = app.modules.get(str(site_dir / "api.py"))
        assert isinstance(module, ResourceModule)
        assert module.resource is app.children["/api"]


INDEX_MODULE = '''
from perch import Resource


def resource():
    return Resource(handler=lambda request: f"home {request.relative_path}")
'''


class TestRootIndexModule:
    async def test_renders_without_mounting(self, tmp_path: Path) -> None:
        site = tmp_path / "site"
        site.mkdir()
        (site / "index.py").write_text(INDEX_MODULE)
        app = App(directory=site)

        assert (await app.handle(_req("/"))).text == "home /"
        assert (await app.handle(_req("/"))).text == "home /"
        assert app.children == {}
        assert list(app.each()) == [app]

    async def test_non_root_app(self, tmp_path: Path) -> None:
        site = tmp_path / "site"
        site.mkdir()
        (site / "index.py").write_text(INDEX_MODULE)
        root = Resource()
        app = App("/app", parent=root, directory=site)

        assert (await root.handle(_req("/app"))).text == "home /"
        assert app.children == {}


class TestInvalidPathInfo:
    @pytest.mark.parametrize("kind", [PathKind.FILE, PathKind.MARKDOWN, PathKind.MODULE])
    async def test_found_kind_without_path(self, site_dir: Path, kind: PathKind) -> None:
        app = App(directory=site_dir)
        with pytest.raises(InvalidPathKind):
            await app.render_path_info(_req("/x"), PathInfo(kind=kind))
