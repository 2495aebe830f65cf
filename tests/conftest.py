"""Shared pytest fixtures for perch tests.

Provides ``site_dir``, a small site on disk covering every kind the
resolvers classify: HTML pages, directory indexes, static assets,
Markdown sources, and dynamic Python modules.
"""

from pathlib import Path

import pytest

API_MODULE = '''
from perch import Resource


def resource():
    api = Resource(handler=lambda request: f"api {request.relative_path}")
    Resource("/users", parent=api, handler=lambda request: f"users {request.relative_path}")
    return api
'''

GREETER_MODULE = '''
def render(request):
    name = request.query.get("name", "world")
    return f"Hello, {name}! ({request.relative_path})"
'''


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a site tree under a temporary directory."""
    site = tmp_path / "site"
    site.mkdir()

    (site / "index.html").write_text("<h1>Index</h1>")
    (site / "foo.html").write_text("<h1>Foo</h1>")

    bar = site / "bar"
    bar.mkdir()
    (bar / "index.html").write_text("<h1>Bar</h1>")

    js = site / "js"
    js.mkdir()
    (js / "a.js").write_text("console.log('a');")

    # A directory without an index
    (site / "empty").mkdir()

    # Same stem, several extensions: priority decides
    (site / "both.py").write_text("def render(request):\n    return 'both.py'\n")
    (site / "both.md").write_text("# both.md")

    articles = site / "articles"
    articles.mkdir()
    (articles / "a.md").write_text("# AAA")
    (articles / "2008-06-14-manu.md").write_text("# MMM")
    (articles / "2009-06-12-noatche.md").write_text("# NNN")
    (articles / "notes.txt").write_text("not a page")

    layouts = site / "_layouts"
    layouts.mkdir()
    (layouts / "default.html").write_text("<html>{{ content }}</html>")

    assets = site / "assets"
    (assets / "js").mkdir(parents=True)
    (assets / "js" / "app.js").write_text("console.log('app');")

    (site / "api.py").write_text(API_MODULE)

    resources = site / "resources"
    resources.mkdir()
    (resources / "greeter.py").write_text(GREETER_MODULE)

    return site
