#  Site Server - Static Resolution Tests
#
#  Lookup order across directories, index files, traversal guards and
#  paths the filesystem rejects.
#
#  Depends on: siteserver/static.py
#  Used by:    pytest

import errno
import os

import pytest
from starlette.staticfiles import StaticFiles

from siteserver.exceptions import NotFoundError
from siteserver.static import StaticResolver


class TestStaticResolver:
    def test_from_settings_uses_lookup_order(self, settings):
        resolver = StaticResolver.from_settings(settings)
        assert resolver.directories == [
            settings.base_dir / "build",
            settings.base_dir / "build" / "js",
            settings.base_dir / "build" / "css",
        ]

    def test_file_in_site_root(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/robots.txt")
        assert result.found
        assert result.error is None
        assert result.path == os.path.realpath(static_root / "robots.txt")

    def test_file_in_css_dir(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/static-asset.css")
        assert result.path == os.path.realpath(static_root / "css" / "static-asset.css")

    def test_first_directory_wins(self, settings, static_root):
        (static_root / "app.js").write_text("root copy")
        result = StaticResolver.from_settings(settings).resolve("/app.js")
        assert result.path == os.path.realpath(static_root / "app.js")

    def test_root_resolves_index(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/")
        assert result.path == os.path.realpath(static_root / "index.html")

    def test_directory_without_index_is_not_found(self, settings, static_root):
        (static_root / "empty").mkdir()
        result = StaticResolver.from_settings(settings).resolve("/empty")
        assert not result.found
        assert isinstance(result.error, NotFoundError)

    def test_missing_file_returns_error(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/missing.png")
        assert result.path is None
        assert result.error.code == 404
        assert result.error.message == "404 - Page not found."

    def test_traversal_rejected(self, settings, static_root):
        (settings.base_dir / "secret.txt").write_text("nope")
        result = StaticResolver.from_settings(settings).resolve("/../secret.txt")
        assert not result.found

    def test_missing_directories_never_match(self, tmp_path):
        resolver = StaticResolver([tmp_path / "nowhere"])
        assert not resolver.resolve("/index.html").found

    def test_dot_dot_prefixed_name_is_a_file(self, settings, static_root):
        (static_root / "..notes.txt").write_text("notes")
        result = StaticResolver.from_settings(settings).resolve("/..notes.txt")
        assert result.path == os.path.realpath(static_root / "..notes.txt")

    def test_over_long_segment_is_not_found(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/" + "a" * 300)
        assert not result.found
        assert isinstance(result.error, NotFoundError)

    def test_over_long_nested_segment_is_not_found(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/docs/" + "b" * 300 + "/index.html")
        assert not result.found

    def test_embedded_null_byte_is_not_found(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/foo\x00bar")
        assert not result.found
        assert isinstance(result.error, NotFoundError)

    def test_file_used_as_directory_is_not_found(self, settings, static_root):
        result = StaticResolver.from_settings(settings).resolve("/robots.txt/inner")
        assert not result.found

    def test_unexpected_os_errors_propagate(self, settings, static_root, monkeypatch):
        def broken_lookup(self, path):
            raise OSError(errno.EIO, "I/O error")

        monkeypatch.setattr(StaticFiles, "lookup_path", broken_lookup)
        with pytest.raises(OSError):
            StaticResolver.from_settings(settings).resolve("/robots.txt")
