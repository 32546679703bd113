"""
Unit tests for the path resolver.
"""

import os

import pytest

from plainserver.handlers.static import PathResolver, ResolvedFile, resolve
from plainserver.http.errors import ForbiddenError, NotFoundError


running_as_root = hasattr(os, "geteuid") and os.geteuid() == 0


@pytest.fixture
def resolver(doc_root) -> PathResolver:
    return PathResolver(doc_root)


class TestResolve:
    """Paths that resolve to files."""

    def test_root_maps_to_index(self, resolver, doc_root):
        resolved = resolver.resolve("/")

        assert resolved.path == (doc_root / "index.html").resolve()
        assert resolved.size == 20
        assert resolved.name == "index.html"

    def test_plain_file(self, resolver, doc_root):
        resolved = resolver.resolve("/style.css")

        assert resolved == ResolvedFile(
            path=(doc_root / "style.css").resolve(),
            size=len(b"body { color: red; }"),
            name="style.css",
        )

    def test_subdirectory_maps_to_its_index(self, resolver, doc_root):
        resolved = resolver.resolve("/docs")
        assert resolved.path == (doc_root / "docs" / "index.html").resolve()

        resolved = resolver.resolve("/docs/")
        assert resolved.name == "index.html"

    def test_custom_default_page(self, doc_root):
        (doc_root / "docs" / "home.htm").write_bytes(b"home")

        resolved = PathResolver(doc_root, default_page="home.htm").resolve("/docs")

        assert resolved.name == "home.htm"
        assert resolved.size == 4

    def test_dot_segments_inside_root_are_allowed(self, resolver, doc_root):
        resolved = resolver.resolve("/docs/../style.css")
        assert resolved.path == (doc_root / "style.css").resolve()

    def test_module_level_resolve(self, doc_root):
        assert resolve("/", doc_root).name == "index.html"


class TestNotFound:
    """Paths with nothing behind them."""

    def test_missing_file(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("/missing.html")

    def test_directory_without_index(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("/empty/")

    def test_missing_root(self, tmp_path):
        with pytest.raises(NotFoundError):
            PathResolver(tmp_path / "nope").resolve("/")

    def test_percent_encoding_is_not_decoded(self, resolver, doc_root):
        (doc_root / "a b.txt").write_bytes(b"x")

        with pytest.raises(NotFoundError):
            resolver.resolve("/a%20b.txt")
        assert resolver.resolve("/a b.txt").size == 1

    def test_nul_byte(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("/index.html\x00.png")

    @pytest.mark.parametrize("path", [
        "/" + "a" * 300 + ".html",
        "/" + "a" * 300 + "/",
        "/docs/" + "b" * 300 + "/index.html",
    ])
    def test_name_too_long(self, resolver, path):
        with pytest.raises(NotFoundError):
            resolver.resolve(path)

    def test_symlink_loop(self, resolver, doc_root):
        (doc_root / "loop").symlink_to(doc_root / "loop")

        with pytest.raises(NotFoundError):
            resolver.resolve("/loop")

    def test_path_without_leading_slash(self, resolver):
        # Appended verbatim: <root>index.html is a sibling of the root
        with pytest.raises((NotFoundError, ForbiddenError)):
            resolver.resolve("index.html")

    def test_special_file_is_not_served(self, resolver, doc_root):
        if not hasattr(os, "mkfifo"):
            pytest.skip("mkfifo not available")
        os.mkfifo(doc_root / "pipe")

        with pytest.raises(NotFoundError):
            resolver.resolve("/pipe")


class TestForbidden:
    """Paths that exist but must not be served."""

    def test_traversal_outside_root(self, resolver, tmp_path):
        (tmp_path / "secret.txt").write_bytes(b"secret")

        with pytest.raises(ForbiddenError):
            resolver.resolve("/../secret.txt")

    def test_traversal_to_missing_file_is_still_forbidden(self, resolver):
        with pytest.raises(ForbiddenError):
            resolver.resolve("/../../../../etc/does-not-exist")

    def test_sibling_with_common_prefix(self, doc_root, tmp_path):
        sibling = tmp_path / "wwwx"
        sibling.mkdir()
        (sibling / "x.txt").write_bytes(b"x")

        with pytest.raises(ForbiddenError):
            PathResolver(doc_root).resolve("/../wwwx/x.txt")

    def test_symlink_escaping_root(self, resolver, doc_root, tmp_path):
        (tmp_path / "outside.txt").write_bytes(b"outside")
        (doc_root / "link.txt").symlink_to(tmp_path / "outside.txt")

        with pytest.raises(ForbiddenError):
            resolver.resolve("/link.txt")

    @pytest.mark.skipif(running_as_root, reason="root ignores file permissions")
    def test_unreadable_file(self, resolver, doc_root):
        secret = doc_root / "secret.html"
        secret.write_bytes(b"secret")
        secret.chmod(0o000)
        try:
            with pytest.raises(ForbiddenError):
                resolver.resolve("/secret.html")
        finally:
            secret.chmod(0o644)
