import pytest
from mkdocs.exceptions import PluginError

from plugins.digital_garden.planner import RedirectInstruction
from plugins.digital_garden.redirects import (
    REDIRECTS_FILE,
    redirect_dest,
    redirect_html,
    redirects_file_lines,
    relative_target,
    write_redirects,
)


class TestRedirects:
    def test_redirect_dest(self):
        assert redirect_dest("/old/post") == "old/post/index.html"
        assert redirect_dest("/old/post/") == "old/post/index.html"
        assert redirect_dest("/old/post", use_directory_urls=False) == "old/post.html"
        assert redirect_dest("/legacy.html") == "legacy.html"
        assert redirect_dest("/") == "index.html"

    def test_relative_target(self):
        """Test: stub targets are relative, so they survive a sub-path site_url."""
        assert relative_target("/new/home", "old/path/index.html") == "../../new/home/"
        assert relative_target("/new/home", "legacy.html") == "new/home/"
        assert relative_target("/", "old/index.html") == "../"
        assert relative_target("/new/home", "old/path.html", use_directory_urls=False) == "../new/home.html"

    def test_redirect_html(self):
        out = redirect_html("../new/home/")
        assert '<meta http-equiv="refresh" content="0; url=../new/home/">' in out
        assert 'location.href="../new/home/"' in out
        assert '<link rel="canonical" href="../new/home/">' in out

    def test_redirect_html_escapes(self):
        """Test: attribute values are HTML escaped and the script gets a JS string literal."""
        out = redirect_html('/a"b<c')
        assert 'href="/a&quot;b&lt;c"' in out
        assert 'url=/a&quot;b&lt;c"' in out
        assert 'location.href="/a\\"b<c"' in out
        assert 'href="/a"b' not in out

    def test_redirects_file_lines(self):
        redirects = [RedirectInstruction("/old", "/new/home"), RedirectInstruction("/gone", "/", is_permanent=False)]
        assert redirects_file_lines(redirects) == ["/old /new/home/ 301", "/gone / 302"]
        assert redirects_file_lines(redirects, use_directory_urls=False) == [
            "/old /new/home.html 301",
            "/gone / 302",
        ]

    def test_write_redirects(self, tmp_path):
        redirects = [
            RedirectInstruction("/old/one", "/new"),
            RedirectInstruction("/old/two", "/new", redirect_in_browser=False, is_permanent=False),
        ]
        written = write_redirects(tmp_path, redirects)

        assert written == 1
        assert "url=../../new/" in (tmp_path / "old" / "one" / "index.html").read_text(encoding="utf-8")
        assert not (tmp_path / "old" / "two").exists()
        assert (tmp_path / REDIRECTS_FILE).read_text(encoding="utf-8") == (
            "/old/one /new/ 301\n/old/two /new/ 302\n"
        )

    def test_redirect_outside_site_dir_rejected(self, tmp_path):
        """Test: a legacy path climbing out of site_dir aborts before anything is written."""
        site = tmp_path / "site"
        site.mkdir()
        redirects = [
            RedirectInstruction("/fine", "/new"),
            RedirectInstruction("/../escaped", "/new"),
        ]

        with pytest.raises(PluginError, match="outside the site directory"):
            write_redirects(site, redirects)

        assert not (tmp_path / "escaped").exists()
        assert list(site.iterdir()) == []

    def test_redirect_over_published_page_skipped(self, tmp_path):
        """Test: a stub never replaces a page the build published."""
        page = tmp_path / "about" / "index.html"
        page.parent.mkdir()
        page.write_text("<p>About</p>", encoding="utf-8")
        redirects = [
            RedirectInstruction("/about", "/new"),
            RedirectInstruction("/old", "/new"),
        ]

        written = write_redirects(tmp_path, redirects, published={"about/index.html"})

        assert written == 1
        assert page.read_text(encoding="utf-8") == "<p>About</p>"
        assert (tmp_path / "old" / "index.html").exists()
        assert (tmp_path / REDIRECTS_FILE).read_text(encoding="utf-8") == "/old /new/ 301\n"

    def test_no_redirects_file_when_disabled(self, tmp_path):
        write_redirects(tmp_path, [RedirectInstruction("/a", "/b")], redirects_file=False)
        assert not (tmp_path / REDIRECTS_FILE).exists()
        assert (tmp_path / "a" / "index.html").exists()

    def test_nothing_to_write(self, tmp_path):
        assert write_redirects(tmp_path, []) == 0
        assert list(tmp_path.iterdir()) == []
