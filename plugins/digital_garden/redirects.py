"""
Writes redirect instructions into the built site.

Browser redirects become small HTML stubs at the legacy location; all
redirects can additionally be listed in a Netlify style ``_redirects`` file
so hosts that support it answer with a real 301/302.
"""

import html
import logging
import posixpath
from pathlib import Path
from typing import Collection, Iterable, List, Union

from mkdocs.exceptions import PluginError

from plugins.digital_garden.planner import RedirectInstruction, page_url

log = logging.getLogger("mkdocs.plugins.digital_garden")

REDIRECTS_FILE = "_redirects"

REDIRECT_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>Redirecting...</title>
    <link rel="canonical" href="{url}">
    <meta name="robots" content="noindex">
    <script>var anchor=window.location.hash.substr(1);location.href="{js_url}"+(anchor?"#"+anchor:"")</script>
    <meta http-equiv="refresh" content="0; url={url}">
</head>
<body>
Redirecting to <a href="{url}">{url}</a>...
</body>
</html>
"""


def redirect_html(to_url: str) -> str:
    url = html.escape(to_url, quote=True)
    js_url = to_url.replace("\\", "\\\\").replace('"', '\\"').replace("</", "<\\/")
    return REDIRECT_TEMPLATE.format(url=url, js_url=js_url)


def redirect_dest(from_path: str, use_directory_urls: bool = True) -> str:
    """Site relative file that answers requests for ``from_path``."""
    stripped = from_path.strip("/")
    if not stripped:
        return "index.html"
    if stripped.endswith(".html"):
        return stripped
    if use_directory_urls or from_path.endswith("/"):
        return f"{stripped}/index.html"
    return f"{stripped}.html"


def relative_target(to_path: str, dest: str, use_directory_urls: bool = True) -> str:
    """Url of the page planned at ``to_path``, relative to the stub at ``dest``."""
    target = page_url(to_path, use_directory_urls)
    rel = posixpath.relpath(target, start=posixpath.dirname(dest) or ".")
    if target.endswith("/") and not rel.endswith("/"):
        rel += "/"
    return rel


def redirects_file_lines(
    redirects: Iterable[RedirectInstruction], use_directory_urls: bool = True
) -> List[str]:
    lines = []
    for r in redirects:
        url = page_url(r.to_path, use_directory_urls)
        target = "/" if url == "./" else f"/{url}"
        lines.append(f"{r.from_path} {target} {301 if r.is_permanent else 302}")
    return lines


def _checked_dest(site_root: Path, from_path: str, use_directory_urls: bool) -> str:
    dest = posixpath.normpath(redirect_dest(from_path, use_directory_urls))
    resolved = (site_root / dest).resolve()
    if site_root not in resolved.parents:
        raise PluginError(
            f"[digital_garden] redirect from '{from_path}' points outside the site directory"
        )
    return dest


def write_redirects(
    site_dir: Union[str, Path],
    redirects: Iterable[RedirectInstruction],
    use_directory_urls: bool = True,
    redirects_file: bool = True,
    published: Collection[str] = (),
) -> int:
    """Write redirect stubs (and the ``_redirects`` file) below ``site_dir``.

    ``published`` holds the site relative files of the built pages; a
    redirect whose stub would replace one of them is skipped. Every legacy
    path is checked before anything is written. Returns the number of HTML
    stubs written.
    """
    site_root = Path(site_dir).resolve()
    checked = [
        (r, _checked_dest(site_root, r.from_path, use_directory_urls))
        for r in redirects
    ]

    kept = []
    for redirect, dest in checked:
        if dest in published:
            log.warning(
                f"[digital_garden] redirect from '{redirect.from_path}' skipped, "
                f"{dest} is a published page"
            )
            continue
        kept.append((redirect, dest))

    written = 0
    for redirect, dest in kept:
        if not redirect.redirect_in_browser:
            continue
        target = relative_target(redirect.to_path, dest, use_directory_urls)
        path = site_root / dest
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(redirect_html(target), encoding="utf-8")
        log.debug(f"[digital_garden] redirect {redirect.from_path} -> {target}")
        written += 1

    if redirects_file and kept:
        lines = redirects_file_lines([r for r, _ in kept], use_directory_urls)
        (site_root / REDIRECTS_FILE).write_text("\n".join(lines) + "\n", encoding="utf-8")

    log.info(f"[digital_garden] wrote {written} redirect pages")
    return written
