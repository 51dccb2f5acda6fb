"""
Page, redirect and pagination planning for the digital garden.

The planners only derive instructions and hand them to an ``Actions`` sink;
binding templates to renderers and writing output is left to the host.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from plugins.digital_garden.content_graph import ContentQueryError, Document, QueryResult

log = logging.getLogger("mkdocs.plugins.digital_garden")


class Template(Enum):
    POST = "post.html"
    POSTS_LIST = "posts-list.html"
    WIKI = "wiki.html"


@dataclass(frozen=True)
class PageInstruction:
    path: str
    template: Template
    context: Any


@dataclass(frozen=True)
class RedirectInstruction:
    from_path: str
    to_path: str
    redirect_in_browser: bool = True
    is_permanent: bool = True


@dataclass(frozen=True)
class PaginationEntry:
    current_page: int
    skip: int
    limit: int
    is_first: bool
    is_last: bool
    next_page: Optional[str]
    prev_page: Optional[str]


@dataclass(frozen=True)
class PlannerOptions:
    posts_path: str = "/posts"
    posts_per_page: int = 9999
    # Accepted for templates; never used to derive paths or templates.
    wiki_path: str = "/wiki"


class Actions(Protocol):
    def create_page(self, path: str, template: Template, context: Any) -> None:
        ...

    def create_redirect(
        self,
        from_path: str,
        to_path: str,
        redirect_in_browser: bool,
        is_permanent: bool,
    ) -> None:
        ...


def select_template(source_instance_name: str) -> Template:
    if source_instance_name == "wiki":
        return Template.WIKI
    return Template.POST


def resolve_path(document: Document) -> str:
    """Explicit front matter path, else ``/{collection}/{file base name}``."""
    if document.frontmatter.path:
        return document.frontmatter.path
    return f"/{document.parent.source_instance_name}/{document.parent.name}"


def plan_pages(result: QueryResult, actions: Actions) -> None:
    """Emit one page per document and one redirect per legacy path.

    Nothing is emitted when the query reported errors.
    """
    if result.errors:
        for error in result.errors:
            log.error(f"[digital_garden] {error}")
        raise ContentQueryError("Could not query articles")

    for doc in result.documents:
        path = resolve_path(doc)

        for from_path in doc.frontmatter.redirects:
            actions.create_redirect(
                from_path=from_path,
                to_path=path,
                redirect_in_browser=True,
                is_permanent=True,
            )

        actions.create_page(
            path=path,
            template=select_template(doc.parent.source_instance_name),
            context=doc,
        )


def pagination_path(posts_path: str, page: int) -> str:
    if page == 1:
        return posts_path
    return f"{posts_path.rstrip('/')}/{page}"


def output_location(path: str, use_directory_urls: bool = True) -> Tuple[str, str]:
    """Return ``(dest_uri, url)`` for a site path such as ``/posts/2``."""
    stripped = path.strip("/")
    if not stripped:
        return "index.html", "./"
    if use_directory_urls:
        return f"{stripped}/index.html", f"{stripped}/"
    return f"{stripped}.html", f"{stripped}.html"


def page_url(path: str, use_directory_urls: bool = True) -> str:
    """Site relative url of the page planned at ``path``."""
    return output_location(path, use_directory_urls)[1]


def build_pagination(total: int, posts_per_page: int, posts_path: str) -> List[PaginationEntry]:
    if posts_per_page < 1:
        raise ValueError(f"posts_per_page must be at least 1, got {posts_per_page}")

    num_pages = math.ceil(total / posts_per_page)
    entries = []
    for current_page in range(1, num_pages + 1):
        is_first = current_page == 1
        is_last = current_page == num_pages
        entries.append(
            PaginationEntry(
                current_page=current_page,
                skip=(current_page - 1) * posts_per_page,
                limit=posts_per_page,
                is_first=is_first,
                is_last=is_last,
                next_page=None if is_last else pagination_path(posts_path, current_page + 1),
                prev_page=None if is_first else pagination_path(posts_path, current_page - 1),
            )
        )
    return entries


def plan_pagination(documents: Sequence[Document], options: PlannerOptions, actions: Actions) -> None:
    entries = build_pagination(len(documents), options.posts_per_page, options.posts_path)
    for entry in entries:
        actions.create_page(
            path=pagination_path(options.posts_path, entry.current_page),
            template=Template.POSTS_LIST,
            context=entry,
        )
    log.debug(f"[digital_garden] planned {len(entries)} list pages for {len(documents)} documents")
