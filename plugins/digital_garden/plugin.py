"""
An MkDocs plugin that turns posts, pages and wiki entries into a digital garden:
one page per document at its planned path, paginated post lists and redirects
for legacy URLs.
"""

import logging
import os
from typing import Any, Dict, List, Set

from mkdocs.config import config_options as c
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin
from mkdocs.structure.files import File, Files, InclusionLevel
from mkdocs.structure.pages import Page

from plugins.digital_garden.bootstrap import ensure_content_dirs
from plugins.digital_garden.build_config import patch_build_config
from plugins.digital_garden.content_graph import Document, query_documents
from plugins.digital_garden.planner import (
    PageInstruction,
    PaginationEntry,
    PlannerOptions,
    Template,
    output_location,
    page_url,
    plan_pages,
    plan_pagination,
)
from plugins.digital_garden.redirects import write_redirects
from plugins.digital_garden.registry import PageRegistry

log = logging.getLogger("mkdocs.plugins.digital_garden")

# Source directory (inside the virtual docs tree) of the generated list pages.
GENERATED_DIR = "_digital_garden"


def retarget(file: File, path: str, use_directory_urls: bool = True) -> None:
    """Make MkDocs write ``file`` to the output location of ``path``."""
    dest_uri, url = output_location(path, use_directory_urls)
    file.dest_uri = dest_uri
    file.url = url
    file.abs_dest_path = os.path.normpath(os.path.join(file.dest_dir, dest_uri))


def normalize_site_path(value: str) -> str:
    return "/" + value.strip().strip("/")


class DigitalGardenPlugin(BasePlugin):
    """MkDocs plugin that plans the pages of a posts/wiki garden.

    Configuration options (all optional):
    - posts_path (str): Site path of the first post list page.
    - posts_per_page (int): Posts per list page; the default keeps everything on one page.
    - wiki_path (str): Site path of the wiki, exposed to templates.
    - redirects_file (bool): Also write a `_redirects` file listing every redirect.
    """

    config_scheme = (
        ("posts_path",     c.Type(str, default="/posts")),
        ("posts_per_page", c.Type(int, default=9999)),
        ("wiki_path",      c.Type(str, default="/wiki")),
        ("redirects_file", c.Type(bool, default=True)),
    )

    def __init__(self):
        super().__init__()
        self._reset()

    def _reset(self) -> None:
        self.registry = PageRegistry()
        self.documents: List[Document] = []
        # src_uri -> planned page, for the per-page hooks
        self.planned: Dict[str, PageInstruction] = {}
        # Document src_uri -> final page url, for list pages
        self.urls: Dict[str, str] = {}
        # Site relative files of everything MkDocs will write
        self.published: Set[str] = set()

    @property
    def options(self) -> PlannerOptions:
        return PlannerOptions(
            posts_path=self.config["posts_path"],
            posts_per_page=self.config["posts_per_page"],
            wiki_path=self.config["wiki_path"],
        )

    # -------------------------------
    # Build configuration
    # -------------------------------

    def on_config(self, config: MkDocsConfig) -> MkDocsConfig:
        if self.config["posts_per_page"] < 1:
            raise PluginError(
                f"[digital_garden] posts_per_page must be at least 1, "
                f"got {self.config['posts_per_page']}"
            )
        self.config["posts_path"] = normalize_site_path(self.config["posts_path"])
        self.config["wiki_path"] = normalize_site_path(self.config["wiki_path"])

        patch_build_config(config)
        self._reset()
        return config

    def on_pre_build(self, *, config: MkDocsConfig) -> None:
        ensure_content_dirs(config["docs_dir"])

    # -------------------------------
    # Page planning
    # -------------------------------

    def on_files(self, files: Files, *, config: MkDocsConfig) -> Files:
        result = query_documents(files)

        registry = PageRegistry()
        # Raises before anything is registered if the query failed.
        plan_pages(result, registry)
        # Only documents that won their output path are listed.
        winners = {i.context.src_uri for i in registry.document_pages()}
        documents = [doc for doc in result.documents if doc.src_uri in winners]
        plan_pagination(documents, self.options, registry)

        for src_uri in result.excluded:
            self._drop(files, src_uri)

        use_directory_urls = config["use_directory_urls"]
        planned_src_uris = set()
        for instruction in registry.document_pages():
            doc: Document = instruction.context
            file = files.get_file_from_path(doc.src_uri)
            retarget(file, instruction.path, use_directory_urls)
            self.planned[doc.src_uri] = instruction
            self.urls[doc.src_uri] = file.url
            planned_src_uris.add(doc.src_uri)

        # Documents that lost a path collision are not published.
        for doc in result.documents:
            if doc.src_uri not in planned_src_uris:
                self._drop(files, doc.src_uri)

        for instruction in registry.list_pages():
            entry: PaginationEntry = instruction.context
            src_uri = f"{GENERATED_DIR}/posts-{entry.current_page}.md"
            file = File.generated(
                config,
                src_uri,
                content=self._list_page_markdown(entry),
                inclusion=InclusionLevel.NOT_IN_NAV,
            )
            retarget(file, instruction.path, use_directory_urls)
            files.append(file)
            self.planned[src_uri] = instruction

        self.registry = registry
        self.documents = [doc for doc in documents if doc.src_uri in planned_src_uris]
        self.published = {file.dest_uri for file in files}
        log.info(
            f"[digital_garden] planned {len(registry.pages)} pages "
            f"and {len(registry.redirects)} redirects"
        )
        return files

    def _drop(self, files: Files, src_uri: str) -> None:
        file = files.get_file_from_path(src_uri)
        if file is not None:
            files.remove(file)
            log.debug(f"[digital_garden] not publishing {src_uri}")

    @staticmethod
    def _list_page_markdown(entry: PaginationEntry) -> str:
        title = "Posts" if entry.is_first else f"Posts, page {entry.current_page}"
        return f"# {title}\n"

    # -------------------------------
    # Template binding
    # -------------------------------

    def on_page_markdown(self, markdown: str, *, page: Page, config: MkDocsConfig, files: Files) -> str:
        instruction = self.planned.get(page.file.src_uri)
        if instruction is not None:
            page.meta["template"] = instruction.template.value
        return markdown

    def on_page_context(self, context: Dict[str, Any], *, page: Page, config: MkDocsConfig, nav) -> Dict[str, Any]:
        instruction = self.planned.get(page.file.src_uri)
        if instruction is None:
            return context

        context["page_context"] = instruction.context
        use_directory_urls = config["use_directory_urls"]
        context["garden"] = {
            "posts_path": self.config["posts_path"],
            "posts_per_page": self.config["posts_per_page"],
            "wiki_path": self.config["wiki_path"],
            "posts_url": page_url(self.config["posts_path"], use_directory_urls),
            "wiki_url": page_url(self.config["wiki_path"], use_directory_urls),
        }
        if instruction.template is Template.POSTS_LIST:
            entry: PaginationEntry = instruction.context
            context["posts"] = self.list_posts(entry)
            # Host urls of the planned neighbours; the entry keeps the site paths.
            context["prev_url"] = page_url(entry.prev_page, use_directory_urls) if entry.prev_page else None
            context["next_url"] = page_url(entry.next_page, use_directory_urls) if entry.next_page else None
        return context

    def list_posts(self, entry: PaginationEntry) -> List[Dict[str, Any]]:
        """Summaries of the documents shown on one list page."""
        docs = self.documents[entry.skip:entry.skip + entry.limit]
        return [
            {
                "title": doc.frontmatter.title or doc.parent.name,
                "date": doc.frontmatter.formatted_date,
                "excerpt": doc.excerpt,
                "url": self.urls.get(doc.src_uri, ""),
                "document": doc,
            }
            for doc in docs
        ]

    # -------------------------------
    # Redirects
    # -------------------------------

    def on_post_build(self, *, config: MkDocsConfig) -> None:
        write_redirects(
            config["site_dir"],
            self.registry.redirects,
            use_directory_urls=config["use_directory_urls"],
            redirects_file=self.config["redirects_file"],
            published=self.published,
        )
