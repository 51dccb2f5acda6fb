import logging
from typing import Any, Dict, List

from plugins.digital_garden.content_graph import Document
from plugins.digital_garden.planner import PageInstruction, RedirectInstruction, Template

log = logging.getLogger("mkdocs.plugins.digital_garden")


class PageRegistry:
    """Collects the page and redirect instructions of one build.

    Pages are keyed by output path. Registering a second page at the same
    path replaces the first one.
    """

    def __init__(self):
        self.pages: Dict[str, PageInstruction] = {}
        self.redirects: List[RedirectInstruction] = []

    def create_page(self, path: str, template: Template, context: Any) -> None:
        previous = self.pages.pop(path, None)
        if previous is not None:
            log.warning(
                f"[digital_garden] page path '{path}' registered twice; "
                f"{_describe(context)} replaces {_describe(previous.context)}"
            )
        self.pages[path] = PageInstruction(path=path, template=template, context=context)

    def create_redirect(
        self,
        from_path: str,
        to_path: str,
        redirect_in_browser: bool,
        is_permanent: bool,
    ) -> None:
        self.redirects.append(
            RedirectInstruction(
                from_path=from_path,
                to_path=to_path,
                redirect_in_browser=redirect_in_browser,
                is_permanent=is_permanent,
            )
        )

    def document_pages(self) -> List[PageInstruction]:
        return [p for p in self.pages.values() if isinstance(p.context, Document)]

    def list_pages(self) -> List[PageInstruction]:
        return [p for p in self.pages.values() if p.template is Template.POSTS_LIST]


def _describe(context: Any) -> str:
    if isinstance(context, Document):
        return context.src_uri
    return f"list page {getattr(context, 'current_page', '?')}"
