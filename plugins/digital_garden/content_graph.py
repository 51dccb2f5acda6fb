"""
Content graph for the digital garden plugin.

Collects the Markdown documents of the garden's source collections from the
MkDocs ``Files`` collection and exposes them as read-only records, filtered
(no drafts, no archived items) and sorted by publication date, newest first.
"""

import datetime
import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import markdown
import yaml
from bs4 import BeautifulSoup
from mkdocs.exceptions import PluginError
from mkdocs.structure.files import File, Files

log = logging.getLogger("mkdocs.plugins.digital_garden")

FM_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?", re.DOTALL)

# Top-level directories of docs_dir that hold garden content.
COLLECTIONS: Tuple[str, ...] = ("posts", "pages", "wiki")

EXCERPT_LENGTH = 140


class ContentQueryError(PluginError):
    """Raised when the content graph reports errors; aborts the build."""


@dataclass(frozen=True)
class Parent:
    name: str
    source_instance_name: str


@dataclass
class Frontmatter:
    path: Optional[str] = None
    title: Optional[str] = None
    redirects: List[str] = field(default_factory=list)
    date: Optional[datetime.date] = None
    draft: bool = False
    archived: bool = False

    @property
    def formatted_date(self) -> str:
        if self.date is None:
            return ""
        return self.date.strftime("%B %d, %Y")


@dataclass
class Document:
    id: str
    excerpt: str
    parent: Parent
    frontmatter: Frontmatter
    body: str
    src_uri: str


@dataclass
class QueryResult:
    documents: List[Document] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a leading YAML block from the Markdown body.

    Raises ``yaml.YAMLError`` when the block is not valid YAML. A block that
    parses to something other than a mapping counts as no front matter.
    """
    match = FM_PATTERN.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1))
    if not isinstance(data, dict):
        data = {}
    return data, text[match.end():]


def make_excerpt(body: str, length: int = EXCERPT_LENGTH) -> str:
    """Plain-text preview of a Markdown body, cut on a word boundary."""
    html = markdown.markdown(body)
    text = BeautifulSoup(html, "html.parser").get_text()
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) <= length:
        return text
    cut = text[:length].rsplit(" ", 1)[0]
    return cut.rstrip(" .,;:") + "…"


def _coerce_date(value: Any) -> Optional[datetime.date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return datetime.date.fromisoformat(value.strip()[:10])
    raise ValueError(f"unsupported date value {value!r}")


def _coerce_redirects(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"redirects must be a path or a list of paths, got {value!r}")


def parse_frontmatter(data: Dict[str, Any]) -> Frontmatter:
    """Map raw YAML keys onto ``Frontmatter``; raises ``ValueError`` on bad types."""
    path = data.get("path")
    title = data.get("title")
    return Frontmatter(
        path=str(path) if path else None,
        title=str(title) if title is not None else None,
        redirects=_coerce_redirects(data.get("redirects")),
        date=_coerce_date(data.get("date")),
        draft=data.get("draft") is True,
        archived=data.get("archived") is True,
    )


def source_of(src_uri: str, collections: Sequence[str] = COLLECTIONS) -> Optional[Parent]:
    """Return the ``Parent`` of a source path, or None outside the collections."""
    parts = src_uri.split("/")
    if len(parts) < 2 or parts[0] not in collections:
        return None
    name = parts[-1].rsplit(".", 1)[0]
    return Parent(name=name, source_instance_name=parts[0])


def document_id(src_uri: str) -> str:
    return hashlib.sha1(src_uri.encode("utf-8")).hexdigest()


def load_document(file: File, parent: Parent) -> Document:
    """Read one source file into a ``Document``.

    Raises ``yaml.YAMLError`` or ``ValueError`` for malformed front matter.
    """
    data, body = split_front_matter(file.content_string)
    return Document(
        id=document_id(file.src_uri),
        excerpt=make_excerpt(body),
        parent=parent,
        frontmatter=parse_frontmatter(data),
        body=body,
        src_uri=file.src_uri,
    )


def _sort_key(doc: Document) -> Tuple[int, int]:
    date = doc.frontmatter.date
    return (0, -date.toordinal()) if date else (1, 0)


def query_documents(files: Iterable[File], collections: Sequence[str] = COLLECTIONS) -> QueryResult:
    """Query every garden document in ``files``.

    Problems with individual files are collected in ``errors`` instead of
    being raised, so the caller can report all of them at once.
    """
    result = QueryResult()
    if isinstance(files, Files):
        files = files.documentation_pages()

    for file in files:
        if not file.is_documentation_page():
            continue
        parent = source_of(file.src_uri, collections)
        if parent is None:
            continue
        try:
            doc = load_document(file, parent)
        except (yaml.YAMLError, ValueError) as e:
            result.errors.append(f"{file.src_uri}: {e}")
            continue

        if doc.frontmatter.draft or doc.frontmatter.archived:
            log.debug(f"[digital_garden] skipping unpublished {file.src_uri}")
            result.excluded.append(file.src_uri)
            continue
        result.documents.append(doc)

    # sorted() is stable, so equal dates keep discovery order
    result.documents = sorted(result.documents, key=_sort_key)
    log.debug(
        f"[digital_garden] queried {len(result.documents)} documents "
        f"({len(result.excluded)} unpublished, {len(result.errors)} errors)"
    )
    return result
