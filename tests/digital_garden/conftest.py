import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from mkdocs.config import load_config
from mkdocs.structure.files import File, Files

from plugins.digital_garden.content_graph import Document, Frontmatter, Parent


def _make_doc(
    name: str = "hello",
    source: str = "posts",
    path: Optional[str] = None,
    redirects: Optional[List[str]] = None,
    date: Optional[datetime.date] = None,
) -> Document:
    return Document(
        id=f"{source}/{name}",
        excerpt="",
        parent=Parent(name=name, source_instance_name=source),
        frontmatter=Frontmatter(path=path, title=name.title(), redirects=redirects or [], date=date),
        body="",
        src_uri=f"{source}/{name}.md",
    )


@pytest.fixture
def make_doc():
    """Factory for in-memory documents."""
    return _make_doc


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    docs = tmp_path / "docs"
    docs.mkdir()
    return docs


@pytest.fixture
def write_docs(tmp_path: Path, docs_dir: Path):
    """Write ``{src_uri: text}`` below docs_dir and return them as MkDocs Files."""

    def _write(sources: Dict[str, str]) -> Files:
        files = []
        for src_uri, text in sources.items():
            path = docs_dir / src_uri
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
            files.append(File(src_uri, str(docs_dir), str(tmp_path / "site"), True))
        return Files(files)

    return _write


@pytest.fixture
def mkdocs_config(tmp_path: Path, docs_dir: Path):
    config_file = tmp_path / "mkdocs.yml"
    config_file.write_text(
        "site_name: Garden\ndocs_dir: docs\nsite_dir: site\n",
        encoding="utf-8",
    )
    return load_config(str(config_file))
