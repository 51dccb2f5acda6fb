import logging
from pathlib import Path
from typing import List, Sequence, Union

from plugins.digital_garden.content_graph import COLLECTIONS

log = logging.getLogger("mkdocs.plugins.digital_garden")


def ensure_content_dirs(root: Union[str, Path], names: Sequence[str] = COLLECTIONS) -> List[Path]:
    """Create the garden's content directories under ``root``.

    Returns the directories that had to be created. OS errors propagate.
    """
    created = []
    for name in names:
        directory = Path(root) / name
        log.debug(f"[digital_garden] Initializing {directory} directory")
        if not directory.is_dir():
            directory.mkdir(parents=True, exist_ok=True)
            created.append(directory)
    if created:
        log.info(f"[digital_garden] created {len(created)} content directories under {root}")
    return created
