import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Pattern

from mkdocs.config.defaults import MkDocsConfig

log = logging.getLogger("mkdocs.plugins.digital_garden")

# Templates and scripts shipped with the plugin.
THEME_DIR = Path(__file__).parent / "theme"


@dataclass(frozen=True)
class ScriptRule:
    """Scripts matching ``test`` below ``include`` are served by the host."""

    test: Pattern[str]
    include: Path

    def matches(self) -> List[str]:
        """Matching scripts, as posix paths relative to ``include``."""
        if not self.include.is_dir():
            return []
        return sorted(
            p.relative_to(self.include).as_posix()
            for p in self.include.rglob("*")
            if p.is_file() and self.test.search(p.name)
        )


SCRIPT_RULE = ScriptRule(test=re.compile(r"\.js$"), include=THEME_DIR)


def patch_build_config(config: MkDocsConfig, rule: ScriptRule = SCRIPT_RULE) -> List[str]:
    """Register the plugin's own theme directory and scripts with MkDocs.

    Only appends: entries already present are left where they are, so
    patching twice is a no-op. Returns the scripts added to
    ``extra_javascript``.
    """
    theme_dir = str(rule.include)
    if theme_dir not in config.theme.dirs:
        # Lowest priority, so theme overrides and custom_dir still win.
        config.theme.dirs.append(theme_dir)

    present = {str(item).lstrip("/") for item in config.extra_javascript}
    added = []
    for script in rule.matches():
        if script in present:
            continue
        config.extra_javascript.append(script)
        added.append(script)

    if added:
        log.debug(f"[digital_garden] added scripts {added} from {theme_dir}")
    return added
