"""Render a repository directory as an indented Markdown outline.

Output format, one entry per line::

      - docs/
        - index.md
      - README.md

Root children carry one level of indentation (two spaces); each further
level adds two more. Directories end with ``/``.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..core.config import settings
from .ignore_rules import PathLike, is_ignored, load_ignore_rules

logger = logging.getLogger(__name__)

INDENT = "  "


def render_file_tree(root_path: PathLike, rules: Optional[Sequence[str]] = None) -> str:
    """Walk *root_path* and return the filtered tree as text.

    Hidden entries (leading dot) and entries matched by *rules* are omitted
    together with everything beneath them. When *rules* is None they are
    read from the ignore file at the root.
    """
    root = Path(os.path.abspath(root_path))
    if rules is None:
        rules = load_ignore_rules(root, settings.ignore_file_name)

    lines: List[str] = []
    _render_dir(root, root, list(rules), 1, lines)
    logger.info("Rendered file tree for %s: %d entries", root, len(lines))
    return "".join(lines)


def _render_dir(directory: Path, root: Path, rules: List[str], depth: int, lines: List[str]) -> None:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name.lower())
    except OSError as e:
        logger.warning("Skipping unreadable directory %s: %s", directory, e)
        return

    prefix = INDENT * depth
    for entry in entries:
        if entry.name.startswith("."):
            continue
        path = Path(entry.path)
        if is_ignored(path, rules, root):
            continue

        if entry.is_dir():
            lines.append(f"{prefix}- {entry.name}/\n")
            if not entry.is_symlink():
                _render_dir(path, root, rules, depth + 1, lines)
        elif entry.is_file():
            lines.append(f"{prefix}- {entry.name}\n")
