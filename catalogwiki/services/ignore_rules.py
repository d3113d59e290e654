"""Ignore-rule loading and matching for repository file trees.

Rules are literal root-relative paths, one per line, as found in a
``.gitignore``. A trailing ``/`` anchors a rule to directories. There is no
glob or negation syntax; the first matching rule wins.

Pure functions apart from load_ignore_rules(), which reads the ignore file.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..exceptions import ArchiveIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def parse_ignore_rules(text: str) -> List[str]:
    """Turn ignore-file text into an ordered rule list.

    Blank lines and ``#`` comments are dropped. A leading ``/`` is removed
    because every rule is matched against the root-relative path anyway.
    """
    rules: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("/") and len(line) > 1:
            line = line[1:]
        rules.append(line)
    return rules


def load_ignore_rules(root_path: PathLike, file_name: str = ".gitignore") -> List[str]:
    """Read rules from the ignore file at the repository root, if any."""
    ignore_file = Path(root_path) / file_name
    if not ignore_file.is_file():
        return []
    try:
        text = ignore_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ArchiveIOError(f"Failed to read {ignore_file}: {e}", original_error=e) from e
    rules = parse_ignore_rules(text)
    logger.debug("Loaded %d ignore rules from %s", len(rules), ignore_file)
    return rules


def _relative_posix(candidate: Path, root: Path) -> Optional[str]:
    """Root-relative POSIX path of *candidate*, or None if not strictly under root."""
    if candidate == root:
        return None
    try:
        return candidate.relative_to(root).as_posix()
    except ValueError:
        return None


def matches_rule(relative_path: str, rule: str, is_dir: bool) -> bool:
    """Check a single root-relative path against a single rule."""
    anchored = rule.endswith("/")
    target = rule[:-1] if anchored else rule
    if not target:
        return False
    if relative_path != target and not relative_path.startswith(target + "/"):
        return False
    # Directory rules never apply to files, even files beneath a same-named path.
    if anchored and not is_dir:
        return False
    return True


def is_ignored(candidate_path: PathLike, rules: Iterable[str], root_path: PathLike) -> bool:
    """Decide whether *candidate_path* is excluded by *rules*.

    The root itself is never ignored, and anything outside the root is
    reported as not ignored.
    """
    root = Path(os.path.abspath(root_path))
    candidate = Path(os.path.abspath(candidate_path))

    relative = _relative_posix(candidate, root)
    if relative is None:
        return False

    is_dir = candidate.is_dir()
    for rule in rules:
        if matches_rule(relative, rule, is_dir):
            return True
    return False
