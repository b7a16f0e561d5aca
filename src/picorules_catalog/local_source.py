"""Read rule blocks and templates from a local checkout."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from picorules_catalog.models import FileItem

if TYPE_CHECKING:
    from _typeshed import StrPath

logger = logging.getLogger(__name__)


def read_directory(
    directory: StrPath, suffix: str, /
) -> tuple[list[FileItem], dict[str, str]]:
    """
    Collect every file in `directory` (not recursive) ending with `suffix`.

    Args:
        directory: Directory to scan.
        suffix: File suffix, e.g. `.prb`.

    Returns:
        The listing and a mapping of file name to content, both in name order.
        A missing directory yields an empty listing, and files that cannot be
        read as UTF-8 text are logged and left out.
    """
    root = Path(directory)
    if not root.is_dir():
        logger.warning('Source directory %s does not exist', root)
        return [], {}

    items: list[FileItem] = []
    contents: dict[str, str] = {}

    for path in sorted(root.glob(f'*{suffix}')):
        if not path.is_file():
            continue

        try:
            text = path.read_text(encoding='utf-8')
            size = path.stat().st_size
        except (OSError, UnicodeDecodeError) as e:
            logger.warning('Skipping unreadable file %s: %s', path, e)
            continue

        items.append(FileItem(name=path.name, path=str(path), size=size))
        contents[path.name] = text

    logger.debug('Read %d %s files from %s', len(items), suffix, root)
    return items, contents
