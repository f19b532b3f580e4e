"""XML file discovery for file-set searches."""

import os
from pathlib import Path
from typing import List, Optional, Union

from friendly_xml.shared import get_logger

logger = get_logger(__name__, component="search")


def find_xml_files(root: Union[str, Path], include_subfolders: bool = True) -> List[str]:
    """Return ``*.xml`` files under ``root``, sorted case-insensitively.

    Raises:
        ValueError: ``root`` is blank
        FileNotFoundError: ``root`` is not an existing directory
    """
    if root is None or not str(root).strip():
        raise ValueError("Root folder is required.")

    folder = Path(root)
    if not folder.is_dir():
        raise FileNotFoundError(f"Root folder does not exist: {root}")

    candidates = folder.rglob("*") if include_subfolders else folder.iterdir()
    files = [
        str(path) for path in candidates
        if path.suffix.lower() == ".xml" and path.is_file()
    ]
    return sorted(files, key=lambda p: os.path.normcase(p).casefold())


def read_xml_text(path: str, encoding: str = "utf-8-sig") -> Optional[str]:
    """Read a file for searching; None when it is missing or unreadable."""
    if not path or not path.strip() or not os.path.isfile(path):
        return None
    try:
        with open(path, encoding=encoding) as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable file", extra={"path": path, "error": str(e)})
        return None
