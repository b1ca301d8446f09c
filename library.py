# library.py
"""
Catalog building.

The catalog is never stored: every sync walks the library root again,
turns each EPUB path into a CatalogEntry and hands the list back.
MOBI files are not listed; they only exist as conversion siblings.
"""

import logging
import os
import re
from dataclasses import asdict
from datetime import datetime, timezone

import config
from errors import ScanError
from models import BookInfo, CatalogEntry

logger = logging.getLogger(__name__)

SEPARATOR     = " - "
EXTENSION_RE  = re.compile(r"\.(epub|mobi)$", re.IGNORECASE)
SHELF_DIRNAME = "Books"


# ------------------------------------------------------------------------
def parse_book_info(filepath: str) -> BookInfo:
    """Guess author and title from `Author - Title.epub` or the folder name."""
    filename = os.path.basename(filepath)
    dir_name = os.path.basename(os.path.dirname(filepath))
    fmt      = "mobi" if filepath.endswith(".mobi") else "epub"

    parts = filename.split(SEPARATOR)
    if len(parts) > 1:
        author = parts[0]
        title  = EXTENSION_RE.sub("", parts[1])
    else:
        title = EXTENSION_RE.sub("", filename).replace(".", " ")
        title = re.sub(r"\s+", " ", title).strip()

        # loose files inside an author folder
        if dir_name and dir_name != SHELF_DIRNAME and os.sep not in dir_name:
            author = dir_name
        else:
            author = "Unknown"

    return BookInfo(
        filepath=filepath,
        filename=filename,
        author=author,
        title=title,
        format=fmt,
    )


def _raise(err):
    raise err


def find_epubs(root: str):
    """Yield EPUB paths under `root` in the order the directory walk returns them."""
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        for name in filenames:
            if not name.endswith(".epub"):
                continue
            path = os.path.join(dirpath, name)
            if os.path.isfile(path) and not os.path.islink(path):
                yield path


def scan_library(root: str = None, now: datetime = None):
    """Walk the library and return a fresh list of CatalogEntry."""
    root  = root or config.LIBRARY_ROOT
    now   = now or datetime.now(timezone.utc)
    added = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    logger.info("Scanning library at %s", root)
    try:
        files = list(find_epubs(root))
    except OSError as e:
        raise ScanError(f"Cannot read library at {root}: {e}") from e
    logger.info("Found %d EPUB files", len(files))

    return [
        CatalogEntry(
            id=index,
            status="ready",
            added=added,
            **asdict(parse_book_info(path)),
        )
        for index, path in enumerate(files)
    ]
