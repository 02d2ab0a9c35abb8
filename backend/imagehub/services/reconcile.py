"""
Discovery and cleanup of files no catalog record accounts for.

Orphans come from failed commits (left in temp/), failed derivations
(original and any finished variants) and partial deletions. Nothing here
runs on its own; the debug endpoints call it.
"""
import logging
import os
import time
from dataclasses import dataclass
from typing import List, Optional

from ..catalog import Catalog
from ..storage import TEMP_DIR, StorageLayout
from .deletion import PathResult, remove_artifact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Orphan:
    kind: str
    storage_name: str
    path: str
    size: int
    age_seconds: float


def find_orphans(layout: StorageLayout, catalog: Catalog, now: Optional[float] = None) -> List[Orphan]:
    now = time.time() if now is None else now
    listed = catalog.storage_names()
    directories = list(layout.dirs.items()) + [(TEMP_DIR, layout.temp_dir)]

    orphans = []
    for kind, directory in directories:
        if not os.path.isdir(directory):
            continue
        for name in sorted(os.listdir(directory)):
            path = os.path.join(directory, name)
            if not os.path.isfile(path):
                continue
            # Staged files are never catalogued
            if kind != TEMP_DIR and name in listed:
                continue
            stat = os.stat(path)
            orphans.append(Orphan(kind, name, path, stat.st_size, now - stat.st_mtime))
    return orphans


def sweep_orphans(layout: StorageLayout, catalog: Catalog, older_than: float) -> List[PathResult]:
    """Delete orphans at least ``older_than`` seconds old.

    The age threshold keeps in-flight uploads, which look exactly like
    orphans until their record is published, out of reach.
    """
    results = [
        remove_artifact(orphan.kind, orphan.path)
        for orphan in find_orphans(layout, catalog)
        if orphan.age_seconds >= older_than
    ]
    removed = sum(1 for r in results if r.ok)
    logger.info(f"Orphan sweep removed {removed} of {len(results)} candidate files")
    return results
