import os
from typing import Dict

from .models import VariantKind

TEMP_DIR = "temp"


class StorageLayout:
    """On-disk layout: original/, thumbnail/, medium/ and the temp/ staging area.

    Every file of one asset is stored under the same storage name in its
    own directory.
    """

    def __init__(self, base_dir: str, public_prefix: str = "/images"):
        self.base_dir = os.path.abspath(base_dir)
        self.public_prefix = public_prefix.rstrip("/")
        self.dirs: Dict[str, str] = {
            kind.value: os.path.join(self.base_dir, kind.value) for kind in VariantKind
        }
        self.temp_dir = os.path.join(self.base_dir, TEMP_DIR)

    def ensure_dirs(self) -> None:
        for directory in list(self.dirs.values()) + [self.temp_dir]:
            os.makedirs(directory, exist_ok=True)

    def path_for(self, kind, storage_name: str) -> str:
        kind = VariantKind(kind)
        return os.path.join(self.dirs[kind.value], storage_name)

    def temp_path(self, storage_name: str) -> str:
        return os.path.join(self.temp_dir, storage_name)

    def public_url(self, kind, storage_name: str) -> str:
        return f"{self.public_prefix}/{VariantKind(kind).value}/{storage_name}"
