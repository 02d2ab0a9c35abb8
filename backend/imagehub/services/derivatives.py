"""
Derivative engine: resized renditions of a committed original.

Each configured variant is written to ``<variant dir>/<storage name>``.
Variants are rendered independently in worker threads; a failing variant
does not stop the others, but the caller gets a DerivationError naming
every variant that failed.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from PIL import Image

from ..errors import DerivationError
from ..models import VariantKind
from ..storage import StorageLayout
from ..utils.imaging import cover, fit_inside, save_as

logger = logging.getLogger(__name__)

FIT_COVER = "cover"
FIT_INSIDE = "inside"


@dataclass(frozen=True)
class VariantSpec:
    kind: VariantKind
    size: Tuple[int, int]
    fit: str


DEFAULT_VARIANTS: Tuple[VariantSpec, ...] = (
    VariantSpec(VariantKind.THUMBNAIL, (200, 200), FIT_COVER),
    VariantSpec(VariantKind.MEDIUM, (800, 800), FIT_INSIDE),
)


class DerivativeEngine:
    def __init__(self, layout: StorageLayout, variants: Sequence[VariantSpec] = DEFAULT_VARIANTS):
        self.layout = layout
        self.variants = tuple(variants)

    def render(self, spec: VariantSpec, original_path: str, storage_name: str) -> str:
        dest_path = self.layout.path_for(spec.kind, storage_name)
        with Image.open(original_path) as img:
            image_format = img.format
            if spec.fit == FIT_COVER:
                resized = cover(img, spec.size)
            elif spec.fit == FIT_INSIDE:
                resized = fit_inside(img, spec.size)
            else:
                raise ValueError(f"Unknown fit policy: {spec.fit}")
        save_as(resized, dest_path, image_format)
        return dest_path

    async def derive_all(self, original_path: str, storage_name: str) -> Dict[str, str]:
        """Render every variant; returns ``{kind: path}`` or raises DerivationError."""
        results = await asyncio.gather(
            *(asyncio.to_thread(self.render, spec, original_path, storage_name)
              for spec in self.variants),
            return_exceptions=True,
        )

        paths: Dict[str, str] = {}
        failed = []
        for spec, result in zip(self.variants, results):
            if isinstance(result, BaseException):
                logger.error(f"Variant {spec.kind.value} failed for {storage_name}: {result}")
                failed.append(spec.kind.value)
            else:
                paths[spec.kind.value] = result

        if failed:
            raise DerivationError(failed[0], failed)
        return paths
