from typing import Sequence

from ..config import Settings
from ..errors import LimitExceeded, ValidationError
from ..models import InboundFile


class Validator:
    """Admission checks run before any byte reaches disk."""

    def __init__(self, settings: Settings):
        self.allowed_media_types = settings.allowed_media_types
        self.max_file_size = settings.max_file_size
        self.max_files = settings.max_files

    def check_count(self, files: Sequence) -> None:
        if len(files) > self.max_files:
            raise LimitExceeded(LimitExceeded.COUNT, self.max_files)

    def check_file(self, inbound: InboundFile) -> None:
        if inbound.media_type not in self.allowed_media_types:
            raise ValidationError(inbound.media_type)
        # Undeclared sizes are enforced by the stager while streaming
        if inbound.size is not None and inbound.size > self.max_file_size:
            raise LimitExceeded(LimitExceeded.SIZE, self.max_file_size)
