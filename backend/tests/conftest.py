import os
import tempfile

# imagehub.main builds a module-level app; keep its upload dir out of the repo
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="imagehub-test-"))

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from imagehub.config import Settings
from imagehub.main import create_app
from imagehub.services.pipeline import ImageService

PIL_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "image/webp": "WEBP",
}


@pytest.fixture
def anyio_backend():
    # asyncio only, no Trio needed
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def service(settings):
    return ImageService(settings)


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture
def make_image():
    def _make(width=640, height=480, media_type="image/png", color=(200, 30, 30)) -> bytes:
        buf = BytesIO()
        Image.new("RGB", (width, height), color).save(buf, format=PIL_FORMATS[media_type])
        return buf.getvalue()
    return _make
