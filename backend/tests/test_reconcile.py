import os

import pytest

from imagehub.models import InboundFile, VariantKind
from imagehub.services.reconcile import find_orphans


@pytest.mark.anyio
async def test_catalogued_assets_are_not_orphans(service, make_image):
    await service.ingest(InboundFile.from_bytes("a.png", "image/png", make_image(40, 40)))
    assert service.find_orphans() == []


@pytest.mark.anyio
async def test_failed_commit_leaves_discoverable_temp_file(service, make_image, monkeypatch):
    def fail_rename(src, dst):
        raise OSError("cross-device link")

    monkeypatch.setattr(os, "rename", fail_rename)
    result = await service.ingest(InboundFile.from_bytes("a.png", "image/png", make_image(40, 40)))
    monkeypatch.undo()

    orphans = service.find_orphans()
    assert [(o.kind, o.path) for o in orphans] == [("temp", result.error.temp_path)]


@pytest.mark.anyio
async def test_failed_derivation_and_partial_delete_are_discoverable(service, make_image, monkeypatch):
    broken = await service.ingest(InboundFile.from_bytes("x.png", "image/png", b"garbage"))
    assert not broken.ok
    [broken_name] = os.listdir(service.layout.dirs["original"])

    record = (await service.ingest(
        InboundFile.from_bytes("b.png", "image/png", make_image(40, 40))
    )).unwrap()
    medium = service.layout.path_for(VariantKind.MEDIUM, record.storage_name)
    real_remove = os.remove

    def remove(path):
        if path == medium:
            raise PermissionError("busy")
        real_remove(path)

    monkeypatch.setattr(os, "remove", remove)
    service.delete_asset(record.id)
    monkeypatch.undo()

    found = {(o.kind, o.storage_name) for o in service.find_orphans()}
    assert found == {("original", broken_name), ("medium", record.storage_name)}


@pytest.mark.anyio
async def test_sweep_respects_age_threshold(service, make_image):
    kept = (await service.ingest(
        InboundFile.from_bytes("keep.png", "image/png", make_image(40, 40))
    )).unwrap()
    stray = os.path.join(service.layout.temp_dir, "stray.png")
    with open(stray, "wb") as f:
        f.write(b"partial")

    assert service.sweep_orphans(older_than=3600) == []
    assert os.path.exists(stray)

    results = service.sweep_orphans(older_than=0)
    assert [r.path for r in results if r.ok] == [stray]
    assert not os.path.exists(stray)
    assert os.path.exists(service.layout.path_for(VariantKind.ORIGINAL, kept.storage_name))


def test_orphan_age_is_reported(service):
    stray = os.path.join(service.layout.dirs["thumbnail"], "old.png")
    with open(stray, "wb") as f:
        f.write(b"1234")
    os.utime(stray, (1000, 1000))

    [orphan] = find_orphans(service.layout, service.catalog, now=1600)
    assert orphan.kind == "thumbnail"
    assert orphan.size == 4
    assert orphan.age_seconds == 600
