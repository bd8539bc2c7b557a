import os
import time

import storage


def _touch(path, mtime):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    os.utime(path, (mtime, mtime))
    return path


def test_sweep_directory_removes_old_files_and_empty_dirs(tmp_path):
    now = time.time()
    old = _touch(tmp_path / "old.csv", now - 1000)
    fresh = _touch(tmp_path / "fresh.csv", now)
    nested = _touch(tmp_path / "promo_2025-01-01" / "qrcode_V1.png", now - 1000)

    assert storage.sweep_directory(tmp_path, max_age=420, now=now) == 2
    assert not old.exists()
    assert fresh.exists()
    assert not nested.parent.exists()
    assert tmp_path.exists()


def test_sweep_missing_directory(tmp_path):
    assert storage.sweep_directory(tmp_path / "nope", max_age=1) == 0


def test_save_upload(tmp_path):
    path = storage.save_upload(b"code,expiration_date\n", "../promo.csv", tmp_path)
    assert path.parent == tmp_path
    assert path.name.endswith("_..promo.csv")
    assert path.read_bytes() == b"code,expiration_date\n"


def test_remove_path_ignores_missing(tmp_path):
    storage.remove_path(tmp_path / "missing")
    storage.remove_path(None)


def test_registry_sweep_deletes_artifact_folder(tmp_path):
    registry = storage.DownloadRegistry(max_age=60)
    artifact_id, folder = storage.new_artifact_dir(tmp_path)
    pdf = folder / "promo_2025-01-01.pdf"
    pdf.write_bytes(b"%PDF")
    registry.register(artifact_id, pdf, created_at=100)

    assert registry.get(artifact_id).filename == "promo_2025-01-01.pdf"
    assert registry.sweep(now=200) == [artifact_id]
    assert registry.get(artifact_id) is None
    assert not folder.exists()


def test_registry_list_newest_first(tmp_path):
    registry = storage.DownloadRegistry()
    for i, created in enumerate((10, 30, 20)):
        path = tmp_path / f"{i}.pdf"
        path.write_bytes(b"%PDF")
        registry.register(str(i), path, created_at=created)
    (tmp_path / "2.pdf").unlink()
    assert [a.artifact_id for a in registry.list()] == ["1", "0"]


def test_janitor_run_once(tmp_path):
    now = time.time()
    registry = storage.DownloadRegistry(max_age=420)
    artifact_id, folder = storage.new_artifact_dir(tmp_path / "downloads")
    registry.register(artifact_id, _touch(folder / "a.pdf", now - 1000), created_at=now - 1000)
    _touch(tmp_path / "uploads" / "1_a.csv", now - 1000)

    janitor = storage.Janitor(registry, [tmp_path / "uploads", tmp_path / "downloads"], interval=60, max_age=420)
    janitor.run_once(now)

    assert registry.list() == []
    assert list((tmp_path / "uploads").iterdir()) == []
    assert list((tmp_path / "downloads").iterdir()) == []


def test_read_artifact_after_janitor_removed_it(tmp_path):
    registry = storage.DownloadRegistry()
    artifact_id, folder = storage.new_artifact_dir(tmp_path)
    pdf = folder / "promo.pdf"
    pdf.write_bytes(b"%PDF")
    artifact = registry.register(artifact_id, pdf)

    assert storage.read_artifact(artifact) == b"%PDF"
    storage.remove_path(folder)
    assert storage.read_artifact(artifact) is None
