from __future__ import annotations

from pathlib import Path

import pytest

from hirelane.core.storage import BlobStore


def test_blob_round_trip_and_delete(tmp_path: Path) -> None:
    store = BlobStore(root=tmp_path)
    storage_id = store.save(b"resume bytes", "My Resume.PDF")

    assert storage_id.endswith(".pdf")
    assert store.read(storage_id) == b"resume bytes"
    assert store.delete(storage_id) is True
    assert store.delete(storage_id) is False
    with pytest.raises(ValueError, match="not found"):
        store.read(storage_id)


def test_storage_ids_cannot_escape_the_root(tmp_path: Path) -> None:
    store = BlobStore(root=tmp_path)

    with pytest.raises(ValueError, match="invalid storage id"):
        store.path_for("../etc/passwd")
