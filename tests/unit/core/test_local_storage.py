"""Tests for the local document store."""

import asyncio
from pathlib import Path

import pytest

from core.exceptions import StorageUnavailable
from core.storage.local import LocalDocumentStore


@pytest.mark.asyncio
async def test_save_and_read_round_trip(store):
    ref = await store.save(b"resume bytes", "cv.docx", subfolder="resumes/7")

    assert ref.startswith("resumes/7/")
    assert ref.endswith("_cv.docx")
    assert await store.read(ref) == b"resume bytes"


@pytest.mark.asyncio
async def test_save_strips_directories_from_filename(store):
    ref = await store.save(b"x", "../../etc/passwd")
    assert "/" not in ref
    assert ref.endswith("_passwd")


@pytest.mark.asyncio
async def test_refs_are_unique_for_same_filename(store):
    first = await store.save(b"a", "cv.pdf")
    second = await store.save(b"b", "cv.pdf")
    assert first != second


@pytest.mark.asyncio
async def test_read_missing_file_raises_storage_unavailable(store):
    with pytest.raises(StorageUnavailable):
        await store.read("resumes/missing.pdf")


@pytest.mark.asyncio
async def test_ref_outside_root_is_rejected(store):
    with pytest.raises(StorageUnavailable, match="escapes storage root"):
        await store.read("../outside.pdf")


@pytest.mark.asyncio
async def test_delete(store):
    ref = await store.save(b"data", "cv.pdf")

    assert await store.delete(ref) is True
    assert await store.delete(ref) is False
    assert not (Path(store.base_path) / ref).exists()


@pytest.mark.asyncio
async def test_slow_operation_times_out(tmp_path, monkeypatch):
    store = LocalDocumentStore(base_path=str(tmp_path), timeout=0.01)

    async def slow_to_thread(func, *args):
        await asyncio.sleep(1)

    monkeypatch.setattr("core.storage.local.asyncio.to_thread", slow_to_thread)

    with pytest.raises(StorageUnavailable, match="timed out"):
        await store.read("anything.pdf")
