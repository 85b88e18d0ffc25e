"""
Local image storage: naming, size limits and path traversal.
"""

import pytest

from carlot.core.errors import InvalidArgument
from carlot.storage import LocalBlobStore, sanitize_filename


@pytest.fixture
def blobs(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "uploads", max_file_size=1024)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.jpg", "photo.jpg"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\car.png", "car.png"),
        ("my car (1).jpg", "my_car__1_.jpg"),
        ("..hidden", "hidden"),
        ("", "image"),
        ("../", "image"),
    ],
)
def test_sanitize_filename(name, expected):
    assert sanitize_filename(name) == expected


def test_store_writes_bytes_under_unique_locator(blobs):
    first = blobs.store(b"one", "car.jpg")
    second = blobs.store(b"two", "car.jpg")

    assert first != second
    assert first.startswith("/uploads/") and first.endswith("-car.jpg")
    assert blobs.get_safe_file_path(first).read_bytes() == b"one"
    assert blobs.get_safe_file_path(second).read_bytes() == b"two"


def test_store_rejects_oversized_image(blobs):
    with pytest.raises(InvalidArgument):
        blobs.store(b"A" * 1025, "big.jpg")

    assert list(blobs.iter_locators()) == []


def test_store_accepts_image_at_limit(blobs):
    locator = blobs.store(b"A" * 1024, "edge.jpg")

    assert blobs.exists(locator)


@pytest.mark.parametrize(
    "locator",
    ["/uploads/../evil.txt", "/uploads/sub/../../evil.txt", "/elsewhere/file.jpg", "evil.txt"],
)
def test_get_safe_file_path_blocks_traversal(blobs, locator):
    assert blobs.get_safe_file_path(locator) is None


def test_get_safe_file_path_valid(blobs):
    path = blobs.get_safe_file_path("/uploads/valid_file_123")

    assert path == (blobs.root / "valid_file_123").resolve()


def test_delete_removes_file(blobs):
    locator = blobs.store(b"x", "a.jpg")

    assert blobs.delete(locator) is True
    assert not blobs.exists(locator)


def test_delete_missing_file_is_not_an_error(blobs):
    assert blobs.delete("/uploads/never-existed.jpg") is False


def test_delete_outside_root_is_refused(blobs, tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_bytes(b"keep")

    assert blobs.delete("/uploads/../keep.txt") is False
    assert outside.exists()


def test_delete_all_counts_removed(blobs):
    locators = [blobs.store(b"x", f"{i}.jpg") for i in range(3)]

    assert blobs.delete_all(locators + ["/uploads/missing.jpg"]) == 3
    assert list(blobs.iter_locators()) == []


def test_iter_locators_lists_stored_files(blobs):
    locators = {blobs.store(b"x", "a.jpg"), blobs.store(b"y", "b.jpg")}

    assert set(blobs.iter_locators()) == locators


def test_check_size_needs_no_bytes(blobs):
    blobs.check_size("edge.jpg", 1024)

    with pytest.raises(InvalidArgument, match="big.jpg"):
        blobs.check_size("big.jpg", 1025)
