"""Tests for the image upload gate."""

import io
import re
from unittest.mock import patch

import pytest
from starlette.datastructures import Headers, UploadFile

from app.errors import ErrorKind, UploadRejected
from app.uploads import ImageStorage, generate_filename, is_allowed_image


def make_upload(filename, content_type, data=b"\xff\xd8\xff\xd9"):
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.parametrize("filename,content_type", [
    ("photo.jpg", "image/jpeg"),
    ("photo.JPEG", "image/jpeg"),
    ("photo.jpg", "image/jpg"),
    ("banner.png", "image/png"),
    ("anim.gif", "image/gif"),
    ("modern.webp", "image/webp"),
    ("photo.png", "image/png; charset=binary"),
])
def test_allowed_images(filename, content_type):
    assert is_allowed_image(filename, content_type)


@pytest.mark.parametrize("filename,content_type", [
    ("photo.exe", "application/octet-stream"),
    ("photo.exe", "image/jpeg"),          # right type, wrong extension
    ("photo.jpg", "application/pdf"),     # right extension, wrong type
    ("photo.png", "image/jpeg"),          # type does not match extension
    ("photo", "image/jpeg"),
    ("", "image/jpeg"),
    (None, None),
])
def test_rejected_images(filename, content_type):
    assert not is_allowed_image(filename, content_type)


def test_generate_filename_keeps_extension_only():
    name = generate_filename("../../My Holiday Photo.PNG")
    assert re.fullmatch(r"event-\d+-\d+\.PNG", name)


def test_generate_filename_is_unique():
    names = {generate_filename("photo.jpg") for _ in range(50)}
    assert len(names) == 50


def test_save_stores_under_generated_name(upload_dir):
    storage = ImageStorage(upload_dir)
    stored = storage.save(make_upload("photo.jpg", "image/jpeg", b"imagedata"))

    assert stored.url == f"/uploads/{stored.filename}"
    assert stored.path.parent == upload_dir
    assert stored.path.read_bytes() == b"imagedata"
    assert stored.filename != "photo.jpg"


def test_invalid_type_is_rejected_before_storage(upload_dir):
    storage = ImageStorage(upload_dir)
    with pytest.raises(UploadRejected) as excinfo:
        storage.save(make_upload("photo.exe", "application/octet-stream"))

    assert excinfo.value.kind is ErrorKind.INVALID_FILE_TYPE
    assert excinfo.value.status_code == 400
    assert list(upload_dir.iterdir()) == []


def test_oversized_file_is_rejected(upload_dir):
    storage = ImageStorage(upload_dir, max_size=1024)
    with pytest.raises(UploadRejected) as excinfo:
        storage.inspect(make_upload("photo.jpg", "image/jpeg", b"\x00" * 2048))

    assert excinfo.value.kind is ErrorKind.FILE_TOO_LARGE
    assert excinfo.value.to_dict()["error"] == "File too large"
    assert list(upload_dir.iterdir()) == []


def test_declared_size_is_used_when_known(upload_dir):
    storage = ImageStorage(upload_dir, max_size=1024)
    upload = UploadFile(
        file=io.BytesIO(b"\xff\xd8\xff\xd9"),
        size=2048,
        filename="photo.jpg",
        headers=Headers({"content-type": "image/jpeg"}),
    )

    with patch("app.uploads._measure") as measure:
        with pytest.raises(UploadRejected) as excinfo:
            storage.inspect(upload)

    measure.assert_not_called()
    assert excinfo.value.kind is ErrorKind.FILE_TOO_LARGE


def test_partial_file_removed_when_limit_exceeded_while_streaming(upload_dir):
    storage = ImageStorage(upload_dir, max_size=1024)
    upload = make_upload("photo.jpg", "image/jpeg", b"\x00" * (200 * 1024))

    # Let the up-front check pass so the streaming guard has to catch it
    with patch.object(ImageStorage, "inspect"):
        with pytest.raises(UploadRejected) as excinfo:
            storage.save(upload)

    assert excinfo.value.kind is ErrorKind.FILE_TOO_LARGE
    assert list(upload_dir.iterdir()) == []


def test_remove_deletes_file(upload_dir):
    storage = ImageStorage(upload_dir)
    stored = storage.save(make_upload("photo.jpg", "image/jpeg"))

    assert storage.remove(stored.url) is True
    assert not stored.path.exists()


def test_remove_missing_file_is_not_an_error(upload_dir):
    storage = ImageStorage(upload_dir)
    assert storage.remove("/uploads/event-1-1.jpg") is False
    assert storage.remove(None) is False


def test_remove_only_touches_upload_dir(tmp_path, upload_dir):
    outside = tmp_path / "secret.jpg"
    outside.write_bytes(b"keep me")
    storage = ImageStorage(upload_dir)

    storage.remove("/uploads/../secret.jpg")

    assert outside.exists()


def test_remove_swallows_os_errors(upload_dir):
    storage = ImageStorage(upload_dir)
    stored = storage.save(make_upload("photo.jpg", "image/jpeg"))

    with patch("pathlib.Path.unlink", side_effect=PermissionError("read-only")):
        assert storage.remove(stored.url) is False


def test_cleanup_on_failure_removes_image(upload_dir):
    storage = ImageStorage(upload_dir)
    stored = storage.save(make_upload("photo.jpg", "image/jpeg"))

    with pytest.raises(RuntimeError):
        with storage.cleanup_on_failure(stored):
            raise RuntimeError("insert failed")

    assert not stored.path.exists()


def test_cleanup_on_failure_keeps_image_on_success(upload_dir):
    storage = ImageStorage(upload_dir)
    stored = storage.save(make_upload("photo.jpg", "image/jpeg"))

    with storage.cleanup_on_failure(stored):
        pass

    assert stored.path.exists()
