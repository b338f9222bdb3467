"""Tests for upload validation."""
import pytest

from chatmedia.errors import ValidationError
from chatmedia.media.schemas import MAX_FILE_SIZE_BYTES
from chatmedia.media.validator import file_extension, validate_upload


class TestFileExtension:
    def test_lowercases(self):
        assert file_extension("Photo.PNG") == "png"

    def test_last_suffix_only(self):
        assert file_extension("archive.tar.gif") == "gif"

    def test_no_extension(self):
        assert file_extension("README") == ""

    def test_windows_path(self):
        assert file_extension("C:\\pics\\cat.JPG") == "jpg"


class TestValidateUpload:
    @pytest.mark.parametrize(
        "filename,media_type",
        [
            ("photo.png", "image/png"),
            ("photo.jpg", "image/jpeg"),
            ("photo.jpeg", "image/jpeg"),
            ("anim.gif", "image/gif"),
            ("UPPER.PNG", "IMAGE/PNG"),
            ("photo.png", "image/png; charset=binary"),
        ],
    )
    def test_accepts_allowed_images(self, filename, media_type):
        validate_upload(filename, media_type, 1024)

    @pytest.mark.parametrize(
        "filename,media_type",
        [
            ("notes.txt", "text/plain"),
            ("notes.png", "text/plain"),        # renamed text file
            ("photo.png", "application/octet-stream"),
            ("photo.webp", "image/webp"),
            ("photo.bmp", "image/png"),         # extension alone fails
            ("photo", "image/png"),
            ("photo.png", None),
            ("photo.png", "image/pngx"),
        ],
    )
    def test_rejects_unsupported_type(self, filename, media_type):
        with pytest.raises(ValidationError, match="unsupported media type"):
            validate_upload(filename, media_type, 1024)

    def test_rejects_too_large(self):
        with pytest.raises(ValidationError, match="payload too large"):
            validate_upload("photo.png", "image/png", MAX_FILE_SIZE_BYTES + 1)

    def test_accepts_exactly_the_limit(self):
        validate_upload("photo.png", "image/png", MAX_FILE_SIZE_BYTES)

    def test_type_checked_before_size(self):
        with pytest.raises(ValidationError, match="unsupported media type"):
            validate_upload("notes.txt", "text/plain", MAX_FILE_SIZE_BYTES * 2)

    @pytest.mark.parametrize("filename", [None, ""])
    def test_missing_file(self, filename):
        with pytest.raises(ValidationError, match="no file uploaded"):
            validate_upload(filename, "image/png", 10)

    def test_custom_allow_list_and_limit(self):
        validate_upload("a.webp", "image/webp", 10, max_size_bytes=10, allowed=["webp"])
        with pytest.raises(ValidationError):
            validate_upload("a.png", "image/png", 10, allowed=["webp"])
        with pytest.raises(ValidationError, match="payload too large"):
            validate_upload("a.webp", "image/webp", 11, max_size_bytes=10, allowed=["webp"])

    def test_error_status_is_400(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_upload("a.txt", "text/plain", 1)
        assert exc_info.value.status_code == 400
