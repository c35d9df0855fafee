"""
Tests for service layer business logic.
"""
import io
import pytest
from unittest.mock import MagicMock

from gallery_gateway.config import settings
from gallery_gateway.errors import (
    InvalidInputError,
    NoFilesError,
    NotFoundError,
    PayloadTooLargeError,
    StorageFailureError,
    TooManyFilesError,
)
from gallery_gateway.services.gallery_service import (
    GalleryService,
    IncomingFile,
    build_object_key,
    detect_content_type,
    sanitize_basename,
)


def incoming(name: str = "cat.png", data: bytes = b"image-bytes", size=None) -> IncomingFile:
    return IncomingFile(filename=name, stream=io.BytesIO(data), content_type="image/png", size=size)


class TestObjectKeys:
    """Tests for key generation helpers."""

    def test_build_object_key(self):
        assert build_object_key("gallery/", "cat.png", 1718000000000) == "gallery/1718000000000-cat.png"

    def test_build_object_key_strips_directories(self):
        assert build_object_key("gallery/", "../../etc/passwd.txt", 1) == "gallery/1-passwd.txt"
        assert build_object_key("gallery/", "C:\\Users\\me\\dog.JPG", 1) == "gallery/1-dog.JPG"

    def test_sanitize_replaces_unsafe_characters(self):
        assert sanitize_basename("my summer photo?#.png") == "my_summer_photo"
        assert sanitize_basename("a%2Fb.png") == "a_2Fb"

    def test_sanitize_keeps_unicode_letters(self):
        assert sanitize_basename("가족사진.jpg") == "가족사진"

    def test_sanitize_empty_name(self):
        assert sanitize_basename("") == "file"
        assert sanitize_basename("???.png") == "file"

    def test_key_without_extension(self):
        assert build_object_key("gallery/", "README", 5) == "gallery/5-README"

    def test_duplicate_count_goes_before_extension(self):
        assert build_object_key("gallery/", "cat.png", 7, duplicate=2) == "gallery/7-cat-2.png"


class TestContentType:
    """Tests for content type detection."""

    def test_guess_from_name(self):
        assert detect_content_type("cat.jpg", "application/octet-stream") == "image/jpeg"

    def test_falls_back_to_declared(self):
        assert detect_content_type("blob.unknownext", "image/heic") == "image/heic"

    def test_default(self):
        assert detect_content_type("blob", None) == "application/octet-stream"


class TestUploadImages:
    """Tests for GalleryService.upload_images."""

    def test_upload_returns_urls_in_order(self, gallery_service: GalleryService, s3_client: MagicMock):
        urls = gallery_service.upload_images([incoming("a.png"), incoming("b.gif")])

        assert urls == [
            "https://test-bucket.s3.ap-northeast-2.amazonaws.com/gallery/1718000000000-a.png",
            "https://test-bucket.s3.ap-northeast-2.amazonaws.com/gallery/1718000000000-b.gif",
        ]
        _, kwargs = s3_client.upload_fileobj.call_args
        assert kwargs["ExtraArgs"] == {"ContentType": "image/gif"}

    def test_upload_empty_batch(self, gallery_service: GalleryService, s3_client: MagicMock):
        with pytest.raises(NoFilesError):
            gallery_service.upload_images([])
        s3_client.upload_fileobj.assert_not_called()

    def test_upload_too_many(self, gallery_service: GalleryService, s3_client: MagicMock):
        with pytest.raises(TooManyFilesError):
            gallery_service.upload_images([incoming(f"{i}.png") for i in range(11)])
        s3_client.upload_fileobj.assert_not_called()

    def test_upload_too_large_by_declared_size(self, gallery_service: GalleryService, s3_client: MagicMock):
        with pytest.raises(PayloadTooLargeError):
            gallery_service.upload_images([incoming(size=settings.max_file_size_bytes + 1)])
        s3_client.upload_fileobj.assert_not_called()

    def test_upload_exact_size_limit_accepted(self, store, s3_client: MagicMock):
        """A file of exactly max_file_size_bytes is within the limit."""
        service = GalleryService(store, settings.model_copy(update={"max_file_size_bytes": 5}))

        urls = service.upload_images([incoming(data=b"12345"), incoming("dog.png", size=5)])

        assert len(urls) == 2
        assert s3_client.upload_fileobj.call_count == 2

    def test_upload_default_size_limit_boundary(self, gallery_service: GalleryService, s3_client: MagicMock):
        gallery_service.upload_images([incoming(size=settings.max_file_size_bytes)])

        s3_client.upload_fileobj.assert_called_once()

    def test_upload_too_large_by_stream_size(self, store, s3_client: MagicMock):
        service = GalleryService(store, settings.model_copy(update={"max_file_size_bytes": 4}))

        with pytest.raises(PayloadTooLargeError):
            service.upload_images([incoming(data=b"12345")])
        s3_client.upload_fileobj.assert_not_called()

    def test_same_name_same_millisecond_gets_distinct_keys(
        self, gallery_service: GalleryService, s3_client: MagicMock
    ):
        """Repeated names in one batch must not overwrite each other."""
        urls = gallery_service.upload_images([incoming("cat.png"), incoming("cat.png"), incoming("cat.png")])

        keys = [call.args[2] for call in s3_client.upload_fileobj.call_args_list]
        assert keys == [
            "gallery/1718000000000-cat.png",
            "gallery/1718000000000-cat-1.png",
            "gallery/1718000000000-cat-2.png",
        ]
        assert len(set(urls)) == 3

    def test_upload_stops_on_storage_error(
        self, gallery_service: GalleryService, s3_client: MagicMock, make_client_error
    ):
        s3_client.upload_fileobj.side_effect = [None, make_client_error("AccessDenied", "PutObject")]

        with pytest.raises(StorageFailureError):
            gallery_service.upload_images([incoming("a.png"), incoming("b.png"), incoming("c.png")])
        assert s3_client.upload_fileobj.call_count == 2


class TestListImages:
    """Tests for GalleryService.list_image_urls."""

    def test_sorted_desc_and_filtered(self, gallery_service: GalleryService, s3_client: MagicMock, s3_object):
        s3_client.list_objects_v2.return_value = {
            "Contents": [
                s3_object("gallery/a.png", minutes=1),
                s3_object("gallery/", size=0, minutes=99),
                s3_object("gallery/b.png", minutes=5),
            ],
            "IsTruncated": False,
        }

        urls = gallery_service.list_image_urls()

        assert [url.rsplit("/", 1)[-1] for url in urls] == ["b.png", "a.png"]

    def test_ties_keep_backend_order(self, gallery_service: GalleryService, s3_client: MagicMock, s3_object):
        s3_client.list_objects_v2.return_value = {
            "Contents": [
                s3_object("gallery/first.png", minutes=3),
                s3_object("gallery/second.png", minutes=3),
                s3_object("gallery/third.png", minutes=3),
            ],
        }

        urls = gallery_service.list_image_urls()

        assert [url.rsplit("/", 1)[-1] for url in urls] == ["first.png", "second.png", "third.png"]

    def test_follows_continuation_tokens(self, gallery_service: GalleryService, s3_client: MagicMock, s3_object):
        s3_client.list_objects_v2.side_effect = [
            {"Contents": [s3_object("gallery/a.png", minutes=1)], "IsTruncated": True, "NextContinuationToken": "t1"},
            {"Contents": [s3_object("gallery/b.png", minutes=2)], "IsTruncated": False},
        ]

        urls = gallery_service.list_image_urls()

        assert len(urls) == 2
        second_call = s3_client.list_objects_v2.call_args_list[1]
        assert second_call.kwargs["ContinuationToken"] == "t1"

    def test_backend_error(self, gallery_service: GalleryService, s3_client: MagicMock, make_client_error):
        s3_client.list_objects_v2.side_effect = make_client_error("AccessDenied", "ListObjectsV2")

        with pytest.raises(StorageFailureError):
            gallery_service.list_image_urls()


class TestDeleteImage:
    """Tests for GalleryService.delete_image."""

    def test_delete_prefixes_key(self, gallery_service: GalleryService, s3_client: MagicMock):
        assert gallery_service.delete_image("cat.png") == "gallery/cat.png"
        s3_client.delete_object.assert_called_once_with(Bucket="test-bucket", Key="gallery/cat.png")

    @pytest.mark.parametrize("code", ["NoSuchKey", "404", "NotFound"])
    def test_delete_missing(self, gallery_service: GalleryService, s3_client: MagicMock, make_client_error, code):
        s3_client.delete_object.side_effect = make_client_error(code)

        with pytest.raises(NotFoundError):
            gallery_service.delete_image("missing.png")

    def test_delete_other_error(self, gallery_service: GalleryService, s3_client: MagicMock, make_client_error):
        s3_client.delete_object.side_effect = make_client_error("InternalError")

        with pytest.raises(StorageFailureError):
            gallery_service.delete_image("cat.png")

    def test_delete_empty_key(self, gallery_service: GalleryService, s3_client: MagicMock):
        with pytest.raises(InvalidInputError):
            gallery_service.delete_image("")
        s3_client.delete_object.assert_not_called()


class TestBatchDelete:
    """Tests for batch key parsing and GalleryService.delete_images."""

    def test_parse_valid(self):
        assert GalleryService.parse_batch_keys({"keys": ["a.png", "b.png"]}) == ["a.png", "b.png"]

    @pytest.mark.parametrize("payload", [None, {}, {"keys": []}, {"keys": None}, {"keys": "a.png"},
                                         {"keys": ["a.png", ""]}, {"keys": [{"Key": "a"}]}, ["a.png"]])
    def test_parse_invalid(self, payload):
        with pytest.raises(InvalidInputError):
            GalleryService.parse_batch_keys(payload)

    def test_all_deleted(self, gallery_service: GalleryService, s3_client: MagicMock):
        s3_client.delete_objects.return_value = {
            "Deleted": [{"Key": "gallery/a.png"}, {"Key": "gallery/b.png"}],
        }

        result = gallery_service.delete_images(["a.png", "b.png"])

        assert result.deleted == ["a.png", "b.png"]
        assert not result.is_partial

    def test_partial(self, gallery_service: GalleryService, s3_client: MagicMock):
        s3_client.delete_objects.return_value = {
            "Deleted": [{"Key": "gallery/a.png"}],
            "Errors": [{"Key": "gallery/b.png", "Code": "AccessDenied", "Message": "Access Denied"}],
        }

        result = gallery_service.delete_images(["a.png", "b.png"])

        assert result.is_partial
        assert result.deleted == ["a.png"]
        assert result.errors[0].key == "b.png"
        assert result.errors[0].code == "AccessDenied"

    def test_empty_keys_never_call_backend(self, gallery_service: GalleryService, s3_client: MagicMock):
        with pytest.raises(InvalidInputError):
            gallery_service.delete_images([])
        s3_client.delete_objects.assert_not_called()

    def test_batch_call_failure(self, gallery_service: GalleryService, s3_client: MagicMock, make_client_error):
        s3_client.delete_objects.side_effect = make_client_error("MalformedXML", "DeleteObjects")

        with pytest.raises(StorageFailureError):
            gallery_service.delete_images(["a.png"])
