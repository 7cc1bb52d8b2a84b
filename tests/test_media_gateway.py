import os

import boto3
import pytest
from botocore.stub import ANY, Stubber

from api.media.gateway import IMAGE, VIDEO, MediaGateway

BUCKET = "vidtube-test"


@pytest.fixture
def s3():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def media(s3):
    client, _ = s3
    return MediaGateway(client=client, bucket=BUCKET, public_url="https://cdn.test/media/")


def _local_file(tmp_path, name, payload=b"payload"):
    path = tmp_path / name
    path.write_bytes(payload)
    return str(path)


def test_store_uploads_and_discards_local_file(s3, media, tmp_path):
    _, stubber = s3
    path = _local_file(tmp_path, "clip.mp4")
    stubber.add_response(
        "put_object",
        {},
        {"Bucket": BUCKET, "Key": ANY, "Body": ANY, "ContentType": "video/mp4"},
    )

    asset = media.store(path)
    assert asset is not None
    assert asset.resource_type == VIDEO
    assert asset.url == f"https://cdn.test/media/videos/{asset.public_id}"
    assert not os.path.exists(path)


def test_store_image_uses_image_prefix(s3, media, tmp_path):
    _, stubber = s3
    path = _local_file(tmp_path, "thumb.png")
    stubber.add_response(
        "put_object",
        {},
        {"Bucket": BUCKET, "Key": ANY, "Body": ANY, "ContentType": "image/png"},
    )

    asset = media.store(path)
    assert asset.resource_type == IMAGE
    assert asset.url.endswith(f"/images/{asset.public_id}")


def test_store_failure_returns_none_and_discards_file(s3, media, tmp_path):
    _, stubber = s3
    path = _local_file(tmp_path, "clip.mp4")
    stubber.add_client_error("put_object", service_error_code="InternalError", http_status_code=500)

    assert media.store(path) is None
    assert not os.path.exists(path)


def test_store_without_path(media):
    assert media.store(None) is None
    assert media.store("") is None


def test_remove_deletes_object(s3, media):
    _, stubber = s3
    stubber.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": "images/abc"})
    assert media.remove("abc", IMAGE) is True


def test_remove_failure_returns_false(s3, media):
    _, stubber = s3
    stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
    assert media.remove("abc") is False


def test_remove_without_id_is_noop(media):
    assert media.remove(None) is True
    assert media.remove("") is True


def test_store_uses_caller_kind_for_extensionless_file(s3, media, tmp_path):
    _, stubber = s3
    path = _local_file(tmp_path, "clip")
    stubber.add_response(
        "put_object",
        {},
        {"Bucket": BUCKET, "Key": ANY, "Body": ANY, "ContentType": "video/x-matroska"},
    )

    asset = media.store(path, VIDEO, "video/x-matroska")
    assert asset.resource_type == VIDEO

    stubber.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": f"videos/{asset.public_id}"})
    assert media.remove(asset.public_id, asset.resource_type) is True
