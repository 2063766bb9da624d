from botocore.exceptions import ClientError
from botocore.exceptions import IncompleteReadError
from moto import mock_aws
from s3certcache.interfaces import IS3Client
from s3certcache.s3client import ObjectNotFound
from s3certcache.s3client import S3Client
from unittest import mock
from zope.interface.verify import verifyObject

import base64
import boto3
import pytest


@pytest.fixture
def s3_env():
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket="test-bucket")
        yield


@pytest.fixture
def client(s3_env):
    return S3Client(bucket_name="test-bucket", region_name="us-east-1")


class TestS3ClientInterface:
    def test_interface_provided(self, client):
        assert IS3Client.providedBy(client)
        assert verifyObject(IS3Client, client)


class TestGetPut:
    def test_put_and_get_roundtrip(self, client):
        client.put_object("certs/example.com", b"-----BEGIN CERTIFICATE-----")
        assert client.get_object("certs/example.com") == b"-----BEGIN CERTIFICATE-----"

    def test_put_overwrites(self, client):
        client.put_object("key", b"first")
        client.put_object("key", b"second")
        assert client.get_object("key") == b"second"

    def test_put_accepts_bytearray(self, client):
        client.put_object("key", bytearray(b"\x00\x01\x02"))
        assert client.get_object("key") == b"\x00\x01\x02"

    def test_get_missing_raises_not_found(self, client):
        with pytest.raises(ObjectNotFound):
            client.get_object("missing")

    def test_put_requests_server_side_encryption(self, client):
        client.put_object("encrypted", b"secret key material")
        s3 = boto3.client("s3", region_name="us-east-1")
        meta = s3.head_object(Bucket="test-bucket", Key="encrypted")
        assert meta["ServerSideEncryption"] == "AES256"

    def test_key_is_stored_verbatim(self, client):
        client.put_object("certs/prod/example.com", b"data")
        s3 = boto3.client("s3", region_name="us-east-1")
        resp = s3.list_objects_v2(Bucket="test-bucket")
        keys = [obj["Key"] for obj in resp.get("Contents", [])]
        assert keys == ["certs/prod/example.com"]


class TestNotFound:
    def test_missing_bucket_is_not_found(self, s3_env):
        """Any 404 from S3 counts as absent, NoSuchBucket included."""
        client = S3Client(bucket_name="no-such-bucket", region_name="us-east-1")
        with pytest.raises(ObjectNotFound) as exc_info:
            client.get_object("key")
        cause = exc_info.value.__cause__
        assert cause.response["Error"]["Code"] == "NoSuchBucket"

    def test_404_status_without_known_code(self):
        raw = mock.MagicMock()
        raw.get_object.side_effect = ClientError(
            {
                "Error": {"Code": "SomethingElse"},
                "ResponseMetadata": {"HTTPStatusCode": 404},
            },
            "GetObject",
        )
        client = S3Client(bucket_name="test-bucket", client=raw)
        with pytest.raises(ObjectNotFound):
            client.get_object("key")

    def test_not_found_code_without_status(self):
        raw = mock.MagicMock()
        raw.get_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey"}}, "GetObject"
        )
        client = S3Client(bucket_name="test-bucket", client=raw)
        with pytest.raises(ObjectNotFound):
            client.get_object("key")


class TestOtherErrorsPassThrough:
    def test_access_denied(self):
        error = ClientError(
            {
                "Error": {"Code": "AccessDenied", "Message": "Access Denied"},
                "ResponseMetadata": {"HTTPStatusCode": 403},
            },
            "GetObject",
        )
        raw = mock.MagicMock()
        raw.get_object.side_effect = error
        client = S3Client(bucket_name="test-bucket", client=raw)
        with pytest.raises(ClientError) as exc_info:
            client.get_object("key")
        assert exc_info.value is error

    def test_put_to_missing_bucket(self, s3_env):
        client = S3Client(bucket_name="no-such-bucket", region_name="us-east-1")
        with pytest.raises(ClientError):
            client.put_object("key", b"data")

    def test_body_read_failure(self):
        error = IncompleteReadError(actual_bytes=3, expected_bytes=10)
        body = mock.MagicMock()
        body.read.side_effect = error
        raw = mock.MagicMock()
        raw.get_object.return_value = {"Body": body}
        client = S3Client(bucket_name="test-bucket", client=raw)

        with pytest.raises(IncompleteReadError) as exc_info:
            client.get_object("key")
        assert exc_info.value is error
        body.close.assert_called_once_with()
        raw.get_object.assert_called_once_with(Bucket="test-bucket", Key="key")


class TestDeleteObject:
    def test_delete_object(self, client):
        client.put_object("del/key", b"delete me")
        client.delete_object("del/key")
        with pytest.raises(ObjectNotFound):
            client.get_object("del/key")

    def test_delete_nonexistent_does_not_raise(self, client):
        """Deleting a non-existent key should not raise."""
        client.delete_object("nonexistent/key")


class TestInjectedClient:
    def test_uses_given_boto3_client(self, s3_env):
        raw = boto3.client("s3", region_name="us-east-1")
        client = S3Client(bucket_name="test-bucket", client=raw)
        client.put_object("injected", b"data")
        body = raw.get_object(Bucket="test-bucket", Key="injected")["Body"].read()
        assert body == b"data"


class TestValidation:
    def test_empty_bucket_rejected(self):
        with pytest.raises(ValueError, match="bucket_name"):
            S3Client(bucket_name="")

    def test_sse_c_requires_ssl(self):
        key = base64.b64encode(b"k" * 32).decode()
        with pytest.raises(ValueError, match="SSE-C requires SSL"):
            S3Client(bucket_name="b", sse_customer_key=key, use_ssl=False)

    def test_sse_c_key_length(self):
        key = base64.b64encode(b"short").decode()
        with pytest.raises(ValueError, match="32 bytes"):
            S3Client(bucket_name="b", sse_customer_key=key)

    def test_sse_c_replaces_sse_s3(self):
        key = base64.b64encode(b"k" * 32).decode()
        client = S3Client(bucket_name="b", region_name="us-east-1", sse_customer_key=key)
        assert "ServerSideEncryption" not in client._sse_write_args
        assert client._sse_write_args["SSECustomerAlgorithm"] == "AES256"
        assert client._sse_write_args["SSECustomerKey"] == b"k" * 32
