from botocore.config import Config
from botocore.exceptions import ClientError
from s3certcache.interfaces import IS3Client
from zope.interface import implementer

import base64
import boto3
import logging


logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class ObjectNotFound(Exception):
    """The requested key does not exist in the bucket."""


def _is_not_found(e):
    if e.response.get("ResponseMetadata", {}).get("HTTPStatusCode") == 404:
        return True
    return e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


@implementer(IS3Client)
class S3Client:
    """Thin boto3 wrapper bound to a single bucket.

    Every write requests encryption at rest: SSE-S3 (AES256) by default,
    or SSE-C when ``sse_customer_key`` is given. Errors other than
    "not found" are re-raised untouched.
    """

    def __init__(
        self,
        bucket_name,
        region_name=None,
        endpoint_url=None,
        aws_access_key_id=None,
        aws_secret_access_key=None,
        use_ssl=True,
        addressing_style="auto",
        connect_timeout=60,
        read_timeout=60,
        sse_customer_key=None,
        client=None,
    ):
        if not bucket_name:
            raise ValueError("bucket_name must not be empty")
        self.bucket_name = bucket_name
        self.region_name = region_name

        # SSE-C setup
        if sse_customer_key:
            if not use_ssl:
                raise ValueError("SSE-C requires SSL, set s3-use-ssl to true")
            raw_key = base64.b64decode(sse_customer_key)
            if len(raw_key) != 32:
                raise ValueError(
                    f"SSE-C key must be 32 bytes (256-bit), got {len(raw_key)}"
                )
            self._sse_read_args = {
                "SSECustomerAlgorithm": "AES256",
                "SSECustomerKey": raw_key,
            }
            self._sse_write_args = dict(self._sse_read_args)
        else:
            self._sse_read_args = {}
            self._sse_write_args = {"ServerSideEncryption": "AES256"}

        if client is not None:
            self._client = client
            return

        config = Config(
            s3={"addressing_style": addressing_style},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )

        kwargs = {"config": config}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if region_name:
            kwargs["region_name"] = region_name
        if aws_access_key_id:
            kwargs["aws_access_key_id"] = aws_access_key_id
        if aws_secret_access_key:
            kwargs["aws_secret_access_key"] = aws_secret_access_key
        kwargs["use_ssl"] = use_ssl
        if not use_ssl:
            logger.warning(
                "S3 SSL is disabled, data and credentials travel in cleartext"
            )

        self._client = boto3.client("s3", **kwargs)

    def get_object(self, key):
        try:
            resp = self._client.get_object(
                Bucket=self.bucket_name, Key=key, **self._sse_read_args
            )
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFound(key) from e
            logger.debug("S3 get failed for key=%s: %s", key, e)
            raise
        body = resp["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def put_object(self, key, data):
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=bytes(data),
                **self._sse_write_args,
            )
        except ClientError as e:
            logger.debug("S3 put failed for key=%s: %s", key, e)
            raise

    def delete_object(self, key):
        try:
            self._client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            logger.debug("S3 delete failed for key=%s: %s", key, e)
            raise
