from s3certcache.cache import S3Cache
from s3certcache.dsn import DEFAULT_REGION
from s3certcache.dsn import parse_s3_dsn
from s3certcache.s3client import S3Client

import io
import os
import ZConfig


SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.xml")


class CacheConfig:
    """Everything needed to build an :class:`S3Cache`.

    Defaults:

    - ``region``: ``us-east-1``
    - ``key_prefix``: empty, objects live at the bucket root
    - ``use_ssl``: True, ``addressing_style``: ``auto``
    - ``connect_timeout`` / ``read_timeout``: 60 seconds
    - ``s3_client``: None, a boto3 S3 client is created on :meth:`open`
    - ``logger``: None, diagnostics are dropped

    ``s3_client`` is an already built boto3 S3 client (tests, custom
    sessions). It replaces the one :meth:`open` would create; the bucket
    still comes from ``bucket``.
    """

    def __init__(
        self,
        bucket=None,
        region=DEFAULT_REGION,
        key_prefix="",
        access_key_id=None,
        secret_access_key=None,
        endpoint_url=None,
        use_ssl=True,
        addressing_style="auto",
        connect_timeout=60,
        read_timeout=60,
        sse_customer_key=None,
        s3_client=None,
        logger=None,
    ):
        self.bucket = bucket
        self.region = region
        self.key_prefix = key_prefix
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.endpoint_url = endpoint_url
        self.use_ssl = use_ssl
        self.addressing_style = addressing_style
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.sse_customer_key = sse_customer_key
        self.s3_client = s3_client
        self.logger = logger

    @classmethod
    def from_dsn(cls, dsn, **overrides):
        """Defaults, then values parsed from ``dsn``, then ``overrides``."""
        parsed = parse_s3_dsn(dsn)
        values = {
            "region": parsed.region,
            "bucket": parsed.bucket,
            "key_prefix": parsed.prefix,
        }
        if parsed.access_key_id:
            values["access_key_id"] = parsed.access_key_id
        if parsed.secret_access_key:
            values["secret_access_key"] = parsed.secret_access_key
        values.update(overrides)
        return cls(**values)

    def open(self):
        if not self.bucket:
            raise ValueError("an S3 bucket is required")
        s3_client = S3Client(
            bucket_name=self.bucket,
            region_name=self.region,
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            use_ssl=self.use_ssl,
            addressing_style=self.addressing_style,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            sse_customer_key=self.sse_customer_key,
            client=self.s3_client,
        )
        return S3Cache(s3_client, prefix=self.key_prefix, logger=self.logger)


def new_cache(region, bucket, **overrides):
    region = region or DEFAULT_REGION
    return CacheConfig(region=region, bucket=bucket, **overrides).open()


def cache_from_dsn(dsn, **overrides):
    return CacheConfig.from_dsn(dsn, **overrides).open()


# ZConfig keys that map onto CacheConfig fields.
_ZCONFIG_KEYS = {
    "bucket_name": "bucket",
    "s3_region": "region",
    "s3_prefix": "key_prefix",
    "s3_endpoint_url": "endpoint_url",
    "s3_access_key": "access_key_id",
    "s3_secret_key": "secret_access_key",
    "s3_use_ssl": "use_ssl",
    "s3_addressing_style": "addressing_style",
    "s3_sse_customer_key": "sse_customer_key",
    "connect_timeout": "connect_timeout",
    "read_timeout": "read_timeout",
}


class S3CacheFactory:
    """ZConfig factory for S3Cache."""

    def __init__(self, config):
        self.config = config
        self.name = config.getSectionName()

    def cache_config(self, **overrides):
        values = {}
        for key, field in _ZCONFIG_KEYS.items():
            value = getattr(self.config, key)
            if value is not None:
                values[field] = value
        values.update(overrides)
        if self.config.dsn:
            return CacheConfig.from_dsn(self.config.dsn, **values)
        return CacheConfig(**values)

    def open(self, **overrides):
        return self.cache_config(**overrides).open()


def _load_schema():
    return ZConfig.loadSchema(SCHEMA_PATH)


def cache_from_file(path, **overrides):
    """Build an S3Cache from a ZConfig file holding an <s3cache> section."""
    with open(path) as f:
        config, _handler = ZConfig.loadConfigFile(_load_schema(), f)
    return config.cache.open(**overrides)


def cache_from_string(text, **overrides):
    """Build an S3Cache from ZConfig text holding an <s3cache> section."""
    config, _handler = ZConfig.loadConfigFile(_load_schema(), io.StringIO(text))
    return config.cache.open(**overrides)
