"""Parse ``s3://`` connection strings.

Accepted forms::

    s3://[id[:secret]@]bucket/prefix...
    s3://[id[:secret]@]bucket.s3[-region].amazonaws.com/prefix...
    s3://[id[:secret]@]s3[-region].amazonaws.com/bucket/prefix...

Any host whose last two labels are not ``amazonaws.com`` is taken
verbatim as the bucket name.
"""

from collections import namedtuple
from urllib.parse import unquote
from urllib.parse import urlsplit


SCHEME = "s3"
DEFAULT_REGION = "us-east-1"

_ROOT_DOMAIN = ("amazonaws", "com")
_SERVICE_LABEL = "s3"
_REGION_TAG = "s3-"


class DSNError(ValueError):
    """The connection string cannot be turned into a bucket location."""


S3DSN = namedtuple(
    "S3DSN", ["region", "bucket", "prefix", "access_key_id", "secret_access_key"]
)


def _region_from_label(label, dsn):
    """Return the region encoded in the service label, or None."""
    label = label.lower()
    if label == _SERVICE_LABEL:
        return None
    if label.startswith(_REGION_TAG) and len(label) > len(_REGION_TAG):
        return label[len(_REGION_TAG) :]
    raise DSNError(f"malformed S3 service label {label!r} in {dsn!r}")


def _split_host(host, dsn):
    """Return (region, bucket) derived from the host; either may be None."""
    labels = host.split(".")
    if len(labels) == 1:
        return None, host
    if tuple(label.lower() for label in labels[-2:]) != _ROOT_DOMAIN:
        # custom domain, the whole host names the bucket
        return None, host
    if len(labels) < 3:
        raise DSNError(f"missing S3 service label in {dsn!r}")
    region = _region_from_label(labels[-3], dsn)
    leading = labels[:-3]
    bucket = ".".join(leading) if leading else None
    return region, bucket


def parse_s3_dsn(dsn):
    """Decompose an ``s3://`` DSN into an :class:`S3DSN`.

    The bucket named by the host wins over a bucket in the path. The
    returned prefix always starts with ``/``. Raises :class:`DSNError`
    for any other scheme, a malformed region label, or a DSN that names
    no bucket at all.
    """
    try:
        parts = urlsplit(dsn)
        username = parts.username
        password = parts.password
    except ValueError as e:
        raise DSNError(f"invalid S3 DSN {dsn!r}: {e}") from e

    if parts.scheme != SCHEME:
        raise DSNError(f"unsupported scheme {parts.scheme!r} in {dsn!r}, want s3")
    # hostname would lowercase the bucket name
    host = parts.netloc.rpartition("@")[2].partition(":")[0]
    if not host:
        raise DSNError(f"missing host in {dsn!r}")

    access_key_id = unquote(username) if username else None
    secret_access_key = unquote(password) if password else None

    region, bucket = _split_host(host, dsn)
    path = unquote(parts.path)

    if bucket:
        prefix = path or "/"
    else:
        bucket, _, rest = path.removeprefix("/").partition("/")
        if not bucket:
            raise DSNError(f"no bucket in host or path of {dsn!r}")
        prefix = "/" + rest

    return S3DSN(
        region=region or DEFAULT_REGION,
        bucket=bucket,
        prefix=prefix,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
    )
