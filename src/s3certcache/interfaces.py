from zope.interface import Attribute
from zope.interface import Interface


class IS3Client(Interface):
    """Abstraction over one S3 bucket."""

    bucket_name = Attribute("Name of the bucket every key is resolved in.")

    def get_object(key):
        """Return the object body as bytes.

        Raises ObjectNotFound when S3 answers 404 (missing key or bucket).
        """

    def put_object(key, data):
        """Store data under key with server-side encryption."""

    def delete_object(key):
        """Delete an object. Deleting a missing key is not an error."""


class ILogger(Interface):
    """Diagnostic sink. Any logging.Logger provides this."""

    def debug(msg, *args):
        """Record a diagnostic line."""


class ICache(Interface):
    """Certificate cache keyed by string, storing opaque bytes.

    All methods are coroutines. Cancelling the awaiting task returns
    control to the caller immediately; the outcome of the storage call
    is then unknown.
    """

    def get(key):
        """Return the data stored under key, or raise CacheMiss."""

    def put(key, data):
        """Store data under key."""

    def delete(key):
        """Remove key. Removing a missing key is not an error."""
