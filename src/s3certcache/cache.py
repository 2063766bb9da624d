from s3certcache.interfaces import ICache
from s3certcache.s3client import ObjectNotFound
from zope.interface import implementer

import asyncio
import functools


class CacheMiss(Exception):
    """No certificate data is stored under the requested key."""


def normalize_prefix(prefix):
    """Return prefix ending in exactly one "/", or "" for no prefix."""
    if not prefix:
        return ""
    return prefix.rstrip("/") + "/"


@implementer(ICache)
class S3Cache:
    """Certificate cache backed by an S3 bucket.

    Every logical key is stored as ``prefix + key``. The blocking storage
    call runs in an executor thread while the calling task waits for it.
    If that task is cancelled or times out first, the caller gets the
    cancellation right away and the storage call is left to finish on
    its own: a cancelled put or delete may still take effect.
    """

    def __init__(self, s3_client, prefix="", logger=None, executor=None):
        self._s3_client = s3_client
        self.prefix = normalize_prefix(prefix)
        self.logger = logger
        self._executor = executor

    @property
    def bucket_name(self):
        return self._s3_client.bucket_name

    def __repr__(self):
        return f"<S3Cache s3://{self.bucket_name}/{self.prefix}>"

    def full_key(self, key):
        return self.prefix + key

    def _log(self, msg, *args):
        if self.logger is None:
            return
        self.logger.debug(msg, *args)

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(func, *args)
        )

    async def get(self, key):
        key = self.full_key(key)
        self._log("S3 Cache Get %s", key)
        try:
            return await self._run(self._s3_client.get_object, key)
        except ObjectNotFound:
            raise CacheMiss(key) from None

    async def put(self, key, data):
        key = self.full_key(key)
        self._log("S3 Cache Put %s", key)
        await self._run(self._s3_client.put_object, key, data)

    async def delete(self, key):
        key = self.full_key(key)
        self._log("S3 Cache Delete %s", key)
        await self._run(self._s3_client.delete_object, key)
