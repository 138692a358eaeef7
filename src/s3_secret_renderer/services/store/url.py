"""Parsing of object store URLs into store keys."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

from ...constants import OBJECT_STORE_GCS, OBJECT_STORE_LOCAL, OBJECT_STORE_MEMORY, OBJECT_STORE_S3
from ...utils.errors import ObjectStoreUrlError

SCHEME_TO_STORE_TYPE = {
    "file": OBJECT_STORE_LOCAL,
    "mem": OBJECT_STORE_MEMORY,
    "s3": OBJECT_STORE_S3,
    "gs": OBJECT_STORE_GCS,
}

_BUCKET_SCHEMES = ("s3", "gs")


@dataclass(frozen=True)
class ObjectStoreKey:
    """Identifies the store a URL points into.

    Two URLs with equal keys can share one store client.
    """

    store_type: str
    bucket: str | None = None
    region: str | None = None
    virtual_hosted_style_request: bool = False

    def describe(self) -> str:
        if self.bucket is None:
            return self.store_type
        return f"{self.store_type}({self.bucket})"


def parse_object_store_url(url: str) -> ObjectStoreKey:
    """Parse an object store URL.

    Supported forms: ``file:///path``, ``mem:///path``,
    ``s3://bucket/prefix?region=us-east-1&virtual_hosted=true`` and
    ``gs://bucket/prefix``.

    Args:
        url: Object store URL

    Returns:
        Key of the store the URL points into

    Raises:
        ObjectStoreUrlError: If the URL is malformed, has no bucket or uses an unsupported scheme
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ObjectStoreUrlError(f"invalid URL '{url}'") from e

    if not parsed.scheme:
        raise ObjectStoreUrlError(f"invalid URL '{url}'")

    scheme = parsed.scheme.lower()
    store_type = SCHEME_TO_STORE_TYPE.get(scheme)
    if store_type is None:
        expected = ", ".join(f"'{s}'" for s in SCHEME_TO_STORE_TYPE)
        raise ObjectStoreUrlError(
            f"unsupported scheme '{parsed.scheme}' in URL '{url}'; expected one of {expected}"
        )

    if scheme not in _BUCKET_SCHEMES:
        return ObjectStoreKey(store_type=store_type)

    if not parsed.netloc:
        raise ObjectStoreUrlError(f"missing host in URL '{url}'")

    if scheme == "gs":
        return ObjectStoreKey(store_type=store_type, bucket=parsed.netloc)

    query = parse_qs(parsed.query)
    region = query.get("region", [None])[0]
    virtual_hosted = query.get("virtual_hosted", ["false"])[0].lower() in ("true", "1")
    return ObjectStoreKey(
        store_type=store_type,
        bucket=parsed.netloc,
        region=region,
        virtual_hosted_style_request=virtual_hosted,
    )


def object_path(url: str) -> str:
    """Return the object path inside the store, without the leading ``/``.

    Raises:
        ObjectStoreUrlError: If the URL cannot be parsed
    """
    parse_object_store_url(url)
    return urlparse(url).path.lstrip("/")
