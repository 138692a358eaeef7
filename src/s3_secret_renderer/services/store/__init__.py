"""Object store location handling."""

from .url import ObjectStoreKey, object_path, parse_object_store_url

__all__ = ["ObjectStoreKey", "object_path", "parse_object_store_url"]
