"""Builder for the object store credentials Secret."""

from __future__ import annotations

import logging
import time
from typing import Any

import yaml
from kubernetes import client

from .. import metrics
from ..constants import (
    DATA_KEY_ACCESS_KEY_ID,
    DATA_KEY_SECRET_ACCESS_KEY,
    KIND_SECRET,
    KNOWN_OBJECT_STORE_TYPES,
    MANIFEST_KEY_ORDER,
    METADATA_KEY_ORDER,
    OBJECT_STORE_S3,
    SECRET_API_VERSION,
    TEMPLATE_SECRET,
    VALUES_ACCESS_KEY_ID,
    VALUES_OBJECT_STORE_PATH,
    VALUES_OBJECT_STORE_TYPE,
    VALUES_SECRET_ACCESS_KEY,
)
from ..logging import log_render_event
from ..services.store.url import object_path, parse_object_store_url
from ..services.template.engine import tpl
from ..utils.encoding import b64encode_str
from ..utils.errors import ObjectStoreUrlError, RenderError, ValuesError, sanitize_exception
from .context import RenderContext
from .helpers import fullname, labels
from .values import get_value

logger = logging.getLogger(__name__)


def object_store_type(ctx: RenderContext) -> str:
    """Return ``storage.objectStore.type``.

    Raises:
        ValuesError: If the key is missing or not a string
    """
    store_type = get_value(ctx.values, VALUES_OBJECT_STORE_TYPE)
    if not isinstance(store_type, str):
        raise ValuesError(
            f"value '{VALUES_OBJECT_STORE_TYPE}' must be a string, got {type(store_type).__name__}"
        )
    return store_type


def _check_store_path(ctx: RenderContext, store_type: str) -> None:
    path = get_value(ctx.values, VALUES_OBJECT_STORE_PATH, default=None)
    if not path:
        return
    try:
        key = parse_object_store_url(str(path))
    except ObjectStoreUrlError as e:
        logger.warning(f"Ignoring {VALUES_OBJECT_STORE_PATH}: {e}")
        return
    if key.store_type != store_type:
        logger.warning(
            f"{VALUES_OBJECT_STORE_PATH} points to {key.describe()} "
            f"but {VALUES_OBJECT_STORE_TYPE} is '{store_type}'"
        )
    else:
        logger.debug(f"Object store {key.describe()} at path '{object_path(str(path))}'")


def resolve_credential(ctx: RenderContext, path: str, root: dict[str, Any] | None = None) -> str:
    """Resolve a credential value through ``tpl``.

    Args:
        ctx: Render context
        path: Dotted values path of the credential
        root: Template root, defaults to ``ctx.as_template_root()``

    Returns:
        Resolved, non-empty credential

    Raises:
        ValuesError: If the value is missing, not a string, or resolves to ""
        TemplateError: If the value holds an expression that cannot be evaluated
    """
    raw = get_value(ctx.values, path, default=None)
    if raw is None:
        raise ValuesError(f"missing required value '{path}'")
    if not isinstance(raw, str):
        raise ValuesError(f"value '{path}' must be a string, got {type(raw).__name__}")

    resolved = tpl(raw, root if root is not None else ctx.as_template_root(), name=path)
    if not resolved:
        raise ValuesError(f"value '{path}' resolved to an empty string")
    return resolved


def build_object_store_secret(ctx: RenderContext) -> client.V1Secret | None:
    """Build the S3 credentials Secret.

    Args:
        ctx: Render context

    Returns:
        The Secret, or None when the object store is not S3

    Raises:
        ValuesError: If required values are missing or invalid
        TemplateError: If a credential expression cannot be evaluated
    """
    store_type = object_store_type(ctx)
    _check_store_path(ctx, store_type)

    if store_type != OBJECT_STORE_S3:
        if store_type not in KNOWN_OBJECT_STORE_TYPES:
            logger.warning(f"Unknown object store type '{store_type}', no Secret rendered")
        return None

    root = ctx.as_template_root()
    access_key_id = resolve_credential(ctx, VALUES_ACCESS_KEY_ID, root)
    secret_access_key = resolve_credential(ctx, VALUES_SECRET_ACCESS_KEY, root)

    return client.V1Secret(
        api_version=SECRET_API_VERSION,
        kind=KIND_SECRET,
        metadata=client.V1ObjectMeta(
            name=fullname(ctx),
            namespace=ctx.release.namespace,
            labels=labels(ctx),
        ),
        data={
            DATA_KEY_ACCESS_KEY_ID: b64encode_str(access_key_id),
            DATA_KEY_SECRET_ACCESS_KEY: b64encode_str(secret_access_key),
        },
    )


def _ordered(data: dict[str, Any], order: tuple[str, ...]) -> dict[str, Any]:
    result = {key: data[key] for key in order if key in data}
    result.update({key: value for key, value in data.items() if key not in result})
    return result


def secret_to_manifest(secret: client.V1Secret) -> dict[str, Any]:
    """Serialize a Secret to a manifest dict in conventional key order."""
    with client.ApiClient() as api_client:
        manifest = api_client.sanitize_for_serialization(secret)
    manifest["metadata"] = _ordered(manifest.get("metadata", {}), METADATA_KEY_ORDER)
    return _ordered(manifest, MANIFEST_KEY_ORDER)


def dump_manifest(manifest: dict[str, Any]) -> str:
    return yaml.safe_dump(manifest, default_flow_style=False, sort_keys=False)


def render_object_store_secret(ctx: RenderContext) -> str:
    """Render the Secret as YAML text.

    Args:
        ctx: Render context

    Returns:
        The YAML document, or "" when the object store is not S3

    Raises:
        RenderError: If the render fails; nothing is returned in that case
    """
    start_time = time.time()
    try:
        secret = build_object_store_secret(ctx)
        text = dump_manifest(secret_to_manifest(secret)) if secret is not None else ""
    except RenderError as e:
        metrics.render_total.labels(template=TEMPLATE_SECRET, result="failed").inc()
        log_render_event(
            logger,
            template=TEMPLATE_SECRET,
            release=ctx.release.name,
            namespace=ctx.release.namespace,
            event="render",
            reason="RenderFailed",
            message=sanitize_exception(e),
            level=logging.ERROR,
        )
        raise
    finally:
        metrics.render_duration_seconds.labels(template=TEMPLATE_SECRET).observe(
            time.time() - start_time
        )

    result = "rendered" if text else "skipped"
    metrics.render_total.labels(template=TEMPLATE_SECRET, result=result).inc()
    log_render_event(
        logger,
        template=TEMPLATE_SECRET,
        release=ctx.release.name,
        namespace=ctx.release.namespace,
        event="render",
        reason="Rendered" if text else "Skipped",
        message=f"Secret {fullname(ctx)} rendered" if text else "Object store is not s3",
    )
    return text


def render_manifests(ctx: RenderContext, *, with_source: bool = True) -> str:
    """Render in ``helm template`` output style.

    Args:
        ctx: Render context
        with_source: Prefix the document with a ``# Source:`` comment

    Returns:
        Document stream, "" when nothing renders
    """
    text = render_object_store_secret(ctx)
    if not text:
        return ""
    header = "---\n"
    if with_source:
        header += f"# Source: {ctx.chart.name}/{TEMPLATE_SECRET}\n"
    return header + text
