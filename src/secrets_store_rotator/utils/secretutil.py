"""Helpers for building Kubernetes secret data from mounted content."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re

from ..models import SecretObject, SecretObjectData
from .errors import SecretValidationError

SECRET_TYPE_OPAQUE = "Opaque"
SECRET_TYPE_TLS = "kubernetes.io/tls"
TLS_KEY = "tls.key"
TLS_CERT = "tls.crt"

VALID_SECRET_TYPES = {
    SECRET_TYPE_OPAQUE,
    "kubernetes.io/basic-auth",
    "bootstrap.kubernetes.io/token",
    "kubernetes.io/dockerconfigjson",
    "kubernetes.io/dockercfg",
    "kubernetes.io/ssh-auth",
    "kubernetes.io/service-account-token",
    SECRET_TYPE_TLS,
}

ENCODING_BASE64 = "base64"
ENCODING_HEX = "hex"
ENCODING_UTF8 = "utf-8"

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----\r?\n.*?-----END \1-----\r?\n?",
    re.DOTALL,
)


def validate_secret_object(secret_obj: SecretObject) -> None:
    """Check that a secret object descriptor is complete.

    Raises:
        SecretValidationError: If the name, type or data is missing
    """
    if not secret_obj.secret_name.strip():
        raise SecretValidationError("secret name is empty")
    if not secret_obj.type.strip():
        raise SecretValidationError(f"secret type is empty for secret {secret_obj.secret_name}")
    if not secret_obj.data:
        raise SecretValidationError(f"data is empty for secret {secret_obj.secret_name}")


def get_secret_type(secret_type: str) -> str:
    """Return the Kubernetes secret type, defaulting unknown types to Opaque."""
    secret_type = secret_type.strip()
    if secret_type in VALID_SECRET_TYPES:
        return secret_type
    return SECRET_TYPE_OPAQUE


def get_secret_data(
    data: list[SecretObjectData],
    secret_type: str,
    files: dict[str, bytes],
) -> dict[str, bytes]:
    """Extract the declared data keys from the mounted files.

    Args:
        data: Extraction rules of one secret object
        secret_type: Kubernetes secret type
        files: Mounted files keyed by relative name

    Returns:
        Secret data map of key -> raw bytes

    Raises:
        SecretValidationError: If a rule is incomplete, its file is missing or
            its content cannot be decoded
    """
    datamap: dict[str, bytes] = {}
    for item in data:
        object_name = item.object_name.strip()
        key = item.key.strip()
        if not object_name:
            raise SecretValidationError("object name in secretObjects.data cannot be empty")
        if not key:
            raise SecretValidationError(f"key in secretObjects.data for {object_name} cannot be empty")
        if object_name not in files:
            raise SecretValidationError(f"file matching objectName {object_name} not found in the pod")

        content = decode_content(files[object_name], item.encoding)
        if secret_type == SECRET_TYPE_TLS and key in (TLS_KEY, TLS_CERT):
            content = get_cert_part(content, key)
        datamap[key] = content
    return datamap


def decode_content(content: bytes, encoding: str | None) -> bytes:
    """Decode file content according to the declared encoding."""
    encoding = (encoding or "").strip().lower()
    if not encoding or encoding == ENCODING_UTF8:
        return content
    try:
        if encoding == ENCODING_BASE64:
            return base64.b64decode(content.strip(), validate=True)
        if encoding == ENCODING_HEX:
            return binascii.unhexlify(content.strip())
    except (binascii.Error, ValueError) as e:
        raise SecretValidationError(f"failed to decode {encoding} content: {e}") from e
    raise SecretValidationError(f"unsupported encoding {encoding}")


def get_cert_part(content: bytes, key: str) -> bytes:
    """Split a combined PEM bundle into its private key or certificate part."""
    blocks = [match.group(0) for match in _PEM_BLOCK.finditer(content)]
    if key == TLS_KEY:
        wanted = [block for block in blocks if b"PRIVATE KEY" in block.split(b"\n", 1)[0]]
    else:
        wanted = [block for block in blocks if b"CERTIFICATE" in block.split(b"\n", 1)[0]]
    if not wanted:
        raise SecretValidationError(f"no PEM block found for {key}")
    return b"".join(block if block.endswith(b"\n") else block + b"\n" for block in wanted)


def get_sha_from_secret(data: dict[str, bytes] | None) -> str:
    """Return a SHA-256 fingerprint of secret data, independent of key order."""
    encoded = {
        key: base64.b64encode(value).decode("ascii")
        for key, value in (data or {}).items()
    }
    payload = json.dumps(encoded, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def decode_secret_data(data: dict[str, str] | None) -> dict[str, bytes]:
    """Decode the base64 values of a V1Secret's data map into bytes."""
    return {key: base64.b64decode(value) for key, value in (data or {}).items()}


def encode_secret_data(data: dict[str, bytes]) -> dict[str, str]:
    """Encode raw bytes into the base64 form the API expects."""
    return {key: base64.b64encode(value).decode("ascii") for key, value in data.items()}
