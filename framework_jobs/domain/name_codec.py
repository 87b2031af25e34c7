"""Bidirectional mapping between job identifiers and framework resource names.

Names generated by this service have the shape `user~job` and are encoded
with a reversible lowercase base-32 alphabet so they satisfy the framework
controller naming rules. Any other name is treated as foreign and normalized
lossily.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Final, Mapping

_DOMAIN_NAME_SEPARATOR: Final[str] = "~"
_DOMAIN_NAME_FOREIGN_PREFIX: Final[str] = "unknown"
_DOMAIN_NAME_DISALLOWED_PATTERN = re.compile(r"[^a-z0-9]")
_DOMAIN_NAME_FOREIGN_PREFIX_PATTERN = re.compile(r"^unknown")

# RFC 4648 alphabet mapped onto the lowercase framework-safe alphabet.
_DOMAIN_NAME_RFC4648_ALPHABET: Final[str] = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_DOMAIN_NAME_BASE32_ALPHABET: Final[str] = "0123456789abcdefghjkmnpqrtuvwxyz"
_DOMAIN_NAME_ENCODE_TABLE = str.maketrans(_DOMAIN_NAME_RFC4648_ALPHABET, _DOMAIN_NAME_BASE32_ALPHABET)
_DOMAIN_NAME_DECODE_TABLE = str.maketrans(_DOMAIN_NAME_BASE32_ALPHABET, _DOMAIN_NAME_RFC4648_ALPHABET)


@dataclass(frozen=True)
class OwnEncodedName:
    """Name generated by this service and encoded reversibly.

    Attributes:
        original: Full `user~job` identifier.
    """

    original: str

    def encoded(self) -> str:
        return domain_name_base32_encode(self.original)


@dataclass(frozen=True)
class ForeignName:
    """Name not generated by this service, normalized lossily.

    Attributes:
        normalized: Name restricted to lowercase alphanumerics.
    """

    normalized: str

    def encoded(self) -> str:
        return self.normalized


def domain_name_convert(name: str) -> str:
    """Normalize a name to lowercase alphanumerics.

    Args:
        name: Candidate name.

    Returns:
        str: Lowercased name with every other character removed.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return _DOMAIN_NAME_DISALLOWED_PATTERN.sub("", name.lower())


def domain_name_is_foreign(name: str) -> bool:
    """Return whether a name was not generated by this service.

    Args:
        name: Candidate job or framework name.

    Returns:
        bool: True when the name has the synthetic prefix or no separator.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return name.startswith(_DOMAIN_NAME_FOREIGN_PREFIX) or _DOMAIN_NAME_SEPARATOR not in name


def domain_name_classify(name: str) -> OwnEncodedName | ForeignName:
    """Classify a name into its encoding mode.

    Args:
        name: Candidate job or framework name.

    Returns:
        OwnEncodedName | ForeignName: Tagged encoding mode for the name.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if domain_name_is_foreign(name):
        return ForeignName(normalized=domain_name_convert(_DOMAIN_NAME_FOREIGN_PREFIX_PATTERN.sub("", name)))
    return OwnEncodedName(original=name)


def domain_name_encode(name: str) -> str:
    """Encode a job identifier into a framework resource name.

    Args:
        name: Job identifier, usually `user~job`.

    Returns:
        str: Framework-safe resource name.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return domain_name_classify(name).encoded()


def domain_name_decode(name: str, labels: Mapping[str, str] | None = None) -> str:
    """Recover the job name of a framework resource.

    Args:
        name: Framework resource name.
        labels: Optional framework labels.

    Returns:
        str: `jobName` label when present, else the resource name unchanged.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if labels and labels.get("jobName"):
        return labels["jobName"]
    return name


def domain_name_base32_encode(value: str) -> str:
    """Encode text with the lowercase framework-safe base-32 alphabet.

    Args:
        value: Text to encode.

    Returns:
        str: Unpadded base-32 text.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    rfc_encoded = base64.b32encode(value.encode("utf-8")).decode("ascii").rstrip("=")
    return rfc_encoded.translate(_DOMAIN_NAME_ENCODE_TABLE)


def domain_name_base32_decode(encoded: str) -> str:
    """Decode text produced by `domain_name_base32_encode`.

    Args:
        encoded: Unpadded base-32 text.

    Returns:
        str: Original text.

    Raises:
        ValueError: Raised when the input is not valid base-32 text.
    """

    rfc_encoded = encoded.translate(_DOMAIN_NAME_DECODE_TABLE)
    padding = "=" * (-len(rfc_encoded) % 8)
    try:
        return base64.b32decode(rfc_encoded + padding).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as error:
        raise ValueError(f"invalid encoded framework name: {encoded}") from error


def domain_name_split_framework_name(framework_name: str) -> tuple[str, str]:
    """Split a `user~job` identifier on its first separator.

    Args:
        framework_name: Job identifier.

    Returns:
        tuple[str, str]: User name and job name, job name is empty without a separator.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    user_name, _, job_name = framework_name.partition(_DOMAIN_NAME_SEPARATOR)
    return user_name, job_name
