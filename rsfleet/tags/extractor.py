"""Extraction of namespaced tags from raw tag names."""

from typing import Tuple

DEFAULT_TAG_NAMESPACE = "ec2"


def extract_tag(raw: str, namespace: str = DEFAULT_TAG_NAMESPACE) -> Tuple[str, str, bool]:
    """
    Parse a raw tag name of the form ``<namespace>:<key>=<value>``.

    The prefix before the first ``:`` must equal ``namespace``. The remainder
    is split on ``=``; everything after the first ``=`` is kept as the value,
    so embedded separators survive ("ec2:color=blue=green" gives value
    "blue=green").

    Args:
        raw: Raw tag name as returned by the tag lookup
        namespace: The recognized namespace token

    Returns:
        Tuple of (key, value, ok). ok is False when the tag is outside the
        namespace, in which case key and value are empty.
    """
    prefix, sep, remainder = raw.partition(":")
    if not sep or prefix != namespace:
        return "", "", False

    key, _, value = remainder.partition("=")
    return key, value, True
