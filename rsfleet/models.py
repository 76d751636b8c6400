"""Data models for rsfleet.

Every resource document returned by the API carries a ``links`` collection of
``(rel, href)`` pairs. Identity comes from the ``self`` link and related
resources and actions are addressed through the other relations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

from rsfleet.errors import DecodeError

T = TypeVar("T")

# Creation timestamps use this fixed textual format, e.g. "2012/12/24 13:27:58 +0000"
CREATED_AT_FORMAT = "%Y/%m/%d %H:%M:%S %z"

# Value returned by Tags.tag_value when no tag carries the requested name
MISSING_TAG_VALUE = "N/A"


@dataclass(frozen=True)
class Link:
    """A named pointer from one resource document to another."""

    rel: str
    href: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Link":
        return cls(rel=data.get("rel", ""), href=data.get("href", ""))


class Links(list):
    """Ordered collection of links with lookup by relation name."""

    @classmethod
    def from_api(cls, data: Optional[List[Dict[str, Any]]]) -> "Links":
        return cls(Link.from_api(item) for item in data or [])

    def link_value(self, rel: str) -> Optional[str]:
        """Return the href of the first link named ``rel``, or None if absent."""
        for link in self:
            if link.rel == rel:
                return link.href
        return None


@dataclass(frozen=True)
class Tag:
    """A single tag, a name/value pair."""

    name: str
    value: str


class Tags(list):
    """Ordered collection of tags.

    Duplicate names are preserved; lookups return the first match.
    """

    def tag_value(self, name: str) -> str:
        for tag in self:
            if tag.name == name:
                return tag.value
        return MISSING_TAG_VALUE


@dataclass
class Deployment:
    """An organizational grouping of server arrays."""

    name: str
    links: Links = field(default_factory=Links)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Deployment":
        return cls(name=data.get("name", ""), links=Links.from_api(data.get("links")))

    @property
    def href(self) -> Optional[str]:
        return self.links.link_value("self")

    @property
    def server_arrays_href(self) -> Optional[str]:
        return self.links.link_value("server_arrays")


@dataclass
class ServerArray:
    """An elastically scaled group of homogeneous server instances.

    ``href`` is derived from the ``self`` link. It is None when the document
    carries no such link, in which case the array is not addressable and is
    never sent to tag lookup, launch or termination.
    """

    name: str
    links: Links = field(default_factory=Links)
    instances_count: int = 0
    state: str = ""
    array_type: str = ""
    description: str = ""
    href: Optional[str] = None
    tags: Tags = field(default_factory=Tags)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ServerArray":
        links = Links.from_api(data.get("links"))
        return cls(
            name=data.get("name", ""),
            links=links,
            instances_count=int(data.get("instances_count") or 0),
            state=data.get("state", ""),
            array_type=data.get("array_type", ""),
            description=data.get("description") or "",
            href=links.link_value("self"),
        )

    @property
    def self_href(self) -> Optional[str]:
        return self.links.link_value("self")

    @property
    def is_addressable(self) -> bool:
        return bool(self.self_href)

    @property
    def array_id(self) -> Optional[str]:
        """Numeric portion at the end of the array's href."""
        href = self.self_href
        if not href:
            return None
        return href.rstrip("/").rsplit("/", 1)[-1]

    @property
    def next_instance_href(self) -> Optional[str]:
        return self.links.link_value("next_instance")


@dataclass
class ServerInstance:
    """One running (or terminated) server belonging to an array."""

    TERMINATED_STATE = "terminated"

    name: str
    state: str = ""
    created_at: str = ""
    links: Links = field(default_factory=Links)
    resource_uid: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ServerInstance":
        return cls(
            name=data.get("name", ""),
            state=data.get("state", ""),
            created_at=data.get("created_at", ""),
            links=Links.from_api(data.get("links")),
            resource_uid=data.get("resource_uid", ""),
        )

    @property
    def href(self) -> Optional[str]:
        return self.links.link_value("self")

    @property
    def is_terminated(self) -> bool:
        return self.state == self.TERMINATED_STATE


@dataclass(frozen=True)
class Input:
    """A single named input of an array's next instance."""

    name: str
    type: str
    value: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Input":
        """Decode an input whose raw value has the form ``<type>:<value>``."""
        raw = data.get("value", "")
        input_type, sep, value = raw.partition(":")
        if not sep:
            input_type, value = "", raw
        return cls(name=data.get("name", ""), type=input_type, value=value)


@dataclass
class RawTagRecord:
    """One entry of a bulk tag-by-resource response, prior to extraction."""

    links: Links = field(default_factory=Links)
    tag_names: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RawTagRecord":
        return cls(
            links=Links.from_api(data.get("links")),
            tag_names=[t.get("name", "") for t in data.get("tags") or []],
        )


def decode_list(payload: Any, model: Type[T]) -> List[T]:
    """Decode a JSON array of resource documents into model instances.

    Raises:
        DecodeError: If the payload is not a list of objects.
    """
    if not isinstance(payload, list):
        raise DecodeError(
            f"expected a list of {model.__name__} documents, got {type(payload).__name__}"
        )
    items = []
    for item in payload:
        if not isinstance(item, dict):
            raise DecodeError(f"expected {model.__name__} document, got {type(item).__name__}")
        items.append(_decode(item, model))
    return items


def decode_one(payload: Any, model: Type[T]) -> T:
    """Decode a single JSON resource document."""
    if not isinstance(payload, dict):
        raise DecodeError(
            f"expected a {model.__name__} document, got {type(payload).__name__}"
        )
    return _decode(payload, model)


def _decode(item: Dict[str, Any], model: Type[T]) -> T:
    try:
        return model.from_api(item)  # type: ignore[attr-defined]
    except (AttributeError, TypeError, ValueError) as e:
        raise DecodeError(f"malformed {model.__name__} document: {e}") from e
