"""Join bulk tag lookups back onto the resources they belong to."""

import dataclasses
import logging
from typing import Dict, Iterable, List

from rsfleet.models import RawTagRecord, ServerArray, Tag, Tags
from rsfleet.tags.extractor import DEFAULT_TAG_NAMESPACE, extract_tag

logger = logging.getLogger(__name__)

# Link relation marking the resource a raw tag record belongs to
RESOURCE_REL = "resource"

TagMap = Dict[str, Tags]


def map_tags_to_resource(
    records: Iterable[RawTagRecord],
    namespace: str = DEFAULT_TAG_NAMESPACE,
) -> TagMap:
    """
    Build a mapping of resource href to its tags.

    Each record's tags are extracted once; every ``resource`` link of the
    record is then mapped to that tag set. A record with no recognized tags
    still maps its resources to an empty Tags.

    Args:
        records: Raw tag records from a tag-by-resource lookup
        namespace: Namespace whose tags are retained

    Returns:
        Dict mapping resource href to Tags
    """
    tag_map: TagMap = {}
    for record in records:
        tag_set = Tags()
        for raw_name in record.tag_names:
            key, value, ok = extract_tag(raw_name, namespace)
            if not ok:
                continue
            tag_set.append(Tag(name=key, value=value))

        for link in record.links:
            if link.rel == RESOURCE_REL:
                tag_map[link.href] = tag_set

    return tag_map


def associate_array_tags(arrays: Iterable[ServerArray], tag_map: TagMap) -> List[ServerArray]:
    """
    Join tags onto arrays by href.

    Returns new ServerArray objects with ``href`` normalized from the ``self``
    link and ``tags`` taken from the map. Arrays missing from the map get an
    empty Tags.
    """
    joined = []
    for array in arrays:
        href = array.self_href
        tags = tag_map.get(href) if href else None
        if tags is None:
            logger.debug(f"No tags found for array '{array.name}' ({href})")
            tags = Tags()
        joined.append(dataclasses.replace(array, href=href, tags=Tags(tags)))
    return joined
