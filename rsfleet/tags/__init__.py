"""Tag extraction and tag-to-resource joining.

Tags on API resources are namespaced strings of the form
``<namespace>:<key>=<value>``. Only one namespace is recognized at a time:
- extract_tag: parse a raw tag name into (key, value, ok)
- map_tags_to_resource: group extracted tags by owning resource href
- associate_array_tags: join a tag map back onto server arrays
"""

from rsfleet.tags.extractor import DEFAULT_TAG_NAMESPACE, extract_tag
from rsfleet.tags.mapper import associate_array_tags, map_tags_to_resource

__all__ = [
    "DEFAULT_TAG_NAMESPACE",
    "extract_tag",
    "map_tags_to_resource",
    "associate_array_tags",
]
