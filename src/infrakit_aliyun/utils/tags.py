"""Tag map utilities."""

import logging
from typing import Dict, List, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

# ECS accepts at most 20 tags per resource.
MAX_TAGS = 20


def merge_tags(*tag_maps: Optional[Mapping[str, str]]) -> Tuple[List[str], Dict[str, str]]:
    """Merge tag maps, the last map to set a key wins.

    Returns the sorted union of keys together with the merged mapping, so
    callers can enumerate tags in a predictable order.
    """
    keys: List[str] = []
    tags: Dict[str, str] = {}

    for tag_map in tag_maps:
        if not tag_map:
            continue
        for key, value in tag_map.items():
            if key in tags:
                logger.debug(f"Overwriting tag value for key {key}")
            else:
                keys.append(key)
            tags[key] = value

    keys.sort()
    return keys, tags


def tag_params(tags: Optional[Mapping[str, str]], prefix: str = "Tag") -> Dict[str, str]:
    """Encode tags as ECS query parameters (Tag.1.Key, Tag.1.Value, ...)."""
    keys, merged = merge_tags(tags)
    if len(keys) > MAX_TAGS:
        raise ValueError(f"Too many tags: {len(keys)} given, at most {MAX_TAGS} allowed")

    params = {}
    for index, key in enumerate(keys, start=1):
        params[f"{prefix}.{index}.Key"] = key
        params[f"{prefix}.{index}.Value"] = merged[key]
    return params


def parse_tag_args(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated key=value arguments into a tag map."""
    tags = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key or "=" in value:
            raise ValueError(f"Tags must be formatted as key=value: {item!r}")
        tags[key] = value
    return tags
