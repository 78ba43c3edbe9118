import json
from typing import List, Optional

from xml.etree import ElementTree as ET

from .selectors import FieldSelector, SelectorKind

TRUTHY_ATTRIBUTE_VALUES = {"true", "1"}


def serialize_values(values: list) -> str:
    return json.dumps(values, ensure_ascii=False)


def find_groups(listing: ET.Element, group: str) -> List[ET.Element]:
    if not group:
        return [listing]
    return listing.findall(group)


def navigate(group: Optional[ET.Element], selector: FieldSelector) -> Optional[ET.Element]:
    if group is None or not selector.parent:
        return group
    return group.find(selector.parent)


def _truthy_attribute_names(node: ET.Element) -> List[str]:
    return [name for name, value in node.attrib.items() if value in TRUTHY_ATTRIBUTE_VALUES]


def _node_value(node: ET.Element, selector: FieldSelector) -> Optional[str]:
    kind = selector.kind
    if kind is SelectorKind.ELEMENT_TEXT:
        return node.text or ""
    if kind is SelectorKind.ATTRIBUTE_LITERAL:
        return node.get(selector.attribute)
    if kind is SelectorKind.ATTRIBUTE_ALL:
        return json.dumps(dict(node.attrib), ensure_ascii=False)
    if kind is SelectorKind.ATTRIBUTE_TRUTHY_NAME:
        names = _truthy_attribute_names(node)
        return names[-1] if names else None
    if kind is SelectorKind.ATTRIBUTE_TRUTHY_LIST:
        names = _truthy_attribute_names(node)
        return serialize_values(names) if names else None
    if kind is SelectorKind.NTH_CHILD_NAME:
        children = list(node)
        if len(children) >= selector.child_index:
            return children[selector.child_index - 1].tag
        return None
    raise ValueError(f"Unsupported selector kind {kind}")


def resolve_field(group: Optional[ET.Element], selector: FieldSelector) -> Optional[str]:
    """Evaluate ``selector`` against ``group``.

    Zero matches yield ``None``, a single match yields the trimmed value and
    several matches are serialized as a JSON list.
    """
    target = navigate(group, selector)
    if target is None:
        return None

    nodes = target.findall(selector.leaf) if selector.leaf else [target]
    results = [value for value in (_node_value(node, selector) for node in nodes) if value is not None]

    if not results:
        return None
    if len(results) == 1:
        return results[0].strip()
    return serialize_values(results)
