"""Typed selector AST for mapping rule field selectors.

A field selector addresses a value relative to a matched XML group::

    preis                   element text of <preis>
    kontaktperson/name      text of <name> below the first <kontaktperson>
    aktion@aktionart        literal attribute ``aktionart``
    @*                      all attributes of the group, as a JSON object
    vermarktungsart@+       name of the (last) attribute set to true/1
    nutzungsart@#           JSON list of attribute names set to true/1
    objektart@[1]           tag of the first child element

Selectors are parsed once when the mapping configuration is loaded so that a
malformed selector is rejected before any feed is touched.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from immosync.core.errors import MappingConfigError

ATTRIBUTE_NAME_PATTERN = re.compile(r"^[A-Za-z_][\w.\-]*$")
CHILD_INDEX_PATTERN = re.compile(r"^\[([123])\]$")
# One ElementTree path step: a tag (or *, ., ..) with optional [predicates].
PATH_STEP_PATTERN = re.compile(r"^(\*|\.{1,2}|[A-Za-z_][\w.\-]*)(\[[^\]]+\])*$")


class SelectorKind(str, Enum):
    ELEMENT_TEXT = "element_text"
    ATTRIBUTE_LITERAL = "attribute_literal"
    ATTRIBUTE_ALL = "attribute_all"
    ATTRIBUTE_TRUTHY_NAME = "attribute_truthy_name"
    ATTRIBUTE_TRUTHY_LIST = "attribute_truthy_list"
    NTH_CHILD_NAME = "nth_child_name"


ATTRIBUTE_MODES = {
    "*": SelectorKind.ATTRIBUTE_ALL,
    "+": SelectorKind.ATTRIBUTE_TRUTHY_NAME,
    "#": SelectorKind.ATTRIBUTE_TRUTHY_LIST,
}


@dataclass(frozen=True)
class FieldSelector:
    raw: str
    kind: SelectorKind
    parent: Optional[str] = None
    leaf: str = ""
    attribute: Optional[str] = None
    child_index: Optional[int] = None


def split_path(path: str) -> list[str]:
    """Split a path on ``/`` while leaving predicates such as ``[@a='x/y']`` intact."""
    steps: list[str] = []
    depth = 0
    quote: Optional[str] = None
    current = ""
    for char in path:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        elif char == "/" and depth == 0:
            steps.append(current)
            current = ""
            continue
        current += char
    steps.append(current)
    return steps


def validate_path(path: str, raw: str) -> list[str]:
    if not path:
        return []
    steps = split_path(path)
    for step in steps:
        if not PATH_STEP_PATTERN.match(step):
            raise MappingConfigError(f"Invalid path step {step!r} in selector {raw!r}")
    return steps


def parse_selector(raw: Optional[str]) -> FieldSelector:
    selector = (raw or "").strip()
    path, sep, attr = selector.rpartition("@") if "@" in selector else (selector, "", "")

    steps = validate_path(path, selector)
    parent = "/".join(steps[:-1]) or None
    leaf = steps[-1] if steps else ""

    if not sep:
        return FieldSelector(raw=selector, kind=SelectorKind.ELEMENT_TEXT, parent=parent, leaf=leaf)

    if attr in ATTRIBUTE_MODES:
        return FieldSelector(raw=selector, kind=ATTRIBUTE_MODES[attr], parent=parent, leaf=leaf)

    index_match = CHILD_INDEX_PATTERN.match(attr)
    if index_match:
        return FieldSelector(
            raw=selector,
            kind=SelectorKind.NTH_CHILD_NAME,
            parent=parent,
            leaf=leaf,
            child_index=int(index_match.group(1)),
        )

    if not ATTRIBUTE_NAME_PATTERN.match(attr):
        raise MappingConfigError(f"Invalid attribute selector {attr!r} in {selector!r}")

    return FieldSelector(
        raw=selector, kind=SelectorKind.ATTRIBUTE_LITERAL, parent=parent, leaf=leaf, attribute=attr
    )


def parse_group_selector(raw: Optional[str]) -> str:
    group = (raw or "").strip()
    validate_path(group, group)
    return group
