"""Vocabulary shared across the compiler.

The directive and modifier tables are a closed set: anything not listed
here is either a plain attribute or a grammar error.
"""

from __future__ import annotations

# Root marker tag; transparent grouping everywhere else in the tree
TEMPLATE_TAG = "template"

# Slot outlet tag
SLOT_TAG = "slot"

# Slot-content key for children without a slot="" attribute
DEFAULT_SLOT_NAME = "$default$"

# Directive namespaces (ns in ns:name) -> directive kind
DIRECTIVES: dict[str, str] = {
    "set": "set",
    "bind": "bind",
    "repeat": "repeat",
    "for": "repeat",
}

# Directive kinds that do not come from a namespace
BIND = "bind"
REPEAT = "repeat"
IS = "is"

# Modifiers (name in ns:name)
MODIFIERS: frozenset[str] = frozenset({"if", "else", "for", "each", "item", "index"})

# Object-form iteration modifiers: for:each={items} for:item="it" for:index="i"
FOR_EACH_MODIFIERS: frozenset[str] = frozenset({"each", "item", "index"})

EVENT_PREFIX = "on"
DATA_ATTRIBUTE_PREFIX = "data-"
NAME_ATTRIBUTE = "name"
SLOT_ATTRIBUTE = "slot"
IS_ATTRIBUTE = "is"

# Attribute namespaces that belong to SVG/XML rather than to directives
SVG_NAMESPACES: frozenset[str] = frozenset({"xlink", "xml", "xmlns"})

# Keys emitted at the top level of the attributes dict instead of a group
TOP_LEVEL_PROPS: frozenset[str] = frozenset({"key", "class", "style"})

# Attribute groups
ATTRS = "attrs"
PROPS = "props"
DATASET = "dataset"
ON = "on"
SLOTSET = "slotset"

# Reflexive self-reference, never allowed inside template expressions
SELF_REFERENCE = "self"
