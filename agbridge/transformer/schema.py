# JSON Schema Rewriter
#
# Downgrades arbitrary JSON Schemas into the restricted dialect accepted by
# Antigravity function declarations: uppercase types plus properties, items,
# required, description and enum. Anything the dialect cannot express is
# preserved as a "(...)" hint appended to the node's description.
#
# Every phase rebuilds the tree and never edits its input, so each one can be
# applied (and tested) on its own.

import json
from typing import Any, Callable, Optional

from agbridge.core.logging import get_logger

logger = get_logger()

SchemaNode = dict[str, Any]

MAX_DEPTH = 20

# The target validation mode rejects object schemas with zero properties
EMPTY_SCHEMA_PLACEHOLDER_NAME = "_placeholder"
EMPTY_SCHEMA_PLACEHOLDER_DESCRIPTION = "Placeholder. Always pass true."

ENUM_HINT_LIMIT = 10

# Constraint keywords moved into description hints
UNSUPPORTED_CONSTRAINTS = (
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "pattern",
    "format",
)

# Keywords removed once their hints have been extracted
UNSUPPORTED_KEYWORDS = frozenset(
    UNSUPPORTED_CONSTRAINTS
    + (
        "$schema",
        "$defs",
        "definitions",
        "$ref",
        "$id",
        "$comment",
        "const",
        "additionalProperties",
        "title",
        "default",
        "examples",
        "readOnly",
        "writeOnly",
        "deprecated",
        "contentEncoding",
        "contentMediaType",
        "if",
        "then",
        "else",
        "not",
        "dependentSchemas",
        "dependentRequired",
        "patternProperties",
        "propertyNames",
        "unevaluatedProperties",
        "unevaluatedItems",
        "contains",
        "minContains",
        "maxContains",
        "prefixItems",
    )
)

ALLOWED_KEYWORDS = frozenset(
    {"type", "properties", "items", "required", "description", "enum"}
)

DIALECT_TYPES = frozenset({"STRING", "NUMBER", "INTEGER", "BOOLEAN", "OBJECT", "ARRAY"})
SCALAR_TYPES = frozenset({"string", "number", "integer", "boolean"})

UNION_KEYS = ("anyOf", "oneOf")

# Keys that hold nested schemas; a node carrying any of them is not a leaf
_STRUCTURAL_KEYS = (
    "properties",
    "items",
    "anyOf",
    "oneOf",
    "allOf",
    "$defs",
    "definitions",
    "additionalProperties",
    "patternProperties",
    "prefixItems",
    "if",
    "then",
    "else",
    "not",
)


# =============================================================================
# Helpers
# =============================================================================


def _default_schema() -> SchemaNode:
    return {"type": "string"}


def _description(node: SchemaNode) -> str:
    desc = node.get("description")
    return desc if isinstance(desc, str) else ""


def _type_name(node: SchemaNode) -> str:
    node_type = node.get("type")
    return node_type.lower() if isinstance(node_type, str) else ""


def _is_dialect_type(value: Any) -> bool:
    return isinstance(value, str) and value in DIALECT_TYPES


def _stringify(value: Any) -> str:
    """Render a JSON value the way it reads in a description or enum."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return json.dumps(value, separators=(",", ":"), default=str)


def append_hint(node: SchemaNode, hint: str) -> SchemaNode:
    """Return a copy of ``node`` with ``(hint)`` appended to its description.

    A hint that is already present is not repeated.
    """
    current = _description(node)
    formatted = f"({hint})"
    if formatted in current:
        return node
    return {**node, "description": f"{current} {formatted}" if current else formatted}


def map_subschemas(
    node: SchemaNode, fn: Callable[[Any], SchemaNode]
) -> SchemaNode:
    """Rebuild ``node`` with ``fn`` applied to each directly nested schema.

    Only schema positions are visited: property values, items, and union or
    intersection branches. Keys inside ``properties`` are property names and
    are never treated as keywords.
    """
    result = dict(node)
    properties = node.get("properties")
    if isinstance(properties, dict):
        result["properties"] = {name: fn(sub) for name, sub in properties.items()}
    items = node.get("items")
    if isinstance(items, dict):
        result["items"] = fn(items)
    elif isinstance(items, list):
        result["items"] = [fn(sub) for sub in items]
    for key in ("anyOf", "oneOf", "allOf"):
        branches = node.get(key)
        if isinstance(branches, list):
            result[key] = [fn(branch) for branch in branches]
    return result


# =============================================================================
# Phase 0: Depth Guard
# =============================================================================


def _is_plain_leaf(node: SchemaNode) -> bool:
    node_type = node.get("type")
    if node_type is not None and _type_name(node) not in SCALAR_TYPES:
        return False
    if "$ref" in node:
        return False
    return not any(isinstance(node.get(key), (dict, list)) for key in _STRUCTURAL_KEYS)


def _collapse(node: SchemaNode) -> SchemaNode:
    leaf_type = node.get("type") if _type_name(node) in SCALAR_TYPES else "string"
    leaf: SchemaNode = {"type": leaf_type}
    if _description(node):
        leaf["description"] = _description(node)
    return append_hint(leaf, "Truncated: schema nested too deeply")


def limit_depth(schema: Any, depth: int = 0) -> SchemaNode:
    """Copy the schema tree, collapsing structure nested beyond MAX_DEPTH.

    Non-object subschemas (``true``, strings, ...) become the default string
    schema. Bounding the depth also terminates self-referencing trees.
    """
    if not isinstance(schema, dict):
        return _default_schema()
    if depth > MAX_DEPTH and not _is_plain_leaf(schema):
        logger.warning(f"Schema nested deeper than {MAX_DEPTH} levels; collapsing")
        return _collapse(schema)
    return map_subschemas(schema, lambda sub: limit_depth(sub, depth + 1))


# =============================================================================
# Phase 1: Hint Extraction
# =============================================================================


def extract_hints(node: SchemaNode) -> SchemaNode:
    """Convert unsupported keywords into description hints or structure.

    - ``$ref`` becomes an object with a "(See: Name)" hint
    - ``const`` becomes a single-value string enum
    - ``enum`` gets an "(Allowed: ...)" hint unless the node is already in
      the target dialect
    - ``additionalProperties: false`` and constraint keywords become hints
    """
    result = dict(node)

    ref = result.get("$ref")
    if isinstance(ref, str):
        ref_name = ref.rsplit("/", 1)[-1] or "ref"
        del result["$ref"]
        result["type"] = result.get("type") or "object"
        result = append_hint(result, f"See: {ref_name}")

    enum = result.get("enum")
    if "const" in result:
        result["enum"] = [_stringify(result.pop("const"))]
        result["type"] = result.get("type") or "string"
    elif isinstance(enum, list) and enum and not _is_dialect_type(result.get("type")):
        values = ", ".join(_stringify(v) for v in enum[:ENUM_HINT_LIMIT])
        suffix = ", ..." if len(enum) > ENUM_HINT_LIMIT else ""
        result = append_hint(result, f"Allowed: {values}{suffix}")

    if result.get("additionalProperties") is False:
        result = append_hint(result, "no extra properties")

    for constraint in UNSUPPORTED_CONSTRAINTS:
        value = result.get(constraint)
        if value is not None:
            result = append_hint(result, f"{constraint}: {_stringify(value)}")

    return map_subschemas(result, extract_hints)


# =============================================================================
# Phase 2: Structural Flattening
# =============================================================================


def merge_all_of(node: SchemaNode) -> SchemaNode:
    """Merge ``allOf`` branches into their parent.

    Properties are merged with later branches winning, required lists are
    unioned, and the first non-empty type and description are kept.
    """
    branches = node.get("allOf")
    if not isinstance(branches, list) or not branches:
        return map_subschemas(node, merge_all_of)

    result = {key: value for key, value in node.items() if key != "allOf"}
    properties = dict(result["properties"]) if isinstance(result.get("properties"), dict) else {}
    required = list(result["required"]) if isinstance(result.get("required"), list) else []

    for branch in branches:
        if not isinstance(branch, dict):
            continue
        merged = merge_all_of(branch)
        if isinstance(merged.get("properties"), dict):
            properties.update(merged["properties"])
        if isinstance(merged.get("required"), list):
            required.extend(merged["required"])
        if not result.get("type") and merged.get("type"):
            result["type"] = merged["type"]
        if not _description(result) and _description(merged):
            result["description"] = merged["description"]

    if properties:
        result["properties"] = properties
    names = [name for name in required if isinstance(name, str)]
    if names:
        result["required"] = list(dict.fromkeys(names))

    return map_subschemas(result, merge_all_of)


def _score_option(option: Any) -> tuple[int, str]:
    if not isinstance(option, dict):
        return 0, "unknown"

    option_type = option.get("type")
    if isinstance(option_type, list):
        non_null = [t for t in option_type if isinstance(t, str) and t.lower() != "null"]
        option_type = non_null[0] if non_null else "null"
    type_name = option_type.lower() if isinstance(option_type, str) else ""

    if type_name == "object" or "properties" in option:
        return 3, "object"
    if type_name == "array" or "items" in option:
        return 2, "array"
    if type_name and type_name != "null":
        return 1, type_name
    return 0, type_name or "null"


def _merge_enum_options(options: list[Any]) -> Optional[list[str]]:
    """Collect enum values when every union branch is a constant choice."""
    values: list[str] = []
    for option in options:
        if not isinstance(option, dict):
            return None
        if "const" in option:
            values.append(_stringify(option["const"]))
            continue
        enum = option.get("enum")
        if isinstance(enum, list) and enum:
            values.extend(_stringify(v) for v in enum)
            continue
        if any(key in option for key in ("properties", "items", "anyOf", "oneOf", "allOf")):
            return None
        if option.get("type"):
            return None
    return values or None


def flatten_unions(node: SchemaNode) -> SchemaNode:
    """Reduce ``anyOf``/``oneOf`` to a single schema.

    Unions of constants collapse to a string enum. Otherwise the richest
    branch wins (object > array > scalar > null, first on ties) and the
    other accepted types are kept as an "(Accepts: ...)" hint.
    """
    result = dict(node)

    for union_key in UNION_KEYS:
        options = result.get(union_key)
        if not isinstance(options, list) or not options:
            continue

        parent_desc = _description(result)
        rest = {key: value for key, value in result.items() if key != union_key}

        enum_values = _merge_enum_options(options)
        if enum_values is not None:
            result = {**rest, "type": "string", "enum": enum_values}
            continue

        best_index, best_score = 0, -1
        type_names: list[str] = []
        for index, option in enumerate(options):
            score, type_name = _score_option(option)
            type_names.append(type_name)
            if score > best_score:
                best_index, best_score = index, score

        option = options[best_index]
        selected = flatten_unions(option) if isinstance(option, dict) else _default_schema()

        if parent_desc:
            child_desc = _description(selected)
            if child_desc and child_desc != parent_desc:
                selected = {**selected, "description": f"{parent_desc} ({child_desc})"}
            elif not child_desc:
                selected = {**selected, "description": parent_desc}

        unique_types = list(dict.fromkeys(type_names))
        if len(unique_types) > 1:
            selected = append_hint(selected, f"Accepts: {' | '.join(unique_types)}")

        rest.pop("description", None)
        result = {**rest, **selected}

    return map_subschemas(result, flatten_unions)


def flatten_type_arrays(node: SchemaNode) -> SchemaNode:
    """Reduce ``type: [...]`` to one type, recording the others as hints.

    ``{"type": ["string", "null"]}`` becomes
    ``{"type": "string", "description": "(nullable)"}``.
    """
    result = dict(node)
    node_type = result.get("type")

    if isinstance(node_type, list):
        has_null = "null" in node_type
        non_null = [t for t in node_type if isinstance(t, str) and t and t != "null"]
        result["type"] = non_null[0] if non_null else "string"
        if len(non_null) > 1:
            result = append_hint(result, f"Accepts: {' | '.join(non_null)}")
        if has_null:
            result = append_hint(result, "nullable")
    elif _type_name(result) == "null":
        result["type"] = "string"
        result = append_hint(result, "nullable")

    return map_subschemas(result, flatten_type_arrays)


# =============================================================================
# Phase 3: Cleanup
# =============================================================================


def remove_unsupported_keywords(node: SchemaNode) -> SchemaNode:
    """Drop unsupported keywords at schema positions (never property names)."""
    result = {key: value for key, value in node.items() if key not in UNSUPPORTED_KEYWORDS}
    return map_subschemas(result, remove_unsupported_keywords)


def cleanup_required_fields(node: SchemaNode) -> SchemaNode:
    """Keep only required entries that name an existing sibling property."""
    result = dict(node)

    if "required" in result:
        properties = result.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        required = result["required"] if isinstance(result["required"], list) else []
        valid = [name for name in required if isinstance(name, str) and name in properties]
        if valid:
            result["required"] = list(dict.fromkeys(valid))
        else:
            del result["required"]

    return map_subschemas(result, cleanup_required_fields)


# =============================================================================
# Phase 4: Empty Object Placeholder
# =============================================================================


def add_empty_object_placeholder(node: SchemaNode) -> SchemaNode:
    """Give property-less object schemas a single required boolean property."""
    result = dict(node)

    properties = result.get("properties")
    if _type_name(result) == "object" and not (isinstance(properties, dict) and properties):
        result["properties"] = {
            EMPTY_SCHEMA_PLACEHOLDER_NAME: {
                "type": "boolean",
                "description": EMPTY_SCHEMA_PLACEHOLDER_DESCRIPTION,
            }
        }
        result["required"] = [EMPTY_SCHEMA_PLACEHOLDER_NAME]

    return map_subschemas(result, add_empty_object_placeholder)


# =============================================================================
# Phase 5: Dialect Normalization
# =============================================================================


def _dialect_type(value: Any) -> str:
    if isinstance(value, str) and value.upper() in DIALECT_TYPES:
        return value.upper()
    return "STRING"


def to_dialect(node: SchemaNode) -> SchemaNode:
    """Uppercase types, keep only dialect keywords, ensure arrays have items."""
    result: SchemaNode = {}

    properties = node.get("properties")
    property_names = set(properties) if isinstance(properties, dict) else set()

    for key, value in node.items():
        if key not in ALLOWED_KEYWORDS:
            continue
        if key == "type":
            result["type"] = _dialect_type(value)
        elif key == "properties":
            if isinstance(value, dict):
                result["properties"] = {
                    name: to_dialect(sub) if isinstance(sub, dict) else {"type": "STRING"}
                    for name, sub in value.items()
                }
        elif key == "items":
            # Tuple-style items keep only the first position
            if isinstance(value, list):
                value = value[0] if value else None
            result["items"] = to_dialect(value) if isinstance(value, dict) else {"type": "STRING"}
        elif key == "required":
            if isinstance(value, list):
                valid = [name for name in value if isinstance(name, str) and name in property_names]
                if valid:
                    result["required"] = valid
        elif key == "description":
            if isinstance(value, str):
                result["description"] = value
        elif key == "enum":
            if isinstance(value, list) and value:
                result["enum"] = list(value)

    if result.get("type") == "ARRAY" and "items" not in result:
        result["items"] = {"type": "STRING"}

    return result


# =============================================================================
# Main Entry Point
# =============================================================================


PHASES: tuple[Callable[[SchemaNode], SchemaNode], ...] = (
    extract_hints,
    merge_all_of,
    flatten_unions,
    flatten_type_arrays,
    remove_unsupported_keywords,
    cleanup_required_fields,
    add_empty_object_placeholder,
    to_dialect,
)


def rewrite_schema(schema: Any) -> SchemaNode:
    """Rewrite a JSON Schema into the Antigravity function-parameter dialect.

    Never raises: anything that is not a JSON object yields a plain STRING
    schema. Rewriting an already rewritten schema returns it unchanged.
    """
    if not isinstance(schema, dict):
        return {"type": "STRING"}

    result = limit_depth(schema)
    for phase in PHASES:
        result = phase(result)
    return result
