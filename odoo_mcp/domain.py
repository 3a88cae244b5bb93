"""
Structured query -> Odoo domain compiler.

Agents describe a search as a small boolean query::

    {"logic": "OR", "conditions": [
        {"field": "country_id", "operator": "=", "value": 186},
        {"field": "country_id", "operator": "=", "value": 38},
    ]}

and this module turns it into Odoo's prefix-notation domain::

    ["|", ["country_id", "=", 186], ["country_id", "=", 38]]

Encoding rules, applied at every nesting level:

- AND is implicit: operands are emitted back to back.
- OR emits ``N-1`` ``"|"`` markers ahead of its ``N`` operands.
- NOT emits a single ``"!"`` ahead of its operands.
- A one-operand AND/OR group is just that operand.

Raw JSON is first parsed into a tagged union of ``Condition`` leaves and
``QueryGroup`` nodes; malformed input raises a ``QueryError`` subclass
instead of producing a degenerate domain.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LOGIC_OPERATORS = ("AND", "OR", "NOT")

OR_MARKER = "|"
NOT_MARKER = "!"

# Documented operator vocabulary.  Anything else is passed through as-is.
COMMON_OPERATORS = (
    "=", "!=", ">", ">=", "<", "<=",
    "like", "ilike", "not like", "not ilike",
    "in", "not in",
)

_CONDITION_KEYS = ("field", "operator", "value")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class QueryError(ValueError):
    """Base class for invalid structured queries."""


class EmptyQueryError(QueryError):
    """A group has no conditions."""


class MalformedConditionError(QueryError):
    """A condition is missing a key or has a bad field/operator."""


class MixedConditionsError(QueryError):
    """A group mixes plain conditions and nested groups."""


# ---------------------------------------------------------------------------
# Query tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field.strip():
            raise MalformedConditionError(
                f"Condition field must be a non-empty string, got {self.field!r}"
            )
        if not isinstance(self.operator, str) or not self.operator.strip():
            raise MalformedConditionError(
                f"Condition operator must be a non-empty string, got {self.operator!r}"
            )

    def to_term(self) -> list[Any]:
        """Return the ``[field, operator, value]`` domain leaf."""
        return [self.field, self.operator, self.value]


@dataclass(frozen=True)
class QueryGroup:
    logic: str
    conditions: tuple[Node, ...]

    def __post_init__(self) -> None:
        if self.logic not in LOGIC_OPERATORS:
            raise QueryError(
                f"Unknown logic {self.logic!r}; expected one of {', '.join(LOGIC_OPERATORS)}"
            )
        # Accept any sequence but store a tuple so the tree stays immutable
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise EmptyQueryError(
                "Query group has no conditions. Provide at least one condition."
            )
        for node in self.conditions:
            if not isinstance(node, (Condition, QueryGroup)):
                raise MalformedConditionError(
                    f"Unexpected element in conditions: {node!r}"
                )
        if len({type(node) for node in self.conditions}) > 1:
            raise MixedConditionsError(
                "A group's conditions must be all plain conditions "
                "or all nested groups, not a mix."
            )

    @property
    def is_nested(self) -> bool:
        return isinstance(self.conditions[0], QueryGroup)

    @property
    def depth(self) -> int:
        if not self.is_nested:
            return 1
        return 1 + max(g.depth for g in self.conditions)  # type: ignore[union-attr]


Node = Union[Condition, QueryGroup]


# ---------------------------------------------------------------------------
# Parsing raw JSON
# ---------------------------------------------------------------------------

def _node_kind(raw: Mapping[str, Any], path: str) -> str:
    """Return "condition" or "group" for a raw query node."""
    kind = raw.get("kind")
    if kind is not None:
        if kind not in ("condition", "group"):
            raise MalformedConditionError(
                f"{path}: unknown kind {kind!r} (expected 'condition' or 'group')"
            )
        return kind
    if "logic" in raw or "conditions" in raw:
        return "group"
    return "condition"


def _parse_condition(raw: Mapping[str, Any], path: str) -> Condition:
    missing = [k for k in _CONDITION_KEYS if k not in raw]
    if missing:
        raise MalformedConditionError(
            f"{path}: condition is missing {', '.join(repr(k) for k in missing)}"
        )
    try:
        return Condition(raw["field"], raw["operator"], raw["value"])
    except MalformedConditionError as exc:
        raise MalformedConditionError(f"{path}: {exc}") from None


def _parse_group(raw: Mapping[str, Any], path: str, allow_nested: bool) -> QueryGroup:
    logic = raw.get("logic")
    if logic is None:
        raise QueryError(
            f"{path}: 'logic' is required; use \"AND\", \"OR\" or \"NOT\""
        )
    if not isinstance(logic, str):
        raise QueryError(f"{path}: logic must be a string, got {logic!r}")
    logic = logic.strip().upper()

    conditions = raw.get("conditions")
    if conditions is None:
        raise EmptyQueryError(f"{path}: 'conditions' is required")
    if isinstance(conditions, (str, bytes)) or not isinstance(conditions, Sequence):
        raise QueryError(f"{path}: 'conditions' must be an array")
    if not conditions:
        raise EmptyQueryError(
            f"{path}: no conditions provided. Specify at least one condition."
        )

    kinds: list[str] = []
    for i, item in enumerate(conditions):
        if not isinstance(item, Mapping):
            raise MalformedConditionError(
                f"{path}.conditions[{i}]: expected an object, got {type(item).__name__}"
            )
        kinds.append(_node_kind(item, f"{path}.conditions[{i}]"))

    if len(set(kinds)) > 1:
        raise MixedConditionsError(
            f"{path}: conditions mix plain conditions and nested groups"
        )
    if kinds[0] == "group" and not allow_nested:
        raise MalformedConditionError(
            f"{path}: nested groups are not supported here; "
            "use a flat list of {field, operator, value} conditions"
        )

    nodes: list[Node] = []
    for i, item in enumerate(conditions):
        item_path = f"{path}.conditions[{i}]"
        if kinds[i] == "group":
            nodes.append(_parse_group(item, item_path, allow_nested))
        else:
            nodes.append(_parse_condition(item, item_path))

    try:
        return QueryGroup(logic, tuple(nodes))
    except QueryError as exc:
        raise type(exc)(f"{path}: {exc}") from None


def parse_query(data: Any, *, allow_nested: bool = True) -> QueryGroup:
    """
    Convert a raw JSON query into a validated ``QueryGroup``.

    Args:
        data: Mapping with ``logic`` ("AND", "OR" or "NOT") and ``conditions``,
            or an already-built ``QueryGroup``.
        allow_nested: When False, groups nested inside ``conditions``
            are rejected.

    Raises:
        QueryError: (or a subclass) when the query is empty or malformed.
    """
    if isinstance(data, QueryGroup):
        if not allow_nested and data.is_nested:
            raise MalformedConditionError(
                "query: nested groups are not supported here"
            )
        return data
    if not isinstance(data, Mapping):
        raise QueryError(
            f"query must be an object with 'logic' and 'conditions', "
            f"got {type(data).__name__}"
        )
    return _parse_group(data, "query", allow_nested)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def _compile_node(node: Node) -> list[Any]:
    if isinstance(node, Condition):
        return [node.to_term()]
    return _compile_group(node)


def _compile_group(group: QueryGroup) -> list[Any]:
    operands = [_compile_node(node) for node in group.conditions]

    domain: list[Any] = []
    if group.logic == "NOT":
        domain.append(NOT_MARKER)
    elif len(operands) == 1:
        return operands[0]
    elif group.logic == "OR":
        domain.extend([OR_MARKER] * (len(operands) - 1))

    for tokens in operands:
        domain.extend(tokens)
    return domain


def compile_domain(query: QueryGroup | Mapping[str, Any]) -> list[Any]:
    """
    Compile a structured query into an Odoo domain.

    Accepts a ``QueryGroup`` or its raw JSON form (nested groups allowed).
    Returns a new flat list of ``"|"`` / ``"!"`` markers and
    ``[field, operator, value]`` leaves, in input order.

    There is no explicit ``"&"`` marker, so a nested AND group is spliced
    as bare operands.  Under OR that changes the grouping Odoo sees:
    ``OR(AND(a, b), c)`` compiles to ``["|", a, b, c]``, which Odoo reads
    as ``(a | b) & c``.  Keep AND groups at the top level, or rewrite
    them, when compiling nested queries for a live server.
    """
    return _compile_group(parse_query(query))
