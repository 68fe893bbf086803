from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from docfinder.errors import InvalidConditions


@dataclass(frozen=True)
class Condition:
    field: str
    value: Any

    def matches(self, attrs: Mapping[str, Any]) -> bool:
        if self.field not in attrs:
            return False
        actual = attrs[self.field]
        # True == 1 in Python; keep booleans and numbers apart
        if isinstance(actual, bool) != isinstance(self.value, bool):
            return False
        return actual == self.value


@dataclass(frozen=True)
class Predicate:
    """
    Structured filter built from a condition set.

    Values are carried as parameters and never spliced into program text, so
    the same predicate can be sent to MongoDB as a filter document or applied
    locally with ``matches``. All conditions are ANDed; no conditions matches
    everything.
    """
    conditions: Tuple[Condition, ...] = ()

    def is_empty(self) -> bool:
        return not self.conditions

    def matches(self, attrs: Any) -> bool:
        if not isinstance(attrs, Mapping):
            return self.is_empty()
        return all(c.matches(attrs) for c in self.conditions)

    def to_mongo_filter(self, prefix: str = "data") -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        equalities = []
        for c in self.conditions:
            query[f"{prefix}.{c.field}"] = {"$exists": True}
            # Aggregation $eq compares whole values, so an array never matches one of
            # its elements; $literal keeps operator-shaped values like {"$ne": ""} inert
            equalities.append({"$eq": [f"${prefix}.{c.field}", {"$literal": c.value}]})
        if equalities:
            query["$expr"] = {"$and": equalities}
        return query


def _validate_field(field: Any) -> str:
    if not isinstance(field, str) or not field:
        raise InvalidConditions(f"Condition field must be a non-empty string, got {field!r}")
    if field.startswith("$") or "." in field or "\x00" in field:
        raise InvalidConditions(f"Invalid condition field name: {field!r}")
    return field


def compile_conditions(conditions: Optional[Mapping[str, Any]] = None) -> Predicate:
    if conditions is None:
        return Predicate()
    if not isinstance(conditions, Mapping):
        raise InvalidConditions(f"Conditions must be a mapping, got {type(conditions).__name__}")
    return Predicate(tuple(Condition(_validate_field(k), v) for k, v in conditions.items()))
