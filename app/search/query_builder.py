"""
Filter expression builder for the jobs search collection.

Produces Typesense `filter_by` strings:

    builder = FilterQueryBuilder()
    builder.add_skill_filters(["react", "node"], match_all=True)
    builder.add_array_filter("jobType", ["full-time", "contract"])
    builder.build()
    # 'skills:react && skills:node && jobType:[full-time, contract]'

The builder holds no I/O and never escapes values; clauses are joined with
`&&` in the order they were added, and a location clause widened by
`|| isRemote:true` is parenthesized when combined with others.
"""
from enum import Enum
from typing import Any, Iterable, Mapping, Optional


def _is_absent(value: Any) -> bool:
    # 0 and False are real filter values; only missing/blank ones are skipped
    return value is None or value == ""


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class FilterQueryBuilder:
    """Chainable accumulator of filter clauses."""

    LOCATION_FIELDS = ("city", "state", "country")

    def __init__(self) -> None:
        self._clauses: list[str] = []

    def add_location_filters(
        self,
        location: Optional[Mapping[str, Any]] = None,
        include_remote: Optional[bool] = None,
    ) -> "FilterQueryBuilder":
        """
        Add a location clause, optionally widened by remote jobs.

        location + include_remote -> `(city:X && state:Y) || isRemote:true`
        location only             -> `city:X && state:Y`
        include_remote only       -> `isRemote:true`
        """
        location = location or {}
        parts = [
            f"{field}:{_render(location[field])}"
            for field in self.LOCATION_FIELDS
            if not _is_absent(location.get(field))
        ]

        if parts and include_remote:
            self._clauses.append(f"({' && '.join(parts)}) || isRemote:true")
        elif parts:
            self._clauses.append(" && ".join(parts))
        elif include_remote:
            self._clauses.append("isRemote:true")
        return self

    def add_skill_filters(
        self,
        skills: Optional[Iterable[str]] = None,
        match_all: bool = False,
    ) -> "FilterQueryBuilder":
        """
        match_all=True requires every skill (`skills:a && skills:b`);
        otherwise any one of them qualifies (`skills:[a, b]`).
        """
        values = [s for s in (skills or []) if not _is_absent(s)]
        if not values:
            return self

        if match_all:
            self._clauses.append(" && ".join(f"skills:{_render(s)}" for s in values))
        else:
            self._add_or_set("skills", values)
        return self

    def add_array_filter(
        self,
        field: str,
        values: Optional[Iterable[Any]] = None,
    ) -> "FilterQueryBuilder":
        """OR-set clause: the field matches any of the values."""
        present = [v for v in (values or []) if not _is_absent(v)]
        if present:
            self._add_or_set(field, present)
        return self

    def add_single_filter(self, field: str, value: Any = None) -> "FilterQueryBuilder":
        """Equality clause; skipped only when the value is None or ''."""
        if not _is_absent(value):
            self._clauses.append(f"{field}:{_render(value)}")
        return self

    def build(self) -> str:
        if len(self._clauses) == 1:
            return self._clauses[0]
        # && binds tighter than ||, so a disjunction stays one operand
        return " && ".join(f"({c})" if " || " in c else c for c in self._clauses)

    def reset(self) -> "FilterQueryBuilder":
        self._clauses.clear()
        return self

    def _add_or_set(self, field: str, values: list) -> None:
        self._clauses.append(f"{field}:[{', '.join(_render(v) for v in values)}]")

    def __len__(self) -> int:
        return len(self._clauses)

    def __repr__(self) -> str:
        return f"<FilterQueryBuilder {self.build()!r}>"
