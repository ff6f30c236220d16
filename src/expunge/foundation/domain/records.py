"""Records, collection tags and filters for the document store.

A record is a generic tenant-scoped document. The deletion engine only reads
records and deletes them by id or by filter, so the model stays deliberately
thin: an id, a collection tag, ordered attributes and the roles allowed to
write it.

Wire form (as produced upstream)::

    {"$id": "u1", "$collection": "users", "$write": ["*"], "name": "Ada"}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from numbers import Number
from typing import Any

WILDCARD_ROLE = "*"

ID_FIELD = "$id"
COLLECTION_FIELD = "$collection"
WRITE_FIELD = "$write"


class Collection(StrEnum):
    """Collection tags known to the cascade rules.

    ``PROJECTS`` lives in the control-plane namespace; every project is a
    tenant with its own namespace.
    """

    PROJECTS = "projects"
    FUNCTIONS = "functions"
    USERS = "users"
    COLLECTIONS = "collections"
    TEAMS = "teams"
    MEMBERSHIPS = "memberships"
    TOKENS = "tokens"
    SESSIONS = "sessions"
    TAGS = "tags"
    EXECUTIONS = "executions"
    REALTIME_CONNECTIONS = "realtime_connections"


@dataclass(frozen=True, slots=True)
class Record:
    """Immutable snapshot of one stored document.

    Attributes:
        id: Identifier, unique within a namespace.
        collection: Collection tag.
        attributes: Ordered attribute mapping.
        write_roles: Roles allowed to write without elevated access.
    """

    id: str
    collection: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    write_roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            msg = "Record id cannot be empty"
            raise ValueError(msg)

    def get(self, name: str, default: Any = None) -> Any:
        """Return an attribute value, or ``default`` when absent."""
        return self.attributes.get(name, default)

    def value_of(self, field_name: str) -> Any:
        """Resolve a filter field, including the ``$id``/``$collection`` pseudo-fields.

        Raises:
            KeyError: If the record has no such field.
        """
        if field_name == ID_FIELD:
            return self.id
        if field_name == COLLECTION_FIELD:
            return self.collection
        return self.attributes[field_name]

    def with_attributes(self, **changes: Any) -> Record:
        """Return a copy with the given attributes replaced."""
        return Record(
            id=self.id,
            collection=self.collection,
            attributes={**self.attributes, **changes},
            write_roles=self.write_roles,
        )

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> Record:
        """Build a record from its wire form.

        Nested documents found in list attributes (mappings carrying ``$id``)
        are converted as well, so a user snapshot's ``tokens`` and
        ``sessions`` become records.

        Raises:
            ValueError: If ``$id`` is missing or empty.
        """
        attributes: dict[str, Any] = {}
        for key, value in document.items():
            if key in (ID_FIELD, COLLECTION_FIELD, WRITE_FIELD):
                continue
            if isinstance(value, list):
                value = [
                    cls.from_document(item) if _is_document(item) else item for item in value
                ]
            attributes[key] = value
        return cls(
            id=str(document.get(ID_FIELD, "")),
            collection=str(document.get(COLLECTION_FIELD, "")),
            attributes=attributes,
            write_roles=tuple(document.get(WRITE_FIELD, ())),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the wire form of this record."""
        attributes = {
            key: [item.to_document() if isinstance(item, Record) else item for item in value]
            if isinstance(value, list)
            else value
            for key, value in self.attributes.items()
        }
        return {
            ID_FIELD: self.id,
            COLLECTION_FIELD: self.collection,
            WRITE_FIELD: list(self.write_roles),
            **attributes,
        }


def _is_document(value: object) -> bool:
    return isinstance(value, Mapping) and ID_FIELD in value


class Operator(StrEnum):
    """Comparison operators supported by store filters."""

    EQUAL = "="
    LESS_THAN = "<"
    GREATER_THAN = ">"


@dataclass(frozen=True, slots=True)
class Filter:
    """One predicate of a filter set; a filter set is a conjunction.

    Example:
        >>> filters = [
        ...     Filter.collection(Collection.MEMBERSHIPS),
        ...     Filter.equal("teamId", "team-1"),
        ... ]
    """

    field: str
    operator: Operator
    value: Any

    @classmethod
    def collection(cls, tag: str) -> Filter:
        return cls(COLLECTION_FIELD, Operator.EQUAL, str(tag))

    @classmethod
    def equal(cls, field_name: str, value: Any) -> Filter:
        return cls(field_name, Operator.EQUAL, value)

    @classmethod
    def less_than(cls, field_name: str, value: Any) -> Filter:
        return cls(field_name, Operator.LESS_THAN, value)

    @classmethod
    def greater_than(cls, field_name: str, value: Any) -> Filter:
        return cls(field_name, Operator.GREATER_THAN, value)

    def matches(self, record: Record) -> bool:
        """Evaluate this predicate against a record.

        A record missing the field never matches. Ordering operators compare
        numbers numerically and strings by code point; mixing the two never
        matches.
        """
        try:
            actual = record.value_of(self.field)
        except KeyError:
            return False
        if self.operator is Operator.EQUAL:
            return bool(actual == self.value)
        if isinstance(actual, bool) or actual is None:
            return False
        if isinstance(actual, Number) != isinstance(self.value, Number):
            return False
        try:
            if self.operator is Operator.LESS_THAN:
                return bool(actual < self.value)
            return bool(actual > self.value)
        except TypeError:
            return False

    def __str__(self) -> str:
        return f"{self.field}{self.operator.value}{self.value}"
