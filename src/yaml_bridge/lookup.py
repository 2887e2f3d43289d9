"""Field resolution: which destination field a mapping key will land in."""

from __future__ import annotations

from .typedef import FieldDescriptor, field_index


def resolve_field(key: str, record: FieldDescriptor | None) -> FieldDescriptor | None:
    """Return the field of *record* whose external name is exactly *key*.

    Matching is case-sensitive and never folds case: the record decoder
    owns acceptance of keys, and it is case-sensitive too. Embedded fields
    are already promoted in the index (shallowest wins, ambiguous names
    removed), so an ambiguous key simply resolves to nothing.

    The result only steers coercion of the value; an unresolved key is not
    rejected here.
    """
    if record is None or not record.is_record_typed:
        return None
    return field_index(record.info.py_type).get(key)


def child_descriptor(key: str, parent: FieldDescriptor | None) -> FieldDescriptor | None:
    """Descriptor for the value stored under *key* in a mapping of shape *parent*.

    Records resolve the key to a field; dynamically keyed maps use their
    element descriptor; anything else has no schema below it.
    """
    if parent is None:
        return None
    if parent.is_record_typed:
        return resolve_field(key, parent)
    if parent.is_map_typed:
        return parent.element_descriptor
    return None
