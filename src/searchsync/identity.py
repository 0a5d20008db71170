"""Globally unique document IDs for records sharing one index namespace.

Record IDs are only unique among the types that share a base type, so the
document ID combines a 32-bit hash of the base type name with the record ID:
``(crc32(base_type) << 32) | record_id``. Two unrelated base types whose names
share a CRC32 would collide; this is accepted and not detected.
"""

from __future__ import annotations

import zlib
from typing import TYPE_CHECKING

from searchsync.errors import InvalidArgumentError

if TYPE_CHECKING:
    from searchsync.schema.model import SchemaRegistry

WORD_BITS = 32
WORD_MASK = (1 << WORD_BITS) - 1
MAX_RECORD_ID = WORD_MASK
MAX_DOCUMENT_ID = (1 << (2 * WORD_BITS)) - 1


def unsigned_crc(text: str) -> int:
    """CRC32 of the UTF-8 encoded text as an unsigned 32-bit integer."""
    return zlib.crc32(text.encode("utf-8")) & WORD_MASK


def validate_record_id(record_id: int) -> int:
    """Check that a record ID fits the low word of a document ID.

    Args:
        record_id: Numeric record ID from the relational store.

    Returns:
        The record ID, unchanged.

    Raises:
        InvalidArgumentError: If the ID is not an int in [1, 2**32).
    """
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise InvalidArgumentError(f"Record ID must be an integer, got {record_id!r}")
    if record_id <= 0 or record_id > MAX_RECORD_ID:
        raise InvalidArgumentError(f"Record ID out of range: {record_id}")
    return record_id


def document_id(base_type: str, record_id: int) -> int:
    """Combine a base type name and record ID into a 64-bit document ID."""
    validate_record_id(record_id)
    return (unsigned_crc(base_type) << WORD_BITS) | record_id


def base_id(schema: SchemaRegistry, type_name: str) -> int:
    """Hash of the base type for any type in the schema."""
    return unsigned_crc(schema.base_type(type_name))


def class_id(type_name: str) -> int:
    """Hash of the concrete type name, stored as the ``_classid`` attribute."""
    return unsigned_crc(type_name)


def record_document_id(schema: SchemaRegistry, type_name: str, record_id: int) -> int:
    """Document ID for a record of any type, resolving its base type first."""
    return document_id(schema.base_type(type_name), record_id)


def split_document_id(doc_id: int) -> tuple[int, int]:
    """Split a document ID back into its (base ID, record ID) pair.

    Raises:
        InvalidArgumentError: If the value is not an unsigned 64-bit integer.
    """
    if isinstance(doc_id, bool) or not isinstance(doc_id, int):
        raise InvalidArgumentError(f"Document ID must be an integer, got {doc_id!r}")
    if doc_id < 0 or doc_id > MAX_DOCUMENT_ID:
        raise InvalidArgumentError(f"Document ID out of range: {doc_id}")
    return doc_id >> WORD_BITS, doc_id & WORD_MASK
