"""Document identity encoding tests."""

import zlib

import pytest

from searchsync.errors import InvalidArgumentError
from searchsync.identity import (
    MAX_RECORD_ID,
    base_id,
    class_id,
    document_id,
    record_document_id,
    split_document_id,
    unsigned_crc,
)
from searchsync.loader import SearchSyncConfig


def test_document_id_combines_base_hash_and_record_id() -> None:
    """High word is the base type CRC, low word the record ID."""
    expected = (zlib.crc32(b"Article") << 32) | 7
    assert document_id("Article", 7) == expected
    assert hex(document_id("Article", 7)).endswith("00000007")


def test_unsigned_crc_is_unsigned_32_bit() -> None:
    """Hashes are masked to an unsigned 32-bit range."""
    for name in ("Article", "SiteTree", "Member", "ä-unicode"):
        value = unsigned_crc(name)
        assert 0 <= value < 2**32
        assert value == zlib.crc32(name.encode("utf-8")) & 0xFFFFFFFF


def test_document_id_is_deterministic() -> None:
    """Same inputs give the same ID."""
    assert document_id("SiteTree", 42) == document_id("SiteTree", 42)


def test_document_id_is_injective_within_base_type() -> None:
    """Distinct record IDs never share a document ID."""
    ids = {document_id("SiteTree", record_id) for record_id in range(1, 2001)}
    ids.add(document_id("SiteTree", MAX_RECORD_ID))
    assert len(ids) == 2001


@pytest.mark.parametrize("record_id", [1, 2, 2**31, 2**32 - 1])
def test_split_recovers_base_and_record_id(record_id: int) -> None:
    """Splitting a document ID yields the original pair."""
    assert split_document_id(document_id("Article", record_id)) == (
        unsigned_crc("Article"),
        record_id,
    )


@pytest.mark.parametrize("record_id", [0, -1, 2**32, True, "7", 1.0])
def test_invalid_record_ids_rejected(record_id: object) -> None:
    """Out-of-range or non-integer record IDs are caller errors."""
    with pytest.raises(InvalidArgumentError):
        document_id("Article", record_id)  # type: ignore[arg-type]


def test_invalid_argument_is_a_value_error() -> None:
    """Callers catching ValueError also see invalid record IDs."""
    with pytest.raises(ValueError):
        document_id("Article", 0)


@pytest.mark.parametrize("doc_id", [-1, 2**64])
def test_split_rejects_out_of_range(doc_id: int) -> None:
    """Only unsigned 64-bit values can be split."""
    with pytest.raises(InvalidArgumentError):
        split_document_id(doc_id)


def test_subclass_records_share_base_namespace(config: SearchSyncConfig) -> None:
    """Records of any subclass are numbered in their base type's namespace."""
    schema = config.schema
    assert record_document_id(schema, "Article", 7) == document_id("SiteTree", 7)
    assert record_document_id(schema, "Page", 7) == record_document_id(schema, "Article", 7)
    assert base_id(schema, "Article") == unsigned_crc("SiteTree")
    assert class_id("Article") == unsigned_crc("Article")
