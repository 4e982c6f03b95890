import logging

import pytest

from shared.ids import (
    InvalidIdError,
    generate_three_part_id,
    generate_two_part_id,
    get_major_id,
    get_minor_id,
    hashcode,
    migrate_legacy_id,
    parse_three_ids,
    parse_two_ids,
)


def test_two_part_id_round_trip():
    assert parse_two_ids(generate_two_part_id("123", "456")) == ("123", "456")


def test_three_part_id_round_trip():
    value = generate_three_part_id("100", "200", "role")
    assert value == "100:200:role"
    assert parse_three_ids(value) == ("100", "200", "role")


@pytest.mark.parametrize("value", ["", "123", ":456", "123:"])
def test_malformed_two_part_ids_raise(value):
    with pytest.raises(InvalidIdError):
        parse_two_ids(value)


@pytest.mark.parametrize("value", ["1:2", "1::role", "4033251907"])
def test_malformed_three_part_ids_raise(value):
    with pytest.raises(InvalidIdError) as excinfo:
        parse_three_ids(value)
    assert value in str(excinfo.value)


def test_major_and_minor_accept_plain_ids():
    assert get_major_id("123") == "123"
    assert get_minor_id("123") == "123"
    assert get_major_id("1:2") == "1"
    assert get_minor_id("1:2") == "2"


def test_hashcode_is_non_negative_crc32():
    assert hashcode("") == 0
    assert hashcode("8:0") == hashcode("8:0")
    assert hashcode("8:0") >= 0
    assert hashcode("The quick brown fox jumps over the lazy dog") == 0x414FA339


def test_migrate_keeps_composite_ids():
    assert migrate_legacy_id("1:2:role", {}, ("channel_id", "overwrite_id", "type")) == "1:2:role"


def test_migrate_rebuilds_legacy_hash_id(caplog):
    attributes = {"channel_id": "100", "overwrite_id": "200", "type": "user"}
    with caplog.at_level(logging.INFO, logger="provider.ids"):
        migrated = migrate_legacy_id("4033251907", attributes, ("channel_id", "overwrite_id", "type"))
    assert migrated == "100:200:user"
    assert any(record.getMessage() == "migrated legacy resource id" for record in caplog.records)


def test_migrate_requires_every_field():
    with pytest.raises(InvalidIdError):
        migrate_legacy_id("4033251907", {"server_id": "1"}, ("server_id", "user_id"))
