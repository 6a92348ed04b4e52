import uuid

from packages.common import ids


def test_report_id_is_canonical_uuid() -> None:
    value = ids.new_report_id()
    assert len(value) == 36
    assert ids.is_report_id(value)
    assert str(uuid.UUID(value)) == value


def test_report_id_falls_back_when_secure_source_missing(monkeypatch) -> None:
    def unavailable():
        raise NotImplementedError

    monkeypatch.setattr(ids.uuid, "uuid4", unavailable)
    value = ids.new_report_id()
    assert ids.is_report_id(value)
    assert value[14] == "4"
    assert value[19] in "89ab"


def test_short_id_shape() -> None:
    value = ids.new_short_id()
    assert len(value) == 9
    assert all(char in ids.SHORT_ID_ALPHABET for char in value)
    assert not ids.is_report_id(value)
    assert len(ids.SHORT_ID_ALPHABET) == 62


def test_is_report_id_pattern() -> None:
    assert ids.is_report_id("3F2504E0-4F89-11D3-9A0C-0305E82C3301")
    assert not ids.is_report_id("3f2504e04f8911d39a0c0305e82c3301")
    assert not ids.is_report_id("3f2504e0-4f89-11d3-9a0c-0305e82c330")
    assert not ids.is_report_id("aB3dE5gH9")


def test_entity_ids_are_unique() -> None:
    generated = {ids.new_entity_id("item") for _ in range(200)}
    assert len(generated) == 200
    assert all(value.startswith("item_") for value in generated)
