"""YAML export/import and the text summary."""

import pytest

from ftlsav import ParseMode, decode, encode
from ftlsav.yaml_io import export_to_text, export_to_yaml, import_from_yaml

from save_builders import hs_save


def yaml_round_trip(data: bytes) -> bytes:
    return encode(import_from_yaml(export_to_yaml(decode(data))))


def test_full_save(rich_save):
    assert yaml_round_trip(rich_save) == rich_save


def test_partial_save(modded_save):
    assert yaml_round_trip(modded_save) == modded_save


def test_partial_save_with_opaque_interior():
    data = hs_save(doubled=False)
    assert yaml_round_trip(data) == data


def test_restricted_save(unreadable_save):
    assert yaml_round_trip(unreadable_save) == unreadable_save


def test_document_header(modded_save):
    text = export_to_yaml(decode(modded_save))
    assert text.startswith("_format: FTL Save\n_parse_mode: PARTIAL_PLAYER_SHIP_OPAQUE_TAIL\n")
    assert "- CREW\n" in text
    assert "- CARGO\n" not in text


def test_imported_mode_and_capabilities(modded_save):
    game = decode(modded_save)
    imported = import_from_yaml(export_to_yaml(game))
    assert imported.parse_mode == ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL
    assert imported.capabilities == game.capabilities
    assert imported == game


def test_edit_through_yaml(minimal_save):
    text = export_to_yaml(decode(minimal_save))
    text = text.replace("scrap: 55\n", "scrap: 700\n", 1)
    assert decode(encode(import_from_yaml(text))).player_ship.scrap == 700


@pytest.mark.parametrize("document", ["", "- a\n- b\n", "_format: Something Else\n"])
def test_rejects_foreign_documents(document):
    with pytest.raises(ValueError):
        import_from_yaml(document)


def test_text_summary(modded_save, minimal_save):
    text = export_to_text(decode(minimal_save))
    assert "Mode: FULL" in text
    assert "Difficulty: HARD" in text
    assert "LASER_BURST_2 (armed)" in text
    assert "[Cargo]" in text

    text = export_to_text(decode(modded_save))
    assert "Mode: PARTIAL_PLAYER_SHIP_OPAQUE_TAIL" in text
    assert "Ripley (human) HP: 100" in text
    assert "Warning: Full parse failed" in text
    assert "[Cargo]" not in text
    assert "[Systems]" not in text
