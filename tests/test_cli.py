"""Command-line front end."""

import pytest

from ftlsav.cli import main


def test_export_then_import(tmp_path, rich_save, capsys):
    save = tmp_path / "continue.sav"
    save.write_bytes(rich_save)
    exported = tmp_path / "continue.yaml"
    rebuilt = tmp_path / "rebuilt.sav"

    assert main(["export", str(save), str(exported)]) == 0
    assert "Exported to:" in capsys.readouterr().out
    assert main(["import", str(exported), str(rebuilt)]) == 0
    assert rebuilt.read_bytes() == rich_save


def test_export_reports_fallback(tmp_path, unreadable_save, capsys):
    save = tmp_path / "continue.sav"
    save.write_bytes(unreadable_save)

    assert main(["export", str(save), str(tmp_path / "out.yaml")]) == 0
    captured = capsys.readouterr()
    assert "(RESTRICTED_OPAQUE_TAIL)" in captured.out
    assert captured.err.count("Warning: ") == 2


def test_info(tmp_path, modded_save, capsys):
    save = tmp_path / "continue.sav"
    save.write_bytes(modded_save)

    assert main(["--debug", "info", str(save)]) == 0
    out = capsys.readouterr().out
    assert "Hyperspace Runner" in out
    assert "HS_CUSTOM_AUG" in out


def test_missing_file(tmp_path, capsys):
    assert main(["info", str(tmp_path / "missing.sav")]) == 1
    assert "File not found" in capsys.readouterr().err


def test_fatal_parse_error(tmp_path, capsys):
    save = tmp_path / "broken.sav"
    save.write_bytes(b"\x05\x00\x00\x00")

    assert main(["info", str(save)]) == 1
    err = capsys.readouterr().err
    assert "Failed to parse save file." in err
    assert "Section: parse_format_version" in err


def test_import_rejects_other_yaml(tmp_path, capsys):
    document = tmp_path / "other.yaml"
    document.write_text("name: not a save\n", encoding="utf-8")

    assert main(["import", str(document), str(tmp_path / "out.sav")]) == 1
    assert "Error: Not an exported save" in capsys.readouterr().err


@pytest.mark.parametrize("original, edited, message", [
    ("_parse_mode: FULL", "_parse_mode: BOGUS", "Unknown parse mode 'BOGUS'"),
    ("- METADATA", "- TELEPORT", "Unknown capability 'TELEPORT'"),
    ("player_ship:\n", "player_ship: 7\nignored:\n", "Expected a mapping for Ship"),
])
def test_import_rejects_edited_yaml(tmp_path, minimal_save, capsys, original, edited, message):
    save = tmp_path / "continue.sav"
    save.write_bytes(minimal_save)
    exported = tmp_path / "continue.yaml"
    assert main(["export", str(save), str(exported)]) == 0

    text = exported.read_text(encoding="utf-8")
    assert original in text
    exported.write_text(text.replace(original, edited, 1), encoding="utf-8")
    capsys.readouterr()

    assert main(["import", str(exported), str(tmp_path / "out.sav")]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert message in err
