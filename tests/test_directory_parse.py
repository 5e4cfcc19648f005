from pathlib import Path

import pytest

from prdkit.codec.directory import (
    container_file_name,
    parse_directory,
    parse_directory_bytes,
)
from prdkit.codec.errors import E_MISSING_CONTAINER, MissingContainer, TruncatedInput

from prd_builders import Rec, prd_bytes


def _setup(tmp_path: Path, records, container="GAME.PRS", stored=None) -> Path:
    (tmp_path / container).write_bytes(b"\x00" * 64)
    prd = tmp_path / "GAME.PRD"
    prd.write_bytes(prd_bytes(stored or container, records))
    return prd


def test_records_are_parsed_in_order(tmp_path):
    prd = _setup(
        tmp_path,
        [Rec("snd", 3, "BOOM", 16, 10), Rec("PAK", -2, "HERO", 26, 30)],
    )
    directory = parse_directory(prd)
    assert directory.container_path == tmp_path / "GAME.PRS"
    assert [(r.asset_type, r.id, r.name) for r in directory.records] == [
        ("SND", 3, "BOOM"),
        ("PAK", -2, "HERO"),
    ]
    assert directory.records[1].offset == 26
    assert directory.records[1].length == 30
    assert directory.dropped == 0


def test_sentinel_records_are_dropped(tmp_path):
    prd = _setup(
        tmp_path,
        [
            Rec("SND", 1, "A", 0, 10),
            Rec("SND", 2, "B", 16, 0),
            Rec("SND", 3, "C", 0, 0),
            Rec("SND", 4, "D", 16, 4),
        ],
    )
    directory = parse_directory(prd)
    assert [r.id for r in directory.records] == [4]
    assert directory.dropped == 3
    assert all(r.offset and r.length for r in directory.records)


def test_container_name_uses_windows_file_component(tmp_path):
    prd = _setup(
        tmp_path, [], container="SPRITES.PRS", stored="C:\\GAME\\data/sprites.prs"
    )
    assert parse_directory(prd).container_path.name == "SPRITES.PRS"


def test_container_lookup_ignores_case(tmp_path):
    prd = _setup(tmp_path, [], container="level1.prs", stored="LEVEL1.PRS")
    assert parse_directory(prd).container_path == tmp_path / "level1.prs"


def test_blank_name_gets_display_fallback(tmp_path):
    prd = _setup(tmp_path, [Rec("CLU", 9, "", 16, 4)])
    record = parse_directory(prd).records[0]
    assert record.name == ""
    assert record.display_name == "Resource"


def test_missing_container_rejects_directory(tmp_path):
    prd = tmp_path / "LOST.PRD"
    prd.write_bytes(prd_bytes("NOWHERE.PRS", [Rec("SND", 1, "A", 16, 4)]))
    with pytest.raises(MissingContainer) as exc:
        parse_directory(prd)
    assert exc.value.code == E_MISSING_CONTAINER


def test_empty_container_name_rejects_directory(tmp_path):
    with pytest.raises(MissingContainer):
        parse_directory_bytes(prd_bytes("", []), tmp_path)


def test_missing_directory_file(tmp_path):
    with pytest.raises(MissingContainer):
        parse_directory(tmp_path / "absent.prd")


@pytest.mark.parametrize("cut", [1, 100, 270, 272, 280, 300])
def test_truncated_directory(tmp_path, cut):
    prd = _setup(tmp_path, [Rec("SND", 1, "A", 16, 4)])
    data = prd.read_bytes()
    prd.write_bytes(data[:cut])
    with pytest.raises((TruncatedInput, MissingContainer)) as exc:
        parse_directory(prd)
    if cut > 258:
        assert isinstance(exc.value, TruncatedInput)


def test_negative_count_yields_no_records(tmp_path):
    prd = _setup(tmp_path, [])
    data = bytearray(prd.read_bytes())
    data[270:272] = b"\xff\xff"
    prd.write_bytes(bytes(data))
    assert parse_directory(prd).records == []


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("sounds.prs", "SOUNDS.PRS"),
        ("..\\data\\Sounds.Prs", "SOUNDS.PRS"),
        ("D:/x/y/z.prs", "Z.PRS"),
        ("   ", ""),
    ],
)
def test_container_file_name(raw, expected):
    assert container_file_name(raw) == expected
