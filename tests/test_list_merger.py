from pathlib import Path

import pytest

from blacklist_sync.merge.keys import entry_key
from blacklist_sync.merge.list_merger import ListMerger, ListMissingError, plan_additions, read_entries


def _write(path: Path, *entries: str) -> Path:
    path.write_bytes("".join(f"{entry}\r\n" for entry in entries).encode("latin-1"))
    return path


def test_appends_missing_candidates_in_order(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe", "b.exe")
    result = ListMerger().merge(target, ["b.exe", "c.exe", "d.exe"])

    assert result.modified is True
    assert result.written is True
    assert result.added == ["c.exe", "d.exe"]
    assert read_entries(target, encoding="latin-1") == ["a.exe", "b.exe", "c.exe", "d.exe"]


def test_second_run_is_a_noop(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe")
    merger = ListMerger()
    assert merger.merge(target, ["b.exe", "c.exe"]).modified
    before = target.read_bytes()
    mtime = target.stat().st_mtime_ns

    second = merger.merge(target, ["b.exe", "c.exe"])
    assert second.modified is False
    assert second.written is False
    assert target.read_bytes() == before
    assert target.stat().st_mtime_ns == mtime


def test_existing_entry_matches_case_insensitively(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "Foo.exe")
    result = ListMerger().merge(target, ["foo.exe", "FOO.EXE"])
    assert result.modified is False
    assert target.read_bytes() == b"Foo.exe\r\n"


def test_empty_candidates_never_modify(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe")
    assert ListMerger().merge(target, []).modified is False
    assert target.read_bytes() == b"a.exe\r\n"


def test_duplicate_candidates_added_once(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe")
    result = ListMerger().merge(target, ["x.exe", "X.EXE", "x.exe", " "])
    assert result.added == ["x.exe"]
    assert target.read_bytes() == b"a.exe\r\nx.exe\r\n"


def test_dry_run_leaves_bytes_untouched(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe")
    before = target.read_bytes()

    result = ListMerger(dry_run=True).merge(target, ["a.exe", "b.exe"])

    assert result.modified is True
    assert result.written is False
    assert result.added == ["b.exe"]
    assert target.read_bytes() == before


def test_single_trailing_newline_after_write(tmp_path):
    target = tmp_path / "BlackApps.dat"
    target.write_bytes(b"a.exe\r\nb.exe\r\n\r\n\r\n")
    ListMerger().merge(target, ["c.exe"])
    assert target.read_bytes() == b"a.exe\r\nb.exe\r\nc.exe\r\n"


def test_missing_final_newline_is_repaired(tmp_path):
    target = tmp_path / "BlackApps.dat"
    target.write_bytes(b"a.exe")
    ListMerger(newline="\n").merge(target, ["b.exe"])
    assert target.read_bytes() == b"a.exe\nb.exe\n"


def test_existing_order_and_text_preserved(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "zeta.exe", "Alpha.EXE", "mid.exe")
    ListMerger().merge(target, ["beta.exe"])
    assert read_entries(target, encoding="latin-1") == ["zeta.exe", "Alpha.EXE", "mid.exe", "beta.exe"]


def test_no_temporary_files_left_behind(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe")
    ListMerger().merge(target, ["b.exe"])
    assert sorted(p.name for p in tmp_path.iterdir()) == ["BlackApps.dat"]


def test_unencodable_candidate_leaves_file_intact(tmp_path):
    target = _write(tmp_path / "BlackApps.dat", "a.exe")
    with pytest.raises(UnicodeEncodeError):
        ListMerger(encoding="ascii").merge(target, ["café.exe"])
    assert target.read_bytes() == b"a.exe\r\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["BlackApps.dat"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ListMerger().merge(tmp_path / "absent.dat", ["a.exe"])


def test_plan_additions_ignores_surrounding_whitespace():
    assert plan_additions(["a.exe "], ["A.exe", "b.exe"]) == ["b.exe"]


def test_entry_key_is_ordinal():
    assert entry_key("Foo.EXE") == entry_key("foo.exe")
    assert entry_key("straße.exe") == "STRAßE.EXE"


def test_control_characters_stay_inside_entries(tmp_path):
    target = tmp_path / "BlackApps.dat"
    target.write_bytes(b"Game\x85Launcher.exe\r\na\x0cb.exe\r\nb.exe\r\n")

    ListMerger().merge(target, ["c.exe"])

    assert target.read_bytes() == b"Game\x85Launcher.exe\r\na\x0cb.exe\r\nb.exe\r\nc.exe\r\n"


def test_bare_cr_and_lf_terminators_are_both_line_breaks(tmp_path):
    target = tmp_path / "BlackApps.dat"
    target.write_bytes(b"a.exe\rb.exe\nc.exe\r\n")
    assert read_entries(target, encoding="latin-1") == ["a.exe", "b.exe", "c.exe"]


def test_missing_file_raises_list_missing(tmp_path):
    with pytest.raises(ListMissingError):
        ListMerger().merge(tmp_path / "absent.dat", ["a.exe"])
