import io

import pytest

from dupescan.filestat import FileEntry, FileFlags
from dupescan.hashdb import HashDatabase, HashDbError


def _entry(path, partial=0x1234, full=0xABCD, full_known=True, size=5000, inode=77, mtime=1000):
    flags = FileFlags.VALID_STAT | FileFlags.HASH_PARTIAL
    if full_known:
        flags |= FileFlags.HASH_FULL
    return FileEntry(
        path=path,
        size=size,
        inode=inode,
        mtime=mtime,
        filehash_partial=partial,
        filehash=full if full_known else 0,
        flags=flags,
    )


def _quiet_db(algo=0):
    db = HashDatabase(algo)
    db.err = io.StringIO()
    return db


def test_round_trip_restores_hashes(tmp_path):
    dbfile = tmp_path / "db.txt"
    db = _quiet_db()
    db.add_entry(check=_entry("/data/a.bin"))
    db.add_entry(check=_entry("/data/b,with,commas.bin", partial=9, full_known=False))
    assert db.save(str(dbfile)) == 2

    fresh = _quiet_db()
    assert fresh.load(str(dbfile)) == 2

    a = FileEntry(path="/data/a.bin", size=5000, inode=77, mtime=1000)
    assert fresh.read_entry(a) is True
    assert a.filehash_partial == 0x1234
    assert a.filehash == 0xABCD
    assert FileFlags.HASH_FULL in a.flags

    b = FileEntry(path="/data/b,with,commas.bin", size=5000, inode=77, mtime=1000)
    assert fresh.read_entry(b) is True
    assert b.filehash_partial == 9
    assert FileFlags.HASH_PARTIAL in b.flags
    assert FileFlags.HASH_FULL not in b.flags


def test_saved_file_layout(tmp_path):
    dbfile = tmp_path / "db.txt"
    db = _quiet_db(algo=0)
    db.add_entry(check=_entry("/x"))
    db.save(str(dbfile))
    with open(dbfile, newline="") as fh:
        lines = fh.readlines()
    assert lines[0].startswith("dupescan hashdb:2,0,")
    assert len(lines) == 2
    assert lines[1].startswith("2,")
    assert lines[1].endswith(",/x\n")
    assert len(lines[1]) == 87 + len("/x") + 1


def test_save_without_changes_writes_nothing(tmp_path):
    dbfile = tmp_path / "db.txt"
    db = _quiet_db()
    assert db.save(str(dbfile)) == 0
    assert not dbfile.exists()


def test_save_destroy_clears_entries(tmp_path):
    dbfile = tmp_path / "db.txt"
    db = _quiet_db()
    db.add_entry(check=_entry("/x"))
    assert db.save(str(dbfile), destroy=True) == 1
    assert len(db) == 0
    assert db.dirty is False


def test_changed_file_invalidates_entry(tmp_path):
    dbfile = tmp_path / "db.txt"
    db = _quiet_db()
    db.add_entry(check=_entry("/x"))
    db.save(str(dbfile))

    changed = FileEntry(path="/x", size=5000, inode=77, mtime=2000)
    assert db.read_entry(changed) is False
    assert db.entries["/x"].hashcount == 0
    assert db.dirty is True
    assert db.save(str(dbfile)) == 0

    fresh = _quiet_db()
    assert fresh.load(str(dbfile)) == 0
    assert "/x" not in fresh


def test_add_entry_invalidates_on_change():
    db = _quiet_db()
    db.add_entry(check=_entry("/x"))
    db.dirty = False
    zeroed = _entry("/x", mtime=0)
    assert db.add_entry(check=zeroed) is None
    assert db.entries["/x"].hashcount == 0
    assert db.dirty is True


def test_add_entry_upgrades_to_full_hash():
    db = _quiet_db()
    first = db.add_entry(check=_entry("/x", full_known=False))
    assert first.hashcount == 1
    again = db.add_entry(check=_entry("/x", full=0x55))
    assert again is first
    assert again.hashcount == 2
    assert again.fullhash == 0x55


def test_add_entry_without_hashes_is_not_stored():
    db = _quiet_db()
    plain = FileEntry(path="/x", size=10, flags=FileFlags.VALID_STAT)
    result = db.add_entry(check=plain)
    assert result.hashcount == 0
    assert "/x" not in db
    assert db.dirty is False


def test_add_entry_needs_path_or_check():
    assert _quiet_db().add_entry() is None


def test_read_entry_missing_path():
    db = _quiet_db()
    assert db.read_entry(FileEntry(path="/nowhere")) is False


def test_load_missing_file_starts_new(tmp_path):
    db = _quiet_db()
    assert db.load(str(tmp_path / "absent.txt")) == 0
    assert "Creating a new hash database" in db.err.getvalue()


def test_load_empty_file(tmp_path):
    dbfile = tmp_path / "db.txt"
    dbfile.write_text("")
    assert _quiet_db().load(str(dbfile)) == 0


def test_load_bad_header(tmp_path):
    dbfile = tmp_path / "db.txt"
    dbfile.write_text("something else:2,0,0\n")
    with pytest.raises(HashDbError):
        _quiet_db().load(str(dbfile))


def test_load_bad_version(tmp_path):
    dbfile = tmp_path / "db.txt"
    dbfile.write_text("dupescan hashdb:3,0,00000000\n")
    with pytest.raises(HashDbError, match="bad db version 3"):
        _quiet_db().load(str(dbfile))


def test_load_other_algorithm_not_loaded(tmp_path):
    dbfile = tmp_path / "db.txt"
    writer = _quiet_db(algo=1)
    writer.add_entry(check=_entry("/x"))
    writer.save(str(dbfile))

    reader = _quiet_db(algo=0)
    assert reader.load(str(dbfile)) == 0
    assert "/x" not in reader
    assert "different hash algorithm" in reader.err.getvalue()


def _line(hashcount="1", size="0000000000000010", path="/p"):
    return (
        f"{hashcount},{'0' * 15}1,{'0' * 16},{'0' * 16},{size},{'0' * 16},{path}\n"
    )


@pytest.mark.parametrize(
    "line",
    [
        "1,short,line,/p\n",
        _line(hashcount="3"),
        _line(hashcount="0"),
        _line(size="0000000000000000"),
    ],
)
def test_load_bad_lines(tmp_path, line):
    dbfile = tmp_path / "db.txt"
    dbfile.write_text("dupescan hashdb:2,0,00000000\n" + line)
    with pytest.raises(HashDbError, match="bad line 2"):
        _quiet_db().load(str(dbfile))


def test_load_version_one_layout(tmp_path):
    dbfile = tmp_path / "db.txt"
    line = f"1,{'0' * 15}7,{'0' * 16},{'0' * 8},{'0' * 7}9,{'0' * 16},/old/file\n"
    dbfile.write_text("dupescan hashdb:1,0,00000000\n" + line)
    db = _quiet_db()
    assert db.load(str(dbfile)) == 1
    stored = db.entries["/old/file"]
    assert stored.partialhash == 7
    assert stored.size == 9
    assert stored.hashcount == 1
    assert db.dirty is False


def test_partial_only_line_ignores_full_field(tmp_path):
    dbfile = tmp_path / "db.txt"
    line = f"1,{'0' * 16},{'f' * 16},{'0' * 16},{'0' * 15}1,{'0' * 16},/p\n"
    dbfile.write_text("dupescan hashdb:2,0,00000000\n" + line)
    db = _quiet_db()
    db.load(str(dbfile))
    assert db.entries["/p"].fullhash == 0