import io
import os
from unittest import mock

import pytest

from dupescan.dedupefiles import dedupefiles
from dupescan.filestat import FileEntry, FileFlags, getfilestats
from dupescan.flags import Flags, Settings


def _entry(path):
    entry = FileEntry(str(path))
    getfilestats(entry)
    return entry


def _link(head, dupes):
    head.flags |= FileFlags.HAS_DUPES
    head.duplicates = list(dupes)
    return head


def _run(head, settings):
    out, err = io.StringIO(), io.StringIO()
    total = dedupefiles([head], settings, out=out, err=err)
    return total, out.getvalue(), err.getvalue()


def test_hard_links_are_skipped(tmp_path):
    a = tmp_path / "a"
    a.write_bytes(b"data" * 100)
    os.link(a, tmp_path / "b")
    head = _link(_entry(a), [_entry(tmp_path / "b")])
    settings = Settings(flags=Flags.HIDEPROGRESS)
    total, out, err = _run(head, settings)
    assert total == 1
    assert f"  [SRC] {a}\n" in out
    assert f"  -==-> {tmp_path / 'b'}\n" in out
    assert err == ""
    assert FileFlags.HAS_DUPES not in head.flags
    assert settings.exit_status == 0


def test_identical_pair_is_deduped_or_reported(tmp_path):
    for name in ("a", "b"):
        (tmp_path / name).write_bytes(b"same content" * 1000)
    head = _link(_entry(tmp_path / "a"), [_entry(tmp_path / "b")])
    settings = Settings()
    total, out, err = _run(head, settings)
    ok = f"  ====> {tmp_path / 'b'}\n" in out
    failed = f"  -XX-> {tmp_path / 'b'}\n" in out
    assert ok != failed
    assert total == (2 if ok else 1)
    assert settings.exit_status == (0 if ok else 1)
    assert f"Deduplication done ({total} files processed)\n" in err


def test_unopenable_source_falls_back(tmp_path):
    for name in ("b", "c"):
        (tmp_path / name).write_bytes(b"x" * 64)
    missing = FileEntry(str(tmp_path / "missing"), size=64, flags=FileFlags.VALID_STAT)
    head = _link(missing, [_entry(tmp_path / "b"), _entry(tmp_path / "c")])
    settings = Settings(flags=Flags.HIDEPROGRESS)
    _, out, err = _run(head, settings)
    assert f"dedupe: open failed (skipping): {tmp_path / 'missing'}\n" in err
    assert f"  [SRC] {tmp_path / 'b'}\n" in out
    assert settings.exit_status == 1


def test_unopenable_destination_reported(tmp_path):
    (tmp_path / "a").write_bytes(b"y" * 64)
    head = _link(_entry(tmp_path / "a"), [FileEntry(str(tmp_path / "gone"), size=64, inode=1)])
    settings = Settings(flags=Flags.HIDEPROGRESS)
    total, _, err = _run(head, settings)
    assert total == 1
    assert f"dedupe: open failed (skipping): {tmp_path / 'gone'}\n" in err
    assert settings.exit_status == 1


def test_sets_without_dupes_ignored(tmp_path):
    (tmp_path / "a").write_bytes(b"z")
    lone = _entry(tmp_path / "a")
    settings = Settings()
    total, out, err = _run(lone, settings)
    assert total == 0
    assert out == ""
    assert err == "Deduplication done (0 files processed)\n"


def test_unsupported_platform_raises():
    with mock.patch("dupescan.dedupefiles.sys.platform", "darwin"):
        with pytest.raises(RuntimeError, match="only supported on Linux"):
            dedupefiles([], Settings(), out=io.StringIO(), err=io.StringIO())