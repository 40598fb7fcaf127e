import io
import json

from dupescan.filestat import FileEntry, FileFlags
from dupescan.helptext import FEATURE_FLAGS, VERSION, VERSION_DATE
from dupescan.printjson import json_escape, printjson


def _set(paths, size):
    head = FileEntry(paths[0], size=size, flags=FileFlags.HAS_DUPES)
    head.duplicates = [FileEntry(p, size=size) for p in paths[1:]]
    return head


def _run(files, argv=("dupescan", "-r", "dir")):
    out = io.StringIO()
    printjson(files, list(argv), out)
    return out.getvalue()


def test_escape_quote_and_backslash():
    assert json_escape('a"b') == 'a\\"b'
    assert json_escape("a\\b") == "a\\\\b"


def test_escape_control_character():
    assert json_escape("\x01") == "\\u0001"


def test_escape_astral_uses_surrogate_pair():
    assert json_escape("\U0001F600") == "\\ud83d\\ude00"


def test_escape_is_ascii_and_round_trips():
    text = 'dir/\u00e9\u4e2d\U0001F600"q\\\n\x7f.txt'
    escaped = json_escape(text)
    assert all(ord(ch) < 128 for ch in escaped)
    assert json.loads(f'"{escaped}"') == text


def test_plain_ascii_unchanged():
    assert json_escape("plain/path.txt") == "plain/path.txt"


def test_header_fields():
    data = json.loads(_run([]))
    assert data["dupescanVersion"] == VERSION
    assert data["dupescanVersionDate"] == VERSION_DATE
    assert data["commandLine"] == "dupescan -r dir"
    assert data["extensionFlags"] == (" ".join(FEATURE_FLAGS) or "none")
    assert data["matchSets"] == []


def test_match_sets_listed_in_order():
    sets = [_set(["a/1", "b/1"], 10), _set(["a/2", "b/2", "c/2"], 20)]
    lone = FileEntry("lonely", size=5)
    data = json.loads(_run([sets[0], lone, sets[1]]))
    assert data["matchSets"] == [
        {"fileSize": 10, "fileList": [{"filePath": "a/1"}, {"filePath": "b/1"}]},
        {"fileSize": 20, "fileList": [{"filePath": "a/2"}, {"filePath": "b/2"}, {"filePath": "c/2"}]},
    ]


def test_unicode_paths_round_trip():
    paths = ["d/\u00fcber \"x\".txt", "d/\U0001F600\\y.txt"]
    output = _run([_set(paths, 3)])
    assert all(ord(ch) < 128 for ch in output)
    data = json.loads(output)
    assert [f["filePath"] for f in data["matchSets"][0]["fileList"]] == paths


def test_command_line_escaped():
    data = json.loads(_run([], argv=["dupescan", 'a "b"']))
    assert data["commandLine"] == 'dupescan a "b"'