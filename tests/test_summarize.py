import io

from dupescan.filestat import FileEntry, FileFlags
from dupescan.printmatches import NO_DUPES_MESSAGE
from dupescan.summarize import summarizematches


def make_set(head_path, dupe_paths, size):
    head = FileEntry(head_path, size=size)
    head.flags |= FileFlags.HAS_DUPES
    head.duplicates = [FileEntry(p, size=size) for p in dupe_paths]
    return head


def summary(files):
    out = io.StringIO()
    summarizematches(files, out)
    return out.getvalue()


def test_no_sets_prints_no_dupes():
    assert summary([FileEntry("a", size=4)]) == NO_DUPES_MESSAGE


def test_single_byte_uses_singular_form():
    head = make_set("a", ["b"], size=1)
    assert summary([head]) == "1 duplicate files (in 1 sets), occupying 1 byte \n"


def test_small_total_in_bytes():
    head = make_set("a", ["b", "c"], size=10)
    assert summary([head]) == "2 duplicate files (in 2 sets), occupying 20 bytes\n".replace(
        "in 2 sets", "in 1 sets"
    )


def test_kilobyte_boundary_is_inclusive():
    head = make_set("a", ["b"], size=1000000)
    assert summary([head]).endswith("occupying 1000 KB\n")


def test_megabytes_above_a_million():
    head = make_set("a", ["b"], size=3000000)
    assert summary([head]).endswith("occupying 3 MB\n")


def test_counts_all_sets():
    sets = [make_set(f"h{i}", [f"d{i}"], size=5) for i in range(3)]
    text = summary(sets)
    assert text.startswith(f"{len(sets)} duplicate files (in {len(sets)} sets)")