from dupescan.args import findarg, nonoptafter


def test_findarg_found():
    argv = ["prog", "-r", "dir"]
    assert findarg("dir", 0, argv) == 2


def test_findarg_missing_returns_length():
    argv = ["prog", "-r", "dir"]
    assert findarg("other", 0, argv) == len(argv)


def test_findarg_respects_start():
    argv = ["prog", "x", "y", "x"]
    assert findarg("x", 2, argv) == 3


def test_nonoptafter_finds_first_directory_after_option():
    oldargv = ["prog", "a", "-R", "b", "c"]
    newargv = ["prog", "-R", "a", "b", "c"]
    index = nonoptafter("-R", oldargv, newargv, 2)
    assert newargv[index] == "b"


def test_nonoptafter_none_after_returns_length():
    oldargv = ["prog", "a", "b", "-R"]
    newargv = ["prog", "-R", "a", "b"]
    assert nonoptafter("-R", oldargv, newargv, 2) == len(oldargv)


def test_nonoptafter_all_after_option():
    oldargv = ["prog", "-R", "a", "b"]
    newargv = ["prog", "-R", "a", "b"]
    index = nonoptafter("-R", oldargv, newargv, 2)
    assert newargv[index] == "a"