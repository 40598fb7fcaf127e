# dupescan

A library of building blocks for a duplicate-file finder: file records and
their `stat()` checks, filters, file hashing, a hash database, and the actions
taken on duplicate sets once they are known.

## What it does not do

The package does not walk directories, compare file contents or build the
duplicate sets itself, and it has no command-line program. The caller
creates the `FileEntry` records, decides which are duplicates of which, and
then hands the list to the actions below.

## Installation

Install with pip from a checkout of this project. It needs Python 3.10 or
later and nothing outside the standard library. The tests use pytest, which
the `test` extra installs.

## Modules

- `dupescan.flags`: the `Flags`, `ActionFlags` and `PrintFlags` enums and the
  `Settings` dataclass that carries them, the hash algorithm number and the
  run's `exit_status` (set to failure by `Settings.fail()`).
  `dump_all_flags(settings, stream)` writes the names of the flags that are set.
- `dupescan.filestat`: `FileEntry`, `FileFlags`, `getfilestats()` (fills in an
  entry's stat data once), `file_has_changed()` (compares the file on disk with
  what was recorded) and `getdirstats()`.
- `dupescan.checks`: `check_singlefile()` says whether a file should be left
  out (hidden files with `Flags.EXCLUDEHIDDEN`, unreadable or non-regular
  files, empty files unless `Flags.INCLUDEEMPTY`, extended filters), and
  `check_conditions()` returns a `Condition` for a pair of files (size order,
  isolation, one filesystem, permissions, hard links).
- `dupescan.extfilter`: extended filters, see below.
- `dupescan.filehash`: `get_filehash()` hashes a whole file or its first
  `max_read` bytes with 64-bit xxHash, and `xxh64()` hashes bytes. The
  jodyhash algorithm is listed by `hash_algorithm_names()` but is not
  available; asking for it raises `FileHashError`.
- `dupescan.hashdb`: `HashDatabase`, a text file of hashes keyed by path.
- `dupescan.printmatches`, `dupescan.summarize`, `dupescan.printjson`,
  `dupescan.deletefiles`, `dupescan.linkfiles`, `dupescan.dedupefiles`: the
  actions on duplicate sets.
- `dupescan.interrupt`: `InterruptState` for CTRL-C and the `SIGUSR1`
  soft-abort toggle.
- `dupescan.args`: `findarg()` and `nonoptafter()` for locating arguments in a
  command line before and after option parsing reordered it.
- `dupescan.helptext`: `help_text()` and `version_text()` write usage and
  version text to a stream.

## Building duplicate sets

A set is headed by an entry flagged `FileFlags.HAS_DUPES` whose
`duplicates` list holds the other members:

```python
from dupescan.filestat import FileEntry, FileFlags, getfilestats

head = FileEntry("a/photo.jpg")
copy = FileEntry("b/photo.jpg")
for entry in (head, copy):
    getfilestats(entry)
head.flags |= FileFlags.HAS_DUPES
head.duplicates.append(copy)
files = [head, copy]
```

## Extended filters

Filters are stacked; a file is excluded if any filter on the stack rejects it.

```python
from dupescan.extfilter import ExtFilterStack, parse_size, match_extensions

filters = ExtFilterStack()
filters.add("size+:99")
filters.add("size-:101")      # together: only files of exactly 100 bytes
filters.add("onlyext:jpg,png")
filters.excludes(head)        # True if any filter rules the file out

parse_size("16k")    # 16384 - binary multipliers by default
parse_size("16kib")  # 16384
parse_size("16kb")   # 16000 - a trailing B selects decimal multipliers

match_extensions("photos/cat.JPG", "jpg,png")  # True: extensions ignore case
```

The filters are `noext`, `onlyext`, `size+`, `size-`, `size+=`, `size-=`,
`size=`, `nostr`, `onlystr`, `newer` and `older`. An unknown filter name, a
missing value, a bad size suffix or a bad date raises `ExtFilterError`; the
option `help` raises it with `help_requested` set. `extfilter_help_text()`
returns the full description. Dates take the form `YYYY-MM-DD HH:MM:SS`, the
time being optional, in local time.

## Hash database

```python
from dupescan.filehash import HashAlgorithm
from dupescan.hashdb import HashDatabase

db = HashDatabase(HashAlgorithm.XXHASH2_64)
db.load("dupescan_hashdb.txt")   # a missing or empty file starts a new database
db.read_entry(head)              # preload known hashes into a FileEntry
db.add_entry(check=head)         # record hashes the entry now carries
db.save("dupescan_hashdb.txt", False)
```

`read_entry()` and `add_entry()` invalidate a stored entry whose size, inode
or modification time no longer match; invalidated entries are left out when
the database is saved, and `save()` writes nothing unless something changed.
A database written with a different algorithm number is not loaded.
Malformed or unreadable databases raise `HashDbError`.

## Acting on duplicates

```python
import sys
from dupescan.flags import ActionFlags, Settings
from dupescan.printmatches import printmatches, printunique
from dupescan.summarize import summarizematches
from dupescan.printjson import printjson

settings = Settings(actions=ActionFlags.SHOWSIZE)
printmatches(files, settings, sys.stdout)
printunique(files, settings, sys.stdout, sys.stderr)
summarizematches(files, sys.stdout)
printjson(files, ["dupescan", "-r", "."], sys.stdout)
```

`ActionFlags.PRINTNULL` ends paths with NUL instead of newlines and
`ActionFlags.OMITFIRST` leaves the first file of each set out.

The destructive actions report on the streams they are given and record
problems with `settings.fail()`:

- `deletefiles(files, settings, prompt, tty, hashdb, out, err)` keeps the first
  file of each set, or with `prompt` asks on `tty` which to keep (numbers,
  `a`ll, `n`one, or `l`/`s` to hard link or symlink the set instead). Files
  changed since the scan, per `file_has_changed()`, are not deleted. Returns
  the number of files removed.
- `linkfiles(files, linktype, settings, only_current, hashdb, out, err)`
  replaces duplicates with hard links (`LinkType.HARDLINK`) or relative
  symbolic links (`LinkType.SYMLINK`); `LinkType.CLONE` raises `ValueError`.
  Changed, read-only or other-device targets are skipped; each target is
  moved to a temporary name and restored if linking fails. Returns the
  number of links made.
- `dedupefiles(files, settings, out, err)` shares blocks through the Linux
  `FIDEDUPERANGE` ioctl and raises `RuntimeError` on other systems. It does
  not re-check files for changes; the kernel refuses ranges that differ.
  Returns the number of files processed.

## Signals

`InterruptState(settings).install()` handles SIGINT by setting `interrupted`
and marking the run failed, and, where the platform has it, `SIGUSR1` by
toggling `Flags.SOFTABORT`; `check_sigusr1()` reports a pending toggle once.