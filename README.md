# hatscan

hatscan finds byte signatures in binary data. A signature is a sequence of
byte values in which any position may be a wildcard, written as text such as
`"48 8D 05 ? ? ? ?"` or as a list of integers with `None` for wildcards. The
package also parses Linux memory maps, reads the sections of PE images held in
a byte buffer, and locates C++ vtables in such images by class name.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Signatures

```python
from hatscan.signature import parse_signature, to_string, SignatureParseError

sig = parse_signature("48 8B ? ? 89")   # [0x48, 0x8B, None, None, 0x89]
print(to_string(sig))                   # 48 8B ? ? 89

try:
    parse_signature("? ? ?")
except SignatureParseError as err:
    print(err.kind)                     # SignatureParseErrorKind.MISSING_BYTE
```

Words in the text form are split on spaces. A word starting with `?` is a
wildcard; any other word is read as a hexadecimal number and kept to its low
8 bits. `parse_signature` raises `SignatureParseError` (a `ValueError`) whose
`kind` is one of `SignatureParseErrorKind.EMPTY_SIGNATURE`,
`MISSING_BYTE` (only wildcards) or `PARSE_ERROR` (a word that is not hex).

Other ways to build a signature:

- `bytes_to_signature(data)`: raw bytes, no wildcards.
- `string_to_signature(text, encoding="utf-8")`: the encoded bytes of a string.
- `object_to_signature(value, size=8)`: an integer laid out little-endian over
  `size` bytes (two's complement when negative), or a bytes-like object as is.
- `create_signature(data, mask)`: bytes plus a mask of the same length; falsy
  mask entries become wildcards.

`hatscan.strconv.parse_int(text, base=10, signed=True)` is the integer parser
behind this; it raises `ParseIntError` with kind `INVALID_BASE` or
`ILLEGAL_CHAR`.

## Scanning

```python
from hatscan.api import find_pattern, find_all_pattern, iter_pattern
from hatscan.core import ScanAlignment, ScanHint

data = b"abcdefghijklmnopqrstuvwxyz0123456789"
result = find_pattern(data, "78 79 7A")     # "xyz"
if result:
    print(result.address)                   # 23
```

- `find_pattern(data, signature, alignment, hints)` returns a `ScanResult` for
  the first match.
- `iter_pattern(...)` yields every match in order. After a match the search
  resumes one alignment stride further on, so matches may overlap.
- `find_all_pattern(..., limit=None)` returns the matches as a list, at most
  `limit` of them.

The signature may be a string or a sequence of elements. Leading wildcards are
allowed; the reported address points at the first signature element.

`ScanAlignment.X16` only accepts matches at offsets that are multiples of 16.
`ScanHint.X86_64` marks the data as x86-64 machine code, letting the
block-based scanners anchor on the rarest byte pair of the signature (ranked by
`hatscan.hints.pair_score`); `ScanHint.PAIR0` uses pair anchoring only when the
signature starts with two concrete bytes.

A `ScanResult` is falsy when there is no match. Its `address` is the index of
the match in the buffer, and it can:

- `read(offset, size=4, signed=True)`: read a little-endian integer at an
  offset from the match;
- `index(offset, size=4, element_size=1)`: read an unsigned byte offset and
  divide it by an element size;
- `rel(offset, remaining=0)`: resolve a 32-bit instruction-relative address,
  as in `lea rax, [rip+disp32]`, where `remaining` counts the bytes between
  the displacement and the next instruction.

### Scan contexts

`hatscan.context.ScanContext.create(signature, alignment, hints, mode)`
prepares a signature (which must start with a concrete byte) and picks a
scanner; `scan(data, begin, end)` runs it. `ScanMode.SINGLE` checks one
candidate at a time. `ScanMode.SSE`, `AVX2` and `AVX512` scan in blocks of 16,
32 and 64 bytes (`find_pattern_vector`), filtering candidates by one or two
bytes; they are written in plain Python and give the same results as
`SINGLE`. `ScanMode.AUTO`, the default used by `hatscan.api`, chooses
`SINGLE`. Lower-level pieces such as `truncate`, `segment_scan` and
`find_pattern_single` live in `hatscan.core`.

## Memory maps

`hatscan.process.parse_maps(text)` turns the text of a `/proc/<pid>/maps`
file into `MappedRegion` records (`begin`, `end`, `protection`);
`iter_mapped_regions(path="/proc/self/maps")` reads them from a file.
`is_readable`, `is_writable` and `is_executable` take an address, a size and
optionally a list of regions (by default the current process's maps) and tell
whether the whole range is mapped with that permission.

## PE images

`module_at(data, base=0, size=None)` checks the DOS and NT headers at the
start of a buffer holding a PE image as laid out in memory and returns a
`PeModule`, or `None` if the headers are not valid. A `PeModule` offers:

- `sections`, `find_section(name)`, `is_64bit`, `pointer_size`,
  `size_of_image`;
- `get_module_data()`: the whole image;
- `get_section_data(name)`: a section's bytes, empty if there is no such
  section;
- `iter_segments()`: each section's bytes with its `Protection`.

`hatscan.vtable.find_pattern_in_section(signature, module, section)` searches
one section; the result's address is relative to the start of the section.
`find_vtable(class_name, module, compiler=CompilerType.MSVC)` follows the
run-time type information of the chosen compiler (`CompilerType.MSVC` or
`CompilerType.GNU`) and returns the absolute vtable address (module `base`
plus offset), or `None`.

## System information

`hatscan.system.get_system()` returns a cached `SystemInfo` with the page
size and, where `/proc/cpuinfo` can be read, the CPU vendor, brand and a
`CpuExtensions` record of SSE/AVX/POPCNT/BMI support.
`parse_cpuinfo(text)` builds the same record from given text. Elsewhere only
the page size and the processor name from the `platform` module are filled in.

## Utilities

`hatscan.utility` holds `Protection` (a flag of `READ`, `WRITE`, `EXECUTE`),
`div(numerator, denominator)` (division rounding toward zero, returning
`quot` and `rem`), and `align_down` / `align_up` for power-of-two alignments.

## Command line

The package installs a `hatscan` command:

```
hatscan "48 8B ? 05" program.bin
hatscan --string "hello" notes.txt --all
hatscan
```

With no pattern it searches a built-in alphabet for `xyz` and prints
`Found at 23`. The file defaults to standard input. Options: `-s/--string`
(literal text pattern), `-a/--align {1,16}`, `--all` (report every match),
`--x86-64` (x86-64 hint). It prints `Found at <offset>` per match or
`Not found`, and exits with 0 when found, 1 when not found, 2 on an error.
Run `hatscan --help` for the full usage.

## What it does not do

hatscan works on bytes you hand it. It does not read or write another
process's memory, does not change memory protection, and does not enumerate
or load the modules of a running process: to search a loaded image, obtain
its bytes yourself and pass them to `module_at`. It uses no SIMD
instructions.