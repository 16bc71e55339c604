# goldfile

Golden file assertions for tests.

Known-good output is stored in a *golden file*. Each test run compares the
actual output with that file, byte for byte, and raises an exception with a
readable diff when they differ. When the output changes on purpose, run the
tests in update mode and the golden files are rewritten.

The package has no dependencies outside the standard library and works with
any test runner; the examples use pytest.

## Installing

```
pip install goldfile
```

## Usage

```python
from goldfile.goldie import Goldie


def test_report(request):
    g = Goldie(request.node.name)
    g.assert_matches("report", render_report())
```

`assert_matches` takes `bytes` or `str` (strings are encoded as UTF-8). The
fixture is read from `testdata/report.golden`. If the file is missing,
`FixtureNotFoundError` is raised; if the content differs,
`FixtureMismatchError` is raised and its message holds a diff. Both live in
`goldfile.errors` and derive from `GoldieError`, which is also raised when a
golden file cannot be read or a golden template cannot be parsed.

The lower-level methods `compare(name, actual_data)` and
`update(name, actual_data)` compare without updating and write without
comparing. `golden_file_name(name)` returns the path that is used.

### Structured data

```python
g.assert_json("payload", {"name": "example", "items": [1, 2, 3]})
g.assert_xml("document", element)
```

JSON is written with a two-space indent; dataclasses are encoded as objects,
and `<`, `>` and `&` are written as `\u` escapes. `assert_xml` takes an
`xml.etree.ElementTree.Element` or `ElementTree` and writes it indented by two
spaces. Line endings are normalized to `\n` before the comparison; the same
normalization is available as `goldfile.goldie.normalize_lf`.

### Templates

A golden file can hold placeholders that are filled in from data at compare
time:

```
Hello {{ .Name }}, you have {{ index .Items 0 }} messages.
```

```python
g.assert_with_template("greeting", {"Name": "example", "Items": [3]}, output)
```

The template language (`goldfile.template`) supports field chains such as
`.Name.Inner` on mappings and objects, `.` and `$` for the data itself,
string, number, `true`, `false` and `nil` literals, parenthesised pipelines,
`|`, the functions `index`, `len`, `print` and `println`, comments
`{{/* ... */}}` and the trim markers `{{- ` and ` -}}`. Control structures
(`if`, `range`, `with` and so on) and variables are rejected with
`TemplateSyntaxError`. Templates can be used directly:

```python
from goldfile.template import Template, render

render("abc {{ .Name }}", {"Name": "example"})   # "abc example"
Template("{{ .Missing }}", missing_key="default").render({})  # "<no value>"
```

During a comparison a missing key raises `MissingKeyError`, unless the tester
was created with `ignore_template_errors=True`, in which case it renders as
`<no value>`.

`update_with_template(name, data, actual_data)` works the other way: it
writes the golden file with the values found in `data` replaced by
placeholders. The mapping from values to placeholder paths is available as
`goldfile.meta.meta(data)`, and the replacement itself as
`goldfile.meta.templatize(data, actual_data)`:

```python
from goldfile.meta import templatize

templatize({"FOO": "foo", "FOOBAR": "foobar"}, "testing foo and foobar")
# "testing {{.FOO}} and {{.FOOBAR}}"
```

### Updating golden files

Update mode is read from the environment once per process:

| Variable          | Effect                                                               |
|-------------------|----------------------------------------------------------------------|
| `GOLDIE_UPDATE`   | write the actual data to the golden files before comparing           |
| `GOLDIE_TEMPLATE` | in `assert_with_template`, store placeholders instead of raw output  |
| `GOLDIE_CLEAN`    | while updating, empty fixture directories left from earlier runs     |

Values `1`, `true` and `t` (any case) switch an option on. For example:

```
GOLDIE_UPDATE=1 pytest
```

The switches can also be given per tester with `RunFlags` from
`goldfile.flags`:

```python
from goldfile.flags import RunFlags

g = Goldie("test_report", flags=RunFlags(update=True, clean=True))
```

Each `RunFlags` records the time it was made. Every directory written during
an update gets that time as its modification time, and with `clean` on, a
fixture directory older than that is removed before the new file is written.

### Options

`Goldie(test_name, ...)` takes keyword options:

- `fixture_dir`, default `testdata`
- `name_suffix`, default `.golden`
- `file_perms` and `dir_perms`, default `0o644` and `0o755`
- `equal_fn`, a custom equality check on the raw bytes `(actual, expected)`
- `diff_engine`, one of `DiffEngine.CLASSIC` (the default), `DiffEngine.COLORED`
  and `DiffEngine.SIMPLE`
- `diff_fn`, a function `(actual, expected) -> str` that replaces the engine
- `ignore_template_errors`, default `False`
- `use_test_name_for_dir` and `use_sub_test_name_for_dir`, which store
  fixtures in folders named after the test and its subtests (the test name is
  split on `/`)
- `flags`, a `RunFlags`; by default the flags read from the environment

### Diff engines

`goldfile.diff.diff(engine, actual, expected)` can be used on its own, as can
`classic_diff`, `colored_diff` and `simple_diff`:

- classic: a unified diff with one line of context, from `Expected` to `Actual`
- colored: a character-level diff with ANSI colours, red for text found only
  in the actual value and green for text found only in the expected value
- simple: `Expected: <expected>` and `Got: <actual>` on two lines

An unknown engine falls back to the simple one.

## What it does not do

There are no command-line options and no pytest plugin or fixture: update
mode comes only from the environment variables above or from a `RunFlags`
passed in, and the test name must be handed to `Goldie` by the caller.