import dataclasses

import pytest

from goldfile.template import Template, TemplateExecError, TemplateSyntaxError, render


@dataclasses.dataclass
class Person:
    Name: str


def test_field_from_object():
    assert render("abc {{ .Name }}", Person("example")) == "abc example"


def test_field_from_mapping():
    assert render("abc {{ .Name }}", {"Name": "example"}) == "abc example"


def test_index_of_dot():
    assert render("abc {{ index (.) 1 }}", ["abc", "example"]) == "abc example"


def test_nil_data_with_error_mode_raises():
    with pytest.raises(TemplateExecError):
        render("abc {{ .Name }}", None)


def test_nil_data_with_default_mode_prints_no_value():
    assert render("abc {{ .Name }}", None, missing_key="default") == "abc <no value>"


def test_missing_map_key_raises_in_error_mode():
    with pytest.raises(TemplateExecError):
        render("{{ .Other }}", {"Name": "x"})


def test_missing_map_key_ignored_in_default_mode():
    ignored = render("[{{ .Other }}]", {"Name": "x"}, missing_key="default")
    assert ignored == render("[{{ .Other }}]", None, missing_key="default")


def test_missing_attribute_always_raises():
    with pytest.raises(TemplateExecError):
        render("{{ .Missing }}", Person("x"), missing_key="default")


def test_plain_text_is_unchanged():
    text = "no actions here\n{ single } braces"
    assert render(text, None) == text


def test_nested_fields():
    data = {"FOO": {"BAR": "bar", "BAZ": "baz"}}
    assert render("{{.FOO.BAR}}-{{.FOO.BAZ}}", data) == "bar-baz"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(123, "123"), (True, "true"), (123.456, "123.456"), ("example", "example")],
)
def test_scalar_formatting(value, expected):
    assert render("{{.}}", value) == expected


def test_large_float_uses_fixed_notation():
    assert render("{{.}}", 1e16) == "10000000000000000"


def test_dollar_refers_to_data():
    data = {"Name": "v"}
    assert render("{{$.Name}}", data) == render("{{.Name}}", data)


def test_trim_markers():
    assert render("a  {{- .X -}}  b", {"X": "v"}) == "avb"


def test_comment_is_dropped():
    assert render("x{{/* note */}}y", None) == "xy"


def test_comment_with_trim_markers():
    assert render("x  {{- /* note */ -}}  y", None) == "xy"


def test_len_matches_python_len():
    items = [1, 2, 3]
    assert render("{{len .}}", items) == str(len(items))


def test_pipe_passes_value_as_last_argument():
    items = ["a", "b"]
    assert render("{{. | len}}", items) == render("{{len .}}", items)


def test_print_concatenates_strings():
    assert render('{{print "a" "b"}}', None) == "ab"


def test_print_separates_non_strings():
    assert render("{{print 1 2}}", None) == "1 2"


def test_string_escapes():
    assert render(r'{{"a\tb"}}', None) == "a\tb"


def test_raw_string_keeps_backslashes():
    assert render("{{`a\\tb`}}", None) == "a\\tb"


def test_template_can_be_rendered_repeatedly():
    template = Template("hi {{.}}")
    assert template.render("x") == "hi x"
    assert template.render("y") == "hi y"


@pytest.mark.parametrize(
    "text",
    [
        "{{ .Name",
        "{{ nope . }}",
        "{{if .}}x{{end}}",
        "{{ }}",
        "{{/* never closed",
        "{{ (.Name }}",
        "{{ $x }}",
        "{{ $x := 1 }}",
        "{{ .Name ) }}",
    ],
)
def test_syntax_errors(text):
    with pytest.raises(TemplateSyntaxError):
        Template(text)


def test_argument_to_field_raises():
    with pytest.raises(TemplateExecError):
        render("{{ .Name 1 }}", {"Name": "x"})


def test_index_out_of_range_raises():
    with pytest.raises(TemplateExecError):
        render("{{ index . 5 }}", ["a"])


def test_nil_as_command_raises():
    with pytest.raises(TemplateExecError):
        render("{{ nil }}", None)


def test_unknown_missing_key_mode_rejected():
    with pytest.raises(ValueError):
        Template("x", missing_key="sometimes")