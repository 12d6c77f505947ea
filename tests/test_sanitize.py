import pytest

from httpd import (
    classify_route,
    content_type_for,
    encode_html_attributes,
    encode_html_entities,
    has_blank_parameters,
    render_template,
    sanitize_query,
)


def test_entity_encoding_removes_angle_brackets():
    encoded = encode_html_entities("<script>")
    assert encoded == "&lt;script&gt;"
    assert "<" not in encoded and ">" not in encoded


def test_entity_encoding_escapes_ampersand_first():
    assert encode_html_entities("&lt;") == "&amp;lt;"
    assert encode_html_entities("a & b") == "a &amp; b"


def test_entity_encoding_quotes():
    assert encode_html_entities("\"it's\"") == "&quot;it&#x27;s&quot;"


def test_attribute_encoding_space():
    assert encode_html_attributes("a b") == "a&#x20;b"


def test_attribute_encoding_keeps_alphanumerics():
    assert encode_html_attributes("Abc123xyzXYZ0") == "Abc123xyzXYZ0"


@pytest.mark.parametrize("value, expected", [
    ("-", "&#x2D;"),
    ("\n", "&#xA;"),
    ("é", "&#xE9;"),
    ("\U0001F600", "&#x1F600;"),
    ("", ""),
])
def test_attribute_encoding_uses_uppercase_hex_code_points(value, expected):
    assert encode_html_attributes(value) == expected


def test_sanitize_query_encodes_values_in_order():
    sanitized = sanitize_query({"q": "<b>", "name": "Ann"})
    assert sanitized == {
        "q": "&#x26;lt&#x3B;b&#x26;gt&#x3B;",
        "name": "Ann",
    }


def test_sanitize_query_leaves_keys_alone():
    assert list(sanitize_query({"a b": "1"})) == ["a b"]


@pytest.mark.parametrize("query, blank", [
    ({}, False),
    ({"a": "1", "b": "2"}, False),
    ({"a": ""}, True),
    ({"a": "   "}, True),
    ({"": "1"}, True),
    ({" \t": "1"}, True),
    ({"a": "1", "b": " "}, True),
    ({"a": "\ufeff"}, True),
    ({"a": "\u00a0\u3000"}, True),
    ({"\u2028": "1"}, True),
    ({"a": "\x1c"}, False),
    ({"a": "\x1f\x85"}, False),
])
def test_has_blank_parameters(query, blank):
    assert has_blank_parameters(query) is blank


def test_render_template_replaces_first_occurrence_only():
    rendered = render_template("{{method}} and {{method}}", [("{{method}}", "GET")])
    assert rendered == "GET and {{method}}"


def test_render_template_ignores_missing_placeholders():
    rendered = render_template("<p>{{path}}</p>", [("{{method}}", "GET"), ("{{path}}", "/information")])
    assert rendered == "<p>/information</p>"


@pytest.mark.parametrize("path, content_type", [
    ("photo.jpg", "image/jpeg"),
    ("photo.jpeg", "image/jpeg"),
    ("logo.png", "image/png"),
    ("site.css", "text/css"),
    ("app.js", "text/javascript"),
    ("page.html", "text/html"),
    ("notes.txt", "text/html"),
    ("PHOTO.JPG", "text/html"),
    ("noextension", "text/html"),
])
def test_content_type_for(path, content_type):
    assert content_type_for(path) == content_type


@pytest.mark.parametrize("path, route", [
    ("/", "root"),
    ("/information", "information"),
    ("/information/", "static"),
    ("/index.html", "static"),
    ("/css/style.css", "static"),
])
def test_classify_route(path, route):
    assert classify_route(path) == route
