from flightclaim.normalizer import collapse_whitespace, normalize_email, strip_html_tags


def test_strip_html_tags_keeps_visible_text_only():
    html = "<html><head><title>Hi</title><style>p {color: red}</style></head>" \
           "<body><p>Hello&nbsp;<b>World</b></p><script>var x = 1;</script></body></html>"
    assert strip_html_tags(html) == "Hello World"


def test_strip_html_tags_decodes_arrow_entities():
    assert strip_html_tags("<td>LGW &rarr; BCN</td>") == "LGW → BCN"
    assert strip_html_tags("<td>LGW &#8594; BCN</td>") == "LGW → BCN"


def test_strip_html_tags_empty_input():
    assert strip_html_tags("") == ""
    assert strip_html_tags(None) == ""


def test_collapse_whitespace_maps_offsets_to_source():
    source = "  a \n\t b  "
    normalized = collapse_whitespace(source)

    assert normalized.text == "a b"
    assert normalized.offsets == [2, 3, 7]
    assert normalized.source_offset(2) == 7
    assert source[normalized.source_offset(0)] == "a"


def test_collapse_whitespace_drops_zero_width_characters():
    assert collapse_whitespace("LG\u200bW\u00a0to\u00a0BC\ufeffN").text == "LGW to BCN"


def test_normalize_email_puts_plain_text_before_html(make_email):
    raw = make_email(plain="Flight U2 3847", html="<p>LGW &rarr; BCN</p>")
    assert normalize_email(raw).text == "Flight U2 3847 LGW → BCN"


def test_normalize_email_empty_email(make_email):
    normalized = normalize_email(make_email())
    assert normalized.text == ""
    assert len(normalized) == 0


def test_normalize_email_survives_broken_markup(make_email):
    raw = make_email(html="<div><p>Flight <b>U2 3847</p></div></span><<>")
    assert "U2 3847" in normalize_email(raw).text


def test_void_tags_do_not_hide_following_text():
    html = ("<html><body><p>Your booking K5LN96D</p><link rel='stylesheet' href='x.css'>"
            "<p>Flight U2 3847 LGW to BCN on 10 March 2026</p></body></html>")
    assert strip_html_tags(html) == "Your booking K5LN96D Flight U2 3847 LGW to BCN on 10 March 2026"


def test_meta_in_head_keeps_body_text():
    html = "<head><meta charset=utf-8></head><body>U2 3847 LGW-BCN 10/03/2026 ref K5LN96D</body>"
    assert strip_html_tags(html) == "U2 3847 LGW-BCN 10/03/2026 ref K5LN96D"
