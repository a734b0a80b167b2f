from prompt_audit.text import normalize_text


def test_html_entities():
    assert normalize_text("&lt;b&gt; a&amp;b&#44; c") == "<b> a&b, c"


def test_missing_text():
    assert normalize_text(None) == ""
    assert normalize_text("") == ""


def test_zero_width_and_fullwidth():
    assert normalize_text("lo\u200bli") == "loli"
    assert normalize_text("ｌｏｌｉ") == "loli"


def test_whitespace_collapsed():
    assert normalize_text("a \t  b\nc") == "a b\nc"
