from remitbot.core.replies import md_code, md_escape, network_name


def test_md_escape_marks_entity_characters():
    assert md_escape("a_b*c`d[e]") == "a\\_b\\*c\\`d\\[e]"
    assert md_escape("plain 0xabc") == "plain 0xabc"
    assert md_escape(None) == "None"
    assert md_escape(42) == "42"

def test_md_code_wraps_and_drops_backticks():
    assert md_code("INV-1") == "`INV-1`"
    assert md_code("a`b") == "`a'b`"

def test_network_name_fallback():
    assert network_name(137) == "Polygon"
    assert network_name("8453") == "Base"
    assert network_name("x") == "Chain #x"
