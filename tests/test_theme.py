from waterfall.theme import CARD_COLORS, page_css


def test_page_css_uses_flow_colours_and_mode():
    css = page_css("dark")
    assert "#16a34a" in css
    assert "#dc2626" in css
    assert CARD_COLORS["dark"][0] in css


def test_page_css_unknown_mode_falls_back_to_light():
    assert CARD_COLORS["light"][0] in page_css("sepia")
