# File: backend/tests/test_coordinates.py
# Version: v0.1.0
"""Number/strand coercion helpers and the color palette."""
from backend.app.core.annotation.coordinates import (
    feature_span,
    first_number,
    max_feature_stop,
    normalize_strand,
    ordered_span,
    to_number,
)
from backend.app.core.annotation.palette import DEFAULT_PALETTE, ColorPalette


def test_to_number():
    assert to_number("42") == 42
    assert isinstance(to_number("42.0"), int)
    assert to_number(" 1.5 ") == 1.5
    assert to_number(True) is None
    assert to_number("") is None
    assert to_number("nan") is None
    assert to_number(float("inf")) is None
    assert to_number("abc") is None


def test_first_number_respects_key_order():
    assert first_number({"end": "9", "stop": "x", "mapStop": 3}, ("stop", "end", "mapStop")) == 9
    assert first_number({}, ("stop",)) is None


def test_ordered_span_clamps_at_zero():
    assert ordered_span(200, 100) == (100, 200)
    assert ordered_span(-5, 10) == (0, 10)


def test_normalize_strand():
    for token in ("-", "reverse", "REV", "negative", -1, "-3"):
        assert normalize_strand(token) == -1
    for token in ("+", "Forward", "fwd", 0, 1, "", None, "sideways"):
        assert normalize_strand(token) == 1


def test_feature_span_anchors_missing_side():
    assert feature_span({"begin": 5, "mapStop": 20}) == (5, 20)
    assert feature_span({"start": 7}) == (7, 7)
    assert feature_span({"end": 9}) == (9, 9)
    assert feature_span({"name": "x"}) is None
    assert feature_span("not a mapping") is None


def test_max_feature_stop():
    assert max_feature_stop([{"stop": 10}, {"end": 40}, {"mapStop": "25"}, 3]) == 40
    assert max_feature_stop([]) == 0


def test_palette_round_robin():
    assert DEFAULT_PALETTE.color_for(0) == "#38bdf8"
    assert DEFAULT_PALETTE.color_for(8) == "#38bdf8"
    assert DEFAULT_PALETTE.color_for(-1) == "#38bdf8"
    assert DEFAULT_PALETTE.color_for(float("nan")) == "#38bdf8"
    assert DEFAULT_PALETTE.link_color == "#f97316"

    custom = ColorPalette(colors=("#000000", "#ffffff"))
    assert custom.color_for(3) == "#ffffff"
