"""
Unit tests for request normalization.
"""

import json

import pytest

from recipe_guard.core.normalizer import (
    MAX_INGREDIENT_NAME_LENGTH,
    MacroTargets,
    as_positive_int,
    normalize_ingredients,
    normalize_macros,
    normalize_request,
    normalize_time_limit,
)


class TestIngredientNormalization:
    """Test ingredient list bounding."""

    def test_caps_at_twenty_preserving_order(self):
        names = [f"item{i}" for i in range(35)]
        result = normalize_ingredients(names)
        assert result == names[:20]

    def test_trims_and_drops_empty(self):
        assert normalize_ingredients(["  egg ", "", "   ", None, "rice"]) == ["egg", "rice"]

    def test_truncates_long_names(self):
        result = normalize_ingredients(["x" * 200])
        assert result == ["x" * MAX_INGREDIENT_NAME_LENGTH]

    def test_coerces_non_strings(self):
        assert normalize_ingredients([42, 1.5, True]) == ["42", "1.5", "true"]

    @pytest.mark.parametrize("value", [None, "egg,rice", {"a": 1}, 7])
    def test_non_list_yields_empty(self, value):
        assert normalize_ingredients(value) == []


class TestNumericCoercion:
    """Test positive integer coercion."""

    @pytest.mark.parametrize("value,expected", [
        (10, 10),
        (10.4, 10),
        (10.5, 11),
        ("25", 25),
        (" 12.6 ", 13),
    ])
    def test_valid_values(self, value, expected):
        assert as_positive_int(value, 99) == expected

    @pytest.mark.parametrize("value", [
        0, -5, "abc", "", None, [], {}, float("nan"), float("inf"), 10 ** 400, "1e400",
    ])
    def test_invalid_values_fall_back(self, value):
        assert as_positive_int(value, 99) == 99


class TestMacroNormalization:
    """Test macro clamping and defaults."""

    def test_defaults_when_missing(self):
        assert normalize_macros(None) == MacroTargets(protein=150, carbs=200, fats=60)

    def test_out_of_range_values_clamped(self):
        macros = normalize_macros({"protein": 5000, "carbs": 1, "fats": 9999})
        assert macros.protein == 300
        assert macros.carbs == 20
        assert macros.fats == 150

    def test_low_values_clamped_to_minimum(self):
        macros = normalize_macros({"protein": 3, "carbs": 5, "fats": 2})
        assert macros == MacroTargets(protein=20, carbs=20, fats=10)

    def test_invalid_field_uses_its_own_default(self):
        macros = normalize_macros({"protein": "lots", "carbs": -1, "fats": 70})
        assert macros == MacroTargets(protein=150, carbs=200, fats=70)


class TestTimeLimit:
    """Test time limit clamping."""

    @pytest.mark.parametrize("value,expected", [
        (None, 30),
        (5, 10),
        (45, 45),
        (240, 90),
        ("abc", 30),
    ])
    def test_time_limit(self, value, expected):
        assert normalize_time_limit(value) == expected


class TestRequestNormalization:
    """Test full request normalization."""

    def test_full_payload(self):
        request = normalize_request({
            "ingredientNames": ["chicken", "rice", "broccoli"],
            "macros": {"protein": 150, "carbs": 200, "fats": 60},
            "timeLimit": 30,
        })
        assert request.ingredient_names == ("chicken", "rice", "broccoli")
        assert request.ingredient_count == 3
        assert request.macros == MacroTargets(150, 200, 60)
        assert request.time_limit == 30

    @pytest.mark.parametrize("payload", [None, [], "text", 12])
    def test_non_object_payload_never_raises(self, payload):
        request = normalize_request(payload)
        assert request.ingredient_names == ()
        assert request.time_limit == 30

    def test_oversized_json_integers_use_defaults(self):
        huge = "1" + "0" * 400
        payload = json.loads(
            '{"ingredientNames": ["a", "b", "c"],'
            f' "macros": {{"protein": {huge}, "carbs": {huge}, "fats": 70}},'
            f' "timeLimit": {huge}}}'
        )
        request = normalize_request(payload)
        assert request.macros == MacroTargets(protein=150, carbs=200, fats=70)
        assert request.time_limit == 30
