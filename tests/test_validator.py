"""
Tests for completion payload shape validation.
"""
import json

import pytest

from conftest import recipe
from recipe_guard.core.errors import UpstreamError
from recipe_guard.core.validator import parse_recipe_payload


class TestParseRecipePayload:
    """Test the recipes-array contract."""

    def test_truncates_to_first_three_in_order(self):
        content = json.dumps({"recipes": [recipe(f"R{i}") for i in range(5)]})
        recipes = parse_recipe_payload(content)
        assert [r["name"] for r in recipes] == ["R0", "R1", "R2"]

    def test_fewer_than_limit_returned_as_is(self):
        content = json.dumps({"recipes": [recipe("Only")]})
        assert parse_recipe_payload(content) == [recipe("Only")]

    def test_empty_array_is_valid_shape(self):
        assert parse_recipe_payload('{"recipes": []}') == []

    @pytest.mark.parametrize("content", [
        '{"recipes": "not-an-array"}',
        '{"recipes": {"name": "x"}}',
        '{"meals": []}',
        '[]',
        '"recipes"',
        'null',
    ])
    def test_wrong_shape_rejected(self, content):
        with pytest.raises(UpstreamError) as excinfo:
            parse_recipe_payload(content)
        assert excinfo.value.error_code == "openai_invalid_payload_shape"
        assert excinfo.value.status_code == 502

    def test_non_json_propagates_decode_error(self):
        with pytest.raises(json.JSONDecodeError):
            parse_recipe_payload("Here are your recipes!")
