import json
import os
from typing import Any, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from recipe_guard.core.errors import AuthError
from recipe_guard.storage.repository import SQLiteLedgerStore


class FakeIdentity:
    """Resolves any bearer credential to a fixed user id."""

    def __init__(self, user_id: Optional[str] = "user-123"):
        self.user_id = user_id
        self.calls = 0

    async def resolve(self, authorization):
        self.calls += 1
        if not authorization or not authorization.startswith("Bearer ") or not self.user_id:
            raise AuthError()
        return self.user_id


def completion_response(content: Optional[str]) -> Mock:
    """Shape of an OpenAI chat completion with one choice."""
    return Mock(choices=[Mock(message=Mock(content=content))])


def recipe(name: str = "Chicken Bowl") -> dict:
    return {
        "name": name,
        "description": "Quick and filling",
        "preparation_time": 25,
        "macros": {"protein": 45, "carbs": 60, "fats": 18, "calories": 582},
        "ingredients": [{"name": "chicken", "amount": "200", "unit": "g"}],
        "instructions": ["Cook the chicken."],
    }


def recipes_content(count: int) -> str:
    return json.dumps({"recipes": [recipe(f"Recipe {i}") for i in range(count)]})


def mock_openai(response: Any = None, side_effect: Any = None) -> Mock:
    """AsyncOpenAI stand-in whose chat.completions.create is awaitable."""
    client = Mock()
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=side_effect)
    client.close = AsyncMock()
    return client


@pytest.fixture
def ledger_store(tmp_path):
    return SQLiteLedgerStore(os.path.join(tmp_path, "ledger.db"))


@pytest.fixture
def identity():
    return FakeIdentity()
