import json

import pytest

from data_prep.loader import parse_book
from tests.helpers import EXAMPLE_BOOK


@pytest.fixture
def sample_book_dict() -> dict:
    return json.loads(EXAMPLE_BOOK.read_text(encoding="utf-8"))


@pytest.fixture
def sample_book(sample_book_dict):
    return parse_book(sample_book_dict)
