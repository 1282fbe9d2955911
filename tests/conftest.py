from pathlib import Path

import pytest

from openapi_functions.openapi import load_spec_file

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def petstore():
    return load_spec_file(FIXTURES / "petstore.yaml")


@pytest.fixture
def users_spec():
    return load_spec_file(FIXTURES / "users.json")
