import pytest

from helpers.forms import load_fixture


@pytest.fixture
def intake_store():
    """Three-section intake form (see fixtures/intake_form.yaml)."""
    return load_fixture("intake_form")


@pytest.fixture
def partial_store():
    """Form whose conditioning question relies on the "other" fallback."""
    return load_fixture("partial_conditions")


@pytest.fixture
def broken_store():
    return load_fixture("broken_chain")
