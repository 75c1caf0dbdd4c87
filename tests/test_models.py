"""Tests for shelly_cli/models.py."""

import pytest

from shelly_cli.models import DEFAULT_MODEL, PREDEFINED_MODELS, model_by_index, model_ids, resolve_model


def test_default_model_is_listed():
    assert DEFAULT_MODEL in model_ids()


def test_ids_are_unique():
    assert len(set(model_ids())) == len(PREDEFINED_MODELS)


@pytest.mark.parametrize("selection", ["1", " 3 ", str(len(PREDEFINED_MODELS))])
def test_menu_numbers_are_one_based(selection):
    assert model_by_index(selection) == PREDEFINED_MODELS[int(selection) - 1][0]


@pytest.mark.parametrize("selection", ["0", "-1", "7", "99", "", "abc", "1.5"])
def test_not_a_menu_number(selection):
    assert model_by_index(selection) is None


def test_resolve_number():
    assert resolve_model("3") == "anthropic/claude-3.5-sonnet"


@pytest.mark.parametrize("selection", ["openai/gpt-4o", "99", "0"])
def test_resolve_literal_id(selection):
    assert resolve_model(selection) == selection
