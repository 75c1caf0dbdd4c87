"""Tests for chat/display.py -- model and shell text reaches the screen verbatim."""

import io

import pytest

from chat.display import Display, make_console


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def display(output):
    return Display(make_console(file=output, width=200))


SHORTCODE_TEXT = [
    "use :thumbs_up: syntax",
    "a:ok:b",
    "services:\n  web:smile:\n",
]


@pytest.mark.parametrize("text", SHORTCODE_TEXT)
def test_streamed_text_unchanged(display, output, text):
    display.write(text)
    assert output.getvalue() == text


def test_shortcode_split_across_deltas(display, output):
    display.write(":thumbs")
    display.write("_up:")
    assert output.getvalue() == ":thumbs_up:"


@pytest.mark.parametrize("text", SHORTCODE_TEXT)
def test_buffered_response_unchanged(display, output, text):
    display.assistant(text)
    assert output.getvalue() == f"Assistant: {text}\n"


def test_command_output_unchanged(display, output):
    display.command_output(":ok: [bold]done[/bold]\n")
    assert ":ok: [bold]done[/bold]" in output.getvalue()


def test_command_unchanged(display, output):
    display.command("echo :smile:")
    assert "Command: echo :smile:" in output.getvalue()
