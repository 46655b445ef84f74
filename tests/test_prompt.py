"""
Tests for the confirmation port.
"""

import io

import pytest

from rcstrap.lib.prompt import FixedAnswer, TtyConfirm, resolve_choice


@pytest.mark.parametrize(
    "reply, expected",
    [("y\n", True), ("\n", True), ("yes\n", True), ("n\n", False), ("N\n", False), ("no\n", False)],
)
def test_tty_reply(reply, expected):
    out = io.StringIO()
    confirm = TtyConfirm(stdout=out, read=lambda: reply)

    assert confirm("Proceed?") is expected
    assert out.getvalue() == "Proceed? ([y]/n) "


def test_no_terminal_defaults_to_yes():
    stdin = io.StringIO("n\n")
    out = io.StringIO()

    assert TtyConfirm(stdin=stdin, stdout=out)("Proceed?") is True
    assert out.getvalue() == ""


def test_fixed_answer_records_prompts():
    ask = FixedAnswer(False)

    assert ask("one") is False
    assert ask("two") is False
    assert ask.asked == ["one", "two"]


def test_resolve_choice():
    ask = FixedAnswer(False)

    assert resolve_choice(True, "q", ask) is True
    assert ask.asked == []
    assert resolve_choice(None, "q", ask) is False
    assert ask.asked == ["q"]
