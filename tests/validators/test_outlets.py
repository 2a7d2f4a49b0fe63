"""Tests for :mod:`stimlint.validators.outlets`."""

from __future__ import annotations

import pytest

from stimlint.findings import FindingKind


def _chat_view(rails_project, attribute: str) -> None:
    rails_project.controller("chat", outlets=["messageList"])
    rails_project.controller("message-list")
    rails_project.view(
        "chat/show.html.erb",
        f"""
        <div data-controller="chat" {attribute}>
          <ul data-controller="message-list"></ul>
        </div>
        """,
    )


def test_resolvable_outlet_passes(rails_project) -> None:
    _chat_view(
        rails_project,
        "data-chat-message-list-outlet=\"[data-controller='message-list']\"",
    )

    assert rails_project.run("outlets").passed


@pytest.mark.parametrize(
    ("attribute", "kind"),
    [
        ("", FindingKind.MISSING_OUTLET),
        (
            "data-chat-message-list-outlet-value="
            "\"[data-controller='message-list']\"",
            FindingKind.OUTLET_WRONG_ATTR,
        ),
        (
            'data-chat-message-list-outlet=".messages"',
            FindingKind.INVALID_OUTLET_SELECTOR,
        ),
        (
            "data-chat-message-list-outlet=\"[data-controller='inbox']\"",
            FindingKind.OUTLET_TARGET_NOT_FOUND,
        ),
    ],
)
def test_outlet_problems(rails_project, attribute, kind) -> None:
    _chat_view(rails_project, attribute)

    report = rails_project.run("outlets")

    [finding] = report.findings
    assert finding.kind is kind
    assert finding.controller == "chat"
    assert finding.subject == "messageList"
    assert finding.line == 1
