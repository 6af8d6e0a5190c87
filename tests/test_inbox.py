"""
test_inbox.py — Inbox filing and consumption
"""

from giwbridge.ipc.inbox import Inbox
from giwbridge.ipc.protocol import GetObservedSymbolsResponse, MessageKind, PlotBufferRequest


def test_try_take_on_empty_inbox_returns_none():
    assert Inbox().try_take(MessageKind.PlotBufferRequest) is None


def test_take_removes_the_message():
    inbox = Inbox()
    inbox.file(PlotBufferRequest("img"))

    assert MessageKind.PlotBufferRequest in inbox
    assert inbox.try_take(MessageKind.PlotBufferRequest) == PlotBufferRequest("img")
    assert inbox.try_take(MessageKind.PlotBufferRequest) is None
    assert len(inbox) == 0


def test_second_message_of_a_kind_replaces_the_first():
    inbox = Inbox()
    inbox.file(PlotBufferRequest("img1"))
    inbox.file(PlotBufferRequest("img2"))

    assert len(inbox) == 1
    assert inbox.try_take(MessageKind.PlotBufferRequest).buffer_name == "img2"
    assert inbox.try_take(MessageKind.PlotBufferRequest) is None


def test_kinds_are_kept_apart():
    inbox = Inbox()
    inbox.file(PlotBufferRequest("img"))
    inbox.file(GetObservedSymbolsResponse(["a"]))

    assert sorted(inbox.pending_kinds()) == [
        MessageKind.PlotBufferRequest,
        MessageKind.GetObservedSymbolsResponse,
    ]
    assert inbox.try_take(MessageKind.GetObservedSymbolsResponse).symbols == ["a"]
    assert inbox.try_take(MessageKind.PlotBufferRequest).buffer_name == "img"


def test_clear():
    inbox = Inbox()
    inbox.file(PlotBufferRequest("img"))
    inbox.clear()
    assert inbox.pending_kinds() == []
