from __future__ import annotations

from adapters.telegram_mapper import build_event, message_type_from_message
from core.classifier import classify
from core.models import Action


class DummyFile:
    def __init__(self, mime_type: "str | None" = None, duration: "int | None" = None) -> None:
        self.mime_type = mime_type
        self.duration = duration


class DummyMessage:
    def __init__(
        self,
        *,
        chat_id: int = -100123,
        message_id: int = 10,
        text: str = "",
        is_group: bool = True,
        out: bool = False,
        action=None,
        media=None,
        file: "DummyFile | None" = None,
        voice=None,
        photo=None,
    ) -> None:
        self.chat_id = chat_id
        self.id = message_id
        self.raw_text = text
        self.is_group = is_group
        self.out = out
        self.action = action
        self.media = media
        self.file = file
        self.voice = voice
        self.photo = photo


def test_build_event_for_group_text_message() -> None:
    event = build_event(DummyMessage(text="hello"))

    assert event.origin == "chat_id:-100123#group"
    assert event.chat_id == -100123
    assert event.message_id == 10
    assert event.body == "hello"
    assert event.message_type == "text"
    assert not event.has_media
    assert event.react is None
    assert classify(event) is Action.REACT_DEFAULT


def test_build_event_for_voice_note() -> None:
    message = DummyMessage(
        media=object(),
        voice=object(),
        file=DummyFile(mime_type="audio/ogg", duration=4),
    )
    event = build_event(message)

    assert event.message_type == "voice"
    assert event.mimetype == "audio/ogg"
    assert event.duration == 4
    assert event.has_media
    assert classify(event) is Action.REACT_AUDIO


def test_build_event_private_outgoing_and_service_messages() -> None:
    private = build_event(DummyMessage(text="hi", is_group=False))
    assert private.origin == "chat_id:-100123"
    assert classify(private) is Action.IGNORE

    assert build_event(DummyMessage(text="hi", out=True)).from_me
    assert build_event(DummyMessage(action=object())).is_notification


def test_message_type_falls_back_to_document() -> None:
    assert message_type_from_message(DummyMessage(media=object(), photo=object())) == "photo"
    assert message_type_from_message(DummyMessage(media=object())) == "document"
