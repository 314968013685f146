"""Inbound event classification (core domain)."""

from __future__ import annotations

from numbers import Real

from core.models import Action, InboundEvent
from core.source_keys import is_group_origin

# "ptt" is the push-to-talk voice-note tag used by chat platforms.
AUDIO_MESSAGE_TYPES = frozenset({"ptt", "voice_note", "voice", "audio"})


def is_audio_event(event: InboundEvent) -> bool:
    """Return True when any of the audio indicators is present."""

    if event.mimetype and "audio" in event.mimetype:
        return True
    if event.message_type in AUDIO_MESSAGE_TYPES:
        return True
    duration = event.duration
    # bool is a Real subclass; a flag is not a duration.
    if event.has_media and isinstance(duration, Real) and not isinstance(duration, bool):
        return duration > 0
    return False


def passes_origin_filters(event: InboundEvent) -> bool:
    """Self-originated, notification and non-group events never react."""

    if event.from_me or event.is_notification:
        return False
    return is_group_origin(event.origin)


def classify(event: InboundEvent) -> Action:
    """Decide whether and how to react to one event.

    Rules are applied in order and audio wins over body text:
    - self-originated or notification events are ignored
    - events outside a group conversation are ignored
    - any audio indicator yields REACT_AUDIO
    - a non-blank body yields REACT_DEFAULT
    - everything else is ignored
    """

    if not passes_origin_filters(event):
        return Action.IGNORE
    if is_audio_event(event):
        return Action.REACT_AUDIO
    if event.body and event.body.strip():
        return Action.REACT_DEFAULT
    return Action.IGNORE
