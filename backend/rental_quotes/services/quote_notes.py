"""
Quote item notes
Project: PPP Rental (Wynajem sprzętu)

A quote item's notes column holds either plain text or a JSON object
recording the selected additional equipment / accessories together with
the user's own notes:

    {"selectedAdditional": [...], "selectedAccessories": [...], "userNotes": "..."}

parse_notes() turns the stored string into PlainNotes or StructuredNotes;
serialize() writes the same legacy JSON form back.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple, Union

logger = logging.getLogger(__name__)

MARKER_KEY = "selectedAdditional"


def _as_uuids(values) -> Tuple[uuid.UUID, ...]:
    if not isinstance(values, list):
        return ()
    parsed = []
    for value in values:
        try:
            parsed.append(uuid.UUID(str(value)))
        except ValueError:
            logger.debug("Ignoring invalid selection id in notes: %r", value)
    return tuple(parsed)


@dataclass(frozen=True)
class PlainNotes:
    text: str = ""

    @property
    def user_notes(self) -> str:
        return self.text

    @property
    def selected_additional(self) -> Tuple[uuid.UUID, ...]:
        return ()

    @property
    def selected_accessories(self) -> Tuple[uuid.UUID, ...]:
        return ()

    def serialize(self) -> Optional[str]:
        return self.text or None


@dataclass(frozen=True)
class StructuredNotes:
    selected_additional: Tuple[uuid.UUID, ...] = field(default_factory=tuple)
    selected_accessories: Tuple[uuid.UUID, ...] = field(default_factory=tuple)
    user_notes: str = ""

    @property
    def selected_ids(self) -> Tuple[uuid.UUID, ...]:
        return self.selected_additional + self.selected_accessories

    def serialize(self) -> str:
        # Key order matters: MARKER_KEY comes first in the stored form.
        return json.dumps(
            {
                MARKER_KEY: [str(i) for i in self.selected_additional],
                "selectedAccessories": [str(i) for i in self.selected_accessories],
                "userNotes": self.user_notes,
            },
            ensure_ascii=False,
        )


Notes = Union[PlainNotes, StructuredNotes]


def parse_notes(raw: Optional[str]) -> Notes:
    """
    Parses a stored notes value.

    Only a JSON object whose first key is "selectedAdditional" is
    structured; anything else (including other JSON) is plain text.
    """
    if not raw:
        return PlainNotes("")

    try:
        payload = json.loads(raw)
    except ValueError:
        return PlainNotes(raw)

    if not isinstance(payload, dict) or next(iter(payload), None) != MARKER_KEY:
        return PlainNotes(raw)

    user_notes = payload.get("userNotes")
    return StructuredNotes(
        selected_additional=_as_uuids(payload.get(MARKER_KEY)),
        selected_accessories=_as_uuids(payload.get("selectedAccessories")),
        user_notes=user_notes if isinstance(user_notes, str) else "",
    )


def build_notes(
    user_notes: Optional[str],
    selected_additional: Iterable[uuid.UUID] = (),
    selected_accessories: Iterable[uuid.UUID] = (),
) -> Notes:
    """Structured notes when extras are selected, plain text otherwise."""
    additional = tuple(selected_additional)
    accessories = tuple(selected_accessories)
    if additional or accessories:
        return StructuredNotes(additional, accessories, user_notes or "")
    return PlainNotes(user_notes or "")
