from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

from slidegen.core.logging import get_logger
from slidegen.domain.exceptions import CorruptStoreError
from slidegen.models.schema import SlideDeck
from slidegen.parsing.slide_parser import records_from_mappings

logger = get_logger(__name__)


class SlideStore(ABC):
    """Checkpoint for the generated deck, so a rerun can skip the text model."""

    @abstractmethod
    def exists(self) -> bool: ...

    @abstractmethod
    def load(self) -> SlideDeck: ...

    @abstractmethod
    def save(self, deck: SlideDeck) -> None: ...

    @property
    def location(self) -> str:
        return type(self).__name__


def serialize_deck(deck: SlideDeck) -> str:
    return json.dumps(deck.to_records(), indent=2, ensure_ascii=False)


def deserialize_deck(raw: str, location: str) -> SlideDeck:
    """Decode checkpoint text, raising CorruptStoreError on any shape problem."""
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptStoreError(location, f"not valid JSON ({e})") from e

    if not isinstance(data, list) or not data:
        raise CorruptStoreError(location, "expected a non-empty array of slides")
    for index, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise CorruptStoreError(location, f"entry {index} is not a slide object")

    return records_from_mappings(data)


class JsonSlideStore(SlideStore):
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def location(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> SlideDeck:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStoreError(self.location, f"unreadable ({e})") from e
        deck = deserialize_deck(raw, self.location)
        logger.info(
            "Loaded slides from checkpoint", path=self.location, slides=len(deck.slides)
        )
        return deck

    def save(self, deck: SlideDeck) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(serialize_deck(deck))
        os.replace(tmp_path, self._path)
        logger.info("Slides data saved", path=self.location, slides=len(deck.slides))


class InMemorySlideStore(SlideStore):
    def __init__(self, raw: Optional[str] = None) -> None:
        self._raw = raw

    @property
    def raw(self) -> Optional[str]:
        return self._raw

    def exists(self) -> bool:
        return self._raw is not None

    def load(self) -> SlideDeck:
        if self._raw is None:
            raise CorruptStoreError(self.location, "nothing has been saved")
        return deserialize_deck(self._raw, self.location)

    def save(self, deck: SlideDeck) -> None:
        self._raw = serialize_deck(deck)
