"""Library item model shared by the store, registers and undo stack."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Tuple


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_item_id() -> str:
    return uuid.uuid4().hex


class ReadStatus(str, Enum):
    UNREAD = "unread"
    READING = "reading"
    READ = "read"
    DNF = "dnf"

    def next(self) -> "ReadStatus":
        members = list(ReadStatus)
        return members[(members.index(self) + 1) % len(members)]


@dataclass(frozen=True, slots=True)
class LibraryItem:
    """One catalogue entry (book, paper, ...).

    Items are immutable; every edit produces a new value via ``replace`` so
    that undo entries can hold snapshots without copying.
    """

    id: str
    title: str
    authors: Tuple[str, ...] = ()
    year: Optional[int] = None
    tags: Tuple[str, ...] = ()
    libraries: Tuple[str, ...] = ()
    rating: Optional[int] = None
    read_status: ReadStatus = ReadStatus.UNREAD
    path: Optional[str] = None
    frecency: float = 0.0
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @classmethod
    def new(
        cls,
        title: str,
        *,
        authors: Iterable[str] = (),
        tags: Iterable[str] = (),
        libraries: Iterable[str] = (),
        **fields: object,
    ) -> "LibraryItem":
        return cls(
            id=new_item_id(),
            title=title,
            authors=tuple(authors),
            tags=tuple(tags),
            libraries=tuple(libraries),
            **fields,  # type: ignore[arg-type]
        )

    @property
    def first_author(self) -> Optional[str]:
        return self.authors[0] if self.authors else None

    def duplicate(self, title_suffix: str = "") -> "LibraryItem":
        stamp = _now()
        return replace(
            self,
            id=new_item_id(),
            title=f"{self.title}{title_suffix}",
            created_at=stamp,
            updated_at=stamp,
        )

    def edited(self, **changes: object) -> "LibraryItem":
        return replace(self, updated_at=_now(), **changes)  # type: ignore[arg-type]

    def with_tag(self, tag: str) -> "LibraryItem":
        if tag in self.tags:
            return self
        return self.edited(tags=self.tags + (tag,))

    def without_tag(self, tag: str) -> "LibraryItem":
        if tag not in self.tags:
            return self
        return self.edited(tags=tuple(t for t in self.tags if t != tag))

    def search_text(self) -> str:
        """Blob matched by ``:g`` patterns: title, authors, then tags."""

        return " ".join([self.title, " ".join(self.authors), " ".join(self.tags)])


__all__ = ["LibraryItem", "ReadStatus", "new_item_id"]
