from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import HostelBlock


class BlockRepository(Protocol):
    def list_all(self) -> Sequence[HostelBlock]:
        raise NotImplementedError

    def get_by_id(self, block_id: int) -> Optional[HostelBlock]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[HostelBlock]:
        raise NotImplementedError

    def create(self, name: str) -> int:
        """Raises DuplicateEntryError when the name exists."""

        raise NotImplementedError

    def delete(self, block_id: int) -> bool:
        raise NotImplementedError
