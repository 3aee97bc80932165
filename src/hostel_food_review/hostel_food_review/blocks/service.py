from __future__ import annotations

from .repository import BlockRepository


class BlockService:
    """Use case: public hostel-block directory (registration dropdown)."""

    def __init__(self, blocks: BlockRepository):
        self._blocks = blocks

    def list_blocks(self) -> list[dict]:
        return [b.to_dict() for b in self._blocks.list_all()]

    def names(self) -> list[str]:
        return [b.name for b in self._blocks.list_all()]

    def exists(self, name: str) -> bool:
        return self._blocks.get_by_name(name) is not None
