"""TextActor — visibility-only actor for static display blocks."""

from __future__ import annotations

from enrollment_workflow.messages import Hide, Show
from enrollment_workflow.models.runtime import ChildText, TextSnapshot
from enrollment_workflow.runtime import Actor


class TextActor(Actor):
    def __init__(self, address: str, parent: str, child: ChildText) -> None:
        super().__init__(address, parent)
        self.node_id = child.id
        self.is_visible = child.is_visible

    def handlers(self):
        return {Show: self._on_show, Hide: self._on_hide}

    def _on_show(self, message: Show) -> None:
        self.is_visible = True

    def _on_hide(self, message: Hide) -> None:
        self.is_visible = False

    def snapshot(self) -> TextSnapshot:
        return TextSnapshot(id=self.node_id, is_visible=self.is_visible)
