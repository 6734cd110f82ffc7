from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Resize
from textual.screen import ModalScreen
from textual.widgets import Label

from utils.i18n import t


class ResizeScreenPromptModal(ModalScreen[bool]):
    """
    Covers the screen until the terminal is at least min_width x min_height.
    """

    def __init__(self, min_width: int = 60, min_height: int = 20) -> None:
        super().__init__()
        self.min_width = min_width
        self.min_height = min_height

    def compose(self) -> ComposeResult:
        with Container(id="div-resize"):
            yield Label(t("ui.resize"), id="prompt")
            yield Label(f"{self.min_width} x {self.min_height}", id="prompt-size")

    def on_resize(self, event: Resize) -> None:
        if not (
            event.size.width < self.min_width or event.size.height < self.min_height
        ):
            self.dismiss()
