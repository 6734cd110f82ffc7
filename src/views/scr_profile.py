from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label

from services.errors import StoreError
from utils.i18n import t
from views.base_screen import BaseScreen


class ProfileScreen(BaseScreen):
    """The logged-in user's own profile."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-profile"):
            yield Label(t("ui.name"))
            yield Input(id="input-name")
            yield Label(t("ui.email"))
            yield Input(id="input-email")
            yield Label(t("ui.phone"))
            yield Input(id="input-phone")
            yield Label(t("ui.address"))
            yield Input(id="input-address")
            with Horizontal(id="div-profile-btns"):
                yield Button(t("ui.save"), id="btn-save", variant="success")

    def on_mount(self) -> None:
        self.load_profile()

    @work(exclusive=True)
    async def load_profile(self) -> None:
        state = self.app.state
        try:
            user = await state.accounts.get_profile(state.actor)
        except StoreError as exc:
            self.notify_error(exc)
            return
        self.query_one("#input-name", Input).value = user.name
        self.query_one("#input-email", Input).value = user.email
        self.query_one("#input-phone", Input).value = user.phone or ""
        self.query_one("#input-address", Input).value = user.address or ""

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        state = self.app.state
        try:
            user = await state.accounts.update_profile(
                state.actor,
                name=self.query_one("#input-name", Input).value,
                email=self.query_one("#input-email", Input).value,
                phone=self.query_one("#input-phone", Input).value,
                address=self.query_one("#input-address", Input).value,
            )
        except StoreError as exc:
            self.notify_error(exc)
            return

        state.user = user
        self.notify(t("profile.updated"))
