from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from services.errors import StoreError
from utils.i18n import t
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Login and signup. Dismissed once a user is stored in app.state.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title=t("ui.login"), show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane(t("ui.login"), id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label(t("ui.email"))
                    yield Input(placeholder="ahmed@example.com", id="input-login-email")
                    yield Label(t("ui.password"))
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button(t("ui.quit"), id="btn-quit")
                        yield Button(t("ui.login"), id="btn-login", variant="primary")

            with TabPane(t("ui.signup"), id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label(t("ui.name"))
                    yield Input(placeholder="أحمد محمد", id="input-reg-name")
                    yield Label(t("ui.email"))
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label(t("ui.password"))
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    yield Label(t("ui.phone"))
                    yield Input(placeholder="0501234567", id="input-reg-phone")
                    yield Label(t("ui.address"))
                    yield Input(placeholder="الرياض", id="input-reg-address")
                    with Container(id="div-reg-btns"):
                        yield Button(t("ui.signup"), id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one(
            "#input-reg-address"
        ):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not email or not pwd:
            self.notify(t("ui.fill_all"), severity="error")
            return

        user = await self.app.state.accounts.authenticate(email, pwd)

        if user:
            self.app.state.login(user)
            self.notify(t("account.welcome", name=user.name))
            self.app.post_message(UserLoginMessage())
            self.dismiss()
        else:
            self.notify(t("account.login_failed"), severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value
        phone = self.query_one("#input-reg-phone", Input).value.strip()
        address = self.query_one("#input-reg-address", Input).value.strip()

        if not name or not email or not pwd:
            self.notify(t("ui.fill_all"), severity="error")
            return

        try:
            user = await self.app.state.accounts.signup(
                name, email, pwd, phone=phone, address=address
            )
        except StoreError as exc:
            self.notify_error(exc)
            return

        await self.app.push_screen_wait(DialogModal(t("account.created")))

        self.get_child_by_type(TabbedContent).active = "tab-login"
        input_login_email = self.query_one("#input-login-email", Input)
        input_login_pwd = self.query_one("#input-login-pwd", Input)

        input_login_email.value = user.email
        input_login_pwd.value = pwd
        input_login_pwd.focus()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
