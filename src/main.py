from typing import Dict

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.database import Database
from db.models import Role
from services.access import storefront_redirect
from services.seed import demo_seeder
from utils import config
from utils.i18n import t
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_profile import ProfileScreen

_logger = get_logger(__name__)


class SouqApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "profile": ProfileScreen,
        "admin_products": AdminProductsScreen,
        "admin_orders": AdminOrdersScreen,
    }

    # mode -> message key of its menu label
    MODE_LABELS = {mode: f"mode.{mode}" for mode in MODES}

    ADMIN_MODES = ("admin_orders", "admin_products", "catalog", "profile")
    CUSTOMER_MODES = ("catalog", "cart", "orders", "profile")

    CSS_PATH = "views/styles/index.tcss"

    state: GlobalState

    def __init__(self, database: Database = None):
        super().__init__()
        if database is None:
            seeder = demo_seeder() if config.SEED_DEMO_DATA else None
            database = Database(seeder=seeder)
        self.state = GlobalState.create(database)

    def menu_for(self, role: Role) -> Dict[str, str]:
        modes = self.ADMIN_MODES if role == Role.ADMINISTRATOR else self.CUSTOMER_MODES
        return {mode: self.MODE_LABELS[mode] for mode in modes}

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        self.state.logout()
        self.notify(t("account.logged_out"))
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.state.logout()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        if self.state.user is None:
            return
        if storefront_redirect(self.state.actor) == "admin":
            first_mode = "admin_orders"
        else:
            first_mode = "catalog"
        self.post_message(ModeSwitchedMessage(self.current_mode, first_mode))
        await self.switch_mode(first_mode)


def main():
    _logger.info(f"Starting storefront on {config.DB_PATH}")
    app = SouqApp()
    app.run()


if __name__ == "__main__":
    main()
