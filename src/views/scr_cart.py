from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from services.access import storefront_redirect
from services.cart import CartEntry
from utils.i18n import t
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import ConfirmDialogModal
from views.modal_prod_detail import ProdDetailModal


class CartItemActionEditMessage(Message):
    bubble = True


class CartItemActionRemoveMessage(Message):
    bubble = True


class CartItemActionLabel(Label):
    def action_edit(self):
        self.post_message(CartItemActionEditMessage())

    def action_remove(self):
        self.post_message(CartItemActionRemoveMessage())


class CartItemWidget(HorizontalGroup):
    """One cart line. Prices shown are the ones cached when the item was added."""

    def __init__(self, entry: CartEntry):
        super().__init__()
        self.entry = entry

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.entry.name or f"#{self.entry.pid}", id="label-item-name")
                yield Label(str(self.entry.qty), id="label-item-qty")
                yield Label(format_price(self.entry.line_total), id="label-item-price")
            with Container(id="div-actions"):
                yield CartItemActionLabel(
                    f"[@click=edit()]{t('ui.edit')}[/]", id="link-item-edit"
                )
                yield CartItemActionLabel(
                    f"[@click=remove()]{t('ui.remove')}[/]", id="link-item-remove"
                )

    @on(CartItemActionEditMessage)
    @work()
    async def handle_edit_item(self):
        if await self.app.push_screen_wait(ProdDetailModal(self.entry.pid)):
            self.post_message(CartChangedMessage())

    @on(CartItemActionRemoveMessage)
    @work()
    async def handle_remove_item(self):
        if await self.app.push_screen_wait(ConfirmDialogModal(t("ui.remove_confirm"))):
            self.app.state.cart.remove(self.entry.pid)
            self.app.state.save_cart()
            self.post_message(CartChangedMessage())
            self.notify(t("cart.removed"), severity="information")


class CartScreen(BaseScreen):
    """
    The client-held cart: edit quantities, remove lines, check out.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-total")
        yield Label(t("ui.cart_estimate_note"), id="label-cart-note")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button(t("ui.clear_cart"), id="btn-clear-cart")
            yield Button(t("ui.refresh"), id="btn-refresh")
            yield Button(t("ui.checkout"), id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # must be exclusive, else concurrent runs mount duplicates
    async def handle_cart_change(self):
        cart = self.app.state.cart

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(entry) for entry in cart.entries])
        content.set_class(not cart, "no-items")

        self.query_one("#label-cart-total", Label).update(
            t("ui.cart_total", total=format_price(cart.subtotal()))
        )
        self.query_one("#btn-checkout", Button).disabled = not cart

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not self.app.state.cart:
            self.app.notify(t("error.empty_cart"), severity="warning")
            return

        if await self.app.push_screen_wait(
            ConfirmDialogModal(t("ui.clear_confirm"), tone="error")
        ):
            self.app.state.cart.clear()
            self.app.state.save_cart()
            self.notify(t("cart.cleared"))
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        state = self.app.state
        if not state.cart:
            self.app.notify(t("error.empty_cart"), severity="warning")
            return

        if storefront_redirect(state.actor) == "admin":
            self.app.notify(t("ui.admin_checkout_hint"), severity="warning")
            await self.app.switch_mode("admin_orders")
            return

        ono = await self.app.push_screen_wait(CheckoutModal())
        if ono:
            self.app.post_message(NewOrderMessage(ono))
        self.post_message(CartChangedMessage())
