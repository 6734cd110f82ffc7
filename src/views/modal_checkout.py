from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer

from services.errors import StoreError
from utils.i18n import t
from utils.pure import format_price, generate_markdown_table
from utils.state import GlobalState
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[Optional[int]]):
    """
    Order summary and the place-order button.
    Dismissed with the new order number on success, None otherwise.
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label(
                f"{t('ui.payment_method')}: {t('payment.COD')}", id="label-payment"
            )
            with Horizontal():
                yield Button(t("ui.back"), id="btn-quit")
                yield Button(t("ui.place_order"), id="btn-submit", variant="primary")

    async def on_mount(self):
        state: GlobalState = self.app.state
        headers = [t("ui.product"), t("ui.unit_price"), t("ui.quantity"), t("ui.line_total")]
        rows = [
            [e.name, format_price(e.unit_price), e.qty, format_price(e.line_total)]
            for e in state.cart.entries
        ]
        header_md = f"### {t('ui.order_summary')}\n\n"
        md = generate_markdown_table(headers, rows, ["l", "c", "c", "c"])
        md += f"\n\n**{t('ui.subtotal')}:** {format_price(state.cart.subtotal())}"
        md += f"\n\n_{t('ui.cart_estimate_note')}_"
        if state.user and state.user.address:
            md += f"\n\n{t('ui.address')}: {state.user.address}"
        await self.query_one(MarkdownViewer).document.update(header_md + md)
        self.query_one("#btn-submit").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        state: GlobalState = self.app.state
        if not await self.app.push_screen_wait(
            DialogModal(
                t("ui.place_order_confirm"),
                primary_text=t("ui.yes"),
                secondary_text=t("ui.no"),
                tone="positive",
            )
        ):
            return

        try:
            order = await state.checkout()
        except StoreError as exc:
            # the cart is left as it was
            self.notify(exc.message(state.lang), severity="error")
            return

        self.notify(t("order.created", ono=order.ono))
        self.dismiss(order.ono)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
