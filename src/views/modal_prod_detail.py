from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.models import Product
from services.cart import CartEntry
from services.errors import StoreError
from utils.i18n import t
from utils.messages import CartChangedMessage
from utils.pure import format_price, generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus adding to the client cart
    Will return true of cart changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, pid: int) -> None:
        super().__init__()

        self._pid = pid

        self._prod: Product = None
        self._existing_cart_item: CartEntry = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label(t("ui.quantity"))
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button(t("ui.back"), id="btn-quit")
                    yield Button(
                        t("ui.add_to_cart"), id="btn-addcart", variant="primary"
                    )

    async def on_mount(self):
        state = self.app.state
        try:
            self._prod = await state.catalog.get_product(state.actor, self._pid)
        except StoreError as exc:
            self.app.notify(exc.message(state.lang), severity="error")
            self.dismiss(False)
            return

        table_rows = [
            [t("ui.product"), self._prod.name],
            [t("ui.category"), self._prod.category],
            [t("ui.price"), format_price(self._prod.price)],
            [t("ui.stock"), self._prod.stock],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        header_md = f"### {self._prod.name}\n\n{self._prod.description}\n\n"
        await self.query_one(MarkdownViewer).document.update(header_md + md_table_str)

        stock_cnt = self._prod.stock
        if stock_cnt < 1:
            order_btn = self.query_one("#btn-addcart")
            order_btn.label = t("ui.out_of_stock")
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(stock_cnt, 1))
        ]

        self._existing_cart_item = state.cart.find(self._pid)
        if self._existing_cart_item:
            self.order_qty = self._existing_cart_item.qty
            self.query_one("#btn-addcart").label = t("ui.update_cart")

        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def validate_order_qty(self, qty: int) -> int:
        if self._prod is None:
            return max(qty, 1)
        return min(max(qty, 1), max(self._prod.stock, 1))

    async def watch_order_qty(self, qty: int):
        if self._prod is None:
            return
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= self._prod.stock
        self.query_one("#input-order-qty").value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        state = self.app.state
        try:
            if not self._existing_cart_item:
                state.cart.add(self._prod, self.order_qty)
                self.app.notify(
                    t("cart.added", qty=self.order_qty, name=self._prod.name)
                )
            else:
                state.cart.set_qty(self._pid, self.order_qty, stock=self._prod.stock)
                self.app.notify(t("cart.updated"))
        except StoreError as exc:
            self.app.notify(exc.message(state.lang), severity="error")
            return

        state.save_cart()
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)
