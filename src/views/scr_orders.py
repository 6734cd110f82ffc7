from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from db.models import Order, OrderStatus
from services.access import Operation, is_allowed
from services.errors import StoreError
from utils.i18n import t
from utils.messages import (
    ModeSwitchedMessage,
    NewOrderMessage,
    OrderStatusChangedMessage,
)
from utils.pure import format_price, order_markdown, status_label
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal


class OrdersScreen(BaseScreen):
    """
    Customers browse their own orders, newest first, and confirm pending ones.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button(t("ui.refresh"), id="btn-refresh")
            yield Button(
                t("ui.confirm_order"), id="btn-confirm", variant="success", disabled=True
            )

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(
            t("ui.order_no"), t("ui.date"), t("ui.status"), t("ui.total")
        )
        self._load_orders()

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    @on(OrderStatusChangedMessage)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self._render_detail(self._selected_order())

    def _selected_order(self) -> Optional[Order]:
        table = self.query_one(DataTable)
        if table.row_count == 0 or table.cursor_row is None:
            return None
        ono = int(table.get_row_at(table.cursor_row)[0])
        return next((o for o in self._orders if o.ono == ono), None)

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        state = self.app.state
        try:
            orders = await state.orders.list_user_orders(state.actor)
        except StoreError as exc:
            self.notify_error(exc)
            return

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                str(o.ono),
                f"{o.created_at:%Y-%m-%d %H:%M}",
                status_label(o.status),
                format_price(o.total),
            )
        self._orders = orders
        if orders:
            table.cursor_coordinate = (0, 0)
        self._render_detail(orders[0] if orders else None)

    def _render_detail(self, order: Optional[Order]) -> None:
        md = order_markdown(order) if order or self._orders else f"### {t('ui.no_orders')}"
        self.query_one("#md-order-detail", MarkdownViewer).document.update(md)
        can_confirm = (
            order is not None
            and order.status == OrderStatus.PENDING
            and is_allowed(
                self.app.state.actor,
                Operation.SET_ORDER_STATUS,
                order,
                OrderStatus.CONFIRMED,
            )
        )
        self.query_one("#btn-confirm", Button).disabled = not can_confirm

    @on(Button.Pressed, "#btn-confirm")
    @work(exclusive=True)
    async def handle_confirm(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(f"{t('ui.confirm_order')} #{order.ono}?", tone="positive")
        ):
            return

        state = self.app.state
        try:
            updated = await state.orders.confirm_order(state.actor, order.ono)
        except StoreError as exc:
            self.notify_error(exc)
            return

        self.notify(t("order.confirmed"))
        self.app.post_message(
            OrderStatusChangedMessage(updated.ono, updated.status.value)
        )
