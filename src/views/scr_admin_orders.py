from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer, Select

from db.models import Order, OrderStatus
from services.errors import StoreError
from utils.i18n import t
from utils.messages import (
    ModeSwitchedMessage,
    NewOrderMessage,
    OrderStatusChangedMessage,
)
from utils.pure import format_price, order_markdown, status_label
from views.base_screen import BaseScreen


class AdminOrdersScreen(BaseScreen):
    """
    Back office order list: every order with its customer, filterable by
    status, and a status selector for the highlighted order.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        status_options = [(status_label(s), s.value) for s in OrderStatus]
        yield from super().compose()
        with Horizontal(id="hort-filter"):
            yield Select(
                status_options, prompt=t("ui.all_statuses"), id="select-filter"
            )
            yield Button(t("ui.refresh"), id="btn-refresh")
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-status"):
            yield Select(
                status_options,
                prompt=t("ui.status"),
                allow_blank=False,
                id="select-status",
            )
            yield Button(t("ui.set_status"), id="btn-set-status", variant="warning")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(
            t("ui.order_no"),
            t("ui.date"),
            t("ui.customer"),
            t("ui.status"),
            t("ui.total"),
        )
        self._load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(Select.Changed, "#select-filter")
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
        wanted = self.query_one("#select-filter", Select).value
        try:
            orders = await state.orders.list_all_orders(
                state.actor, None if wanted == Select.BLANK else wanted
            )
        except StoreError as exc:
            self.notify_error(exc)
            return

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                str(o.ono),
                f"{o.created_at:%Y-%m-%d %H:%M}",
                o.owner_name or str(o.uid),
                status_label(o.status),
                format_price(o.total),
            )
        self._orders = orders
        if orders:
            table.cursor_coordinate = (0, 0)
        self._render_detail(orders[0] if orders else None)

    def _render_detail(self, order: Optional[Order]) -> None:
        md = order_markdown(order, with_owner=True) if order else f"### {t('ui.no_orders')}"
        self.query_one("#md-order-detail", MarkdownViewer).document.update(md)
        self.query_one("#btn-set-status", Button).disabled = order is None
        if order is not None:
            self.query_one("#select-status", Select).value = order.status.value

    @on(Button.Pressed, "#btn-set-status")
    @work(exclusive=True)
    async def handle_set_status(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        target = self.query_one("#select-status", Select).value

        state = self.app.state
        try:
            updated = await state.orders.set_order_status(state.actor, order.ono, target)
        except StoreError as exc:
            self.notify_error(exc)
            return

        self.notify(t("order.status_updated"))
        self.app.post_message(
            OrderStatusChangedMessage(updated.ono, updated.status.value)
        )
