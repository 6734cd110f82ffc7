from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import DataTable, Input, Label, Select

from services.errors import StoreError
from utils.i18n import t
from utils.messages import CartChangedMessage, CatalogChangedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class CatalogScreen(BaseScreen):
    """
    Storefront product listing: active products, newest first,
    filterable by keyword and category.
    """

    # bindings here are only displayed in footer
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
        Binding("escape", "noop", "Exit Prod View", show=True),
    ]

    query_str = reactive("")
    category = reactive("")

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="div-search"):
            yield Input(id="input-search", placeholder=t("ui.search"))
            yield Select([], prompt=t("ui.category"), id="select-category")
        yield DataTable(id="table-search-result")
        yield Label("", id="label-result-cnt")

    async def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(
            "#", t("ui.product"), t("ui.category"), t("ui.price"), t("ui.stock")
        )

        categories = await self.app.state.catalog.categories()
        self.query_one(Select).set_options([(c, c) for c in categories])

        self.update_search_result()
        self.query_one("#input-search").focus()

    def action_noop(self) -> None:
        pass

    async def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.query_str = message.value.strip()

    @on(Select.Changed, "#select-category")
    def handle_category_changed(self, event: Select.Changed) -> None:
        self.category = "" if event.value == Select.BLANK else str(event.value)

    def watch_query_str(self, _, __) -> None:
        self.update_search_result()

    def watch_category(self, _, __) -> None:
        self.update_search_result()

    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table and table.row_count:
            pid = int(table.get_row_at(table.cursor_row)[0])
            self.open_product(pid)

    @work
    async def open_product(self, pid: int) -> None:
        if await self.app.push_screen_wait(ProdDetailModal(pid)):
            self.app.post_message(CartChangedMessage())
        self.update_search_result()

    @on(CatalogChangedMessage)
    def handle_catalog_changed(self) -> None:
        self.update_search_result()

    @work(exclusive=True)
    async def update_search_result(self) -> None:
        if not self.is_mounted:
            return
        try:
            products = await self.app.state.catalog.list_products(
                self.app.state.actor,
                category=self.category or None,
                query=self.query_str or None,
            )
        except StoreError as exc:
            self.notify_error(exc)
            return

        table = self.query_one(DataTable)
        table.clear()
        table.add_rows(
            [
                (
                    str(p.pid),
                    p.name,
                    p.category,
                    format_price(p.price),
                    str(p.stock) if p.stock else t("ui.out_of_stock"),
                )
                for p in products
            ]
        )
        self.query_one("#label-result-cnt").update(f"{len(products)}")
