from __future__ import annotations

from typing import Any, Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.validation import Number
from textual.widgets import Button, Input, Label, OptionList, Switch
from textual.widgets.option_list import Option

from db.models import Product
from services.errors import StoreError
from utils.i18n import t
from utils.messages import CatalogChangedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal

# form input id -> product field
FORM_FIELDS = {
    "input-name": "name",
    "input-category": "category",
    "input-price": "price",
    "input-stock": "stock",
    "input-description": "description",
    "input-image": "image",
}


class AdminProductsScreen(BaseScreen):
    """
    Back office catalog: search every product (inactive included),
    create, edit, deactivate and delete.
    """

    current_pid: Optional[int] = None

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal():
            with Vertical(id="div-prod-list"):
                yield Input(id="input-search", placeholder=t("ui.search"))
                yield OptionList(id="optlist-prods")
                yield Button(t("ui.new_product"), id="btn-new", variant="primary")
            with VerticalScroll(id="div-prod-form"):
                yield Label(t("ui.name"))
                yield Input(id="input-name")
                yield Label(t("ui.category"))
                yield Input(id="input-category")
                yield Label(t("ui.price"))
                yield Input(
                    id="input-price", type="number", validators=[Number(minimum=0.0)]
                )
                yield Label(t("ui.stock"))
                yield Input(
                    id="input-stock", type="integer", validators=[Number(minimum=0)]
                )
                yield Label(t("ui.description"))
                yield Input(id="input-description")
                yield Label(t("ui.image"))
                yield Input(id="input-image", placeholder="https://")
                with Horizontal(id="div-active"):
                    yield Label(t("ui.active"))
                    yield Switch(value=True, id="switch-active")
                with Horizontal(id="div-button"):
                    yield Button(t("ui.delete"), id="btn-delete", variant="error")
                    yield Button(t("ui.save"), id="btn-save", variant="success")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.new_product()
        self.update_optlist("")

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.update_optlist(message.value.strip())

    def on_option_list_option_selected(self, message: OptionList.OptionSelected):
        self.current_pid = int(message.option.id)
        self.render_product()

    @on(CatalogChangedMessage)
    def handle_catalog_changed(self) -> None:
        self.update_optlist(self.query_one("#input-search", Input).value.strip())

    @work(exclusive=True, group="optlist")
    async def update_optlist(self, query: str):
        state = self.app.state
        try:
            self._products = await state.catalog.list_products(
                state.actor, query=query or None, include_inactive=True
            )
        except StoreError as exc:
            self.notify_error(exc)
            return

        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        for p in self._products:
            marker = "" if p.is_active else " ✗"
            prompt = f"{p.pid} {p.name} | {format_price(p.price)} | {p.stock}{marker}"
            opt_list.add_option(Option(prompt, id=str(p.pid)))

    @on(Button.Pressed, "#btn-new")
    def new_product(self) -> None:
        self.current_pid = None
        for input_id in FORM_FIELDS:
            self.query_one(f"#{input_id}", Input).value = ""
        self.query_one("#switch-active", Switch).value = True
        self.query_one("#btn-delete", Button).disabled = True
        self.query_one("#input-name", Input).focus()

    @work(exclusive=True)
    async def render_product(self) -> None:
        state = self.app.state
        try:
            prod = await state.catalog.get_product(state.actor, self.current_pid)
        except StoreError as exc:
            self.notify_error(exc)
            return

        for input_id, field in FORM_FIELDS.items():
            value = getattr(prod, field)
            self.query_one(f"#{input_id}", Input).value = "" if value is None else str(value)
        self.query_one("#switch-active", Switch).value = prod.is_active
        self.query_one("#btn-delete", Button).disabled = False

    def _read_form(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            field: self.query_one(f"#{input_id}", Input).value.strip()
            for input_id, field in FORM_FIELDS.items()
        }
        fields["image"] = fields["image"] or None
        fields["is_active"] = self.query_one("#switch-active", Switch).value
        return fields

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        state = self.app.state
        fields = self._read_form()
        try:
            if self.current_pid is None:
                prod = await state.catalog.create_product(state.actor, **fields)
                self.current_pid = prod.pid
                self.notify(t("product.created"))
            else:
                await state.catalog.update_product(
                    state.actor, self.current_pid, **fields
                )
                self.notify(t("product.updated"))
        except StoreError as exc:
            self.notify_error(exc)
            return

        self.app.post_message(CatalogChangedMessage())
        self.render_product()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if self.current_pid is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(t("ui.delete_product_confirm"), tone="error")
        ):
            return

        state = self.app.state
        try:
            await state.catalog.delete_product(state.actor, self.current_pid)
        except StoreError as exc:
            self.notify_error(exc)
            return

        self.notify(t("product.deleted"))
        self.app.post_message(CatalogChangedMessage())
        self.new_product()
