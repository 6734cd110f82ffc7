from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from db.database import Database
from db.models import Order, Role, User
from services.access import Actor
from services.accounts import AccountService
from services.cart import CartSession, CartStore
from services.catalog import CatalogService
from services.orders import OrderService
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - user: current logged-in user, None before login
      - cart: the client-held cart of the logged-in customer
      - lang: display language ("ar" | "en")

    The services share one Database handle; the cart never touches it until
    checkout, which sends product ids and quantities only.
    """

    database: Database
    accounts: AccountService
    catalog: CatalogService
    orders: OrderService
    cart_store: CartStore
    user: Optional[User] = None
    cart: CartSession = field(default_factory=CartSession)
    lang: Optional[str] = None

    @classmethod
    def create(
        cls,
        database: Database,
        cart_store: Optional[CartStore] = None,
        lang: Optional[str] = None,
    ) -> "GlobalState":
        return cls(
            database=database,
            accounts=AccountService(database),
            catalog=CatalogService(database),
            orders=OrderService(database),
            cart_store=cart_store or CartStore(),
            lang=lang,
        )

    @property
    def actor(self) -> Optional[Actor]:
        return Actor.of(self.user) if self.user else None

    @property
    def uid(self) -> Optional[int]:
        return self.user.uid if self.user else None

    @property
    def role(self) -> Optional[Role]:
        return self.user.role if self.user else None

    def login(self, user: User) -> None:
        """Remember the user and restore their stored cart."""
        self.user = user
        self.cart = self.cart_store.load(user.uid)
        _logger.info(f"uid {user.uid} logged in as {user.role.value}")

    def logout(self) -> None:
        if self.user is None:
            return
        self.save_cart()
        _logger.info(f"uid {self.user.uid} logged out")
        self.user = None
        self.cart = CartSession()

    def save_cart(self) -> None:
        if self.user is not None:
            self.cart_store.save(self.user.uid, self.cart)

    async def checkout(self) -> Order:
        """
        Place an order from the cart. The cart is only emptied when the
        order was committed; on any error it is left untouched.
        """
        order = await self.orders.create_order(self.actor, self.cart.checkout_items())
        self.cart.clear()
        self.cart_store.clear(order.uid)
        return order
