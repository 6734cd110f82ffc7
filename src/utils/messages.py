from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged, so the scren can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever the client cart is modified (catalog, product detail, cart screen).
    Will trigger a refresh of cart screen

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    Listened to by the orders screens
    """

    bubble = True

    def __init__(self, ono: int) -> None:
        super().__init__()
        self.ono = ono


class OrderStatusChangedMessage(Message):
    """Fired after a status transition, from either the customer or the back office."""

    bubble = True

    def __init__(self, ono: int, status: str) -> None:
        super().__init__()
        self.ono = ono
        self.status = status


class CatalogChangedMessage(Message):
    """Fired by the back office when products are created, edited or deleted."""

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
