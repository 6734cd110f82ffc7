"""
REST/JSON binding of the store services.

    uvicorn api.app:create_app --factory    # or: python -m api
"""

from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.auth import bearer_token, create_token, decode_token
from api.schemas import (
    LoginRequest,
    MessageOut,
    OrderCreate,
    OrderOut,
    ProductIn,
    ProductOut,
    ProductPatch,
    ProfileUpdate,
    SignupRequest,
    StatusUpdate,
    TokenResponse,
    UserOut,
)
from db.database import Database
from services.access import Actor
from services.accounts import AccountService
from services.catalog import CatalogService
from services.errors import InvalidCredentials, InvalidInput, StoreError
from services.orders import OrderService
from services.seed import demo_seeder
from utils import config
from utils.i18n import t
from utils.logger import get_logger

_logger = get_logger(__name__)


def _lang(accept_language: Optional[str]) -> str:
    if accept_language and accept_language.strip().lower().startswith("en"):
        return "en"
    return config.LANG


def create_app(
    database: Optional[Database] = None,
    secret: str = config.SECRET_KEY,
    accounts: Optional[AccountService] = None,
    orders: Optional[OrderService] = None,
) -> FastAPI:
    """Build the API around an explicit storage handle."""
    if database is None:
        database = Database(
            seeder=demo_seeder() if config.SEED_DEMO_DATA else None
        )

    app = FastAPI(title="Souq Store API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.db = database
    app.state.accounts = accounts or AccountService(database)
    app.state.catalog = CatalogService(database)
    app.state.orders = orders or OrderService(database)
    _logger.info(f"API bound to {database!r}")

    # ---------------------------
    # Errors
    # ---------------------------

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        lang = _lang(request.headers.get("accept-language"))
        if exc.status_code >= 500:
            _logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(lang))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        lang = _lang(request.headers.get("accept-language"))
        err = InvalidInput("Malformed request body")
        body = err.to_dict(lang)
        body["details"] = {
            "errors": [
                {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg", "")}
                for e in exc.errors()
            ]
        }
        return JSONResponse(status_code=err.status_code, content=body)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        _logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        lang = _lang(request.headers.get("accept-language"))
        return JSONResponse(
            status_code=500,
            content={
                "error": "ServerError",
                "message": t("error.server", lang),
                "retryable": False,
                "details": {},
            },
        )

    # ---------------------------
    # Identity
    # ---------------------------

    async def current_actor(
        authorization: Optional[str] = Header(None),
    ) -> Optional[Actor]:
        """Anonymous (None) unless a valid bearer token names an existing user."""
        token = bearer_token(authorization)
        if token is None:
            return None
        uid = decode_token(token, secret)
        if uid is None:
            return None
        user = await app.state.accounts.get_user(uid)
        return Actor.of(user) if user else None

    # ---------------------------
    # Routes
    # ---------------------------

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "souq"}

    @app.post("/auth/signup", status_code=201)
    async def signup(payload: SignupRequest, accept_language: Optional[str] = Header(None)):
        user = await app.state.accounts.signup(
            payload.name, payload.email, payload.password, payload.phone, payload.address
        )
        return {
            "message": t("account.created", _lang(accept_language)),
            "user": UserOut.of(user).model_dump(),
        }

    @app.post("/auth/login", response_model=TokenResponse)
    async def login(payload: LoginRequest):
        user = await app.state.accounts.authenticate(payload.email, payload.password)
        if user is None:
            raise InvalidCredentials()
        return TokenResponse(token=create_token(user, secret), user=UserOut.of(user))

    @app.get("/products", response_model=List[ProductOut])
    async def list_products(
        category: Optional[str] = None,
        q: Optional[str] = None,
        actor: Optional[Actor] = Depends(current_actor),
    ):
        products = await app.state.catalog.list_products(actor, category=category, query=q)
        return [ProductOut.of(p) for p in products]

    @app.get("/products/{pid}", response_model=ProductOut)
    async def get_product(pid: int, actor: Optional[Actor] = Depends(current_actor)):
        return ProductOut.of(await app.state.catalog.get_product(actor, pid))

    @app.post("/products", response_model=ProductOut, status_code=201)
    async def create_product(
        payload: ProductIn, actor: Optional[Actor] = Depends(current_actor)
    ):
        product = await app.state.catalog.create_product(actor, **payload.model_dump())
        return ProductOut.of(product)

    @app.put("/products/{pid}", response_model=ProductOut)
    async def update_product(
        pid: int, payload: ProductPatch, actor: Optional[Actor] = Depends(current_actor)
    ):
        product = await app.state.catalog.update_product(
            actor, pid, **payload.model_dump(exclude_unset=True)
        )
        return ProductOut.of(product)

    @app.delete("/products/{pid}", response_model=MessageOut)
    async def delete_product(
        pid: int,
        actor: Optional[Actor] = Depends(current_actor),
        accept_language: Optional[str] = Header(None),
    ):
        await app.state.catalog.delete_product(actor, pid)
        return MessageOut(message=t("product.deleted", _lang(accept_language)))

    @app.post("/orders", response_model=OrderOut, status_code=201)
    async def create_order(
        payload: OrderCreate, actor: Optional[Actor] = Depends(current_actor)
    ):
        entries = [(item.product_id, item.quantity) for item in payload.items]
        order = await app.state.orders.create_order(actor, entries)
        return OrderOut.of(order)

    @app.get("/orders", response_model=List[OrderOut])
    async def list_orders(
        status: Optional[str] = None, actor: Optional[Actor] = Depends(current_actor)
    ):
        orders = await app.state.orders.list_all_orders(actor, status)
        return [OrderOut.of(o, with_owner=True) for o in orders]

    @app.get("/orders/{ono}", response_model=OrderOut)
    async def get_order(ono: int, actor: Optional[Actor] = Depends(current_actor)):
        order = await app.state.orders.get_order(actor, ono)
        return OrderOut.of(order, with_owner=True)

    @app.api_route("/orders/{ono}", methods=["PATCH", "PUT"], response_model=OrderOut)
    async def set_order_status(
        ono: int, payload: StatusUpdate, actor: Optional[Actor] = Depends(current_actor)
    ):
        order = await app.state.orders.set_order_status(actor, ono, payload.status)
        return OrderOut.of(order)

    @app.get("/user/orders", response_model=List[OrderOut])
    async def my_orders(actor: Optional[Actor] = Depends(current_actor)):
        return [OrderOut.of(o) for o in await app.state.orders.list_user_orders(actor)]

    @app.get("/user/profile", response_model=UserOut)
    async def get_profile(actor: Optional[Actor] = Depends(current_actor)):
        return UserOut.of(await app.state.accounts.get_profile(actor))

    @app.put("/user/profile", response_model=UserOut)
    async def update_profile(
        payload: ProfileUpdate, actor: Optional[Actor] = Depends(current_actor)
    ):
        user = await app.state.accounts.update_profile(
            actor, payload.name, payload.email, payload.phone, payload.address
        )
        return UserOut.of(user)

    return app

