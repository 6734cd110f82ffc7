"""
Accounts: signup, credential check and self-service profile.

This is the authentication provider the rest of the store treats as opaque:
it turns an email/password pair into a ``User`` whose ``Actor`` the other
services consume.
"""

from __future__ import annotations

import re
from typing import Optional

import bcrypt

from db import crud
from db.database import Database
from db.models import Role, User
from services.access import Actor, Operation, authorize
from services.errors import EmailTaken, InvalidInput, UserNotFound, lock_conflicts
from utils.logger import get_logger

_logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, pwd_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), pwd_hash.encode())
    except ValueError:
        # malformed hash in the db
        return False


def _clean_email(email: Optional[str]) -> str:
    email = (email or "").strip()
    if not EMAIL_RE.match(email):
        raise InvalidInput(f"Invalid email address: {email!r}", field="email")
    return email


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Name is required", field="name")
    return name


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class AccountService:
    def __init__(self, database: Database, rounds: int = 12) -> None:
        self.db = database
        self.rounds = rounds

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        role: Role = Role.CUSTOMER,
    ) -> User:
        """
        Create a new account and return it. Public signup always yields a
        customer; ``role`` is for seeding/administration scripts.
        """
        name = _clean_name(name)
        email = _clean_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidInput(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )
        pwd_hash = hash_password(password, self.rounds)
        async with lock_conflicts(), self.db.transaction() as conn:
            if not await crud.email_available(conn, email):
                raise EmailTaken(email=email)
            uid = await crud.insert_user(
                conn, email, pwd_hash, name, role, _optional(phone), _optional(address)
            )
            user = await crud.get_user(conn, uid)
        _logger.info(f"Account {uid} created ({role.value})")
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the User if email/password match; otherwise None."""
        if not email or not password:
            _logger.debug("Login attempt with missing credentials")
            return None
        async with self.db.connect() as conn:
            user = await crud.get_user_by_email(conn, email.strip())
        if user is None or not verify_password(password, user.pwd_hash):
            _logger.info(f"Failed login for {email!r}")
            return None
        _logger.info(f"User {user.uid} logged in")
        return user

    async def get_user(self, uid: int) -> Optional[User]:
        async with self.db.connect() as conn:
            return await crud.get_user(conn, uid)

    async def get_profile(self, actor: Optional[Actor]) -> User:
        authorize(actor, Operation.VIEW_PROFILE)
        user = await self.get_user(actor.uid)
        if user is None:
            raise UserNotFound(uid=actor.uid)
        return user

    async def update_profile(
        self,
        actor: Optional[Actor],
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> User:
        """
        Update the caller's own profile. Fields left as None keep their value;
        an empty string clears phone/address.
        """
        authorize(actor, Operation.UPDATE_PROFILE)
        async with lock_conflicts(), self.db.transaction() as conn:
            current = await crud.get_user(conn, actor.uid)
            if current is None:
                raise UserNotFound(uid=actor.uid)
            new_name = _clean_name(name) if name is not None else current.name
            new_email = _clean_email(email) if email is not None else current.email
            if new_email.lower() != current.email.lower() and not await crud.email_available(
                conn, new_email, exclude_uid=actor.uid
            ):
                raise EmailTaken(email=new_email)
            new_phone = _optional(phone) if phone is not None else current.phone
            new_address = _optional(address) if address is not None else current.address
            await crud.update_user_profile(
                conn, actor.uid, new_name, new_email, new_phone, new_address
            )
            user = await crud.get_user(conn, actor.uid)
        _logger.info(f"Profile of user {actor.uid} updated")
        return user
