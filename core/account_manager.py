# core/account_manager.py

import uuid
from typing import Optional
from passlib.context import CryptContext

from .errors import ValidationFailure
from .models import Account
from .paths import join_path
from .store import DocumentStore

ACCOUNTS = "accounts"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

class AccountManager:
    """Handles account creation and authentication. An account's uid owns every farmer, field, visit and recommendation it creates."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return pwd_context.hash(password)

    async def get_user(self, username: str) -> Optional[Account]:
        snapshot = await self.store.get(join_path(ACCOUNTS, username))
        if snapshot:
            return Account(**snapshot.data)
        return None

    async def create_user(self, username: str, password: str, display_name: Optional[str] = None) -> Account:
        username = (username or "").strip().lower()
        if not username or "/" in username:
            raise ValidationFailure("Username is not valid.")
        if not password or len(password) < 6:
            raise ValidationFailure("Password must be at least 6 characters.")
        if await self.get_user(username):
            raise ValidationFailure("Username already exists.")

        new_user = Account(
            uid=uuid.uuid4().hex,
            username=username,
            hashed_password=self.get_password_hash(password),
            display_name=display_name,
        )
        await self.store.set(join_path(ACCOUNTS, username), new_user.model_dump())

        print(f"---ACCOUNT MANAGER: Created new user '{username}'---")
        return new_user

    async def authenticate_user(self, username: str, password: str) -> Optional[Account]:
        user = await self.get_user((username or "").strip().lower())
        if user and user.hashed_password and self.verify_password(password, user.hashed_password):
            return user
        return None
