"""Demo account records loaded from YAML."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tokenauth.domain.passwords import check_password, is_bcrypt_hash

__all__ = ["Account", "AccountRepository", "AccountsError"]

logger = logging.getLogger(__name__)


class AccountsError(RuntimeError):
    """Raised when the accounts file cannot be loaded."""


class Account(BaseModel):
    """A demo user with the role and permissions granted at login."""

    model_config = ConfigDict(extra="ignore")

    user_id: int | str
    username: str
    password: str
    role: str | None = None
    permissions: list[str] = Field(default_factory=list)
    nickname: str | None = None
    email: str | None = None
    phone: str | None = None

    def verify_password(self, password: str) -> bool:
        if is_bcrypt_hash(self.password):
            return check_password(password, self.password)
        return self.password == password


class AccountRepository:
    """Read-only lookup of demo accounts per profile group."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._groups: dict[str, dict[str, Account]] = {}
        self._load()

    def accounts(self, group: str) -> list[Account]:
        with self._lock:
            return list(self._groups.get(group, {}).values())

    def find(self, group: str, username: str | None) -> Account | None:
        if not username:
            return None
        with self._lock:
            return self._groups.get(group, {}).get(username)

    def find_by_id(self, group: str, user_id: Any) -> Account | None:
        with self._lock:
            for account in self._groups.get(group, {}).values():
                if str(account.user_id) == str(user_id):
                    return account
        return None

    def _load(self) -> None:
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise AccountsError(f"Failed to load accounts from {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise AccountsError(f"Accounts file {self._path} must map group names to lists.")

        groups: dict[str, dict[str, Account]] = {}
        for group, entries in raw.items():
            if not isinstance(entries, list):
                raise AccountsError(f"Accounts group '{group}' must be a list.")
            try:
                accounts = [Account.model_validate(entry) for entry in entries]
            except ValidationError as exc:
                raise AccountsError(f"Invalid account in group '{group}': {exc}") from exc
            groups[str(group)] = {account.username: account for account in accounts}
        self._groups = groups
        logger.info(
            "Loaded accounts from %s",
            self._path,
            extra={"groups": {name: len(items) for name, items in groups.items()}},
        )
