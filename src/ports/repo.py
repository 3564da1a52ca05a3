from contextlib import AbstractContextManager
from typing import Protocol

from src.domain.entities import Brand, Invite, User


class InviteReadPort(Protocol):
    """Read access to the three records the invite engine touches."""

    def get_invite(self, token: str) -> Invite | None:
        ...

    def get_brand(self, brand_id: str) -> Brand | None:
        ...

    def get_user(self, user_id: str) -> User | None:
        ...


class UserLookupPort(Protocol):
    def find_user_ids_by_email(self, email: str, limit: int = 2) -> list[str]:
        """Ids of users whose email matches exactly, at most `limit` of them."""
        ...


class StoreTransactionPort(InviteReadPort, Protocol):
    """
    Reads and writes inside one transaction.

    Writes become visible only when the owning context manager exits
    cleanly; any exception rolls every write back.
    """

    def put_invite(self, invite: Invite) -> None:
        ...

    def put_user(self, user: User) -> None:
        ...

    def put_brand(self, brand: Brand) -> None:
        ...


class InviteStorePort(InviteReadPort, UserLookupPort, Protocol):
    def transaction(self) -> AbstractContextManager[StoreTransactionPort]:
        """
        Open a serializable transaction.

        Raises src.domain.errors.TransactionConflict when the store detects
        a concurrent write on the same records (at begin, on a write, or on
        commit).
        """
        ...
