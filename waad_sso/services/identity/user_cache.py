"""In-memory cache of resolved users, keyed on email."""

from typing import Iterator, Optional

from waad_sso.schemas.user import UserRecord


class UserCache:
    """Process-lifetime store of session principals.

    Lookups are a linear scan with an exact, case-sensitive email match.
    ``insert`` does not guard uniqueness; callers check ``find_by_email``
    first, and ``remove_all_matching`` clears any accidental duplicates.
    """

    def __init__(self) -> None:
        self._users: list[UserRecord] = []

    def find_by_email(self, email: Optional[str]) -> Optional[UserRecord]:
        for user in self._users:
            if user.email == email:
                return user
        return None

    def insert(self, record: UserRecord) -> None:
        self._users.append(record)

    def remove_all_matching(self, email: str) -> int:
        """Remove every record for ``email``. Returns the number removed."""
        before = len(self._users)
        self._users = [user for user in self._users if user.email != email]
        return before - len(self._users)

    def __len__(self) -> int:
        return len(self._users)

    def __iter__(self) -> Iterator[UserRecord]:
        return iter(list(self._users))

    def __contains__(self, email: object) -> bool:
        return any(user.email == email for user in self._users)
