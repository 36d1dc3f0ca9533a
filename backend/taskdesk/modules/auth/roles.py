from enum import Enum


class UserRole(str, Enum):
    User = "user"
    Manager = "manager"
    Admin = "admin"

    @property
    def Rank(self) -> int:
        return _ROLE_RANKS[self]

    def Covers(self, other: "UserRole") -> bool:
        """Read-broadness order: admin covers manager covers user."""
        return self.Rank >= other.Rank


_ROLE_RANKS = {
    UserRole.User: 0,
    UserRole.Manager: 1,
    UserRole.Admin: 2,
}


def ParseRole(value: str | None) -> UserRole | None:
    if value is None:
        return None
    try:
        return UserRole(value)
    except ValueError:
        return None


def IsAdmin(role: UserRole | str | None) -> bool:
    return ParseRole(role) is UserRole.Admin


def IsManager(role: UserRole | str | None) -> bool:
    return ParseRole(role) is UserRole.Manager
