"""
Directory Domain Models
Snapshot of the Staffbase user directory keyed by visible store identifier.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """A directory user that carries a store identifier."""

    platform_user_id: str
    visible_store_id: str
    external_id: str | None
    display_name: str

    @classmethod
    def from_user(cls, user: dict, attribute_key: str) -> "DirectoryEntry | None":
        """Build an entry from a Staffbase user record, or None without a store id."""
        store_id = (user.get("profile") or {}).get(attribute_key)
        if store_id is None or str(store_id).strip() == "":
            return None

        name = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
        return cls(
            platform_user_id=user["id"],
            visible_store_id=str(store_id).strip(),
            external_id=user.get("externalId"),
            display_name=name,
        )


@dataclass(frozen=True, slots=True)
class DirectorySnapshot:
    """
    Point-in-time mapping of store id -> entry.

    Built fully before being published; never mutated afterwards.
    """

    entries: dict[str, DirectoryEntry] = field(default_factory=dict)
    built_at: float = 0.0
    complete: bool = True

    def get(self, store_id: str) -> DirectoryEntry | None:
        return self.entries.get(str(store_id).strip())

    def __len__(self) -> int:
        return len(self.entries)
