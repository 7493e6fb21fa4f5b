"""Demo account catalog and credential lookup.

This is a client-side bypass for demos and development, not a security
mechanism. It never touches the backing store.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from src.domain.entities.profile import ProfileEntity

DEFAULT_DEMO_PASSWORD = "demo123"


@dataclass(frozen=True)
class DemoCatalog:
    entries: Mapping[str, ProfileEntity] = field(default_factory=dict)
    password: str = DEFAULT_DEMO_PASSWORD

    def __post_init__(self) -> None:
        # freeze the mapping so a shared catalog cannot be edited in place
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __contains__(self, email: object) -> bool:
        return email in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, email: str) -> ProfileEntity | None:
        return self.entries.get(email)


class DemoCredentialResolver:
    def __init__(self, catalog: DemoCatalog) -> None:
        self.catalog = catalog

    def is_sentinel(self, password: str) -> bool:
        return bool(self.catalog.password) and password == self.catalog.password

    def is_demo_email(self, email: str) -> bool:
        return email in self.catalog

    def resolve(self, email: str, password: str) -> ProfileEntity | None:
        if not self.is_sentinel(password):
            return None
        return self.catalog.get(email)
