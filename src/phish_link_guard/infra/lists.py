"""User allow/deny domain lists."""

from __future__ import annotations

from typing import Iterable, Literal

ListMatchMode = Literal["substring", "suffix"]


def domains_match(entry: str, domain: str, mode: ListMatchMode = "substring") -> bool:
    """substring: either string contains the other. suffix: exact host or a subdomain of the entry."""

    entry = entry.strip().lower()
    domain = domain.strip().lower()
    if not entry or not domain:
        return False
    if mode == "suffix":
        return domain == entry or domain.endswith(f".{entry}")
    return entry in domain or domain in entry


class DomainListStore:
    def __init__(self, entries: Iterable[str] = (), *, mode: ListMatchMode = "substring") -> None:
        self.mode = mode
        self._entries: list[str] = []
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[str]:
        return list(self._entries)

    def add(self, domain: str) -> bool:
        normalized = (domain or "").strip().lower()
        if not normalized or normalized in self._entries:
            return False
        self._entries.append(normalized)
        return True

    def remove(self, domain: str) -> bool:
        normalized = (domain or "").strip().lower()
        if normalized not in self._entries:
            return False
        self._entries.remove(normalized)
        return True

    def matching(self, domain: str) -> list[str]:
        return [entry for entry in self._entries if domains_match(entry, domain, self.mode)]

    def contains(self, domain: str) -> bool:
        return bool(self.matching(domain))
