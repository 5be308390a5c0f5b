"""Coach registry for route-based lookup."""

from domains.base import Domain


class DomainRegistry:
    """Central registry for all coach domains."""

    def __init__(self):
        self._by_name: dict[str, Domain] = {}  # route name → domain

    def register(self, domain: Domain) -> None:
        """Register a domain."""
        self._by_name[domain.name] = domain

    def get_by_name(self, name: str) -> Domain | None:
        """Get domain by route name."""
        return self._by_name.get(name)

    def all_domains(self) -> list[Domain]:
        """Get all registered domains."""
        return list(self._by_name.values())


# Global registry instance
registry = DomainRegistry()
