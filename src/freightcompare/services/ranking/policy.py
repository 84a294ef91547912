"""Tied-up / available classification strategies."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import Quote


def _normalize_name(name: str) -> str:
    return name.strip().lower()


class ClassificationPolicy(Protocol):
    def collapse(self, quotes: Sequence[Quote]) -> list[Quote]:
        """Drop quotes this policy never shows, before classification."""
        ...

    def is_tied_up(self, quote: Quote) -> bool:
        ...


class DefaultClassificationPolicy:
    """Trust the contract flag each source put on the quote."""

    def collapse(self, quotes: Sequence[Quote]) -> list[Quote]:
        return list(quotes)

    def is_tied_up(self, quote: Quote) -> bool:
        return quote.is_tied_up


class AllowListClassificationPolicy:
    """Only the listed vendor names are tied-up; everything else is available."""

    def __init__(self, vendor_names: Iterable[str]) -> None:
        self.vendor_names = frozenset(_normalize_name(name) for name in vendor_names)

    def collapse(self, quotes: Sequence[Quote]) -> list[Quote]:
        return list(quotes)

    def is_tied_up(self, quote: Quote) -> bool:
        return _normalize_name(quote.company_name) in self.vendor_names


class AvailableOnlyPolicy:
    """Wrap ``inner`` so the named vendors always land in the available list.

    Each named vendor keeps only its cheapest quote, whichever vendor record
    or source produced it.
    """

    def __init__(self, inner: ClassificationPolicy, vendor_names: Iterable[str]) -> None:
        self.inner = inner
        self.vendor_names = frozenset(_normalize_name(name) for name in vendor_names)

    def collapse(self, quotes: Sequence[Quote]) -> list[Quote]:
        cheapest: dict[str, Quote] = {}
        others: list[Quote] = []
        for quote in quotes:
            name = _normalize_name(quote.company_name)
            if name not in self.vendor_names:
                others.append(quote)
                continue
            current = cheapest.get(name)
            if current is None or (quote.total_charges, quote.vendor_key, quote.source_tag) < (
                current.total_charges,
                current.vendor_key,
                current.source_tag,
            ):
                cheapest[name] = quote
        return [*self.inner.collapse(others), *cheapest.values()]

    def is_tied_up(self, quote: Quote) -> bool:
        if _normalize_name(quote.company_name) in self.vendor_names:
            return False
        return self.inner.is_tied_up(quote)


def resolve_policy(customer_email: Optional[str] = None) -> ClassificationPolicy:
    """Build the classification policy for one request."""
    policy: ClassificationPolicy = DefaultClassificationPolicy()
    if customer_email:
        allow_list = settings.tied_up_allow_lists.get(customer_email.strip().lower())
        if allow_list:
            policy = AllowListClassificationPolicy(allow_list)
    if settings.available_only_vendors:
        policy = AvailableOnlyPolicy(policy, settings.available_only_vendors)
    return policy
