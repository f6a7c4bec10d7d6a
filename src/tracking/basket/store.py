"""Basket store port and its protean repository adapter.

The store is a keyed repository of Basket aggregates. ``find`` hands back a
detached copy: changes only reach the store through ``upsert``.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from tracking.basket.basket import Basket, BasketStatus
from tracking.exceptions import StoreUnavailable


class BasketStore(ABC):
    @abstractmethod
    def upsert(self, basket: Basket) -> None:
        """Insert ``basket`` or overwrite the stored basket with the same id."""
        ...

    @abstractmethod
    def find(self, basket_id: str) -> Basket | None:
        """Return the stored basket, or None if there is none."""
        ...

    @abstractmethod
    def delete(self, basket: Basket) -> None:
        """Remove ``basket`` from the store."""
        ...

    @abstractmethod
    def scan(
        self,
        statuses: Iterable[BasketStatus],
        predicate: Callable[[Basket], bool] | None = None,
    ) -> list[Basket]:
        """Return baskets in any of ``statuses`` that satisfy ``predicate``."""
        ...


class RepositoryBasketStore(BasketStore):
    """Basket store backed by the domain's Basket repository.

    Must be called inside an active ``tracking`` domain context. Any backend
    failure surfaces as StoreUnavailable.
    """

    def upsert(self, basket: Basket) -> None:
        try:
            current_domain.repository_for(Basket).add(basket)
        except Exception as exc:
            raise StoreUnavailable(f"Could not save basket {basket.basket_id}") from exc

    def find(self, basket_id: str) -> Basket | None:
        try:
            return current_domain.repository_for(Basket).get(basket_id)
        except ObjectNotFoundError:
            return None
        except Exception as exc:
            raise StoreUnavailable(f"Could not load basket {basket_id}") from exc

    def delete(self, basket: Basket) -> None:
        try:
            current_domain.repository_for(Basket)._dao.delete(basket)
        except Exception as exc:
            raise StoreUnavailable(f"Could not delete basket {basket.basket_id}") from exc

    def scan(self, statuses, predicate=None) -> list[Basket]:
        candidates = []
        try:
            repo = current_domain.repository_for(Basket)
            for status in statuses:
                candidates.extend(repo._dao.query.filter(status=status.value).all().items)
        except Exception as exc:
            raise StoreUnavailable("Could not scan baskets") from exc
        return [basket for basket in candidates if predicate is None or predicate(basket)]
