"""Session-scoped cart and wishlist state containers.

Both containers are plain in-memory objects owned by one shopper session.
They are mutated only through their methods, and every mutation that
changes the contents synchronously calls the subscribed listeners before
the method returns, so anything derived from the state (totals, badges)
can be refreshed in the same step.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from .schemas import CENT, CartItem, WishlistItem, normalize_product_id


ProductId = Union[int, str]
Listener = Callable[[Any], None]


class Observable:
    """Minimal synchronous publish/subscribe helper."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        # copy: a listener may unsubscribe itself while being called
        for listener in list(self._listeners):
            listener(self)


class CartState(Observable):
    """Ordered collection of cart lines, one line per product."""

    def __init__(self, items: Optional[Iterable[Union[CartItem, Mapping[str, Any]]]] = None) -> None:
        super().__init__()
        self._items: Dict[str, CartItem] = {}
        for item in items or ():
            line = _as_cart_item(item)
            self._items[line.product_id] = line

    # queries

    @property
    def items(self) -> List[CartItem]:
        return [item.model_copy() for item in self._items.values()]

    def get(self, product_id: ProductId) -> Optional[CartItem]:
        item = self._items.get(normalize_product_id(product_id))
        return item.model_copy() if item is not None else None

    def contains(self, product_id: ProductId) -> bool:
        return normalize_product_id(product_id) in self._items

    def count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    def get_total(self) -> Decimal:
        total = sum((item.line_total for item in self._items.values()), Decimal("0"))
        return total.quantize(CENT)

    def snapshot(self) -> List[Dict[str, Any]]:
        return [item.model_dump(mode="json") for item in self._items.values()]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CartItem]:
        return iter(self.items)

    def __contains__(self, product_id: object) -> bool:
        return isinstance(product_id, (int, str)) and self.contains(product_id)

    # mutations

    def add_to_cart(self, product: Union[CartItem, Mapping[str, Any]], quantity: int = 1) -> CartItem:
        """Add ``quantity`` units of ``product``.

        An existing line keeps its stored name and price and only has its
        quantity increased.  Amounts below 1 count as 1.
        """
        amount = max(int(quantity), 1)
        line = _as_cart_item(product)
        existing = self._items.get(line.product_id)
        if existing is not None:
            existing.quantity += amount
        else:
            existing = line.model_copy(update={"quantity": amount})
            self._items[line.product_id] = existing
        self._notify()
        return existing.model_copy()

    def remove_from_cart(self, product_id: ProductId) -> bool:
        if self._items.pop(normalize_product_id(product_id), None) is None:
            return False
        self._notify()
        return True

    def update_quantity(self, product_id: ProductId, quantity: int) -> Optional[CartItem]:
        """Set a line's quantity; zero or less removes the line.

        Returns the updated line, or None when the line is gone (or was
        never there).
        """
        key = normalize_product_id(product_id)
        item = self._items.get(key)
        if item is None:
            return None
        if quantity <= 0:
            del self._items[key]
            self._notify()
            return None
        if item.quantity != quantity:
            item.quantity = int(quantity)
            self._notify()
        return item.model_copy()

    def clear_cart(self) -> None:
        if not self._items:
            return
        self._items.clear()
        self._notify()

    def deduct(self, items: Iterable[Union[CartItem, Mapping[str, Any]]]) -> None:
        """Take ordered quantities out of the cart.

        Lines that drop to zero are removed; anything added since the order
        was taken stays.
        """
        changed = False
        for item in items:
            line = _as_cart_item(item)
            existing = self._items.get(line.product_id)
            if existing is None:
                continue
            changed = True
            if existing.quantity <= line.quantity:
                del self._items[line.product_id]
            else:
                existing.quantity -= line.quantity
        if changed:
            self._notify()

    def replace(self, items: Iterable[Union[CartItem, Mapping[str, Any]]]) -> None:
        """Swap the whole contents, e.g. with a copy the browser kept locally.

        Lines with a repeated product id are merged by adding quantities.
        """
        merged: Dict[str, CartItem] = {}
        for item in items:
            line = _as_cart_item(item)
            if line.product_id in merged:
                merged[line.product_id].quantity += line.quantity
            else:
                merged[line.product_id] = line.model_copy()
        self._items = merged
        self._notify()


class WishlistState(Observable):
    """Set of saved products keyed by product id."""

    def __init__(self, items: Optional[Iterable[Union[WishlistItem, Mapping[str, Any]]]] = None) -> None:
        super().__init__()
        self._items: Dict[str, WishlistItem] = {}
        for item in items or ():
            entry = _as_wishlist_item(item)
            self._items[entry.product_id] = entry

    @property
    def items(self) -> List[WishlistItem]:
        return [item.model_copy() for item in self._items.values()]

    def is_in_wishlist(self, product_id: ProductId) -> bool:
        return normalize_product_id(product_id) in self._items

    def snapshot(self) -> List[Dict[str, Any]]:
        return [item.model_dump(mode="json") for item in self._items.values()]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[WishlistItem]:
        return iter(self.items)

    def __contains__(self, product_id: object) -> bool:
        return isinstance(product_id, (int, str)) and self.is_in_wishlist(product_id)

    def add_to_wishlist(self, product: Union[ProductId, WishlistItem, Mapping[str, Any]]) -> bool:
        entry = _as_wishlist_item(product)
        if entry.product_id in self._items:
            return False
        self._items[entry.product_id] = entry
        self._notify()
        return True

    def remove_from_wishlist(self, product_id: ProductId) -> bool:
        if self._items.pop(normalize_product_id(product_id), None) is None:
            return False
        self._notify()
        return True

    def toggle_wishlist(self, product: Union[ProductId, WishlistItem, Mapping[str, Any]]) -> bool:
        """Add the product if absent, remove it if present.

        Returns whether the product is in the wishlist afterwards.
        """
        entry = _as_wishlist_item(product)
        if entry.product_id in self._items:
            self.remove_from_wishlist(entry.product_id)
            return False
        self.add_to_wishlist(entry)
        return True

    def clear(self) -> None:
        if not self._items:
            return
        self._items.clear()
        self._notify()


def _as_cart_item(product: Union[CartItem, Mapping[str, Any]]) -> CartItem:
    if isinstance(product, CartItem):
        return product.model_copy()
    return CartItem.model_validate(dict(product))


def _as_wishlist_item(product: Union[ProductId, WishlistItem, Mapping[str, Any]]) -> WishlistItem:
    if isinstance(product, WishlistItem):
        return product.model_copy()
    if isinstance(product, (int, str)):
        return WishlistItem(product_id=product)
    return WishlistItem.model_validate(dict(product))
