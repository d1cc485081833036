# storefront/cart.py
from fastapi import APIRouter, Depends, status

from .errors import NotFound
from .schemas import CartItem, CartReplace, CartSummary, QuantityUpdate
from .sessions import ShopperSession, get_shopper_session
from .state import CartState

router = APIRouter(prefix="/api/cart", tags=["cart"])


def summarize(cart: CartState) -> CartSummary:
    return CartSummary(items=cart.items, count=cart.count(), total=cart.get_total())


@router.get("", response_model=CartSummary)
async def get_cart(session: ShopperSession = Depends(get_shopper_session)):
    return summarize(session.cart)


@router.get("/count")
async def get_cart_count(session: ShopperSession = Depends(get_shopper_session)):
    return {"count": session.cart.count()}


# ➕ Same product twice -> one line with a bigger quantity
@router.post("/items", response_model=CartSummary, status_code=status.HTTP_201_CREATED)
async def add_to_cart(payload: CartItem, session: ShopperSession = Depends(get_shopper_session)):
    session.cart.add_to_cart(payload, quantity=payload.quantity)
    return summarize(session.cart)


@router.put("/items/{product_id}", response_model=CartSummary)
async def update_cart_item(
    product_id: str,
    payload: QuantityUpdate,
    session: ShopperSession = Depends(get_shopper_session),
):
    if not session.cart.contains(product_id):
        raise NotFound("Cart item not found")
    # quantity <= 0 drops the line
    session.cart.update_quantity(product_id, payload.quantity)
    return summarize(session.cart)


@router.delete("/items/{product_id}", response_model=CartSummary)
async def remove_cart_item(product_id: str, session: ShopperSession = Depends(get_shopper_session)):
    session.cart.remove_from_cart(product_id)
    return summarize(session.cart)


@router.delete("", response_model=CartSummary)
async def clear_cart(session: ShopperSession = Depends(get_shopper_session)):
    session.cart.clear_cart()
    return summarize(session.cart)


# 🔄 Replace with the copy the browser kept locally
@router.put("", response_model=CartSummary)
async def replace_cart(payload: CartReplace, session: ShopperSession = Depends(get_shopper_session)):
    session.cart.replace(payload.items)
    return summarize(session.cart)
