# storefront/wishlist.py
from fastapi import APIRouter, Depends, status

from .schemas import WishlistItem, WishlistSummary
from .sessions import ShopperSession, get_shopper_session
from .state import WishlistState

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


def summarize(wishlist: WishlistState) -> WishlistSummary:
    return WishlistSummary(items=wishlist.items, count=len(wishlist))


@router.get("", response_model=WishlistSummary)
async def get_wishlist(session: ShopperSession = Depends(get_shopper_session)):
    return summarize(session.wishlist)


@router.get("/items/{product_id}")
async def is_in_wishlist(product_id: str, session: ShopperSession = Depends(get_shopper_session)):
    return {"product_id": product_id, "in_wishlist": session.wishlist.is_in_wishlist(product_id)}


@router.post("/items", response_model=WishlistSummary, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(payload: WishlistItem, session: ShopperSession = Depends(get_shopper_session)):
    session.wishlist.add_to_wishlist(payload)
    return summarize(session.wishlist)


@router.delete("/items/{product_id}", response_model=WishlistSummary)
async def remove_from_wishlist(product_id: str, session: ShopperSession = Depends(get_shopper_session)):
    session.wishlist.remove_from_wishlist(product_id)
    return summarize(session.wishlist)


@router.post("/toggle")
async def toggle_wishlist(payload: WishlistItem, session: ShopperSession = Depends(get_shopper_session)):
    in_wishlist = session.wishlist.toggle_wishlist(payload)
    summary = summarize(session.wishlist)
    return {"in_wishlist": in_wishlist, **summary.model_dump(mode="json")}
