"""
Seller onboarding endpoints.

Flow:
  1. seller-registration  → code emailed, nothing stored yet
  2. verify-seller-otp    → seller created, session token issued
  3. create-shop          → one shop per seller
  4. setup-payment / skip-payment-setup → payment linked or explicitly skipped
"""

import logging

import bcrypt
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth_api.db.database import get_db
from auth_api.models.seller import Seller, Shop
from auth_api.routers.errors import current_seller_id, otp_http_error, parse_uuid, verify_webhook_secret
from auth_api.schemas import (
    CreateShop,
    PaymentProvider,
    PaymentWebhook,
    SellerRegistration,
    SetupPayment,
    SkipPayment,
    VerifySellerOtp,
)
from auth_api.services.notifications import send_otp_email
from auth_api.services.otp import REGISTRATION, OtpError, generate_otp, verify_otp
from auth_api.services.payments import build_redirect_url, is_hosted
from auth_api.services.sessions import create_session

router = APIRouter()
logger = logging.getLogger(__name__)


async def _seller_by_email(db: AsyncSession, email: str) -> Seller | None:
    result = await db.execute(select(Seller).where(Seller.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def _get_seller(db: AsyncSession, seller_id: str) -> Seller:
    result = await db.execute(select(Seller).where(Seller.id == parse_uuid(seller_id, "Seller")))
    seller = result.scalar_one_or_none()
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    return seller


async def _owned_seller(db: AsyncSession, seller_id: str, token_seller_id: str) -> Seller:
    if seller_id != token_seller_id:
        raise HTTPException(status_code=403, detail="You can only manage your own account")
    return await _get_seller(db, seller_id)


def _seller_payload(seller: Seller) -> dict:
    return {
        "id": str(seller.id),
        "name": seller.name,
        "email": seller.email,
        "phone": seller.phone,
        "city": seller.city,
        "country": seller.country,
        "sellerType": seller.seller_type,
    }


# ── Registration ───────────────────────────────────────────

@router.post("/seller-registration")
async def seller_registration(
    data: SellerRegistration,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """Send (or resend) the registration code. No account is created here."""
    if await _seller_by_email(db, data.email):
        raise HTTPException(status_code=409, detail="Seller with this email already exists")

    try:
        otp = await generate_otp(data.email, REGISTRATION)
    except OtpError as e:
        raise otp_http_error(e)

    background_tasks.add_task(send_otp_email, data.email, otp, REGISTRATION)
    return {"success": True, "message": "OTP sent to your email", "email": data.email}


@router.post("/verify-seller-otp", status_code=201)
async def verify_seller_otp(data: VerifySellerOtp, db: AsyncSession = Depends(get_db)):
    """Check the code, then create the seller and open a session."""
    if await _seller_by_email(db, data.email):
        raise HTTPException(status_code=409, detail="Seller with this email already exists")

    try:
        await verify_otp(data.email, REGISTRATION, data.otp)
    except OtpError as e:
        raise otp_http_error(e)

    seller = Seller(
        name=data.name,
        email=data.email.strip().lower(),
        password_hash=bcrypt.hashpw(data.password.encode(), bcrypt.gensalt()).decode(),
        phone=data.phone,
        country=data.country,
        region=data.region,
        city=data.city,
        seller_type=data.seller_type,
        business_registration=data.business_registration,
        years_in_business=data.years_in_business,
        portfolio_link=data.portfolio_link,
    )
    db.add(seller)
    await db.commit()
    await db.refresh(seller)

    token = await create_session(str(seller.id))
    logger.info("Seller created: seller_id=%s email=%s", seller.id, seller.email)
    return {
        "success": True,
        "message": "Seller registered successfully",
        "seller": _seller_payload(seller),
        "token": token,
    }


# ── Shop ───────────────────────────────────────────────────

@router.post("/create-shop", status_code=201)
async def create_shop(data: CreateShop, db: AsyncSession = Depends(get_db)):
    seller = await _get_seller(db, data.seller_id)

    existing = (await db.execute(select(Shop).where(Shop.seller_id == seller.id))).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=409,
            detail={"message": "Shop already exists for this seller", "data": {"shopId": str(existing.id)}},
        )

    shop = Shop(
        seller_id=seller.id,
        name=data.name,
        bio=data.bio,
        category=data.category,
        address=data.address.model_dump(by_alias=True),
        opening_hours=[h.model_dump(by_alias=True) for h in data.opening_hours],
        shop_type=data.shop_type.value,
        website=data.website,
        social_links=[s.model_dump() for s in data.social_links],
        return_policy=data.return_policy,
        shipping_policy=data.shipping_policy,
    )
    db.add(shop)
    await db.commit()
    await db.refresh(shop)

    logger.info("Shop created: seller_id=%s shop_id=%s", seller.id, shop.id)
    return {
        "success": True,
        "message": "Shop created successfully",
        "shop": {"id": str(shop.id), "name": shop.name, "sellerId": str(seller.id)},
    }


# ── Payment ────────────────────────────────────────────────

def _require_shop(seller: Seller, shop_id: str) -> None:
    if not seller.shop or str(seller.shop.id) != shop_id:
        raise HTTPException(status_code=404, detail="Shop not found for this seller")


@router.post("/setup-payment")
async def setup_payment(
    data: SetupPayment,
    token_seller_id: str = Depends(current_seller_id),
    db: AsyncSession = Depends(get_db),
):
    seller = await _owned_seller(db, data.seller_id, token_seller_id)
    _require_shop(seller, data.shop_id)

    seller.payment_provider = data.provider.value
    seller.payment_skipped = False

    if data.provider == PaymentProvider.MANUAL:
        if data.bank_details is None:
            raise HTTPException(status_code=400, detail="Bank details are required for manual payments")
        seller.bank_details = data.bank_details.model_dump(by_alias=True)
        seller.is_payment_setup = True
        await db.commit()
        logger.info("Manual payment linked: seller_id=%s", seller.id)
        return {"success": True, "message": "Payment details saved"}

    seller.is_payment_setup = False
    await db.commit()
    redirect_url = build_redirect_url(data.provider.value, data.seller_id, data.shop_id)
    logger.info("Hosted payment started: seller_id=%s provider=%s", seller.id, data.provider.value)
    return {"success": True, "message": "Continue with your payment provider", "redirectUrl": redirect_url}


@router.post("/skip-payment-setup")
async def skip_payment_setup(
    data: SkipPayment,
    token_seller_id: str = Depends(current_seller_id),
    db: AsyncSession = Depends(get_db),
):
    seller = await _owned_seller(db, data.seller_id, token_seller_id)
    _require_shop(seller, data.shop_id)

    seller.payment_skipped = True
    await db.commit()
    logger.info("Payment setup skipped: seller_id=%s", seller.id)
    return {"success": True, "message": "You can set up payments later from your dashboard"}


@router.get("/seller/{seller_id}/payment-status")
async def payment_status(
    seller_id: str,
    token_seller_id: str = Depends(current_seller_id),
    db: AsyncSession = Depends(get_db),
):
    seller = await _owned_seller(db, seller_id, token_seller_id)
    return {
        "success": True,
        "message": "Payment status",
        "data": {
            "isPaymentSetup": seller.is_payment_setup,
            "provider": seller.payment_provider,
            "skipped": seller.payment_skipped,
        },
    }


@router.post("/payment-webhook/{provider}", dependencies=[Depends(verify_webhook_secret)])
async def payment_webhook(provider: str, data: PaymentWebhook, db: AsyncSession = Depends(get_db)):
    """Called by a hosted provider once the seller finished connecting their account."""
    if not is_hosted(provider):
        raise HTTPException(status_code=404, detail="Unknown payment provider")

    seller = await _get_seller(db, data.seller_id)
    if seller.payment_provider != provider:
        raise HTTPException(status_code=409, detail="Seller is not onboarding with this provider")

    if data.status.lower() in ("successful", "success", "completed"):
        seller.is_payment_setup = True
        await db.commit()
        logger.info("Hosted payment completed: seller_id=%s provider=%s", seller.id, provider)
    else:
        logger.warning("Hosted payment not completed: seller_id=%s status=%s", seller.id, data.status)
    return {"success": True, "message": "Webhook processed"}
