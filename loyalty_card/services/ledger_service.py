import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from loyalty_card.errors import (
    DiscountAlreadyUsed,
    DiscountExpired,
    DiscountNotFound,
    DiscountWrongCustomer,
    ValidationError,
)
from loyalty_card.models.customer import Customer
from loyalty_card.models.discount import Discount
from loyalty_card.models.point_adjustment import PointAdjustment
from loyalty_card.models.purchase import Purchase
from loyalty_card.services.concurrency import run_with_retry
from loyalty_card.services.identity_service import REGISTRATION_BONUS_POINTS, as_uuid, get_customer
from loyalty_card.time_utils import utcnow


logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
CURRENCY_UNITS_PER_POINT = Decimal(2)
DEFAULT_DISCOUNT_VALIDITY_DAYS = 30


def to_money(value) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def points_for_amount(amount) -> int:
    """1 point per 2 currency units, half rounded up (amounts are never negative)."""
    return int((to_money(amount) / CURRENCY_UNITS_PER_POINT).quantize(Decimal(1), rounding=ROUND_HALF_UP))


# ============================================================
# DISCOUNTS
# ============================================================
def _load_discount_for_use(db: Session, discount_id, customer_id, now: datetime) -> Discount:
    discount = db.query(Discount).filter(Discount.id == as_uuid(discount_id, DiscountNotFound)).first()
    if not discount:
        raise DiscountNotFound()
    if discount.is_used:
        raise DiscountAlreadyUsed()
    if discount.expiry_date < now:
        raise DiscountExpired()
    if discount.customer_id != customer_id:
        raise DiscountWrongCustomer("Discount belongs to another customer")
    return discount


def _consume_discount(db: Session, discount_id, now: datetime) -> None:
    # compare-and-swap: only one purchase can flip is_used
    result = db.execute(
        update(Discount)
        .where(Discount.id == discount_id, Discount.is_used.is_(False))
        .values(is_used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise DiscountAlreadyUsed()


def _as_expiry(value) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.max)
    raise ValidationError("expiry_date must be a date or datetime")


def issue_discount(
    db: Session,
    customer_id,
    amount,
    expiry_date=None,
    store_owner_id=None,
) -> Discount:
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("Discount amount must be positive")

    now = utcnow()
    if expiry_date is None:
        expires = now + timedelta(days=DEFAULT_DISCOUNT_VALIDITY_DAYS)
    else:
        expires = _as_expiry(expiry_date)
    if expires < now:
        raise ValidationError("expiry_date is in the past")

    def _issue():
        customer = get_customer(db, customer_id, store_owner_id)
        discount = Discount(customer_id=customer.id, amount=amount, expiry_date=expires, is_used=False)
        db.add(discount)
        db.commit()
        db.refresh(discount)
        return discount

    discount = run_with_retry(db, _issue, operation="issue discount")
    logger.info(
        "discount issued",
        extra={"customer_id": str(customer_id), "discount_id": str(discount.id), "amount": str(amount)},
    )
    return discount


def available_discounts(db: Session, customer_id, store_owner_id=None):
    customer = get_customer(db, customer_id, store_owner_id)
    return (
        db.query(Discount)
        .filter(Discount.customer_id == customer.id)
        .filter(Discount.is_used.is_(False))
        .filter(Discount.expiry_date >= utcnow())
        .order_by(Discount.created_at.desc())
        .all()
    )


# ============================================================
# RECORD PURCHASE
# ============================================================
def record_purchase(
    db: Session,
    customer_id,
    gross_amount,
    discount_id=None,
    store_owner_id=None,
) -> Purchase:
    """
    Append a purchase to the ledger and fold it into the customer's balances.

    The purchase row, the discount consumption and the balance increments are
    committed together or not at all. Balances are incremented in SQL
    (``points_balance = points_balance + n``) so concurrent purchases for the
    same customer never overwrite each other.
    """
    gross = to_money(gross_amount)
    if gross < 0:
        raise ValidationError("Purchase amount must not be negative")

    def _record():
        customer = get_customer(db, customer_id, store_owner_id)
        now = utcnow()

        discount_amount = None
        net = gross
        if discount_id is not None:
            discount = _load_discount_for_use(db, discount_id, customer.id, now)
            discount_amount = to_money(discount.amount)
            _consume_discount(db, discount.id, now)
            net = max(Decimal("0.00"), gross - discount_amount)

        points = points_for_amount(net)

        purchase = Purchase(
            customer_id=customer.id,
            amount=net,
            points_earned=points,
            discount_applied=discount_amount,
            created_at=now,
        )
        db.add(purchase)
        db.flush()

        db.execute(
            update(Customer)
            .where(Customer.id == customer.id)
            .values(
                points_balance=Customer.points_balance + points,
                total_spent=Customer.total_spent + net,
            )
            .execution_options(synchronize_session=False)
        )

        db.commit()
        db.refresh(purchase)
        return purchase

    purchase = run_with_retry(db, _record, operation="record purchase")

    logger.info(
        "purchase recorded",
        extra={
            "customer_id": str(purchase.customer_id),
            "purchase_id": str(purchase.id),
            "amount": str(purchase.amount),
            "points_earned": purchase.points_earned,
            "discount_applied": str(purchase.discount_applied) if purchase.discount_applied is not None else None,
        },
    )
    return purchase


def purchase_history(db: Session, customer_id, store_owner_id=None, limit: int = 100, offset: int = 0):
    customer = get_customer(db, customer_id, store_owner_id)

    limit = max(1, min(limit, 500))
    offset = max(0, offset)

    return (
        db.query(Purchase)
        .filter(Purchase.customer_id == customer.id)
        .order_by(Purchase.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


# ============================================================
# MANUAL ADJUSTMENTS
# ============================================================
def adjust_points(db: Session, customer_id, delta: int, reason: str | None = None, store_owner_id=None) -> Customer:
    if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
        raise ValidationError("delta must be a non-zero integer")

    def _adjust():
        customer = get_customer(db, customer_id, store_owner_id)
        target_id = customer.id
        # conditional increment: refuses to take the balance below zero
        result = db.execute(
            update(Customer)
            .where(Customer.id == target_id, Customer.points_balance + delta >= 0)
            .values(points_balance=Customer.points_balance + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ValidationError("Adjustment would make the points balance negative")

        db.add(PointAdjustment(customer_id=target_id, points=delta, reason=reason))
        db.commit()
        db.refresh(customer)
        return customer

    customer = run_with_retry(db, _adjust, operation="adjust points")
    logger.info(
        "points adjusted",
        extra={"customer_id": str(customer.id), "delta": delta, "points_balance": customer.points_balance},
    )
    return customer


def adjustment_history(db: Session, customer_id, store_owner_id=None):
    customer = get_customer(db, customer_id, store_owner_id)
    return (
        db.query(PointAdjustment)
        .filter(PointAdjustment.customer_id == customer.id)
        .order_by(PointAdjustment.created_at.desc())
        .all()
    )


# ============================================================
# AUDIT
# ============================================================
def audit_balance(db: Session, customer_id) -> dict:
    """Compare stored balances with what the ledger rows add up to."""
    customer = get_customer(db, customer_id)

    earned, spent = (
        db.query(
            func.coalesce(func.sum(Purchase.points_earned), 0),
            func.coalesce(func.sum(Purchase.amount), 0),
        )
        .filter(Purchase.customer_id == customer.id)
        .one()
    )
    adjusted = (
        db.query(func.coalesce(func.sum(PointAdjustment.points), 0))
        .filter(PointAdjustment.customer_id == customer.id)
        .scalar()
    )

    expected_points = REGISTRATION_BONUS_POINTS + int(earned or 0) + int(adjusted or 0)
    expected_spent = to_money(spent or 0)
    actual_spent = to_money(customer.total_spent)

    return {
        "customerId": str(customer.id),
        "pointsBalance": customer.points_balance,
        "expectedPointsBalance": expected_points,
        "totalSpent": actual_spent,
        "expectedTotalSpent": expected_spent,
        "consistent": customer.points_balance == expected_points and actual_spent == expected_spent,
    }
