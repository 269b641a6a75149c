import logging
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from core.config import settings
from core.errors import ValidationFailed
from models.order import Order
from models.wallet import Wallet, WalletTransaction, CashbackConfig

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def get_or_create_wallet(db: Session, user_id: str) -> Wallet:
    wallet = db.query(Wallet).filter(Wallet.user_id == user_id).one_or_none()
    if not wallet:
        wallet = Wallet(user_id=user_id, balance=Decimal("0"))
        db.add(wallet)
        db.flush()
    return wallet


def get_cashback_config(db: Session) -> CashbackConfig:
    config = db.query(CashbackConfig).filter(CashbackConfig.type == "global").one_or_none()
    if not config:
        config = CashbackConfig(
            type="global",
            percentage=Decimal(str(settings.DEFAULT_CASHBACK_PERCENTAGE)),
            is_active=True,
        )
        db.add(config)
        db.flush()
    return config


def debit(db: Session, user_id: str, amount: Decimal, description: str, order_id: str | None = None) -> Wallet:
    """Take ``amount`` from the user's wallet. Does not commit."""
    wallet = get_or_create_wallet(db, user_id)
    if Decimal(str(wallet.balance)) < amount:
        raise ValidationFailed(
            "Cashback used exceeds wallet balance",
            details=[{"path": "cashbackUsed", "message": f"Available balance is {wallet.balance}"}],
        )
    wallet.balance = Decimal(str(wallet.balance)) - amount
    db.add(WalletTransaction(wallet_id=wallet.id, type="debit", amount=amount, description=description, order_id=order_id))
    return wallet


def credit(db: Session, user_id: str, amount: Decimal, description: str, order_id: str | None = None) -> Wallet:
    wallet = get_or_create_wallet(db, user_id)
    wallet.balance = Decimal(str(wallet.balance)) + amount
    db.add(WalletTransaction(wallet_id=wallet.id, type="credit", amount=amount, description=description, order_id=order_id))
    return wallet


def credit_order_cashback(db: Session, order: Order) -> Decimal:
    """
    Credit delivery cashback for ``order`` to the customer's wallet, once.

    The amount is the active global percentage of the item total. Returns the
    amount credited (zero when inactive or already credited). Does not commit.
    """
    if order.cashback_credited is not None:
        return Decimal("0")
    config = get_cashback_config(db)
    if not config.is_active:
        order.cashback_credited = Decimal("0")
        return Decimal("0")
    amount = (Decimal(str(order.item_total)) * Decimal(str(config.percentage)) / 100).quantize(CENTS, ROUND_HALF_UP)
    if amount > 0:
        credit(db, order.customer_id, amount, f"Cashback for order #{order.order_number}", order.id)
    order.cashback_credited = amount
    logger.info("Credited cashback %s for order %s", amount, order.order_number)
    return amount
