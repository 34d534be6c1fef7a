"""
Escrow wallet ledger.

Every operation runs in a single transaction: the wallet balance change,
the package payment status change and the ledger row either all commit or
none of them do.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from accounts.models import User
from notifications.services import notify
from parcels.models import Package
from wallet.models import WalletTransaction
from services.exceptions import (
    AuthorizationError,
    InsufficientFundsError,
    NoTravellerAssignedError,
    PackageNotFoundError,
    PaymentStateError,
    UserNotFoundError,
)
from services.validation import parse_amount

logger = logging.getLogger(__name__)


@dataclass
class EscrowResult:
    """Result object for escrow operations."""
    success: bool
    ledger_entry: Optional[WalletTransaction] = None
    balance: Optional[Decimal] = None
    message: str = ""


# ===================== Helpers =====================

def _lock_user(user_id) -> User:
    try:
        return User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError()


def _lock_package(package_id) -> Package:
    try:
        return Package.objects.select_for_update().get(pk=package_id)
    except (Package.DoesNotExist, ValueError, TypeError):
        raise PackageNotFoundError()


def _credit(user_id, amount: Decimal) -> Decimal:
    User.objects.filter(pk=user_id).update(wallet_balance=F("wallet_balance") + amount)
    return User.objects.values_list("wallet_balance", flat=True).get(pk=user_id)


def _set_payment_status(package: Package, expected: str, new_status: str) -> None:
    updated = Package.objects.filter(pk=package.pk, payment_status=expected).update(payment_status=new_status)
    if not updated:
        raise PaymentStateError()
    package.payment_status = new_status


def _record(package, sender_id, traveller_id, amount, entry_type, description) -> WalletTransaction:
    return WalletTransaction.objects.create(
        package=package,
        sender_id=sender_id,
        traveller_id=traveller_id,
        amount=amount,
        type=entry_type,
        status=WalletTransaction.STATUS_COMPLETED,
        description=description,
        completed_at=timezone.now(),
    )


# ===================== Ledger Operations =====================

@transaction.atomic
def top_up(user: User, amount) -> EscrowResult:
    """
    Credit a user's wallet.

    Args:
        user: Wallet owner
        amount: Positive amount to add

    Returns:
        EscrowResult with the new balance
    """
    amount = parse_amount(amount, "Amount", allow_zero=False)

    _lock_user(user.id)
    balance = _credit(user.id, amount)
    entry = _record(
        None, user.id, None, amount,
        WalletTransaction.TYPE_TOPUP,
        f"Wallet top-up of Rs {amount}",
    )
    user.wallet_balance = balance
    logger.info("User %s topped up %s (balance %s)", user.id, amount, balance)

    return EscrowResult(success=True, ledger_entry=entry, balance=balance, message="Wallet topped up successfully")


@transaction.atomic
def hold_funds(actor: User, package_id) -> EscrowResult:
    """
    Debit the sender and hold the package fee on the platform.

    Only the sender of a sender-paid package can hold funds, only while the
    package is still active and its payment status is still pending.
    """
    package = _lock_package(package_id)

    if package.payer != Package.PAYER_SENDER or package.sender_id != actor.id:
        raise AuthorizationError("Invalid payer")
    if package.payment_status != Package.PAYMENT_PENDING:
        raise PaymentStateError("Funds already processed for this package")
    if package.status not in Package.ACTIVE_STATUSES:
        raise PaymentStateError(f"Cannot hold funds for a {package.status} package")

    payer = _lock_user(actor.id)
    if payer.wallet_balance < package.fee:
        raise InsufficientFundsError()

    debited = User.objects.filter(pk=payer.pk, wallet_balance__gte=package.fee).update(
        wallet_balance=F("wallet_balance") - package.fee
    )
    if not debited:
        raise InsufficientFundsError()

    _set_payment_status(package, Package.PAYMENT_PENDING, Package.PAYMENT_HELD)
    entry = _record(
        package, payer.id, None, package.fee,
        WalletTransaction.TYPE_HOLD,
        f"Held Rs {package.fee} for package {package.code}",
    )
    balance = User.objects.values_list("wallet_balance", flat=True).get(pk=payer.pk)
    actor.wallet_balance = balance
    logger.info("Held %s from user %s for package %s", package.fee, payer.id, package.code)

    return EscrowResult(success=True, ledger_entry=entry, balance=balance, message="Funds held successfully")


@transaction.atomic
def release_funds(package_id) -> EscrowResult:
    """
    Pay the held fee out to the assigned traveller.

    The original hold entry is annotated with the traveller it was paid to.
    """
    package = _lock_package(package_id)

    if package.payment_status != Package.PAYMENT_HELD:
        raise PaymentStateError()
    if package.traveller_id is None:
        raise NoTravellerAssignedError()

    _lock_user(package.traveller_id)
    _set_payment_status(package, Package.PAYMENT_HELD, Package.PAYMENT_RELEASED)
    balance = _credit(package.traveller_id, package.fee)

    WalletTransaction.objects.filter(
        package=package,
        type=WalletTransaction.TYPE_HOLD,
        traveller__isnull=True,
    ).update(traveller_id=package.traveller_id)

    entry = _record(
        package, package.sender_id, package.traveller_id, package.fee,
        WalletTransaction.TYPE_RELEASE,
        f"Released Rs {package.fee} to traveller for package {package.code}",
    )
    logger.info("Released %s to traveller %s for package %s", package.fee, package.traveller_id, package.code)

    notify(
        package.traveller_id,
        "Payment released",
        f"Rs {package.fee} for package {package.code} has been credited to your wallet.",
        "package_status",
        {"package_id": package.id, "code": package.code, "payment_status": package.payment_status},
    )

    return EscrowResult(success=True, ledger_entry=entry, balance=balance, message="Funds released successfully")


@transaction.atomic
def refund_funds(package_id) -> EscrowResult:
    """Return the held fee to the sender."""
    package = _lock_package(package_id)

    if package.payment_status != Package.PAYMENT_HELD:
        raise PaymentStateError()

    _lock_user(package.sender_id)
    _set_payment_status(package, Package.PAYMENT_HELD, Package.PAYMENT_REFUNDED)
    balance = _credit(package.sender_id, package.fee)

    entry = _record(
        package, package.sender_id, package.traveller_id, package.fee,
        WalletTransaction.TYPE_REFUND,
        f"Refunded Rs {package.fee} to sender for package {package.code}",
    )
    logger.info("Refunded %s to sender %s for package %s", package.fee, package.sender_id, package.code)

    return EscrowResult(success=True, ledger_entry=entry, balance=balance, message="Funds refunded successfully")


def get_balance(user: User) -> Decimal:
    return User.objects.values_list("wallet_balance", flat=True).get(pk=user.pk)


def recent_transactions(user: User, limit: int = 50):
    """Latest ledger entries where the user is the sender or the traveller."""
    return (
        WalletTransaction.objects
        .filter(Q(sender=user) | Q(traveller=user))
        .select_related("package")
        .order_by("-created_at", "-id")[:limit]
    )
