"""
Wallet ledger operations.

Balance arithmetic is kept in the pure functions :func:`credit` and
:func:`debit`, which take the current balance and return a
:class:`LedgerEntry` describing the new balance and the audit row to
write.  The service functions below persist that entry: the wallet row is
locked, updated and the matching :class:`Transaction` is appended inside a
single ``transaction.atomic`` block, so a balance never changes without
its ledger record.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from django.db import transaction
from django.db.models import Count, Sum

from backoffice.exceptions import InsufficientFunds, InvalidArgument, NotFound
from backoffice.models import Patient, Transaction, Wallet
from backoffice.services.pagination import paginate, Page

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
RECENT_TRANSACTIONS = 10


@dataclass(frozen=True)
class LedgerEntry:
    type: str
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal


def to_money(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument(f'invalid amount: {value!r}')
    if not amount.is_finite():
        raise InvalidArgument(f'invalid amount: {value!r}')
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _positive(amount) -> Decimal:
    amount = to_money(amount)
    if amount <= 0:
        raise InvalidArgument('Amount must be greater than 0')
    return amount


def credit(balance, amount) -> LedgerEntry:
    amount = _positive(amount)
    before = to_money(balance)
    return LedgerEntry(Transaction.TYPE_CREDIT, amount, before, before + amount)


def debit(balance, amount) -> LedgerEntry:
    amount = _positive(amount)
    before = to_money(balance)
    if before < amount:
        raise InsufficientFunds('Insufficient funds')
    return LedgerEntry(Transaction.TYPE_DEBIT, amount, before, before - amount)


def create_wallet(patient: Patient) -> Wallet:
    return Wallet.objects.create(patient=patient, balance=Decimal('0.00'))


def get_wallet(patient_id, *, for_update: bool = False) -> Wallet:
    if not Patient.objects.filter(id=patient_id).exists():
        raise NotFound('Patient not found')
    qs = Wallet.objects.select_for_update() if for_update else Wallet.objects.select_related('patient')
    wallet = qs.filter(patient_id=patient_id).first()
    if not wallet:
        raise NotFound('Wallet not found')
    return wallet


def _apply(wallet: Wallet, entry: LedgerEntry, description: str, reference_id=None) -> Transaction:
    wallet.balance = entry.balance_after
    wallet.save(update_fields=['balance', 'updated_at'])
    return Transaction.objects.create(
        wallet=wallet,
        type=entry.type,
        amount=entry.amount,
        description=description,
        reference_id=reference_id,
        balance_before=entry.balance_before,
        balance_after=entry.balance_after,
    )


def add_funds(patient_id, amount) -> Transaction:
    amount = _positive(amount)
    with transaction.atomic():
        wallet = get_wallet(patient_id, for_update=True)
        entry = credit(wallet.balance, amount)
        txn = _apply(wallet, entry, 'Funds added to wallet')
    logger.info('wallet %s credited %s (%s -> %s)', wallet.id, entry.amount, entry.balance_before, entry.balance_after)
    return txn


def charge(patient_id, amount, description: str, reference_id=None) -> Transaction:
    amount = _positive(amount)
    description = (description or '').strip()
    if not description:
        raise InvalidArgument('description is required')
    if reference_id is not None:
        try:
            reference_id = uuid.UUID(str(reference_id))
        except ValueError:
            raise InvalidArgument(f'invalid reference id: {reference_id!r}')
    with transaction.atomic():
        wallet = get_wallet(patient_id, for_update=True)
        try:
            entry = debit(wallet.balance, amount)
        except InsufficientFunds:
            logger.warning('wallet %s charge of %s rejected, balance %s', wallet.id, amount, wallet.balance)
            raise
        txn = _apply(wallet, entry, description, reference_id)
    logger.info('wallet %s debited %s (%s -> %s)', wallet.id, entry.amount, entry.balance_before, entry.balance_after)
    return txn


def get_balance(patient_id) -> Wallet:
    return get_wallet(patient_id)


def get_history(patient_id, *, type: Optional[str] = None, page: int = 1, limit: int = 10):
    wallet = get_wallet(patient_id)
    qs = Transaction.objects.filter(wallet=wallet)
    if type:
        if type not in dict(Transaction.TYPE_CHOICES):
            raise InvalidArgument(f'unknown transaction type: {type}')
        qs = qs.filter(type=type)
    return wallet, paginate(qs.order_by('-created_at', '-id'), page, limit)


def get_summary(patient_id) -> dict:
    wallet = get_wallet(patient_id)
    qs = Transaction.objects.filter(wallet=wallet)
    totals = {row['type']: row for row in qs.values('type').annotate(total=Sum('amount'), n=Count('id'))}
    zero = Decimal('0.00')
    return {
        'wallet': wallet,
        'total_credits': to_money(totals.get(Transaction.TYPE_CREDIT, {}).get('total') or zero),
        'total_debits': to_money(totals.get(Transaction.TYPE_DEBIT, {}).get('total') or zero),
        'total_transactions': sum(row['n'] for row in totals.values()),
        'recent_transactions': list(qs.order_by('-created_at', '-id')[:RECENT_TRANSACTIONS]),
    }
