import logging
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction

from backoffice.exceptions import InvalidArgument, NotFound
from backoffice.models import Medication
from backoffice.services.pagination import paginate, Page
from backoffice.services.wallets import to_money

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'stock_quantity', 'unit_price', 'description')


def _whole(value, minimum: int, message: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidArgument(message)
    return value


def _check_stock(value) -> int:
    return _whole(value, 0, 'stock quantity must be an integer >= 0')


def _check_price(value) -> Decimal:
    price = to_money(value)
    if price < 0:
        raise InvalidArgument('unit price must be >= 0')
    return price


def get_medication(medication_id, *, for_update: bool = False) -> Medication:
    qs = Medication.objects.select_for_update() if for_update else Medication.objects
    medication = qs.filter(id=medication_id).first()
    if not medication:
        raise NotFound('Medication not found')
    return medication


def find_by_name(name: str, *, for_update: bool = False) -> Optional[Medication]:
    """Exact-name lookup used by prescriptions; oldest record wins on duplicates."""
    qs = Medication.objects.select_for_update() if for_update else Medication.objects
    return qs.filter(name=name).order_by('created_at', 'id').first()


def create_medication(*, name: str, stock_quantity: int = 0, unit_price=0, description: Optional[str] = None) -> Medication:
    return Medication.objects.create(
        name=name,
        stock_quantity=_check_stock(stock_quantity),
        unit_price=_check_price(unit_price),
        description=description,
    )


def list_medications(*, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    qs = Medication.objects.all()
    if search:
        qs = qs.filter(name__icontains=search)
    return paginate(qs.order_by('name', 'id'), page, limit)


def update_medication(medication_id, **fields) -> Medication:
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
    if 'stock_quantity' in changes:
        changes['stock_quantity'] = _check_stock(changes['stock_quantity'])
    if 'unit_price' in changes:
        changes['unit_price'] = _check_price(changes['unit_price'])
    with transaction.atomic():
        medication = get_medication(medication_id, for_update=True)
        for field, value in changes.items():
            setattr(medication, field, value)
        medication.save()
    return medication


def set_stock(medication_id, quantity) -> Medication:
    quantity = _check_stock(quantity)
    with transaction.atomic():
        medication = get_medication(medication_id, for_update=True)
        medication.stock_quantity = quantity
        medication.save(update_fields=['stock_quantity', 'updated_at'])
    logger.info('medication %s stock set to %s', medication.id, quantity)
    return medication


def restock(medication_id, quantity) -> dict:
    """Add ``quantity`` units to a medication's stock.

    Returns the previous and new stock levels.  Non-positive quantities
    are rejected before the row is touched.
    """
    quantity = _whole(quantity, 1, 'Quantity must be greater than 0')
    with transaction.atomic():
        medication = get_medication(medication_id, for_update=True)
        previous = medication.stock_quantity
        medication.stock_quantity = previous + quantity
        medication.save(update_fields=['stock_quantity', 'updated_at'])
    logger.info('medication %s restocked %s -> %s', medication.id, previous, medication.stock_quantity)
    return {
        'medication': medication,
        'previous_stock': previous,
        'new_stock': medication.stock_quantity,
        'added_quantity': quantity,
    }


def list_low_stock(*, threshold: Optional[int] = None, page: int = 1, limit: int = 10) -> Page:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    qs = Medication.objects.filter(stock_quantity__lt=threshold).order_by('stock_quantity', 'name')
    return paginate(qs, page, limit)


def delete_medication(medication_id) -> None:
    # prescriptions reference medications by name only, nothing to guard
    medication = get_medication(medication_id)
    medication.delete()
    logger.info('medication deleted id=%s', medication_id)
