"""Master bottle catalogue service."""

import logging

from django.db import transaction, IntegrityError
from django.db.models import Q, QuerySet
from django.contrib.auth import get_user_model
from decimal import Decimal
from uuid import UUID
from typing import Optional

from ..models import MasterBottle, SpiritCategory
from .exceptions import MasterBottleNotFoundError, DuplicateMasterBottleError

User = get_user_model()
logger = logging.getLogger(__name__)


def search_master_bottles(
    *,
    query: Optional[str] = None,
    category: Optional[str] = None,
    distillery: Optional[str] = None,
) -> QuerySet[MasterBottle]:
    """
    Search the active catalogue.

    Args:
        query: Matched against name, brand and distillery
        category: Exact category filter
        distillery: Distillery name contains

    Returns:
        QuerySet of MasterBottle ordered by name
    """
    queryset = MasterBottle.objects.filter(is_active=True)

    if query:
        queryset = queryset.filter(
            Q(name__icontains=query) |
            Q(brand__icontains=query) |
            Q(distillery__icontains=query)
        )

    if category:
        queryset = queryset.filter(category=category)

    if distillery:
        queryset = queryset.filter(distillery__icontains=distillery)

    return queryset.order_by('name')


def get_master_bottle(*, master_bottle_id: UUID) -> MasterBottle:
    """
    Raises:
        MasterBottleNotFoundError: If the bottle doesn't exist or is inactive
    """
    try:
        return MasterBottle.objects.get(id=master_bottle_id, is_active=True)
    except MasterBottle.DoesNotExist:
        raise MasterBottleNotFoundError("Bottle not found in catalogue")


@transaction.atomic
def create_master_bottle(
    *,
    name: str,
    distillery: str,
    created_by: User,
    brand: str = '',
    category: str = SpiritCategory.BOURBON,
    region: str = '',
    age: Optional[int] = None,
    proof: Optional[Decimal] = None,
    msrp: Optional[Decimal] = None,
    description: str = '',
) -> MasterBottle:
    """
    Add a bottling to the shared catalogue.

    Name and distillery are compared after normalization (case, whitespace
    and punctuation) so "Eagle Rare 10" and "eagle rare 10." collide.

    Raises:
        DuplicateMasterBottleError: If the bottling is already catalogued
    """
    normalized_name = MasterBottle._normalize_string(name)
    normalized_distillery = MasterBottle._normalize_string(distillery)

    if MasterBottle.objects.filter(
        name_normalized=normalized_name,
        distillery_normalized=normalized_distillery,
    ).exists():
        raise DuplicateMasterBottleError(f"'{name}' from '{distillery}' already exists")

    try:
        with transaction.atomic():
            bottle = MasterBottle.objects.create(
                name=name.strip(),
                brand=(brand or distillery).strip(),
                distillery=distillery.strip(),
                category=category,
                region=region,
                age=age,
                proof=proof,
                msrp=msrp,
                description=description,
                created_by=created_by,
            )
    except IntegrityError:
        raise DuplicateMasterBottleError(f"'{name}' from '{distillery}' already exists")

    logger.info("Catalogue bottle %s created by user %s", bottle.id, created_by.id)
    return bottle
