# ==========================================
# apps/bottles/models.py
# ==========================================

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid
import re


class SpiritCategory(models.TextChoices):
    BOURBON = 'Bourbon', 'Bourbon'
    RYE = 'Rye', 'Rye'
    SCOTCH = 'Scotch', 'Scotch'
    IRISH = 'Irish', 'Irish'
    JAPANESE = 'Japanese', 'Japanese'
    AMERICAN = 'American Whiskey', 'American Whiskey'
    CANADIAN = 'Canadian Whisky', 'Canadian Whisky'
    TENNESSEE = 'Tennessee Whiskey', 'Tennessee Whiskey'
    RUM = 'Rum', 'Rum'
    TEQUILA = 'Tequila', 'Tequila'
    MEZCAL = 'Mezcal', 'Mezcal'
    BRANDY = 'Brandy', 'Brandy'
    COGNAC = 'Cognac', 'Cognac'
    GIN = 'Gin', 'Gin'
    VODKA = 'Vodka', 'Vodka'
    LIQUEUR = 'Liqueur', 'Liqueur'
    OTHER = 'Other', 'Other'


class BottleStatus(models.TextChoices):
    UNOPENED = 'unopened', 'Unopened'
    OPENED = 'opened', 'Opened'
    FINISHED = 'finished', 'Finished'


class FillLevelReason(models.TextChoices):
    EVAPORATION = 'evaporation', "Evaporation (Angel's Share)"
    SHARED = 'shared', 'Shared off-site'
    CORRECTION = 'correction', 'Correction'
    OTHER = 'other', 'Other'


def bottle_volume_oz():
    """Volume of a standard bottle in ounces."""
    return Decimal(str(settings.BOTTLE_VOLUME_OZ))


class MasterBottle(models.Model):
    """Shared catalogue entry for a bottling."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, db_index=True)
    brand = models.CharField(max_length=200, db_index=True)
    distillery = models.CharField(max_length=200, db_index=True)
    name_normalized = models.CharField(max_length=200, db_index=True, editable=False)
    distillery_normalized = models.CharField(max_length=200, db_index=True, editable=False)
    region = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=50, choices=SpiritCategory.choices, default=SpiritCategory.BOURBON)
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    proof = models.DecimalField(
        max_digits=5, decimal_places=1, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('200'))],
    )
    msrp = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))])
    description = models.TextField(blank=True, max_length=2000)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey('accounts.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_bottles')

    class Meta:
        db_table = 'master_bottles'
        unique_together = [['name_normalized', 'distillery_normalized']]
        indexes = [
            models.Index(fields=['name']),
            models.Index(fields=['brand']),
            models.Index(fields=['category']),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.distillery} - {self.name}"

    def save(self, *args, **kwargs):
        self.name_normalized = self._normalize_string(self.name)
        self.distillery_normalized = self._normalize_string(self.distillery)
        super().save(*args, **kwargs)

    @staticmethod
    def _normalize_string(text):
        text = text.lower().strip()
        text = re.sub(r'\s+', ' ', text)
        text = re.sub(r'[^\w\s-]', '', text)
        return text


class UserBottle(models.Model):
    """A physical bottle in one user's collection."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='bottles')
    master_bottle = models.ForeignKey(MasterBottle, on_delete=models.PROTECT, related_name='user_bottles')

    # Purchase
    purchase_date = models.DateField(null=True, blank=True)
    purchase_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))])
    quantity = models.PositiveSmallIntegerField(default=1)

    # Storage & labels
    location_area = models.CharField(max_length=100, blank=True)
    location_bin = models.CharField(max_length=100, blank=True)
    barcode = models.CharField(max_length=100, blank=True)
    vault_barcode = models.CharField(max_length=100, blank=True, db_index=True)
    last_label_printed_at = models.DateTimeField(null=True, blank=True)

    # Consumption
    status = models.CharField(max_length=10, choices=BottleStatus.choices, default=BottleStatus.UNOPENED)
    open_date = models.DateTimeField(null=True, blank=True)
    fill_level = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('100.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
    )
    total_pours = models.PositiveIntegerField(default=0)
    average_rating = models.DecimalField(max_digits=3, decimal_places=1, null=True, blank=True)
    last_pour_date = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user_bottles'
        indexes = [
            models.Index(fields=['user', 'status']),
            models.Index(fields=['user', 'created_at']),
            models.Index(fields=['user', 'last_label_printed_at']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.get_display_name()} - {self.master_bottle.name}"

    def save(self, *args, **kwargs):
        self.apply_status_rules()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'status', 'updated_at'}
        super().save(*args, **kwargs)

    def apply_status_rules(self):
        """An open date opens the bottle; an empty bottle is finished."""
        if self.open_date and self.status == BottleStatus.UNOPENED:
            self.status = BottleStatus.OPENED
        if self.fill_level <= 0 or self.quantity == 0:
            self.status = BottleStatus.FINISHED

    def consume(self, amount):
        """Lower the fill level by ``amount`` ounces."""
        drop = Decimal(str(amount)) / bottle_volume_oz() * 100
        self.fill_level = max(Decimal('0'), (self.fill_level - drop).quantize(Decimal('0.01')))

    def restore(self, amount):
        """Undo ``consume`` for a deleted pour."""
        gain = Decimal(str(amount)) / bottle_volume_oz() * 100
        self.fill_level = min(Decimal('100'), (self.fill_level + gain).quantize(Decimal('0.01')))
        if self.status == BottleStatus.FINISHED and self.fill_level > 0 and self.quantity > 0:
            self.status = BottleStatus.OPENED

    def update_pour_stats(self):
        """Recompute total pours, average rating and last pour date from the pours table."""
        from django.db.models import Avg, Count, Max

        aggregates = self.pours.aggregate(
            count=Count('id'),
            avg=Avg('rating'),
            last=Max('poured_at'),
        )
        self.total_pours = aggregates['count']
        self.average_rating = (
            Decimal(str(aggregates['avg'])).quantize(Decimal('0.1'))
            if aggregates['avg'] is not None else None
        )
        self.last_pour_date = aggregates['last']
