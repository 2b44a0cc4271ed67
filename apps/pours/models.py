# ==========================================
# apps/pours/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class PourLocation(models.TextChoices):
    HOME = 'Home', 'Home'
    BAR = 'Bar', 'Bar'
    RESTAURANT = 'Restaurant', 'Restaurant'
    TASTING = 'Tasting', 'Tasting'
    FRIENDS_PLACE = "Friend's Place", "Friend's Place"
    EVENT = 'Event', 'Event'
    OTHER = 'Other', 'Other'


def default_session_name(started_at):
    return f"Session {started_at.strftime('%Y-%m-%d %H:%M')}"


class PourSession(models.Model):
    """
    A time-clustered group of one user's pours.

    ``ended_at`` is null while the session is open; a user has at most
    one open session.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='pour_sessions')
    name = models.CharField(max_length=200, blank=True)
    started_at = models.DateTimeField()
    last_pour_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)
    location = models.CharField(max_length=50, choices=PourLocation.choices, blank=True)
    notes = models.TextField(blank=True, max_length=1000)

    # Labels set on the session itself
    session_tags = models.JSONField(default=list, blank=True)
    session_companions = models.JSONField(default=list, blank=True)

    # Cached statistics
    tags = models.JSONField(default=list, blank=True)
    companions = models.JSONField(default=list, blank=True)
    total_pours = models.PositiveIntegerField(default=0)
    total_amount = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    total_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    average_rating = models.DecimalField(max_digits=3, decimal_places=1, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pour_sessions'
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=models.Q(ended_at__isnull=True),
                name='one_open_pour_session_per_user',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'started_at']),
            models.Index(fields=['user', 'ended_at']),
        ]
        ordering = ['-started_at']

    def __str__(self):
        return f"{self.user.get_display_name()} - {self.name or default_session_name(self.started_at)}"

    def save(self, *args, **kwargs):
        if not self.name and self.started_at:
            self.name = default_session_name(self.started_at)
        super().save(*args, **kwargs)

    @property
    def is_open(self):
        return self.ended_at is None

    def refresh_stats(self, save=True):
        """
        Recompute totals, average rating and the time bounds from the session's pours.

        ``tags`` and ``companions`` become the session's own labels followed
        by the union of its pours' labels, so labels of removed pours drop out.
        A closed session keeps ``ended_at`` on its last pour.
        """
        pours = list(self.pours.order_by('poured_at'))

        self.total_pours = len(pours)
        self.total_amount = sum((pour.amount for pour in pours), Decimal('0.00'))
        self.total_cost = sum((pour.cost_per_pour or Decimal('0') for pour in pours), Decimal('0.00'))

        ratings = [pour.rating for pour in pours if pour.rating is not None]
        self.average_rating = (
            (sum(ratings) / len(ratings)).quantize(Decimal('0.1')) if ratings else None
        )

        if pours:
            self.started_at = pours[0].poured_at
            self.last_pour_at = pours[-1].poured_at
            if self.ended_at is not None:
                self.ended_at = self.last_pour_at

        tags = list(self.session_tags or [])
        companions = list(self.session_companions or [])
        for pour in pours:
            tags.extend(tag for tag in pour.tags if tag not in tags)
            companions.extend(name for name in pour.companions if name not in companions)
        self.tags = tags
        self.companions = companions

        if save:
            self.save(update_fields=[
                'total_pours',
                'total_amount',
                'total_cost',
                'average_rating',
                'started_at',
                'last_pour_at',
                'ended_at',
                'tags',
                'companions',
                'updated_at',
            ])


class Pour(models.Model):
    """A single measured pour from a collection bottle."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='pours')
    user_bottle = models.ForeignKey('bottles.UserBottle', on_delete=models.CASCADE, related_name='pours')
    session = models.ForeignKey(PourSession, on_delete=models.SET_NULL, null=True, blank=True, related_name='pours')
    poured_at = models.DateTimeField(db_index=True)
    amount = models.DecimalField(
        max_digits=4, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.1')), MaxValueValidator(Decimal('10'))],
    )
    rating = models.DecimalField(
        max_digits=3, decimal_places=1, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('10'))],
    )
    notes = models.TextField(blank=True, max_length=1000)
    location = models.CharField(max_length=50, choices=PourLocation.choices, blank=True)
    tags = models.JSONField(default=list, blank=True)
    companions = models.JSONField(default=list, blank=True)
    cost_per_pour = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pours'
        indexes = [
            models.Index(fields=['user', 'poured_at']),
            models.Index(fields=['user_bottle', 'poured_at']),
            models.Index(fields=['session']),
        ]
        ordering = ['-poured_at']

    def __str__(self):
        return f"{self.user.get_display_name()} - {self.amount}oz @ {self.poured_at:%Y-%m-%d %H:%M}"
