# ==========================================
# apps/social/models.py
# ==========================================

from django.db import models
from django.utils import timezone
import uuid


class FriendshipStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACCEPTED = 'accepted', 'Accepted'
    BLOCKED = 'blocked', 'Blocked'


class Friendship(models.Model):
    """Friend request / friendship between two users. One row per unordered pair."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    requester = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='sent_friend_requests')
    recipient = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='received_friend_requests')
    status = models.CharField(max_length=10, choices=FriendshipStatus.choices, default=FriendshipStatus.PENDING)
    # Sorted "<id>:<id>" of both users, so A->B and B->A collide
    pair_key = models.CharField(max_length=73, unique=True, editable=False)
    accepted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'friendships'
        indexes = [
            models.Index(fields=['recipient', 'status']),
            models.Index(fields=['requester', 'status']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.requester} -> {self.recipient} ({self.status})"

    @staticmethod
    def make_pair_key(user_a_id, user_b_id):
        return ':'.join(sorted([str(user_a_id), str(user_b_id)]))

    def save(self, *args, **kwargs):
        self.pair_key = self.make_pair_key(self.requester_id, self.recipient_id)
        if self.status == FriendshipStatus.ACCEPTED and self.accepted_at is None:
            self.accepted_at = timezone.now()
        super().save(*args, **kwargs)

    def other_user(self, user):
        return self.recipient if self.requester_id == user.id else self.requester


class PourCheer(models.Model):
    """A user's "cheers" on someone's pour."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    pour = models.ForeignKey('pours.Pour', on_delete=models.CASCADE, related_name='cheers')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='pour_cheers')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'pour_cheers'
        unique_together = [['pour', 'user']]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} cheered {self.pour_id}"
