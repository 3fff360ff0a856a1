"""
Enums for Storeman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ApprovalStatus(models.TextChoices):
    """Approval lifecycle shared by every movement document."""
    PENDING = 'PENDING', _('Pending')
    APPROVED = 'APPROVED', _('Approved')
    REJECTED = 'REJECTED', _('Rejected')


class MoveKind(models.TextChoices):
    """
    What caused a ledger move.

    RECEIVE:  Goods received (request receive, fuel receive)
    ISSUE:    Spare or fuel issued out of stock
    TRANSFER: One leg of a balance transfer between NAC codes
    ADJUST:   Stock-take correction or bootstrap
    REVERSAL: Inverse of an earlier move (delete, reject, revert)
    RETURN:   Borrowed goods handed back to their source
    """
    RECEIVE = 'receive', _('Receive')
    ISSUE = 'issue', _('Issue')
    TRANSFER = 'transfer', _('Transfer')
    ADJUST = 'adjust', _('Adjustment')
    REVERSAL = 'reversal', _('Reversal')
    RETURN = 'return', _('Borrow return')


class ReceiveSource(models.TextChoices):
    """Origin of a ReceiveDetail row."""
    REQUEST = 'request', _('Request')
    DIRECT = 'direct', _('Direct')
    FUEL = 'fuel', _('Fuel')
    TRANSFER = 'transfer', _('Balance transfer')
    BORROW = 'borrow', _('Borrow')


class BorrowStatus(models.TextChoices):
    """Borrowed goods are ACTIVE until handed back."""
    ACTIVE = 'ACTIVE', _('Active')
    RETURNED = 'RETURNED', _('Returned')


class IssueSource(models.TextChoices):
    """Origin of an IssueDetail row."""
    SPARE = 'spare', _('Spare')
    FUEL = 'fuel', _('Fuel')
    TRANSFER = 'transfer', _('Balance transfer')


class FuelType(models.TextChoices):
    DIESEL = 'diesel', _('Diesel')
    PETROL = 'petrol', _('Petrol')


class RRPType(models.TextChoices):
    """Local RRPs are numbered L###, foreign ones F###."""
    LOCAL = 'local', _('Local')
    FOREIGN = 'foreign', _('Foreign')
