"""
Storeman Admin — read-only views for production debugging.

Balances only change through the Stock service, so ledger and movement
admins are read-only:
- StockItem: descriptive fields editable, balances read-only
- StockMove: immutable audit trail
- IssueDetail: read-only with "approve" action
- ReceiveDetail / FuelRecord / RRPRecord: read-only
- BalanceTransfer: read-only with "revert" action
- DocumentSequence: read-only
- StockRequest / ConfigEntry: editable (current fiscal year lives here)
- UnitConversion / BorrowSource: editable lookup tables
"""

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from storeman.exceptions import StockError
from storeman.models import (
    ApprovalStatus,
    BalanceTransfer,
    BorrowSource,
    ConfigEntry,
    DocumentSequence,
    FuelRecord,
    IssueDetail,
    ReceiveDetail,
    RRPRecord,
    StockItem,
    StockMove,
    StockRequest,
    UnitConversion,
)

logger = logging.getLogger('storeman')


class ReadOnlyAdmin(admin.ModelAdmin):
    """No add/change/delete from the admin."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# STOCK ITEM ADMIN
# =========================================================================

@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    """StockItem admin — descriptive fields editable, balances read-only."""

    list_display = ['nac_code', 'item_name', 'current_balance', 'open_quantity', 'unit', 'location']
    search_fields = ['nac_code', 'item_name', 'part_numbers']
    readonly_fields = ['current_balance', 'open_quantity', 'open_remaining_quantity',
                       'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# STOCK MOVE ADMIN (read-only audit trail)
# =========================================================================

@admin.register(StockMove)
class StockMoveAdmin(ReadOnlyAdmin):
    """StockMove admin — immutable audit trail."""

    list_display = ['timestamp', 'stock_item', 'kind', 'delta', 'balance_after', 'reason', 'user']
    list_filter = ['kind', 'timestamp']
    search_fields = ['stock_item__nac_code', 'reason']
    readonly_fields = ['stock_item', 'delta', 'balance_after', 'kind', 'reference_type',
                       'reference_id', 'reason', 'metadata', 'timestamp', 'user']
    date_hierarchy = 'timestamp'


# =========================================================================
# REQUEST ADMIN
# =========================================================================

@admin.register(StockRequest)
class StockRequestAdmin(admin.ModelAdmin):
    list_display = ['request_number', 'request_date', 'nac_code', 'requested_quantity',
                    'approval_status', 'is_received', 'is_closed']
    list_filter = ['approval_status', 'is_received', 'is_closed']
    search_fields = ['request_number', 'nac_code', 'item_name']
    readonly_fields = ['is_received', 'created_at', 'updated_at']
    date_hierarchy = 'request_date'


# =========================================================================
# MOVEMENT ADMINS
# =========================================================================

@admin.register(IssueDetail)
class IssueDetailAdmin(ReadOnlyAdmin):
    """IssueDetail admin — read-only with approve action."""

    list_display = ['issue_slip_number', 'issue_date', 'stock_item', 'issue_quantity',
                    'remaining_balance', 'issue_cost', 'issued_for', 'source', 'approval_status']
    list_filter = ['approval_status', 'source', 'fiscal_year']
    search_fields = ['issue_slip_number', 'stock_item__nac_code', 'issued_for']
    date_hierarchy = 'issue_date'
    actions = ['approve_issues']

    @admin.action(description=_('Approve selected issues'))
    def approve_issues(self, request, queryset):
        from storeman import stock

        pending = list(queryset.filter(approval_status=ApprovalStatus.PENDING).values_list('pk', flat=True))
        try:
            stock.approve_issues(pending, approved_by=request.user.get_username())
        except StockError as exc:
            logger.warning("approve_issues: %s", exc)
            self.message_user(request, exc.message, level=messages.ERROR)
            return

        self.message_user(request, _('{count} issue(s) approved.').format(count=len(pending)))


@admin.register(ReceiveDetail)
class ReceiveDetailAdmin(ReadOnlyAdmin):
    list_display = ['id', 'receive_date', 'stock_item', 'received_quantity', 'remaining_quantity',
                    'transferred_quantity', 'source', 'borrow_status', 'approval_status']
    list_filter = ['approval_status', 'source', 'borrow_status']
    search_fields = ['stock_item__nac_code', 'item_name', 'part_number']
    date_hierarchy = 'receive_date'


@admin.register(FuelRecord)
class FuelRecordAdmin(ReadOnlyAdmin):
    list_display = ['id', 'fuel_type', 'issue', 'kilometers', 'fuel_price', 'week_number',
                    'fiscal_year', 'approval_status']
    list_filter = ['fuel_type', 'approval_status', 'fiscal_year']


@admin.register(RRPRecord)
class RRPRecordAdmin(ReadOnlyAdmin):
    list_display = ['rrp_number', 'rrp_date', 'supplier_name', 'receive', 'total_amount',
                    'fiscal_year', 'approval_status']
    list_filter = ['approval_status', 'rrp_type', 'fiscal_year']
    search_fields = ['rrp_number', 'supplier_name', 'invoice_number']


@admin.register(BalanceTransfer)
class BalanceTransferAdmin(ReadOnlyAdmin):
    """BalanceTransfer admin — read-only with revert action."""

    list_display = ['slip_number', 'transfer_date', 'from_item', 'to_item', 'quantity',
                    'transfer_cost', 'transferred_by']
    search_fields = ['slip_number', 'from_item__nac_code', 'to_item__nac_code']
    actions = ['revert_transfers']

    @admin.action(description=_('Revert selected transfers'))
    def revert_transfers(self, request, queryset):
        from storeman import stock

        count = 0
        for transfer_id in queryset.values_list('pk', flat=True):
            try:
                stock.revert_transfer(transfer_id)
                count += 1
            except StockError as exc:
                logger.warning("revert_transfers: failed to revert %s: %s", transfer_id, exc)
                self.message_user(request, f"#{transfer_id}: {exc.message}", level=messages.WARNING)

        self.message_user(request, _('{count} transfer(s) reverted.').format(count=count))


# =========================================================================
# CONFIG
# =========================================================================

@admin.register(DocumentSequence)
class DocumentSequenceAdmin(ReadOnlyAdmin):
    list_display = ['name', 'key', 'anchor_date', 'current_value', 'updated_at']
    list_filter = ['name']


@admin.register(ConfigEntry)
class ConfigEntryAdmin(admin.ModelAdmin):
    list_display = ['config_type', 'config_name', 'config_value', 'updated_at']
    list_filter = ['config_type']
    search_fields = ['config_name']


@admin.register(UnitConversion)
class UnitConversionAdmin(admin.ModelAdmin):
    list_display = ['nac_code', 'requested_unit', 'received_unit', 'conversion_base', 'updated_at']
    search_fields = ['nac_code']


@admin.register(BorrowSource)
class BorrowSourceAdmin(admin.ModelAdmin):
    list_display = ['source_name', 'source_code', 'contact_person', 'contact_phone', 'is_active']
    list_filter = ['is_active']
    search_fields = ['source_name', 'source_code']
