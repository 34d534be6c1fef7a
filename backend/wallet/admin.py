from django.contrib import admin
from .models import WalletTransaction


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    """Read-only view of the escrow ledger"""
    list_display = ['id', 'type', 'amount', 'status', 'sender', 'traveller', 'package', 'created_at']
    list_filter = ['type', 'status', 'created_at']
    search_fields = ['sender__username', 'traveller__username', 'package__code']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
