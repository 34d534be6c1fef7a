from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for custom User model"""

    list_display = [
        "username",
        "email",
        "role",
        "verified",
        "wallet_balance",
        "total_deliveries",
        "total_packages",
        "is_active",
    ]

    list_filter = [
        "role",
        "verified",
        "is_active",
        "date_joined",
    ]

    search_fields = [
        "username",
        "email",
        "phone_number",
    ]

    ordering = ("username",)

    # Wallet balance only moves through the escrow ledger
    readonly_fields = ("wallet_balance", "total_deliveries", "total_packages")

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Platform Info",
            {
                "fields": (
                    "role",
                    "phone_number",
                    "verified",
                    "rating",
                    "wallet_balance",
                    "total_deliveries",
                    "total_packages",
                )
            },
        ),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            "Additional Info",
            {
                "fields": (
                    "role",
                    "phone_number",
                )
            },
        ),
    )
