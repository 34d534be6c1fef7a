from django.contrib import admin
from .models import Package, TrackingPoint


class TrackingPointInline(admin.TabularInline):
    model = TrackingPoint
    extra = 0
    readonly_fields = ['lat', 'lng', 'timestamp']


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    """Admin panel for Packages. Status and payment fields move only through the services layer."""
    list_display = ['code', 'sender', 'traveller', 'origin_city', 'destination_city',
                    'fee', 'payment_status', 'status', 'created_at']
    list_filter = ['status', 'payment_status', 'payer', 'created_at']
    search_fields = ['code', 'sender__username', 'traveller__username',
                     'origin_city', 'destination_city', 'receiver_name']
    readonly_fields = ['code', 'status', 'payment_status', 'traveller', 'trip',
                       'delivery_otp', 'delivery_otp_expires_at', 'created_at',
                       'accepted_at', 'picked_up_at', 'delivered_at']
    inlines = [TrackingPointInline]
    date_hierarchy = 'created_at'
