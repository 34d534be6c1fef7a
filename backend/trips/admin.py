from django.contrib import admin
from trips.models import Trip


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    """Admin panel for managing Trips"""

    list_display = [
        "id",
        "traveller",
        "origin_city",
        "destination_city",
        "departure_date",
        "capacity",
        "accepted_count",
        "status",
    ]

    list_filter = [
        "status",
        "departure_date",
    ]

    search_fields = [
        "traveller__username",
        "origin_city",
        "destination_city",
    ]

    readonly_fields = [
        "accepted_count",
        "created_at",
    ]

    date_hierarchy = "departure_date"
