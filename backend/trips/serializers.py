from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from parcels.serializers import LocationSerializer
from .models import Trip


class TripSerializer(serializers.ModelSerializer):
    """Serializer for Trips"""
    traveller = UserBasicSerializer(read_only=True)
    origin = serializers.SerializerMethodField()
    destination = serializers.SerializerMethodField()
    available_capacity = serializers.IntegerField(read_only=True)
    accepted_packages = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Trip
        fields = ['id', 'traveller', 'origin', 'destination', 'departure_date',
                  'capacity', 'available_capacity', 'price', 'status',
                  'accepted_packages', 'created_at']
        read_only_fields = fields

    def get_origin(self, obj):
        return obj.origin._asdict()

    def get_destination(self, obj):
        return obj.destination._asdict()


class TripWriteSerializer(serializers.Serializer):
    """Serializer for creating or updating a trip"""
    origin = LocationSerializer()
    destination = LocationSerializer()
    departure_date = serializers.DateTimeField()
    capacity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
