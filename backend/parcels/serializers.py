from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from .models import Package, TrackingPoint


class LocationSerializer(serializers.Serializer):
    """A ``{city, address, lat, lng}`` place."""
    city = serializers.CharField(max_length=120)
    address = serializers.CharField(max_length=255)
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class PackageSerializer(serializers.ModelSerializer):
    """Serializer for Packages. The delivery OTP is never exposed."""
    sender = UserBasicSerializer(read_only=True)
    traveller = UserBasicSerializer(read_only=True)
    origin = serializers.SerializerMethodField()
    destination = serializers.SerializerMethodField()

    class Meta:
        model = Package
        fields = ['id', 'code', 'sender', 'traveller', 'trip', 'origin', 'destination',
                  'receiver_name', 'receiver_phone', 'description', 'photos',
                  'fee', 'payer', 'payment_status', 'status',
                  'pickup_proof', 'delivery_proof', 'dispute_reason',
                  'created_at', 'accepted_at', 'picked_up_at', 'delivered_at']
        read_only_fields = fields

    def get_origin(self, obj):
        return obj.origin._asdict()

    def get_destination(self, obj):
        return obj.destination._asdict()


class PackageWriteSerializer(serializers.Serializer):
    """Serializer for creating or replacing a package"""
    origin = LocationSerializer()
    destination = LocationSerializer()
    receiver_name = serializers.CharField(max_length=120)
    receiver_phone = serializers.CharField(max_length=20)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    photos = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    fee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    payer = serializers.ChoiceField(choices=Package.PAYER_CHOICES)


class TrackingPointSerializer(serializers.ModelSerializer):
    class Meta:
        model = TrackingPoint
        fields = ['lat', 'lng', 'timestamp']
        read_only_fields = fields


class AcceptPackageSerializer(serializers.Serializer):
    trip_id = serializers.IntegerField()


class ProofSerializer(serializers.Serializer):
    """Optional pickup/delivery proof reference"""
    proof = serializers.CharField(required=False, allow_blank=True, max_length=255)


class VerifyDeliverySerializer(serializers.Serializer):
    otp = serializers.CharField(max_length=6)


class DisputeSerializer(serializers.Serializer):
    reason = serializers.CharField()


class LocationUpdateSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
