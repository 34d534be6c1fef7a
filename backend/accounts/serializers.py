from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "phone_number",
            "verified",
            "rating",
            "total_deliveries",
            "total_packages",
        ]
        read_only_fields = fields


class UserBasicSerializer(serializers.ModelSerializer):
    """
    Lite version of user info embedded in package/trip payloads.
    """
    class Meta:
        model = User
        fields = ["id", "username", "email", "phone_number", "rating"]
        read_only_fields = fields
