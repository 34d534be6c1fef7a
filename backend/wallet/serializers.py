from rest_framework import serializers

from .models import WalletTransaction


class WalletTransactionSerializer(serializers.ModelSerializer):
    package_code = serializers.CharField(source='package.code', read_only=True, default=None)

    class Meta:
        model = WalletTransaction
        fields = ['id', 'package', 'package_code', 'sender', 'traveller', 'amount',
                  'type', 'status', 'description', 'created_at', 'completed_at']
        read_only_fields = fields


class TopUpSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class PackageReferenceSerializer(serializers.Serializer):
    package_id = serializers.IntegerField()
