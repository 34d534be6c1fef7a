from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from common.api import IsPlatformAdmin
from .serializers import WalletTransactionSerializer, TopUpSerializer, PackageReferenceSerializer

# Import from services layer
from services.escrow import (
    top_up,
    hold_funds,
    release_funds,
    refund_funds,
    get_balance,
    recent_transactions,
)

TRANSACTION_LIMIT = 50


def _escrow_response(result):
    return Response({
        'message': result.message,
        'balance': result.balance,
        'transaction': WalletTransactionSerializer(result.ledger_entry).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def topup(request):
    serializer = TopUpSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    return _escrow_response(top_up(request.user, serializer.validated_data['amount']))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def hold(request):
    """Sender moves the package fee from their wallet into escrow"""
    serializer = PackageReferenceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    return _escrow_response(hold_funds(request.user, serializer.validated_data['package_id']))


@api_view(['POST'])
@permission_classes([IsPlatformAdmin])
def release(request):
    """Admin pays held funds out to the traveller (e.g. after a dispute)"""
    serializer = PackageReferenceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    return _escrow_response(release_funds(serializer.validated_data['package_id']))


@api_view(['POST'])
@permission_classes([IsPlatformAdmin])
def refund(request):
    """Admin returns held funds to the sender"""
    serializer = PackageReferenceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    return _escrow_response(refund_funds(serializer.validated_data['package_id']))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def balance(request):
    return Response({'balance': get_balance(request.user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transactions(request):
    entries = recent_transactions(request.user, limit=TRANSACTION_LIMIT)
    return Response({'transactions': WalletTransactionSerializer(entries, many=True).data})
