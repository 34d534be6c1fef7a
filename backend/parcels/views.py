from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .models import Package
from .serializers import (
    PackageSerializer,
    PackageWriteSerializer,
    TrackingPointSerializer,
    AcceptPackageSerializer,
    ProofSerializer,
    VerifyDeliverySerializer,
    DisputeSerializer,
    LocationUpdateSerializer,
)
from trips.serializers import TripSerializer

# Import from services layer
from services.matching import find_matching_trips
from services.package_lifecycle import (
    create_package,
    update_package,
    delete_package,
    accept_package,
    pickup_package,
    mark_in_transit,
    mark_delivered,
    confirm_delivery,
    raise_dispute,
    record_location,
    get_tracking_history,
)
from services.exceptions import PackageNotFoundError

HISTORY_LIMIT = 22


def _packages():
    return Package.objects.select_related('sender', 'traveller', 'trip')


def _package_response(result, status_code=status.HTTP_200_OK):
    body = {'package': PackageSerializer(result.package).data, 'message': result.message}
    if result.extra:
        body.update(result.extra)
    return Response(body, status=status_code)


# ==================== Sender Package APIs ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def package_list(request):
    """
    GET: the caller's own packages (admins see every package), optional ?status=
    POST: create a package
    """
    if request.method == 'POST':
        serializer = PackageWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = create_package(request.user, serializer.validated_data)
        return _package_response(result, status.HTTP_201_CREATED)

    packages = _packages()
    if request.user.role != 'admin':
        packages = packages.filter(sender=request.user)
    if request.query_params.get('status'):
        packages = packages.filter(status=request.query_params['status'])

    return Response({'packages': PackageSerializer(packages, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def package_history(request):
    """Most recent packages the caller sent or carried"""
    packages = _packages().filter(Q(sender=request.user) | Q(traveller=request.user))
    if request.query_params.get('status'):
        packages = packages.filter(status=request.query_params['status'])

    packages = packages.order_by('-created_at')[:HISTORY_LIMIT]
    return Response({'packages': PackageSerializer(packages, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_packages(request):
    """Pending, unassigned packages, optionally filtered by ?destination= (city or address)"""
    packages = _packages().filter(status=Package.STATUS_PENDING, traveller__isnull=True)

    destination = request.query_params.get('destination')
    if destination:
        packages = packages.filter(
            Q(destination_city__icontains=destination) | Q(destination_address__icontains=destination)
        )

    return Response({'packages': PackageSerializer(packages, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def package_by_code(request, code):
    package = _packages().filter(code=code.upper()).first()
    if package is None:
        raise PackageNotFoundError()
    return Response({'package': PackageSerializer(package).data})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def package_detail(request, package_id):
    """
    GET: package details
    PUT: replace the editable fields of a pending/expired package
    DELETE: delete a pending/expired package (held funds are refunded first)
    """
    if request.method == 'PUT':
        serializer = PackageWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = update_package(request.user, package_id, serializer.validated_data)
        return _package_response(result)

    if request.method == 'DELETE':
        result = delete_package(request.user, package_id)
        return Response({'message': result.message, **(result.extra or {})})

    package = _packages().filter(pk=package_id).first()
    if package is None:
        raise PackageNotFoundError()
    return Response({'package': PackageSerializer(package).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def package_matches(request, package_id):
    """Ranked trips that could carry this package"""
    matches = find_matching_trips(package_id)
    return Response({
        'matches': [
            {
                'trip': TripSerializer(match.trip).data,
                'score': round(match.score, 2),
                'origin_distance_km': round(match.origin_distance_km, 2),
                'destination_distance_km': round(match.destination_distance_km, 2),
                'available_capacity': match.available_capacity,
                'city_match': match.city_match,
            }
            for match in matches
        ]
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def verify_delivery(request, package_id):
    """Sender confirms delivery with the emailed OTP"""
    serializer = VerifyDeliverySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = confirm_delivery(request.user, package_id, serializer.validated_data['otp'])
    return _package_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def dispute_package(request, package_id):
    """Sender or assigned traveller raises a dispute"""
    serializer = DisputeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = raise_dispute(request.user, package_id, serializer.validated_data['reason'])
    return _package_response(result)


# ==================== Traveller Package Actions ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def accept(request, package_id):
    serializer = AcceptPackageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = accept_package(request.user, package_id, serializer.validated_data['trip_id'])
    return _package_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pickup(request, package_id):
    serializer = ProofSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = pickup_package(request.user, package_id, serializer.validated_data.get('proof'))
    return _package_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def in_transit(request, package_id):
    result = mark_in_transit(request.user, package_id)
    return _package_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deliver(request, package_id):
    """
    Traveller marks the package delivered.

    The package stays in its current status until the sender confirms the
    OTP emailed to them.
    """
    serializer = ProofSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = mark_delivered(request.user, package_id, serializer.validated_data.get('proof'))
    return _package_response(result)


# ==================== Tracking ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_location(request, package_id):
    serializer = LocationUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    points = record_location(
        request.user,
        package_id,
        serializer.validated_data['lat'],
        serializer.validated_data['lng'],
    )
    return Response({
        'message': 'Location updated',
        'tracking': TrackingPointSerializer(points, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tracking_history(request, package_id):
    points = get_tracking_history(package_id)
    return Response({'tracking': TrackingPointSerializer(points, many=True).data})
