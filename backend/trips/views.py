from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .models import Trip
from .serializers import TripSerializer, TripWriteSerializer
from .services import create_trip, update_trip, cancel_trip
from parcels.serializers import PackageSerializer

# Import from services layer
from services.matching import find_matching_packages
from services.exceptions import TripNotFoundError

HISTORY_LIMIT = 22


def _trips():
    return Trip.objects.select_related('traveller').prefetch_related('accepted_packages')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def trip_list(request):
    """
    GET: the caller's own trips (admins see every trip), optional ?status=
    POST: post a new trip
    """
    if request.method == 'POST':
        serializer = TripWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        trip = create_trip(request.user, serializer.validated_data)
        return Response({'trip': TripSerializer(trip).data}, status=status.HTTP_201_CREATED)

    trips = _trips()
    if request.user.role != 'admin':
        trips = trips.filter(traveller=request.user)
    if request.query_params.get('status'):
        trips = trips.filter(status=request.query_params['status'])

    return Response({'trips': TripSerializer(trips, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def trip_history(request):
    """The caller's most recent completed or cancelled trips"""
    trips = _trips().filter(
        traveller=request.user,
        status__in=[Trip.STATUS_COMPLETED, Trip.STATUS_CANCELLED],
    ).order_by('-created_at')[:HISTORY_LIMIT]

    return Response({'trips': TripSerializer(trips, many=True).data})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def trip_detail(request, trip_id):
    """
    GET: trip details
    PUT: partial update of an active trip (owner or admin)
    DELETE: cancel the trip (owner or admin)
    """
    if request.method == 'PUT':
        serializer = TripWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        trip = update_trip(request.user, trip_id, serializer.validated_data)
        return Response({'trip': TripSerializer(trip).data})

    if request.method == 'DELETE':
        cancel_trip(request.user, trip_id)
        return Response({'message': 'Trip cancelled'})

    trip = _trips().filter(pk=trip_id).first()
    if trip is None:
        raise TripNotFoundError()
    return Response({'trip': TripSerializer(trip).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def trip_matches(request, trip_id):
    """Ranked pending packages this trip could carry"""
    matches = find_matching_packages(trip_id)
    return Response({
        'matches': [
            {
                'package': PackageSerializer(match.package).data,
                'score': round(match.score, 2),
                'origin_distance_km': round(match.origin_distance_km, 2),
                'destination_distance_km': round(match.destination_distance_km, 2),
                'available_capacity': match.available_capacity,
                'city_match': match.city_match,
            }
            for match in matches
        ]
    })
