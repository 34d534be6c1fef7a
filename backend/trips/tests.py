from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from common.testing import BIRATNAGAR, KATHMANDU, LALITPUR, POKHARA, make_package, make_trip, make_user
from parcels.models import Package
from services.exceptions import (
	AuthorizationError,
	ConflictError,
	InvalidInputError,
	PackageNotFoundError,
	TripNotActiveError,
	TripNotFoundError,
	VerificationRequiredError,
)
from services.matching import find_matching_packages, find_matching_trips, match_score
from services.package_lifecycle import accept_package
from .models import Trip
from .services import cancel_trip, create_trip, update_trip


def trip_payload(**overrides):
	payload = {
		'origin': dict(KATHMANDU),
		'destination': dict(POKHARA),
		'departure_date': (timezone.now() + timedelta(days=1)).isoformat(),
		'capacity': 3,
		'price': '250',
	}
	payload.update(overrides)
	return payload


class MatchingTests(TestCase):
	def setUp(self):
		self.sender = make_user('sender')
		self.traveller = make_user('traveller')
		self.package = make_package(self.sender, origin=KATHMANDU, destination=POKHARA)

	def test_same_route_scores_city_bonus(self):
		trip = make_trip(self.traveller, capacity=2)

		matches = find_matching_trips(self.package.id)

		self.assertEqual(len(matches), 1)
		match = matches[0]
		self.assertEqual(match.trip, trip)
		self.assertTrue(match.city_match)
		self.assertEqual(match.origin_distance_km, 0)
		self.assertEqual(match.available_capacity, 2)
		self.assertEqual(match.score, 130)

	def test_nearby_origin_matches_by_radius(self):
		make_trip(self.traveller, origin=LALITPUR, capacity=1)

		match = find_matching_trips(self.package.id)[0]

		self.assertFalse(match.city_match)
		self.assertAlmostEqual(match.origin_distance_km, 5.9, delta=0.5)
		self.assertAlmostEqual(match.score, 100 - 2 * match.origin_distance_km + 5, places=6)

	def test_results_sorted_by_score(self):
		nearby = make_trip(self.traveller, origin=LALITPUR)
		exact = make_trip(self.traveller)
		make_trip(self.traveller, origin=BIRATNAGAR)

		matches = find_matching_trips(self.package.id)

		self.assertEqual([m.trip for m in matches], [exact, nearby])
		self.assertTrue(all(a.score >= b.score for a, b in zip(matches, matches[1:])))

	@override_settings(MATCHING_DISTANCE_THRESHOLD_KM=1)
	def test_radius_is_configurable(self):
		make_trip(self.traveller, origin=LALITPUR)
		self.assertEqual(find_matching_trips(self.package.id), [])

	def test_trip_filters(self):
		now = timezone.now()
		make_trip(self.traveller, departure_date=now + timedelta(days=5))
		make_trip(self.traveller, departure_date=now - timedelta(hours=1))
		make_trip(self.traveller, status=Trip.STATUS_CANCELLED)
		make_trip(self.traveller, capacity=1, accepted_count=1)
		make_trip(self.sender)

		self.assertEqual(find_matching_trips(self.package.id, now=now), [])

	def test_only_pending_packages_are_matched(self):
		trip = make_trip(self.traveller)
		accept_package(self.traveller, self.package.id, trip.id)

		self.assertEqual(find_matching_trips(self.package.id), [])

	def test_missing_package(self):
		with self.assertRaises(PackageNotFoundError):
			find_matching_trips(999999)

	def test_matching_packages_for_trip(self):
		trip = make_trip(self.traveller)
		make_package(self.sender, origin=BIRATNAGAR)
		make_package(self.traveller)

		matches = find_matching_packages(trip.id)

		self.assertEqual([m.package for m in matches], [self.package])
		self.assertEqual(matches[0].score, 130)

	def test_trip_beyond_window_has_no_matches(self):
		trip = make_trip(self.traveller, departure_date=timezone.now() + timedelta(days=4))
		self.assertEqual(find_matching_packages(trip.id), [])

	def test_inactive_or_full_trip_has_no_matches(self):
		cancelled = make_trip(self.traveller, status=Trip.STATUS_CANCELLED)
		full = make_trip(self.traveller, capacity=1, accepted_count=1)

		self.assertEqual(find_matching_packages(cancelled.id), [])
		self.assertEqual(find_matching_packages(full.id), [])

	def test_missing_trip(self):
		with self.assertRaises(TripNotFoundError):
			find_matching_packages(999999)

	def test_score_never_negative(self):
		self.assertEqual(match_score(60, 10, False, 0), 0)
		self.assertEqual(match_score(0, 0, True, 3), 135)


class TripServiceTests(TestCase):
	def setUp(self):
		self.traveller = make_user('traveller')
		self.sender = make_user('sender')

	def test_create_trip(self):
		trip = create_trip(self.traveller, trip_payload())

		self.assertEqual(trip.status, Trip.STATUS_ACTIVE)
		self.assertEqual(trip.capacity, 3)
		self.assertEqual(trip.accepted_count, 0)
		self.assertEqual(trip.origin.city, 'Kathmandu')
		self.assertTrue(timezone.is_aware(trip.departure_date))

	def test_create_trip_validation(self):
		for payload in (
			trip_payload(capacity=0),
			trip_payload(price='-1'),
			trip_payload(departure_date='tomorrow'),
			trip_payload(departure_date=None),
			trip_payload(origin={'city': 'Kathmandu'}),
		):
			with self.assertRaises(InvalidInputError):
				create_trip(self.traveller, payload)
		self.assertFalse(Trip.objects.exists())

	def test_unverified_traveller_cannot_post(self):
		with self.assertRaises(VerificationRequiredError):
			create_trip(make_user('newcomer', verified=False), trip_payload())

	def test_capacity_cannot_drop_below_accepted(self):
		trip = make_trip(self.traveller, capacity=3)
		for _ in range(2):
			accept_package(self.traveller, make_package(self.sender).id, trip.id)

		with self.assertRaises(ConflictError):
			update_trip(self.traveller, trip.id, {'capacity': 1})

		trip = update_trip(self.traveller, trip.id, {'capacity': 2, 'price': '400'})
		self.assertEqual(trip.capacity, 2)
		self.assertEqual(trip.available_capacity, 0)

	def test_update_keeps_unchanged_end(self):
		trip = make_trip(self.traveller)
		trip = update_trip(self.traveller, trip.id, {'destination': dict(BIRATNAGAR)})

		self.assertEqual(trip.origin_city, 'Kathmandu')
		self.assertEqual(trip.destination_city, 'Biratnagar')

	def test_only_owner_or_admin_can_change_trip(self):
		trip = make_trip(self.traveller)
		with self.assertRaises(AuthorizationError):
			update_trip(self.sender, trip.id, {'capacity': 5})

		admin = make_user('admin', role='admin')
		self.assertEqual(cancel_trip(admin, trip.id).status, Trip.STATUS_CANCELLED)

	def test_cancelled_trip_accepts_nothing(self):
		trip = make_trip(self.traveller)
		cancel_trip(self.traveller, trip.id)

		with self.assertRaises(TripNotActiveError):
			cancel_trip(self.traveller, trip.id)
		with self.assertRaises(TripNotActiveError):
			accept_package(self.traveller, make_package(self.sender).id, trip.id)
		with self.assertRaises(TripNotActiveError):
			update_trip(self.traveller, trip.id, {'capacity': 5})


class TripApiTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		self.traveller = make_user('traveller')
		self.sender = make_user('sender')
		self.client.force_authenticate(self.traveller)

	def test_create_list_and_cancel(self):
		response = self.client.post('/api/trips/', trip_payload(), format='json')
		self.assertEqual(response.status_code, 201)
		trip_id = response.data['trip']['id']
		self.assertEqual(response.data['trip']['available_capacity'], 3)

		response = self.client.get('/api/trips/')
		self.assertEqual([t['id'] for t in response.data['trips']], [trip_id])

		response = self.client.put(f'/api/trips/{trip_id}/', {'capacity': 4}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['trip']['capacity'], 4)

		response = self.client.delete(f'/api/trips/{trip_id}/')
		self.assertEqual(response.status_code, 200)

		response = self.client.get('/api/trips/history/mine/')
		self.assertEqual(response.data['trips'][0]['status'], 'cancelled')

	def test_other_users_cannot_cancel(self):
		trip = make_trip(self.traveller)
		self.client.force_authenticate(self.sender)

		response = self.client.delete(f'/api/trips/{trip.id}/')
		self.assertEqual(response.status_code, 403)

	def test_trip_matches(self):
		trip = make_trip(self.traveller)
		package = make_package(self.sender)

		response = self.client.get(f'/api/trips/{trip.id}/matches/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['matches'][0]['package']['id'], package.id)
		self.assertNotIn('delivery_otp', response.data['matches'][0]['package'])

	def test_missing_trip(self):
		response = self.client.get('/api/trips/424242/')
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['code'], 'trip_not_found')
