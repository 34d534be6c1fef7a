from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from common.testing import (
	BIRATNAGAR,
	KATHMANDU,
	LALITPUR,
	POKHARA,
	age_package,
	make_package,
	make_trip,
	make_user,
	package_payload,
)
from notifications.models import Notification
from services.escrow import hold_funds, top_up
from services.exceptions import (
	AuthorizationError,
	ConflictError,
	DeliveryOTPExpiredError,
	DeliveryOTPMismatchError,
	DeliveryOTPMissingError,
	InvalidInputError,
	PackageNotAvailableError,
	TripCapacityFullError,
	TripNotActiveError,
	VerificationRequiredError,
)
from services.package_lifecycle import (
	accept_package,
	confirm_delivery,
	create_package,
	delete_package,
	get_tracking_history,
	mark_delivered,
	mark_in_transit,
	pickup_package,
	raise_dispute,
	record_location,
	update_package,
)
from trips.models import Trip
from wallet.models import WalletTransaction
from .models import Package, TrackingPoint
from .services.package_expiration import expire_stale_packages
from .tasks import expire_stale_packages_task


class PackageLifecycleTestCase(TestCase):
	def setUp(self):
		self.sender = make_user('sender')
		self.traveller = make_user('traveller', role='traveller')
		self.trip = make_trip(self.traveller)
		self.package = make_package(self.sender)

	def _accept(self, package=None):
		package = package or self.package
		return accept_package(self.traveller, package.id, self.trip.id).package

	def _pickup(self, package=None):
		package = self._accept(package)
		return pickup_package(self.traveller, package.id, 'pickup.jpg').package

	def _deliver(self, package=None, now=None):
		package = self._pickup(package)
		return mark_delivered(self.traveller, package.id, 'delivery.jpg', now=now).package


class CreatePackageTests(PackageLifecycleTestCase):
	def test_create_package_is_pending_and_notifies_sender(self):
		with self.captureOnCommitCallbacks(execute=True):
			result = create_package(self.sender, package_payload())

		package = result.package
		self.assertTrue(result.success)
		self.assertEqual(package.status, Package.STATUS_PENDING)
		self.assertEqual(package.payment_status, Package.PAYMENT_PENDING)
		self.assertTrue(package.code.startswith('PKG'))
		self.assertEqual(package.fee, Decimal('500.00'))
		self.assertEqual(package.origin.city, 'Kathmandu')
		self.assertIsNone(package.traveller)
		self.assertTrue(
			Notification.objects.filter(user=self.sender, category='package_created').exists()
		)

	def test_unverified_sender_cannot_create(self):
		unverified = make_user('newcomer', verified=False)
		with self.assertRaises(VerificationRequiredError):
			create_package(unverified, package_payload())

	def test_invalid_input_creates_nothing(self):
		before = Package.objects.count()
		bad_payloads = [
			package_payload(fee='-1'),
			package_payload(fee='abc'),
			package_payload(payer='nobody'),
			package_payload(receiver_name=''),
			dict(package_payload(), origin=None),
			package_payload(destination={'city': 'Pokhara', 'address': 'Lakeside', 'lat': 120, 'lng': 83.9}),
		]
		for payload in bad_payloads:
			with self.assertRaises(InvalidInputError):
				create_package(self.sender, payload)
		self.assertEqual(Package.objects.count(), before)

	def test_codes_are_unique(self):
		codes = {create_package(self.sender, package_payload()).package.code for _ in range(5)}
		self.assertEqual(len(codes), 5)

	def test_created_locations_match_fixture_packages(self):
		created = create_package(self.sender, package_payload(LALITPUR, BIRATNAGAR)).package
		built = make_package(self.sender, LALITPUR, BIRATNAGAR)

		self.assertEqual(created.origin, built.origin)
		self.assertEqual(created.destination, built.destination)


class AcceptPackageTests(PackageLifecycleTestCase):
	def test_accept_assigns_traveller_and_claims_capacity(self):
		with self.captureOnCommitCallbacks(execute=True):
			package = self._accept()

		self.trip.refresh_from_db()
		self.assertEqual(package.status, Package.STATUS_ACCEPTED)
		self.assertEqual(package.traveller, self.traveller)
		self.assertEqual(package.trip, self.trip)
		self.assertIsNotNone(package.accepted_at)
		self.assertEqual(self.trip.accepted_count, 1)
		self.assertEqual(len(package.delivery_otp), 6)
		self.assertTrue(100000 <= int(package.delivery_otp) <= 999999)
		self.assertIsNone(package.delivery_otp_expires_at)
		self.assertEqual(
			Notification.objects.filter(category='package_accepted').count(), 2
		)

	def test_second_accept_is_rejected(self):
		self._accept()
		other = make_user('other_traveller')
		other_trip = make_trip(other)

		with self.assertRaises(PackageNotAvailableError):
			accept_package(other, self.package.id, other_trip.id)

		other_trip.refresh_from_db()
		self.assertEqual(other_trip.accepted_count, 0)

	def test_lost_race_rolls_back_trip_slot(self):
		# Another traveller wins between our read and our write
		stale = Package.objects.get(pk=self.package.pk)
		other = make_user('other_traveller')
		accept_package(other, self.package.id, make_trip(other).id)

		with patch('services.package_lifecycle.package_lifecycle._get_package', return_value=stale):
			with self.assertRaises(PackageNotAvailableError):
				accept_package(self.traveller, self.package.id, self.trip.id)

		self.trip.refresh_from_db()
		self.package.refresh_from_db()
		self.assertEqual(self.trip.accepted_count, 0)
		self.assertEqual(self.package.traveller, other)

	def test_cannot_accept_own_package(self):
		own_trip = make_trip(self.sender)
		with self.assertRaises(AuthorizationError):
			accept_package(self.sender, self.package.id, own_trip.id)

	def test_cannot_use_someone_elses_trip(self):
		other = make_user('other_traveller')
		with self.assertRaises(AuthorizationError):
			accept_package(other, self.package.id, self.trip.id)

	def test_trip_must_be_active(self):
		Trip.objects.filter(pk=self.trip.pk).update(status=Trip.STATUS_CANCELLED)
		with self.assertRaises(TripNotActiveError):
			self._accept()

	def test_capacity_is_enforced(self):
		Trip.objects.filter(pk=self.trip.pk).update(capacity=1)
		self._accept()

		second = make_package(self.sender)
		with self.assertRaises(TripCapacityFullError):
			self._accept(second)

		second.refresh_from_db()
		self.trip.refresh_from_db()
		self.assertEqual(second.status, Package.STATUS_PENDING)
		self.assertEqual(self.trip.accepted_count, 1)

	def test_unverified_traveller_cannot_accept(self):
		self.traveller.verified = False
		self.traveller.save(update_fields=['verified'])
		with self.assertRaises(VerificationRequiredError):
			self._accept()


class TransitTests(PackageLifecycleTestCase):
	def test_pickup_records_proof(self):
		package = self._pickup()
		self.assertEqual(package.status, Package.STATUS_PICKED_UP)
		self.assertEqual(package.pickup_proof, 'pickup.jpg')
		self.assertIsNotNone(package.picked_up_at)

	def test_only_assigned_traveller_can_pickup(self):
		self._accept()
		with self.assertRaises(AuthorizationError):
			pickup_package(self.sender, self.package.id)

	def test_pickup_requires_accepted(self):
		self._pickup()
		with self.assertRaisesMessage(ConflictError, 'Package not in accepted state'):
			pickup_package(self.traveller, self.package.id)

	def test_in_transit_after_pickup(self):
		self._pickup()
		package = mark_in_transit(self.traveller, self.package.id).package
		self.assertEqual(package.status, Package.STATUS_IN_TRANSIT)

		with self.assertRaises(ConflictError):
			mark_in_transit(self.traveller, self.package.id)

	def test_cannot_deliver_before_pickup(self):
		self._accept()
		with self.assertRaisesMessage(ConflictError, 'Package not ready for delivery'):
			mark_delivered(self.traveller, self.package.id)


class DeliveryOTPTests(PackageLifecycleTestCase):
	def test_mark_delivered_emails_fresh_otp(self):
		self._accept()
		pickup_package(self.traveller, self.package.id)

		with self.captureOnCommitCallbacks(execute=True):
			package = mark_delivered(self.traveller, self.package.id, 'delivery.jpg').package

		self.assertEqual(package.status, Package.STATUS_PICKED_UP)
		self.assertEqual(package.delivery_proof, 'delivery.jpg')
		self.assertIsNotNone(package.delivery_otp_expires_at)
		self.assertEqual(len(mail.outbox), 1)
		self.assertEqual(mail.outbox[0].to, ['sender@example.com'])
		self.assertIn(package.delivery_otp, mail.outbox[0].body)
		self.assertIn(package.code, mail.outbox[0].body)

	def test_otp_window_lasts_ten_minutes(self):
		now = timezone.now()
		package = self._deliver(now=now)
		self.assertEqual(package.delivery_otp_expires_at, now + timedelta(minutes=10))

	def test_correct_otp_delivers(self):
		package = self._deliver()

		with self.captureOnCommitCallbacks(execute=True):
			result = confirm_delivery(self.sender, package.id, package.delivery_otp)

		package = result.package
		self.assertEqual(package.status, Package.STATUS_DELIVERED)
		self.assertIsNone(package.delivery_otp)
		self.assertIsNone(package.delivery_otp_expires_at)
		self.assertIsNotNone(package.delivered_at)
		self.assertEqual(
			set(Notification.objects.filter(title='Package delivered').values_list('user_id', flat=True)),
			{self.sender.id, self.traveller.id},
		)

	def test_wrong_otp_keeps_window_open(self):
		package = self._deliver()
		wrong = '100000' if package.delivery_otp != '100000' else '100001'

		with self.assertRaises(DeliveryOTPMismatchError):
			confirm_delivery(self.sender, package.id, wrong)

		package.refresh_from_db()
		self.assertEqual(package.status, Package.STATUS_PICKED_UP)
		self.assertIsNotNone(package.delivery_otp)

		confirm_delivery(self.sender, package.id, package.delivery_otp)
		package.refresh_from_db()
		self.assertEqual(package.status, Package.STATUS_DELIVERED)

	def test_expired_otp(self):
		now = timezone.now()
		package = self._deliver(now=now)

		with self.assertRaises(DeliveryOTPExpiredError):
			confirm_delivery(self.sender, package.id, package.delivery_otp, now=now + timedelta(minutes=11))

		package.refresh_from_db()
		self.assertEqual(package.status, Package.STATUS_PICKED_UP)

	def test_accept_otp_does_not_open_window(self):
		package = self._pickup()

		with self.assertRaises(DeliveryOTPMissingError):
			confirm_delivery(self.sender, package.id, package.delivery_otp)

	def test_otp_is_single_use(self):
		package = self._deliver()
		otp = package.delivery_otp
		confirm_delivery(self.sender, package.id, otp)

		with self.assertRaises(DeliveryOTPMissingError):
			confirm_delivery(self.sender, package.id, otp)

	def test_only_sender_can_confirm(self):
		package = self._deliver()
		with self.assertRaises(AuthorizationError):
			confirm_delivery(self.traveller, package.id, package.delivery_otp)

	def test_confirm_loses_race_with_dispute(self):
		package = self._deliver()
		stale = Package.objects.get(pk=package.pk)
		raise_dispute(self.traveller, package.id, 'Receiver unreachable')

		with patch('services.package_lifecycle.package_lifecycle._get_package', return_value=stale):
			with self.assertRaises(ConflictError):
				confirm_delivery(self.sender, package.id, stale.delivery_otp)

		package.refresh_from_db()
		self.assertEqual(package.status, Package.STATUS_DISPUTED)

	def test_trip_completes_after_last_package_delivered(self):
		second = self._accept(make_package(self.sender))
		first = self._deliver()
		result = confirm_delivery(self.sender, first.id, first.delivery_otp)

		self.trip.refresh_from_db()
		self.assertFalse(result.extra['trip_completed'])
		self.assertEqual(self.trip.status, Trip.STATUS_ACTIVE)

		pickup_package(self.traveller, second.id, 'pickup.jpg')
		second = mark_delivered(self.traveller, second.id, 'delivery.jpg').package
		result = confirm_delivery(self.sender, second.id, second.delivery_otp)

		self.trip.refresh_from_db()
		self.traveller.refresh_from_db()
		self.sender.refresh_from_db()
		self.assertTrue(result.extra['trip_completed'])
		self.assertEqual(self.trip.status, Trip.STATUS_COMPLETED)
		self.assertEqual(self.traveller.total_deliveries, 2)
		self.assertEqual(self.sender.total_packages, 2)


class EndToEndTests(PackageLifecycleTestCase):
	def test_full_delivery_releases_escrow(self):
		with self.captureOnCommitCallbacks(execute=True):
			package = create_package(self.sender, package_payload(fee='500')).package
		top_up(self.sender, '800')
		hold_funds(self.sender, package.id)

		self._accept(package)
		pickup_package(self.traveller, package.id)
		mark_in_transit(self.traveller, package.id)
		with self.captureOnCommitCallbacks(execute=True):
			package = mark_delivered(self.traveller, package.id).package
		otp = package.delivery_otp
		self.assertIn(otp, mail.outbox[-1].body)

		result = confirm_delivery(self.sender, package.id, otp)

		package.refresh_from_db()
		self.sender.refresh_from_db()
		self.traveller.refresh_from_db()
		self.trip.refresh_from_db()
		self.assertTrue(result.extra['payment_released'])
		self.assertEqual(package.status, Package.STATUS_DELIVERED)
		self.assertEqual(package.payment_status, Package.PAYMENT_RELEASED)
		self.assertEqual(self.sender.wallet_balance, Decimal('300.00'))
		self.assertEqual(self.traveller.wallet_balance, Decimal('500.00'))
		self.assertEqual(self.trip.status, Trip.STATUS_COMPLETED)
		self.assertEqual(
			list(package.transactions.order_by('id').values_list('type', flat=True)),
			[WalletTransaction.TYPE_HOLD, WalletTransaction.TYPE_RELEASE],
		)

	def test_delivery_without_held_funds_skips_release(self):
		package = self._deliver()
		result = confirm_delivery(self.sender, package.id, package.delivery_otp)

		self.assertFalse(result.extra['payment_released'])
		self.assertEqual(result.package.payment_status, Package.PAYMENT_PENDING)


class DisputeTests(PackageLifecycleTestCase):
	def test_traveller_dispute_clears_otp(self):
		package = self._deliver()

		with self.captureOnCommitCallbacks(execute=True):
			package = raise_dispute(self.traveller, package.id, 'Receiver unreachable').package

		self.assertEqual(package.status, Package.STATUS_DISPUTED)
		self.assertEqual(package.dispute_reason, 'Receiver unreachable')
		self.assertIsNone(package.delivery_otp)
		self.assertTrue(Notification.objects.filter(user=self.sender, title='Dispute raised').exists())

		with self.assertRaises(DeliveryOTPMissingError):
			confirm_delivery(self.sender, package.id, '123456')

	def test_sender_can_dispute_pending_package(self):
		package = raise_dispute(self.sender, self.package.id, 'Wrong address').package
		self.assertEqual(package.status, Package.STATUS_DISPUTED)

	def test_outsider_cannot_dispute(self):
		outsider = make_user('outsider')
		with self.assertRaises(AuthorizationError):
			raise_dispute(outsider, self.package.id, 'Not mine')

	def test_reason_is_required(self):
		with self.assertRaises(InvalidInputError):
			raise_dispute(self.sender, self.package.id, '   ')

	def test_delivered_packages_are_disputable_by_default(self):
		package = self._deliver()
		confirm_delivery(self.sender, package.id, package.delivery_otp)

		package = raise_dispute(self.sender, package.id, 'Item damaged').package
		self.assertEqual(package.status, Package.STATUS_DISPUTED)

	@override_settings(PACKAGE_DISPUTES_ALLOW_TERMINAL=False)
	def test_terminal_disputes_can_be_disabled(self):
		package = self._deliver()
		confirm_delivery(self.sender, package.id, package.delivery_otp)

		with self.assertRaises(ConflictError):
			raise_dispute(self.sender, package.id, 'Item damaged')


class EditPackageTests(PackageLifecycleTestCase):
	def test_update_pending_package(self):
		result = update_package(self.sender, self.package.id, package_payload(destination=BIRATNAGAR, fee='650'))

		self.assertEqual(result.package.destination_city, 'Biratnagar')
		self.assertEqual(result.package.fee, Decimal('650.00'))
		self.assertEqual(result.package.status, Package.STATUS_PENDING)

	def test_update_revives_expired_package(self):
		age_package(self.package, hours=30)
		expire_stale_packages()

		result = update_package(self.sender, self.package.id, package_payload())

		self.assertEqual(result.package.status, Package.STATUS_PENDING)
		self.assertGreater(result.package.created_at, timezone.now() - timedelta(minutes=1))

	def test_cannot_update_accepted_package(self):
		self._accept()
		with self.assertRaises(ConflictError):
			update_package(self.sender, self.package.id, package_payload())

	def test_only_sender_can_update(self):
		with self.assertRaises(AuthorizationError):
			update_package(self.traveller, self.package.id, package_payload())

	def test_fee_is_frozen_while_funds_held(self):
		top_up(self.sender, 500)
		hold_funds(self.sender, self.package.id)

		with self.assertRaises(ConflictError):
			update_package(self.sender, self.package.id, package_payload(fee='900'))

	def test_delete_refunds_held_funds(self):
		top_up(self.sender, 500)
		hold_funds(self.sender, self.package.id)

		result = delete_package(self.sender, self.package.id)

		self.sender.refresh_from_db()
		self.assertTrue(result.extra['refunded'])
		self.assertFalse(Package.objects.filter(pk=self.package.pk).exists())
		self.assertEqual(self.sender.wallet_balance, Decimal('500.00'))
		refund = WalletTransaction.objects.get(type=WalletTransaction.TYPE_REFUND)
		self.assertIsNone(refund.package)

	def test_cannot_delete_accepted_package(self):
		self._accept()
		with self.assertRaises(ConflictError):
			delete_package(self.sender, self.package.id)
		self.assertTrue(Package.objects.filter(pk=self.package.pk).exists())


class TrackingTests(PackageLifecycleTestCase):
	@override_settings(PACKAGE_TRACKING_LIMIT=3)
	def test_keeps_newest_points(self):
		self._accept()
		start = timezone.now()
		for minute in range(5):
			record_location(self.traveller, self.package.id, 27.7 + minute / 100, 85.3, now=start + timedelta(minutes=minute))

		points = get_tracking_history(self.package.id)
		self.assertEqual(len(points), 3)
		self.assertEqual([round(p.lat, 2) for p in points], [27.72, 27.73, 27.74])
		self.assertEqual(TrackingPoint.objects.filter(package=self.package).count(), 3)

	def test_only_assigned_traveller_reports_location(self):
		self._accept()
		with self.assertRaises(AuthorizationError):
			record_location(self.sender, self.package.id, 27.7, 85.3)

	def test_coordinates_are_validated(self):
		self._accept()
		with self.assertRaises(InvalidInputError):
			record_location(self.traveller, self.package.id, 95, 85.3)

	def test_delivered_packages_are_not_tracked(self):
		package = self._deliver()
		confirm_delivery(self.sender, package.id, package.delivery_otp)
		with self.assertRaises(ConflictError):
			record_location(self.traveller, package.id, 27.7, 85.3)


class PackageExpirationTests(TestCase):
	def setUp(self):
		self.sender = make_user('sender')
		self.traveller = make_user('traveller')
		self.stale = age_package(make_package(self.sender), hours=25)
		self.fresh = age_package(make_package(self.sender), hours=2)

		self.accepted = age_package(make_package(self.sender), hours=30)
		accept_package(self.traveller, self.accepted.id, make_trip(self.traveller).id)

	def test_expires_only_stale_unassigned_packages(self):
		with self.captureOnCommitCallbacks(execute=True):
			expired, notified = expire_stale_packages()

		self.assertEqual((expired, notified), (1, 1))
		self.stale.refresh_from_db()
		self.fresh.refresh_from_db()
		self.accepted.refresh_from_db()
		self.assertEqual(self.stale.status, Package.STATUS_EXPIRED)
		self.assertEqual(self.fresh.status, Package.STATUS_PENDING)
		self.assertEqual(self.accepted.status, Package.STATUS_ACCEPTED)

		notification = Notification.objects.get(user=self.sender, title='Package Expired')
		self.assertIn(self.stale.code, notification.message)
		self.assertEqual(notification.meta['status'], Package.STATUS_EXPIRED)

	def test_sweep_is_idempotent(self):
		self.assertEqual(expire_stale_packages(), (1, 1))
		self.assertEqual(expire_stale_packages(), (0, 0))

	def test_injected_clock(self):
		later = timezone.now() + timedelta(hours=23)
		self.assertEqual(expire_stale_packages(now=later), (2, 2))

	def test_task_runs_sweep(self):
		self.assertEqual(expire_stale_packages_task(), 1)

	def test_management_command(self):
		out = StringIO()
		call_command('expire_packages', hours=1, stdout=out)

		self.fresh.refresh_from_db()
		self.assertEqual(self.fresh.status, Package.STATUS_EXPIRED)
		self.assertIn('Expired 2 package(s)', out.getvalue())


class PackageApiTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		self.sender = make_user('sender')
		self.traveller = make_user('traveller')
		self.trip = make_trip(self.traveller, origin=LALITPUR, destination=POKHARA)

	def test_requires_authentication(self):
		response = self.client.get('/api/packages/')
		self.assertEqual(response.status_code, 401)

	def test_create_and_fetch_package(self):
		self.client.force_authenticate(self.sender)
		response = self.client.post('/api/packages/', package_payload(origin=KATHMANDU), format='json')

		self.assertEqual(response.status_code, 201)
		package_id = response.data['package']['id']
		self.assertEqual(response.data['package']['origin']['city'], 'Kathmandu')

		response = self.client.get(f'/api/packages/{package_id}/')
		self.assertEqual(response.status_code, 200)
		self.assertNotIn('delivery_otp', response.data['package'])

		response = self.client.get('/api/packages/')
		self.assertEqual(len(response.data['packages']), 1)

	def test_invalid_payload_is_rejected(self):
		self.client.force_authenticate(self.sender)
		response = self.client.post('/api/packages/', package_payload(fee='-5'), format='json')
		self.assertEqual(response.status_code, 400)

	def test_conflicts_render_error_code(self):
		package = make_package(self.sender)
		accept_package(self.traveller, package.id, self.trip.id)

		other = make_user('other')
		other_trip = make_trip(other)
		self.client.force_authenticate(other)
		response = self.client.post(f'/api/packages/{package.id}/accept/', {'trip_id': other_trip.id}, format='json')

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['code'], 'package_not_available')

	def test_delivery_flow_over_http(self):
		package = make_package(self.sender)

		self.client.force_authenticate(self.traveller)
		response = self.client.post(f'/api/packages/{package.id}/accept/', {'trip_id': self.trip.id}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['package']['status'], 'accepted')
		self.assertEqual(self.client.post(f'/api/packages/{package.id}/pickup/', {}, format='json').status_code, 200)
		self.assertEqual(self.client.post(f'/api/packages/{package.id}/in-transit/').status_code, 200)
		self.assertEqual(
			self.client.post(f'/api/packages/{package.id}/location/', {'lat': 27.9, 'lng': 84.5}, format='json').status_code,
			200,
		)
		response = self.client.post(f'/api/packages/{package.id}/deliver/', {'proof': 'receipt.jpg'}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['package']['status'], 'in_transit')

		package.refresh_from_db()
		self.client.force_authenticate(self.sender)
		response = self.client.post(f'/api/packages/{package.id}/verify-delivery/', {'otp': '000000'}, format='json')
		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['code'], 'otp_mismatch')

		response = self.client.post(
			f'/api/packages/{package.id}/verify-delivery/', {'otp': package.delivery_otp}, format='json'
		)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['package']['status'], 'delivered')

		response = self.client.get(f'/api/packages/{package.id}/tracking/')
		self.assertEqual(len(response.data['tracking']), 1)

	def test_available_packages_filter_by_destination(self):
		make_package(self.sender, destination=POKHARA)
		make_package(self.sender, destination=BIRATNAGAR)

		self.client.force_authenticate(self.traveller)
		response = self.client.get('/api/packages/available/', {'destination': 'pokh'})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(len(response.data['packages']), 1)
		self.assertEqual(response.data['packages'][0]['destination']['city'], 'Pokhara')

	def test_lookup_by_code(self):
		package = make_package(self.sender)
		self.client.force_authenticate(self.traveller)

		response = self.client.get(f'/api/packages/code/{package.code}/')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['package']['id'], package.id)

		response = self.client.get('/api/packages/code/PKGMISSING/')
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['code'], 'package_not_found')

	def test_package_matches(self):
		package = make_package(self.sender, origin=KATHMANDU, destination=POKHARA)
		self.client.force_authenticate(self.sender)

		response = self.client.get(f'/api/packages/{package.id}/matches/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(len(response.data['matches']), 1)
		self.assertEqual(response.data['matches'][0]['trip']['id'], self.trip.id)

	def test_delete_package(self):
		package = make_package(self.sender)
		self.client.force_authenticate(self.sender)

		response = self.client.delete(f'/api/packages/{package.id}/')
		self.assertEqual(response.status_code, 200)
		self.assertFalse(Package.objects.filter(pk=package.pk).exists())
