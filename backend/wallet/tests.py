from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from common.testing import make_package, make_trip, make_user
from parcels.models import Package
from services.escrow import hold_funds, refund_funds, release_funds, top_up
from services.exceptions import (
	AuthorizationError,
	InsufficientFundsError,
	InvalidInputError,
	NoTravellerAssignedError,
	PaymentStateError,
)
from services.package_lifecycle import accept_package
from .models import WalletTransaction


class EscrowLedgerTests(TestCase):
	def setUp(self):
		self.sender = make_user('sender')
		self.traveller = make_user('traveller')
		self.package = make_package(self.sender, fee=Decimal('500.00'))

	def _hold(self, balance='1000'):
		top_up(self.sender, balance)
		return hold_funds(self.sender, self.package.id)

	def _assign_traveller(self):
		accept_package(self.traveller, self.package.id, make_trip(self.traveller).id)

	def test_top_up_credits_and_records(self):
		result = top_up(self.sender, '250.50')

		self.sender.refresh_from_db()
		self.assertEqual(result.balance, Decimal('250.50'))
		self.assertEqual(self.sender.wallet_balance, Decimal('250.50'))
		entry = result.ledger_entry
		self.assertEqual(entry.type, WalletTransaction.TYPE_TOPUP)
		self.assertEqual(entry.status, WalletTransaction.STATUS_COMPLETED)
		self.assertIsNone(entry.package)
		self.assertIsNotNone(entry.completed_at)

	def test_top_up_rejects_non_positive_amounts(self):
		for amount in (0, '-10', 'ten', None):
			with self.assertRaises(InvalidInputError):
				top_up(self.sender, amount)
		self.assertFalse(WalletTransaction.objects.exists())

	def test_hold_debits_sender(self):
		result = self._hold()

		self.package.refresh_from_db()
		self.assertEqual(result.balance, Decimal('500.00'))
		self.assertEqual(self.package.payment_status, Package.PAYMENT_HELD)
		self.assertEqual(result.ledger_entry.type, WalletTransaction.TYPE_HOLD)
		self.assertEqual(result.ledger_entry.amount, Decimal('500.00'))

	def test_hold_with_insufficient_balance_changes_nothing(self):
		top_up(self.sender, '100')

		with self.assertRaises(InsufficientFundsError):
			hold_funds(self.sender, self.package.id)

		self.sender.refresh_from_db()
		self.package.refresh_from_db()
		self.assertEqual(self.sender.wallet_balance, Decimal('100.00'))
		self.assertEqual(self.package.payment_status, Package.PAYMENT_PENDING)
		self.assertFalse(WalletTransaction.objects.filter(type=WalletTransaction.TYPE_HOLD).exists())

	def test_only_sender_of_sender_paid_package_can_hold(self):
		top_up(self.traveller, '1000')
		with self.assertRaises(AuthorizationError):
			hold_funds(self.traveller, self.package.id)

		receiver_paid = make_package(self.sender, payer=Package.PAYER_RECEIVER)
		top_up(self.sender, '1000')
		with self.assertRaises(AuthorizationError):
			hold_funds(self.sender, receiver_paid.id)

	def test_hold_twice_fails(self):
		self._hold()
		with self.assertRaises(PaymentStateError):
			hold_funds(self.sender, self.package.id)

		self.sender.refresh_from_db()
		self.assertEqual(self.sender.wallet_balance, Decimal('500.00'))

	def test_cannot_hold_for_finished_packages(self):
		top_up(self.sender, '1000')
		for status in (Package.STATUS_DELIVERED, Package.STATUS_EXPIRED, Package.STATUS_DISPUTED):
			package = make_package(self.sender, status=status)
			with self.assertRaises(PaymentStateError):
				hold_funds(self.sender, package.id)

		self.sender.refresh_from_db()
		self.assertEqual(self.sender.wallet_balance, Decimal('1000.00'))
		self.assertFalse(WalletTransaction.objects.filter(type=WalletTransaction.TYPE_HOLD).exists())

	def test_release_pays_traveller(self):
		self._hold()
		self._assign_traveller()

		with self.captureOnCommitCallbacks(execute=True):
			result = release_funds(self.package.id)

		self.package.refresh_from_db()
		self.traveller.refresh_from_db()
		self.assertEqual(self.package.payment_status, Package.PAYMENT_RELEASED)
		self.assertEqual(self.traveller.wallet_balance, Decimal('500.00'))
		self.assertEqual(result.ledger_entry.traveller, self.traveller)
		hold_entry = WalletTransaction.objects.get(type=WalletTransaction.TYPE_HOLD)
		self.assertEqual(hold_entry.traveller, self.traveller)
		self.assertTrue(self.traveller.notifications.filter(title='Payment released').exists())

	def test_release_requires_traveller(self):
		self._hold()
		with self.assertRaises(NoTravellerAssignedError):
			release_funds(self.package.id)

	def test_release_requires_held_funds(self):
		self._assign_traveller()
		with self.assertRaises(PaymentStateError):
			release_funds(self.package.id)

	def test_refund_returns_fee_to_sender(self):
		self._hold()
		result = refund_funds(self.package.id)

		self.sender.refresh_from_db()
		self.package.refresh_from_db()
		self.assertEqual(result.balance, Decimal('1000.00'))
		self.assertEqual(self.sender.wallet_balance, Decimal('1000.00'))
		self.assertEqual(self.package.payment_status, Package.PAYMENT_REFUNDED)

	def test_settlement_happens_once(self):
		self._hold()
		self._assign_traveller()
		release_funds(self.package.id)

		with self.assertRaises(PaymentStateError):
			refund_funds(self.package.id)
		with self.assertRaises(PaymentStateError):
			release_funds(self.package.id)

		self.sender.refresh_from_db()
		self.traveller.refresh_from_db()
		self.assertEqual(self.sender.wallet_balance, Decimal('500.00'))
		self.assertEqual(self.traveller.wallet_balance, Decimal('500.00'))

	def test_ledger_entries_are_append_only(self):
		entry = top_up(self.sender, '10').ledger_entry
		entry.amount = Decimal('1000')
		with self.assertRaises(ValueError):
			entry.save()


class WalletApiTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		self.sender = make_user('sender')
		self.admin = make_user('admin', role='admin')
		self.package = make_package(self.sender, fee=Decimal('200.00'))

	def test_topup_hold_and_balance(self):
		self.client.force_authenticate(self.sender)

		response = self.client.post('/api/wallet/topup/', {'amount': '300.00'}, format='json')
		self.assertEqual(response.status_code, 200)

		response = self.client.post('/api/wallet/hold/', {'package_id': self.package.id}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['transaction']['type'], 'hold')

		response = self.client.get('/api/wallet/balance/')
		self.assertEqual(Decimal(str(response.data['balance'])), Decimal('100.00'))

		response = self.client.get('/api/wallet/transactions/')
		self.assertEqual([t['type'] for t in response.data['transactions']], ['hold', 'topup'])

	def test_insufficient_funds_response(self):
		self.client.force_authenticate(self.sender)
		response = self.client.post('/api/wallet/hold/', {'package_id': self.package.id}, format='json')

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['code'], 'insufficient_funds')

	def test_refund_is_admin_only(self):
		top_up(self.sender, '200')
		hold_funds(self.sender, self.package.id)

		self.client.force_authenticate(self.sender)
		response = self.client.post('/api/wallet/refund/', {'package_id': self.package.id}, format='json')
		self.assertEqual(response.status_code, 403)

		self.client.force_authenticate(self.admin)
		response = self.client.post('/api/wallet/refund/', {'package_id': self.package.id}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['transaction']['type'], 'refund')
