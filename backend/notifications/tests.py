from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.test import TestCase
from rest_framework.test import APIClient

from common.testing import make_package, make_trip, make_user, package_payload
from parcels.models import Package
from services.package_lifecycle import accept_package, create_package, pickup_package
from .email import DELIVERY_OTP_SUBJECT, send_delivery_otp_email
from .models import Notification
from .services import notify, queue_delivery_otp_email


class NotifyTests(TestCase):
	def setUp(self):
		self.sender = make_user('sender')
		self.traveller = make_user('traveller')

	def test_notifications_wait_for_commit(self):
		with self.captureOnCommitCallbacks() as callbacks:
			notify(self.sender.id, 'Package created', 'Your package PKG1 has been created.', 'package_created')

		self.assertEqual(len(callbacks), 1)
		self.assertFalse(Notification.objects.exists())

		callbacks[0]()
		notification = Notification.objects.get()
		self.assertEqual(notification.user, self.sender)
		self.assertEqual(notification.category, 'package_created')
		self.assertFalse(notification.read)

	def test_recipients_are_deduplicated(self):
		with self.captureOnCommitCallbacks(execute=True):
			scheduled = notify(
				[self.sender.id, None, self.sender.id, self.traveller.id],
				'Package accepted',
				'Package PKG1 has been accepted.',
				metadata={'package_id': 1},
			)

		self.assertTrue(scheduled)
		self.assertEqual(Notification.objects.count(), 2)
		self.assertEqual(Notification.objects.first().meta, {'package_id': 1})

	def test_no_recipients(self):
		with self.captureOnCommitCallbacks() as callbacks:
			self.assertFalse(notify([None], 'Nobody', 'Nothing'))
			self.assertFalse(notify(None, 'Nobody', 'Nothing'))
		self.assertEqual(callbacks, [])

	def test_enqueue_failure_does_not_break_transition(self):
		package = make_package(self.sender)
		trip = make_trip(self.traveller)

		with patch('notifications.services.deliver_notification_task.delay', side_effect=RuntimeError('broker down')):
			with self.assertLogs('notifications.services', level='ERROR'):
				with self.captureOnCommitCallbacks(execute=True):
					accept_package(self.traveller, package.id, trip.id)

		package.refresh_from_db()
		self.assertEqual(package.status, Package.STATUS_ACCEPTED)
		self.assertFalse(Notification.objects.exists())

	def test_package_flow_uses_every_category(self):
		with self.captureOnCommitCallbacks(execute=True):
			package = create_package(self.sender, package_payload()).package
		with self.captureOnCommitCallbacks(execute=True):
			accept_package(self.traveller, package.id, make_trip(self.traveller).id)
		with self.captureOnCommitCallbacks(execute=True):
			pickup_package(self.traveller, package.id)

		produced = set(Notification.objects.values_list('category', flat=True))
		declared = {value for value, _ in Notification.CATEGORY_CHOICES}
		self.assertEqual(produced, declared)


class DeliveryEmailTests(TestCase):
	def test_send_delivery_otp_email(self):
		sent = send_delivery_otp_email('sender@example.com', '482913', 'PKGABC123')

		self.assertEqual(sent, 1)
		self.assertEqual(len(mail.outbox), 1)
		message = mail.outbox[0]
		self.assertEqual(message.subject, DELIVERY_OTP_SUBJECT)
		self.assertEqual(message.to, ['sender@example.com'])
		self.assertIn('482913', message.body)
		self.assertIn('PKGABC123', message.body)
		self.assertIn('10 minutes', message.body)

	def test_missing_address_is_skipped(self):
		with self.captureOnCommitCallbacks() as callbacks:
			self.assertFalse(queue_delivery_otp_email('', '482913', 'PKGABC123'))
		self.assertEqual(callbacks, [])

	def test_transport_failure_is_swallowed_by_task(self):
		with patch('notifications.email.send_mail', side_effect=SMTPException('relay refused')):
			with self.captureOnCommitCallbacks(execute=True):
				self.assertTrue(queue_delivery_otp_email('sender@example.com', '482913', 'PKGABC123'))

		self.assertEqual(mail.outbox, [])


class NotificationApiTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		self.user = make_user('sender')
		self.other = make_user('other')
		self.mine = Notification.objects.create(user=self.user, title='Package created', message='...')
		self.theirs = Notification.objects.create(user=self.other, title='Package created', message='...')
		self.client.force_authenticate(self.user)

	def test_list_only_own_notifications(self):
		response = self.client.get('/api/notifications/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual([n['id'] for n in response.data['notifications']], [self.mine.id])
		self.assertEqual(response.data['unread_count'], 1)

	def test_mark_read(self):
		response = self.client.post(f'/api/notifications/{self.mine.id}/read/')
		self.assertEqual(response.status_code, 200)
		self.mine.refresh_from_db()
		self.assertTrue(self.mine.read)

		response = self.client.post(f'/api/notifications/{self.theirs.id}/read/')
		self.assertEqual(response.status_code, 404)

	def test_mark_all_read(self):
		Notification.objects.create(user=self.user, title='Package accepted', message='...')
		response = self.client.post('/api/notifications/read-all/')

		self.assertEqual(response.data['updated'], 2)
		self.assertFalse(Notification.objects.filter(user=self.user, read=False).exists())
