from django.test import SimpleTestCase

from services.exceptions import (
	ConflictError,
	DeliveryOTPExpiredError,
	InsufficientFundsError,
	PackageNotFoundError,
)
from .api import service_exception_handler
from .utils import (
	distance_km,
	edit_distance,
	fuzzy_equals,
	is_within_radius,
	match_city,
	normalize,
	similarity,
)

KATHMANDU = (27.7172, 85.3240)
POKHARA = (28.2096, 83.9856)
LALITPUR = (27.6644, 85.3188)


class DistanceTests(SimpleTestCase):
	def test_distance_to_self_is_zero(self):
		for lat, lng in (KATHMANDU, POKHARA, (0.0, 0.0), (-33.86, 151.21), (90.0, 0.0)):
			self.assertEqual(distance_km(lat, lng, lat, lng), 0)

	def test_distance_is_symmetric(self):
		self.assertAlmostEqual(
			distance_km(*KATHMANDU, *POKHARA),
			distance_km(*POKHARA, *KATHMANDU),
		)

	def test_kathmandu_to_pokhara(self):
		self.assertAlmostEqual(distance_km(*KATHMANDU, *POKHARA), 143, delta=5)

	def test_antipodal_points_do_not_overflow(self):
		self.assertAlmostEqual(distance_km(0, 0, 0, 180), 20015, delta=1)

	def test_is_within_radius(self):
		self.assertTrue(is_within_radius(*KATHMANDU, *LALITPUR, 50))
		self.assertFalse(is_within_radius(*KATHMANDU, *POKHARA, 50))


class FuzzyMatchTests(SimpleTestCase):
	def test_normalize(self):
		self.assertEqual(normalize("  New   York, NY! "), "new york ny")
		self.assertEqual(normalize(None), "")

	def test_edit_distance(self):
		self.assertEqual(edit_distance("kitten", "sitting"), 3)
		self.assertEqual(edit_distance("Kathmandu", "kathmandu"), 0)

	def test_similarity_bounds(self):
		self.assertEqual(similarity("Pokhara", "pokhara"), 1.0)
		self.assertEqual(similarity("", ""), 1.0)
		for a, b in (("abc", "xyz"), ("a", "abcdefgh"), ("Kathmandu", "Biratnagar"), ("", "x")):
			score = similarity(a, b)
			self.assertGreaterEqual(score, 0.0)
			self.assertLessEqual(score, 1.0)

	def test_city_names_tolerate_spelling_variance(self):
		self.assertTrue(match_city("New York", "NewYork"))
		self.assertTrue(match_city("Kathmandu", "Kathmndu"))
		self.assertFalse(match_city("Kathmandu", "Pokhara"))

	def test_general_threshold_is_stricter(self):
		# similarity("Lalitpur", "Lalitpr") == 0.875; "abcd"/"abxy" == 0.5
		self.assertTrue(fuzzy_equals("Lalitpur", "Lalitpr"))
		self.assertFalse(fuzzy_equals("abcd", "abxy"))


class ServiceExceptionHandlerTests(SimpleTestCase):
	def test_renders_error_and_code(self):
		response = service_exception_handler(DeliveryOTPExpiredError(), {})

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['code'], 'otp_expired')
		self.assertIn('expired', response.data['error'])

	def test_custom_message(self):
		response = service_exception_handler(ConflictError("Package not in accepted state"), {})
		self.assertEqual(response.data, {'error': 'Package not in accepted state', 'code': 'conflict'})

	def test_status_codes(self):
		self.assertEqual(service_exception_handler(PackageNotFoundError(), {}).status_code, 404)
		self.assertEqual(service_exception_handler(InsufficientFundsError(), {}).status_code, 400)

	def test_non_service_errors_fall_through(self):
		self.assertIsNone(service_exception_handler(ValueError("boom"), {}))
