from datetime import date
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase, override_settings

from donor.forms import DonationForm
from donor import models as dmodels


class DonationFormTests(TestCase):
	def test_defaults_to_scheduled(self):
		form = DonationForm(data={'donation_date': '2026-03-01', 'units_donated': '1'})
		self.assertTrue(form.is_valid(), form.errors)
		self.assertEqual(form.cleaned_data['status'], dmodels.Donation.Status.SCHEDULED)

	def test_cancelled_is_not_a_choice(self):
		form = DonationForm(data={'donation_date': '2026-03-01', 'units_donated': '1', 'status': 'CANCELLED'})
		self.assertFalse(form.is_valid())
		self.assertIn('status', form.errors)

	@override_settings(DONATION_MAX_UNITS=2)
	def test_units_capped_by_setting(self):
		form = DonationForm(data={'donation_date': '2026-03-01', 'units_donated': '3'})
		self.assertFalse(form.is_valid())
		self.assertIn('Units donated must be between 1 and 2.', form.errors['units_donated'])

	@override_settings(DONATION_MAX_UNITS=6)
	def test_units_above_default_allowed_when_configured(self):
		form = DonationForm(data={'donation_date': '2026-03-01', 'units_donated': '5'})
		self.assertTrue(form.is_valid(), form.errors)


class DonorModelTests(TestCase):
	def _create_donor(self, **fields):
		user = User.objects.create_user(username='donor', password='password', first_name='Nadia', last_name='Islam')
		return dmodels.Donor.objects.create(user=user, bloodgroup='O_NEGATIVE', city='Dhaka', **fields)

	def test_age_on_respects_birthday(self):
		donor = self._create_donor(date_of_birth=date(2000, 3, 2))
		self.assertEqual(donor.age_on(date(2026, 3, 1)), 25)
		self.assertEqual(donor.age_on(date(2026, 3, 2)), 26)

	def test_age_unknown_without_date_of_birth(self):
		self.assertIsNone(self._create_donor().age_on(date(2026, 3, 1)))

	def test_next_eligible_donation_date(self):
		donor = self._create_donor(last_donated_at=date(2026, 1, 1))
		self.assertEqual(donor.next_eligible_donation_date, date(2026, 2, 26))

	@override_settings(DONATION_RECOVERY_DAYS=84)
	def test_recovery_period_is_configurable(self):
		donor = self._create_donor(last_donated_at=date(2026, 1, 1))
		self.assertEqual(donor.next_eligible_donation_date, date(2026, 3, 26))

	def test_first_time_donor_has_no_wait(self):
		self.assertIsNone(self._create_donor().next_eligible_donation_date)

	def test_admin_roles(self):
		donor = self._create_donor(role=dmodels.Donor.Role.SUPER_ADMIN)
		self.assertTrue(donor.is_admin)
		donor.role = dmodels.Donor.Role.DONOR
		self.assertFalse(donor.is_admin)

	def test_name_falls_back_to_username(self):
		user = User.objects.create_user(username='anon', password='password')
		donor = dmodels.Donor.objects.create(user=user, bloodgroup='A_POSITIVE', city='Dhaka')
		self.assertEqual(donor.get_name, 'anon')


class SyncLastDonatedAtCommandTests(TestCase):
	def setUp(self):
		user = User.objects.create_user(username='synced', password='password')
		self.donor = dmodels.Donor.objects.create(user=user, bloodgroup='A_NEGATIVE', city='Dhaka')
		for day, status in ((date(2026, 1, 10), 'COMPLETED'), (date(2026, 2, 20), 'COMPLETED'), (date(2026, 3, 1), 'SCHEDULED')):
			dmodels.Donation.objects.create(donor=self.donor, donation_date=day, units_donated=1, status=status)

	def test_dry_run(self):
		out = StringIO()
		call_command('sync_last_donated_at', stdout=out)
		self.assertIn('1 donor(s) would change', out.getvalue())
		self.donor.refresh_from_db()
		self.assertIsNone(self.donor.last_donated_at)

	def test_apply_uses_latest_completed_donation(self):
		call_command('sync_last_donated_at', '--apply', stdout=StringIO())
		self.donor.refresh_from_db()
		self.assertEqual(self.donor.last_donated_at, date(2026, 2, 20))

	def test_newer_profile_date_is_kept(self):
		self.donor.last_donated_at = date(2026, 3, 5)
		self.donor.save(update_fields=['last_donated_at'])
		call_command('sync_last_donated_at', '--apply', stdout=StringIO())
		self.donor.refresh_from_db()
		self.assertEqual(self.donor.last_donated_at, date(2026, 3, 5))
