from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase

from blood import compatibility
from blood.compatibility import BloodGroup


class CompatibilityTableTests(SimpleTestCase):
    def test_o_negative_is_universal_donor(self):
        self.assertEqual(compatibility.compatible(BloodGroup.O_NEGATIVE), frozenset(BloodGroup.values))

    def test_ab_positive_only_serves_itself(self):
        self.assertEqual(compatibility.compatible(BloodGroup.AB_POSITIVE), frozenset({"AB_POSITIVE"}))

    def test_every_group_serves_itself(self):
        for group in BloodGroup.values:
            self.assertTrue(compatibility.is_compatible(group, group), group)

    def test_rh_positive_never_serves_rh_negative(self):
        positives = [g for g in BloodGroup.values if g.endswith("_POSITIVE")]
        negatives = [g for g in BloodGroup.values if g.endswith("_NEGATIVE")]
        for donor in positives:
            for recipient in negatives:
                self.assertFalse(compatibility.is_compatible(donor, recipient), (donor, recipient))

    def test_donor_groups_for_ab_positive_is_everyone(self):
        self.assertEqual(compatibility.donor_groups_for("AB_POSITIVE"), frozenset(BloodGroup.values))

    def test_donor_groups_for_o_negative(self):
        self.assertEqual(compatibility.donor_groups_for("O_NEGATIVE"), frozenset({"O_NEGATIVE"}))

    def test_unknown_group_is_not_compatible(self):
        self.assertFalse(compatibility.is_compatible("Z_POSITIVE", "O_POSITIVE"))

    def test_shipped_table_validates(self):
        compatibility.validate_table()

    def test_incomplete_table_is_rejected(self):
        table = dict(compatibility.COMPATIBILITY)
        table.pop("B_NEGATIVE")
        with self.assertRaises(ImproperlyConfigured):
            compatibility.validate_table(table)

    def test_unknown_recipient_is_rejected(self):
        table = dict(compatibility.COMPATIBILITY)
        table["A_POSITIVE"] = frozenset({"A_POSITIVE", "A_PLUS"})
        with self.assertRaises(ImproperlyConfigured):
            compatibility.validate_table(table)

    def test_unknown_donor_key_is_rejected(self):
        table = dict(compatibility.COMPATIBILITY)
        table["RH_NULL"] = frozenset({"RH_NULL"})
        with self.assertRaises(ImproperlyConfigured):
            compatibility.validate_table(table)
