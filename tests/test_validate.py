import unittest

from jobboard.core.errors import MissingApplyContact, MissingField, UnknownMetro
from jobboard.core.metros import DEFAULT_METROS, resolve_metro
from jobboard.core.validate import JobDraft, draft_problems, validate_draft

PORTLAND = DEFAULT_METROS["portland-or"]


class ValidateDraftTests(unittest.TestCase):
    def test_blue_door_draft_is_valid(self):
        draft = JobDraft(
            cafe_name="Blue Door",
            role="Barista",
            pay="$18/hr",
            apply_email="hr@bluedoor.com",
        )
        result = validate_draft(draft, resolve_metro(DEFAULT_METROS, "portland-or"))
        self.assertEqual(result.metro_slug, "portland-or")
        self.assertEqual(result.city, "Portland")
        self.assertEqual(result.state, "OR")
        self.assertEqual(result.apply_email, "hr@bluedoor.com")
        self.assertIsNone(result.apply_url)
        self.assertFalse(result.requested_pinned)

    def test_unknown_metro_fails_first(self):
        with self.assertRaises(UnknownMetro):
            validate_draft(JobDraft(), resolve_metro(DEFAULT_METROS, "seattle-wa"))

    def test_missing_fields_reported_in_order(self):
        draft = JobDraft(cafe_name="  ", role="Barista", pay="", apply_url="https://x.test")
        with self.assertRaises(MissingField) as ctx:
            validate_draft(draft, PORTLAND)
        self.assertEqual(ctx.exception.field, "cafe_name")

        draft = JobDraft(cafe_name="Blue Door", role="Barista", pay="   ", apply_url="https://x.test")
        with self.assertRaises(MissingField) as ctx:
            validate_draft(draft, PORTLAND)
        self.assertEqual(ctx.exception.field, "pay")

    def test_missing_both_apply_contacts(self):
        for url, email in ((None, None), ("", ""), ("  ", None), (None, "\t")):
            draft = JobDraft(cafe_name="Blue Door", role="Barista", pay="$18/hr", apply_url=url, apply_email=email)
            with self.subTest(url=url, email=email):
                with self.assertRaises(MissingApplyContact):
                    validate_draft(draft, PORTLAND)

    def test_either_or_both_contacts_pass(self):
        for url, email in (("https://bluedoor.com/jobs", None), (None, "hr@bluedoor.com"),
                           ("https://bluedoor.com/jobs", "hr@bluedoor.com")):
            draft = JobDraft(cafe_name="Blue Door", role="Barista", pay="$18/hr", apply_url=url, apply_email=email)
            with self.subTest(url=url, email=email):
                validate_draft(draft, PORTLAND)

    def test_normalization_trims_and_drops_blank_optionals(self):
        draft = JobDraft(
            cafe_name="  Blue Door ",
            role=" Shift Lead",
            pay=" $20/hr + tips ",
            hours="   ",
            neighborhood=" SE ",
            apply_url=" https://bluedoor.com/jobs ",
            apply_email="",
            description="\n",
            contact_email=" owner@bluedoor.com",
            requested_pinned=True,
        )
        result = validate_draft(draft, PORTLAND)
        self.assertEqual(result.cafe_name, "Blue Door")
        self.assertEqual(result.role, "Shift Lead")
        self.assertEqual(result.pay, "$20/hr + tips")
        self.assertIsNone(result.hours)
        self.assertEqual(result.neighborhood, "SE")
        self.assertEqual(result.apply_url, "https://bluedoor.com/jobs")
        self.assertIsNone(result.apply_email)
        self.assertIsNone(result.description)
        self.assertEqual(result.contact_email, "owner@bluedoor.com")
        self.assertTrue(result.requested_pinned)

    def test_draft_problems_lists_everything(self):
        problems = draft_problems(JobDraft(), None)
        codes = [p.code for p in problems]
        self.assertEqual(
            codes,
            ["unknown_metro", "missing_field", "missing_field", "missing_field", "missing_apply_contact"],
        )
        self.assertEqual([p.field for p in problems if isinstance(p, MissingField)], ["cafe_name", "role", "pay"])

    def test_resolve_metro_is_case_insensitive(self):
        self.assertEqual(resolve_metro(DEFAULT_METROS, " Portland-OR "), PORTLAND)
        self.assertIsNone(resolve_metro(DEFAULT_METROS, ""))
        self.assertIsNone(resolve_metro({}, "portland-or"))


if __name__ == "__main__":
    unittest.main()
