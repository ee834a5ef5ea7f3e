import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.certificates.matching import (  # noqa: E402
    edit_distance,
    match_credential,
    normalize_credential_text,
    ocr_confusion_variants,
    similarity,
    verify_credential_id,
)

CERTIFICATE_TEXT = (
    "CERTIFICATE OF COMPLETION\n"
    "This certifies that Jane Doe has completed Web Development Fundamentals\n"
    "Issued 2024-03-01   ID: ABC-123-XYZ\n"
)


class NormalizationTests(unittest.TestCase):
    def test_strips_whitespace_punctuation_and_case(self):
        self.assertEqual(normalize_credential_text(" ID: Abc-12 3_XY.z\n"), "idabc-123xyz")

    def test_empty_and_none_inputs(self):
        self.assertEqual(normalize_credential_text(""), "")
        self.assertEqual(normalize_credential_text(None), "")


class CredentialMatchTests(unittest.TestCase):
    def test_direct_match_on_certificate_text(self):
        result = match_credential(CERTIFICATE_TEXT, "ABC-123-XYZ")
        self.assertTrue(result.found)
        self.assertEqual(result.method, "direct")

    def test_direct_match_ignores_spacing_in_claim(self):
        self.assertTrue(verify_credential_id(CERTIFICATE_TEXT, "abc - 123 - xyz"))

    def test_ocr_confusion_l_for_one(self):
        corpus = "CERTIFICATE OF COMPLETION\nID: ABC-l23-XYZ"
        result = match_credential(corpus, "ABC-123-XYZ")
        self.assertTrue(result.found)
        self.assertEqual(result.method, "ocr_variant")
        self.assertEqual(result.matched_text, "abc-l23-xyz")

    def test_ocr_confusion_letter_o_for_zero(self):
        self.assertTrue(verify_credential_id("Credential CRED-01O issued", "CRED-010"))

    def test_fuzzy_window_tolerates_single_misread(self):
        corpus = "Credential ID UDEMY-7Q4K-99XZ-TT21 verified"
        result = match_credential(corpus, "UDEMY-7Q4K-99XZ-TT27")
        self.assertTrue(result.found)
        self.assertEqual(result.method, "fuzzy")
        self.assertGreaterEqual(result.similarity, 0.85)

    def test_unrelated_identifier_does_not_match(self):
        result = match_credential(CERTIFICATE_TEXT, "QQQ-987-WWW")
        self.assertFalse(result.found)
        self.assertEqual(result.method, "none")
        self.assertLess(result.similarity, 0.85)

    def test_claim_longer_than_corpus_does_not_raise(self):
        result = match_credential("AB-1", "ABCDEFGHIJKLMNOPQRSTUVWXYZ-0123456789")
        self.assertFalse(result.found)
        self.assertEqual(result.similarity, 0.0)

    def test_claim_that_normalizes_to_empty_never_matches(self):
        self.assertFalse(verify_credential_id(CERTIFICATE_TEXT, " .:; "))

    def test_empty_corpus_never_matches(self):
        self.assertFalse(verify_credential_id("", "ABC-123-XYZ"))


class ConfusionVariantTests(unittest.TestCase):
    def test_each_variant_applies_one_substitution_globally(self):
        variants = ocr_confusion_variants("a0o1")
        self.assertIn("aoo1", variants)
        self.assertIn("a001", variants)
        self.assertIn("a0oi", variants)
        self.assertIn("a0ol", variants)
        self.assertNotIn("aooi", variants)

    def test_no_variants_without_confusable_characters(self):
        self.assertEqual(ocr_confusion_variants("xyz-"), [])


class SimilarityTests(unittest.TestCase):
    def test_identity_and_symmetry(self):
        pairs = [("kitten", "sitting"), ("abc-123", "abc-l23"), ("", "abc"), ("flaw", "lawn")]
        for left, right in pairs:
            with self.subTest(left=left, right=right):
                self.assertEqual(similarity(left, right), similarity(right, left))
                self.assertGreaterEqual(similarity(left, right), 0.0)
                self.assertLessEqual(similarity(left, right), 1.0)
        self.assertEqual(similarity("abc-123", "abc-123"), 1.0)
        self.assertEqual(similarity("", ""), 1.0)

    def test_edit_distance_counts_insert_delete_substitute(self):
        self.assertEqual(edit_distance("kitten", "sitting"), 3)
        self.assertEqual(edit_distance("", "abc"), 3)
        self.assertAlmostEqual(similarity("kitten", "sitting"), 1 - 3 / 7)


if __name__ == "__main__":
    unittest.main()
