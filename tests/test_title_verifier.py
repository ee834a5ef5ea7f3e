import asyncio
import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.config import AIConfig  # noqa: E402
from app.certificates.title_verifier import (  # noqa: E402
    TitleVerifier,
    build_user_prompt,
    parse_verdict,
    strip_code_fence,
)


def _verdict_json(**overrides):
    payload = {
        "isAppropriate": True,
        "inappropriateReason": "",
        "isRelevant": True,
        "confidence": 88,
        "relationship": "subset",
        "certificateTitle": "Web Development Fundamentals",
        "reason": "Advanced web development builds on the certificate topic.",
    }
    payload.update(overrides)
    return json.dumps(payload)


class FakeAIClient:
    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.messages = None

    async def complete(self, messages):
        self.messages = list(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class VerdictParsingTests(unittest.TestCase):
    def test_strips_json_code_fence(self):
        fenced = "```json\n" + _verdict_json() + "\n```"
        self.assertEqual(strip_code_fence(fenced), _verdict_json())
        self.assertEqual(strip_code_fence("```\n{}\n```"), "{}")
        self.assertEqual(strip_code_fence("  {}  "), "{}")

    def test_parses_camel_case_record(self):
        verdict = parse_verdict("```json\n" + _verdict_json() + "\n```")
        self.assertTrue(verdict.is_relevant)
        self.assertTrue(verdict.success)
        self.assertEqual(verdict.relationship, "subset")
        self.assertEqual(verdict.confidence, 88)
        self.assertEqual(verdict.certificate_title, "Web Development Fundamentals")

    def test_unrelated_relationship_is_never_relevant(self):
        verdict = parse_verdict(_verdict_json(relationship="Unrelated", isRelevant=True))
        self.assertEqual(verdict.relationship, "unrelated")
        self.assertFalse(verdict.is_relevant)
        self.assertFalse(verdict.success)

    def test_confidence_is_clamped(self):
        self.assertEqual(parse_verdict(_verdict_json(confidence=140)).confidence, 100)
        self.assertEqual(parse_verdict(_verdict_json(confidence="72.6")).confidence, 73)

    def test_malformed_payloads_raise_value_error(self):
        bad_payloads = [
            "",
            "Sure! Here is the answer.",
            "[1, 2, 3]",
            json.dumps({"isAppropriate": True, "isRelevant": True}),
            _verdict_json(relationship="cousin"),
            _verdict_json(confidence="high"),
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    parse_verdict(payload)


class PromptTests(unittest.TestCase):
    def test_prompt_truncates_certificate_text(self):
        prompt = build_user_prompt("A" * 5000, "  Advanced Web Development ", max_chars=3000)
        self.assertIn('"Advanced Web Development"', prompt)
        self.assertIn("A" * 3000, prompt)
        self.assertNotIn("A" * 3001, prompt)
        for field in ("isAppropriate", "inappropriateReason", "isRelevant", "confidence", "relationship", "certificateTitle"):
            self.assertIn(field, prompt)


class TitleVerifierTests(unittest.IsolatedAsyncioTestCase):
    async def test_relevant_title(self):
        client = FakeAIClient(response="```json\n" + _verdict_json() + "\n```")
        verifier = TitleVerifier(client, max_chars=3000, timeout_s=5)

        verdict = await verifier.verify("WEB DEVELOPMENT FUNDAMENTALS certificate", "Advanced Web Development")

        self.assertTrue(verdict.success)
        self.assertIn(verdict.relationship, {"related", "subset"})
        self.assertEqual([m.role for m in client.messages], ["system", "user"])
        self.assertIn("Advanced Web Development", client.messages[1].content)

    async def test_missing_credentials_fail_without_a_call(self):
        verifier = TitleVerifier.from_config(AIConfig(provider="openai", model="gpt-4o-mini", api_key=None))
        self.assertFalse(verifier.configured)

        verdict = await verifier.verify("anything", "Professional Cooking")

        self.assertFalse(verdict.is_relevant)
        self.assertFalse(verdict.is_appropriate)
        self.assertEqual(verdict.confidence, 0)
        self.assertFalse(verdict.success)

    async def test_unsupported_provider_is_treated_as_unconfigured(self):
        with self.assertLogs("app.certificates.title_verifier", level="ERROR"):
            verifier = TitleVerifier.from_config(AIConfig(provider="gemini", model="gemini-pro", api_key="sk-real"))
        self.assertFalse(verifier.configured)

        verdict = await verifier.verify("anything", "Python")

        self.assertTrue(verdict.review_unavailable)
        self.assertFalse(verdict.is_appropriate)
        self.assertEqual(verdict.inappropriate_reason, "")
        self.assertEqual(verdict.confidence, 0)

    async def test_transport_failure_is_not_flagged_inappropriate(self):
        verifier = TitleVerifier(FakeAIClient(error=ConnectionError("connection reset")), timeout_s=5)
        verdict = await verifier.verify("text", "Python Basics")
        self.assertTrue(verdict.is_appropriate)
        self.assertFalse(verdict.is_relevant)
        self.assertEqual(verdict.confidence, 0)
        self.assertIsNone(verdict.relationship)

    async def test_unparseable_response_is_not_flagged_inappropriate(self):
        verifier = TitleVerifier(FakeAIClient(response="I think it is fine."), timeout_s=5)
        verdict = await verifier.verify("text", "Python Basics")
        self.assertTrue(verdict.is_appropriate)
        self.assertFalse(verdict.success)

    async def test_slow_inference_times_out(self):
        verifier = TitleVerifier(FakeAIClient(response=_verdict_json(), delay=1.0), timeout_s=0.05)
        verdict = await verifier.verify("text", "Python Basics")
        self.assertTrue(verdict.is_appropriate)
        self.assertFalse(verdict.is_relevant)

    async def test_inappropriate_title(self):
        response = _verdict_json(isAppropriate=False, inappropriateReason="contains a slur", relationship="unrelated", isRelevant=False, confidence=95)
        verdict = await TitleVerifier(FakeAIClient(response=response)).verify("text", "bad title")
        self.assertFalse(verdict.is_appropriate)
        self.assertEqual(verdict.inappropriate_reason, "contains a slur")


if __name__ == "__main__":
    unittest.main()
