import unittest

from anime_agent_backend.config import VerificationSettings
from anime_agent_backend.errors import UnexpectedResponseFormat, UpstreamServiceError
from anime_agent_backend.models import Confidence, MatchType, QuotePage, QuoteRecord, VerificationRequest
from anime_agent_backend.verification.pipeline import QuoteVerificationPipeline
from anime_agent_backend.verification.verdict import NO_INPUT_MESSAGE, NOT_FOUND_MESSAGE


class FakeQuoteSource:
    """Returns canned pages, or raises a canned error, per lookup dimension."""

    def __init__(self, by_character=None, by_anime=None):
        self.by_character = by_character or {}
        self.by_anime = by_anime or {}
        self.calls = []

    def _answer(self, table, key):
        value = table.get(key, [])
        if isinstance(value, Exception):
            raise value
        return QuotePage(quotes=value, page=1)

    def get_quotes_by_character(self, character, page=1, api_key=None):
        self.calls.append(("character", character, page, api_key))
        return self._answer(self.by_character, character)

    def get_quotes_by_anime(self, anime, page=1, api_key=None):
        self.calls.append(("anime", anime, page, api_key))
        return self._answer(self.by_anime, anime)


def _quote(text, character="Light Yagami", anime="Death Note"):
    return QuoteRecord(text=text, character=character, anime=anime)


LUFFY_QUOTES = [
    _quote("I'm gonna be King of the Pirates!", "Monkey D. Luffy", "One Piece"),
    _quote("I don't want to conquer anything.", "Monkey D. Luffy", "One Piece"),
    _quote("If you don't take risks, you can't create a future!", "Monkey D. Luffy", "One Piece"),
]


class QuoteVerificationPipelineTests(unittest.TestCase):
    def _pipeline(self, source, concurrent=True):
        return QuoteVerificationPipeline(source, VerificationSettings(concurrent_lookups=concurrent))

    def test_exact_quote_from_character(self):
        source = FakeQuoteSource(by_character={"Light Yagami": [_quote("I'll become the god of this new world")]})
        verdict = self._pipeline(source).verify(
            VerificationRequest(quote="I'll become the god of this new world", character="Light Yagami")
        )
        self.assertTrue(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.HIGH)
        self.assertEqual(len(verdict.matches), 1)
        self.assertEqual(verdict.matches[0].match_type, MatchType.EXACT)

    def test_unrelated_quote_is_rejected_with_high_confidence(self):
        source = FakeQuoteSource(by_character={"Luffy": LUFFY_QUOTES})
        verdict = self._pipeline(source).verify(
            VerificationRequest(quote="something totally unrelated to any quote", character="Luffy")
        )
        self.assertFalse(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.HIGH)
        self.assertEqual(verdict.matches, [])
        self.assertEqual(verdict.message, NOT_FOUND_MESSAGE)

    def test_character_only_lists_evidence(self):
        quotes = [_quote(f"Naruto line {i}", "Naruto Uzumaki", "Naruto") for i in range(4)]
        source = FakeQuoteSource(by_character={"Naruto Uzumaki": quotes})
        verdict = self._pipeline(source).verify(VerificationRequest(character="Naruto Uzumaki"))
        self.assertTrue(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.MEDIUM)
        self.assertEqual(verdict.message, "Found 4 quote(s) for the specified criteria.")
        self.assertEqual([m.record for m in verdict.matches], quotes)
        self.assertTrue(all(m.match_type is None for m in verdict.matches))

    def test_empty_lookups_give_medium_rejection(self):
        source = FakeQuoteSource()
        verdict = self._pipeline(source).verify(
            VerificationRequest(quote="Believe it!", character="Nobody", anime="Nothing")
        )
        self.assertFalse(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.MEDIUM)

    def test_no_input_skips_lookups(self):
        source = FakeQuoteSource()
        verdict = self._pipeline(source).verify(VerificationRequest())
        self.assertFalse(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.LOW)
        self.assertEqual(verdict.message, NO_INPUT_MESSAGE)
        self.assertEqual(source.calls, [])

    def test_quote_without_character_or_anime_has_empty_pool(self):
        source = FakeQuoteSource()
        verdict = self._pipeline(source).verify(VerificationRequest(quote="Believe it!"))
        self.assertFalse(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.MEDIUM)
        self.assertEqual(source.calls, [])

    def test_failed_lookup_contributes_nothing(self):
        source = FakeQuoteSource(
            by_character={"Light Yagami": UpstreamServiceError("API request failed with status 429", status_code=429)},
            by_anime={"Death Note": [_quote("I'll become the god of this new world")]},
        )
        verdict = self._pipeline(source, concurrent=False).verify(
            VerificationRequest(
                quote="I'll become the god of this new world",
                character="Light Yagami",
                anime="Death Note",
            )
        )
        self.assertTrue(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.HIGH)

    def test_unrecognized_payload_becomes_error_verdict(self):
        source = FakeQuoteSource(by_character={"Light Yagami": UnexpectedResponseFormat()})
        verdict = self._pipeline(source).verify(VerificationRequest(quote="anything", character="Light Yagami"))
        self.assertFalse(verdict.verified)
        self.assertEqual(verdict.confidence, Confidence.LOW)
        self.assertEqual(verdict.message, "Error during verification: Unexpected API response format")

    def test_lookups_forward_api_key_and_first_page(self):
        source = FakeQuoteSource()
        self._pipeline(source, concurrent=False).verify(
            VerificationRequest(quote="x", character="L", anime="Death Note", api_key="supporter")
        )
        self.assertEqual(
            source.calls,
            [("character", "L", 1, "supporter"), ("anime", "Death Note", 1, "supporter")],
        )

    def test_duplicate_text_across_lookups_counts_once(self):
        shared = "I'll become the god of this new world"
        source = FakeQuoteSource(
            by_character={"Light Yagami": [_quote(shared)]},
            by_anime={"Death Note": [_quote(shared, character="Kira"), _quote("I am justice!")]},
        )
        verdict = self._pipeline(source).verify(
            VerificationRequest(quote=shared, character="Light Yagami", anime="Death Note")
        )
        self.assertEqual(len(verdict.matches), 1)
        self.assertEqual(verdict.matches[0].record.character, "Light Yagami")
        self.assertEqual(verdict.message, "Quote verified! Found 1 exact match(es).")

    def test_repeated_verification_gives_identical_verdicts(self):
        source = FakeQuoteSource(
            by_character={"Monkey D. Luffy": LUFFY_QUOTES},
            by_anime={"One Piece": LUFFY_QUOTES[1:] + [_quote("I'm gonna be King of the Pirates", "Luffy", "One Piece")]},
        )
        request = VerificationRequest(
            quote="I'm gonna be King of the Pirates!", character="Monkey D. Luffy", anime="One Piece"
        )
        for concurrent in (True, False):
            with self.subTest(concurrent=concurrent):
                pipeline = self._pipeline(source, concurrent=concurrent)
                first = pipeline.verify(request)
                second = pipeline.verify(request)
                self.assertEqual(first, second)
                self.assertEqual(first.to_payload(), second.to_payload())
                self.assertTrue(first.verified)

        sequential = self._pipeline(source, concurrent=False).verify(request)
        concurrent = self._pipeline(source, concurrent=True).verify(request)
        self.assertEqual(sequential, concurrent)

    def test_camel_case_request_body(self):
        request = VerificationRequest.model_validate({"quote": "q", "apiKey": "k"})
        self.assertEqual(request.api_key, "k")


if __name__ == "__main__":
    unittest.main()
