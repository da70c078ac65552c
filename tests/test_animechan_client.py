import unittest

import requests

from anime_agent_backend.errors import UnexpectedResponseFormat, UpstreamServiceError
from anime_agent_backend.sources.animechan import AnimechanClient

from helpers import fake_response, fake_session

BASE_URL = "https://api.animechan.io/v1"


class AnimechanClientTests(unittest.TestCase):
    def test_quotes_by_character_request_and_parse(self):
        session = fake_session(
            fake_response({"status": "success", "data": [{"content": "Believe it!", "anime": {"name": "Naruto"}, "character": {"name": "Naruto"}}]})
        )
        client = AnimechanClient(BASE_URL + "/", session=session, timeout=5)
        page = client.get_quotes_by_character("Naruto", page=2)

        self.assertEqual(page.page, 2)
        self.assertEqual(page.quotes[0].text, "Believe it!")
        session.get.assert_called_once_with(
            f"{BASE_URL}/quotes/",
            params={"character": "Naruto", "page": 2},
            headers={"Content-Type": "application/json"},
            timeout=5,
        )

    def test_per_call_key_overrides_default(self):
        session = fake_session(fake_response([]), fake_response([]))
        client = AnimechanClient(BASE_URL, api_key="default", session=session)
        client.get_quotes_by_anime("Naruto")
        client.get_quotes_by_anime("Naruto", api_key="supporter")

        first_headers = session.get.call_args_list[0].kwargs["headers"]
        second_headers = session.get.call_args_list[1].kwargs["headers"]
        self.assertEqual(first_headers["x-api-key"], "default")
        self.assertEqual(second_headers["x-api-key"], "supporter")
        self.assertEqual(session.get.call_args_list[0].kwargs["params"], {"anime": "Naruto", "page": 1})

    def test_random_quote(self):
        session = fake_session(fake_response({"status": "success", "data": {"content": "Hello", "anime": {"name": "A"}, "character": {"name": "B"}}}))
        record = AnimechanClient(BASE_URL, session=session).get_random_quote()
        self.assertEqual(record.to_payload(), {"quote": "Hello", "anime": "A", "character": "B"})
        self.assertEqual(session.get.call_args.args[0], f"{BASE_URL}/quotes/random")

    def test_error_body_is_surfaced(self):
        session = fake_session(fake_response({"error": "Rate limit exceeded"}, status_code=429))
        client = AnimechanClient(BASE_URL, session=session)
        with self.assertRaises(UpstreamServiceError) as ctx:
            client.get_quotes_by_anime("Naruto")
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(str(ctx.exception), 'Failed to fetch quotes for anime "Naruto": Rate limit exceeded')

    def test_status_fallback_message(self):
        session = fake_session(fake_response(invalid_json=True, status_code=500))
        with self.assertRaises(UpstreamServiceError) as ctx:
            AnimechanClient(BASE_URL, session=session).get_random_quote()
        self.assertEqual(str(ctx.exception), "Failed to fetch random quote: API request failed with status 500")

    def test_transport_failure(self):
        session = fake_session(requests.ConnectionError("connection refused"))
        with self.assertRaises(UpstreamServiceError):
            AnimechanClient(BASE_URL, session=session).get_quotes_by_character("L")

    def test_unknown_shape(self):
        session = fake_session(fake_response({"unexpected": True}))
        with self.assertRaises(UnexpectedResponseFormat) as ctx:
            AnimechanClient(BASE_URL, session=session).get_quotes_by_anime("Naruto")
        self.assertIn('Failed to fetch quotes for anime "Naruto"', str(ctx.exception))
        self.assertNotIsInstance(ctx.exception, UpstreamServiceError)


if __name__ == "__main__":
    unittest.main()
