import unittest
from unittest import mock

import requests

from anime_agent_backend.a2a.bridge import A2ABridge
from anime_agent_backend.a2a.client import A2AClient
from anime_agent_backend.a2a.models import AGENT_NOT_FOUND, INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST
from anime_agent_backend.agents.base import AgentResponse, AgentTool, ToolResult
from anime_agent_backend.models import VerificationRequest

from helpers import ScriptedAgent, fake_response, registry_with


def _rpc(text="Did Light say it?", request_id="req-1", **params):
    message = {"role": "user", "parts": [{"kind": "text", "text": text}], "kind": "message", "messageId": "m-1"}
    return {"jsonrpc": "2.0", "id": request_id, "method": "message/send", "params": {"message": message, **params}}


class A2ABridgeTests(unittest.TestCase):
    def setUp(self):
        self.agent = ScriptedAgent("animeAgent", "Yes, he did.", name="Anime Agent")
        self.bridge = A2ABridge(registry_with(self.agent))

    def test_rpc_returns_completed_task(self):
        response = self.bridge.handle_rpc("animeAgent", _rpc(contextId="ctx-9"))
        self.assertEqual(response.status_code, 200)
        body = response.body
        self.assertEqual(body["id"], "req-1")
        task = body["result"]
        self.assertEqual(task["kind"], "task")
        self.assertEqual(task["contextId"], "ctx-9")
        self.assertEqual(task["status"]["state"], "completed")
        self.assertEqual(task["status"]["message"]["parts"][0]["text"], "Yes, he did.")
        self.assertEqual(task["artifacts"][0]["name"], "animeAgentResponse")
        self.assertEqual([m["role"] for m in task["history"]], ["user", "agent"])
        self.assertEqual(self.agent.prompts[0][0], [{"role": "user", "content": "Did Light say it?"}])

    def test_tool_results_become_data_artifact(self):
        agent = ScriptedAgent(
            "animeAgent",
            AgentResponse(text="ok", tool_results=[ToolResult("get_random_quote", {}, {"quote": "q"})]),
        )
        task = A2ABridge(registry_with(agent)).handle_rpc("animeAgent", _rpc()).body["result"]
        self.assertEqual(task["artifacts"][1]["name"], "ToolResults")
        self.assertEqual(task["artifacts"][1]["parts"][0]["data"]["toolName"], "get_random_quote")

    def test_invalid_envelope(self):
        for body in (["not", "an", "object"], {"jsonrpc": "1.0", "id": 1}, {"jsonrpc": "2.0"}):
            with self.subTest(body=body):
                response = self.bridge.handle_rpc("animeAgent", body)
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.body["error"]["code"], INVALID_REQUEST)

    def test_unknown_agent_over_rpc(self):
        response = self.bridge.handle_rpc("nobody", _rpc())
        self.assertEqual(response.body["error"]["code"], INVALID_PARAMS)
        self.assertEqual(response.body["id"], "req-1")

    def test_invalid_params(self):
        body = {"jsonrpc": "2.0", "id": 3, "params": {"message": {"parts": "nope"}}}
        response = self.bridge.handle_rpc("animeAgent", body)
        self.assertEqual(response.body["error"]["code"], INVALID_PARAMS)

    def test_agent_failure_is_internal_error(self):
        agent = ScriptedAgent("animeAgent", RuntimeError("model exploded"))
        response = A2ABridge(registry_with(agent)).handle_rpc("animeAgent", _rpc())
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.body["error"]["code"], INTERNAL_ERROR)
        self.assertEqual(response.body["error"]["data"]["details"], "model exploded")

    def test_lenient_message_endpoint(self):
        body = {"messages": [{"role": "user", "parts": [{"kind": "text", "text": "hi"}]}]}
        response = self.bridge.handle_message("animeAgent", body)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.body["id"])
        self.assertEqual(response.body["result"]["status"]["message"]["parts"][0]["text"], "Yes, he did.")

    def test_lenient_unknown_agent(self):
        response = self.bridge.handle_message("nobody", {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.body["error"]["code"], AGENT_NOT_FOUND)

    def test_agent_card(self):
        self.agent.tools = [AgentTool("verify_anime_quote", "Verify a quote", VerificationRequest, lambda p: None)]
        card = self.bridge.agent_card("animeAgent").body["result"]
        self.assertEqual(card["name"], "Anime Agent")
        self.assertEqual(card["version"], "1.0.0")
        self.assertEqual(card["capabilities"]["tools"], [{"name": "verify_anime_quote", "description": "Verify a quote"}])
        self.assertEqual(self.bridge.agent_card("nobody").status_code, 404)


class A2AClientTests(unittest.TestCase):
    def _session(self, card_response, post_response=None):
        session = mock.Mock()
        session.get.return_value = card_response
        if isinstance(post_response, Exception):
            session.post.side_effect = post_response
        else:
            session.post.return_value = post_response
        return session

    def test_send_message_returns_agent_text(self):
        card = fake_response({"jsonrpc": "2.0", "id": 1, "result": {"name": "Anime Agent"}})
        task = fake_response(
            {
                "jsonrpc": "2.0",
                "id": "x",
                "result": {
                    "id": "task-1",
                    "status": {"state": "completed", "message": {"parts": [{"kind": "text", "text": "Hello!"}]}},
                },
            }
        )
        session = self._session(card, task)
        exchange = A2AClient("http://peer:8788/", session=session).send_message("animeAgent", "hi")

        self.assertEqual(
            exchange.to_payload(),
            {"success": True, "agentResponse": "Hello!", "taskId": "task-1", "agentName": "Anime Agent"},
        )
        self.assertEqual(session.get.call_args.args[0], "http://peer:8788/a2a/agent/animeAgent/card")
        sent = session.post.call_args.kwargs["json"]
        self.assertEqual(sent["method"], "message/send")
        self.assertEqual(sent["params"]["message"]["parts"][0]["text"], "hi")

    def test_completed_without_text(self):
        card = fake_response({"result": {"name": "Anime Agent"}})
        task = fake_response({"result": {"id": "t", "status": {"state": "completed", "message": {"parts": []}}}})
        exchange = A2AClient("http://peer", session=self._session(card, task)).send_message("animeAgent", "hi")
        self.assertEqual(exchange.agent_response, "Task completed but no response text available")

    def test_unreachable_agent(self):
        session = mock.Mock()
        session.get.side_effect = requests.ConnectionError("refused")
        exchange = A2AClient("http://peer", session=session).send_message("animeAgent", "hi")
        self.assertFalse(exchange.success)
        self.assertIn('Agent "animeAgent" not found or not accessible', exchange.error)
        session.post.assert_not_called()

    def test_rpc_error(self):
        card = fake_response({"result": {"name": "Anime Agent"}})
        failure = fake_response({"error": {"code": INTERNAL_ERROR, "message": "Internal error"}})
        exchange = A2AClient("http://peer", session=self._session(card, failure)).send_message("animeAgent", "hi")
        self.assertFalse(exchange.success)
        self.assertEqual(exchange.error, "Internal error")
        self.assertEqual(exchange.agent_name, "Anime Agent")

    def test_non_object_reply_is_a_failed_exchange(self):
        for reply in (["not", "an", "object"], "ok", 42):
            card = fake_response({"result": {"name": "Anime Agent"}})
            exchange = A2AClient("http://peer", session=self._session(card, fake_response(reply))).send_message(
                "animeAgent", "hi"
            )
            self.assertFalse(exchange.success)
            self.assertEqual(exchange.error, "Unexpected A2A response from agent")
            self.assertEqual(exchange.agent_name, "Anime Agent")

    def test_non_object_card_is_not_found(self):
        session = self._session(fake_response(["card"]))
        exchange = A2AClient("http://peer", session=session).send_message("animeAgent", "hi")
        self.assertFalse(exchange.success)
        self.assertIn("not found or not accessible", exchange.error)
        session.post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
