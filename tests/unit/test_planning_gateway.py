"""Unit tests for the treatment-planning gateway client."""

import json

import httpx
import pytest

from voxplan.core.exceptions import PlanningRequestFailedError
from voxplan.services.planning import PlanningGatewayClient, is_timeout_like
from voxplan.services.planning.gateway import build_curl

PLANS = {
    "success": True,
    "treatment_plans": [
        {"plan_id": "A", "plan_name": "Plan A", "services": [{"service_name": "PRP"}]},
        {"plan_id": "B", "plan_name": "Plan B", "products": [{"product_name": "Minoxidil"}]},
    ],
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Gateway:
    """MockTransport handler replaying scripted responses or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(gateway, settings, **kwargs):
    return PlanningGatewayClient(
        transport=httpx.MockTransport(gateway), backoff=0, settings=settings, **kwargs
    )


async def _submit(client):
    async with client:
        return await client.submit_planning_request(
            session_id="s-1", user_id="user-123", slot_id="slot-1", text="Patient reports hair loss"
        )


# ---------------------------------------------------------------------------
# is_timeout_like
# ---------------------------------------------------------------------------


class TestIsTimeoutLike:
    def test_timeouts(self):
        assert is_timeout_like(httpx.ReadTimeout("read"))
        assert is_timeout_like(httpx.ConnectTimeout("connect"))

    def test_aborted_connection(self):
        assert is_timeout_like(httpx.RemoteProtocolError("Server disconnected"))

    def test_message_mentions_timeout(self):
        assert is_timeout_like(RuntimeError("upstream Timeout while waiting"))

    def test_http_status_errors_are_not_timeouts(self):
        request = httpx.Request("POST", "https://gateway.test/orch")
        response = httpx.Response(504, request=request, text="gateway timeout")
        error = httpx.HTTPStatusError("504 timeout", request=request, response=response)

        assert not is_timeout_like(error)

    def test_other_errors(self):
        assert not is_timeout_like(httpx.ConnectError("refused"))


# ---------------------------------------------------------------------------
# submit_planning_request
# ---------------------------------------------------------------------------


class TestSubmit:
    async def test_returns_plans(self, settings):
        gateway = Gateway(httpx.Response(200, json=PLANS))

        plan_set = await _submit(_client(gateway, settings))

        assert plan_set.success is True
        assert [p.plan_name for p in plan_set.treatment_plans] == ["Plan A", "Plan B"]
        assert plan_set.treatment_plans[0].services[0].service_name == "PRP"

    async def test_accepts_null_collections_and_numeric_text(self, settings):
        body = {
            "treatment_plans": [
                {
                    "services": [{"service_name": "PRP", "specifications": None}],
                    "products": [{"product_name": "Finasteride", "dosage": 5}],
                    "lab_tests": None,
                }
            ]
        }
        gateway = Gateway(httpx.Response(200, json=body))

        plan_set = await _submit(_client(gateway, settings))

        plan = plan_set.treatment_plans[0]
        assert plan.services[0].specifications == {}
        assert plan.products[0].dosage == 5
        assert plan.lab_tests == []
        assert plan_set.raw == body

    async def test_request_body_is_snake_case(self, settings):
        gateway = Gateway(httpx.Response(200, json=PLANS))

        await _submit(_client(gateway, settings))

        request = gateway.requests[0]
        assert request.url == "https://gateway.test/orch"
        assert json.loads(request.content) == {
            "session_id": "s-1",
            "user_id": "user-123",
            "slot_id": "slot-1",
            "treatment_planner_text": "Patient reports hair loss",
        }

    async def test_retries_once_after_timeout(self, settings):
        gateway = Gateway(httpx.ReadTimeout("read timed out"), httpx.Response(200, json=PLANS))

        plan_set = await _submit(_client(gateway, settings))

        assert len(gateway.requests) == 2
        assert len(plan_set.treatment_plans) == 2

    async def test_gives_up_after_max_attempts(self, settings):
        gateway = Gateway(httpx.ReadTimeout("first"), httpx.ReadTimeout("second"))

        with pytest.raises(PlanningRequestFailedError) as exc_info:
            await _submit(_client(gateway, settings))

        assert len(gateway.requests) == 2
        assert exc_info.value.timed_out
        assert exc_info.value.status_code == 504

    async def test_http_error_is_not_retried(self, settings):
        gateway = Gateway(httpx.Response(400, json={"message": "bad slot"}))

        with pytest.raises(PlanningRequestFailedError) as exc_info:
            await _submit(_client(gateway, settings))

        assert len(gateway.requests) == 1
        assert exc_info.value.details == {"message": "bad slot"}
        assert not exc_info.value.timed_out
        assert exc_info.value.status_code == 500

    async def test_connection_error_is_not_retried(self, settings):
        gateway = Gateway(httpx.ConnectError("refused"))

        with pytest.raises(PlanningRequestFailedError) as exc_info:
            await _submit(_client(gateway, settings))

        assert len(gateway.requests) == 1
        assert not exc_info.value.timed_out

    async def test_invalid_json_is_reported(self, settings):
        gateway = Gateway(httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(PlanningRequestFailedError) as exc_info:
            await _submit(_client(gateway, settings))

        assert exc_info.value.details == "<html>oops</html>"

    async def test_logs_truncated_preview_and_attempt_summary(self, settings, caplog):
        gateway = Gateway(httpx.Response(200, json=PLANS))
        client = _client(gateway, settings)
        caplog.set_level("DEBUG", logger="voxplan.services.planning.gateway")

        async with client:
            await client.submit_planning_request("s-1", "user-123", "slot-1", "x" * 1000)

        assert "[truncated 600 chars]" in caplog.text
        assert "curl --location 'https://gateway.test/orch'" in caplog.text
        assert "plans_returned=2" in caplog.text
        # The full text is still sent
        assert json.loads(gateway.requests[0].content)["treatment_planner_text"] == "x" * 1000

    async def test_max_attempts_override(self, settings):
        gateway = Gateway(
            httpx.ReadTimeout("1"), httpx.ReadTimeout("2"), httpx.Response(200, json=PLANS)
        )

        await _submit(_client(gateway, settings, max_attempts=3))

        assert len(gateway.requests) == 3


# ---------------------------------------------------------------------------
# build_curl
# ---------------------------------------------------------------------------


def test_build_curl_reproduces_request():
    curl = build_curl("https://gateway.test/orch", {"session_id": "s-1"})

    assert curl.startswith("curl --location 'https://gateway.test/orch'")
    assert "--header 'Content-Type: application/json'" in curl
    assert '"session_id": "s-1"' in curl
