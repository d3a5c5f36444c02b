"""Integration test fixtures for VoxPlan.

Provides an async HTTP client bound to a fresh app whose upstream clients
(AssemblyAI, planning gateway) are replaced through dependency overrides.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from voxplan.api.app import create_app
from voxplan.api.dependencies import get_assemblyai_client, get_planning_client
from voxplan.services.planning import PlanningGatewayClient
from voxplan.services.transcription.assemblyai import AssemblyAIClient


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
def assemblyai(app):
    """Mocked AssemblyAI client injected into the transcription routes."""
    client = AsyncMock(spec=AssemblyAIClient)
    client.upload_audio.return_value = "https://cdn.assemblyai.test/upload/abc"
    client.start_job.return_value = "tx-1"
    client.get_transcript.return_value = {"id": "tx-1", "status": "processing", "text": None}
    app.dependency_overrides[get_assemblyai_client] = lambda: client
    return client


@pytest.fixture
def planner(app):
    """Mocked planning gateway client injected into the planning route."""
    client = AsyncMock(spec=PlanningGatewayClient)
    app.dependency_overrides[get_planning_client] = lambda: client
    return client


@pytest.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
