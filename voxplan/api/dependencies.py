"""FastAPI dependencies that hand routes their upstream clients.

Each request gets its own client, closed when the response is sent. Tests
swap these out through ``app.dependency_overrides``.
"""

from collections.abc import AsyncIterator

from voxplan.core.config import get_settings
from voxplan.services.planning import PlanningGatewayClient
from voxplan.services.transcription.assemblyai import AssemblyAIClient


async def get_assemblyai_client() -> AsyncIterator[AssemblyAIClient]:
    """Yield an AssemblyAI client (raises ``MissingAPIKeyError`` without a key)."""
    client = AssemblyAIClient(settings=get_settings())
    try:
        yield client
    finally:
        await client.aclose()


async def get_planning_client() -> AsyncIterator[PlanningGatewayClient]:
    client = PlanningGatewayClient(settings=get_settings())
    try:
        yield client
    finally:
        await client.aclose()
