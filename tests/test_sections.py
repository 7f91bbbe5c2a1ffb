import pytest
from httpx import AsyncClient

from app.core.enums import UserRole

from conftest import ADMIN_USER_ID, SECTION_A_USER_ID, TEACHER_USER_ID


@pytest.mark.asyncio
async def test_close_planning_flow(client: AsyncClient, headers, planning) -> None:
    section_a = headers(SECTION_A_USER_ID, UserRole.SECTION)

    status_before = await client.get("/api/v1/sections/me/planning-closed", headers=section_a)
    assert status_before.json() == {"section_id": planning.section_a.id, "planning_closed": False}

    closed = await client.post("/api/v1/sections/me/close-planning", headers=section_a)
    assert closed.status_code == 200
    assert closed.json()["planning_closed"] is True

    stats = await client.get("/api/v1/sections/planning-status", headers=headers(ADMIN_USER_ID, UserRole.ADMIN))
    assert stats.json() == {"total_sections": 2, "closed": 1, "open": 1}


@pytest.mark.asyncio
async def test_section_user_without_section_row_is_forbidden(client: AsyncClient, headers, planning) -> None:
    response = await client.get("/api/v1/sections/me/planning-closed", headers=headers(4321, UserRole.SECTION))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_teacher_cannot_close_planning(client: AsyncClient, headers, planning) -> None:
    response = await client.post("/api/v1/sections/me/close-planning", headers=headers(TEACHER_USER_ID, UserRole.TEACHER))
    assert response.status_code == 403
