import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import AdminActor, SectionActor, TeacherActor
from app.core.models import TeacherAssignment
from app.core.scope import Ownership, ScopeResolver, filter_visible, visible


def test_admin_sees_everything() -> None:
    assert visible(AdminActor(), Ownership())
    assert visible(AdminActor(), Ownership(section_id=3, teacher_id=9))


def test_section_sees_only_its_own_section() -> None:
    actor = SectionActor(section_id=3)
    assert visible(actor, Ownership(section_id=3))
    assert not visible(actor, Ownership(section_id=4))
    assert not visible(actor, Ownership(teacher_id=3))


def test_teacher_sees_only_its_own_assignments() -> None:
    actor = TeacherActor(teacher_id=9)
    assert visible(actor, Ownership(section_id=3, teacher_id=9))
    assert not visible(actor, Ownership(section_id=3, teacher_id=8))
    assert not visible(actor, Ownership(section_id=9))


@pytest.mark.asyncio
async def test_filter_visible_keeps_input_order() -> None:
    owners = {"c": 1, "a": 2, "b": 1, "d": 1}

    async def ownership_of(item: str) -> Ownership:
        return Ownership(section_id=owners[item])

    kept = await filter_visible(SectionActor(section_id=1), ["c", "a", "b", "d"], ownership_of)
    assert kept == ["c", "b", "d"]

    everything = await filter_visible(AdminActor(), ["c", "a", "b", "d"], ownership_of)
    assert everything == ["c", "a", "b", "d"]


@pytest.mark.asyncio
async def test_resolver_maps_classes_and_assignments_to_sections(
    db_session: AsyncSession, planning, make_class
) -> None:
    class_a = await make_class(planning.course_a.id, planning.semester.id)
    class_b = await make_class(planning.course_b.id, planning.semester.id)
    assignment = TeacherAssignment(teacher_id=planning.teacher.id, class_id=class_b.id, semester_id=planning.semester.id)
    db_session.add(assignment)
    await db_session.commit()

    resolver = ScopeResolver(db_session)
    section_a = SectionActor(section_id=planning.section_a.id)
    section_b = SectionActor(section_id=planning.section_b.id)

    assert await resolver.can_see_class(section_a, class_a)
    assert not await resolver.can_see_class(section_a, class_b)
    assert await resolver.can_see_assignment(section_b, assignment)
    assert not await resolver.can_see_assignment(section_a, assignment)
    assert await resolver.can_see_assignment(TeacherActor(teacher_id=planning.teacher.id), assignment)
    assert not await resolver.can_see_assignment(TeacherActor(teacher_id=planning.other_teacher.id), assignment)
    assert await resolver.section_for_class(9999) is None
