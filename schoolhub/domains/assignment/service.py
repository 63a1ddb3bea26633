# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher assignment service for section/subject teaching assignments.

This module provides the TeacherAssignmentService class for:
- Assigning a teacher to a (section, subject) pair, singly or in bulk
- Reassigning, deactivating and deleting assignments
- Teacher schedule and workload aggregation
- Assignment read models: teachers by subject, section teachers,
  available teachers, unassigned combinations, school analytics

Each (section, subject) pair has at most one active assignment. Inactive
rows are kept as history. The partial unique index on
section_subject_teachers(section_id, subject_id) WHERE is_active is the
last line of defense against concurrent writers.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.domains.class_.service import SectionNotFoundError
from schoolhub.domains.errors import ConflictError, DomainError, InvalidStateError, NotFoundError
from schoolhub.domains.identity.service import IdentityDirectory, TeacherNotFoundError
from schoolhub.domains.school.service import get_school_by_code
from schoolhub.domains.session.service import SessionNotFoundError
from schoolhub.domains.subject.service import SubjectNotFoundError
from schoolhub.infrastructure.database.models import (
    AcademicSession,
    AuthUser,
    Class,
    ClassSubject,
    School,
    Section,
    SectionSubjectTeacher,
    StudentEnrollment,
    Subject,
)
from schoolhub.models.assignment import (
    AnalyticsOverview,
    AnalyticsSchool,
    AssignmentResponse,
    AssignmentSection,
    AssignmentUpdateRequest,
    AssignTeacherRequest,
    BulkAssignTeachersRequest,
    ScheduleGroup,
    ScheduleSection,
    ScheduleSubject,
    ScheduleTeacher,
    SectionGap,
    SectionTeachersResponse,
    SubjectCoverage,
    SubjectCoverageEntry,
    SubjectTeacherGroup,
    TaughtSection,
    TeacherScheduleResponse,
    TeachersBySubjectResponse,
    TeacherWorkload,
    TeacherWorkloadEntry,
    TeachingAnalyticsResponse,
    UnassignedCombinationsResponse,
    UnassignedSection,
    WorkloadDistribution,
    WorkloadStats,
)
from schoolhub.models.common import (
    ClassSummary,
    SubjectSummary,
    TeacherProfile,
    UserContact,
    UserSummary,
)
from schoolhub.models.session import SessionSummary
from schoolhub.models.subject import SubjectTeacherEntry

logger = logging.getLogger(__name__)


class AssignmentNotFoundError(NotFoundError):
    """Raised when an assignment is not found."""

    code = "assignment_not_found"


class SubjectNotInCatalogError(InvalidStateError):
    """Raised when the section's class does not teach the subject."""

    code = "subject_not_in_class_catalog"


class AssignmentConflictError(ConflictError):
    """Raised when the (section, subject) pair already has an active teacher.

    Attributes:
        current_teacher_id: Teacher holding the active assignment.
    """

    code = "assignment_conflict"

    def __init__(
        self,
        section_id: int,
        subject_id: int,
        current_teacher_id: int,
        assignment_id: int | None = None,
    ) -> None:
        super().__init__(
            f"Subject {subject_id} in section {section_id} is already taught by "
            f"teacher {current_teacher_id}",
            details={
                "sectionId": section_id,
                "subjectId": subject_id,
                "currentTeacherId": current_teacher_id,
                "assignmentId": assignment_id,
            },
        )
        self.current_teacher_id = current_teacher_id


class TeacherAlreadyAssignedError(ConflictError):
    """Raised when the teacher already holds the pair's active assignment."""

    code = "teacher_already_assigned"


def workload_level(assignment_count: int) -> str:
    """Bucket a teacher by active assignment count.

    Args:
        assignment_count: Number of active assignments.

    Returns:
        One of "light" (<=3), "moderate" (<=6), "heavy" (<=10), "overloaded".
    """
    if assignment_count <= 3:
        return "light"
    if assignment_count <= 6:
        return "moderate"
    if assignment_count <= 10:
        return "heavy"
    return "overloaded"


@dataclass
class _Combination:
    """One (section, catalog subject) pair of a school."""

    section: Section
    class_: Class
    subject: Subject
    assigned: bool


class TeacherAssignmentService:
    """Service for managing teacher assignments.

    Attributes:
        db: Async database session.
        directory: Identity directory for teacher validation.
    """

    def __init__(self, db: AsyncSession, directory: IdentityDirectory) -> None:
        """Initialize assignment service.

        Args:
            db: Async database session.
            directory: Identity directory.
        """
        self.db = db
        self.directory = directory

    async def assign_teacher(
        self,
        request: AssignTeacherRequest,
        assigned_by: int | None = None,
    ) -> AssignmentResponse:
        """Assign a teacher to a section/subject pair.

        Args:
            request: Section, subject and teacher ids.
            assigned_by: ID of user making the assignment.

        Returns:
            Created assignment.

        Raises:
            SectionNotFoundError: If section missing or inactive.
            SubjectNotFoundError: If subject missing or inactive.
            TeacherNotFoundError: If teacher missing or inactive.
            InvalidTeacherRoleError: If the user cannot teach.
            SubjectNotInCatalogError: If the class does not carry the subject.
            AssignmentConflictError: If the pair already has an active teacher.
        """
        await self._validate_assignable(
            request.section_id, request.subject_id, teacher_id=request.teacher_id
        )
        await self._ensure_pair_free(request.section_id, request.subject_id)

        assignment = SectionSubjectTeacher(
            section_id=request.section_id,
            subject_id=request.subject_id,
            teacher_id=request.teacher_id,
            is_active=True,
        )
        self.db.add(assignment)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            await self._ensure_pair_free(request.section_id, request.subject_id)
            raise ConflictError(
                "Assignment could not be created",
                details={"sectionId": request.section_id, "subjectId": request.subject_id},
            )

        logger.info(
            "Assigned teacher %s to section %s subject %s (%s) by %s",
            request.teacher_id,
            request.section_id,
            request.subject_id,
            assignment.id,
            assigned_by,
        )

        return await self._load_response(assignment.id)

    async def bulk_assign_teachers(
        self,
        request: BulkAssignTeachersRequest,
        assigned_by: int | None = None,
    ) -> list[AssignmentResponse]:
        """Assign several teachers in one transaction.

        Every item is validated as assign_teacher does, and no two items may
        target the same pair. Any failure rejects the whole batch; the error
        names the 1-based item index.

        Args:
            request: Assignment items.
            assigned_by: ID of user making the assignments.

        Returns:
            Created assignments in request order.

        Raises:
            DomainError: The first failing item's error, with details["item"].
        """
        seen: dict[tuple[int, int], int] = {}
        for index, item in enumerate(request.assignments, start=1):
            pair = (item.section_id, item.subject_id)
            try:
                if pair in seen:
                    raise ConflictError(
                        f"Section {item.section_id} subject {item.subject_id} also "
                        f"appears as item {seen[pair]}",
                        details={"sectionId": item.section_id, "subjectId": item.subject_id},
                        code="duplicate_in_batch",
                    )
                seen[pair] = index
                await self._validate_assignable(
                    item.section_id, item.subject_id, teacher_id=item.teacher_id
                )
                await self._ensure_pair_free(item.section_id, item.subject_id)
            except DomainError as e:
                e.message = f"Item {index}: {e.message}"
                e.details["item"] = index
                raise

        assignments = [
            SectionSubjectTeacher(
                section_id=item.section_id,
                subject_id=item.subject_id,
                teacher_id=item.teacher_id,
                is_active=True,
            )
            for item in request.assignments
        ]
        self.db.add_all(assignments)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(
                "A section/subject pair in the batch was assigned concurrently",
                details={"count": len(assignments)},
            )

        logger.info("Bulk assigned %d teacher(s) by %s", len(assignments), assigned_by)

        return [await self._load_response(a.id) for a in assignments]

    async def update_assignment(
        self,
        assignment_id: int,
        request: AssignmentUpdateRequest,
    ) -> AssignmentResponse:
        """Reassign or (de)activate an assignment. Only supplied fields change.

        Args:
            assignment_id: Assignment identifier.
            request: New teacher and/or active flag.

        Returns:
            Updated assignment.

        Raises:
            AssignmentNotFoundError: If assignment not found.
            TeacherNotFoundError: If the new teacher is missing or inactive.
            InvalidTeacherRoleError: If the new teacher cannot teach.
            TeacherAlreadyAssignedError: If another active row already maps
                the pair to the new teacher.
            AssignmentConflictError: If the row would become active while
                another teacher holds the pair.
        """
        assignment = await self._get_by_id(assignment_id)

        teacher_id = assignment.teacher_id
        if request.teacher_id is not None and request.teacher_id != assignment.teacher_id:
            await self.directory.require_teacher(request.teacher_id)
            teacher_id = request.teacher_id

        is_active = assignment.is_active if request.is_active is None else request.is_active
        if is_active and not assignment.is_active:
            await self._validate_assignable(assignment.section_id, assignment.subject_id)

        if is_active:
            other = await self._get_active_for_pair(
                assignment.section_id,
                assignment.subject_id,
                exclude_id=assignment.id,
            )
            if other is not None and other.teacher_id == teacher_id:
                raise TeacherAlreadyAssignedError(
                    f"Teacher {teacher_id} is already assigned to this section and subject",
                    details={
                        "assignmentId": other.id,
                        "teacherId": teacher_id,
                    },
                )
            if other is not None:
                raise AssignmentConflictError(
                    assignment.section_id,
                    assignment.subject_id,
                    other.teacher_id,
                    other.id,
                )

        section_id, subject_id = assignment.section_id, assignment.subject_id
        assignment.teacher_id = teacher_id
        assignment.is_active = is_active

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            await self._ensure_pair_free(section_id, subject_id)
            raise ConflictError(
                f"Assignment {assignment_id} could not be updated",
                details={"assignmentId": assignment_id},
            )

        logger.info(
            "Updated assignment %s: teacher=%s active=%s",
            assignment_id,
            teacher_id,
            is_active,
        )

        return await self._load_response(assignment_id)

    async def remove_assignment(self, assignment_id: int, hard_delete: bool = False) -> None:
        """Deactivate an assignment, or delete it when asked.

        Args:
            assignment_id: Assignment identifier.
            hard_delete: Remove the row instead of deactivating it.

        Raises:
            AssignmentNotFoundError: If assignment not found.
        """
        assignment = await self._get_by_id(assignment_id)

        if hard_delete:
            await self.db.delete(assignment)
        else:
            assignment.is_active = False

        await self.db.commit()

        logger.info(
            "%s assignment %s",
            "Deleted" if hard_delete else "Deactivated",
            assignment_id,
        )

    async def get_teacher_schedule(
        self,
        teacher_id: int,
        school_code: str | None = None,
        session_id: int | None = None,
    ) -> TeacherScheduleResponse:
        """Get a teacher's active assignments grouped by class-section.

        Student counts come from active enrollments, restricted to
        session_id when given. total_students sums the section headcount
        once per assignment row, so it measures teaching load rather than
        distinct students.

        Args:
            teacher_id: Teacher identifier.
            school_code: Restrict to sections of this school.
            session_id: Count only enrollments of this session.

        Returns:
            Teacher header, workload statistics and grouped schedule.

        Raises:
            TeacherNotFoundError: If the user is not an active teacher.
        """
        teacher = await self.directory.get_active_user(teacher_id)
        if teacher is None or teacher.role not in self.directory.teacher_roles:
            raise TeacherNotFoundError(
                f"Teacher {teacher_id} not found",
                details={"teacherId": teacher_id},
            )

        query = (
            select(SectionSubjectTeacher, Section, Class, Subject)
            .join(Section, Section.id == SectionSubjectTeacher.section_id)
            .join(Class, Class.id == Section.class_id)
            .join(Subject, Subject.id == SectionSubjectTeacher.subject_id)
            .where(
                SectionSubjectTeacher.teacher_id == teacher_id,
                SectionSubjectTeacher.is_active.is_(True),
            )
            .order_by(Class.level.asc().nulls_last(), Section.name, Subject.name)
        )
        if school_code:
            query = query.where(Section.school_code == school_code)

        rows = (await self.db.execute(query)).all()
        student_counts = await self._count_students(
            (section.id for _, section, _, _ in rows),
            session_id,
        )

        groups: dict[str, ScheduleGroup] = {}
        for assignment, section, class_, subject in rows:
            key = f"{class_.name}-{section.name}"
            if key not in groups:
                groups[key] = ScheduleGroup(
                    key=key,
                    class_info=ClassSummary.model_validate(class_),
                    section=ScheduleSection(
                        id=section.id,
                        name=section.name,
                        room=section.room,
                        capacity=section.capacity,
                        student_count=student_counts.get(section.id, 0),
                    ),
                )
            groups[key].subjects.append(
                ScheduleSubject(
                    id=subject.id,
                    name=subject.name,
                    code=subject.code,
                    assignment_id=assignment.id,
                )
            )

        stats = WorkloadStats(
            total_assignments=len(rows),
            total_classes=len({class_.id for _, _, class_, _ in rows}),
            total_sections=len({section.id for _, section, _, _ in rows}),
            total_subjects=len({subject.id for _, _, _, subject in rows}),
            total_students=sum(student_counts.get(section.id, 0) for _, section, _, _ in rows),
        )

        return TeacherScheduleResponse(
            teacher=ScheduleTeacher(
                id=teacher.id,
                full_name=teacher.full_name,
                email=teacher.email,
                role=teacher.role,
            ),
            workload_stats=stats,
            schedule=list(groups.values()),
        )

    async def get_teachers_by_subject(
        self,
        subject_id: int,
        school_code: str | None = None,
        session_id: int | None = None,
    ) -> TeachersBySubjectResponse:
        """List teachers actively teaching a subject, with their sections.

        Args:
            subject_id: Subject identifier.
            school_code: Restrict to sections of this school.
            session_id: Count only enrollments of this session.

        Returns:
            Subject header and teachers ordered by name.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        subject_result = await self.db.execute(select(Subject).where(Subject.id == subject_id))
        subject = subject_result.scalar_one_or_none()
        if not subject:
            raise SubjectNotFoundError(
                f"Subject {subject_id} not found",
                details={"subjectId": subject_id},
            )

        query = (
            select(AuthUser, Section, Class)
            .select_from(SectionSubjectTeacher)
            .join(AuthUser, AuthUser.id == SectionSubjectTeacher.teacher_id)
            .join(Section, Section.id == SectionSubjectTeacher.section_id)
            .join(Class, Class.id == Section.class_id)
            .where(
                SectionSubjectTeacher.subject_id == subject_id,
                SectionSubjectTeacher.is_active.is_(True),
            )
            .order_by(AuthUser.full_name, AuthUser.id, Class.level.asc().nulls_last(), Section.name)
        )
        if school_code:
            query = query.where(Section.school_code == school_code)

        rows = (await self.db.execute(query)).all()
        student_counts = await self._count_students((s.id for _, s, _ in rows), session_id)

        groups: dict[int, SubjectTeacherGroup] = {}
        for teacher, section, class_ in rows:
            group = groups.get(teacher.id)
            if group is None:
                group = groups[teacher.id] = SubjectTeacherGroup(
                    teacher=TeacherProfile.model_validate(teacher),
                )
            count = student_counts.get(section.id, 0)
            group.sections.append(
                TaughtSection(
                    id=section.id,
                    name=section.name,
                    room=section.room,
                    class_info=ClassSummary.model_validate(class_),
                    student_count=count,
                )
            )
            group.total_students += count

        return TeachersBySubjectResponse(
            subject=SubjectSummary.model_validate(subject),
            teachers=list(groups.values()),
        )

    async def get_section_teachers(self, section_id: int) -> SectionTeachersResponse:
        """Get a section with its class teacher and active subject teachers.

        Args:
            section_id: Section identifier.

        Returns:
            Section view.

        Raises:
            SectionNotFoundError: If section not found.
        """
        result = await self.db.execute(
            select(Section, Class)
            .join(Class, Class.id == Section.class_id)
            .where(Section.id == section_id)
        )
        row = result.first()
        if row is None:
            raise SectionNotFoundError(
                f"Section {section_id} not found",
                details={"sectionId": section_id},
            )
        section, class_ = row

        class_teacher = None
        if section.class_teacher_id is not None:
            class_teacher = await self.directory.get_user(section.class_teacher_id)

        assignment_result = await self.db.execute(
            select(SectionSubjectTeacher, Subject, AuthUser)
            .join(Subject, Subject.id == SectionSubjectTeacher.subject_id)
            .join(AuthUser, AuthUser.id == SectionSubjectTeacher.teacher_id)
            .where(
                SectionSubjectTeacher.section_id == section_id,
                SectionSubjectTeacher.is_active.is_(True),
            )
            .order_by(Subject.name)
        )

        return SectionTeachersResponse(
            id=section.id,
            school_code=section.school_code,
            class_id=section.class_id,
            name=section.name,
            capacity=section.capacity,
            room=section.room,
            class_teacher_id=section.class_teacher_id,
            is_active=section.is_active,
            class_teacher=UserContact.model_validate(class_teacher) if class_teacher else None,
            class_info=ClassSummary.model_validate(class_),
            subject_teachers=[
                SubjectTeacherEntry(
                    assignment_id=assignment.id,
                    subject=SubjectSummary.model_validate(subject),
                    teacher=UserContact.model_validate(teacher),
                )
                for assignment, subject, teacher in assignment_result.all()
            ],
        )

    async def get_available_teachers(
        self,
        school_code: str,
        subject_id: int | None = None,
        exclude_assigned: bool = False,
    ) -> list[TeacherProfile]:
        """List a school's active teachers ordered by name.

        Args:
            school_code: Tenant code.
            subject_id: Subject used with exclude_assigned.
            exclude_assigned: Leave out teachers actively teaching subject_id.

        Returns:
            Teacher profiles.

        Raises:
            SchoolNotFoundError: If school not found.
        """
        await get_school_by_code(self.db, school_code)

        exclude_ids: list[int] = []
        if exclude_assigned and subject_id is not None:
            result = await self.db.execute(
                select(SectionSubjectTeacher.teacher_id).where(
                    SectionSubjectTeacher.subject_id == subject_id,
                    SectionSubjectTeacher.is_active.is_(True),
                )
            )
            exclude_ids = list(set(result.scalars().all()))

        teachers = await self.directory.list_teachers(school_code, exclude_ids=exclude_ids)
        return [TeacherProfile.model_validate(t) for t in teachers]

    async def get_unassigned_combinations(
        self,
        school_code: str,
    ) -> UnassignedCombinationsResponse:
        """List active (section, catalog subject) pairs with no active teacher.

        Args:
            school_code: Tenant code.

        Returns:
            Pairs grouped by section, ordered by class level, section name
            and subject name.

        Raises:
            SchoolNotFoundError: If school not found.
        """
        await get_school_by_code(self.db, school_code)

        combinations = [c for c in await self._get_combinations(school_code) if not c.assigned]

        sections: dict[int, UnassignedSection] = {}
        for combo in combinations:
            entry = sections.get(combo.section.id)
            if entry is None:
                entry = sections[combo.section.id] = UnassignedSection(
                    section=AssignmentSection(
                        id=combo.section.id,
                        name=combo.section.name,
                        room=combo.section.room,
                        class_info=ClassSummary.model_validate(combo.class_),
                    ),
                )
            entry.unassigned_subjects.append(SubjectSummary.model_validate(combo.subject))

        return UnassignedCombinationsResponse(
            total_unassigned=len(combinations),
            sections=list(sections.values()),
        )

    async def get_teaching_analytics(
        self,
        school_code: str,
        session_id: int | None = None,
    ) -> TeachingAnalyticsResponse:
        """Compute school-wide teaching analytics for a session.

        Args:
            school_code: Tenant code.
            session_id: Session used for student counts; the school's
                active session when omitted.

        Returns:
            Overview counts, workload distribution, subject coverage and
            sections with unassigned subjects.

        Raises:
            SchoolNotFoundError: If school not found.
            SessionNotFoundError: If the session is missing, belongs to
                another school, or no session is active.
        """
        school = await get_school_by_code(self.db, school_code)
        session = await self._resolve_session(school_code, session_id)

        total_teachers = await self._scalar(
            select(func.count())
            .select_from(AuthUser)
            .join(School, School.id == AuthUser.school_id)
            .where(
                School.code == school_code,
                AuthUser.role.in_(self.directory.teacher_roles),
                AuthUser.is_active.is_(True),
            )
        )
        total_classes = await self._scalar(
            select(func.count())
            .select_from(Class)
            .where(Class.school_code == school_code, Class.is_active.is_(True))
        )
        total_sections = await self._scalar(
            select(func.count())
            .select_from(Section)
            .where(Section.school_code == school_code, Section.is_active.is_(True))
        )

        # Active assignments of the school with their section and class
        assignment_rows = (
            await self.db.execute(
                select(SectionSubjectTeacher, Class, AuthUser)
                .join(Section, Section.id == SectionSubjectTeacher.section_id)
                .join(Class, Class.id == Section.class_id)
                .join(AuthUser, AuthUser.id == SectionSubjectTeacher.teacher_id)
                .where(
                    Section.school_code == school_code,
                    SectionSubjectTeacher.is_active.is_(True),
                )
            )
        ).all()
        student_counts = await self._count_students(
            (a.section_id for a, _, _ in assignment_rows),
            session.id,
        )

        workload: dict[int, TeacherWorkloadEntry] = {}
        for assignment, _, teacher in assignment_rows:
            entry = workload.get(teacher.id)
            if entry is None:
                entry = workload[teacher.id] = TeacherWorkloadEntry(
                    teacher=UserSummary.model_validate(teacher),
                    assignment_count=0,
                )
            entry.assignment_count += 1
            entry.student_count += student_counts.get(assignment.section_id, 0)

        distribution = WorkloadDistribution()
        for entry in workload.values():
            level = workload_level(entry.assignment_count)
            setattr(distribution, level, getattr(distribution, level) + 1)

        subject_result = await self.db.execute(
            select(Subject)
            .where(Subject.school_code == school_code, Subject.is_active.is_(True))
            .order_by(Subject.name, Subject.id)
        )
        coverage_details = []
        for subject in subject_result.scalars().all():
            taught = [(a, c) for a, c, _ in assignment_rows if a.subject_id == subject.id]
            coverage_details.append(
                SubjectCoverageEntry(
                    id=subject.id,
                    name=subject.name,
                    code=subject.code,
                    total_assignments=len(taught),
                    classes_offered=sorted({c.name for _, c in taught}),
                    is_covered=bool(taught),
                )
            )
        uncovered = [s for s in coverage_details if not s.is_covered]

        gaps = self._section_gaps(await self._get_combinations(school_code))

        return TeachingAnalyticsResponse(
            school=AnalyticsSchool(code=school.code, name=school.name),
            session=SessionSummary.model_validate(session),
            overview=AnalyticsOverview(
                total_teachers=total_teachers,
                total_subjects=len(coverage_details),
                total_classes=total_classes,
                total_sections=total_sections,
                total_assignments=len(assignment_rows),
                unassigned_count=len(gaps),
            ),
            teacher_workload=TeacherWorkload(
                distribution=distribution,
                details=sorted(
                    workload.values(),
                    key=lambda e: (-e.assignment_count, e.teacher.full_name or ""),
                ),
            ),
            subject_coverage=SubjectCoverage(
                total=len(coverage_details),
                covered=len(coverage_details) - len(uncovered),
                uncovered=len(uncovered),
                uncovered_subjects=uncovered,
                details=coverage_details,
            ),
            unassigned_sections=gaps,
        )

    async def _validate_assignable(
        self,
        section_id: int,
        subject_id: int,
        teacher_id: int | None = None,
    ) -> Section:
        """Check that a subject can be taught in a section.

        Checks run in order: section, subject, teacher (when given), catalog.

        Raises:
            SectionNotFoundError: If section missing or inactive.
            SubjectNotFoundError: If subject missing or inactive.
            TeacherNotFoundError: If teacher missing or inactive.
            InvalidTeacherRoleError: If the user cannot teach.
            SubjectNotInCatalogError: If the section's class lacks the subject.
        """
        section_result = await self.db.execute(
            select(Section).where(Section.id == section_id, Section.is_active.is_(True))
        )
        section = section_result.scalar_one_or_none()
        if not section:
            raise SectionNotFoundError(
                f"Section {section_id} not found",
                details={"sectionId": section_id},
            )

        subject_result = await self.db.execute(
            select(Subject.id).where(Subject.id == subject_id, Subject.is_active.is_(True))
        )
        if subject_result.scalar_one_or_none() is None:
            raise SubjectNotFoundError(
                f"Subject {subject_id} not found",
                details={"subjectId": subject_id},
            )

        if teacher_id is not None:
            await self.directory.require_teacher(teacher_id)

        catalog_result = await self.db.execute(
            select(ClassSubject.id).where(
                ClassSubject.class_id == section.class_id,
                ClassSubject.subject_id == subject_id,
                ClassSubject.is_active.is_(True),
            )
        )
        if catalog_result.scalar_one_or_none() is None:
            raise SubjectNotInCatalogError(
                f"Subject {subject_id} is not taught in class {section.class_id}",
                details={
                    "sectionId": section_id,
                    "subjectId": subject_id,
                    "classId": section.class_id,
                },
            )

        return section

    async def _ensure_pair_free(self, section_id: int, subject_id: int) -> None:
        """Raise AssignmentConflictError when the pair has an active teacher."""
        current = await self._get_active_for_pair(section_id, subject_id)
        if current is not None:
            raise AssignmentConflictError(
                section_id,
                subject_id,
                current.teacher_id,
                current.id,
            )

    async def _get_active_for_pair(
        self,
        section_id: int,
        subject_id: int,
        exclude_id: int | None = None,
    ) -> SectionSubjectTeacher | None:
        """Get the active assignment of a pair, if any."""
        query = select(SectionSubjectTeacher).where(
            SectionSubjectTeacher.section_id == section_id,
            SectionSubjectTeacher.subject_id == subject_id,
            SectionSubjectTeacher.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(SectionSubjectTeacher.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _get_by_id(self, assignment_id: int) -> SectionSubjectTeacher:
        """Get assignment by ID regardless of status.

        Raises:
            AssignmentNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(SectionSubjectTeacher).where(SectionSubjectTeacher.id == assignment_id)
        )
        assignment = result.scalar_one_or_none()

        if not assignment:
            raise AssignmentNotFoundError(
                f"Assignment {assignment_id} not found",
                details={"assignmentId": assignment_id},
            )

        return assignment

    async def _load_response(self, assignment_id: int) -> AssignmentResponse:
        """Load an assignment with its section, class, subject and teacher."""
        result = await self.db.execute(
            select(SectionSubjectTeacher, Section, Class, Subject, AuthUser)
            .join(Section, Section.id == SectionSubjectTeacher.section_id)
            .join(Class, Class.id == Section.class_id)
            .join(Subject, Subject.id == SectionSubjectTeacher.subject_id)
            .join(AuthUser, AuthUser.id == SectionSubjectTeacher.teacher_id)
            .where(SectionSubjectTeacher.id == assignment_id)
        )
        row = result.first()
        if row is None:
            raise AssignmentNotFoundError(
                f"Assignment {assignment_id} not found",
                details={"assignmentId": assignment_id},
            )
        assignment, section, class_, subject, teacher = row

        return AssignmentResponse(
            id=assignment.id,
            section_id=assignment.section_id,
            subject_id=assignment.subject_id,
            teacher_id=assignment.teacher_id,
            is_active=assignment.is_active,
            section=AssignmentSection(
                id=section.id,
                name=section.name,
                room=section.room,
                class_info=ClassSummary.model_validate(class_),
            ),
            subject=SubjectSummary.model_validate(subject),
            teacher=UserContact.model_validate(teacher),
        )

    async def _count_students(
        self,
        section_ids: Iterable[int],
        session_id: int | None,
    ) -> dict[int, int]:
        """Count active enrollments per section.

        Args:
            section_ids: Sections to count.
            session_id: Restrict to this session when given.

        Returns:
            Mapping of section id to active enrollment count.
        """
        ids = set(section_ids)
        if not ids:
            return {}

        query = (
            select(StudentEnrollment.section_id, func.count(StudentEnrollment.id))
            .where(
                StudentEnrollment.section_id.in_(ids),
                StudentEnrollment.is_active.is_(True),
            )
            .group_by(StudentEnrollment.section_id)
        )
        if session_id is not None:
            query = query.where(StudentEnrollment.session_id == session_id)

        result = await self.db.execute(query)
        return {section_id: count for section_id, count in result.all()}

    async def _get_combinations(self, school_code: str) -> list[_Combination]:
        """All active (section, catalog subject) pairs of a school.

        Ordered by class level, section name and subject name.
        """
        query = (
            select(Section, Class, Subject, SectionSubjectTeacher.id)
            .join(Class, Class.id == Section.class_id)
            .join(
                ClassSubject,
                and_(ClassSubject.class_id == Class.id, ClassSubject.is_active.is_(True)),
            )
            .join(Subject, Subject.id == ClassSubject.subject_id)
            .outerjoin(
                SectionSubjectTeacher,
                and_(
                    SectionSubjectTeacher.section_id == Section.id,
                    SectionSubjectTeacher.subject_id == Subject.id,
                    SectionSubjectTeacher.is_active.is_(True),
                ),
            )
            .where(
                Section.school_code == school_code,
                Section.is_active.is_(True),
                Class.is_active.is_(True),
                Subject.is_active.is_(True),
            )
            .order_by(Class.level.asc().nulls_last(), Section.name, Section.id, Subject.name)
        )
        result = await self.db.execute(query)
        return [
            _Combination(section=section, class_=class_, subject=subject, assigned=sst_id is not None)
            for section, class_, subject, sst_id in result.all()
        ]

    @staticmethod
    def _section_gaps(combinations: list[_Combination]) -> list[SectionGap]:
        """Summarize sections that still have unassigned catalog subjects."""
        totals: dict[int, list[int]] = defaultdict(lambda: [0, 0])
        names: dict[int, tuple[str, str]] = {}
        for combo in combinations:
            counts = totals[combo.section.id]
            counts[0] += 1
            counts[1] += int(combo.assigned)
            names[combo.section.id] = (combo.section.name, combo.class_.name)

        return [
            SectionGap(
                id=section_id,
                section_name=names[section_id][0],
                class_name=names[section_id][1],
                total_subjects=total,
                assigned_subjects=assigned,
                unassigned_subjects=total - assigned,
            )
            for section_id, (total, assigned) in totals.items()
            if total > assigned
        ]

    async def _resolve_session(
        self,
        school_code: str,
        session_id: int | None,
    ) -> AcademicSession:
        """Resolve the session analytics are computed for.

        Raises:
            SessionNotFoundError: If no matching session exists.
        """
        query = select(AcademicSession).where(AcademicSession.school_code == school_code)
        if session_id is not None:
            query = query.where(AcademicSession.id == session_id)
        else:
            query = query.where(AcademicSession.is_active.is_(True))

        result = await self.db.execute(query)
        session = result.scalar_one_or_none()
        if not session:
            raise SessionNotFoundError(
                f"Session {session_id} not found for {school_code}"
                if session_id is not None
                else f"No active session found for {school_code}",
                details={"schoolCode": school_code, "sessionId": session_id},
            )
        return session

    async def _scalar(self, query) -> int:
        """Execute a count query."""
        result = await self.db.execute(query)
        return result.scalar() or 0
