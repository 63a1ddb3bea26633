# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for student placement.

This module provides the EnrollmentService class for:
- Enrolling a student into a session, class and section
- Bulk enrollment (all-or-nothing)
- Updating enrollment status and roll number
- Section rosters ordered by roll number

A student has at most one enrollment per session, and a roll number is
unique within a section for a session. Both rules are unique constraints
in the store; the checks here only produce precise errors.

By default enrollment only checks that the student, session, class and
section exist. EnrollmentSettings.enforce_same_school additionally
requires all of them to belong to the school named in the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.config.settings import EnrollmentSettings
from schoolhub.domains.errors import ConflictError, DomainError, InvalidStateError, NotFoundError
from schoolhub.domains.school.service import get_school_by_code
from schoolhub.infrastructure.database.models import (
    AcademicSession,
    AuthUser,
    Class,
    Section,
    StudentEnrollment,
)
from schoolhub.models.common import ClassSummary, SectionSummary, UserContact
from schoolhub.models.enrollment import (
    BulkEnrollRequest,
    EnrollmentResponse,
    EnrollmentUpdateRequest,
    EnrollStudentRequest,
    SectionStudentEntry,
)
from schoolhub.models.session import SessionSummary

logger = logging.getLogger(__name__)


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment is not found."""

    code = "enrollment_not_found"


class EnrollmentEntitiesNotFoundError(NotFoundError):
    """Raised when the student, session, class or section does not exist."""

    code = "enrollment_entities_not_found"


class DuplicateEnrollmentError(ConflictError):
    """Raised when the student is already enrolled in the session."""

    code = "duplicate_enrollment"


class RollNumberTakenError(ConflictError):
    """Raised when the roll number is used in the section for the session."""

    code = "roll_number_taken"


class CrossSchoolEnrollmentError(InvalidStateError):
    """Raised when enrollment entities belong to different schools."""

    code = "cross_school_enrollment"


@dataclass
class _EnrollmentTargets:
    """Resolved entities of one enrollment command."""

    student: AuthUser
    session: AcademicSession
    class_: Class
    section: Section


class EnrollmentService:
    """Service for managing student enrollments.

    Attributes:
        db: Async database session.
        settings: Enrollment rule settings.
    """

    def __init__(self, db: AsyncSession, settings: EnrollmentSettings) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            settings: Enrollment rule settings.
        """
        self.db = db
        self.settings = settings

    async def enroll_student(
        self,
        school_code: str,
        request: EnrollStudentRequest,
        enrolled_by: int | None = None,
    ) -> EnrollmentResponse:
        """Enroll a student.

        Args:
            school_code: Tenant code from the request path.
            request: Enrollment data.
            enrolled_by: ID of user performing the enrollment.

        Returns:
            Enrollment joined with student, session, class and section.

        Raises:
            EnrollmentEntitiesNotFoundError: If any referenced entity is missing.
            CrossSchoolEnrollmentError: If same-school enforcement is on and
                an entity belongs to another school.
            DuplicateEnrollmentError: If the student is already enrolled in
                the session.
            RollNumberTakenError: If the roll number is taken in the section.
        """
        targets = await self._resolve_targets(request)
        if self.settings.enforce_same_school:
            await self._check_same_school(school_code, request, targets)
        await self._check_unique(request)

        enrollment = self._build(request)
        self.db.add(enrollment)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            await self._check_unique(request)
            raise ConflictError(
                "Enrollment conflicts with an existing enrollment",
                details={"studentId": request.student_id, "sessionId": request.session_id},
            )

        logger.info(
            "Enrolled student %s in session %s section %s (%s) by %s",
            request.student_id,
            request.session_id,
            request.section_id,
            enrollment.id,
            enrolled_by,
        )

        return await self._load_response(enrollment.id)

    async def bulk_enroll_students(
        self,
        school_code: str,
        request: BulkEnrollRequest,
        enrolled_by: int | None = None,
    ) -> list[EnrollmentResponse]:
        """Enroll several students in one transaction.

        Every item is validated as enroll_student does, and the batch may
        not enroll a student twice in a session or reuse a roll number in a
        section. Any failure rejects the whole batch; the error names the
        1-based item index.

        Args:
            school_code: Tenant code from the request path.
            request: Enrollment items.
            enrolled_by: ID of user performing the enrollments.

        Returns:
            Created enrollments in request order.

        Raises:
            DomainError: The first failing item's error, with details["item"].
        """
        students: dict[tuple[int, int], int] = {}
        rolls: dict[tuple[int, int, str], int] = {}
        for index, item in enumerate(request.enrollments, start=1):
            try:
                student_key = (item.student_id, item.session_id)
                if student_key in students:
                    raise DuplicateEnrollmentError(
                        f"Student {item.student_id} also appears as item {students[student_key]}",
                        details={"studentId": item.student_id, "sessionId": item.session_id},
                    )
                students[student_key] = index

                if item.roll_number is not None:
                    roll_key = (item.session_id, item.section_id, item.roll_number)
                    if roll_key in rolls:
                        raise RollNumberTakenError(
                            f"Roll number {item.roll_number} also appears as item {rolls[roll_key]}",
                            details={"sectionId": item.section_id, "rollNumber": item.roll_number},
                        )
                    rolls[roll_key] = index

                targets = await self._resolve_targets(item)
                if self.settings.enforce_same_school:
                    await self._check_same_school(school_code, item, targets)
                await self._check_unique(item)
            except DomainError as e:
                e.message = f"Item {index}: {e.message}"
                e.details["item"] = index
                raise

        enrollments = [self._build(item) for item in request.enrollments]
        self.db.add_all(enrollments)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(
                "An enrollment in the batch conflicts with an existing enrollment",
                details={"count": len(enrollments)},
            )

        logger.info("Bulk enrolled %d student(s) by %s", len(enrollments), enrolled_by)

        return [await self._load_response(e.id) for e in enrollments]

    async def update_enrollment(
        self,
        enrollment_id: int,
        request: EnrollmentUpdateRequest,
    ) -> EnrollmentResponse:
        """Update status, roll number or active flag. Only supplied fields change.

        Args:
            enrollment_id: Enrollment identifier.
            request: Update data.

        Returns:
            Updated enrollment.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            RollNumberTakenError: If the new roll number is taken.
        """
        enrollment = await self._get_by_id(enrollment_id)
        session_id, section_id = enrollment.session_id, enrollment.section_id

        roll_number_set = "roll_number" in request.model_fields_set
        if roll_number_set and request.roll_number is not None:
            await self._check_roll_number(
                session_id,
                section_id,
                request.roll_number,
                exclude_id=enrollment.id,
            )

        if request.status is not None:
            enrollment.status = request.status.value
        if roll_number_set:
            enrollment.roll_number = request.roll_number
        if request.is_active is not None:
            enrollment.is_active = request.is_active

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise RollNumberTakenError(
                f"Roll number {request.roll_number} is already taken in section {section_id}",
                details={
                    "sessionId": session_id,
                    "sectionId": section_id,
                    "rollNumber": request.roll_number,
                },
            )

        logger.info("Updated enrollment %s", enrollment_id)

        return await self._load_response(enrollment_id)

    async def get_students_by_section(
        self,
        section_id: int,
        session_id: int | None = None,
    ) -> list[SectionStudentEntry]:
        """List a section's active enrollments ordered by roll number.

        Roll numbers sort as strings, so "10" comes before "2". Enrollments
        without a roll number come last.

        Args:
            section_id: Section identifier.
            session_id: Restrict to one session.

        Returns:
            Roster entries.
        """
        query = (
            select(StudentEnrollment, AuthUser, AcademicSession)
            .join(AuthUser, AuthUser.id == StudentEnrollment.student_id)
            .join(AcademicSession, AcademicSession.id == StudentEnrollment.session_id)
            .where(
                StudentEnrollment.section_id == section_id,
                StudentEnrollment.is_active.is_(True),
            )
            .order_by(StudentEnrollment.roll_number.asc().nulls_last(), StudentEnrollment.id)
        )
        if session_id is not None:
            query = query.where(StudentEnrollment.session_id == session_id)

        result = await self.db.execute(query)
        return [
            SectionStudentEntry(
                id=enrollment.id,
                roll_number=enrollment.roll_number,
                admission_number=enrollment.admission_number,
                status=enrollment.status,
                student=UserContact.model_validate(student),
                session=SessionSummary.model_validate(session),
            )
            for enrollment, student, session in result.all()
        ]

    async def _resolve_targets(self, request: EnrollStudentRequest) -> _EnrollmentTargets:
        """Resolve the four referenced entities.

        The lookups share one AsyncSession and therefore run one after
        another.

        Raises:
            EnrollmentEntitiesNotFoundError: If any entity is missing.
        """
        student = await self.db.get(AuthUser, request.student_id)
        session = await self.db.get(AcademicSession, request.session_id)
        class_ = await self.db.get(Class, request.class_id)
        section = await self.db.get(Section, request.section_id)

        missing = [
            name
            for name, entity in (
                ("student", student),
                ("session", session),
                ("class", class_),
                ("section", section),
            )
            if entity is None
        ]
        if missing:
            raise EnrollmentEntitiesNotFoundError(
                "One or more entities not found",
                details={
                    "missing": missing,
                    "studentId": request.student_id,
                    "sessionId": request.session_id,
                    "classId": request.class_id,
                    "sectionId": request.section_id,
                },
            )

        return _EnrollmentTargets(student=student, session=session, class_=class_, section=section)

    async def _check_same_school(
        self,
        school_code: str,
        request: EnrollStudentRequest,
        targets: _EnrollmentTargets,
    ) -> None:
        """Require every entity to belong to the request's school.

        Raises:
            SchoolNotFoundError: If school not found.
            CrossSchoolEnrollmentError: If any entity belongs elsewhere.
        """
        school = await get_school_by_code(self.db, school_code)

        mismatched = []
        if targets.student.school_id != school.id:
            mismatched.append("student")
        if targets.session.school_code != school_code:
            mismatched.append("session")
        if targets.class_.school_code != school_code:
            mismatched.append("class")
        if targets.section.school_code != school_code or targets.section.class_id != request.class_id:
            mismatched.append("section")

        if mismatched:
            raise CrossSchoolEnrollmentError(
                f"Enrollment entities do not all belong to {school_code}",
                details={"schoolCode": school_code, "mismatched": mismatched},
            )

    async def _check_unique(self, request: EnrollStudentRequest) -> None:
        """Check the enrollment pair and roll number are free.

        Raises:
            DuplicateEnrollmentError: If the student is already enrolled.
            RollNumberTakenError: If the roll number is taken.
        """
        result = await self.db.execute(
            select(StudentEnrollment.id).where(
                StudentEnrollment.student_id == request.student_id,
                StudentEnrollment.session_id == request.session_id,
            )
        )
        existing_id = result.scalar_one_or_none()
        if existing_id is not None:
            raise DuplicateEnrollmentError(
                f"Student {request.student_id} is already enrolled in session {request.session_id}",
                details={
                    "studentId": request.student_id,
                    "sessionId": request.session_id,
                    "enrollmentId": existing_id,
                },
            )

        if request.roll_number is not None:
            await self._check_roll_number(
                request.session_id,
                request.section_id,
                request.roll_number,
            )

    async def _check_roll_number(
        self,
        session_id: int,
        section_id: int,
        roll_number: str,
        exclude_id: int | None = None,
    ) -> None:
        """Raise RollNumberTakenError when the roll number is in use."""
        query = select(StudentEnrollment).where(
            StudentEnrollment.session_id == session_id,
            StudentEnrollment.section_id == section_id,
            StudentEnrollment.roll_number == roll_number,
        )
        if exclude_id is not None:
            query = query.where(StudentEnrollment.id != exclude_id)

        result = await self.db.execute(query)
        holder = result.scalars().first()
        if holder is not None:
            raise RollNumberTakenError(
                f"Roll number {roll_number} is already taken in section {section_id}",
                details={
                    "sessionId": session_id,
                    "sectionId": section_id,
                    "rollNumber": roll_number,
                    "studentId": holder.student_id,
                },
            )

    async def _get_by_id(self, enrollment_id: int) -> StudentEnrollment:
        """Get enrollment by ID.

        Raises:
            EnrollmentNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(StudentEnrollment).where(StudentEnrollment.id == enrollment_id)
        )
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise EnrollmentNotFoundError(
                f"Enrollment {enrollment_id} not found",
                details={"enrollmentId": enrollment_id},
            )

        return enrollment

    @staticmethod
    def _build(request: EnrollStudentRequest) -> StudentEnrollment:
        """Create an unsaved enrollment row."""
        return StudentEnrollment(
            student_id=request.student_id,
            session_id=request.session_id,
            class_id=request.class_id,
            section_id=request.section_id,
            roll_number=request.roll_number,
            admission_number=request.admission_number,
            is_active=True,
        )

    async def _load_response(self, enrollment_id: int) -> EnrollmentResponse:
        """Load an enrollment with student, session, class and section."""
        result = await self.db.execute(
            select(StudentEnrollment, AuthUser, AcademicSession, Class, Section)
            .join(AuthUser, AuthUser.id == StudentEnrollment.student_id)
            .join(AcademicSession, AcademicSession.id == StudentEnrollment.session_id)
            .join(Class, Class.id == StudentEnrollment.class_id)
            .join(Section, Section.id == StudentEnrollment.section_id)
            .where(StudentEnrollment.id == enrollment_id)
        )
        row = result.first()
        if row is None:
            raise EnrollmentNotFoundError(
                f"Enrollment {enrollment_id} not found",
                details={"enrollmentId": enrollment_id},
            )
        enrollment, student, session, class_, section = row

        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            session_id=enrollment.session_id,
            class_id=enrollment.class_id,
            section_id=enrollment.section_id,
            roll_number=enrollment.roll_number,
            admission_number=enrollment.admission_number,
            status=enrollment.status,
            is_active=enrollment.is_active,
            enrollment_date=enrollment.enrollment_date,
            student=UserContact.model_validate(student),
            session=SessionSummary.model_validate(session),
            class_info=ClassSummary.model_validate(class_),
            section=SectionSummary.model_validate(section),
        )
