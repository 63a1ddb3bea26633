# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher assignment request/response models.

Covers single and bulk assignment commands, the assignment view, and the
read models derived from assignments: teacher schedule, teachers by
subject, section teachers, unassigned combinations and school analytics.
"""

from pydantic import Field

from schoolhub.models.class_ import SectionDetailResponse
from schoolhub.models.common import (
    CamelModel,
    ClassSummary,
    SectionSummary,
    SubjectSummary,
    TeacherProfile,
    UserContact,
    UserSummary,
)
from schoolhub.models.session import SessionSummary
from schoolhub.models.subject import SubjectTeacherEntry


class AssignTeacherRequest(CamelModel):
    """Assign a teacher to a (section, subject) pair."""

    section_id: int
    subject_id: int
    teacher_id: int


class BulkAssignTeachersRequest(CamelModel):
    """Assign several (section, subject, teacher) triples atomically."""

    assignments: list[AssignTeacherRequest] = Field(min_length=1)


class AssignmentUpdateRequest(CamelModel):
    """Partial assignment update. Only supplied fields change."""

    teacher_id: int | None = None
    is_active: bool | None = None


class AssignmentSection(SectionSummary):
    """Section reference carrying its class."""

    class_info: ClassSummary = Field(alias="class")


class AssignmentResponse(CamelModel):
    """Assignment with its section, subject and teacher."""

    id: int
    section_id: int
    subject_id: int
    teacher_id: int
    is_active: bool
    section: AssignmentSection
    subject: SubjectSummary
    teacher: UserContact


# Teacher schedule


class ScheduleTeacher(UserSummary):
    """Teacher header of a schedule."""

    role: str


class WorkloadStats(CamelModel):
    """Aggregate workload of a teacher.

    total_students sums each assignment's section headcount, so a section
    taught in two subjects contributes its students twice.
    """

    total_assignments: int = 0
    total_classes: int = 0
    total_sections: int = 0
    total_subjects: int = 0
    total_students: int = 0


class ScheduleSection(SectionSummary):
    """Section inside a schedule group."""

    capacity: int
    student_count: int = 0


class ScheduleSubject(SubjectSummary):
    """Subject taught in a schedule group."""

    assignment_id: int


class ScheduleGroup(CamelModel):
    """Assignments of one "Class-Section" group."""

    key: str
    class_info: ClassSummary = Field(alias="class")
    section: ScheduleSection
    subjects: list[ScheduleSubject] = Field(default_factory=list)


class TeacherScheduleResponse(CamelModel):
    """Teacher schedule with workload statistics."""

    teacher: ScheduleTeacher
    workload_stats: WorkloadStats
    schedule: list[ScheduleGroup] = Field(default_factory=list)


# Teachers by subject


class TaughtSection(SectionSummary):
    """Section a teacher teaches the subject in."""

    class_info: ClassSummary = Field(alias="class")
    student_count: int = 0


class SubjectTeacherGroup(CamelModel):
    """One teacher of a subject with their sections."""

    teacher: TeacherProfile
    sections: list[TaughtSection] = Field(default_factory=list)
    total_students: int = 0


class TeachersBySubjectResponse(CamelModel):
    """Teachers actively teaching a subject."""

    subject: SubjectSummary
    teachers: list[SubjectTeacherGroup] = Field(default_factory=list)


class SectionTeachersResponse(SectionDetailResponse):
    """Section with its class teacher and active subject teachers."""

    subject_teachers: list[SubjectTeacherEntry] = Field(default_factory=list)


# Unassigned combinations


class UnassignedSection(CamelModel):
    """A section and the catalog subjects nobody teaches there."""

    section: AssignmentSection
    unassigned_subjects: list[SubjectSummary] = Field(default_factory=list)


class UnassignedCombinationsResponse(CamelModel):
    """All (section, subject) pairs lacking an active teacher."""

    total_unassigned: int = 0
    sections: list[UnassignedSection] = Field(default_factory=list)


# Analytics


class AnalyticsOverview(CamelModel):
    """School-wide counts."""

    total_teachers: int = 0
    total_subjects: int = 0
    total_classes: int = 0
    total_sections: int = 0
    total_assignments: int = 0
    unassigned_count: int = 0


class WorkloadDistribution(CamelModel):
    """Teachers bucketed by active assignment count."""

    light: int = 0
    moderate: int = 0
    heavy: int = 0
    overloaded: int = 0


class TeacherWorkloadEntry(CamelModel):
    """Per-teacher workload line."""

    teacher: UserSummary
    assignment_count: int
    student_count: int = 0


class TeacherWorkload(CamelModel):
    """Workload distribution and details."""

    distribution: WorkloadDistribution
    details: list[TeacherWorkloadEntry] = Field(default_factory=list)


class SubjectCoverageEntry(SubjectSummary):
    """Coverage of one subject."""

    total_assignments: int = 0
    classes_offered: list[str] = Field(default_factory=list)
    is_covered: bool = False


class SubjectCoverage(CamelModel):
    """Subject coverage across the school."""

    total: int = 0
    covered: int = 0
    uncovered: int = 0
    uncovered_subjects: list[SubjectCoverageEntry] = Field(default_factory=list)
    details: list[SubjectCoverageEntry] = Field(default_factory=list)


class SectionGap(CamelModel):
    """A section with catalog subjects still lacking a teacher."""

    id: int
    section_name: str
    class_name: str
    total_subjects: int
    assigned_subjects: int
    unassigned_subjects: int


class AnalyticsSchool(CamelModel):
    """School header of an analytics report."""

    code: str
    name: str


class TeachingAnalyticsResponse(CamelModel):
    """School teaching analytics for one session."""

    school: AnalyticsSchool
    session: SessionSummary
    overview: AnalyticsOverview
    teacher_workload: TeacherWorkload
    subject_coverage: SubjectCoverage
    unassigned_sections: list[SectionGap] = Field(default_factory=list)
