"""Nominal identifier types.

Each id is a distinct NewType over str so a type checker rejects passing
a LessonId where a CourseId is expected.  At runtime they are plain
strings: equality is exact match and no structure is assumed.
"""

from __future__ import annotations

from typing import NewType

UserId = NewType("UserId", str)
CourseId = NewType("CourseId", str)
ModuleId = NewType("ModuleId", str)
LessonId = NewType("LessonId", str)
EnrollmentId = NewType("EnrollmentId", str)
RatingId = NewType("RatingId", str)
