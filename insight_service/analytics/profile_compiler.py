"""Compile raw academic records into a student performance profile.

Everything here is pure computation over a ``RecordSnapshot``. Missing data
never raises: an empty snapshot produces a profile whose numeric fields are
all zero, so analyzers can run on it without special cases.
"""

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Sequence

import numpy as np

from insight_service.schemas.profile import (
    GoalSummary,
    RecentMark,
    StudentPerformanceProfile,
    StudyPatterns,
    SubjectProfile,
    TimeOfDay,
)
from insight_service.schemas.records import (
    AcademicRecord,
    GoalStatus,
    RecordSnapshot,
    StudySessionRecord,
)

RECENT_SCORES_LIMIT = 5
RECENT_MARKS_LIMIT = 10
PREFERRED_TIMES_LIMIT = 3
MIN_MARKS_FOR_TREND = 4
WEEKLY_WINDOW = timedelta(days=7)
CONSISTENCY_WINDOW_DAYS = 14


def compile_profile(snapshot: RecordSnapshot, now: datetime) -> StudentPerformanceProfile:
    """Build the profile for one student as of ``now``."""
    subject_names = {subject.id: subject.name for subject in snapshot.subjects}
    marks = newest_first(snapshot.marks)

    subjects = [
        _subject_profile(subject.id, subject.name, marks, snapshot.sessions)
        for subject in snapshot.subjects
    ]

    recent_marks = [
        RecentMark(
            id=mark.id,
            score=mark.score,
            percentage=mark.percentage,
            test_type=mark.test_type,
            test_name=mark.test_name,
            date=mark.date,
            subject_name=subject_names.get(mark.subject_id, "Unknown"),
        )
        for mark in marks[:RECENT_MARKS_LIMIT]
    ]

    goals = [
        GoalSummary(
            id=goal.id,
            title=goal.title,
            target_score=goal.target_score,
            current_score=goal.current_score,
            progress=goal.progress,
            subject_name=subject_names.get(goal.subject_id),
        )
        for goal in snapshot.goals
        if goal.status == GoalStatus.ACTIVE
    ]

    return StudentPerformanceProfile(
        subjects=subjects,
        overall_average=mean([mark.percentage for mark in marks]),
        recent_marks=recent_marks,
        study_patterns=_study_patterns(snapshot, now),
        goals=goals,
    )


def newest_first(marks: Iterable[AcademicRecord]) -> List[AcademicRecord]:
    """Order marks by date descending; equal dates keep their input order."""
    return sorted(marks, key=lambda mark: mark.date, reverse=True)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for no values."""
    if not values:
        return 0.0
    return float(np.mean(values))


def improvement_rate(percentages: Sequence[float]) -> float:
    """Recent-half average minus earlier-half average.

    ``percentages`` must be ordered most recent first. The recent half takes
    ``ceil(n/2)`` values. Fewer than four values yield 0.0.
    """
    if len(percentages) < MIN_MARKS_FOR_TREND:
        return 0.0
    split = math.ceil(len(percentages) / 2)
    return mean(percentages[:split]) - mean(percentages[split:])


def time_of_day(hour: int) -> TimeOfDay:
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def preferred_study_times(sessions: Iterable[StudySessionRecord]) -> List[TimeOfDay]:
    """Top three time-of-day buckets by session count."""
    counts = Counter(time_of_day(session.start_time.hour) for session in sessions)
    order = list(TimeOfDay)
    ranked = sorted(counts, key=lambda bucket: (-counts[bucket], order.index(bucket)))
    return ranked[:PREFERRED_TIMES_LIMIT]


def weekly_study_hours(sessions: Iterable[StudySessionRecord], now: datetime) -> float:
    """Hours studied in the trailing seven days, up to and including ``now``."""
    cutoff = now - WEEKLY_WINDOW
    minutes = sum(
        session.duration_minutes
        for session in sessions
        if cutoff <= _align(session.start_time, now) <= now
    )
    return minutes / 60


def consistency_score(sessions: Iterable[StudySessionRecord]) -> float:
    """Share of days with a session, over at most the last two weeks of history (0-100)."""
    days = {session.start_time.date() for session in sessions}
    if not days:
        return 0.0

    days_since_first = (max(days) - min(days)).days
    window = min(days_since_first, CONSISTENCY_WINDOW_DAYS)
    if window <= 0:
        return 0.0
    return min(100.0, len(days) / window * 100)


def _subject_profile(
    subject_id: str,
    name: str,
    marks: List[AcademicRecord],
    sessions: List[StudySessionRecord],
) -> SubjectProfile:
    percentages = [mark.percentage for mark in marks if mark.subject_id == subject_id]
    study_minutes = sum(
        session.duration_minutes for session in sessions if session.subject_id == subject_id
    )

    return SubjectProfile(
        id=subject_id,
        name=name,
        average_score=mean(percentages),
        recent_scores=percentages[:RECENT_SCORES_LIMIT],
        improvement_rate=improvement_rate(percentages),
        study_time_minutes=study_minutes,
    )


def _study_patterns(snapshot: RecordSnapshot, now: datetime) -> StudyPatterns:
    sessions = snapshot.sessions
    user = snapshot.user

    if user is not None:
        total_study_time = user.total_study_time
    else:
        total_study_time = sum(session.duration_minutes for session in sessions)

    return StudyPatterns(
        total_study_time=total_study_time,
        weekly_study_hours=weekly_study_hours(sessions, now),
        preferred_study_times=preferred_study_times(sessions),
        consistency_score=consistency_score(sessions),
        current_streak=user.current_streak if user else 0,
    )


def _align(timestamp: datetime, reference: datetime) -> datetime:
    # Naive and aware datetimes cannot be compared
    if (timestamp.tzinfo is None) != (reference.tzinfo is None):
        return timestamp.replace(tzinfo=reference.tzinfo)
    return timestamp

