from datetime import date, datetime, timedelta, timezone

import pytest

from insight_service.analytics.profile_compiler import (
    compile_profile,
    consistency_score,
    improvement_rate,
    preferred_study_times,
    time_of_day,
    weekly_study_hours,
)
from insight_service.schemas.profile import TimeOfDay
from insight_service.schemas.records import RecordSnapshot, SubjectMeta, UserStats


def test_subject_trend_compares_recent_half_with_earlier_half(math_snapshot, now):
    profile = compile_profile(math_snapshot, now)

    math = profile.subjects[0]
    assert math.name == "Math"
    assert math.recent_scores == [90, 70, 65, 60]
    assert math.average_score == pytest.approx(71.25)
    assert math.improvement_rate == pytest.approx(17.5)
    assert math.study_time_minutes == 180


def test_improvement_rate_needs_four_marks():
    assert improvement_rate([90, 70, 65]) == 0.0
    assert improvement_rate([90, 70, 65, 60]) == pytest.approx(17.5)


def test_improvement_rate_odd_count_puts_middle_mark_in_recent_half():
    # recent [90, 80, 70], earlier [60, 50]
    assert improvement_rate([90, 80, 70, 60, 50]) == pytest.approx(25.0)


def test_consistency_over_ten_day_span(make_session):
    sessions = [
        make_session(datetime(2024, 5, 1, 10)),
        make_session(datetime(2024, 5, 4, 10)),
        make_session(datetime(2024, 5, 11, 10)),
    ]
    assert consistency_score(sessions) == pytest.approx(30.0)


def test_consistency_window_caps_at_two_weeks(make_session):
    sessions = [make_session(datetime(2024, 4, 1) + timedelta(days=offset)) for offset in range(0, 30)]
    # 30 distinct days over a 29 day span, divided by the 14 day cap
    assert consistency_score(sessions) == 100.0


def test_consistency_single_day_is_zero(make_session):
    sessions = [make_session(datetime(2024, 5, 1, 8)), make_session(datetime(2024, 5, 1, 20))]
    assert consistency_score(sessions) == 0.0


def test_weekly_hours_only_count_last_seven_days(make_session, now):
    sessions = [
        make_session(now - timedelta(days=1), 90),
        make_session(now - timedelta(days=7), 30),
        make_session(now - timedelta(days=8), 600),
    ]
    assert weekly_study_hours(sessions, now) == pytest.approx(2.0)


def test_weekly_hours_accepts_aware_reference(make_session):
    now = datetime(2024, 5, 20, 12, tzinfo=timezone.utc)
    sessions = [make_session(datetime(2024, 5, 19, 12), 45)]
    assert weekly_study_hours(sessions, now) == pytest.approx(0.75)


@pytest.mark.parametrize("hour, bucket", [
    (5, TimeOfDay.MORNING),
    (11, TimeOfDay.MORNING),
    (12, TimeOfDay.AFTERNOON),
    (17, TimeOfDay.EVENING),
    (21, TimeOfDay.NIGHT),
    (2, TimeOfDay.NIGHT),
])
def test_time_of_day_buckets(hour, bucket):
    assert time_of_day(hour) == bucket


def test_preferred_times_ranked_by_count(make_session):
    sessions = [
        make_session(datetime(2024, 5, 1, 22)),
        make_session(datetime(2024, 5, 2, 23)),
        make_session(datetime(2024, 5, 3, 14)),
        make_session(datetime(2024, 5, 4, 9)),
        make_session(datetime(2024, 5, 5, 9)),
        make_session(datetime(2024, 5, 6, 1)),
        make_session(datetime(2024, 5, 7, 18)),
    ]
    assert preferred_study_times(sessions) == [TimeOfDay.NIGHT, TimeOfDay.MORNING, TimeOfDay.AFTERNOON]


def test_profile_study_patterns(math_snapshot, now):
    patterns = compile_profile(math_snapshot, now).study_patterns

    assert patterns.total_study_time == 600
    assert patterns.current_streak == 5
    assert patterns.weekly_study_hours == pytest.approx(1.5)
    assert patterns.consistency_score == pytest.approx(30.0)
    assert patterns.preferred_study_times == [TimeOfDay.MORNING, TimeOfDay.AFTERNOON, TimeOfDay.EVENING]


def test_profile_recent_marks_and_active_goals(math_snapshot, now):
    profile = compile_profile(math_snapshot, now)

    assert profile.overall_average == pytest.approx(71.25)
    assert [mark.date for mark in profile.recent_marks] == [
        date(2024, 5, 15), date(2024, 5, 10), date(2024, 5, 5), date(2024, 5, 1)
    ]
    assert all(mark.subject_name == "Math" for mark in profile.recent_marks)
    assert [goal.title for goal in profile.goals] == ["Reach 85 in Math"]
    assert profile.goals[0].subject_name == "Math"


def test_recent_marks_limited_to_ten_and_unknown_subject(student_id, make_mark, now):
    marks = [make_mark(50 + day, day=date(2024, 4, day)) for day in range(1, 16)]
    snapshot = RecordSnapshot(student_id=student_id, marks=marks)

    profile = compile_profile(snapshot, now)

    assert len(profile.recent_marks) == 10
    assert profile.recent_marks[0].date == date(2024, 4, 15)
    assert profile.recent_marks[0].subject_name == "Unknown"


def test_percentage_uses_max_score(student_id, make_mark, now):
    snapshot = RecordSnapshot(student_id=student_id, marks=[make_mark(18, max_score=20)])
    profile = compile_profile(snapshot, now)

    assert profile.overall_average == pytest.approx(90.0)
    assert profile.recent_marks[0].percentage == pytest.approx(90.0)


def test_subject_without_marks_is_zero(student_id, now):
    snapshot = RecordSnapshot(student_id=student_id, subjects=[SubjectMeta(id="physics", name="Physics")])
    physics = compile_profile(snapshot, now).subjects[0]

    assert physics.average_score == 0.0
    assert physics.improvement_rate == 0.0
    assert physics.recent_scores == []


def test_total_study_time_falls_back_to_session_sum(student_id, make_session, now):
    snapshot = RecordSnapshot(
        student_id=student_id,
        sessions=[make_session(now - timedelta(days=2), 40), make_session(now - timedelta(days=20), 20)]
    )
    assert compile_profile(snapshot, now).study_patterns.total_study_time == 60


def test_empty_snapshot_gives_zero_profile(student_id, now):
    snapshot = RecordSnapshot(student_id=student_id, user=UserStats())
    profile = compile_profile(snapshot, now)

    assert snapshot.is_empty
    assert profile.subjects == []
    assert profile.overall_average == 0.0
    assert profile.recent_marks == []
    assert profile.goals == []
    assert profile.study_patterns.total_study_time == 0
    assert profile.study_patterns.weekly_study_hours == 0.0
    assert profile.study_patterns.preferred_study_times == []
    assert profile.study_patterns.consistency_score == 0.0


def test_payload_uses_camel_case(math_snapshot, now):
    payload = compile_profile(math_snapshot, now).to_payload()

    assert set(payload) == {"subjects", "overallAverage", "recentMarks", "studyPatterns", "goals"}
    assert "improvementRate" in payload["subjects"][0]
    assert payload["studyPatterns"]["preferredStudyTimes"] == ["Morning", "Afternoon", "Evening"]


def test_weekly_hours_ignore_sessions_after_now(make_session, now):
    sessions = [
        make_session(now + timedelta(days=3), 120),
        make_session(now - timedelta(hours=2), 30),
    ]
    assert weekly_study_hours(sessions, now) == pytest.approx(0.5)
