"""Rule-based insight and suggestion generation.

Used whenever the remote analyzer is disabled, unreachable or returns
something unusable. It works offline, is deterministic, and always returns at
least the overall performance and study pattern insights plus the spaced
repetition and Pomodoro suggestions, even for a profile built from no data.
"""

from typing import List, Tuple

import structlog

from insight_service.schemas.analysis import (
    InsightDraft,
    InsightType,
    Priority,
    SuggestionDraft,
    SuggestionType,
)
from insight_service.schemas.profile import (
    GoalSummary,
    StudentPerformanceProfile,
    StudyPatterns,
    SubjectProfile,
)

logger = structlog.get_logger()

HIGH_PRIORITY_BELOW = 80.0


class FallbackAnalyzer:
    """Deterministic analyzer that needs no external service."""

    def analyze(
        self,
        profile: StudentPerformanceProfile
    ) -> Tuple[List[InsightDraft], List[SuggestionDraft]]:
        """Generate insights and suggestions for a profile."""
        insights = [
            self._overall_performance_insight(profile.overall_average),
            self._study_pattern_insight(profile.study_patterns),
        ]
        suggestions = [
            self._spaced_repetition_suggestion(),
            self._pomodoro_suggestion(),
        ]

        for subject in profile.subjects:
            if subject.recent_scores:
                insights.append(self._subject_insight(subject, profile.overall_average))
                suggestions.append(self._subject_suggestion(subject))

        if profile.goals:
            insights.append(self._goal_insight(profile.goals))
            suggestions.append(self._goal_suggestion(profile.goals))

        if profile.recent_marks:
            suggestions.append(self._average_band_suggestion(profile.overall_average))

        if profile.study_patterns.total_study_time > 0:
            suggestions.append(self._study_routine_suggestion(profile.study_patterns))

        logger.debug(
            "Fallback analysis generated",
            insights=len(insights),
            suggestions=len(suggestions)
        )

        return insights, suggestions

    def _overall_performance_insight(self, overall_average: float) -> InsightDraft:
        return InsightDraft(
            insight_type=InsightType.PERFORMANCE,
            title="Overall Academic Performance",
            content=(
                f"Your current overall average is {overall_average:.1f}%. "
                "Consistent study habits will help maintain or improve this performance."
            ),
            confidence_score=90,
            priority=Priority.HIGH if overall_average < HIGH_PRIORITY_BELOW else Priority.MEDIUM
        )

    def _study_pattern_insight(self, patterns: StudyPatterns) -> InsightDraft:
        return InsightDraft(
            insight_type=InsightType.STUDY_PATTERN,
            title="Study Consistency Analysis",
            content=(
                f"You've maintained a {patterns.current_streak}-day study streak with about "
                f"{patterns.weekly_study_hours:.1f} hours of study per week."
            ),
            confidence_score=85,
            priority=Priority.MEDIUM
        )

    def _spaced_repetition_suggestion(self) -> SuggestionDraft:
        return SuggestionDraft(
            title="Implement Spaced Repetition",
            description=(
                "Review material at increasing intervals to improve long-term retention. "
                "Start with daily reviews, then every 3 days, then weekly."
            ),
            type=SuggestionType.STUDY_METHOD,
            priority=Priority.MEDIUM,
            category="memory_technique",
            estimated_time="15-20 min daily",
            confidence_score=95
        )

    def _pomodoro_suggestion(self) -> SuggestionDraft:
        return SuggestionDraft(
            title="Use the Pomodoro Technique",
            description=(
                "Study in focused 25-minute intervals with 5-minute breaks to maintain "
                "concentration and avoid burnout."
            ),
            type=SuggestionType.TIME_MANAGEMENT,
            priority=Priority.MEDIUM,
            category="focus",
            resource_url="https://pomofocus.io/",
            estimated_time="25 min sessions",
            confidence_score=90
        )

    def _subject_insight(self, subject: SubjectProfile, overall_average: float) -> InsightDraft:
        """Trend first, then standing relative to the overall average."""
        name = subject.name
        rate = subject.improvement_rate
        compared_to_overall = subject.average_score - overall_average

        if rate > 5:
            title = f"Significant Improvement in {name}"
            content = (
                f"You've shown remarkable improvement in {name} with an upward trend of "
                f"{rate:.1f}%. Keep using the study techniques that are working for you."
            )
            priority, confidence = Priority.MEDIUM, 85
        elif rate < -5:
            title = f"Declining Performance in {name}"
            content = (
                f"Your performance in {name} has decreased by {abs(rate):.1f}%. Consider "
                "increasing your study time for this subject and reviewing earlier concepts."
            )
            priority, confidence = Priority.HIGH, 80
        elif compared_to_overall > 10:
            title = f"{name} is Your Strength"
            content = (
                f"At {subject.average_score:.1f}%, your performance in {name} is "
                f"{compared_to_overall:.1f}% above your overall average. This is clearly a "
                "strength you can build on."
            )
            priority, confidence = Priority.LOW, 90
        elif compared_to_overall < -10:
            title = f"{name} Needs Attention"
            content = (
                f"Your average in {name} is {abs(compared_to_overall):.1f}% below your overall "
                "performance. Additional focused study time could help bring this up to your "
                "usual standard."
            )
            priority, confidence = Priority.HIGH, 85
        else:
            title = f"{name} Performance Analysis"
            content = (
                f"Your performance in {name} is consistent with your overall academic trend. "
                f"Current average: {subject.average_score:.1f}%."
            )
            priority, confidence = Priority.MEDIUM, 75

        return InsightDraft(
            insight_type=InsightType.PERFORMANCE,
            title=title,
            content=content,
            confidence_score=confidence,
            priority=priority,
            subject_id=subject.id
        )

    def _subject_suggestion(self, subject: SubjectProfile) -> SuggestionDraft:
        name = subject.name

        if subject.improvement_rate < -5:
            return SuggestionDraft(
                title=f"Review Fundamentals in {name}",
                description=(
                    f"Your recent performance in {name} shows a decline. Try revisiting the core "
                    "concepts from earlier units to strengthen your foundation before continuing."
                ),
                type=SuggestionType.IMPROVEMENT,
                priority=Priority.HIGH,
                category="review",
                subject_id=subject.id,
                confidence_score=85
            )
        if subject.average_score < 70:
            return SuggestionDraft(
                title=f"{name}: Practice with Additional Resources",
                description=(
                    f"To improve your performance in {name}, supplement your regular study with "
                    "additional practice resources like problem sets, online tutorials, or study groups."
                ),
                type=SuggestionType.RESOURCE,
                priority=Priority.HIGH,
                category="external_resource",
                estimated_time="3-5 hours weekly",
                subject_id=subject.id,
                confidence_score=90
            )
        if subject.average_score >= 90:
            return SuggestionDraft(
                title=f"Explore Advanced {name} Topics",
                description=(
                    f"You're excelling in {name}! Consider exploring more advanced topics or "
                    "engaging with the subject through projects or competitions."
                ),
                type=SuggestionType.IMPROVEMENT,
                priority=Priority.LOW,
                category="enrichment",
                subject_id=subject.id,
                confidence_score=80
            )
        return SuggestionDraft(
            title=f"Create {name} Concept Maps",
            description=(
                f"To strengthen your understanding in {name}, try creating visual concept maps "
                "that connect different topics and highlight relationships between key ideas."
            ),
            type=SuggestionType.STUDY_METHOD,
            priority=Priority.MEDIUM,
            category="visual_learning",
            estimated_time="45-60 min",
            subject_id=subject.id,
            confidence_score=85
        )

    def _goal_insight(self, goals: List[GoalSummary]) -> InsightDraft:
        total = len(goals)
        completed = sum(1 for goal in goals if goal.progress >= 100)
        on_track = sum(1 for goal in goals if 50 <= goal.progress < 100)
        needs_attention = sum(1 for goal in goals if goal.progress < 50)

        if needs_attention > on_track + completed:
            title = "Goal Progress Alert"
            content = (
                f"{needs_attention} out of {total} goals need your attention as they're below "
                "50% progress. Focus on breaking these down into smaller, manageable tasks."
            )
            priority, confidence = Priority.HIGH, 85
        elif completed > 0:
            title = "Goal Achievement Success"
            content = (
                f"You've completed {completed} goal(s) and have {on_track} on track. This shows "
                "good progress toward your academic objectives."
            )
            priority, confidence = Priority.MEDIUM, 90
        elif on_track > needs_attention:
            title = "Goals On Track"
            content = (
                f"Most of your goals ({on_track} out of {total}) are on track with more than 50% "
                "progress. Keep up the momentum!"
            )
            priority, confidence = Priority.MEDIUM, 80
        else:
            title = "Goal Progress Summary"
            content = (
                f"You have {total} active goals with {completed} completed, {on_track} on track, "
                f"and {needs_attention} needing attention."
            )
            priority, confidence = Priority.MEDIUM, 75

        return InsightDraft(
            insight_type=InsightType.PREDICTION,
            title=title,
            content=content,
            confidence_score=confidence,
            priority=priority
        )

    def _goal_suggestion(self, goals: List[GoalSummary]) -> SuggestionDraft:
        if any(goal.progress < 50 for goal in goals):
            return SuggestionDraft(
                title="Break Down Your Academic Goals",
                description=(
                    "Some of your goals show limited progress. Try breaking them down into smaller, "
                    "more manageable milestones that you can achieve in 1-2 week intervals."
                ),
                type=SuggestionType.IMPROVEMENT,
                priority=Priority.HIGH,
                category="goal_setting",
                estimated_time="30-45 min",
                confidence_score=85
            )
        if len(goals) < 3:
            return SuggestionDraft(
                title="Set More Specific Learning Goals",
                description=(
                    "Setting clear, measurable goals helps direct your study efforts. Consider adding "
                    "more specific goals for each subject with target dates and measurable outcomes."
                ),
                type=SuggestionType.IMPROVEMENT,
                priority=Priority.MEDIUM,
                category="goal_setting",
                confidence_score=80
            )
        return SuggestionDraft(
            title="Weekly Goal Review Session",
            description=(
                "Schedule a weekly 15-minute session to review progress on your goals, adjust them "
                "as needed, and plan specific actions for the coming week."
            ),
            type=SuggestionType.STUDY_METHOD,
            priority=Priority.MEDIUM,
            category="organization",
            confidence_score=90
        )

    def _average_band_suggestion(self, overall_average: float) -> SuggestionDraft:
        if overall_average >= 90:
            return SuggestionDraft(
                title="Challenge Yourself With Advanced Topics",
                description=(
                    "You're performing at an excellent level. Consider tackling more challenging "
                    "content or helping peers to deepen your understanding further."
                ),
                type=SuggestionType.IMPROVEMENT,
                priority=Priority.MEDIUM,
                category="advanced_learning",
                estimated_time="Ongoing",
                confidence_score=85
            )
        if overall_average >= 70:
            return SuggestionDraft(
                title="Try the Feynman Technique for Better Understanding",
                description=(
                    "Practice explaining concepts in simple terms as if teaching someone else. "
                    "This helps identify gaps in your knowledge."
                ),
                type=SuggestionType.STUDY_METHOD,
                priority=Priority.MEDIUM if overall_average >= 80 else Priority.HIGH,
                category="comprehension",
                resource_url="https://fs.blog/feynman-technique/",
                estimated_time="30 min per topic",
                confidence_score=88
            )
        if overall_average >= 60:
            return SuggestionDraft(
                title="Create a Structured Study Schedule",
                description=(
                    "You might benefit from a more structured approach to studying. Create a weekly "
                    "schedule with specific time blocks for each subject."
                ),
                type=SuggestionType.TIME_MANAGEMENT,
                priority=Priority.HIGH,
                category="time_management",
                estimated_time="1 hour to set up",
                confidence_score=92
            )
        return SuggestionDraft(
            title="Focus on Core Concepts First",
            description=(
                "Focus on mastering the fundamental concepts before moving to advanced topics. "
                "Consider meeting with your teachers for additional support."
            ),
            type=SuggestionType.IMPROVEMENT,
            priority=Priority.HIGH,
            category="foundational_knowledge",
            estimated_time="Ongoing",
            confidence_score=95
        )

    def _study_routine_suggestion(self, patterns: StudyPatterns) -> SuggestionDraft:
        if patterns.weekly_study_hours < 10:
            return SuggestionDraft(
                title="Increase Weekly Study Time",
                description=(
                    "Your current study time is below the recommended amount for optimal academic "
                    "performance. Try adding 2-3 more study sessions each week, even if they're short."
                ),
                type=SuggestionType.TIME_MANAGEMENT,
                priority=Priority.HIGH,
                category="time_management",
                confidence_score=90
            )
        if patterns.consistency_score < 50:
            return SuggestionDraft(
                title="Develop a Consistent Study Routine",
                description=(
                    "Your study pattern is inconsistent. Try studying at the same times each day to "
                    "develop a habit. Even 20-30 minute sessions help if they're regular."
                ),
                type=SuggestionType.STUDY_METHOD,
                priority=Priority.HIGH,
                category="consistency",
                estimated_time="Ongoing",
                confidence_score=85
            )
        return SuggestionDraft(
            title="Optimize Your Productive Study Times",
            description=(
                "You study consistently. Now focus on quality by scheduling your most challenging "
                "work during the times of day you are most productive."
            ),
            type=SuggestionType.STUDY_METHOD,
            priority=Priority.MEDIUM,
            category="productivity",
            confidence_score=88
        )
