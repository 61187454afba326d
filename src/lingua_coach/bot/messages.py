"""Text rendering for chat replies and the weekly admin report."""

from collections.abc import Sequence

from lingua_coach.analysis.report import WeeklyReport
from lingua_coach.errors import ErrorKind
from lingua_coach.models.assessment import AssessmentSuccess
from lingua_coach.models.lesson import Lesson
from lingua_coach.models.user_profile import UserProfile

SEPARATOR = "───────────────"
STREAK_HIGHLIGHT_DAYS = 7
DEFAULT_PRACTICE_PROMPT = "Practice speaking using the words from this lesson"

HELP_TEXT = (
    "שלום! 👋 הנה הפקודות הזמינות:\n\n"
    "/start - התחל מחדש או בחר שפה\n"
    "/lesson - קבל את השיעור הנוכחי\n"
    "/progress - ראה את ההתקדמות שלך\n"
    "/change - החלף שפת לימוד\n\n"
    f"{SEPARATOR}\n\n"
    "Hello! 👋 Here are the available commands:\n\n"
    "/start - Start over or select language\n"
    "/lesson - Get your current lesson\n"
    "/progress - View your progress\n"
    "/change - Change learning language\n\n"
    "💡 Tip: Send a voice message after completing a lesson to get feedback!"
)

START_FIRST = "Please use /start first to select your language."
GENERIC_ERROR = "Sorry, something went wrong. Please try again."
PROCESSING_VOICE = "🎧 Processing your voice message..."
LANGUAGE_CHANGED = (
    "✅ Language changed successfully!\n\n"
    "Your progress has been reset to Day 1.\n\n"
    "Use /lesson to start your first lesson."
)

FAILURE_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_AUDIO: "🔇 Your voice message was empty. Please record it again.",
    ErrorKind.TRANSCRIPTION_FAILED: (
        "❌ I couldn't understand the recording. Please try again in a quieter place."
    ),
    ErrorKind.STORE_UNAVAILABLE: (
        "⚠️ Your answer was graded but progress could not be saved. Please try again later."
    ),
    ErrorKind.LESSON_NOT_FOUND: "Could not find lesson content. Please try /lesson first.",
    ErrorKind.INVALID_CONTENT: "Could not find lesson content. Please try /lesson first.",
}
DEFAULT_FAILURE_MESSAGE = "❌ Assessment temporarily unavailable. Please try again later."


def failure_message(kind: ErrorKind) -> str:
    return FAILURE_MESSAGES.get(kind, DEFAULT_FAILURE_MESSAGE)


def lesson_unavailable(day: int) -> str:
    return f"Sorry, lesson {day} is not available yet. Stay tuned! 📚"


def format_lesson(lesson: Lesson) -> str:
    """Lesson card: title, numbered vocabulary with examples, practice prompt."""
    lines = [f"{lesson.flag} Day {lesson.day} - {lesson.title}", ""]
    for index, item in enumerate(lesson.words, start=1):
        lines.append(f"{index}. {item.word} ({item.translation})")
        lines.append(f"   Example: {item.example}")
        lines.append("")
    lines.append(f"📝 Practice: {lesson.practice_prompt}")
    return "\n".join(lines)


def format_welcome(name: str) -> str:
    return (
        f"Welcome, {name}! 🎉\n\n"
        "I'm your language learning assistant. Pick your target language to get started:"
    )


def format_welcome_back(name: str, language_code: str) -> str:
    language = language_code.upper()
    return (
        f"ברוך שובך, {name}! 👋\n\n"
        f"אתה לומד כרגע {language}.\n\n"
        "השתמש ב-/lesson כדי להמשיך, או ב-/change כדי להחליף שפה.\n\n"
        f"{SEPARATOR}\n"
        f"Welcome back, {name}! 👋\n\n"
        f"You're currently learning {language}.\n\n"
        "Use /lesson to continue, or /change to switch languages."
    )


def format_practice_prompt(prompt: str | None) -> str:
    return (
        "🎉 Great job completing the lesson!\n\n"
        "Now let's practice your speaking:\n\n"
        f"🎤 {prompt or DEFAULT_PRACTICE_PROMPT}\n\n"
        "Send me a voice message with your answer, and I'll give you feedback!"
    )


def _bullets(title: str, items: Sequence[str]) -> list[str]:
    return [title, *(f"  • {item}" for item in items)]


def format_assessment_result(result: AssessmentSuccess) -> str:
    lines = [
        "🎯 Assessment Complete!",
        "",
        f'🎤 What I heard:\n"{result.transcript}"',
        "",
        f"📊 Score: {result.score}/100",
        "",
        f"💬 Feedback:\n{result.feedback}",
        "",
    ]
    if result.strengths:
        lines += _bullets("✅ Strengths:", result.strengths) + [""]
    if result.weak_areas:
        lines += _bullets("⚠️ Areas to improve:", result.weak_areas) + [""]
    lines += [
        "Keep practicing! 🚀",
        "",
        "Use /progress to see your stats or /lesson for the next lesson.",
    ]
    return "\n".join(lines)


def format_progress(profile: UserProfile, focus_areas: Sequence[str]) -> str:
    lines = [
        "📊 Your Progress",
        "",
        f"🔥 Streak: {profile.streak} days",
        f"📈 Average Score: {round(profile.avg_score)}/100",
        f"📚 Lessons Completed: {profile.total_lessons}",
        f"🌍 Learning: {profile.target_language.upper()}",
        "",
    ]
    if focus_areas:
        lines += _bullets("⚠️ Focus Areas:", focus_areas)
    else:
        lines.append("✨ No weak areas identified yet. Keep practicing!")
    return "\n".join(lines)


def format_weekly_report(report: WeeklyReport) -> str:
    if not report.has_users:
        return "📊 Weekly Report\n\nNo active users yet."

    lines = [
        "📊 Weekly Language Learning Report",
        f"Week of: {report.start:%Y-%m-%d} - {report.end:%Y-%m-%d}",
        "",
        f"👥 Active Users: {report.active_users}",
        f"📚 Total Lessons: {report.total_lessons}",
        f"🎯 Average Score: {round(report.avg_score)}/100",
        "",
    ]
    if report.top_performers:
        lines.append("🏆 Top Performers:")
        for index, performer in enumerate(report.top_performers, start=1):
            fire = " 🔥" if performer.streak >= STREAK_HIGHLIGHT_DAYS else ""
            lines.append(
                f"{index}. {performer.name} - {round(performer.avg_score)} avg, "
                f"{performer.streak}-day streak{fire}"
            )
        lines.append("")
    if report.weak_areas:
        lines.append("⚠️ Common Weak Areas:")
        lines += [f"  • {area} ({count} mentions)" for area, count in report.weak_areas.items()]
        lines.append("")
    lines += _bullets("💡 Recommendations:", report.recommendations) + [""]
    lines.append(f"Next report: {report.next_report:%Y-%m-%d}")
    return "\n".join(lines)
