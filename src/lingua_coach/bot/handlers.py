"""Telegram command, callback and message handlers."""

import structlog
from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from lingua_coach.analysis.report import collect_focus_areas
from lingua_coach.bot import messages
from lingua_coach.errors import LinguaCoachError
from lingua_coach.models.assessment import AssessmentFailure
from lingua_coach.models.lesson import Lesson
from lingua_coach.models.user_profile import UserProfile
from lingua_coach.services import Services

logger = structlog.get_logger()

SERVICES_KEY = "services"
LANGUAGE_PREFIX = "lang:"
LESSON_COMPLETE_PREFIX = "lesson_complete:"
ACTION_LESSON = "action:lesson"
ACTION_CHANGE = "action:change"
RECENT_ASSESSMENTS = 10


def get_services(context: ContextTypes.DEFAULT_TYPE) -> Services:
    return context.application.bot_data[SERVICES_KEY]


def _display_name(update: Update, default: str = "there") -> str:
    user = update.effective_user
    return user.first_name or user.username or default


def lesson_keyboard(day: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton("✅ Mark Complete", callback_data=f"{LESSON_COMPLETE_PREFIX}{day}")]]
    )


def language_keyboard(services: Services) -> InlineKeyboardMarkup:
    """Language picker, two buttons per row."""
    buttons = [
        InlineKeyboardButton(f"{lang.flag} {lang.name}", callback_data=f"{LANGUAGE_PREFIX}{lang.code}")
        for lang in services.catalog.available_languages()
    ]
    return InlineKeyboardMarkup([buttons[i : i + 2] for i in range(0, len(buttons), 2)])


async def send_lesson(bot: Bot, chat_id: int | str, services: Services, language: str, day: int) -> bool:
    """Send the lesson card for ``day``; returns False when it is unavailable."""
    try:
        lesson = services.catalog.get_lesson(language, day)
    except LinguaCoachError:
        await bot.send_message(chat_id, messages.lesson_unavailable(day))
        return False
    await bot.send_message(chat_id, messages.format_lesson(lesson), reply_markup=lesson_keyboard(day))
    logger.info("lesson_sent", chat_id=chat_id, language=language, lesson_day=day)
    return True


async def show_language_picker(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = get_services(context)
    await update.effective_message.reply_text(
        messages.format_welcome(_display_name(update)),
        reply_markup=language_keyboard(services),
    )


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/start: welcome back known users, otherwise offer the language picker."""
    services = get_services(context)
    user_id = str(update.effective_user.id)
    logger.debug("bot_start", user_id=user_id)

    profile = await services.store.get_user(user_id)
    if profile is not None:
        await update.effective_message.reply_text(
            messages.format_welcome_back(_display_name(update, "User"), profile.target_language)
        )
        return
    await show_language_picker(update, context)


async def change_language(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.info("language_change_requested", user_id=str(update.effective_user.id))
    await show_language_picker(update, context)


async def select_language(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Callback for ``lang:<code>``.

    New users get a fresh profile and lesson 1; existing users switch
    language and restart at day 1.
    """
    query = update.callback_query
    services = get_services(context)
    user_id = str(update.effective_user.id)
    code = query.data.removeprefix(LANGUAGE_PREFIX)

    if not services.catalog.has_language(code):
        await query.answer("Language not available.")
        return

    if await services.store.get_user(user_id) is not None:
        await services.store.update_user_fields(user_id, {"target_language": code, "lesson_day": 1})
        logger.info("language_changed", user_id=user_id, language=code)
        await query.answer("Language updated!")
        await query.message.reply_text(messages.LANGUAGE_CHANGED)
        return

    await services.store.upsert_user(
        UserProfile(
            user_id=user_id,
            name=_display_name(update, "User"),
            target_language=code,
            native_language=services.pipeline.default_native_language,
        )
    )
    logger.info("user_registered", user_id=user_id, language=code)

    try:
        lesson = services.catalog.get_lesson(code, 1)
    except LinguaCoachError:
        await query.answer("Language selected!")
        await query.message.reply_text(
            "Great! Your language has been set, but lessons are not yet available."
        )
        return

    await query.answer(f"{lesson.flag} {lesson.language_name} selected!")
    await query.message.reply_text(
        f"Perfect! You're now learning {lesson.language_name} {lesson.flag}\n\n"
        "Let's start with your first lesson:"
    )
    await query.message.reply_text(messages.format_lesson(lesson), reply_markup=lesson_keyboard(1))


async def lesson(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/lesson: send the learner's current lesson."""
    services = get_services(context)
    profile = await services.store.get_user(str(update.effective_user.id))
    if profile is None:
        await update.effective_message.reply_text(messages.START_FIRST)
        return
    await send_lesson(
        context.bot,
        update.effective_chat.id,
        services,
        profile.target_language,
        profile.lesson_day,
    )


async def complete_lesson(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Callback for ``lesson_complete:<day>``: advance the learner, ask for a recording."""
    query = update.callback_query
    services = get_services(context)
    user_id = str(update.effective_user.id)
    day = int(query.data.removeprefix(LESSON_COMPLETE_PREFIX))

    profile = await services.store.get_user(user_id)
    if profile is None:
        await query.answer("User data not found. Please use /start first.")
        return

    await services.store.update_user_fields(
        user_id, {"total_lessons": profile.total_lessons + 1, "lesson_day": day + 1}
    )
    logger.info("lesson_completed", user_id=user_id, lesson_day=day)
    await query.answer("✅ Lesson completed!")

    prompt = None
    try:
        prompt = services.catalog.get_lesson(profile.target_language, day).practice_prompt
    except LinguaCoachError as e:
        logger.warning("practice_prompt_missing", user_id=user_id, lesson_day=day, error=e.message)
    await query.message.reply_text(messages.format_practice_prompt(prompt))


async def voice(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Assess a voice reply against the lesson the learner last completed."""
    services = get_services(context)
    user_id = str(update.effective_user.id)
    status = await update.message.reply_text(messages.PROCESSING_VOICE)

    profile = await services.store.get_user(user_id)
    if profile is None:
        await status.edit_text(messages.START_FIRST)
        return

    day = max(1, profile.lesson_day - 1)
    try:
        current: Lesson = services.catalog.get_lesson(profile.target_language, day)
    except LinguaCoachError as e:
        await status.edit_text(messages.failure_message(e.kind))
        return

    telegram_file = await context.bot.get_file(update.message.voice.file_id)
    audio = bytes(await telegram_file.download_as_bytearray())
    logger.debug("voice_downloaded", user_id=user_id, size=len(audio))

    outcome = await services.pipeline.assess_voice(
        user_id=user_id,
        lesson_day=day,
        target_language=profile.target_language,
        native_language=profile.native_language,
        audio=audio,
        lesson_words=current.words,
        expected_answer=current.practice_prompt,
    )
    if isinstance(outcome, AssessmentFailure):
        logger.error(
            "voice_assessment_failed",
            user_id=user_id,
            error_kind=outcome.error_kind,
            stage=outcome.stage,
        )
        await status.edit_text(messages.failure_message(outcome.error_kind))
        return
    await status.edit_text(messages.format_assessment_result(outcome))


async def progress(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/progress: streak, average, lessons done and recent focus areas."""
    services = get_services(context)
    user_id = str(update.effective_user.id)
    profile = await services.store.get_user(user_id)
    if profile is None:
        await update.effective_message.reply_text(messages.START_FIRST)
        return

    recent = await services.store.list_assessments(user_id, limit=RECENT_ASSESSMENTS)
    keyboard = InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("📚 Next Lesson", callback_data=ACTION_LESSON),
                InlineKeyboardButton("🔄 Change Language", callback_data=ACTION_CHANGE),
            ]
        ]
    )
    await update.effective_message.reply_text(
        messages.format_progress(profile, collect_focus_areas(recent)),
        reply_markup=keyboard,
    )


async def action(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Buttons under /progress."""
    await update.callback_query.answer()
    if update.callback_query.data == ACTION_LESSON:
        await lesson(update, context)
    else:
        await change_language(update, context)


async def help_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.effective_message.reply_text(messages.HELP_TEXT)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log handler failures and tell the user to retry."""
    error = context.error
    logger.error(
        "bot_handler_error",
        error=str(error),
        error_kind=getattr(error, "kind", None),
        exc_info=error,
    )
    if isinstance(update, Update) and update.effective_message is not None:
        await update.effective_message.reply_text(messages.GENERIC_ERROR)
