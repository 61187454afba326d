"""Scheduled jobs: hourly lesson delivery and the weekly admin report."""

from datetime import UTC, datetime

import structlog
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from lingua_coach.analysis.report import generate_weekly_report
from lingua_coach.bot.handlers import get_services, send_lesson
from lingua_coach.bot.messages import format_weekly_report
from lingua_coach.errors import LinguaCoachError
from lingua_coach.models.user_profile import UserProfile

logger = structlog.get_logger()

ADMIN_CHAT_KEY = "admin_chat_id"
DELIVERY_WINDOW_MINUTES = 15


def is_lesson_due(profile: UserProfile, now: datetime) -> bool:
    """True in the first minutes of the learner's configured lesson hour."""
    settings = profile.settings
    return (
        settings.notification_enabled
        and settings.lesson_hour == now.hour
        and now.minute < DELIVERY_WINDOW_MINUTES
    )


async def send_daily_lessons(context: ContextTypes.DEFAULT_TYPE, now: datetime | None = None) -> int:
    """Send the current lesson to every learner whose lesson time is now.

    Returns:
        Number of lessons delivered.
    """
    now = now or datetime.now(UTC)
    services = get_services(context)
    logger.info("daily_lesson_check", hour=now.hour)
    try:
        users = await services.store.list_users()
    except LinguaCoachError as e:
        logger.error("daily_lesson_check_failed", error=e.message)
        return 0

    sent = 0
    for profile in users:
        if not is_lesson_due(profile, now):
            continue
        try:
            delivered = await send_lesson(
                context.bot, profile.user_id, services, profile.target_language, profile.lesson_day
            )
        except TelegramError as e:
            logger.warning("daily_lesson_send_failed", user_id=profile.user_id, error=str(e))
            continue
        if delivered:
            sent += 1
    logger.info("daily_lessons_sent", count=sent)
    return sent


async def send_weekly_report(context: ContextTypes.DEFAULT_TYPE) -> None:
    admin_chat = context.application.bot_data.get(ADMIN_CHAT_KEY)
    if not admin_chat:
        logger.warning("weekly_report_skipped", reason="no_admin_chat")
        return
    try:
        report = await generate_weekly_report(get_services(context).store)
    except LinguaCoachError as e:
        logger.error("weekly_report_failed", error=e.message)
        return
    await context.bot.send_message(admin_chat, format_weekly_report(report))
    logger.info("weekly_report_sent", admin_chat=admin_chat)
