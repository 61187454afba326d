"""Telegram bot entry point."""

from datetime import UTC, datetime, time, timedelta

import structlog
from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from lingua_coach.bot import handlers, jobs
from lingua_coach.config import Settings, get_settings
from lingua_coach.logging_config import configure_logging
from lingua_coach.services import Services, build_services

logger = structlog.get_logger()

DAILY_CHECK_INTERVAL = timedelta(hours=1)


def _parse_time(value: str) -> time:
    hour, minute = (int(part) for part in value.split(":"))
    return time(hour=hour, minute=minute, tzinfo=UTC)


def _next_hour(now: datetime) -> datetime:
    return now.replace(minute=0, second=0, microsecond=0) + DAILY_CHECK_INTERVAL


def build_application(settings: Settings, services: Services) -> Application:
    """Register handlers and scheduled jobs on a new bot application."""
    if not settings.telegram_bot_token:
        raise ValueError("TELEGRAM_BOT_TOKEN is required to run the bot")

    application = Application.builder().token(settings.telegram_bot_token).build()
    application.bot_data[handlers.SERVICES_KEY] = services
    application.bot_data[jobs.ADMIN_CHAT_KEY] = settings.admin_telegram_id

    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("lesson", handlers.lesson))
    application.add_handler(CommandHandler("progress", handlers.progress))
    application.add_handler(CommandHandler("change", handlers.change_language))
    application.add_handler(
        CallbackQueryHandler(handlers.select_language, pattern=f"^{handlers.LANGUAGE_PREFIX}")
    )
    application.add_handler(
        CallbackQueryHandler(
            handlers.complete_lesson, pattern=rf"^{handlers.LESSON_COMPLETE_PREFIX}\d+$"
        )
    )
    application.add_handler(CallbackQueryHandler(handlers.action, pattern="^action:"))
    application.add_handler(MessageHandler(filters.VOICE, handlers.voice))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.help_text))
    application.add_error_handler(handlers.on_error)

    job_queue = application.job_queue
    job_queue.run_repeating(
        jobs.send_daily_lessons,
        interval=DAILY_CHECK_INTERVAL,
        first=_next_hour(datetime.now(UTC)),
        name="daily_lessons",
    )
    # JobQueue counts days from Sunday=0; settings use Monday=0.
    job_queue.run_daily(
        jobs.send_weekly_report,
        time=_parse_time(settings.weekly_report_time),
        days=((settings.weekly_report_weekday + 1) % 7,),
        name="weekly_report",
    )
    logger.info(
        "bot_jobs_scheduled",
        weekly_report_weekday=settings.weekly_report_weekday,
        weekly_report_time=settings.weekly_report_time,
    )
    return application


def main() -> None:
    """Run the bot in polling mode."""
    configure_logging()
    settings = get_settings()
    application = build_application(settings, build_services(settings))
    logger.info("bot_starting", storage_backend=settings.storage_backend)
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
