import argparse
import asyncio
import logging
from datetime import datetime, time as dtime

import aiohttp
from discord.ext import tasks

from collectors.factory import build_collectors
from core import config
from core.monitoring import HealthMonitor
from processing.analyzer import Analyzer
from processing.enricher import BatchEnricher
from processing.oracle import OpenAIOracle
from processing.pipeline import DigestPipeline
from publishers.discord_pub import DiscordPublisher
from publishers.telegram_pub import TelegramPublisher

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger("vigie")


def http_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS),
        headers={"User-Agent": config.HTTP_USER_AGENT},
    )


def build_pipeline() -> DigestPipeline:
    oracle = OpenAIOracle(
        model=config.OPENAI_MODEL,
        timeout=config.ORACLE_TIMEOUT_SECONDS,
    )
    publishers = [
        TelegramPublisher(
            token=config.TELEGRAM_TOKEN,
            chat_id=config.TELEGRAM_CHAT_ID,
            message_max=config.TELEGRAM_MESSAGE_MAX,
        )
    ]
    if config.DISCORD_WEBHOOK_URL:
        publishers.append(DiscordPublisher(config.DISCORD_WEBHOOK_URL, color=config.DISCORD_EMBED_COLOR))

    collectors = build_collectors(config.load_sources())
    if not collectors:
        log.warning("Aucune source configuree dans %s.", config.SOURCES_FILE)

    return DigestPipeline(
        collectors=collectors,
        enricher=BatchEnricher(
            oracle,
            batch_size=config.ENRICH_BATCH_SIZE,
            delay=config.ENRICH_BATCH_DELAY_SECONDS,
        ),
        analyzer=Analyzer(
            oracle,
            trusted_sources=config.FACT_CHECK_SOURCES,
            delay=config.ANALYZE_DELAY_SECONDS,
        ),
        publishers=publishers,
        targets=config.load_targets(),
        monitor=HealthMonitor(alert_threshold=config.FAILURE_ALERT_THRESHOLD),
        dedup_threshold=config.DEDUP_THRESHOLD,
        top_n=config.DIGEST_TOP_N,
        window_hours=config.COLLECT_WINDOW_HOURS,
        source_delays={
            "channel": config.CHANNEL_FETCH_DELAY_SECONDS,
            "site": config.WEBSITE_FETCH_DELAY_SECONDS,
            "feed": config.RSS_FETCH_DELAY_SECONDS,
        },
        session_factory=http_session,
        today=lambda: datetime.now(config.TZ).date(),
    )


def _at(hhmm: str) -> dtime:
    hour, minute = config.parse_hhmm(hhmm)
    return dtime(hour=hour, minute=minute, tzinfo=config.TZ)


async def run_scheduler(pipeline: DigestPipeline) -> None:
    @tasks.loop(time=_at(config.COLLECT_TIME))
    async def collect_job():
        log.info("Tache collecte: debut")
        try:
            await pipeline.collect()
        except Exception:
            log.exception("Tache collecte en echec.")

    @tasks.loop(time=_at(config.PUBLISH_TIME))
    async def publish_job():
        log.info("Tache publication: debut")
        try:
            await pipeline.process_and_publish()
        except Exception:
            log.exception("Tache publication en echec.")

    collect_job.start()
    publish_job.start()
    log.info(
        "Collecte planifiee a %s, publication a %s (%s).",
        config.COLLECT_TIME, config.PUBLISH_TIME, config.TZ.key,
    )
    try:
        await asyncio.Event().wait()
    finally:
        collect_job.cancel()
        publish_job.cancel()


async def main(run_now: bool = False) -> None:
    config.validate_required_env()
    pipeline = build_pipeline()
    try:
        if run_now:
            await pipeline.run()
        else:
            await run_scheduler(pipeline)
    finally:
        await pipeline.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Vigie: daily AI news digest.")
    parser.add_argument("--run-now", action="store_true",
                        help="collect, analyze and publish once instead of scheduling")
    args = parser.parse_args()
    try:
        asyncio.run(main(run_now=args.run_now))
    except KeyboardInterrupt:
        log.info("Arret demande.")
