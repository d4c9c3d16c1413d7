import asyncio
import contextlib
import logging

from gsdsync.config import Settings, get_settings
from gsdsync.engine import SyncEngine
from gsdsync.http_client import build_session
from gsdsync.logging_setup import setup_logging
from gsdsync.services.live import LiveChannel
from gsdsync.services.remote import RemoteStore

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> SyncEngine:
    """Wire a SyncEngine to the remote store and push channel named in settings."""
    remote = RemoteStore(
        settings.base_url,
        build_session(settings.http_retries),
        timeout=settings.request_timeout,
    )
    engine = SyncEngine(remote, position_epsilon=settings.position_epsilon)
    engine.attach_live(LiveChannel(
        settings.push_url,
        engine.apply_push,
        reconnect_delay=settings.reconnect_delay,
        reconnect_backoff=settings.reconnect_backoff,
        reconnect_max_delay=settings.reconnect_max_delay,
        reconnect_max_attempts=settings.reconnect_max_attempts,
    ))
    return engine


async def serve(engine: SyncEngine) -> None:
    """Load everything, then keep the push channel live until cancelled."""
    await asyncio.gather(engine.refresh(), engine.refresh_inbox())
    logger.info(
        "Loaded %d next actions, %d projects, %d inbox items",
        len(engine.actions), len(engine.projects), engine.inbox_count,
    )
    engine.start_live()
    try:
        await asyncio.Event().wait()
    finally:
        await engine.stop_live()


def run():
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    engine = build_engine(settings)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(engine))


if __name__ == "__main__":
    run()
