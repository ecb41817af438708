import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

import uvicorn
from fastapi import FastAPI

from media_agent.agent.command_agent import OpenAIStructuredProvider, StructuredProvider
from media_agent.agent.edit_session import EditSession
from media_agent.config import SessionConfig
from media_agent.handlers.edit_handler import router as edit_router
from media_agent.handlers.health_handler import router as health_router
from media_agent.utils.process_runner import Runner, run_process

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(ROOT_DIR / ".env")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

logger = logging.getLogger(__name__)


def _attach_file_handler(
    logger_name: str,
    log_file_path: Path,
    level_name: str | None = None,
) -> None:
    logger_level = (level_name or LOG_LEVEL).upper()
    logger_level_value = getattr(logging, logger_level, logging.INFO)

    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(logger_level_value)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    target_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == str(log_file_path)
        for handler in target_logger.handlers
    ):
        target_logger.addHandler(file_handler)
    target_logger.setLevel(logger_level_value)


MEDIA_AGENT_LOG_FILE = os.getenv("MEDIA_AGENT_LOG_FILE", "").strip()
MEDIA_AGENT_LOG_LEVEL = os.getenv("MEDIA_AGENT_LOG_LEVEL", LOG_LEVEL).strip()
if MEDIA_AGENT_LOG_FILE:
    log_path = Path(MEDIA_AGENT_LOG_FILE)
    if not log_path.is_absolute():
        log_path = ROOT_DIR / log_path
    _attach_file_handler("media_agent.agent", log_path, level_name=MEDIA_AGENT_LOG_LEVEL)
    _attach_file_handler("media_agent.handlers", log_path, level_name=MEDIA_AGENT_LOG_LEVEL)


def _log_event(level: str, message: str) -> None:
    if level == "error":
        logger.warning("[session] %s", message)
    else:
        logger.info("[session] %s", message)


def create_app(
    config: SessionConfig | None = None,
    provider: StructuredProvider | None = None,
    runner: Runner = run_process,
) -> FastAPI:
    config = config or SessionConfig.from_env()
    provider = provider or OpenAIStructuredProvider.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.edit_session.close()

    app = FastAPI(title="Media Agent", lifespan=lifespan)
    app.state.edit_session = EditSession(
        config=config,
        provider=provider,
        runner=runner,
        on_event=_log_event,
    )

    app.include_router(health_router)
    app.include_router(edit_router, tags=["edit"])
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
