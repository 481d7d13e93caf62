import hmac
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from fmea_bot.config import Settings, load_settings, validate_environment_variables
from fmea_bot.constants import SECRET_HEADER
from fmea_bot.handler import AppContext, build_context, process_update
from fmea_bot.logger import logger


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    if context is None:
        # Log configuration status; missing variables only disable resources
        validate_environment_variables()
        context = build_context(settings or load_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        context.close()

    app = FastAPI(lifespan=lifespan)
    app.state.context = context

    @app.get("/")
    @app.get("/api/telegram")
    async def ping():
        return JSONResponse({"status": "ok"})

    @app.post("/api/telegram")
    async def telegram_webhook(request: Request):
        secret = context.settings.bot_secret
        if secret:
            got = request.headers.get(SECRET_HEADER) or ""
            if not hmac.compare_digest(got.encode(), secret.encode()):
                logger.warning("Webhook denied: secret mismatch")
                return PlainTextResponse("Unauthorized", status_code=401)

        try:
            update = await request.json()
        except Exception:
            logger.warning("Webhook body is not valid JSON; ignoring")
            update = {}

        # pymongo and the Telegram client block, keep them off the event loop.
        # Always ACK so Telegram does not redeliver the update.
        await run_in_threadpool(process_update, context, update)
        return PlainTextResponse("OK")

    return app


fastapi_app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:fastapi_app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 3000)),
        reload=os.getenv("ENV") != "prod",
    )
