import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from pydantic import BaseModel

from token_provider.config import ProviderConfig
from token_provider.token_provider import UNAVAILABLE_MESSAGE, TokenProvider


# exclude `/health` logs as it's used for health checks
class EndpointFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return "GET /health" not in record.getMessage()


logging.getLogger("uvicorn.access").addFilter(EndpointFilter())
logger = logging.getLogger("TokenProviderAPI")


class TokenReportResponse(BaseModel):
    token_address: str
    report: str


def create_app(provider: Optional[TokenProvider] = None) -> FastAPI:
    """
    Build the app around a single TokenProvider instance.
    Reusing one instance across requests keeps the memory cache tier shared.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.provider = provider or TokenProvider(ProviderConfig.from_env())
        yield
        logger.info("Application shutdown: cleaning up token provider")
        await app.state.provider.cleanup()

    app = FastAPI(lifespan=lifespan)

    def get_provider(request: Request) -> TokenProvider:
        return request.app.state.provider

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/token_report/{token_address}", response_model=TokenReportResponse)
    async def token_report(token_address: str, provider: TokenProvider = Depends(get_provider)):
        try:
            report = await asyncio.wait_for(
                provider.get_formatted_token_report(token_address), timeout=provider.config.report_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(f"Report generation timed out for {token_address}")
            report = UNAVAILABLE_MESSAGE
        return TokenReportResponse(token_address=token_address, report=report)

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s - %(message)s")
    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
