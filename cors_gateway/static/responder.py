import asyncio
import logging
from pathlib import Path

from fastapi.responses import PlainTextResponse, Response

from cors_gateway.errors import StaticAssetReadError
from cors_gateway.utils.exception_logging import log_exception_with_details

logger = logging.getLogger("uvicorn.error")

DOCUMENT_CONTENT_TYPE = "text/html"


class StaticAssetResponder:
    """Serves the single visualizer document from a directory on disk."""

    def __init__(self, root: Path):
        self.root = Path(root)

    async def fetch_document(self, name: str) -> bytes:
        path = self.root / name
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise StaticAssetReadError(name, e) from e

    async def respond(self, name: str) -> Response:
        try:
            data = await self.fetch_document(name)
        except StaticAssetReadError as e:
            log_exception_with_details(logger, f"{e}:", e.cause)
            return PlainTextResponse(str(e), status_code=500)
        except Exception as e:
            logger.error(f"Error loading {name}: {e}", exc_info=True)
            return PlainTextResponse(f"Error loading {name}", status_code=500)
        return Response(
            content=data,
            status_code=200,
            headers={"Content-Type": DOCUMENT_CONTENT_TYPE},
        )
