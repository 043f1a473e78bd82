import os
import uvicorn  # type: ignore

from app.utils import get_logger

log = get_logger(__name__)

if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    log.info("Running FirstShift API on %s:%s", host, port)
    uvicorn.run("app.main:app", reload=os.getenv("RELOAD", "1") == "1", host=host, port=port)
