# python -m server  /  start-server
import os

import uvicorn


def _port(raw: str | None, default: int = 8000) -> int:
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return value if 0 < value < 65536 else default


def main() -> None:
    """Arranca la API de ranking de temporadas. Sin API_RELOAD=1 no hay reload."""
    uvicorn.run(
        "server.api.app:app",
        host=os.getenv("API_HOST", "127.0.0.1"),
        port=_port(os.getenv("API_PORT")),
        reload=os.getenv("API_RELOAD", "0") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").strip().lower() or "info",
    )


if __name__ == "__main__":
    main()
