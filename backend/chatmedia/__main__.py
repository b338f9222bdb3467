"""Run the service: ``python -m chatmedia``."""
import uvicorn

from chatmedia.config import get_config


def main() -> None:
    config = get_config()
    uvicorn.run(
        "chatmedia.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level,
    )


if __name__ == "__main__":
    main()
