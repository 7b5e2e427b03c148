"""Run the Mediabox server with uvicorn: ``python -m mediabox``."""
import uvicorn

from mediabox.config import get_config


def main():
    config = get_config()
    uvicorn.run(
        "mediabox.main:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
