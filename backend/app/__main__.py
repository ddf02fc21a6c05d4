import uvicorn

from app.core.config import get_settings


def main() -> None:
    settings = get_settings()
    # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which saves the final state.
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
