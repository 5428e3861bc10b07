import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("imageshare.main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
