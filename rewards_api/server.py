"""Run the API with uvicorn on the configured port."""

import uvicorn

from rewards_api.core.config import settings


def main() -> None:
    uvicorn.run(
        "rewards_api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
