"""Backend entrypoint. Starts uvicorn with port from env."""
import os
import uvicorn

# Import app directly rather than via uvicorn's string-based import.
from portfolio_feed.main import app


def main() -> None:
    port = int(os.environ.get("BACKEND_PORT", "4000"))
    uvicorn.run(app, host="127.0.0.1", port=port)


if __name__ == "__main__":
    main()
