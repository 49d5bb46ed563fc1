"""Run the API with uvicorn: `python -m event_search`."""

import uvicorn

from .config import HOST, PORT


def main() -> None:
    uvicorn.run("event_search.api.app:app", host=HOST, port=PORT)


if __name__ == "__main__":
    main()
