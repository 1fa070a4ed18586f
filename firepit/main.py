import uvicorn

from firepit.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the app with uvicorn (``firepit-api`` console script)."""
    uvicorn.run("firepit.main:app", host="0.0.0.0", port=8000, log_config=None)
