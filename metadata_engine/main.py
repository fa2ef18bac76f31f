"""FastAPI application for Metadata Engine."""

# Setup logging before any other imports
# ruff: noqa: E402 (imports after logging setup is intentional)
from metadata_engine.config import get_settings
from metadata_engine.utils.logging import setup_logging

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_file)

from metadata_engine.app import create_app

app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
