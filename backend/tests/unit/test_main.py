"""Unit tests for the application runner."""

from unittest.mock import patch

from app.core.config import settings
from app.main import run


class TestRun:
    """uvicorn entry point."""

    @patch("uvicorn.run")
    def test_run_serves_app_with_settings(self, mock_run):
        run()

        mock_run.assert_called_once_with(
            "app.main:app",
            host=settings.HOST,
            port=settings.PORT,
            log_level=settings.LOG_LEVEL.lower(),
        )
