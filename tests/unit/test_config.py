"""
Unit tests for settings and the command line entry point
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from core.config import Settings
from core.exceptions import ConfigurationError
from models.base import AdPlatform
from models.date_range import to_date
from scripts import run_backfill


class TestSettings:
    @pytest.mark.parametrize("chunk_days", [0, 8, 30])
    def test_chunk_days_limited_to_a_week(self, chunk_days):
        with pytest.raises(ValidationError):
            Settings(CHUNK_DAYS=chunk_days)

    def test_chunk_days_within_a_week(self):
        assert Settings(CHUNK_DAYS=3).CHUNK_DAYS == 3

    def test_require_lists_missing_names(self):
        settings = Settings(META_AD_ACCOUNT_ID="1234", META_ACCESS_TOKEN=None, META_API_VERSION="v19.0")

        with pytest.raises(ConfigurationError) as exc_info:
            settings.require("META_AD_ACCOUNT_ID", "META_ACCESS_TOKEN")

        assert exc_info.value.context["missing"] == ["META_ACCESS_TOKEN"]


class TestToDate:
    def test_datetime_becomes_its_calendar_day(self):
        value = to_date(datetime(2024, 1, 15, 23, 30, tzinfo=timezone.utc))

        assert value == date(2024, 1, 15)
        assert type(value) is date

    def test_iso_string_with_time(self):
        assert to_date("2024-01-15T08:00:00Z") == date(2024, 1, 15)

    def test_malformed_string(self):
        with pytest.raises(ValueError):
            to_date("last week")


class TestCommandLine:
    def test_malformed_date_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_backfill.parse_args(["meta", "--from", "2024-13-01"])

        assert exc_info.value.code == 2
        assert "invalid date" in capsys.readouterr().err

    def test_backfill_window(self, monkeypatch, capsys):
        service = MagicMock()
        service.run_backfill = AsyncMock(return_value={"ok": True, "total": 7, "failed_chunks": 0})
        monkeypatch.setattr(run_backfill, "get_ingestion_service", lambda: service)

        assert run_backfill.main(["pinterest", "--from", "2024-01-01", "--to", "2024-01-10"]) == 0

        service.run_backfill.assert_awaited_once_with(AdPlatform.PINTEREST, date(2024, 1, 1), date(2024, 1, 10))
        assert '"total": 7' in capsys.readouterr().out

    def test_unconfigured_service(self, monkeypatch):
        def unconfigured():
            raise ConfigurationError("Missing required settings: BIGQUERY_DATASET_ID")

        monkeypatch.setattr(run_backfill, "get_ingestion_service", unconfigured)

        assert run_backfill.main(["meta", "--daily"]) == 1
