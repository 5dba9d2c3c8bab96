"""
Unit tests for platform sources
"""

import json
from datetime import date

import httpx
import pytest

from core.config import Settings
from core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    RateLimitError,
    SourceFetchError,
)
from ingestion.extractors.meta_extractor import MetaInsightsSource
from ingestion.extractors.pinterest_extractor import PinterestAdsSource
from models.date_range import DateRange

WEEK = DateRange(date(2024, 1, 1), date(2024, 1, 7))


class TestMetaInsightsSource:
    """Graph API insights fetching"""

    @pytest.mark.asyncio
    async def test_fetch_single_page(self, mock_client, meta_insight_row):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"data": [meta_insight_row]})

        source = MetaInsightsSource("1234", "meta-token", client=mock_client(handler))
        rows = await source.fetch(WEEK)

        assert rows == [meta_insight_row]
        params = requests[0].url.params
        assert requests[0].url.path == "/v19.0/act_1234/insights"
        assert params["level"] == "adset"
        assert params["time_increment"] == "1"
        assert json.loads(params["time_range"]) == {"since": "2024-01-01", "until": "2024-01-07"}
        assert params["access_token"] == "meta-token"
        assert "action_values" in params["fields"].split(",")

    @pytest.mark.asyncio
    async def test_follows_paging_next(self, mock_client):
        next_url = "https://graph.facebook.com/v19.0/act_1234/insights?after=cursor2&access_token=meta-token"
        requests = []

        def handler(request):
            requests.append(request)
            if "after" in request.url.params:
                return httpx.Response(200, json={"data": [{"adset_name": "B"}], "paging": {}})
            return httpx.Response(200, json={"data": [{"adset_name": "A"}], "paging": {"next": next_url}})

        source = MetaInsightsSource("act_1234", "meta-token", client=mock_client(handler))
        rows = await source.fetch(WEEK)

        assert [row["adset_name"] for row in rows] == ["A", "B"]
        assert len(requests) == 2
        assert str(requests[1].url) == next_url

    def test_keeps_existing_act_prefix(self):
        source = MetaInsightsSource("act_1234", "meta-token")
        assert source.insights_url.endswith("/act_1234/insights")

    @pytest.mark.asyncio
    async def test_error_payload_raises(self, mock_client):
        def handler(request):
            return httpx.Response(200, json={"error": {"message": "Invalid OAuth access token", "code": 190}})

        source = MetaInsightsSource("1234", "meta-token", client=mock_client(handler))

        with pytest.raises(SourceFetchError) as exc_info:
            await source.fetch(WEEK)

        assert exc_info.value.context["platform"] == "meta"

    @pytest.mark.asyncio
    async def test_server_error_raises(self, mock_client):
        source = MetaInsightsSource(
            "1234", "meta-token", client=mock_client(lambda request: httpx.Response(500, text="oops"))
        )

        with pytest.raises(SourceFetchError) as exc_info:
            await source.fetch(WEEK)

        assert exc_info.value.context["status_code"] == 500
        assert "access_token" not in exc_info.value.context["url"]

    @pytest.mark.asyncio
    async def test_rate_limit_raises(self, mock_client):
        source = MetaInsightsSource(
            "1234",
            "meta-token",
            client=mock_client(lambda request: httpx.Response(429, headers={"Retry-After": "30"}))
        )

        with pytest.raises(RateLimitError) as exc_info:
            await source.fetch(WEEK)

        assert exc_info.value.retry_after == 30

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self, mock_client):
        source = MetaInsightsSource(
            "1234", "meta-token", client=mock_client(lambda request: httpx.Response(200, text="<html>"))
        )

        with pytest.raises(SourceFetchError):
            await source.fetch(WEEK)

    def test_from_settings_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            MetaInsightsSource.from_settings(Settings(META_AD_ACCOUNT_ID="1234", META_ACCESS_TOKEN=None))

    def test_backfill_starts_2023(self):
        assert MetaInsightsSource("1", "t").earliest_backfill_date(date(2025, 6, 1)) == date(2023, 1, 1)


class PinterestAPI:
    """Stands in for the Pinterest v5 endpoints the source uses"""

    def __init__(self, ad_groups=None, analytics=None, token="pin-access"):
        self.ad_groups = ad_groups if ad_groups is not None else [{"id": "111"}, {"id": "222"}]
        self.analytics = analytics if analytics is not None else []
        self.token = token
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/v5/oauth/token":
            return httpx.Response(200, json={"access_token": self.token} if self.token else {})
        if path.endswith("/ad_groups/analytics"):
            return httpx.Response(200, json=self.analytics)
        if path.endswith("/ad_groups"):
            return httpx.Response(200, json={"items": self.ad_groups, "bookmark": None})
        return httpx.Response(404)

    def paths(self):
        return [request.url.path for request in self.requests]


def pinterest_source(api, mock_client):
    return PinterestAdsSource("549755885175", "app-id", "app-secret", "refresh", client=mock_client(api))


class TestPinterestAdsSource:
    """Ad group analytics fetching"""

    @pytest.mark.asyncio
    async def test_fetch_flow(self, mock_client, pinterest_row):
        api = PinterestAPI(analytics=[pinterest_row])
        source = pinterest_source(api, mock_client)

        rows = await source.fetch(WEEK)

        assert rows == [pinterest_row]
        assert api.paths() == [
            "/v5/oauth/token",
            "/v5/ad_accounts/549755885175/ad_groups",
            "/v5/ad_accounts/549755885175/ad_groups/analytics",
        ]

        token_request = api.requests[0]
        assert token_request.method == "POST"
        assert token_request.headers["Authorization"].startswith("Basic ")
        assert b"grant_type=refresh_token" in token_request.content

        listing = api.requests[1]
        assert listing.url.params["entity_statuses"] == "ACTIVE,PAUSED,ARCHIVED"
        assert listing.headers["Authorization"] == "Bearer pin-access"

        analytics = api.requests[2].url.params
        assert analytics["ad_group_ids"] == "111,222"
        assert analytics["start_date"] == "2024-01-01"
        assert analytics["end_date"] == "2024-01-07"
        assert analytics["granularity"] == "DAY"

    @pytest.mark.asyncio
    async def test_token_and_ad_groups_reused_across_chunks(self, mock_client):
        api = PinterestAPI()
        source = pinterest_source(api, mock_client)

        await source.fetch(WEEK)
        await source.fetch(DateRange(date(2024, 1, 8), date(2024, 1, 14)))

        assert api.paths().count("/v5/oauth/token") == 1
        assert api.paths().count("/v5/ad_accounts/549755885175/ad_groups") == 1

    @pytest.mark.asyncio
    async def test_no_ad_groups_returns_empty(self, mock_client):
        api = PinterestAPI(ad_groups=[])
        rows = await pinterest_source(api, mock_client).fetch(WEEK)

        assert rows == []
        assert not any(path.endswith("/analytics") for path in api.paths())

    @pytest.mark.asyncio
    async def test_ad_group_ids_batched(self, mock_client):
        api = PinterestAPI(ad_groups=[{"id": str(i)} for i in range(250)])
        await pinterest_source(api, mock_client).fetch(WEEK)

        batches = [
            request.url.params["ad_group_ids"].split(",")
            for request in api.requests if request.url.path.endswith("/analytics")
        ]
        assert [len(batch) for batch in batches] == [100, 100, 50]

    @pytest.mark.asyncio
    async def test_ad_group_paging(self, mock_client):
        def handler(request):
            if request.url.path == "/v5/oauth/token":
                return httpx.Response(200, json={"access_token": "pin-access"})
            if request.url.path.endswith("/analytics"):
                return httpx.Response(200, json=[{"AD_GROUP_ID": "x"}])
            if request.url.params.get("bookmark") == "page2":
                return httpx.Response(200, json={"items": [{"id": "2"}], "bookmark": None})
            return httpx.Response(200, json={"items": [{"id": "1"}], "bookmark": "page2"})

        source = pinterest_source(handler, mock_client)
        await source.fetch(WEEK)

        assert source._ad_group_ids == ["1", "2"]

    @pytest.mark.asyncio
    async def test_token_refresh_without_token(self, mock_client):
        api = PinterestAPI(token=None)

        with pytest.raises(AuthenticationError):
            await pinterest_source(api, mock_client).fetch(WEEK)

    @pytest.mark.asyncio
    async def test_unauthorized(self, mock_client):
        source = pinterest_source(lambda request: httpx.Response(401, json={"code": 2}), mock_client)

        with pytest.raises(AuthenticationError) as exc_info:
            await source.fetch(WEEK)

        assert exc_info.value.context["status_code"] == 401

    def test_backfill_reaches_back_89_days(self):
        source = PinterestAdsSource("1", "a", "s", "r")
        assert source.earliest_backfill_date(date(2024, 4, 1)) == date(2024, 1, 3)


class TestUnwrapRows:
    """Response shape normalization"""

    @pytest.mark.parametrize("payload", [
        [{"a": 1}],
        {"items": [{"a": 1}]},
        {"data": [{"a": 1}]},
    ])
    def test_accepted_shapes(self, payload):
        assert MetaInsightsSource("1", "t").unwrap_rows(payload) == [{"a": 1}]

    def test_non_object_rows_dropped(self):
        assert MetaInsightsSource("1", "t").unwrap_rows([{"a": 1}, "junk", None]) == [{"a": 1}]

    @pytest.mark.parametrize("payload", [{"rows": []}, "text", None, 12])
    def test_unrecognized_shape(self, payload):
        with pytest.raises(SourceFetchError):
            MetaInsightsSource("1", "t").unwrap_rows(payload)
