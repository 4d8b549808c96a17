import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from shared.models.performance import PerformanceAnalysis
from vendorsync_api.application.interfaces.service_interfaces import VendorApiInterface
from vendorsync_api.application.services.performance_service import PerformanceService, normalize_performance

RAW_ANALYSIS = {
    "id": "perf-1",
    "totalSpend": "12,500.75",
    "avgInvoiceAmount": "1041.73",
    "invoiceCount": 12,
    "paymentConsistency": "0.92",
    "spendTrend": "increasing",
    "seasonalPatterns": {
        " March ": {"total_amount": "2500", "invoice_count": 2, "percentage_of_total": "20.0"},
        "June": {"total_amount": 4000, "invoice_count": 3, "percentage_of_total": 32},
        "July": {"total_amount": 4000, "invoice_count": 3, "percentage_of_total": 32},
    },
    "complianceScore": "88",
    "analysisDate": "2026-10-01T00:00:00Z",
    "analysisPeriodDays": 365,
}


class TestPerformanceNormalization:

    def test_numbers_and_seasonal_list(self):
        view = normalize_performance(PerformanceAnalysis.model_validate(RAW_ANALYSIS))

        assert view.total_spend == 12500.75
        assert view.payment_consistency == 0.92
        assert view.compliance_score == 88
        assert [month.month for month in view.seasonal] == ["March", "June", "July"]
        assert view.seasonal[0].total == 2500
        assert view.seasonal[0].pct == 20

    def test_top_month_keeps_first_of_ties(self):
        view = normalize_performance(PerformanceAnalysis.model_validate(RAW_ANALYSIS))

        assert view.top_month.month == "June"
        assert view.to_dict()["topMonth"] == {"month": "June", "pct": 32}

    def test_empty_analysis(self):
        view = normalize_performance(PerformanceAnalysis.model_validate({"id": "perf-2"}))

        assert view.seasonal == []
        assert view.top_month is None
        assert view.spend_trend == "—"
        assert view.to_dict()["topMonth"] is None


class TestPerformanceService:

    @pytest_asyncio.fixture
    async def mock_api_client(self):
        client = AsyncMock(spec=VendorApiInterface)
        client.get_vendor_performance.return_value = PerformanceAnalysis.model_validate(RAW_ANALYSIS)
        return client

    @pytest.mark.asyncio
    async def test_get_vendor_performance(self, mock_api_client):
        service = PerformanceService(mock_api_client)

        view = await service.get_vendor_performance("v1")

        mock_api_client.get_vendor_performance.assert_awaited_once_with("v1")
        data = view.to_dict()
        assert data["spendTrend"] == "increasing"
        assert data["analysisDate"] == "2026-10-01T00:00:00+00:00"
        assert len(data["seasonal"]) == 3
