from shared.models.performance import PerformanceAnalysis, PerformanceView, SeasonalMonth
from shared.utils.convert import to_number
from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import VendorApiInterface

logger = get_logger(__name__)

NO_TREND = "—"


def normalize_performance(analysis: PerformanceAnalysis) -> PerformanceView:
    """Flatten the seasonal pattern map into a list and pick the top month by share of spend."""
    seasonal = []
    for raw_month, pattern in analysis.seasonal_patterns.items():
        pattern = pattern if isinstance(pattern, dict) else {}
        seasonal.append(SeasonalMonth(
            month=str(raw_month).strip(),
            total=to_number(pattern.get("total_amount")),
            count=to_number(pattern.get("invoice_count")),
            pct=to_number(pattern.get("percentage_of_total")),
        ))

    top_month = None
    for month in seasonal:
        # ties keep the earliest entry
        if top_month is None or month.pct > top_month.pct:
            top_month = month

    return PerformanceView(
        id=analysis.id,
        total_spend=analysis.total_spend,
        avg_invoice_amount=analysis.avg_invoice_amount,
        invoice_count=analysis.invoice_count,
        payment_consistency=analysis.payment_consistency,
        spend_trend=analysis.spend_trend or NO_TREND,
        seasonal=seasonal,
        top_month=top_month,
        compliance_score=analysis.compliance_score,
        analysis_date=analysis.analysis_date,
        analysis_period_days=analysis.analysis_period_days,
    )


class PerformanceService:

    def __init__(self, api_client: VendorApiInterface):
        self.api_client = api_client

    async def get_vendor_performance(self, vendor_id: str) -> PerformanceView:
        analysis = await self.api_client.get_vendor_performance(vendor_id)
        view = normalize_performance(analysis)
        logger.info("Vendor performance loaded",
                    extra={"vendor_id": vendor_id, "seasonal_months": len(view.seasonal)})
        return view
