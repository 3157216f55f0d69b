"""
ROI API

Vendor verification (what a lead vendor actually cost per result) and
forward marketing forecasts.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import Response
from pydantic import BaseModel, Field

from calculator.roi import (
    MarketingInputs,
    VendorVerifierInputs,
    compute_marketing_forecast,
    compute_vendor_verifier,
)
from export.vendor_report import vendor_report_csv, vendor_report_text

router = APIRouter(prefix="/api/v1/roi", tags=["ROI"])


class VendorVerifierRequest(BaseModel):
    vendor_name: str = ""
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    amount_spent: Optional[float] = Field(default=None, ge=0)
    inbound_calls: Optional[float] = Field(default=None, ge=0)
    quoted_hh: Optional[float] = Field(default=None, ge=0)
    closed_hh: Optional[float] = Field(default=None, ge=0)
    policies_quoted: Optional[float] = Field(default=None, ge=0)
    policies_sold: Optional[float] = Field(default=None, ge=0)
    items_quoted: Optional[float] = Field(default=None, ge=0)
    items_sold: Optional[float] = Field(default=None, ge=0)
    premium_sold: Optional[float] = Field(default=None, ge=0)
    commission_pct: Optional[float] = Field(default=None, description="Commission percent, e.g. 12 for 12%")

    def to_inputs(self) -> VendorVerifierInputs:
        return VendorVerifierInputs(**self.model_dump())


class MarketingRequest(BaseModel):
    lead_source: str = ""
    spend: float = Field(default=0, ge=0)
    cpl: float = Field(default=0, ge=0, description="Cost per lead")
    quote_rate_pct: float = 0
    close_rate_pct: float = 0
    avg_item_value: float = Field(default=0, ge=0)
    avg_items_per_hh: float = Field(default=0, ge=0)
    commission_pct: float = 0


@router.post("/vendor")
async def vendor_verifier(request: VendorVerifierRequest):
    inputs = request.to_inputs()
    derived = compute_vendor_verifier(inputs)
    return {
        "derived": derived.to_dict(),
        "report": vendor_report_text(inputs, derived),
    }


@router.post("/vendor/report.csv")
async def vendor_report(request: VendorVerifierRequest):
    inputs = request.to_inputs()
    export = vendor_report_csv(inputs, compute_vendor_verifier(inputs))
    return Response(
        content=export.content,
        media_type=export.content_type,
        headers={"Content-Disposition": export.content_disposition},
    )


@router.post("/marketing")
async def marketing_forecast(request: MarketingRequest):
    return compute_marketing_forecast(MarketingInputs(**request.model_dump())).to_dict()
