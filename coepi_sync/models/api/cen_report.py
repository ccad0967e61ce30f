"""
Pydantic models for the CEN report API
"""

import base64
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from coepi_sync.models.domain.cen import ReceivedReport, RollingKey, SymptomReport


class CenReportRequest(BaseModel):
    """Request body for POST /cenreport"""
    model_config = ConfigDict(populate_by_name=True)

    report_id: str = Field(alias="reportID")
    report: str  # base64 encoded report text
    cen_keys: str = Field(alias="cenKeys")  # comma separated key values
    report_timestamp: int = Field(alias="reportTimeStamp")

    @classmethod
    def from_symptom_report(cls, report: SymptomReport, keys: Sequence[RollingKey]) -> 'CenReportRequest':
        """Bind a symptom report to the device's own recent keys"""
        return cls(
            report_id=report.report_id,
            report=base64.b64encode(report.report.encode('utf-8')).decode('ascii'),
            cen_keys=",".join(key.key for key in keys),
            report_timestamp=report.timestamp,
        )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class CenReportPayload(BaseModel):
    """One report as returned by GET /cenreport/{key}"""
    model_config = ConfigDict(populate_by_name=True)

    report_id: str = Field(alias="reportID")
    report: str
    report_timestamp: int = Field(alias="reportTimeStamp")

    def to_received_report(self) -> ReceivedReport:
        """Decode the base64 report body; raises ValueError on malformed input"""
        text = base64.b64decode(self.report, validate=True).decode('utf-8')
        return ReceivedReport(
            report_id=self.report_id,
            report=text,
            timestamp=self.report_timestamp,
        )
