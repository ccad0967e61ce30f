from .cen_report import CenReportRequest, CenReportPayload

__all__ = [
    'CenReportRequest',
    'CenReportPayload',
]
