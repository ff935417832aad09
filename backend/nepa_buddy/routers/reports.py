from fastapi import APIRouter, Depends, Query

from nepa_buddy.dependencies import get_tracker
from nepa_buddy.schemas.report import DeviceReportIn, FeedbackIn, IssueReportIn, IssueReportOut, ReportAck
from nepa_buddy.services.tracker import PowerTracker

router = APIRouter(tags=["reports"])


@router.post("/reports/", response_model=ReportAck, status_code=202)
def submit_device_report(body: DeviceReportIn, tracker: PowerTracker = Depends(get_tracker)):
    """Charging-state ping. Reports for unknown zones are dropped, not rejected."""
    return tracker.record_report(body.zone_id, body.device_hash, body.is_charging, at=body.reported_at)


@router.post("/feedback/", response_model=ReportAck, status_code=202)
def submit_feedback(body: FeedbackIn, tracker: PowerTracker = Depends(get_tracker)):
    return tracker.submit_feedback(body.zone_id, body.device_hash, body.feedback_type)


@router.post("/issue-reports/", response_model=IssueReportOut, status_code=201)
def submit_issue_report(body: IssueReportIn, tracker: PowerTracker = Depends(get_tracker)):
    return tracker.submit_issue_report(body)


@router.get("/issue-reports/", response_model=list[IssueReportOut])
def list_issue_reports(
    zone_id: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    tracker: PowerTracker = Depends(get_tracker),
):
    """Issue reports, newest first, for export to the DisCo."""
    return tracker.list_issue_reports(zone_id=zone_id, limit=limit)
