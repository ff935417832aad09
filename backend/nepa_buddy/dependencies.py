from fastapi import Request

from nepa_buddy.services.tracker import PowerTracker


def get_tracker(request: Request) -> PowerTracker:
    """The tracker built at startup; see main.lifespan."""
    return request.app.state.tracker
