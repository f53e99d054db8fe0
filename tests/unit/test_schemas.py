from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from evdispatch.schemas import (
    AcceptJobBody,
    GeoCoordinates,
    JobAcceptanceLog,
    MessageCreate,
    NotificationPayload,
    ServiceRequestRead,
)


def test_coordinates_are_immutable():
    coords = GeoCoordinates(latitude=30.27, longitude=-97.74, accuracy=5.0)
    with pytest.raises(ValidationError):
        coords.latitude = 0.0


def test_accept_body_defaults_platform():
    body = AcceptJobBody(coordinates={"latitude": 30.27, "longitude": -97.74})
    assert body.platform == "unknown"
    assert body.coordinates.accuracy is None


def test_accept_body_rejects_unknown_platform():
    with pytest.raises(ValidationError):
        AcceptJobBody(coordinates={"latitude": 1, "longitude": 1}, platform="blackberry")


def test_naive_accepted_at_is_read_as_utc():
    log = JobAcceptanceLog(
        id="01LOG",
        accepted_at=datetime(2024, 5, 1, 12, 0),
        coordinates=GeoCoordinates(latitude=1.0, longitude=2.0),
    )
    assert log.accepted_at.tzinfo == timezone.utc
    assert log.accepted_by is None


def test_acceptance_log_from_row_without_actor():
    row = SimpleNamespace(
        id="01LOG", accepted_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        accepted_by_id=None, accepted_by_name=None, accepted_by_role=None,
        latitude=30.27, longitude=-97.74, accuracy=None, platform="web",
    )
    log = JobAcceptanceLog.from_row(row)
    assert log.accepted_by is None
    assert log.platform == "web"
    assert log.coordinates.latitude == 30.27


def test_service_request_from_row():
    row = SimpleNamespace(
        id="01REQ", tenant_id=None, type="roadside", name="Ann", title="Flat tire",
        description=None, latitude=30.27, longitude=-97.74, address="Congress Ave",
        status="pending", assigned_staff=None, messages=None,
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    req = ServiceRequestRead.from_row(row)
    assert req.location.address == "Congress Ave"
    assert req.assigned_staff == []
    assert req.acceptance_logs == []
    assert req.description == ""


def test_message_text_required():
    with pytest.raises(ValidationError):
        MessageCreate(text="")


def test_notification_payload_type_is_closed():
    with pytest.raises(ValidationError):
        NotificationPayload(type="sms", title="t", message="m")
