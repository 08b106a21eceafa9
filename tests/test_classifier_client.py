import io

import httpx
import pytest

from certiai.core.errors import ClassifierResponseError, ServiceUnavailable
from certiai.core.settings import Settings
from certiai.services.classifier_client import ClassifierConfig


@pytest.mark.anyio
async def test_classify_posts_file_and_type_to_verify(gateway, classifier):
    result = await gateway.classify(
        io.BytesIO(b"%PDF-1.4 fake"), "DEGREE", filename="degree.pdf", content_type="application/pdf"
    )

    assert result.confidence == 92.5
    assert result.authenticity == "AUTHENTIC"
    assert result.details == {"checks": 3}

    req = classifier.requests[0]
    assert req.method == "POST"
    assert str(req.url) == "http://ml.test/verify"
    assert req.headers["content-type"].startswith("multipart/form-data")
    body = req.content
    assert b'name="certificate_type"' in body
    assert b"DEGREE" in body
    assert b'filename="degree.pdf"' in body
    assert b"%PDF-1.4 fake" in body


@pytest.mark.anyio
async def test_timeout_is_service_unavailable(gateway, classifier):
    classifier.reply = httpx.ReadTimeout("timed out")

    with pytest.raises(ServiceUnavailable) as exc:
        await gateway.classify(io.BytesIO(b"x"), "DEGREE")
    assert "timed out" in exc.value.message


@pytest.mark.anyio
async def test_connection_refused_is_service_unavailable(gateway, classifier):
    classifier.reply = httpx.ConnectError("connection refused")

    with pytest.raises(ServiceUnavailable) as exc:
        await gateway.classify(io.BytesIO(b"x"), "DIPLOMA")
    assert exc.value.message == "ML service unavailable"


@pytest.mark.anyio
async def test_non_200_is_response_error_not_unavailable(gateway, classifier):
    classifier.reply = httpx.Response(500, json={"error": "boom"})

    with pytest.raises(ClassifierResponseError) as exc:
        await gateway.classify(io.BytesIO(b"x"), "DEGREE")
    assert "500" in exc.value.message


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [
        {"authenticity": "AUTHENTIC"},
        {"confidence": "high", "authenticity": "AUTHENTIC"},
        ["not", "an", "object"],
    ],
)
async def test_malformed_body_is_response_error(gateway, classifier, body):
    classifier.reply = httpx.Response(200, json=body)

    with pytest.raises(ClassifierResponseError):
        await gateway.classify(io.BytesIO(b"x"), "DEGREE")


@pytest.mark.anyio
async def test_invalid_json_is_response_error(gateway, classifier):
    classifier.reply = httpx.Response(200, content=b"<html>nope</html>")

    with pytest.raises(ClassifierResponseError):
        await gateway.classify(io.BytesIO(b"x"), "DEGREE")


@pytest.mark.anyio
async def test_unknown_label_is_passed_through(gateway, classifier):
    classifier.reply = {"confidence": 12, "authenticity": "TAMPERED", "details": None}

    result = await gateway.classify(io.BytesIO(b"x"), "DEGREE")
    assert result.authenticity == "TAMPERED"
    assert result.confidence == 12.0
    assert result.details is None


def test_config_from_settings():
    s = Settings(ML_SERVICE_URL="http://ml:5000/", ML_SERVICE_TIMEOUT_SEC=30)
    cfg = ClassifierConfig.from_settings(s)
    assert cfg.verify_url == "http://ml:5000/verify"
    assert cfg.timeout_seconds == 30


def test_config_defaults_to_local_service():
    assert ClassifierConfig().verify_url == "http://localhost:5000/verify"


@pytest.mark.anyio
@pytest.mark.parametrize("status_code", [201, 202])
async def test_any_2xx_with_valid_body_is_a_result(gateway, classifier, status_code):
    classifier.reply = httpx.Response(
        status_code, json={"confidence": 92.5, "authenticity": "AUTHENTIC", "details": {}}
    )

    result = await gateway.classify(io.BytesIO(b"x"), "DEGREE")
    assert result.confidence == 92.5
    assert result.authenticity == "AUTHENTIC"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "raw_confidence",
    [b"true", b'"92.5"', b"NaN", b"Infinity", b"100.5", b"-1", b"null"],
)
async def test_confidence_must_be_finite_number_in_range(gateway, classifier, raw_confidence):
    classifier.reply = httpx.Response(
        200,
        content=b'{"confidence": ' + raw_confidence + b', "authenticity": "AUTHENTIC"}',
        headers={"content-type": "application/json"},
    )

    with pytest.raises(ClassifierResponseError):
        await gateway.classify(io.BytesIO(b"x"), "DEGREE")


@pytest.mark.anyio
@pytest.mark.parametrize("confidence", [0, 100, 0.5])
async def test_confidence_bounds_are_inclusive(gateway, classifier, confidence):
    classifier.reply = {"confidence": confidence, "authenticity": "SUSPICIOUS"}

    result = await gateway.classify(io.BytesIO(b"x"), "DEGREE")
    assert result.confidence == float(confidence)
