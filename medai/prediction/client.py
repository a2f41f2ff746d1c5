# -*- coding: utf-8 -*-
"""HTTP adapter for the external CVD risk-prediction service.

One best-effort POST per call; no retries. Failures come back as typed errors:

- PredictionServiceError        the service answered with a non-2xx status or an unusable body
- PredictionServiceUnreachable  no response (connect failure, timeout, dropped connection)
- PredictionRequestError        the request could not be built (bad features, bad URL)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple, Union

import httpx
from fastapi import Request

from ..errors import PredictionRequestError, PredictionServiceError, PredictionServiceUnreachable
from .features import FeatureVector, PredictionResult

logger = logging.getLogger(__name__)


class RiskPredictionClient:
    def __init__(
        self,
        base_url: str,
        *,
        predict_path: str = "/predict_risk",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.predict_path = "/" + predict_path.lstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.predict_path}"

    def open(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, follow_redirects=True, transport=self._transport)
            logger.info("Prediction client ready for %s (timeout=%ss)", self.url, self.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "RiskPredictionClient":
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def predict(self, features: Union[FeatureVector, Mapping[str, Any]]) -> PredictionResult:
        try:
            vector = features if isinstance(features, FeatureVector) else FeatureVector.from_mapping(features)
        except (KeyError, TypeError, ValueError) as exc:
            raise PredictionRequestError(f"Error processing ML request: invalid feature {exc}") from exc

        client = self.open()
        payload = vector.to_payload()
        logger.info("Requesting CVD risk prediction from %s", self.url)
        logger.debug("Prediction features: %s", payload)
        try:
            resp = client.post(self.url, json=payload)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            logger.warning("Error setting up request to ML service: %s", exc)
            raise PredictionRequestError() from exc
        except httpx.TransportError as exc:
            logger.warning("No response received from ML service: %s", exc)
            raise PredictionServiceUnreachable() from exc
        except httpx.RequestError as exc:
            logger.warning("ML service call failed: %s", exc)
            raise PredictionServiceError(f"ML service error: {exc}") from exc

        if not resp.is_success:
            message = _upstream_message(resp)
            logger.warning("ML service responded with status %s: %s", resp.status_code, message)
            raise PredictionServiceError(f"ML service error: {message}", upstream_status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise PredictionServiceError(
                "ML service error: response was not JSON", upstream_status=resp.status_code
            ) from exc
        result = parse_prediction(data, status_code=resp.status_code)
        logger.info("ML service responded with status %s", resp.status_code)
        logger.debug("Prediction result: %s", result)
        return result


def _upstream_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    text = (resp.text or "").strip().replace("\n", " ")
    return text[:200] or "Unknown error"


def _probabilities(raw: Any) -> Tuple[Optional[float], Optional[float]]:
    if raw is None:
        return None, None
    if isinstance(raw, Mapping):
        low = raw.get("low_risk_proba", raw.get("low"))
        high = raw.get("high_risk_proba", raw.get("high"))
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        low, high = raw
    else:
        raise ValueError("unexpected prediction_probabilities shape")
    return (float(low) if low is not None else None, float(high) if high is not None else None)


def parse_prediction(data: Any, *, status_code: Optional[int] = None) -> PredictionResult:
    """Map the service's `prediction_class` / `prediction_probabilities` / `send_alert` body."""
    try:
        if not isinstance(data, Mapping):
            raise ValueError("response body is not an object")
        raw_class = data["prediction_class"]
        if isinstance(raw_class, (list, tuple)) and len(raw_class) == 1:
            raw_class = raw_class[0]
        prediction_class = int(raw_class)
        if prediction_class not in (0, 1):
            raise ValueError(f"prediction_class {prediction_class} out of range")
        low, high = _probabilities(data.get("prediction_probabilities"))
        alert = bool(data.get("send_alert", False))
    except (KeyError, TypeError, ValueError) as exc:
        raise PredictionServiceError(
            f"ML service error: malformed prediction response ({exc})", upstream_status=status_code
        ) from exc
    return PredictionResult(
        prediction_class=prediction_class,
        low_risk_proba=low,
        high_risk_proba=high,
        alert_triggered=alert,
    )


def get_prediction_client(request: Request) -> RiskPredictionClient:
    return request.app.state.prediction_client
