import logging
from typing import Any

import httpx
from fastapi import Depends

from affinity_api.config import Settings, get_settings
from affinity_api.errors import UpstreamError
import affinity_api.utils.log_setup  # noqa: F401  (registers Logger.trace)

log = logging.getLogger(__name__)

# Upstream body that did not parse as JSON
_NOT_JSON = object()


class PredictionConnector:
    """
    Relays binding-affinity requests to the hosted inference service.

    One request per call: no retries, no caching. The upstream answer is
    returned untouched; a non-2xx answer is raised as UpstreamError carrying
    the upstream status and body so the route can mirror both.
    """

    def __init__(self, endpoint_url: str, timeout: float = 30.0):
        self.endpoint_url = endpoint_url.strip()
        self.timeout = timeout

    async def predict(self, smiles: str, protein_sequence: str) -> Any:
        payload = {"smiles": smiles, "protein_sequence": protein_sequence}
        try:
            log.trace(f"Prediction API POST {self.endpoint_url}")
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
            log.trace(f"Prediction API response: {response.status_code}")
        except httpx.RequestError as e:
            # DNS failure, refused connection, timeout
            log.error(f"Prediction proxy error: {type(e).__name__}: {e}")
            raise UpstreamError()

        try:
            data = response.json()
        except ValueError:
            data = _NOT_JSON

        if not response.is_success:
            log.warning(f"Prediction API returned {response.status_code}")
            body = data
            if data is _NOT_JSON or data is None:
                body = {"error": response.text or "Prediction service error"}
            raise UpstreamError(status_code=response.status_code, body=body)

        if data is _NOT_JSON:
            log.error("Prediction API returned a non-JSON body")
            raise UpstreamError("Invalid response from prediction model")
        return data


def get_prediction_connector(settings: Settings = Depends(get_settings)) -> PredictionConnector:
    return PredictionConnector(settings.prediction_api_url, timeout=settings.prediction_timeout_seconds)
