from typing import Annotated

from fastapi import APIRouter, Depends

from affinity_api.connectors.prediction import PredictionConnector, get_prediction_connector
from affinity_api.errors import ValidationError
from affinity_api.schemas.predict import PredictRequest

router = APIRouter()


@router.post("/predict")
async def predict(
    body: PredictRequest,
    connector: Annotated[PredictionConnector, Depends(get_prediction_connector)],
):
    """Forward a molecule/protein pair to the inference service and relay its answer."""
    if not body.smiles or not body.protein_sequence:
        raise ValidationError("Missing required fields: smiles and protein_sequence")
    return await connector.predict(body.smiles, body.protein_sequence)
