from typing import Optional
from pydantic import BaseModel

class PredictRequest(BaseModel):
    smiles: Optional[str] = None
    protein_sequence: Optional[str] = None
