from pydantic import BaseModel, ConfigDict


class HealthResponse(BaseModel):
    """Health check response model"""

    status: str
    version: str

    model_config = ConfigDict(from_attributes=True)
