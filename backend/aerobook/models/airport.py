"""
Airport reference data model.
"""

from pydantic import BaseModel, Field, ConfigDict


class AirportModel(BaseModel):
    """Airport information model."""
    model_config = ConfigDict(from_attributes=True)

    airport_id: int
    airport_code: str = Field(..., min_length=3, max_length=3, description="IATA airport code")
    airport_name: str = Field(..., max_length=100, description="Airport name")
    city: str = Field(..., max_length=100)
    country: str = Field(..., max_length=100)
