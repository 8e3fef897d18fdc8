from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class CountryInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(..., validation_alias="country_id", description="The country's record id")
    name: str = Field(..., validation_alias="country_name", description="The name of the country")
    capital: Optional[str] = Field(None, description="The capital city of the country")
    region: Optional[str] = Field(None, description="The region where the country is located")
    population: int = Field(..., ge=0, description="The population of the country")
    currency_code: Optional[str] = Field(None, description="The currency code of the country")
    exchange_rate: Optional[float] = Field(None, ge=0, description="The country's exchange rate against USD")
    estimated_gdp: Optional[float] = Field(None, description="The estimated GDP of the country")
    flag_url: Optional[str] = Field(None, description="URL to the country's flag image")
    last_refreshed_at: Optional[datetime] = Field(None, description="When the record was last refreshed")


class RefreshResponse(BaseModel):
    message: str = "Countries refreshed successfully"
    processed: int = Field(..., description="Number of countries created or updated")
    last_refreshed_at: datetime


class StatusInfo(BaseModel):
    total_countries: int
    last_refreshed_at: Optional[datetime] = None
