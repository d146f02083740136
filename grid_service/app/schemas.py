"""
Pydantic schemas for grid sort requests.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class RowRuleIn(BaseModel):
    """One row rule supplied inline with a sort request"""
    id: Optional[str] = Field(None, description="Rule identifier")
    age: str = Field(default="", description="BEBE, TODDLER, KIDS or empty for any")
    gender: str = Field(default="", description="FEMENINO, MASCULINO, UNISEX or empty for any")
    product_types: List[str] = Field(default_factory=list, description="Requested garment type per slot (max 4)")


class SortRequest(BaseModel):
    """Schema for POST /grid/jobs/{job_id}/sort"""
    criterion: Optional[str] = Field(None, description="Named criterion; default criterion when omitted")
    rules: Optional[List[RowRuleIn]] = Field(None, description="Inline row rules; take precedence over criterion")
    excluded_types: Optional[List[str]] = Field(None, description="Garment types sent to the end of the grid")
    deprioritized: Optional[List[str]] = Field(None, description="Keywords or codes moved to the basic tail")
