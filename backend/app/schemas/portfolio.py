from pydantic import BaseModel
from typing import Optional, List


class PortfolioRequest(BaseModel):
    # Unknown keys fall back to "classic" in the assembler, so no pattern here
    style: Optional[str] = "classic"


class PortfolioStyleResponse(BaseModel):
    key: str
    primary_color: str
    accent_color: str
    typeface: str


class PortfolioStylesResponse(BaseModel):
    default: str
    styles: List[PortfolioStyleResponse]
