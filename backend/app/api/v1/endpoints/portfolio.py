"""
Portfolio export API

POST /portfolio/generate streams a PDF of the caller's published projects.
Identity and document setup failures are returned as JSON errors before
streaming starts; image failures only show up inside the PDF.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limiter import portfolio_rate_limit
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.portfolio import PortfolioRequest, PortfolioStylesResponse, PortfolioStyleResponse
from app.services.portfolio_service import (
    PortfolioAssembler,
    PortfolioStyle,
    STYLE_PROFILES,
)

router = APIRouter()


@router.get("/styles", response_model=PortfolioStylesResponse)
async def list_styles():
    """Available portfolio looks"""
    return PortfolioStylesResponse(
        default=PortfolioStyle.CLASSIC.value,
        styles=[
            PortfolioStyleResponse(
                key=profile.key,
                primary_color=profile.primary_color,
                accent_color=profile.accent_color,
                typeface=profile.typeface,
            )
            for profile in STYLE_PROFILES.values()
        ],
    )


@router.post("/generate")
@portfolio_rate_limit()
async def generate_portfolio(
    request: Request,
    payload: PortfolioRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Generate the caller's portfolio PDF"""
    assembler = PortfolioAssembler(db)
    export = await assembler.generate(current_user.id, payload.style)

    return StreamingResponse(
        export.iter_bytes(is_cancelled=request.is_disconnected),
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"'
        },
    )
