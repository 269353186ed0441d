from app.services.asset_fetcher import RemoteAssetFetcher, asset_fetcher
from app.services.social_ledger import SocialLedger, FollowState
from app.services.engagement_service import EngagementService
from app.services.portfolio_service import PortfolioAssembler, PortfolioExport

__all__ = [
    "RemoteAssetFetcher",
    "asset_fetcher",
    "SocialLedger",
    "FollowState",
    "EngagementService",
    "PortfolioAssembler",
    "PortfolioExport",
]
