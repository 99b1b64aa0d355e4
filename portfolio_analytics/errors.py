"""Exception hierarchy for the analytics core."""


class AnalyticsError(Exception):
    """Base class for all analytics errors."""


class AssetValidationError(AnalyticsError, ValueError):
    """An asset record violates the data model (bad enum, negative money, ...)."""


class AssetNotFoundError(AnalyticsError, KeyError):
    """Update or delete referenced an asset id the portfolio does not hold."""

    def __init__(self, portfolio_id: str, asset_id: str):
        self.portfolio_id = portfolio_id
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id!r} not found in portfolio {portfolio_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class PortfolioNotFoundError(AnalyticsError, KeyError):
    """Unknown portfolio id."""

    def __init__(self, portfolio_id: str):
        self.portfolio_id = portfolio_id
        super().__init__(f"Portfolio {portfolio_id!r} not found")

    def __str__(self) -> str:
        return self.args[0]
