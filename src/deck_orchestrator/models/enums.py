"""
Enumerations for orchestrator data models.

BlockType is a closed taxonomy: it mirrors the components the rendering
layer can draw. No block type outside this set is accepted.
"""

from enum import Enum


class ErrorClass(str, Enum):
    """Classification of a failed upstream call."""

    RETRYABLE = "retryable"
    FATAL = "fatal"
    RATE_LIMITED = "rate_limited"


class ErrorKind(str, Enum):
    """Closed set of failures that cross the orchestrator boundary."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    TIMEOUT = "timeout"
    UNPARSEABLE = "unparseable"
    STRUCTURAL_INVALID = "structural_invalid"
    FATAL = "fatal"


class CallKind(str, Enum):
    """Whether a call creates a new deck or modifies an existing one."""

    NEW = "new"
    MODIFY = "modify"

    @property
    def default_action(self) -> str:
        """Usage action recorded when the caller does not name one."""
        return "create-deck" if self is CallKind.NEW else "modify-slide"


class RepairTier(str, Enum):
    """Tier of the response repair pipeline that produced a payload."""

    DIRECT = "direct"
    HEURISTIC = "heuristic"
    SALVAGE = "salvage"


class BlockType(str, Enum):
    """
    Component vocabulary known to the rendering layer.

    Primitive blocks first, then layout variants grouped by slide type.
    """

    # Primitive blocks
    BACKGROUND_BLOCK = "BackgroundBlock"
    TEXT_BLOCK = "TextBlock"
    IMAGE_BLOCK = "ImageBlock"
    CHART_BLOCK = "ChartBlock"
    ICON_BLOCK = "IconBlock"

    # Cover
    COVER_LEFT_IMAGE_TEXT_RIGHT = "Cover_LeftImageTextRight"
    COVER_PRODUCT_LAYOUT = "Cover_ProductLayout"
    COVER_TEXT_CENTER = "Cover_TextCenter"
    COVER_LEFT_TITLE_RIGHT_BODY_UNDERLINED = "Cover_LeftTitleRightBodyUnderlined"
    MCBOOK_RIGHT_SIDE = "McBook_RightSide"

    # Index
    INDEX_LEFT_AGENDA_RIGHT_IMAGE = "Index_LeftAgendaRightImage"
    INDEX_LEFT_AGENDA_RIGHT_TEXT = "Index_LeftAgendaRightText"

    # Quote
    QUOTE_MISSION_STATEMENT = "Quote_MissionStatement"
    QUOTE_LEFT_TEXT_RIGHT_IMAGE = "Quote_LeftTextRightImage"

    # Impact
    IMPACT_KPI_OVERVIEW = "Impact_KPIOverview"
    IMPACT_SUSTAINABILITY_METRICS = "Impact_SustainabilityMetrics"
    IMPACT_IMAGE_METRICS = "Impact_ImageMetrics"

    # Team
    TEAM_ADAPTIVE_GRID = "Team_AdaptiveGrid"
    TEAM_MEMBER_PROFILE = "Team_MemberProfile"

    # Metrics
    METRICS_FINANCIALS_SPLIT = "Metrics_FinancialsSplit"
    METRICS_FULL_WIDTH_CHART = "Metrics_FullWidthChart"

    # Lists
    LISTS_LEFT_TEXT_RIGHT_IMAGE = "Lists_LeftTextRightImage"
    LISTS_GRID_LAYOUT = "Lists_GridLayout"
    LISTS_LEFT_TEXT_RIGHT_IMAGE_DESCRIPTION = "Lists_LeftTextRightImageDescription"
    LISTS_CARDS_LAYOUT = "Lists_CardsLayout"

    # Market
    MARKET_SIZE_ANALYSIS = "Market_SizeAnalysis"

    # Product
    PRODUCT_IPHONE_SHOWCASE = "Product_iPhoneShowcase"
    PRODUCT_IPHONE_STANDALONE = "Product_iPhoneStandalone"
    PRODUCT_MACBOOK_CENTERED = "Product_MacBookCentered"
    PRODUCT_IPHONE_CENTERED = "Product_iPhoneCentered"
    PRODUCT_PHYSICAL_PRODUCT = "Product_PhysicalProduct"
    MCBOOK_FEATURE = "McBook_Feature"
    IPHONE_HAND_FEATURE = "iPhone_HandFeature"

    # Competition / Pricing / Content
    COMPETITION_ANALYSIS = "Competition_Analysis"
    PRICING_PLANS = "Pricing_Plans"
    CONTENT_TEXT_IMAGE_DESCRIPTION = "Content_TextImageDescription"

    # Back cover
    BACK_COVER_THANK_YOU = "BackCover_ThankYou"
    BACK_COVER_THANK_YOU_WITH_IMAGE = "BackCover_ThankYouWithImage"

    @classmethod
    def allowed_values(cls) -> frozenset[str]:
        """All accepted block type strings."""
        return frozenset(member.value for member in cls)
