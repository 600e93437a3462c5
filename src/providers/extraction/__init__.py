"""Page extractor implementations of IPageExtractor."""

from src.providers.extraction.royalroad_extractor import RoyalRoadExtractor

__all__ = ["RoyalRoadExtractor"]
