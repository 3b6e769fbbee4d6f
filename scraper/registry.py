"""Builds the list of source adapters run by the pipeline."""
import logging
from typing import List, Optional

from scraper.anime_sheet import DEFAULT_SHEET_URL, AnimeSheetAdapter
from scraper.base import SourceAdapter
from scraper.fixture_listing import FixtureListingAdapter
from scraper.football_data import FootballDataAdapter
from scraper.lolix_predictions import LolixPredictionsAdapter
from scraper.twitch_schedule import DEFAULT_CHANNELS, TwitchChannel, TwitchScheduleAdapter

logger = logging.getLogger(__name__)


def build_adapters(
    timeout: int = SourceAdapter.DEFAULT_TIMEOUT,
    football_data_token: Optional[str] = None,
    anime_sheet_url: Optional[str] = None,
    fixture_page_url: Optional[str] = None,
    twitch_channels: Optional[List[TwitchChannel]] = None
) -> List[SourceAdapter]:
    """
    Create every configured adapter.

    The football-data.org adapter is always included so that a missing token
    shows up as an error in the status document. The fixture page adapter is
    only included when a page URL is configured.
    """
    adapters: List[SourceAdapter] = [
        AnimeSheetAdapter(url=anime_sheet_url or DEFAULT_SHEET_URL, timeout=timeout)
    ]
    for channel in twitch_channels or DEFAULT_CHANNELS:
        adapters.append(TwitchScheduleAdapter(channel, timeout=timeout))
    adapters.append(LolixPredictionsAdapter(timeout=timeout))
    adapters.append(FootballDataAdapter(token=football_data_token, timeout=timeout))
    if fixture_page_url:
        adapters.append(FixtureListingAdapter(url=fixture_page_url, timeout=timeout))

    logger.info(f"Configured {len(adapters)} sources: {', '.join(a.name for a in adapters)}")
    return adapters
