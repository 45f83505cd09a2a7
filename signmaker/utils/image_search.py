"""
Sign Image Search with Database Cache

FLOW OVERVIEW
- ImageSearch.search(query, count)
  1) Without Google CSE credentials → empty result, "Image search not configured".
  2) Normalize the query (trim + lowercase) and check ImageSearchCache; an
     unexpired row is returned with cached=True.
  3) Otherwise call Google Custom Search for "<query> sign signage", image mode,
     safe search, Creative-Commons licences only, num = min(count, 10).
  4) API error → "Search temporarily unavailable"; no items → "No free-to-use images found".
  5) Map items to {url, thumbnail, title, source, context}, store for 7 days.

NOTES
- Cache rows are keyed by normalized query only; `count` trims the returned list.
- Every lookup feeds the sm_image_cache_* Prometheus counters.
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ..models import ImageSearchCache
from .prom_metrics import observe_image_cache_lookup, observe_outbound_call

GOOGLE_CSE_URL = 'https://www.googleapis.com/customsearch/v1'
CC_RIGHTS = 'cc_publicdomain,cc_attribute,cc_sharealike'
MAX_RESULTS = 10
DEFAULT_COUNT = 3


@dataclass
class ImageSearchResult:
    images: List[Dict[str, Any]] = field(default_factory=list)
    cached: bool = False
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'images': self.images}
        if self.cached:
            data['cached'] = True
        if self.message:
            data['message'] = self.message
        return data


def normalize_query(query: str) -> str:
    return (query or '').strip().lower()


def map_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Google CSE item → image dict"""
    image = item.get('image') or {}
    return {
        'url': item.get('link'),
        'thumbnail': image.get('thumbnailLink') or item.get('link'),
        'title': item.get('title'),
        'source': item.get('displayLink'),
        'context': image.get('contextLink'),
    }


class ImageSearch:
    """Google Custom Search image lookups backed by ImageSearchCache."""

    def __init__(self, timeout: float = 10.0):
        self.logger = logging.getLogger(__name__)
        self.timeout = timeout

    def is_configured(self) -> bool:
        config = current_app.config
        return bool(config.get('GOOGLE_CSE_API_KEY')) and bool(config.get('GOOGLE_CSE_ID'))

    def search(self, query: str, count: int = DEFAULT_COUNT) -> ImageSearchResult:
        if not self.is_configured():
            return ImageSearchResult(message='Image search not configured')

        normalized = normalize_query(query)
        count = max(1, min(int(count or DEFAULT_COUNT), MAX_RESULTS))

        cached = ImageSearchCache.lookup(normalized)
        observe_image_cache_lookup(hit=cached is not None)
        if cached is not None:
            self.logger.info(f"Image cache hit for '{normalized}'")
            return ImageSearchResult(images=list(cached.results or [])[:count], cached=True)

        items = self._fetch(normalized, count)
        if items is None:
            return ImageSearchResult(message='Search temporarily unavailable')
        if not items:
            return ImageSearchResult(message='No free-to-use images found')

        images = [map_item(item) for item in items]
        ImageSearchCache.store(normalized, images)
        return ImageSearchResult(images=images)

    def _fetch(self, query: str, count: int) -> Optional[List[Dict[str, Any]]]:
        """Raw CSE items, or None when the API call failed"""
        params = {
            'key': current_app.config['GOOGLE_CSE_API_KEY'],
            'cx': current_app.config['GOOGLE_CSE_ID'],
            'q': f"{query} sign signage",
            'searchType': 'image',
            'num': count,
            'safe': 'active',
            'rights': CC_RIGHTS,
        }
        started = time.time()
        try:
            response = requests.get(GOOGLE_CSE_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            observe_outbound_call('google_cse', time.time() - started, ok=False)
            self.logger.error(f"Google CSE request failed: {str(e)}")
            return None

        observe_outbound_call('google_cse', time.time() - started, ok=response.ok)
        if not response.ok:
            self.logger.error(f"Google CSE error {response.status_code}: {response.text[:300]}")
            return None

        try:
            payload = response.json()
        except ValueError:
            self.logger.error(f"Google CSE returned a non-JSON body: {response.text[:300]}")
            return None
        return payload.get('items') or []


image_search = ImageSearch()
