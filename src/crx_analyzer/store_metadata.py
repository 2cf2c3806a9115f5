"""
Store Reputation
Reputation score over store metadata, plus a collector that scrapes the
Chrome Web Store / Edge Add-ons listing into ReputationData
"""

import math
import re
from datetime import datetime, timezone

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_CONFIG
from .models import ReputationData
from .utils import round_half_up

CHROME_STORE_URL = "https://chromewebstore.google.com/detail/{extension_id}"
EDGE_DETAILS_URL = "https://microsoftedge.microsoft.com/addons/getproductdetailsbycrxid/{extension_id}"

DATE_FORMATS = (
    '%Y-%m-%d',
    '%B %d, %Y',
    '%b %d, %Y',
    '%d %B %Y',
    '%d %b %Y',
    '%m/%d/%Y',
    '%B %Y',
)

DAYS_PER_MONTH = 30


def parse_date(date_text):
    """
    Parse a store date string

    Accepts ISO 8601 timestamps and the long forms used on store pages
    ("January 15, 2026", "15 January 2026").

    Returns:
        datetime: Naive UTC datetime, or None if the text is not a date
    """
    text = (date_text or '').strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_user_count(user_text):
    """Digits only: '10,000,000+ users' -> 10000000"""
    digits = re.sub(r'[^0-9]', '', user_text or '')
    return int(digits) if digits else 0


def calculate_reputation_score(reputation, now=None):
    """
    Reputation score (0-100) from store metadata

    Terms:
      - Verified publisher badge     20
      - Rating (0-5 stars)           0-20
      - Rating count (log scale)     0-15, ~100k ratings for full marks
      - User count (log scale)       0-20, ~10M users for full marks
      - Recency of last update       15 / 10 / 5 / 0 (<6, <12, <24 months)
      - Featured badge               10

    Args:
        reputation (ReputationData): Store metadata
        now (datetime): Reference time (naive UTC); defaults to the current time

    Returns:
        int: Rounded score clamped to 100
    """
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    terms = []

    terms.append(20 if reputation.is_verified_publisher else 0)

    rating = min(5.0, max(0.0, reputation.rating))
    terms.append((rating / 5) * 20)

    rating_points = 0.0
    if reputation.rating_count > 0:
        rating_points = min(15, max(0, (math.log10(reputation.rating_count) / 5) * 15))
    terms.append(rating_points)

    user_points = 0.0
    users = parse_user_count(reputation.user_count)
    if users > 0:
        user_points = min(20, max(0, (math.log10(users) / 7) * 20))
    terms.append(user_points)

    recency_points = 0
    last_updated = parse_date(reputation.last_updated)
    if last_updated is not None:
        months_since_update = (now - last_updated).total_seconds() / (86400 * DAYS_PER_MONTH)
        if months_since_update < 6:
            recency_points = 15
        elif months_since_update < 12:
            recency_points = 10
        elif months_since_update < 24:
            recency_points = 5
    elif reputation.last_updated.strip():
        # Unparseable but present: weak signal only
        recency_points = 5
    terms.append(recency_points)

    terms.append(10 if reputation.is_featured else 0)

    total = sum(max(0, term) for term in terms)
    return round_half_up(min(100, total))


class StoreMetadata:
    """Collect store listing metadata for the reputation score"""

    # Embedded developer block on chromewebstore.google.com:
    # ["email", "address", null, VERIFIED_FLAG, null, "dev-id", "Dev Name", ...]
    DEVELOPER_BLOCK_RE = re.compile(
        r'\["([^"]*@[^"]+)",'
        r'(?:"[^"]*"|null),'
        r'(?:null|\d+),'
        r'(\d+|null),'
        r'(?:null|\d+),'
        r'"([^"]+)",'
        r'"([^"]+)"'
    )

    def __init__(self, config=None):
        """Initialize metadata collector"""
        settings = dict(DEFAULT_CONFIG['store'])
        if config:
            settings.update(config.get('store', {}))
        self.timeout = settings['timeout']
        self.headers = {
            'User-Agent': settings['user_agent'],
            'Accept-Language': settings['accept_language'],
        }

    def fetch_reputation(self, extension_id, store='chrome'):
        """
        Fetch store metadata for an extension

        Args:
            extension_id (str): 32-character extension ID
            store (str): 'chrome' or 'edge'

        Returns:
            ReputationData: Parsed metadata, or None if the listing is unavailable
        """
        try:
            if store == 'edge':
                response = requests.get(EDGE_DETAILS_URL.format(extension_id=extension_id),
                                        headers=self.headers, timeout=self.timeout)
                if response.status_code != 200:
                    print(f"[!] Edge Add-ons returned status {response.status_code}")
                    return None
                return self.parse_edge_details(response.json())

            response = requests.get(CHROME_STORE_URL.format(extension_id=extension_id),
                                    headers=self.headers, timeout=self.timeout)
            if response.status_code != 200:
                print(f"[!] Chrome Web Store returned status {response.status_code}")
                return None
            return self.parse_store_page(response.text)

        except requests.exceptions.RequestException as e:
            print(f"[!] Metadata fetch failed: {e}")
            return None
        except ValueError as e:
            print(f"[!] Store returned unreadable metadata: {e}")
            return None

    def parse_store_page(self, text):
        """
        Parse a Chrome Web Store listing page

        Embedded data and regex fallbacks are tried first (new store), then the
        old store's DOM selectors.

        Args:
            text (str): Listing page HTML

        Returns:
            ReputationData: Whatever fields could be recovered
        """
        soup = BeautifulSoup(text, 'html.parser')
        metadata = {}

        dev_match = self.DEVELOPER_BLOCK_RE.search(text)
        if dev_match:
            metadata['publisher'] = dev_match.group(4)
            metadata['is_verified_publisher'] = dev_match.group(2) == '1'

        if 'publisher' not in metadata:
            author_tag = soup.find('a', class_='e-f-Me')
            if author_tag:
                metadata['publisher'] = author_tag.get_text(strip=True)
                metadata['is_verified_publisher'] = 'verified' in author_tag.get('class', [])
        if 'publisher' not in metadata:
            author = re.search(r'"(?:author|developerName|creator)"\s*:\s*"([^"]{1,200})"', text)
            if author:
                metadata['publisher'] = author.group(1).strip()

        if not metadata.get('is_verified_publisher'):
            metadata['is_verified_publisher'] = self._detect_verified_badge(soup, text)

        # User count
        user_count_tag = soup.find('span', class_='e-f-ih')
        if user_count_tag:
            metadata['user_count'] = user_count_tag.get_text(strip=True)
        else:
            users = re.search(r'([\d,]+\+?)\s*users', text)
            if users:
                metadata['user_count'] = users.group(1)

        # Rating: old store renders stars as a width percentage
        rating_tag = soup.find('div', class_='rsw-stars')
        width_match = re.search(r'width:\s*(\d+(?:\.\d+)?)%', rating_tag.get('style', '')) if rating_tag else None
        if width_match:
            metadata['rating'] = round((float(width_match.group(1)) / 100) * 5, 1)
        else:
            rating = re.search(r'"ratingValue"\s*:\s*"?(\d+(?:\.\d+)?)', text) or \
                re.search(r'(\d(?:\.\d)?)\s*out of 5', text)
            if rating:
                metadata['rating'] = float(rating.group(1))

        rating_count_tag = soup.find('span', class_='q-N-nd')
        count_text = rating_count_tag.get_text(strip=True) if rating_count_tag else None
        if count_text is None:
            count = re.search(r'"ratingCount"\s*:\s*"?([\d,]+)', text) or re.search(r'([\d,]+)\s+ratings', text)
            count_text = count.group(1) if count else ''
        metadata['rating_count'] = parse_user_count(count_text)

        updated_tag = soup.find('span', class_='C-b-p-D-Xe h-C-b-p-D-xh-hh')
        if updated_tag:
            metadata['last_updated'] = updated_tag.get_text(strip=True)
        else:
            updated = re.search(r'>Updated</div><div>([^<]+)</div>', text) or \
                re.search(r'Updated\s*[:\s]*([A-Za-z]+\s+\d+,?\s+\d{4})', text)
            if updated:
                metadata['last_updated'] = updated.group(1).strip()

        metadata['is_featured'] = self._detect_featured_badge(soup, text)

        return ReputationData(**metadata)

    def parse_edge_details(self, details):
        """Map the Edge Add-ons product-details JSON to ReputationData"""
        if not isinstance(details, dict):
            raise ValueError("Edge product details must be a JSON object")

        last_updated = ''
        timestamp = details.get('lastUpdateDate')
        if isinstance(timestamp, (int, float)) and timestamp > 0:
            last_updated = datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()

        return ReputationData(
            publisher=details.get('developer') or '',
            rating=float(details.get('averageRating') or 0),
            rating_count=int(details.get('ratingCount') or 0),
            user_count=str(details.get('activeInstallCount') or ''),
            last_updated=last_updated,
            is_featured=bool(details.get('isBadgedAsFeatured')),
            is_verified_publisher=bool(details.get('isVerifiedPublisher')),
        )

    def _detect_verified_badge(self, soup, text):
        """Fallback verified-publisher detection: JSON flags, DOM attributes, plain text"""
        for pattern in (r'"isVerified"\s*:\s*true', r'"verified"\s*:\s*true', r'"developerVerified"\s*:\s*true'):
            if re.search(pattern, text, re.I):
                return True

        if soup.find(attrs={'aria-label': re.compile(r'verified', re.I)}):
            return True

        return bool(re.search(r'Verified\s+(?:developer|publisher)', text, re.I))

    def _detect_featured_badge(self, soup, text):
        """Featured badge: embedded JSON flag, labelled badge element, or an element reading just 'Featured'"""
        if re.search(r'"(?:isFeatured|featured|isBadgedAsFeatured)"\s*:\s*true', text, re.I):
            return True

        if soup.find(attrs={'aria-label': re.compile(r'^\s*Featured\b', re.I)}):
            return True

        return soup.find(string=re.compile(r'^\s*Featured\s*$')) is not None
