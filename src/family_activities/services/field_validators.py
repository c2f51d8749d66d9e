"""
Field Validation & Normalization
================================

One validator per semantic type (date, time, title, description, location,
price, age range, URL). Each takes a single extracted value and returns a
ValidationResult; validators never raise on bad input.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from family_activities.config import Settings, get_settings
from family_activities.models.activity import AgeGroup, Location, Pricing
from family_activities.models.enums import AgeGroupCategory, PricingType, ValidationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Verdict of validating one value."""

    valid: bool
    confidence: float
    normalized_value: str = ""
    reason: str = ""
    parsed: Any = None  # Structured output (Pricing, age groups, ...)


def _invalid(reason: str) -> ValidationResult:
    return ValidationResult(valid=False, confidence=0.0, reason=reason)


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


# ============================================================================
# DATES
# ============================================================================

DATE_FORMATS = [
    "%Y-%m-%d",      # 2024-12-15
    "%m/%d/%Y",      # 12/15/2024
    "%m/%d/%y",      # 12/15/24
    "%m-%d-%Y",      # 12-15-2024
    "%B %d, %Y",     # December 15, 2024
    "%B %d %Y",      # December 15 2024
    "%b %d, %Y",     # Dec 15, 2024
    "%b %d %Y",      # Dec 15 2024
    "%d %B %Y",      # 15 December 2024
    "%d %b %Y",      # 15 Dec 2024
    "%Y/%m/%d",      # 2024/12/15
]

MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december"
    "|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec"
)

WEEKDAY_PREFIX = re.compile(r"^(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)[a-z]*\.?,?\s+", re.IGNORECASE)
ORDINAL_SUFFIX = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE)
ISO_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]\d{2}:\d{2}")

# Patterns used to pull a date out of longer text, in priority order
EMBEDDED_DATE_PATTERNS = [
    re.compile(r"\d{4}-\d{2}-\d{2}"),
    re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}"),
    re.compile(rf"\b(?:{MONTHS})\.?\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\s+(?:{MONTHS})\.?\s+\d{{4}}\b", re.IGNORECASE),
]
# "December 15-17, 2024" -> start day with year
DAY_RANGE = re.compile(
    rf"\b({MONTHS})\.?\s+(\d{{1,2}})\s*(?:-|–|—|to|through)\s*(?:(?:{MONTHS})\.?\s+)?\d{{1,2}},?\s+(\d{{4}})\b",
    re.IGNORECASE,
)
YEARLESS = re.compile(rf"^(?:({MONTHS})\.?\s+(\d{{1,2}})|(\d{{1,2}})\s+({MONTHS})\.?)$", re.IGNORECASE)


def _clean_date_text(text: str) -> str:
    text = _collapse(text)
    text = WEEKDAY_PREFIX.sub("", text)
    text = ORDINAL_SUFFIX.sub(r"\1", text)
    text = re.sub(r"\b([A-Za-z]{3,4})\.", r"\1", text)
    # strptime knows "Sep" but not "Sept"
    return re.sub(r"\bsept\b", "Sep", text, flags=re.IGNORECASE)


def parse_date(text: str) -> Optional[date]:
    """Parse a date written in any of the supported formats."""
    if not text:
        return None

    cleaned = _clean_date_text(text)
    match = ISO_DATETIME.match(cleaned)
    if match:
        cleaned = match.group(1)

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def _month_number(name: str) -> Optional[int]:
    name = name.lower().rstrip(".")[:3]
    try:
        return datetime.strptime(name, "%b").month
    except ValueError:
        return None


def _next_occurrence(month: int, day: int, reference: date) -> Optional[date]:
    """The first month/day on or after the reference date."""
    for year in (reference.year, reference.year + 1, reference.year + 2, reference.year + 3):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate >= reference:
            return candidate
    return None


def validate_date(
    value: str,
    reference_date: Optional[date] = None,
    past_threshold_days: int = 365,
) -> ValidationResult:
    """
    Validate and normalize a date to ISO YYYY-MM-DD.

    Handles:
    - 2024-12-15, 2024-12-15T10:00:00 -> 2024-12-15
    - 12/15/2024, 12/15/24, 12-15-2024 -> 2024-12-15
    - December 15, 2024 / Dec 15 2024 / 15 December 2024 -> 2024-12-15
    - Saturday, December 15th, 2024 -> 2024-12-15
    - "Join us on December 15, 2024 at the park" -> 2024-12-15
    - December 15 (no year) -> next December 15 on/after the reference date
    """
    reference = reference_date or date.today()
    text = _collapse(value or "")
    if not text:
        return _invalid("Date is empty")

    confidence = 1.0
    reason = ""
    parsed = parse_date(text)

    if parsed is None:
        cleaned = _clean_date_text(text)
        range_match = DAY_RANGE.search(cleaned)
        if range_match:
            month = _month_number(range_match.group(1))
            if month:
                try:
                    parsed = date(int(range_match.group(3)), month, int(range_match.group(2)))
                    confidence = 0.9
                    reason = "Used the first day of a date range"
                except ValueError:
                    parsed = None

    if parsed is None:
        cleaned = _clean_date_text(text)
        for pattern in EMBEDDED_DATE_PATTERNS:
            match = pattern.search(cleaned)
            if match:
                parsed = parse_date(match.group(0))
                if parsed is not None:
                    confidence = 0.8
                    reason = "Date extracted from surrounding text"
                    break

    if parsed is None:
        match = YEARLESS.match(_clean_date_text(text))
        if match:
            month_name = match.group(1) or match.group(4)
            day_text = match.group(2) or match.group(3)
            month = _month_number(month_name)
            if month:
                parsed = _next_occurrence(month, int(day_text), reference)
                if parsed is not None:
                    confidence = 0.7
                    reason = "Year missing; assumed the next upcoming date"

    if parsed is None:
        logger.debug(f"Could not parse date: {text}")
        return _invalid(f"Unrecognized date format: '{text}'")

    if parsed < reference - timedelta(days=past_threshold_days):
        confidence = min(confidence, 0.6)
        reason = f"Date {parsed.isoformat()} is far in the past; listing may be stale"

    return ValidationResult(
        valid=True,
        confidence=confidence,
        normalized_value=parsed.isoformat(),
        reason=reason,
        parsed=parsed,
    )


# ============================================================================
# TIMES
# ============================================================================

TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
TIME_12H = re.compile(r"^(\d{1,2})(?::(\d{2}))?(?::\d{2})?\s*([ap])\.?\s*m?\.?$", re.IGNORECASE)
TIME_BARE_HOUR = re.compile(r"^(\d{1,2})$")
TIME_EMBEDDED = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\.?(?![a-z])", re.IGNORECASE)
TIME_RANGE_SPLIT = re.compile(r"\s*(?:-|–|—|\bto\b|\buntil\b)\s*", re.IGNORECASE)
MERIDIEM_SUFFIX = re.compile(r"([ap])\.?\s*m\.?$", re.IGNORECASE)
ALL_DAY = re.compile(r"\ball[\s-]day\b", re.IGNORECASE)


def is_all_day(value: str) -> bool:
    """True when the text describes an all-day activity."""
    return bool(value and ALL_DAY.search(value))


def split_time_range(value: str) -> Tuple[str, str]:
    """
    Split "2:00 PM - 4:00 PM" into ("2:00 PM", "4:00 PM").

    A meridiem given only on the end applies to the start too:
    "3-5 pm" -> ("3 pm", "5 pm"). Text without a range returns (value, "").
    """
    text = _collapse(value or "")
    parts = TIME_RANGE_SPLIT.split(text, maxsplit=1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return text, ""

    start, end = parts
    end_meridiem = MERIDIEM_SUFFIX.search(end)
    if end_meridiem and not MERIDIEM_SUFFIX.search(start) and re.fullmatch(r"\d{1,2}(?::\d{2})?", start):
        start = f"{start} {end_meridiem.group(1).lower()}m"
    return start, end


def _format_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def validate_time(value: str) -> ValidationResult:
    """
    Validate and normalize a time to HH:MM (24-hour).

    Handles 14:00, 14:00:00, 2:00 PM, 2:00PM, 2 pm, 2p.m., bare hours,
    noon and midnight.
    """
    text = _collapse(value or "").lower()
    if not text:
        return _invalid("Time is empty")

    if text in ("noon", "12 noon", "midday"):
        return ValidationResult(True, 1.0, "12:00")
    if text in ("midnight", "12 midnight"):
        return ValidationResult(True, 1.0, "00:00")

    match = TIME_12H.match(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return _invalid(f"Out-of-range time: '{value}'")
        if match.group(3) == "p" and hour != 12:
            hour += 12
        elif match.group(3) == "a" and hour == 12:
            hour = 0
        return ValidationResult(True, 1.0, _format_time(hour, minute))

    match = TIME_24H.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        seconds = int(match.group(3) or 0)
        if hour > 23 or minute > 59 or seconds > 59:
            return _invalid(f"Out-of-range time: '{value}'")
        return ValidationResult(True, 1.0, _format_time(hour, minute))

    match = TIME_BARE_HOUR.match(text)
    if match:
        hour = int(match.group(1))
        if hour > 23:
            return _invalid(f"Out-of-range time: '{value}'")
        return ValidationResult(True, 0.8, _format_time(hour, 0), reason="Bare hour; AM/PM not given")

    match = TIME_EMBEDDED.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if 1 <= hour <= 12 and minute <= 59:
            if match.group(3) == "p" and hour != 12:
                hour += 12
            elif match.group(3) == "a" and hour == 12:
                hour = 0
            return ValidationResult(
                True, 0.8, _format_time(hour, minute), reason="Time extracted from surrounding text"
            )

    return _invalid(f"Unrecognized time format: '{value}'")


# ============================================================================
# TEXT FIELDS
# ============================================================================

def validate_title(value: str, min_length: int = 3, max_length: int = 200) -> ValidationResult:
    """
    Titles must be present. Very short or very long titles are kept but
    flagged: short ones are usually truncated, long ones are usually a
    description mapped into the title.
    """
    text = _collapse(value or "")
    if not text:
        return _invalid("Title is empty")
    if len(text) < min_length:
        return ValidationResult(True, 0.5, text, reason=f"Title shorter than {min_length} characters; may be truncated")
    if len(text) > max_length:
        return ValidationResult(True, 0.5, text, reason=f"Title longer than {max_length} characters; may be mis-mapped")
    return ValidationResult(True, 1.0, text)


def validate_description(value: str, short_length: int = 20) -> ValidationResult:
    text = _collapse(value or "")
    if not text:
        return _invalid("Description is empty")
    if len(text) < short_length:
        return ValidationResult(True, 0.7, text, reason="Description is very short")
    return ValidationResult(True, 1.0, text)


def validate_text(value: str) -> ValidationResult:
    text = _collapse(value or "")
    if not text:
        return _invalid("Value is empty")
    return ValidationResult(True, 1.0, text)


# ============================================================================
# LOCATION
# ============================================================================

SEATTLE_NEIGHBORHOODS = {
    "ballard": "Ballard",
    "capitol hill": "Capitol Hill",
    "fremont": "Fremont",
    "wallingford": "Wallingford",
    "green lake": "Green Lake",
    "queen anne": "Queen Anne",
    "belltown": "Belltown",
    "university district": "University District",
    "georgetown": "Georgetown",
    "beacon hill": "Beacon Hill",
    "west seattle": "West Seattle",
}

NEARBY_CITIES = ["Bellevue", "Redmond", "Kirkland", "Issaquah", "Woodinville", "Bothell", "Shoreline", "Carnation"]


def parse_city_and_neighborhood(address: str, default_city: str = "Seattle") -> Tuple[str, str]:
    """
    Infer city and neighborhood from an address.

    "5400 Ballard Ave NW" -> ("Seattle", "Ballard")
    "100 Main St, Bellevue, WA" -> ("Bellevue", "")
    """
    lower = (address or "").lower()
    for key, neighborhood in SEATTLE_NEIGHBORHOODS.items():
        if key in lower:
            return "Seattle", neighborhood
    for city in NEARBY_CITIES:
        if re.search(rf"\b{city.lower()}\b", lower):
            return city, ""
    return default_city, ""


def validate_location(name: str, address: str = "", default_city: str = "Seattle") -> ValidationResult:
    """
    A location needs a name; an address raises confidence.

    The parsed Location carries the city and neighborhood inferred from the
    address.
    """
    name = _collapse(name or "")
    address = _collapse(address or "")
    if not name:
        return _invalid("Location name is empty")

    city, neighborhood = parse_city_and_neighborhood(address, default_city)
    location = Location(name=name, address=address, city=city, neighborhood=neighborhood)
    if address:
        return ValidationResult(True, 1.0, name, parsed=location)
    return ValidationResult(True, 0.9, name, reason="No address given", parsed=location)


# ============================================================================
# PRICE
# ============================================================================

FREE_PATTERN = re.compile(r"\bfree\b|\bno cost\b|\bno charge\b|\bcomplimentary\b", re.IGNORECASE)
DONATION_PATTERN = re.compile(r"donation|suggested|pay what you can|pay-what-you-can", re.IGNORECASE)
DOLLAR_AMOUNT = re.compile(r"\$\s*(\d{1,3}(?:,\d{3})+|\d+)(?:\.(\d{1,2}))?")
WORD_AMOUNT = re.compile(r"\b(\d+)(?:\.(\d{1,2}))?\s*(?:dollars|usd)\b", re.IGNORECASE)
BARE_AMOUNT = re.compile(r"^(\d+)(?:\.(\d{1,2}))?$")


def _amounts(text: str) -> List[float]:
    amounts = []
    for pattern in (DOLLAR_AMOUNT, WORD_AMOUNT):
        for whole, cents in pattern.findall(text):
            amounts.append(float(f"{whole.replace(',', '')}.{cents or '0'}"))
    return amounts


def validate_price(value: str, currency: str = "USD") -> ValidationResult:
    """
    Classify a price string as free, paid, donation or variable.

    - "Free", "$0", "No cost" -> free
    - "Suggested donation $5" -> donation
    - "$15", "15", "$10-$20" -> paid, cost is the first amount
    - anything else -> variable, raw text kept as the description
    """
    text = _collapse(value or "")
    if not text:
        return _invalid("Price is empty")

    bare = BARE_AMOUNT.match(text)
    amounts = _amounts(text)
    if bare:
        amounts = [float(f"{bare.group(1)}.{bare.group(2) or '0'}")]
    nonzero = [amount for amount in amounts if amount > 0]

    if DONATION_PATTERN.search(text):
        pricing = Pricing(
            type=PricingType.DONATION,
            cost=nonzero[0] if nonzero else 0.0,
            currency=currency,
            description=text,
        )
        return ValidationResult(True, 0.9, PricingType.DONATION.value, parsed=pricing)

    if (FREE_PATTERN.search(text) or amounts) and not nonzero:
        pricing = Pricing(type=PricingType.FREE, cost=0.0, currency=currency, description="Free")
        return ValidationResult(True, 1.0, PricingType.FREE.value, parsed=pricing)

    if nonzero:
        pricing = Pricing(type=PricingType.PAID, cost=nonzero[0], currency=currency, description=text)
        return ValidationResult(True, 1.0, PricingType.PAID.value, parsed=pricing)

    pricing = Pricing(type=PricingType.VARIABLE, currency=currency, description=text)
    return ValidationResult(
        True, 0.6, PricingType.VARIABLE.value, reason="Could not determine price type", parsed=pricing
    )


# ============================================================================
# AGE RANGES
# ============================================================================

# Bucket boundaries in years
AGE_BUCKETS: List[Tuple[AgeGroupCategory, int, int]] = [
    (AgeGroupCategory.INFANT, 0, 0),
    (AgeGroupCategory.TODDLER, 1, 2),
    (AgeGroupCategory.PRESCHOOL, 3, 5),
    (AgeGroupCategory.ELEMENTARY, 6, 10),
    (AgeGroupCategory.TWEEN, 11, 12),
    (AgeGroupCategory.TEEN, 13, 17),
    (AgeGroupCategory.ADULT, 18, 99),
]

AGE_KEYWORDS: List[Tuple[AgeGroupCategory, re.Pattern]] = [
    (AgeGroupCategory.ALL_AGES, re.compile(r"\ball[\s-]ages\b|\bfamil(?:y|ies)\b|\beveryone\b", re.IGNORECASE)),
    (AgeGroupCategory.INFANT, re.compile(r"\binfants?\b|\bbab(?:y|ies)\b|\bnewborns?\b", re.IGNORECASE)),
    (AgeGroupCategory.TODDLER, re.compile(r"\btoddlers?\b", re.IGNORECASE)),
    (AgeGroupCategory.PRESCHOOL, re.compile(r"\bpre-?school(?:ers?)?\b|\bpre-?k\b", re.IGNORECASE)),
    (AgeGroupCategory.ELEMENTARY, re.compile(r"\belementary\b|\bschool[\s-]age\b|\bkids\b|\bchildren\b", re.IGNORECASE)),
    (AgeGroupCategory.TWEEN, re.compile(r"\btweens?\b", re.IGNORECASE)),
    (AgeGroupCategory.TEEN, re.compile(r"\bteens?\b|\bteenagers?\b", re.IGNORECASE)),
    (AgeGroupCategory.ADULT, re.compile(r"\badults?\b|\bgrown[\s-]ups?\b", re.IGNORECASE)),
]

AGE_MONTHS = re.compile(r"(\d{1,2})\s*(?:-|–|to)?\s*(\d{1,2})?\s*(?:months?|mos?)\b", re.IGNORECASE)
AGE_RANGE = re.compile(r"(\d{1,2})\s*(?:-|–|to)\s*(\d{1,2})")
AGE_PLUS = re.compile(r"(\d{1,2})\s*(?:\+|and up\b|& up\b|and older\b|and over\b)", re.IGNORECASE)
AGE_UNDER = re.compile(r"(?:under|below|younger than)\s*(\d{1,2})", re.IGNORECASE)
AGE_SINGLE = re.compile(r"\bages?\s*(\d{1,2})\b", re.IGNORECASE)


def _numeric_age_range(text: str) -> Optional[Tuple[int, int]]:
    """Pull a (min, max) age range in years out of free text."""
    match = AGE_MONTHS.search(text)
    if match:
        low = int(match.group(1)) // 12
        high = int(match.group(2)) // 12 if match.group(2) else low
        return low, max(low, high)
    match = AGE_RANGE.search(text)
    if match:
        low, high = int(match.group(1)), int(match.group(2))
        if low <= high:
            return low, high
    match = AGE_PLUS.search(text)
    if match:
        return int(match.group(1)), 99
    match = AGE_UNDER.search(text)
    if match:
        return 0, max(int(match.group(1)) - 1, 0)
    match = AGE_SINGLE.search(text)
    if match:
        age = int(match.group(1))
        return age, age
    return None


def age_groups_for_range(low: int, high: int, description: str = "") -> List[AgeGroup]:
    """Map a numeric range onto every bucket it overlaps, narrowed to the range."""
    groups = []
    for category, bucket_low, bucket_high in AGE_BUCKETS:
        if low <= bucket_high and high >= bucket_low:
            groups.append(
                AgeGroup(
                    category=category,
                    min_age=max(low, bucket_low),
                    max_age=min(high, bucket_high),
                    description=description,
                )
            )
    return groups


def validate_age_range(value: str) -> ValidationResult:
    """
    Parse age suitability into age groups.

    Numeric ranges ("ages 3-5", "5-10 years", "3+", "under 5", "18 months")
    win over named buckets ("toddlers", "teens", "all ages"). Unrecognized
    text is kept as a single free-text group with low confidence.
    """
    text = _collapse(value or "")
    if not text:
        return _invalid("Age range is empty")

    numeric = _numeric_age_range(text)
    if numeric:
        groups = age_groups_for_range(numeric[0], numeric[1], description=text)
        if groups:
            normalized = ", ".join(group.category.value for group in groups)
            return ValidationResult(True, 1.0, normalized, parsed=groups)

    groups = []
    for category, pattern in AGE_KEYWORDS:
        if not pattern.search(text):
            continue
        if category == AgeGroupCategory.ALL_AGES:
            groups.append(AgeGroup(category=category, min_age=0, max_age=99, description=text))
            continue
        for bucket, low, high in AGE_BUCKETS:
            if bucket == category:
                groups.append(AgeGroup(category=category, min_age=low, max_age=high, description=text))
    if groups:
        normalized = ", ".join(group.category.value for group in groups)
        return ValidationResult(True, 1.0, normalized, parsed=groups)

    groups = [AgeGroup(category=AgeGroupCategory.OTHER, min_age=0, max_age=99, description=text)]
    return ValidationResult(
        True, 0.4, text, reason="Age range not recognized; kept as free text", parsed=groups
    )


# ============================================================================
# URLS
# ============================================================================

def validate_url(value: str) -> ValidationResult:
    """Absolute http(s) URLs are valid; bare domains get https:// added."""
    text = (value or "").strip()
    if not text:
        return _invalid("URL is empty")

    parsed = urlparse(text)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return ValidationResult(True, 1.0, text)

    if not parsed.scheme and re.match(r"^(?:www\.)?[a-z0-9-]+(?:\.[a-z0-9-]+)+(?:/\S*)?$", text, re.IGNORECASE):
        return ValidationResult(True, 0.8, f"https://{text}", reason="Scheme missing; assumed https")

    return _invalid(f"Not a web URL: '{text}'")


# ============================================================================
# DISPATCH
# ============================================================================

class FieldValidator:
    """
    Validators bound to the configured thresholds and a reference date.

    The reference date anchors past-date checks and year inference; tests
    pin it so results do not depend on the clock.
    """

    def __init__(self, settings: Optional[Settings] = None, reference_date: Optional[date] = None):
        self.settings = settings or get_settings()
        self.reference_date = reference_date
        self._validators: Dict[ValidationType, Callable[[str], ValidationResult]] = {
            ValidationType.TITLE: self.title,
            ValidationType.DESCRIPTION: self.description,
            ValidationType.LOCATION: self.location,
            ValidationType.DATE: self.date,
            ValidationType.TIME: validate_time,
            ValidationType.PRICE: self.price,
            ValidationType.AGE_RANGE: validate_age_range,
            ValidationType.URL: validate_url,
            ValidationType.TEXT: validate_text,
        }

    def validate(self, validation_type: ValidationType, value: str) -> ValidationResult:
        return self._validators[validation_type](value)

    def title(self, value: str) -> ValidationResult:
        return validate_title(value, self.settings.min_title_length, self.settings.max_title_length)

    def description(self, value: str) -> ValidationResult:
        return validate_description(value, self.settings.short_description_length)

    def location(self, value: str, address: str = "") -> ValidationResult:
        return validate_location(value, address, self.settings.default_city)

    def date(self, value: str) -> ValidationResult:
        return validate_date(
            value,
            reference_date=self.reference_date,
            past_threshold_days=self.settings.past_date_threshold_days,
        )

    def price(self, value: str) -> ValidationResult:
        return validate_price(value, self.settings.default_currency)
