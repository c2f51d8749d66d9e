"""
Tests for field validators.

Each semantic type is checked independently: dates, times, titles,
descriptions, locations, prices, age ranges and URLs.
"""

from datetime import date

import pytest

from family_activities.models.enums import AgeGroupCategory, PricingType, ValidationType
from family_activities.services.field_validators import (
    FieldValidator,
    is_all_day,
    parse_city_and_neighborhood,
    split_time_range,
    validate_age_range,
    validate_date,
    validate_description,
    validate_location,
    validate_price,
    validate_time,
    validate_title,
    validate_url,
)

REFERENCE = date(2024, 12, 1)


class TestDateValidation:
    """Test date parsing and normalization."""

    @pytest.mark.parametrize(
        "value",
        [
            "2024-12-15",
            "12/15/2024",
            "12/15/24",
            "12-15-2024",
            "December 15, 2024",
            "December 15 2024",
            "Dec 15, 2024",
            "Dec. 15, 2024",
            "15 December 2024",
            "Saturday, December 15, 2024",
            "December 15th, 2024",
            "2024-12-15T10:00:00Z",
        ],
    )
    def test_formats_normalize_to_same_iso_date(self, value):
        """Every supported format for the same day yields the same ISO string."""
        result = validate_date(value, reference_date=REFERENCE)

        assert result.valid
        assert result.normalized_value == "2024-12-15"
        assert result.confidence == 1.0

    def test_date_embedded_in_text(self):
        result = validate_date("Join us on December 15, 2024 at the park", reference_date=REFERENCE)

        assert result.valid
        assert result.normalized_value == "2024-12-15"
        assert result.confidence == pytest.approx(0.8)

    def test_date_range_uses_first_day(self):
        result = validate_date("December 15-17, 2024", reference_date=REFERENCE)

        assert result.valid
        assert result.normalized_value == "2024-12-15"

    def test_yearless_date_uses_next_occurrence(self):
        """Missing years resolve to the next upcoming date with reduced confidence."""
        upcoming = validate_date("December 15", reference_date=REFERENCE)
        next_year = validate_date("March 3", reference_date=REFERENCE)

        assert upcoming.normalized_value == "2024-12-15"
        assert next_year.normalized_value == "2025-03-03"
        assert upcoming.confidence == pytest.approx(0.7)

    @pytest.mark.parametrize("value", ["not-a-date", "", "Saturday", "TBD", "13/45/2024"])
    def test_unparseable_dates(self, value):
        result = validate_date(value, reference_date=REFERENCE)

        assert not result.valid
        assert result.confidence == 0.0
        assert result.normalized_value == ""

    def test_far_past_date_is_low_confidence(self):
        """Dates more than the threshold in the past are kept but flagged."""
        result = validate_date("2020-01-01", reference_date=REFERENCE)

        assert result.valid
        assert result.confidence == pytest.approx(0.6)
        assert "past" in result.reason

    def test_recent_past_date_is_fine(self):
        result = validate_date("2024-01-01", reference_date=REFERENCE)

        assert result.valid
        assert result.confidence == 1.0

    def test_threshold_is_configurable(self):
        result = validate_date("2024-11-01", reference_date=REFERENCE, past_threshold_days=7)

        assert result.confidence == pytest.approx(0.6)


class TestTimeValidation:
    """Test time parsing and 24-hour normalization."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("14:00", "14:00"),
            ("9:05:00", "09:05"),
            ("2:00 PM", "14:00"),
            ("2:00PM", "14:00"),
            ("2 pm", "14:00"),
            ("7 p.m.", "19:00"),
            ("12 PM", "12:00"),
            ("12:30 am", "00:30"),
            ("noon", "12:00"),
            ("Midnight", "00:00"),
        ],
    )
    def test_valid_times(self, value, expected):
        result = validate_time(value)

        assert result.valid
        assert result.normalized_value == expected

    @pytest.mark.parametrize("value", ["25:00", "12:60", "13 pm", "soon", ""])
    def test_invalid_times(self, value):
        result = validate_time(value)

        assert not result.valid
        assert result.confidence == 0.0

    def test_bare_hour_has_reduced_confidence(self):
        result = validate_time("14")

        assert result.normalized_value == "14:00"
        assert result.confidence == pytest.approx(0.8)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2:00 PM - 4:00 PM", ("2:00 PM", "4:00 PM")),
            ("3-5 pm", ("3 pm", "5 pm")),
            ("10am to 2pm", ("10am", "2pm")),
            ("14:00-16:00", ("14:00", "16:00")),
            ("2:00 PM", ("2:00 PM", "")),
        ],
    )
    def test_split_time_range(self, value, expected):
        assert split_time_range(value) == expected

    def test_all_day(self):
        assert is_all_day("All day")
        assert is_all_day("all-day event")
        assert not is_all_day("10am")


class TestTextValidation:
    """Test title and description checks."""

    def test_normal_title(self):
        result = validate_title("  Kids   Art Workshop ")

        assert result.valid
        assert result.confidence == 1.0
        assert result.normalized_value == "Kids Art Workshop"

    def test_short_title_flagged(self):
        result = validate_title("X")

        assert result.valid
        assert result.confidence == pytest.approx(0.5)
        assert "truncated" in result.reason

    def test_long_title_flagged(self):
        result = validate_title("A" * 201)

        assert result.valid
        assert result.confidence == pytest.approx(0.5)

    def test_empty_title_invalid(self):
        assert not validate_title("   ").valid

    def test_short_description(self):
        assert validate_description("Fun!").confidence == pytest.approx(0.7)
        assert validate_description("A long enough description of the event.").confidence == 1.0


class TestLocationValidation:
    """Test location checks and address parsing."""

    def test_name_and_address(self):
        result = validate_location("Ballard Library", "5614 22nd Ave NW, Ballard, Seattle")

        assert result.valid
        assert result.confidence == 1.0
        assert result.parsed.name == "Ballard Library"
        assert result.parsed.city == "Seattle"
        assert result.parsed.neighborhood == "Ballard"

    def test_name_only(self):
        result = validate_location("Remlinger Farms")

        assert result.valid
        assert result.confidence == pytest.approx(0.9)
        assert result.parsed.address == ""

    def test_missing_name(self):
        assert not validate_location("", "123 Main St").valid

    def test_nearby_city(self):
        assert parse_city_and_neighborhood("100 Main St, Bellevue, WA") == ("Bellevue", "")
        assert parse_city_and_neighborhood("") == ("Seattle", "")


class TestPriceValidation:
    """Test price classification."""

    @pytest.mark.parametrize(
        "value,pricing_type,cost,confidence",
        [
            ("Free", PricingType.FREE, 0.0, 1.0),
            ("FREE admission", PricingType.FREE, 0.0, 1.0),
            ("$0", PricingType.FREE, 0.0, 1.0),
            ("No cost", PricingType.FREE, 0.0, 1.0),
            ("$15", PricingType.PAID, 15.0, 1.0),
            ("15", PricingType.PAID, 15.0, 1.0),
            ("$12.50 per child", PricingType.PAID, 12.5, 1.0),
            ("$10-$20", PricingType.PAID, 10.0, 1.0),
            ("Free for members, $10 for guests", PricingType.PAID, 10.0, 1.0),
            ("Suggested donation $5", PricingType.DONATION, 5.0, 0.9),
            ("Pay what you can", PricingType.DONATION, 0.0, 0.9),
            ("Varies by session", PricingType.VARIABLE, 0.0, 0.6),
        ],
    )
    def test_price_types(self, value, pricing_type, cost, confidence):
        result = validate_price(value)

        assert result.valid
        assert result.parsed.type == pricing_type
        assert result.parsed.cost == pytest.approx(cost)
        assert result.parsed.currency == "USD"
        assert result.confidence == pytest.approx(confidence)

    def test_variable_keeps_raw_description(self):
        result = validate_price("Varies by session")

        assert result.parsed.description == "Varies by session"


class TestAgeRangeValidation:
    """Test age range parsing into buckets."""

    def test_numeric_range_single_bucket(self):
        result = validate_age_range("Ages 3-5")

        assert result.valid
        assert result.confidence == 1.0
        assert [(g.category, g.min_age, g.max_age) for g in result.parsed] == [
            (AgeGroupCategory.PRESCHOOL, 3, 5)
        ]

    def test_numeric_range_spans_buckets(self):
        result = validate_age_range("5-10 years")

        assert [g.category for g in result.parsed] == [
            AgeGroupCategory.PRESCHOOL,
            AgeGroupCategory.ELEMENTARY,
        ]
        assert result.parsed[0].min_age == 5

    def test_open_ended_range(self):
        result = validate_age_range("3+")

        assert result.parsed[0].category == AgeGroupCategory.PRESCHOOL
        assert result.parsed[-1].category == AgeGroupCategory.ADULT

    def test_under(self):
        result = validate_age_range("under 5")

        assert [g.category for g in result.parsed] == [
            AgeGroupCategory.INFANT,
            AgeGroupCategory.TODDLER,
            AgeGroupCategory.PRESCHOOL,
        ]
        assert result.parsed[-1].max_age == 4

    def test_months(self):
        result = validate_age_range("18 months")

        assert [g.category for g in result.parsed] == [AgeGroupCategory.TODDLER]

    @pytest.mark.parametrize(
        "value,category",
        [
            ("All ages", AgeGroupCategory.ALL_AGES),
            ("Toddlers", AgeGroupCategory.TODDLER),
            ("Pre-K", AgeGroupCategory.PRESCHOOL),
            ("teens", AgeGroupCategory.TEEN),
            ("Adults", AgeGroupCategory.ADULT),
        ],
    )
    def test_named_buckets(self, value, category):
        result = validate_age_range(value)

        assert result.valid
        assert result.parsed[0].category == category

    def test_unrecognized_text_passes_through(self):
        """Free text is kept, never rejected."""
        result = validate_age_range("Great for grandparents")

        assert result.valid
        assert result.confidence == pytest.approx(0.4)
        assert result.parsed[0].category == AgeGroupCategory.OTHER
        assert result.parsed[0].description == "Great for grandparents"


class TestUrlValidation:
    """Test URL checks."""

    def test_absolute_url(self):
        result = validate_url("https://example.com/register")

        assert result.valid
        assert result.normalized_value == "https://example.com/register"

    def test_bare_domain_gets_scheme(self):
        result = validate_url("www.example.com/events")

        assert result.valid
        assert result.normalized_value == "https://www.example.com/events"
        assert result.confidence == pytest.approx(0.8)

    @pytest.mark.parametrize("value", ["call to register", "mailto:info@example.com", ""])
    def test_invalid_urls(self, value):
        assert not validate_url(value).valid


class TestFieldValidator:
    """Test the settings-bound dispatcher."""

    def test_dispatch_by_type(self, settings):
        validator = FieldValidator(settings, reference_date=REFERENCE)

        assert validator.validate(ValidationType.DATE, "12/15/2024").normalized_value == "2024-12-15"
        assert validator.validate(ValidationType.TIME, "2 pm").normalized_value == "14:00"
        assert validator.validate(ValidationType.PRICE, "Free").parsed.type == PricingType.FREE

    def test_title_limits_from_settings(self, settings):
        settings.min_title_length = 10
        validator = FieldValidator(settings)

        assert validator.title("Short").confidence == pytest.approx(0.5)
