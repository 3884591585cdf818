import pytest

from pedgrowth.charts import ChartType, Sex, chart_key, gender_key


class TestChartType:
    """Tests for ChartType."""

    def test_tc001_values_are_table_keys(self):
        """TC001: Enum values match reference table keys."""
        assert [c.value for c in ChartType] == ["wfa", "lhfa", "hcfa", "bfa"]

    def test_tc002_label_and_unit(self):
        """TC002: Labels and units for display."""
        assert ChartType.WFA.label == "Weight-for-age"
        assert ChartType.WFA.unit == "kg"
        assert ChartType.BFA.unit == "kg/m2"

    def test_tc003_parse(self):
        """TC003: Parse is case-insensitive and strict."""
        assert ChartType.parse(" HCFA ") is ChartType.HCFA
        assert ChartType.parse(ChartType.LHFA) is ChartType.LHFA
        with pytest.raises(KeyError, match="Unknown chart type"):
            ChartType.parse("wfl")

    def test_tc004_chart_key_passes_unknown_through(self):
        """TC004: Unknown chart names are looked up verbatim (lowercased)."""
        assert chart_key(ChartType.BFA) == "bfa"
        assert chart_key("WFL") == "wfl"


class TestSex:
    """Tests for Sex."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("male", Sex.MALE),
            ("Male", Sex.MALE),
            ("M", Sex.MALE),
            ("boys", Sex.MALE),
            ("female", Sex.FEMALE),
            (" FEMALE ", Sex.FEMALE),
            ("f", Sex.FEMALE),
            ("girls", Sex.FEMALE),
        ],
    )
    def test_tc005_parse_aliases(self, value, expected):
        """TC005: Stored gender spellings normalize."""
        assert Sex.parse(value) is expected

    def test_tc006_parse_rejects_unknown(self):
        """TC006: Unknown values raise ValueError."""
        with pytest.raises(ValueError, match="Sex values must be"):
            Sex.parse("unknown")

    def test_tc007_table_key(self):
        """TC007: Sex maps to boys/girls table keys."""
        assert Sex.MALE.table_key == "boys"
        assert Sex.FEMALE.table_key == "girls"

    def test_tc008_gender_key(self):
        """TC008: gender_key normalizes known values and passes others through."""
        assert gender_key(Sex.FEMALE) == "girls"
        assert gender_key("Male") == "boys"
        assert gender_key("Other") == "other"
