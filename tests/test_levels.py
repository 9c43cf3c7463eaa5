import pytest

from progression.core.exceptions import InvalidInputError
from progression.core.levels import ProficiencyLevel


def test_levels_follow_scale_order_not_string_order():
    assert ProficiencyLevel.A2 < ProficiencyLevel.B1 < ProficiencyLevel.C2
    assert max(ProficiencyLevel.B2, ProficiencyLevel.A1) == ProficiencyLevel.B2
    assert sorted([ProficiencyLevel.C1, ProficiencyLevel.A0, ProficiencyLevel.B1]) == [
        ProficiencyLevel.A0,
        ProficiencyLevel.B1,
        ProficiencyLevel.C1,
    ]


def test_next_level_and_ceiling_helpers():
    assert ProficiencyLevel.A0.next_level == ProficiencyLevel.A1
    assert ProficiencyLevel.C2.next_level is None
    assert ProficiencyLevel.A2.at_or_below() == [
        ProficiencyLevel.A0,
        ProficiencyLevel.A1,
        ProficiencyLevel.A2,
    ]


def test_parse_accepts_lowercase_and_rejects_unknown_levels():
    assert ProficiencyLevel.parse("b2") == ProficiencyLevel.B2
    assert ProficiencyLevel.parse(ProficiencyLevel.C1) is ProficiencyLevel.C1
    assert ProficiencyLevel.B1 == "B1"

    with pytest.raises(InvalidInputError) as exc_info:
        ProficiencyLevel.parse("D1")
    assert exc_info.value.code == "invalid_level"
    assert exc_info.value.status_code == 400
