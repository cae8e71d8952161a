"""Tests for BOM level and process-name lookups."""

import pytest

from mes_engines.bom import determine_level, get_process_name


class TestDetermineLevel:
    @pytest.mark.parametrize(
        "code,level",
        [
            ("PA", 1), ("pa", 1), ("Pa", 1),
            ("MC", 2), ("mc", 2),
            ("SB", 3), ("sb", 3),
            ("MS", 3), ("ms", 3),
            ("CA", 4), ("ca", 4),
        ],
    )
    def test_known_codes(self, code, level):
        assert determine_level(code) == level

    @pytest.mark.parametrize("code", ["", "XX", "SP", "HS", "CQ", "CI", "VI", None])
    def test_unknown_codes_default_to_level_1(self, code):
        assert determine_level(code) == 1


class TestGetProcessName:
    def test_known_names(self):
        assert get_process_name("PA") == "제품조립"
        assert get_process_name("MC") == "수동압착"
        assert get_process_name("SB") == "서브조립"
        assert get_process_name("MS") == "중간탈피"
        assert get_process_name("CA") == "자동절단압착"

    def test_case_insensitive(self):
        assert get_process_name("pa") == "제품조립"
        assert get_process_name("Mc") == "수동압착"
        assert get_process_name("ca") == "자동절단압착"

    def test_unknown_code_echoed(self):
        assert get_process_name("XX") == "XX"
        assert get_process_name("sp") == "sp"

    def test_empty_is_other(self):
        assert get_process_name("") == "기타"
        assert get_process_name(None) == "기타"
