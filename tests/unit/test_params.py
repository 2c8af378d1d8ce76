"""Unit tests for parameter normalizer."""

from __future__ import annotations

import re

import pytest

from read_models.core.exceptions import InvalidConstraintError
from read_models.core.params import normalize_params, parameter_name, placeholder_key


class TestNormalizeParams:
    def test_named_passthrough(self) -> None:
        sql = "SELECT * FROM users WHERE id = :user_id"
        assert normalize_params(sql, "named") == sql

    def test_pyformat_conversion(self) -> None:
        sql = "SELECT * FROM users WHERE id = :user_id"
        expected = "SELECT * FROM users WHERE id = %(user_id)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_multiple_params(self) -> None:
        sql = "SELECT * FROM users WHERE id = :id AND name = :name"
        expected = "SELECT * FROM users WHERE id = %(id)s AND name = %(name)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_typecast_exclusion(self) -> None:
        sql = "SELECT value::integer FROM t WHERE id = :id"
        expected = "SELECT value::integer FROM t WHERE id = %(id)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_string_literal_exclusion(self) -> None:
        sql = "SELECT * FROM t WHERE col = ':not_a_param' AND id = :id"
        expected = "SELECT * FROM t WHERE col = ':not_a_param' AND id = %(id)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_duplicate_param_names(self) -> None:
        sql = "SELECT * FROM t WHERE a = :val OR b = :val"
        expected = "SELECT * FROM t WHERE a = %(val)s OR b = %(val)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_no_params(self) -> None:
        sql = "SELECT 1"
        assert normalize_params(sql, "pyformat") == sql

    def test_cache_returns_same_result(self) -> None:
        sql = "SELECT * FROM t WHERE id = :id"
        result1 = normalize_params(sql, "pyformat")
        result2 = normalize_params(sql, "pyformat")
        assert result1 == result2

    def test_underscore_in_param_name(self) -> None:
        sql = "SELECT * FROM t WHERE user_id = :user_id"
        expected = "SELECT * FROM t WHERE user_id = %(user_id)s"
        assert normalize_params(sql, "pyformat") == expected


class TestPlaceholderKey:
    def test_qualified_column_is_slugged(self) -> None:
        key = placeholder_key("users.id")
        assert re.fullmatch(r":bind_users_id_\d+", key)

    def test_hyphens_become_underscores(self) -> None:
        key = placeholder_key("user-addresses.post-code")
        assert re.fullmatch(r":bind_user_addresses_post_code_\d+", key)

    def test_keys_are_unique(self) -> None:
        assert placeholder_key("id") != placeholder_key("id")

    def test_key_survives_pyformat_conversion(self) -> None:
        key = placeholder_key("users.email")
        sql = f"SELECT * FROM users WHERE users.email = {key}"
        assert normalize_params(sql, "pyformat").endswith(f"%({key[1:]})s")


class TestParameterName:
    def test_strips_colon(self) -> None:
        assert parameter_name(":user_id") == "user_id"

    def test_bare_name(self) -> None:
        assert parameter_name("user_id") == "user_id"

    @pytest.mark.parametrize("key", ["?", 0, 1, "", "  "])
    def test_positional_keys_rejected(self, key: object) -> None:
        with pytest.raises(InvalidConstraintError):
            parameter_name(key)
