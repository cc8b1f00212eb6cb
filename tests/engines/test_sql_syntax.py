"""Unit tests for engines.sql.syntax (handlebars surface -> Jinja2 source)."""

import pytest

from dynsql.core.errors import RegistrationError
from dynsql.engines.sql.syntax import translate, translate_arg


class TestTranslateArg:
    def test_segment(self):
        assert translate_arg("[:q_name]", line=1) == "params[':q_name']"
        assert translate_arg("[name]", line=1) == "params['name']"

    def test_bare_name(self):
        assert translate_arg("name", line=1) == "params['name']"

    def test_literals(self):
        assert translate_arg('"AND "', line=1) == '"AND "'
        assert translate_arg("'OR '", line=1) == "'OR '"
        assert translate_arg("10", line=1) == "10"

    def test_malformed_segment(self):
        with pytest.raises(RegistrationError, match="Malformed placeholder"):
            translate_arg("[:1abc]", line=3)
        with pytest.raises(RegistrationError, match="Malformed placeholder"):
            translate_arg("[:]", line=3)

    def test_bare_colon_name_rejected(self):
        with pytest.raises(RegistrationError, match=r"\[:name\]"):
            translate_arg(":name", line=1)


class TestTranslate:
    def test_plain_sql_untouched(self):
        sql = "SELECT * FROM dogs WHERE name=:name AND note LIKE '%x%'"
        assert translate(sql) == sql

    def test_if_else(self):
        out = translate("{{#if [:a]}}x{{else}}y{{/if}}")
        assert out == "{% if params[':a'] %}x{% else %}y{% endif %}"

    def test_unless(self):
        assert translate("{{#unless [:a]}}x{{/unless}}") == "{% if not params[':a'] %}x{% endif %}"

    def test_helpers(self):
        assert translate("{{#where}}a{{/where}}") == "{% sql_where %}a{% endsql_where %}"
        assert translate('{{#trim "OR "}}a{{/trim}}') == '{% sql_trim "OR " %}a{% endsql_trim %}'
        assert (
            translate("{{#in [:ids]}}(:values){{/in}}")
            == "{% sql_in params[':ids'] %}(:values){% endsql_in %}"
        )

    def test_partial(self):
        assert translate("SELECT 1{{> Q_WHERE }}") == "SELECT 1{% include 'Q_WHERE' %}"
        assert translate('{{> "q.where"}}') == "{% include 'q.where' %}"

    def test_output(self):
        assert translate("LIMIT {{[:limit]}}") == "LIMIT {{ params[':limit'] }}"
        assert translate("LIMIT {{{[:limit]}}}") == "LIMIT {{ params[':limit'] }}"

    def test_comments_dropped(self):
        assert translate("a{{! note }}b{{!-- {{x}} --}}c") == "abc"

    def test_whitespace_control(self):
        out = translate("a {{~#if [:x]~}} b {{~/if}}")
        assert out == "a {%- if params[':x'] -%} b {%- endif %}"

    def test_jinja_delimiters_in_text_are_raw(self):
        out = translate("SELECT '{% x %}'")
        assert out == "{% raw %}SELECT '{% x %}'{% endraw %}"

    def test_inline_helper_becomes_empty_block(self):
        assert translate("{{where}}") == "{% sql_where %}{% endsql_where %}"


class TestTranslateErrors:
    def test_unterminated(self):
        with pytest.raises(RegistrationError, match="Unterminated"):
            translate("SELECT {{#if [:a]")

    def test_unclosed_block(self):
        with pytest.raises(RegistrationError, match="Unclosed"):
            translate("{{#where}}{{#if [:a]}}x{{/if}}")

    def test_mismatched_close(self):
        with pytest.raises(RegistrationError, match="does not close"):
            translate("{{#where}}x{{/set}}")

    def test_unexpected_close(self):
        with pytest.raises(RegistrationError, match="Unexpected"):
            translate("x{{/if}}")

    def test_unknown_block(self):
        with pytest.raises(RegistrationError, match="Unknown block 'each'"):
            translate("{{#each [:a]}}x{{/each}}")

    def test_unknown_helper(self):
        with pytest.raises(RegistrationError, match="Unknown helper"):
            translate("{{lookup a b}}")

    def test_if_arity(self):
        with pytest.raises(RegistrationError, match="exactly one argument"):
            translate("{{#if}}x{{/if}}")

    def test_else_outside_if(self):
        with pytest.raises(RegistrationError, match="outside"):
            translate("{{#where}}{{else}}{{/where}}")

    def test_line_number_reported(self):
        with pytest.raises(RegistrationError, match="line 3"):
            translate("SELECT\n*\n{{#bogus}}{{/bogus}}")
