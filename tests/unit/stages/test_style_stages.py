"""Style stage tests: prefixing and media query merging on plain CSS."""

from asset_pipeline.build.stages.styles import (
    merge_media_queries_css,
    prefix_css,
    target_prefixes,
)


def test_ie_query_selects_ms_prefix():
    assert target_prefixes(["ie >= 11"]) == {"ms"}


def test_generic_query_selects_every_prefix():
    assert target_prefixes(["last 2 versions"]) == {"webkit", "moz", "ms"}


def test_not_queries_are_ignored():
    assert target_prefixes(["not dead"]) == set()


def test_user_select_gets_ms_prefix_for_ie11():
    css = prefix_css("a{user-select:none}", ["ie >= 11"])

    assert "-ms-user-select:none" in css
    assert "user-select:none" in css
    assert css.index("-ms-user-select") < css.index(";user-select"), \
        "Prefixed declaration should precede the standard one"


def test_prefixes_inside_media_blocks():
    css = prefix_css("@media (min-width:600px){a{user-select:none}}", ["ie >= 11"])

    assert css.startswith("@media")
    assert "-ms-user-select:none" in css


def test_display_flex_value_prefix():
    css = prefix_css("a{display:flex}", ["ie >= 10", "safari >= 8"])

    assert "display:-ms-flexbox" in css
    assert "display:-webkit-flex" in css
    assert "display:flex" in css


def test_existing_prefix_not_duplicated():
    css = prefix_css("a{-ms-user-select:none;user-select:none}", ["ie >= 11"])

    assert css.count("-ms-user-select") == 1


def test_unprefixed_properties_untouched():
    assert prefix_css("a{color:red}", ["ie >= 11"]) == "a{color:red;}"


def test_merge_identical_media_queries():
    css = (
        "a{color:red}"
        "@media (max-width:600px){a{color:blue}}"
        "b{color:green}"
        "@media (max-width:600px){b{color:black}}"
    )

    merged = merge_media_queries_css(css)

    assert merged == (
        "a{color:red}b{color:green}"
        "@media (max-width:600px){a{color:blue}b{color:black}}"
    )


def test_merge_keeps_first_seen_order():
    css = (
        "@media (min-width:900px){a{x:1}}"
        "@media (max-width:600px){a{x:2}}"
        "@media (min-width:900px){b{x:3}}"
    )

    merged = merge_media_queries_css(css)

    assert merged.index("min-width:900px") < merged.index("max-width:600px")
    assert merged.count("@media") == 2


def test_css_without_media_is_unchanged():
    css = "a{color:red}"
    assert merge_media_queries_css(css) == css
